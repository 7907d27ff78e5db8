"""Coffee shop management server storing menu, inventory and orders as JSON files."""

__version__ = "0.1.0"