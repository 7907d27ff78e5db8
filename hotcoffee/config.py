"""Command-line options and data-directory setup."""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

ERROR_LOG_PATH = "logs/error.log"
INFO_LOG_PATH = "logs/info.log"
DEBUG_LOG_PATH = "logs/debug.log"

DEFAULT_DATA_DIR = "./data"
DEFAULT_PORT = 8080
MIN_PORT = 1024
MAX_PORT = 49151

DATA_FILES = ("menu.json", "order.json", "inventory.json")

HELP_TEXT = """
Coffee Shop Management System

Usage:
  hot-coffee [--port <N>] [--dir <S>] 
  hot-coffee --help

Options:
  --help       Show this screen.
  --port N     Port number.
  --dir S      Path to the data directory
"""

USAGE_TEXT = """
Usage:
  hot-coffee [--port <N>] [--dir <S>] 
  hot-coffee --help

Options:
  --help       Show help.
  --port N     Port number.
  --dir S      Path to the data directory
"""

_TRUE_WORDS = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE_WORDS = {"0", "f", "F", "FALSE", "false", "False"}
_LEGACY_OCTAL = re.compile(r"[+-]?0[0-7]+")


class ConfigError(Exception):
    """Raised when the command line or the data directory is unusable."""


@dataclass(frozen=True)
class Config:
    """Settings the server runs with."""

    data_dir: Path = Path(DEFAULT_DATA_DIR)
    port: int = DEFAULT_PORT
    args: tuple[str, ...] = ()
    info_log_path: Path = field(default=Path(INFO_LOG_PATH))
    error_log_path: Path = field(default=Path(ERROR_LOG_PATH))
    debug_log_path: Path = field(default=Path(DEBUG_LOG_PATH))


def _parse_bool(name: str, text: str) -> bool:
    if text in _TRUE_WORDS:
        return True
    if text in _FALSE_WORDS:
        return False
    raise ConfigError(f"invalid boolean value {text!r} for -{name}: parse error\n{USAGE_TEXT}")


def _parse_int(name: str, text: str) -> int:
    try:
        value = int(text, 0)
    except ValueError:
        if not _LEGACY_OCTAL.fullmatch(text):
            raise ConfigError(
                f"invalid value {text!r} for flag -{name}: parse error\n{USAGE_TEXT}"
            ) from None
        value = int(text, 8)
    if not -(2**63) <= value < 2**63:
        raise ConfigError(f"invalid value {text!r} for flag -{name}: value out of range\n{USAGE_TEXT}")
    return value


def parse_args(argv: Sequence[str] | None = None) -> Config:
    """Parse command-line flags; prints help and exits on --help."""
    argv = list(sys.argv[1:] if argv is None else argv)
    data_dir = DEFAULT_DATA_DIR
    port = DEFAULT_PORT
    show_help = False
    rest = argv

    while rest:
        arg = rest[0]
        if len(arg) < 2 or not arg.startswith("-"):
            break
        if arg == "--":
            rest = rest[1:]
            break
        body = arg[2:] if arg.startswith("--") else arg[1:]
        if not body or body[0] in "-=":
            raise ConfigError(f"bad flag syntax: {arg}\n{USAGE_TEXT}")
        rest = rest[1:]
        name, has_value, value = body.partition("=")

        if name == "help":
            show_help = _parse_bool(name, value) if has_value else True
            continue
        if name == "h":
            print(USAGE_TEXT, end="")
            raise SystemExit(0)
        if name not in ("dir", "port"):
            raise ConfigError(f"flag provided but not defined: -{name}\n{USAGE_TEXT}")
        if not has_value:
            if not rest:
                raise ConfigError(f"flag needs an argument: -{name}\n{USAGE_TEXT}")
            value, rest = rest[0], rest[1:]
        if name == "dir":
            data_dir = value
        else:
            port = _parse_int(name, value)

    if show_help or "--help" in argv:
        print(HELP_TEXT, end="")
        raise SystemExit(0)

    return Config(data_dir=Path(data_dir), port=port, args=tuple(rest))


def check_config(config: Config) -> None:
    """Reject stray arguments, a port out of range and a missing data directory."""
    if config.args:
        listed = "[" + " ".join(config.args) + "]"
        raise ConfigError(f"Unexpected arguments: {listed}\n{USAGE_TEXT}")
    if not MIN_PORT <= config.port <= MAX_PORT:
        raise ConfigError(f"Port number must be in the range [{MIN_PORT}, {MAX_PORT}]\n{USAGE_TEXT}")
    if not config.data_dir.is_dir():
        raise ConfigError(f"Invalid data directory: {config.data_dir}\n{USAGE_TEXT}")


def init_config(config: Config) -> None:
    """Validate the configuration and create empty data files that are missing."""
    check_config(config)
    for name in DATA_FILES:
        path = config.data_dir / name
        if path.exists():
            continue
        try:
            path.write_text("[]", encoding="utf-8")
        except OSError as err:
            raise ConfigError(f"failed to create {name}: {err}") from err