[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "hotcoffee"
version = "0.1.0"
description = "Coffee shop management HTTP server backed by JSON files"
requires-python = ">=3.10"
dependencies = []
keywords = ["coffee", "orders", "inventory", "menu", "http", "json"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Environment :: Web Environment",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: Office/Business",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
hot-coffee = "hotcoffee.app:main"

[tool.hatch.build.targets.wheel]
packages = ["hotcoffee"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
