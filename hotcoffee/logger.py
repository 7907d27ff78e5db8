"""Per-level file loggers and error wrapping."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path

_DATE_FORMAT = "%Y/%m/%d %H:%M:%S"


class WrappedError(Exception):
    """An error annotated with the layer, function and context it passed through."""

    def __init__(self, layer: str, function_name: str, context: str, err: BaseException) -> None:
        super().__init__(
            f"[Layer:{layer},Function:{function_name},Context:{context}]---> {err}\n"
        )
        self.layer = layer
        self.function_name = function_name
        self.context = context
        self.__cause__ = err


@dataclass
class Loggers:
    """The loggers the server writes to, one per level."""

    info: logging.Logger
    error: logging.Logger
    debug: logging.Logger
    fatal: logging.Logger

    def close(self) -> None:
        """Detach and close every handler."""
        for logger in (self.info, self.error, self.debug, self.fatal):
            for handler in list(logger.handlers):
                logger.removeHandler(handler)
                handler.close()

    def __enter__(self) -> Loggers:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def _build_logger(name: str, prefix: str, handler: logging.Handler) -> logging.Logger:
    handler.setFormatter(
        logging.Formatter(
            f"{prefix}%(asctime)s %(filename)s:%(lineno)d: %(message)s",
            datefmt=_DATE_FORMAT,
        )
    )
    logger = logging.Logger(f"hotcoffee.{name}", logging.DEBUG)
    logger.propagate = False
    logger.addHandler(handler)
    return logger


def create_loggers(
    info_path: str | Path, error_path: str | Path, debug_path: str | Path
) -> Loggers:
    """Open the three log files for appending and build a logger for each level."""
    handlers: list[logging.Handler] = []
    try:
        for path in (info_path, error_path, debug_path):
            handlers.append(logging.FileHandler(path, mode="a", encoding="utf-8"))
    except OSError:
        for handler in handlers:
            handler.close()
        raise
    info_handler, error_handler, debug_handler = handlers
    return Loggers(
        info=_build_logger("info", "INFO: ", info_handler),
        error=_build_logger("error", "ERROR: ", error_handler),
        debug=_build_logger("debug", "DEBUG: ", debug_handler),
        fatal=_build_logger("fatal", "FATAL: ", logging.StreamHandler(sys.stderr)),
    )


def wrap_error(layer: str, function_name: str, context: str, err: BaseException) -> WrappedError:
    """Return an error describing where ``err`` happened, chained to it."""
    return WrappedError(layer, function_name, context, err)