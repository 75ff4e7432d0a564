"""Log sink configuration: rich console plus info/verbose/error files."""

from __future__ import annotations

import logging
from pathlib import Path

from rich.logging import RichHandler

ROOT_LOGGER = "duplicator"
VERBOSE = 15

logging.addLevelName(VERBOSE, "VERBOSE")

LEVELS = {
    "fatal": logging.CRITICAL,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "verbose": VERBOSE,
    "debug": logging.DEBUG,
}

# file name -> minimum level written to it
FILE_SINKS = {
    "info.log": logging.INFO,
    "verbose.log": VERBOSE,
    "error.log": logging.ERROR,
}

_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def parse_level(name: str) -> int:
    try:
        return LEVELS[name.strip().lower()]
    except KeyError:
        raise ValueError(f"Unknown log level {name!r}. Valid: {sorted(LEVELS)}") from None


def configure_logging(
    log_directory: Path | None,
    console_level: str = "info",
    *,
    logger_names: tuple[str, ...] = (ROOT_LOGGER, "api"),
) -> logging.Logger:
    """Attach console and file handlers to the application loggers.

    Safe to call more than once; previously attached handlers are replaced.
    Returns the ``duplicator`` logger.
    """
    handlers: list[logging.Handler] = []

    console = RichHandler(show_path=False, rich_tracebacks=True)
    console.setLevel(parse_level(console_level))
    handlers.append(console)

    if log_directory is not None:
        log_directory.mkdir(parents=True, exist_ok=True)
        formatter = logging.Formatter(_FILE_FORMAT)
        for filename, level in FILE_SINKS.items():
            sink = logging.FileHandler(log_directory / filename, encoding="utf-8")
            sink.setLevel(level)
            sink.setFormatter(formatter)
            handlers.append(sink)

    for name in logger_names:
        target = logging.getLogger(name)
        for old in list(target.handlers):
            target.removeHandler(old)
            old.close()
        for handler in handlers:
            target.addHandler(handler)
        target.setLevel(logging.DEBUG)
        target.propagate = False

    return logging.getLogger(ROOT_LOGGER)
