"""Lightweight logging setup for the command-line tools."""

import logging
import sys


def configure_logging(level: int = logging.INFO) -> None:
    # Configure root logger once; diagnostics go to stderr so stdout stays clean.
    logging.basicConfig(
        level=level,
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def parse_level(name: str) -> int:
    """Map a level name such as ``"debug"`` to its logging constant."""
    level = logging.getLevelName(name.strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"unknown log level: {name!r}")
    return level
