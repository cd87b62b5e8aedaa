"""
Logging setup for applications built on the Aleo agent.

Library modules only create named loggers (``aleo_agent.scanner``,
``aleo_agent.chain``, ...).  An application calls ``setup_logging`` once to
install handlers on the root logger:

  - **human** console lines: ``12:00:01 INFO    scanner: Searching blocks ...``
  - **json** console lines, one object per record, for log shippers
  - an optional file that always receives JSON lines

``httpx`` logs every request at INFO; it is held at WARNING unless the
agent itself runs at DEBUG.

Usage:
    from aleo_agent.logging_config import setup_logging
    setup_logging(level="DEBUG", fmt="json", log_file="logs/agent.log")
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from aleo_agent.config import LoggingConfig

PACKAGE_LOGGER = "aleo_agent"
_TRANSPORT_LOGGERS = ("httpx", "httpcore")

# LogRecord attributes that are not caller-supplied ``extra`` fields
_RESERVED = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


def _short_name(name: str) -> str:
    prefix = PACKAGE_LOGGER + "."
    return name[len(prefix):] if name.startswith(prefix) else name


class _JSONFormatter(logging.Formatter):
    """One JSON object per record; ``extra={...}`` fields are kept as keys."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key, value in vars(record).items():
            if key not in _RESERVED and not key.startswith("_"):
                entry[key] = value
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class _HumanFormatter(logging.Formatter):
    LEVEL_COLOURS = {
        logging.DEBUG: "\033[2m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[1;31m",
    }
    RESET = "\033[0m"

    def __init__(self, colour: bool = True):
        super().__init__()
        self.colour = colour

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        level = f"{record.levelname:<7}"
        if self.colour:
            level = f"{self.LEVEL_COLOURS.get(record.levelno, '')}{level}{self.RESET}"
        text = f"{stamp} {level} {_short_name(record.name)}: {record.getMessage()}"
        if record.exc_info and record.exc_info[1]:
            text = f"{text}\n{self.formatException(record.exc_info)}"
        return text


def setup_logging(
    level: str = "INFO",
    fmt: str = "human",
    log_file: Optional[str] = None,
) -> None:
    """
    Configure the root logger, replacing any handlers it already has.

    Parameters
    ----------
    level : str
        Level name for the root logger; unknown names mean INFO.
    fmt : str
        ``"json"`` for JSON console lines, anything else for human lines
        (coloured only when stderr is a terminal).
    log_file : str, optional
        Append JSON lines to this file as well; parent directories are
        created.
    """
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        numeric = logging.INFO

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.setLevel(numeric)

    stream = logging.StreamHandler(sys.stderr)
    if fmt == "json":
        stream.setFormatter(_JSONFormatter())
    else:
        stream.setFormatter(_HumanFormatter(colour=sys.stderr.isatty()))
    root.addHandler(stream)

    if log_file:
        target = Path(log_file)
        target.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(target, encoding="utf-8")
        file_handler.setFormatter(_JSONFormatter())
        root.addHandler(file_handler)

    transport_level = logging.DEBUG if numeric <= logging.DEBUG else logging.WARNING
    for name in _TRANSPORT_LOGGERS:
        logging.getLogger(name).setLevel(transport_level)


def setup_logging_from_config(cfg: LoggingConfig) -> None:
    setup_logging(level=cfg.level, fmt=cfg.format, log_file=cfg.file)
