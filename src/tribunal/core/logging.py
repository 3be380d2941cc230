# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Tribunal Contributors

"""Logging setup for Tribunal.

Log lines carry the workflow they belong to. ``log_context()`` binds
``market_id`` / ``dispute_id`` / ``actor`` (and the request correlation id)
for the current task, and a single call may add or override them with
``extra={"market_id": ...}``. Both formatters surface these fields: JSON as
top-level keys, text as a bracketed prefix.
"""

from __future__ import annotations

import json
import logging
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

from .config import CoreSettings, get_config

CONTEXT_FIELDS = ("correlation_id", "market_id", "dispute_id", "actor")

_log_context: ContextVar[dict[str, str]] = ContextVar("tribunal_log_context", default={})


def current_context() -> dict[str, str]:
    return dict(_log_context.get())


@contextmanager
def log_context(**fields: str | None) -> Iterator[dict[str, str]]:
    """Bind workflow fields to every log line emitted inside the block.

    ``None`` values are skipped, so callers can pass optional ids as-is.
    Nested blocks inherit and extend the outer fields.
    """
    merged = {**_log_context.get(), **{k: str(v) for k, v in fields.items() if v is not None}}
    token = _log_context.set(merged)
    try:
        yield merged
    finally:
        _log_context.reset(token)


@contextmanager
def correlation_context(correlation_id: str | None = None) -> Iterator[str]:
    """Scope a request: reuse the caller's id or mint one."""
    cid = correlation_id or str(uuid.uuid4())
    with log_context(correlation_id=cid):
        yield cid


def record_context(record: logging.LogRecord) -> dict[str, str]:
    """Context fields for a record; ``extra=`` values win over the bound context."""
    fields = current_context()
    for name in CONTEXT_FIELDS:
        value = getattr(record, name, None)
        if value is not None:
            fields[name] = str(value)
    return fields


class JSONFormatter(logging.Formatter):
    """One JSON object per line, workflow fields at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **record_context(record),
        }
        if record.levelno >= logging.WARNING:
            entry["source"] = {"file": record.pathname, "line": record.lineno, "function": record.funcName}
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class StandardFormatter(logging.Formatter):
    """Terminal output: ``<time> <level> <logger> [cid market=.. dispute=..] message``."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    DIM = "\033[90m"
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True):
        super().__init__(datefmt="%Y-%m-%d %H:%M:%S")
        self.use_colors = use_colors and sys.stderr.isatty()

    def _tag(self, fields: dict[str, str]) -> str:
        parts = []
        if cid := fields.get("correlation_id"):
            parts.append(cid[:8])
        for name in ("market", "dispute", "actor"):
            key = name if name == "actor" else f"{name}_id"
            if value := fields.get(key):
                parts.append(f"{name}={value[:12]}")
        if not parts:
            return ""
        tag = f"[{' '.join(parts)}] "
        return f"{self.DIM}{tag}{self.RESET}" if self.use_colors else tag

    def format(self, record: logging.LogRecord) -> str:
        level = record.levelname
        if self.use_colors:
            level = f"{self.LEVEL_COLORS.get(level, '')}{level}{self.RESET}"
        line = (
            f"{self.formatTime(record, self.datefmt)} {level} {record.name} "
            f"{self._tag(record_context(record))}{record.getMessage()}"
        )
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def configure_logging(
    level: str | int | None = None,
    json_format: bool | None = None,
    log_file: str | None = None,
    config: CoreSettings | None = None,
) -> None:
    """Install Tribunal's handlers on the root logger.

    Unset arguments come from settings (``TRIBUNAL_LOG_LEVEL``,
    ``TRIBUNAL_LOG_FORMAT`` = json/text/auto, ``TRIBUNAL_LOG_FILE``). Auto
    format picks JSON when stderr is not a terminal. A log file is always
    written as JSON.
    """
    config = config or get_config()

    level = level or config.log_level
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    if json_format is None:
        fmt = config.log_format.lower()
        json_format = fmt == "json" or (fmt not in ("json", "text") and not sys.stderr.isatty())

    root = logging.getLogger()
    root.setLevel(level)
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(JSONFormatter() if json_format else StandardFormatter())
    root.addHandler(console)

    log_file = log_file or config.log_file
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(JSONFormatter())
        root.addHandler(file_handler)

    for noisy in ("httpx", "httpcore", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
