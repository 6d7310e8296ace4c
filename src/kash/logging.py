"""
Structured logging for the kash disk cache.

Every DiskCache operation runs inside ``log_context(cache_name=..., operation=...)``;
records emitted while it is active carry those fields. File output is JSON
Lines, console output goes through Rich with the fields as a prefix.
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Generator, Mapping

from rich.console import Console
from rich.logging import RichHandler
from rich.text import Text

# Never mutated in place; log_context installs a fresh mapping.
_context_var: ContextVar[Mapping[str, str]] = ContextVar("kash_log_context", default={})

_CONTEXT_STYLES = {"cache": "cyan", "operation": "magenta"}


def current_context() -> dict[str, str]:
    """Context fields in effect for the calling thread or task."""
    return dict(_context_var.get())


@contextmanager
def log_context(
    cache_name: str | None = None,
    operation: str | None = None,
) -> Generator[None, None, None]:
    """Attach cache name and operation to every record logged in the block.

    Fields left as None are inherited from the enclosing context.
    """
    fields = dict(_context_var.get())
    if cache_name is not None:
        fields["cache"] = cache_name
    if operation is not None:
        fields["operation"] = operation

    token = _context_var.set(fields)
    try:
        yield
    finally:
        _context_var.reset(token)


class JSONFormatter(logging.Formatter):
    """One JSON object per line, with context fields at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **current_context(),
        }

        fields = getattr(record, "fields", None)
        if fields:
            log_obj["extra"] = fields

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_obj, default=str)


class ContextRichHandler(RichHandler):
    """Rich handler that prefixes the level with the active context."""

    def get_level_text(self, record: logging.LogRecord) -> Text:
        level_text = super().get_level_text(record)
        context = current_context()
        prefix = " ".join(
            f"[{style}]{context[name]}[/{style}]"
            for name, style in _CONTEXT_STYLES.items()
            if context.get(name)
        )
        if not prefix:
            return level_text
        return Text.from_markup(f"{level_text} {prefix}")


class ContextLogger:
    """Logger wrapper whose keyword arguments become structured fields.

    Example:
        logger.debug("Stored item", key="alpha", size=3)
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    @property
    def name(self) -> str:
        return self._logger.name

    def _log(self, level: int, msg: str, *args: Any, exc_info: bool = False, **fields: Any) -> None:
        self._logger.log(level, msg, *args, exc_info=exc_info, extra={"fields": fields})

    def debug(self, msg: str, *args: Any, **fields: Any) -> None:
        self._log(logging.DEBUG, msg, *args, **fields)

    def info(self, msg: str, *args: Any, **fields: Any) -> None:
        self._log(logging.INFO, msg, *args, **fields)

    def warning(self, msg: str, *args: Any, **fields: Any) -> None:
        self._log(logging.WARNING, msg, *args, **fields)

    def error(self, msg: str, *args: Any, exc_info: bool = False, **fields: Any) -> None:
        self._log(logging.ERROR, msg, *args, exc_info=exc_info, **fields)


_console = Console(stderr=True)
_setup_done = False


def setup_logging(
    log_level: str = "WARNING",
    log_file: Path | None = None,
    console_output: bool = True,
) -> None:
    """Configure the ``kash`` logger hierarchy.

    Args:
        log_level: Level for the console handler and the logger itself.
        log_file: JSON Lines file that receives every record; None disables it.
        console_output: Whether to attach the Rich console handler.
    """
    global _setup_done

    level = getattr(logging, log_level.upper())
    package_logger = logging.getLogger("kash")
    package_logger.setLevel(level)
    package_logger.handlers.clear()
    package_logger.propagate = False

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(JSONFormatter())
        file_handler.setLevel(logging.DEBUG)
        package_logger.addHandler(file_handler)

    if console_output:
        rich_handler = ContextRichHandler(
            console=_console,
            show_time=True,
            show_path=False,
            rich_tracebacks=True,
            markup=True,
        )
        rich_handler.setLevel(level)
        package_logger.addHandler(rich_handler)

    _setup_done = True


def get_logger(name: str) -> ContextLogger:
    """Get a ContextLogger under the ``kash`` namespace."""
    if not _setup_done:
        setup_logging()

    if not name.startswith("kash"):
        name = f"kash.{name}"
    return ContextLogger(logging.getLogger(name))
