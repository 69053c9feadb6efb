"""Logging configuration for scripts and applications built on cnccoder.

The library itself only creates module loggers
(``logging.getLogger(__name__)``) and never installs handlers.  Call
``setup_logging`` once from an entrypoint to see its output:

    - Console handler and optional file handler with rotation
    - JSON output mode for ingestion
    - Contextual fields (e.g. program=..., tool=...)
    - Warning capture (Python warnings -> logging)

Public API:
    setup_logging(log_level="DEBUG", context={"program": "bracket"})
    push_context(tool="6mm endmill")
    pop_context(keys=["tool"])
    with log_context(program="bracket"): ...

``cnccoder.export.write_project`` tags its records with the program name
through ``log_context``.

Format examples:
    Human: 2026-03-02T09:14:05.120Z | INFO     | program=bracket | Wrote bracket.gcode
    JSON:  {"t": "2026-03-02T09:14:05.120000+00:00", "lvl": "INFO", "program": "bracket", "msg": "..."}

Idempotent: repeated setup_logging() calls replace, never duplicate, the
handlers it installed.
"""

from __future__ import annotations

import contextvars
import json
import logging
import logging.handlers
import os
import sys
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import IO, Any, Iterator

# Contextual fields shared by every record formatted in this context
_context_var: contextvars.ContextVar[dict[str, Any]] = contextvars.ContextVar(
    "cnccoder_logging_context", default={}
)

# Handlers installed by the last setup_logging() call
_installed: list[logging.Handler] = []


class ContextFormatter(logging.Formatter):
    """Formatter that appends the fields set with ``push_context``.

    Parameters
    ----------
    fmt_mode : str
        ``"human"`` for aligned text lines, ``"json"`` for one JSON
        object per line.
    use_color : bool
        Colour the level name; only honoured when ``stream`` is a tty.
    stream : IO[str] | None
        Stream the handler writes to, used for the tty check.
    """

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(
        self,
        fmt_mode: str = "human",
        use_color: bool = True,
        stream: IO[str] | None = None,
    ) -> None:
        super().__init__()
        if fmt_mode not in ("human", "json"):
            raise ValueError(f"Unknown format mode: {fmt_mode}. Use 'human' or 'json'.")
        self.fmt_mode = fmt_mode
        isatty = getattr(stream, "isatty", None)
        self.use_color = use_color and bool(isatty and isatty())

    def format(self, record: logging.LogRecord) -> str:
        context = _context_var.get()
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc)

        if self.fmt_mode == "json":
            return self._format_json(record, ts, context)
        return self._format_human(record, ts, context)

    def _format_json(
        self, record: logging.LogRecord, ts: datetime, context: dict[str, Any],
    ) -> str:
        entry: dict[str, Any] = {
            "t": ts.isoformat(),
            "lvl": record.levelname,
            "name": record.name,
            "pid": os.getpid(),
        }
        entry.update(context)
        entry["msg"] = record.getMessage()
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)

    def _format_human(
        self, record: logging.LogRecord, ts: datetime, context: dict[str, Any],
    ) -> str:
        ts_str = ts.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"

        level = f"{record.levelname:8s}"
        if self.use_color:
            level = f"{self.COLORS.get(record.levelname, '')}{level}{self.RESET}"

        parts = [ts_str, "|", level, "|"]
        if context:
            parts.append(" ".join(f"{k}={v}" for k, v in context.items()))
            parts.append("|")
        parts.append(record.getMessage())

        line = " ".join(parts)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(
    log_level: str = "INFO",
    log_file: str | Path | None = None,
    *,
    json_format: bool = False,
    color: bool = True,
    stream: IO[str] | None = None,
    rotate: dict[str, Any] | None = None,
    capture_warnings: bool = True,
    context: dict[str, Any] | None = None,
    logger_name: str | None = None,
) -> list[logging.Handler]:
    """Configure logging (idempotent).

    Parameters
    ----------
    log_level : str
        "DEBUG", "INFO", "WARNING", "ERROR" or "CRITICAL".
    log_file : str | Path | None
        Log file path; None for no file logging.
    json_format : bool
        Write JSON lines instead of human-readable ones.
    color : bool
        Colour console level names when the console is a tty.
    stream : IO[str] | None
        Console stream; ``sys.stderr`` by default.
    rotate : dict | None
        File rotation:
        - {"mode": "size", "max_bytes": 10_000_000, "backup_count": 5}
        - {"mode": "time", "when": "D", "interval": 1, "backup_count": 7}
    capture_warnings : bool
        Route Python warnings into logging.
    context : dict | None
        Initial contextual fields.
    logger_name : str | None
        Logger to configure; the root logger by default.

    Returns
    -------
    list[logging.Handler]
        Handlers installed by this call.

    Raises
    ------
    ValueError
        On an unknown level or rotation mode.

    Examples
    --------
    >>> setup_logging("DEBUG", "logs/cnccoder.log",
    ...               rotate={"mode": "size", "max_bytes": 10_000_000, "backup_count": 3},
    ...               context={"program": "bracket"})
    """
    level = _parse_level(log_level)
    target = logging.getLogger(logger_name)

    for handler in _installed:
        for logger in (logging.getLogger(), target):
            if handler in logger.handlers:
                logger.removeHandler(handler)
        handler.close()
    _installed.clear()

    target.setLevel(level)

    stream = stream if stream is not None else sys.stderr
    console = logging.StreamHandler(stream)
    console.setFormatter(
        ContextFormatter("json" if json_format else "human", color, stream)
    )
    target.addHandler(console)
    _installed.append(console)

    if log_file is not None:
        file_handler = _create_file_handler(log_file, rotate, json_format)
        target.addHandler(file_handler)
        _installed.append(file_handler)

    if context:
        push_context(**context)

    if capture_warnings:
        logging.captureWarnings(True)

    return list(_installed)


def _create_file_handler(
    log_file: str | Path,
    rotate: dict[str, Any] | None,
    json_format: bool,
) -> logging.Handler:
    """Create file handler with optional rotation."""
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handler: logging.Handler
    if rotate:
        mode = rotate.get("mode", "size")
        if mode == "size":
            handler = logging.handlers.RotatingFileHandler(
                log_path,
                maxBytes=rotate.get("max_bytes", 10_000_000),
                backupCount=rotate.get("backup_count", 5),
            )
        elif mode == "time":
            handler = logging.handlers.TimedRotatingFileHandler(
                log_path,
                when=rotate.get("when", "D"),
                interval=rotate.get("interval", 1),
                backupCount=rotate.get("backup_count", 7),
            )
        else:
            raise ValueError(f"Unknown rotation mode: {mode}. Use 'size' or 'time'.")
    else:
        handler = logging.FileHandler(log_path)

    fmt_mode = "json" if json_format else "human"
    handler.setFormatter(ContextFormatter(fmt_mode, use_color=False))
    return handler


def _parse_level(level: str) -> int:
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return value


def push_context(**kwargs: Any) -> None:
    """Add contextual fields to all subsequent log records.

    Notes
    -----
    Context is local to the current thread / asyncio task (contextvars).
    Fields appear in every formatted record until popped.

    Examples
    --------
    >>> push_context(program="bracket")
    >>> push_context(tool="6mm endmill")
    >>> logger.info("Appended cut")  # -> "... | program=bracket tool=6mm endmill | ..."
    """
    _context_var.set({**_context_var.get(), **kwargs})


def pop_context(keys: list[str] | None = None) -> None:
    """Remove contextual fields; all of them when ``keys`` is None.

    Examples
    --------
    >>> pop_context(keys=["tool"])
    >>> pop_context()
    """
    if keys is None:
        _context_var.set({})
        return
    current = dict(_context_var.get())
    for key in keys:
        current.pop(key, None)
    _context_var.set(current)


def get_context() -> dict[str, Any]:
    """Snapshot of the current contextual fields."""
    return dict(_context_var.get())


@contextmanager
def log_context(**kwargs: Any) -> Iterator[None]:
    """Scope contextual fields to a ``with`` block.

    The fields in effect before the block are restored on exit, even if
    the block raises.

    Examples
    --------
    >>> with log_context(program="bracket"):
    ...     logger.info("Writing files")  # -> "... | program=bracket | ..."
    """
    token = _context_var.set({**_context_var.get(), **kwargs})
    try:
        yield
    finally:
        _context_var.reset(token)
