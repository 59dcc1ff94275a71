"""
Logging configuration for channel-analyst.

Two destinations:
  - Console: DEBUG if --verbose, WARNING+ otherwise. Config
    ``console_format`` options:
      - "simple" - (default) bare messages for DEBUG/INFO, [LEVEL] prefix for WARNING+
      - "full"   - same structured format as the file handler
      - "clean"  - no console output at all (file logging still active)
  - File: always DEBUG, one file per session under ``<data_dir>/logs/``.
    Format: "timestamp | level | name | session_id | tag | message"

Errors and tool activity are emitted on the EventBus; DebugLogListener
writes them to the ``channel_analyst`` logger.
"""

import logging
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Optional

import config

LOGGER_NAME = "channel_analyst"

_FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(session_id)s | %(log_tag)s | %(message)s"


def tagged(tag: str) -> dict:
    """Return ``extra`` dict for logger calls: ``logger.debug("...", extra=tagged("x"))``."""
    return {"log_tag": tag}


# Module-level state (shared across re-inits)
_session_filter: Optional["_SessionFilter"] = None
_current_log_file: Optional[Path] = None


class _SessionFilter(logging.Filter):
    """Injects session_id into every log record."""

    def __init__(self) -> None:
        super().__init__()
        self.session_id = ""

    def filter(self, record: logging.LogRecord) -> bool:
        record.session_id = self.session_id or "-"
        if not hasattr(record, "log_tag"):
            record.log_tag = ""
        return True


class _ConsoleFormatter(logging.Formatter):
    """Console formatter: shows [LEVEL] prefix only for WARNING and above."""

    def format(self, record: logging.LogRecord) -> str:
        if record.levelno >= logging.WARNING:
            return f"  [{record.levelname}] {record.getMessage()}"
        return f"  {record.getMessage()}"


def get_log_dir() -> Path:
    return config.get_data_dir() / "logs"


def attach_log_file(session_id: str) -> Path:
    """Attach a per-session file handler (replacing any previous one).

    Returns:
        Path of the log file.
    """
    global _current_log_file
    log_dir = get_log_dir()
    log_dir.mkdir(parents=True, exist_ok=True)

    log_file = log_dir / f"session_{session_id}.log"
    _current_log_file = log_file

    logger = logging.getLogger(LOGGER_NAME)
    for handler in [h for h in logger.handlers if isinstance(h, logging.FileHandler)]:
        logger.removeHandler(handler)
        handler.close()

    file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(file_handler)

    logger.info("=" * 60)
    logger.info(f"Session started at {datetime.now().isoformat()}")
    logger.info(f"Log file: {log_file}")
    return log_file


def setup_logging(verbose: bool = False) -> logging.Logger:
    """Configure console logging and bridge the EventBus to the logger.

    File handlers are attached later by ``attach_log_file()`` once a
    session ID is known.
    """
    global _session_filter
    from .event_bus import DebugLogListener, get_event_bus

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)  # Capture everything, filter at handler level
    logger.handlers.clear()
    logger.propagate = False

    if _session_filter is None:
        _session_filter = _SessionFilter()
    logger.addFilter(_session_filter)

    console_format = config.get("console_format", "simple")
    if console_format != "clean":
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
        if console_format == "full":
            console_handler.setFormatter(
                logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
            )
        else:
            console_handler.setFormatter(_ConsoleFormatter())
        logger.addHandler(console_handler)

    get_event_bus().subscribe(DebugLogListener(logger))
    return logger


def set_session_id(session_id: str) -> None:
    """Set the session ID included in all subsequent log lines."""
    global _session_filter
    if _session_filter is None:
        _session_filter = _SessionFilter()
    _session_filter.session_id = session_id


def get_current_log_path() -> Optional[Path]:
    return _current_log_file


def log_error(
    message: str,
    exc: Optional[BaseException] = None,
    context: Optional[dict] = None,
) -> None:
    """Log an error with full details including stack trace.

    Args:
        message: Error description
        exc: Optional exception to include stack trace from
        context: Optional dict of additional context (tool name, args, etc.)
    """
    from .event_bus import get_event_bus, ERROR_LOG

    lines = [message]
    if context:
        lines.append("Context:")
        for key, value in context.items():
            lines.append(f"  {key}: {value}")
    if exc is not None:
        lines.append(f"Exception type: {type(exc).__name__}")
        lines.append(f"Exception message: {exc}")
        lines.append("Stack trace:")
        lines.append("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))

    get_event_bus().emit(
        ERROR_LOG,
        level="error",
        summary="\n".join(lines),
        data={"short": message, "context": context or {}},
    )


def log_tool_call(tool_name: str, tool_args: dict) -> None:
    from .event_bus import get_event_bus, TOOL_CALL_LOG

    get_event_bus().emit(
        TOOL_CALL_LOG,
        level="debug",
        summary=f"Tool call: {tool_name}({tool_args})",
        data={"tool_name": tool_name, "tool_args": tool_args},
    )


def log_tool_result(tool_name: str, result: dict, success: bool) -> None:
    """Log a tool result.

    Args:
        tool_name: Name of the tool
        result: Display dict of the tool result
        success: Whether the tool succeeded
    """
    from .event_bus import get_event_bus, TOOL_RESULT_LOG

    if success:
        get_event_bus().emit(
            TOOL_RESULT_LOG,
            level="debug",
            summary=f"Tool result: {tool_name} -> success",
            data={"tool_name": tool_name, "status": "success"},
        )
    else:
        error_msg = result.get("error", "Unknown error")
        get_event_bus().emit(
            TOOL_RESULT_LOG,
            level="warning",
            summary=f"Tool result: {tool_name} -> error: {error_msg}",
            data={"tool_name": tool_name, "status": "error", "error": error_msg},
        )
