"""Centralized logging configuration using Loguru.

Usage:
    from logshift.utils.logging import logger
    logger.info("Message")
    logger.debug("Debug message")  # Only shows if LOGSHIFT_LOG_LEVEL=DEBUG

Environment Variables:
    LOGSHIFT_LOG_LEVEL: TRACE|DEBUG|INFO|WARNING|ERROR (default: INFO)
    LOGSHIFT_LOG_JSON: 0|1 (default: 0, human-readable)
    LOGSHIFT_LOG_FILE: path to log file (optional)

Console output always goes to stderr. stdout is reserved for rewritten source
and diffs so that ``logshift rewrite file.go > out.go`` stays clean.
"""

import json
import os
import sys

from loguru import logger

# Remove default handler
logger.remove()

_log_level = os.environ.get("LOGSHIFT_LOG_LEVEL", "INFO").upper()
_json_mode = os.environ.get("LOGSHIFT_LOG_JSON", "0") == "1"
_log_file = os.environ.get("LOGSHIFT_LOG_FILE")


def _json_record(record) -> str:
    entry = {
        "level": record["level"].name,
        "time": record["time"].isoformat(),
        "msg": record["message"],
        "module": record["name"],
        "line": record["line"],
    }
    for key, value in record["extra"].items():
        entry[key] = str(value)
    if record["exception"]:
        entry["err"] = {
            "type": record["exception"].type.__name__ if record["exception"].type else "Error",
            "message": str(record["exception"].value) if record["exception"].value else "",
        }
    return json.dumps(entry)


def ndjson_sink(message):
    """Write one JSON object per log record to stderr."""
    # Never call logger.* inside a sink - causes infinite recursion
    sys.stderr.write(_json_record(message.record) + "\n")
    sys.stderr.flush()


# Human-readable format
_human_format = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}:{function}:{line}</cyan> - "
    "<level>{message}</level>"
)

logger.level("DEBUG", color="<blue>")
logger.level("INFO", color="<white>")
logger.level("WARNING", color="<yellow>")
logger.level("ERROR", color="<red>")

_console_handler_id: int | None = None


def _add_console_handler(level: str) -> int:
    if _json_mode:
        return logger.add(ndjson_sink, level=level, colorize=False)
    return logger.add(
        sys.stderr,
        level=level,
        format=_human_format,
        colorize=None,  # Auto-detect: colors if TTY, plain if piped
    )


_console_handler_id = _add_console_handler(_log_level)

# Optional file handler (always NDJSON for machine parsing)
if _log_file:

    def _file_sink(message):
        """Append one JSON record to the configured log file."""
        with open(_log_file, "a", encoding="utf-8") as f:
            f.write(_json_record(message.record) + "\n")

    logger.add(_file_sink, level="DEBUG")


def set_console_level(level: str) -> None:
    """Replace the console handler with one at ``level``.

    Used by the CLI's ``--verbose``/``--quiet`` flags. An explicit
    LOGSHIFT_LOG_LEVEL still wins over the flag.
    """
    global _console_handler_id

    if "LOGSHIFT_LOG_LEVEL" in os.environ:
        return

    if _console_handler_id is not None:
        try:
            logger.remove(_console_handler_id)
        except ValueError:
            pass  # Already removed
    _console_handler_id = _add_console_handler(level.upper())


__all__ = [
    "logger",
    "set_console_level",
]
