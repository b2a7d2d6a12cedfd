"""Crash reporting for logshift commands.

Per-file problems never reach this layer: the driver turns them into failed
reports. What does reach it is a bug or an unusable configuration, and the
user gets a one-line error plus a crash log under ``.logshift/``.
"""

import traceback
from collections.abc import Callable
from datetime import datetime
from functools import wraps
from typing import Any

import click

from logshift.utils.logging import logger

from .constants import ERROR_LOG_FILE, STATE_DIR


def _append_crash_log(command: str, error: Exception) -> str | None:
    """Append the active traceback to the crash log; return its path on success."""
    try:
        STATE_DIR.mkdir(parents=True, exist_ok=True)
        with open(ERROR_LOG_FILE, "a", encoding="utf-8") as f:
            f.write(f"--- {datetime.now().isoformat()} logshift {command} ---\n")
            f.write(f"{type(error).__name__}: {error}\n")
            f.write(traceback.format_exc())
            f.write("\n")
    except OSError as log_error:
        logger.warning("Could not write crash log {path}: {err}", path=ERROR_LOG_FILE, err=log_error)
        return None
    return str(ERROR_LOG_FILE)


def handle_exceptions(func: Callable[..., Any]) -> Callable[..., Any]:
    """Run a click command, reporting unexpected failures as a ClickException."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        command = func.__name__
        try:
            return func(*args, **kwargs)
        except (click.ClickException, click.exceptions.Exit):
            raise
        except Exception as e:
            logger.opt(exception=True).error("logshift {cmd} crashed: {err}", cmd=command, err=e)
            crash_log = _append_crash_log(command, e)
            hint = f" (details in {crash_log})" if crash_log else ""
            raise click.ClickException(f"{type(e).__name__}: {e}{hint}") from e

    return wrapper
