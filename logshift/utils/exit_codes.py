"""Centralized exit codes for the logshift CLI."""


class ExitCodes:
    """Standard exit codes for logshift commands."""

    # Every file parsed, rewritten (or left unchanged) and written
    SUCCESS = 0

    # At least one file failed to read, parse, rewrite or write
    FILES_FAILED = 1

    # No Go source files under the given paths
    NOTHING_TO_DO = 3
