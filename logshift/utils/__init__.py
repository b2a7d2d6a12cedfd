"""logshift utilities package."""

from .constants import (
    CONFIG_FILE_NAME,
    DEFAULT_SKIP_DIRS,
    ERROR_LOG_FILE,
    FILE_ENCODINGS,
    GO_EXTENSION,
    STATE_DIR,
)
from .error_handler import handle_exceptions
from .exit_codes import ExitCodes

__all__ = [
    "CONFIG_FILE_NAME",
    "DEFAULT_SKIP_DIRS",
    "ERROR_LOG_FILE",
    "FILE_ENCODINGS",
    "GO_EXTENSION",
    "STATE_DIR",
    "ExitCodes",
    "handle_exceptions",
]
