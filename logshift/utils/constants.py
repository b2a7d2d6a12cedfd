"""Centralized constants for logshift.

Single source of truth for file discovery rules, output locations and the
import paths of the logging APIs involved in the rewrite.
"""

from pathlib import Path

# ============================================================================
# OUTPUT
# ============================================================================

STATE_DIR = Path("./.logshift")
ERROR_LOG_FILE = STATE_DIR / "error.log"

CONFIG_FILE_NAME = "logshift.json"

# ============================================================================
# FILE DISCOVERY
# ============================================================================

GO_EXTENSION = ".go"

DEFAULT_SKIP_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".idea",
    ".vscode",
    "vendor",
    "node_modules",
    "testdata",
    ".logshift",
}

FILE_ENCODINGS = ["utf-8", "utf-8-sig", "latin-1"]

# ============================================================================
# LOGGING APIS
# ============================================================================

ZAP_IMPORT = "go.uber.org/zap"
ZEROLOG_IMPORT = "github.com/rs/zerolog"
PKG_ERRORS_IMPORT = "github.com/pkg/errors"

GOFMT_TIMEOUT = 30
