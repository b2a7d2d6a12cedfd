"""Rewrite settings shared by the matcher, chain builder and import reconciler."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from logshift.utils.constants import PKG_ERRORS_IMPORT, ZAP_IMPORT, ZEROLOG_IMPORT


class ErrorPolicy(str, Enum):
    """What to do when a field argument has an unexpected shape."""

    BEST_EFFORT = "best-effort"
    STRICT = "strict"


class Scope(str, Enum):
    """Where the logger being rewritten lives."""

    SINGLETON = "singleton"
    RECEIVER = "receiver"


DEFAULT_LEVELS = ("Debug", "Info", "Warn", "Error", "Panic", "Fatal")

# zap field constructor -> zerolog event method
DEFAULT_FIELD_METHODS = {
    "String": "Str",
    "Int": "Int",
    "Int64": "Int64",
    "Uint": "Uint",
    "Uint64": "Uint64",
    "Bool": "Bool",
    "Float64": "Float64",
    "Duration": "Dur",
    "Time": "Time",
    "Any": "Interface",
    "Error": "Err",
}


@dataclass(frozen=True)
class RewriteSettings:
    levels: frozenset[str] = frozenset(DEFAULT_LEVELS)

    # Source idiom: utils.Logger.Info("msg", zap.String("k", v))
    source_accessor: str = "utils.Logger"
    source_namespace: str = "zap"
    source_import: str = ZAP_IMPORT
    receiver_field: str = "logger"

    # Target idiom: logger.Info().Str("k", v).Msg("msg")
    target_accessor: str = "logger"
    target_import: str = ZEROLOG_IMPORT
    field_methods: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_FIELD_METHODS))
    error_method: str = "Err"
    message_method: str = "Msg"

    # errors.Wrap(err, "from error") around error values
    wrap_errors: bool = True
    wrap_qualifier: str = "errors"
    wrap_function: str = "Wrap"
    wrap_import: str = PKG_ERRORS_IMPORT
    wrap_alias: str = "pkgerrors"
    wrap_message: str = "from error"

    policy: ErrorPolicy = ErrorPolicy.BEST_EFFORT
    scope: Scope = Scope.SINGLETON

    @property
    def strict(self) -> bool:
        return self.policy is ErrorPolicy.STRICT
