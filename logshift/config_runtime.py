"""Runtime configuration for logshift - centralized configuration management."""

import copy
import json
import os
from pathlib import Path
from typing import Any

from logshift.errors import ConfigError
from logshift.settings import (
    DEFAULT_FIELD_METHODS,
    DEFAULT_LEVELS,
    ErrorPolicy,
    RewriteSettings,
    Scope,
)
from logshift.utils.constants import (
    CONFIG_FILE_NAME,
    GOFMT_TIMEOUT,
    PKG_ERRORS_IMPORT,
    ZAP_IMPORT,
    ZEROLOG_IMPORT,
)
from logshift.utils.logging import logger

DEFAULTS = {
    "source": {
        "accessor": "utils.Logger",
        "namespace": "zap",
        "import": ZAP_IMPORT,
        "receiver_field": "logger",
        "levels": list(DEFAULT_LEVELS),
    },
    "target": {
        "accessor": "logger",
        "import": ZEROLOG_IMPORT,
        "error_method": "Err",
        "message_method": "Msg",
        "fields": dict(DEFAULT_FIELD_METHODS),
    },
    "rewrite": {
        "policy": ErrorPolicy.BEST_EFFORT.value,
        "scope": Scope.SINGLETON.value,
        "wrap_errors": True,
        "wrap_qualifier": "errors",
        "wrap_function": "Wrap",
        "wrap_import": PKG_ERRORS_IMPORT,
        "wrap_alias": "pkgerrors",
        "wrap_message": "from error",
    },
    "driver": {
        "skip_dirs": [],
        "exclude": [],
        "gofmt": False,
        "gofmt_timeout": GOFMT_TIMEOUT,
    },
}


def _coerce_env(value: str, default: Any) -> Any:
    if isinstance(default, bool):
        lowered = value.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off", ""):
            return False
        raise ValueError(f"not a boolean: {value!r}")
    if isinstance(default, int):
        return int(value)
    if isinstance(default, list):
        return [v.strip() for v in value.split(",") if v.strip()]
    if isinstance(default, dict):
        parsed = json.loads(value)
        if not isinstance(parsed, dict):
            raise ValueError("expected a JSON object")
        return parsed
    return value


def load_runtime_config(root: str = ".", config_path: str | None = None) -> dict[str, Any]:
    """
    Load runtime configuration from logshift.json and environment variables.

    Config priority (highest to lowest):
    1. Environment variables (LOGSHIFT_<SECTION>_<KEY>)
    2. The config file (``config_path``, else ``<root>/logshift.json``)
    3. Built-in defaults

    The ``target.fields`` table is merged into the default table rather than
    replacing it, so a config file only needs to list new field kinds.

    Args:
        root: Root directory to look for config file
        config_path: Explicit config file; a missing explicit file is an error

    Returns:
        Configuration dictionary with merged values
    """
    cfg = copy.deepcopy(DEFAULTS)

    path = Path(config_path) if config_path else Path(root) / CONFIG_FILE_NAME
    if config_path and not path.exists():
        raise ConfigError(f"config file not found: {path}")

    try:
        if path.exists():
            with open(path, encoding="utf-8") as f:
                user = json.load(f)

            if isinstance(user, dict):
                for section in DEFAULTS:
                    if section in user and isinstance(user[section], dict):
                        _merge_section(cfg, section, user[section], source=str(path))
            else:
                logger.warning("Ignoring {path}: top level must be an object", path=path)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Could not load config file from {path}: {err}", path=path, err=e)
        logger.info("Continuing with default configuration")

    for section in cfg:
        for key in cfg[section]:
            env_var = f"LOGSHIFT_{section.upper()}_{key.upper()}"
            if env_var not in os.environ:
                continue
            value = os.environ[env_var]
            try:
                coerced = _coerce_env(value, DEFAULTS[section][key])
            except (ValueError, json.JSONDecodeError) as e:
                logger.warning(
                    "Invalid value for environment variable {var}: '{value}' - {err}",
                    var=env_var,
                    value=value,
                    err=e,
                )
                logger.info("Using value: {current}", current=cfg[section][key])
                continue
            if isinstance(coerced, dict):
                cfg[section][key].update(coerced)
            else:
                cfg[section][key] = coerced

    return cfg


def _merge_section(cfg: dict[str, Any], section: str, values: dict[str, Any], source: str) -> None:
    for key, value in values.items():
        if key not in cfg[section]:
            logger.warning("{source}: unknown key {section}.{key}", source=source, section=section, key=key)
            continue
        default = cfg[section][key]
        if isinstance(default, bool) != isinstance(value, bool) or not isinstance(value, type(default)):
            logger.warning(
                "{source}: {section}.{key} should be {kind}, ignoring",
                source=source,
                section=section,
                key=key,
                kind=type(default).__name__,
            )
            continue
        if isinstance(default, dict):
            default.update(value)
        else:
            cfg[section][key] = value


def settings_from_config(
    config: dict[str, Any],
    policy: str | None = None,
    scope: str | None = None,
) -> RewriteSettings:
    """Build engine settings from a loaded config; arguments override it."""
    source = config["source"]
    target = config["target"]
    rewrite = config["rewrite"]

    try:
        policy_value = ErrorPolicy(policy or rewrite["policy"])
        scope_value = Scope(scope or rewrite["scope"])
    except ValueError as e:
        raise ConfigError(str(e)) from e

    fields = {str(k): str(v) for k, v in target["fields"].items()}
    return RewriteSettings(
        levels=frozenset(source["levels"]),
        source_accessor=source["accessor"],
        source_namespace=source["namespace"],
        source_import=source["import"],
        receiver_field=source["receiver_field"],
        target_accessor=target["accessor"],
        target_import=target["import"],
        field_methods=fields,
        error_method=target["error_method"],
        message_method=target["message_method"],
        wrap_errors=rewrite["wrap_errors"],
        wrap_qualifier=rewrite["wrap_qualifier"],
        wrap_function=rewrite["wrap_function"],
        wrap_import=rewrite["wrap_import"],
        wrap_alias=rewrite["wrap_alias"],
        wrap_message=rewrite["wrap_message"],
        policy=policy_value,
        scope=scope_value,
    )
