"""
Environment helpers for config defaults.
"""

from __future__ import annotations

import os
from dataclasses import MISSING, Field
from logging import getLogger
from typing import Any, Callable, Dict

logger = getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _coerce(raw: str, field: Field) -> Any:
    """Convert an env string to the dataclass field's declared type."""
    declared = field.type if isinstance(field.type, str) else getattr(field.type, "__name__", "")
    if declared == "bool":
        return raw.strip().lower() in _TRUE_VALUES
    if declared == "int":
        return int(raw)
    if declared == "float":
        return float(raw)
    return raw


def read_env_defaults(env_map: Dict[str, str], fields: Dict[str, Field]) -> Dict[str, Any]:
    """Collect constructor kwargs from environment variables.

    Only variables that are set appear in the result. Values that cannot
    be converted keep the dataclass default.
    """
    defaults: Dict[str, Any] = {}
    for field_name, env_var in env_map.items():
        raw = os.environ.get(env_var)
        if raw is None or field_name not in fields:
            continue
        try:
            defaults[field_name] = _coerce(raw, fields[field_name])
        except ValueError:
            fallback = fields[field_name].default
            logger.warning(
                f"Ignoring invalid {env_var}={raw!r}; using default "
                f"{fallback if fallback is not MISSING else '<none>'}"
            )
    return defaults


def env_sync(env_var: str) -> Callable[[Any, Any], None]:
    """Build an ``apply_change`` hook that mirrors a value into the env."""

    def _apply(old: Any, new: Any) -> None:
        os.environ[env_var] = "" if new is None else str(new)

    return _apply
