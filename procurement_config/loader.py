"""
Settings loader (``procurement_config.loader``).

Responsibility
--------------
Loads YAML settings files and parses them into the frozen
``procurement_config.schema.Settings`` dataclass.

Invariants enforced
-------------------
* Unknown keys are rejected, so a misspelt setting never silently falls
  back to its default.
* Every value is checked against the type of its ``Settings`` field.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown key, wrong type or out-of-range value -> ``ConfigurationError``.
"""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import Any, get_type_hints

import yaml

from procurement_config.schema import Settings
from procurement_kernel.exceptions import ConfigurationError

_FIELD_TYPES: dict[str, type] = get_type_hints(Settings)

_NON_NEGATIVE = frozenset({
    "pool_size",
    "max_overflow",
    "pool_timeout",
    "pool_recycle",
    "refund_window_days",
    "status_cache_ttl_seconds",
})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ConfigurationError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(str(path), "top level must be a mapping")
    return data


def _coerce(key: str, value: Any) -> Any:
    expected = _FIELD_TYPES[key]
    # bool is an int subclass; keep them apart
    if expected is bool:
        if not isinstance(value, bool):
            raise ConfigurationError(key, f"expected true/false, got {value!r}")
        return value
    if isinstance(value, bool):
        raise ConfigurationError(key, f"expected {expected.__name__}, got {value!r}")
    if expected is float and isinstance(value, int):
        return float(value)
    if not isinstance(value, expected):
        raise ConfigurationError(key, f"expected {expected.__name__}, got {value!r}")
    return value


def parse_settings(data: dict[str, Any]) -> Settings:
    """Validate a raw mapping and build ``Settings``."""
    unknown = sorted(set(data) - set(_FIELD_TYPES))
    if unknown:
        raise ConfigurationError(unknown[0], "unknown setting")

    values = {key: _coerce(key, value) for key, value in data.items()}

    if not values.get("database_url"):
        raise ConfigurationError("database_url", "is required")
    for key in _NON_NEGATIVE & values.keys():
        if values[key] < 0:
            raise ConfigurationError(key, "must not be negative")
    if "request_timeout_seconds" in values and values["request_timeout_seconds"] <= 0:
        raise ConfigurationError("request_timeout_seconds", "must be positive")
    if "log_level" in values:
        level = values["log_level"].upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ConfigurationError("log_level", f"unknown level {values['log_level']!r}")
        values["log_level"] = level

    return Settings(**values)


def settings_as_dict(settings: Settings) -> dict[str, Any]:
    """Flatten settings for logging, with credentials masked."""
    data = dataclasses.asdict(settings)
    url = data["database_url"]
    if "@" in url and "://" in url:
        scheme, rest = url.split("://", 1)
        data["database_url"] = f"{scheme}://***@{rest.rsplit('@', 1)[1]}"
    return data
