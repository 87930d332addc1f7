"""
Settings schema.

Human-authored YAML is parsed by ``procurement_config.loader`` into the
frozen ``Settings`` dataclass below, the only runtime configuration
artifact.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the data store client and services."""

    database_url: str
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800
    echo: bool = False
    request_timeout_seconds: float = 10.0
    refund_window_days: int = 30
    status_cache_ttl_seconds: float = 30.0
    log_level: str = "INFO"
