"""Configuration module for topic-authz."""

from __future__ import annotations

from topic_authz.config._config import (
    DEFAULT_TIMEOUT_MS,
    EngineConfig,
    parse_bool_option,
    parse_timeout_ms,
    safe_dsn,
)

__all__ = [
    "DEFAULT_TIMEOUT_MS",
    "EngineConfig",
    "parse_bool_option",
    "parse_timeout_ms",
    "safe_dsn",
]
