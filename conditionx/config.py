"""
ConditionX Configuration Module

Centralized configuration from environment variables.
Engine limits and result cache sizing live here.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional
from enum import Enum


class AuditBackend(str, Enum):
    """Supported audit log backends."""
    MEMORY = "memory"
    NONE = "none"


@dataclass
class EngineLimits:
    """Configurable evaluation limits."""
    max_conditions: int = 100
    max_condition_depth: int = 32
    max_filters_per_group: int = 50
    default_timeout_ms: int = 30000


@dataclass
class CacheConfig:
    """Result cache configuration."""
    max_entries: int = 1024


@dataclass
class ConditionXConfig:
    """Main configuration container."""
    limits: EngineLimits
    cache: CacheConfig
    audit_backend: AuditBackend = AuditBackend.MEMORY
    fuzzy_threshold: float = 0.8
    debug: bool = False
    log_level: str = "INFO"


def load_config() -> ConditionXConfig:
    """
    Load configuration from environment variables.

    Environment Variables:
        CONDITIONX_MAX_CONDITIONS: Max conditions per conditional action (default: 100)
        CONDITIONX_MAX_CONDITION_DEPTH: Max nesting depth of a condition tree (default: 32)
        CONDITIONX_MAX_FILTERS_PER_GROUP: Max filters in one filter group (default: 50)
        CONDITIONX_DEFAULT_TIMEOUT_MS: Deadline used by the step handler (default: 30000)
        CONDITIONX_CACHE_MAX_ENTRIES: Result cache capacity (default: 1024)
        CONDITIONX_AUDIT_BACKEND: Audit log backend (memory|none)
        CONDITIONX_FUZZY_THRESHOLD: Default similarity threshold (default: 0.8)
        CONDITIONX_DEBUG: Enable debug mode (default: false)
        CONDITIONX_LOG_LEVEL: Log level (default: INFO)
    """
    limits = EngineLimits(
        max_conditions=int(os.getenv("CONDITIONX_MAX_CONDITIONS", "100")),
        max_condition_depth=int(os.getenv("CONDITIONX_MAX_CONDITION_DEPTH", "32")),
        max_filters_per_group=int(os.getenv("CONDITIONX_MAX_FILTERS_PER_GROUP", "50")),
        default_timeout_ms=int(os.getenv("CONDITIONX_DEFAULT_TIMEOUT_MS", "30000")),
    )

    cache = CacheConfig(
        max_entries=int(os.getenv("CONDITIONX_CACHE_MAX_ENTRIES", "1024")),
    )

    backend_str = os.getenv("CONDITIONX_AUDIT_BACKEND", "memory").lower()
    try:
        audit_backend = AuditBackend(backend_str)
    except ValueError:
        audit_backend = AuditBackend.MEMORY

    return ConditionXConfig(
        limits=limits,
        cache=cache,
        audit_backend=audit_backend,
        fuzzy_threshold=float(os.getenv("CONDITIONX_FUZZY_THRESHOLD", "0.8")),
        debug=os.getenv("CONDITIONX_DEBUG", "false").lower() in ("true", "1", "yes"),
        log_level=os.getenv("CONDITIONX_LOG_LEVEL", "INFO").upper(),
    )


# Singleton config instance
_config: Optional[ConditionXConfig] = None


def get_config() -> ConditionXConfig:
    """Get the global configuration (lazy-loaded singleton)."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Reset configuration (useful for testing)."""
    global _config
    _config = None


def configure_logging(config: Optional[ConditionXConfig] = None) -> None:
    """Configure root logging for hosts that embed the engine as a process."""
    config = config or get_config()
    level = logging.DEBUG if config.debug else getattr(logging, config.log_level, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
