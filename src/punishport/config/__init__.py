"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_positive_int, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .importing import ImportConfig, get_import_config
from .logging import configure_logging
from .mojang import MojangConfig, get_mojang_config
from .sources import LegacySourceConfig, get_legacy_source_config
from .storage import (
    DatabaseConfig,
    StorageConfig,
    get_database_config,
    get_database_uri,
    get_http_cache_path,
    get_storage_config,
)

__all__ = [
    "CacheConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "ImportConfig",
    "LegacySourceConfig",
    "MissingConfigurationError",
    "MojangConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "configure_logging",
    "get_database_config",
    "get_database_uri",
    "get_http_cache_path",
    "get_import_config",
    "get_legacy_source_config",
    "get_mojang_config",
    "get_storage_config",
    "optional_positive_int",
    "require_env_vars",
]
