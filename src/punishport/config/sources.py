"""Legacy source connection settings."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .env import require_env_vars

DEFAULT_LITEBANS_TABLE_PREFIX = "litebans_"


@dataclass(frozen=True, slots=True)
class LegacySourceConfig:
    """Where a legacy plugin keeps its data: a database URI or a server directory."""

    location: str
    litebans_table_prefix: str = DEFAULT_LITEBANS_TABLE_PREFIX


def get_legacy_source_config(*, location: str | None = None) -> LegacySourceConfig:
    resolved = location or require_env_vars(("PUNISHPORT_SOURCE",))["PUNISHPORT_SOURCE"]
    prefix = os.getenv("PUNISHPORT_LITEBANS_TABLE_PREFIX", DEFAULT_LITEBANS_TABLE_PREFIX)
    return LegacySourceConfig(location=resolved, litebans_table_prefix=prefix)
