"""Readers for the punishment data of legacy plugins."""

from __future__ import annotations

from typing import TYPE_CHECKING

from punishport.domain.model import SourceFamily

from .advancedban import AdvancedBanSource
from .common import IdentityLookup, TableSource
from .litebans import LiteBansSource
from .vanilla import VanillaSource

if TYPE_CHECKING:
    from punishport.config import LegacySourceConfig
    from punishport.domain.ports import NameResolver, PunishmentSource


def build_source(
    family: SourceFamily,
    config: LegacySourceConfig,
    *,
    resolver: NameResolver | None = None,
    source_id: str | None = None,
) -> PunishmentSource:
    """Open the source of ``family`` at the configured location."""

    match family:
        case SourceFamily.ADVANCEDBAN:
            return AdvancedBanSource(config.location, resolver=resolver, source_id=source_id)
        case SourceFamily.LITEBANS:
            return LiteBansSource(
                config.location,
                resolver=resolver,
                source_id=source_id,
                table_prefix=config.litebans_table_prefix,
            )
        case SourceFamily.VANILLA:
            return VanillaSource(config.location, resolver=resolver, source_id=source_id)


__all__ = [
    "AdvancedBanSource",
    "IdentityLookup",
    "LiteBansSource",
    "TableSource",
    "VanillaSource",
    "build_source",
]
