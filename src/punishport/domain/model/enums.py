"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class PunishmentType(StrEnum):
    BAN = "ban"
    MUTE = "mute"
    WARN = "warn"
    KICK = "kick"


class EnforcementState(StrEnum):
    ACTIVE = "active"
    EXPIRED = "expired"
    UNDONE = "undone"


class ScopeKind(StrEnum):
    GLOBAL = "global"
    SERVER = "server"
    CATEGORY = "category"


class VictimType(StrEnum):
    PLAYER = "player"
    ADDRESS = "address"
    COMPOSITE = "composite"
    # Name-only victim whose identity could not be resolved.
    UNRESOLVED = "unresolved"


class OperatorType(StrEnum):
    PLAYER = "player"
    CONSOLE = "console"
    UNKNOWN = "unknown"


class SourceFamily(StrEnum):
    """Legacy punishment plugins that can be imported."""

    ADVANCEDBAN = "advancedban"
    LITEBANS = "litebans"
    VANILLA = "vanilla"
