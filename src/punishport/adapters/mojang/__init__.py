"""Mojang profile API adapter."""

from __future__ import annotations

from .resolver import MojangNameResolver
from .schema import ProfilePayload

__all__ = ["MojangNameResolver", "ProfilePayload"]
