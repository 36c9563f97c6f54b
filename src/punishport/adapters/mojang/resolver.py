"""Resolve player names through the Mojang profile API."""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Final

import httpx
from pydantic import ValidationError

from punishport.adapters.http_resilience import ResilientClient, build_limiter
from punishport.config import MojangConfig, get_mojang_config
from punishport.domain.ports import IdentityResolutionError

from .schema import ProfilePayload

if TYPE_CHECKING:
    from collections.abc import Callable
    from uuid import UUID

    from aiolimiter import AsyncLimiter

    from punishport.config import ResilienceConfig

log = getLogger(__name__)

PROFILE_PATH: Final[str] = "/users/profiles/minecraft/{name}"
_NOT_FOUND_STATUSES: Final = frozenset({204, 400, 404})
_VALID_NAME = re.compile(r"^[A-Za-z0-9_]{1,16}$")


def _default_client_factory(
    config: ResilienceConfig, limiter: AsyncLimiter | None
) -> ResilientClient:
    return ResilientClient(config, limiter=limiter)


@dataclass(slots=True)
class MojangNameResolver:
    """Look up online-mode UUIDs; answers are memoised for the resolver's lifetime.

    Each lookup runs on its own event loop with a fresh client, but all of them
    share one rate limiter, so the configured limit holds for the whole import.
    """

    config: MojangConfig = field(default_factory=get_mojang_config)
    client_factory: Callable[[ResilienceConfig, AsyncLimiter | None], ResilientClient] = field(
        default=_default_client_factory
    )
    _memo: dict[str, UUID | None] = field(default_factory=dict, init=False, repr=False)
    _limiter: AsyncLimiter | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        self._limiter = build_limiter(self.config.resilience)

    def __call__(self, name: str) -> UUID | None:
        key = name.lower()
        if key in self._memo:
            return self._memo[key]
        if not _VALID_NAME.match(name):
            log.debug("Not looking up %r: not a valid player name", name)
            self._memo[key] = None
            return None
        uuid = asyncio.run(self._lookup(name))
        self._memo[key] = uuid
        return uuid

    async def _lookup(self, name: str) -> UUID | None:
        async with self.client_factory(self.config.resilience, self._limiter) as client:
            try:
                response = await client.get(PROFILE_PATH.format(name=name))
            except httpx.HTTPError as exc:
                raise IdentityResolutionError(f"Mojang lookup for {name!r} failed: {exc}") from exc

        if response.status_code in _NOT_FOUND_STATUSES:
            log.debug("Mojang knows no profile named %r", name)
            return None
        if response.is_error:
            raise IdentityResolutionError(
                f"Mojang lookup for {name!r} returned HTTP {response.status_code}"
            )
        try:
            profile = ProfilePayload.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise IdentityResolutionError(
                f"Unexpected Mojang payload for {name!r}: {exc}"
            ) from exc
        return profile.id
