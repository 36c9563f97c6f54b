"""Mojang profile API configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from punishport import __version__

from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy

MOJANG_BASE_URL = "https://api.mojang.com"
MOJANG_TIMEOUT_SECONDS = 10.0
# Profiles rarely change their UUID; names can be re-registered after a while.
MOJANG_CACHE_TTL_SECONDS = 6 * 60 * 60


def _is_resolved_profile(payload: object) -> bool:
    return isinstance(payload, dict) and "id" in payload


@dataclass(frozen=True, slots=True)
class MojangConfig:
    resilience: ResilienceConfig


def get_mojang_config(*, cache_backend: str = "sqlite") -> MojangConfig:
    backend = "sqlite" if cache_backend == "sqlite" else "memory"
    return MojangConfig(
        resilience=ResilienceConfig(
            name="mojang",
            base_url=MOJANG_BASE_URL,
            timeout_seconds=MOJANG_TIMEOUT_SECONDS,
            user_agent=f"punishport/{__version__}",
            ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
            retry=RetryPolicy(total=3),
            cache=CacheConfig(
                backend=backend,
                default_ttl_seconds=MOJANG_CACHE_TTL_SECONDS,
                should_cache=_is_resolved_profile,
            ),
        )
    )
