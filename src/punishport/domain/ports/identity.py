"""Port for resolving player names into stable identities."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from uuid import UUID


class IdentityResolutionError(RuntimeError):
    """Raised when a resolver cannot answer, as opposed to the name being unknown."""


@runtime_checkable
class NameResolver(Protocol):
    """Resolve a player name to its UUID, returning ``None`` for unknown names."""

    def __call__(self, name: str) -> UUID | None: ...
