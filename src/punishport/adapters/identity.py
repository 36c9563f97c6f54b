"""Name resolution for servers running in offline mode."""

from __future__ import annotations

import hashlib
from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from punishport.domain.ports import NameResolver


def offline_player_uuid(name: str) -> UUID:
    """UUID an offline-mode server assigns to ``name``.

    An MD5 name-based (version 3) UUID of ``"OfflinePlayer:" + name`` without a
    namespace, which is what the server derives for unauthenticated players.
    """

    digest = bytearray(hashlib.md5(f"OfflinePlayer:{name}".encode()).digest())  # noqa: S324
    digest[6] = (digest[6] & 0x0F) | 0x30
    digest[8] = (digest[8] & 0x3F) | 0x80
    return UUID(bytes=bytes(digest))


class OfflineNameResolver:
    """Resolve every name to its offline-mode UUID; never fails."""

    def __call__(self, name: str) -> UUID | None:
        return offline_player_uuid(name)


if TYPE_CHECKING:
    _resolver_check: NameResolver = OfflineNameResolver()
