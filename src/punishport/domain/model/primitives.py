"""Domain primitives: scalar aliases + small value objects."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from punishport.domain.model.enums import ScopeKind

type NetworkAddress = ipaddress.IPv4Address | ipaddress.IPv6Address
type NativeId = str
type EntryId = int


def parse_address(value: str) -> NetworkAddress:
    """Parse an IP address, unwrapping IPv4-mapped IPv6 forms.

    Raises ``ValueError`` for anything that is not an address.
    """

    address = ipaddress.ip_address(value.strip().strip("/"))
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped is not None:
        return address.ipv4_mapped
    return address


def ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def from_epoch_millis(value: int) -> datetime:
    seconds, millis = divmod(value, 1000)
    return datetime.fromtimestamp(seconds, tz=UTC) + timedelta(milliseconds=millis)


@dataclass(frozen=True, slots=True)
class Scope:
    """Where a punishment applies: everywhere, one server, or a category of servers."""

    kind: ScopeKind = ScopeKind.GLOBAL
    value: str | None = None

    def __post_init__(self) -> None:
        if self.kind is ScopeKind.GLOBAL and self.value is not None:
            raise ValueError("Global scope cannot carry a value")
        if self.kind is not ScopeKind.GLOBAL and not self.value:
            raise ValueError(f"{self.kind} scope requires a name")

    @classmethod
    def server(cls, name: str) -> Scope:
        return cls(kind=ScopeKind.SERVER, value=name)

    @classmethod
    def category(cls, name: str) -> Scope:
        return cls(kind=ScopeKind.CATEGORY, value=name)

    @property
    def is_global(self) -> bool:
        return self.kind is ScopeKind.GLOBAL


GLOBAL_SCOPE = Scope()
