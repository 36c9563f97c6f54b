"""Import provenance: which source record produced which stored punishment."""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from punishport.domain.model.punishment import PortablePunishment


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(eq=False, kw_only=True)
class ImportProvenance:
    """Links ``(source, native_id)`` to the entry it was imported into."""

    id: int | None = None
    source: str
    native_id: str
    entry_id: int
    # Fingerprint of the source record as last imported; a change means the
    # legacy system edited the record since.
    fingerprint: str
    imported_at: datetime = field(default_factory=_utcnow)


def canonical_payload(punishment: PortablePunishment) -> dict[str, object]:
    details = punishment.known_details
    victim = punishment.victim_info
    operator = punishment.operator_info
    return {
        "type": details.type.value,
        "reason": details.reason,
        "scope": [details.scope.kind.value, details.scope.value],
        "start": details.start.isoformat(),
        "end": details.end.isoformat() if details.end is not None else None,
        "state": details.state.value if details.state is not None else None,
        "victim": [
            victim.type.value,
            str(victim.uuid) if victim.uuid is not None else None,
            str(victim.address) if victim.address is not None else None,
            victim.name,
        ],
        "operator": [
            operator.type.value,
            str(operator.uuid) if operator.uuid is not None else None,
            operator.name,
        ],
    }


def punishment_fingerprint(punishment: PortablePunishment) -> str:
    """Stable digest of a punishment, equal for equal punishments."""

    encoded = json.dumps(
        canonical_payload(punishment), sort_keys=True, separators=(",", ":")
    ).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()
