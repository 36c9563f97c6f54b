from __future__ import annotations

from ipaddress import IPv4Address
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import insert

from punishport.adapters.legacy import LiteBansSource
from punishport.adapters.legacy.litebans import scope_of
from punishport.domain.model import (
    CONSOLE,
    GLOBAL_SCOPE,
    EnforcementState,
    OperatorInfo,
    PunishmentType,
    Scope,
    VictimInfo,
)
from punishport.domain.ports import SkippedRecord, SourceRecord

from tests.helpers.punishments import MODERATOR, STEVE

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from sqlalchemy.engine import Engine

    from tests.helpers.resolvers import FakeResolver

TIME = 1_700_000_000_000


def _row(row_id: int, **overrides: object) -> dict[str, object]:
    row: dict[str, object] = {
        "id": row_id,
        "uuid": str(STEVE),
        "ip": "10.0.0.5",
        "reason": "hacking",
        "banned_by_uuid": "CONSOLE",
        "banned_by_name": "Console",
        "time": TIME,
        "until": -1,
        "server_scope": "*",
        "ipban": False,
        "active": True,
    }
    row.update(overrides)
    return row


def _source(
    engine: Engine,
    resolver: FakeResolver,
    rows: Mapping[str, Sequence[dict[str, object]]],
    *,
    table_prefix: str = "litebans_",
) -> LiteBansSource:
    source = LiteBansSource(engine, resolver=resolver, table_prefix=table_prefix)
    source.metadata.create_all(engine)
    tables = dict(source.tables())
    with engine.begin() as connection:
        for key, table_rows in rows.items():
            if key != "kicks":
                table_rows = [{"removed_by_name": None, **row} for row in table_rows]
            connection.execute(insert(tables[key]), list(table_rows))
    return source


def _records(source: LiteBansSource, **kwargs: str) -> list[SourceRecord]:
    items = list(source.records(**kwargs))
    assert all(isinstance(item, SourceRecord) for item in items)
    return items  # type: ignore[return-value]


def test_reads_tables_in_order(legacy_db: Engine, resolver: FakeResolver) -> None:
    source = _source(
        legacy_db,
        resolver,
        {
            "bans": [_row(1), _row(2)],
            "mutes": [_row(1)],
            "warnings": [_row(1)],
            "kicks": [_row(1)],
        },
    )

    records = _records(source)

    assert [record.native_id for record in records] == [
        "bans:1",
        "bans:2",
        "mutes:1",
        "warnings:1",
        "kicks:1",
    ]
    assert [record.punishment.type for record in records] == [
        PunishmentType.BAN,
        PunishmentType.BAN,
        PunishmentType.MUTE,
        PunishmentType.WARN,
        PunishmentType.KICK,
    ]
    assert records[-1].punishment.known_details.state is None


@pytest.mark.parametrize(
    ("overrides", "expected"),
    [
        ({"active": True}, EnforcementState.ACTIVE),
        ({"active": False, "removed_by_name": "Mod"}, EnforcementState.UNDONE),
        ({"active": False}, EnforcementState.EXPIRED),
    ],
)
def test_enforcement_state(
    legacy_db: Engine,
    resolver: FakeResolver,
    overrides: dict[str, object],
    expected: EnforcementState,
) -> None:
    source = _source(legacy_db, resolver, {"bans": [_row(1, **overrides)]})

    [record] = _records(source)

    assert record.punishment.known_details.state is expected


@pytest.mark.parametrize(
    ("overrides", "expected"),
    [
        ({}, VictimInfo.player(STEVE)),
        ({"ipban": True}, VictimInfo.composite(STEVE, IPv4Address("10.0.0.5"))),
        ({"uuid": "#offline#"}, VictimInfo.of_address(IPv4Address("10.0.0.5"))),
    ],
)
def test_victim_shapes(
    legacy_db: Engine,
    resolver: FakeResolver,
    overrides: dict[str, object],
    expected: VictimInfo,
) -> None:
    source = _source(legacy_db, resolver, {"bans": [_row(1, **overrides)]})

    [record] = _records(source)

    assert record.punishment.victim_info == expected


@pytest.mark.parametrize(
    ("overrides", "expected"),
    [
        ({}, CONSOLE),
        (
            {"banned_by_uuid": str(MODERATOR), "banned_by_name": "Mod"},
            OperatorInfo.player(MODERATOR),
        ),
        ({"banned_by_uuid": None, "banned_by_name": "Mod"}, OperatorInfo.player(MODERATOR)),
        (
            {"banned_by_uuid": None, "banned_by_name": "Herobrine"},
            OperatorInfo.unknown("Herobrine"),
        ),
        ({"banned_by_uuid": None, "banned_by_name": None}, CONSOLE),
    ],
)
def test_operator_shapes(
    legacy_db: Engine,
    resolver: FakeResolver,
    overrides: dict[str, object],
    expected: OperatorInfo,
) -> None:
    source = _source(legacy_db, resolver, {"bans": [_row(1, **overrides)]})

    [record] = _records(source)

    assert record.punishment.operator_info == expected


def test_temporary_scoped_ban(legacy_db: Engine, resolver: FakeResolver) -> None:
    source = _source(
        legacy_db, resolver, {"bans": [_row(1, until=TIME + 3_600_000, server_scope="lobby")]}
    )

    [record] = _records(source)

    details = record.punishment.known_details
    assert details.scope == Scope.server("lobby")
    assert details.end is not None
    assert (details.end - details.start).total_seconds() == 3600


def test_scope_of_maps_wildcards_to_global() -> None:
    assert scope_of(None) == GLOBAL_SCOPE
    assert scope_of("*") == GLOBAL_SCOPE
    assert scope_of("Global") == GLOBAL_SCOPE
    assert scope_of(" survival ") == Scope.server("survival")


def test_row_without_victim_is_skipped(legacy_db: Engine, resolver: FakeResolver) -> None:
    source = _source(
        legacy_db, resolver, {"bans": [_row(1, uuid="#offline#", ip="#"), _row(2)]}
    )

    first, second = source.records()

    assert isinstance(first, SkippedRecord)
    assert first.native_id == "bans:1"
    assert isinstance(second, SourceRecord)


def test_custom_table_prefix(legacy_db: Engine, resolver: FakeResolver) -> None:
    source = _source(legacy_db, resolver, {"bans": [_row(1)]}, table_prefix="lb_")

    assert dict(source.tables())["bans"].name == "lb_bans"
    assert len(_records(source)) == 1


def test_resume_after_moves_to_next_table(legacy_db: Engine, resolver: FakeResolver) -> None:
    source = _source(
        legacy_db, resolver, {"bans": [_row(1), _row(2)], "mutes": [_row(1), _row(2)]}
    )

    records = _records(source, resume_after="bans:2")

    assert [record.native_id for record in records] == ["mutes:1", "mutes:2"]
