from __future__ import annotations

import logging
from datetime import UTC, datetime
from ipaddress import IPv4Address
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import insert

from punishport.adapters.legacy import AdvancedBanSource
from punishport.domain.importing import SourceReadError
from punishport.domain.model import (
    CONSOLE,
    EnforcementState,
    OperatorInfo,
    PunishmentType,
    VictimInfo,
)
from punishport.domain.ports import SkippedRecord, SourceRecord

from tests.helpers.punishments import MODERATOR, STEVE

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.engine import Engine

    from tests.helpers.resolvers import FakeResolver

START = 1_700_000_000_000


def _row(row_id: int, **overrides: object) -> dict[str, object]:
    row: dict[str, object] = {
        "id": row_id,
        "name": "Steve",
        "uuid": STEVE.hex,
        "reason": "spam",
        "operator": "CONSOLE",
        "punishmentType": "BAN",
        "start": START,
        "end": -1,
        "calculation": None,
    }
    row.update(overrides)
    return row


def _source(
    engine: Engine,
    resolver: FakeResolver,
    *,
    history: Sequence[dict[str, object]] = (),
    active: Sequence[dict[str, object]] = (),
) -> AdvancedBanSource:
    source = AdvancedBanSource(engine, resolver=resolver)
    source.metadata.create_all(engine)
    history_table = dict(source.tables())["history"]
    active_table = dict(source.tables())["active"]
    with engine.begin() as connection:
        if history:
            connection.execute(insert(history_table), list(history))
        if active:
            connection.execute(insert(active_table), list(active))
    return source


def test_reads_history_before_active(legacy_db: Engine, resolver: FakeResolver) -> None:
    source = _source(legacy_db, resolver, history=[_row(1), _row(2)], active=[_row(1)])

    items = list(source.records())

    assert [item.native_id for item in items] == ["history:1", "history:2", "active:1"]
    assert all(isinstance(item, SourceRecord) for item in items)


def test_translates_permanent_console_ban(legacy_db: Engine, resolver: FakeResolver) -> None:
    source = _source(legacy_db, resolver, active=[_row(1)])

    [record] = source.records()

    assert isinstance(record, SourceRecord)
    punishment = record.punishment
    assert punishment.type is PunishmentType.BAN
    assert punishment.start == datetime.fromtimestamp(START / 1000, tz=UTC)
    assert punishment.known_details.end is None
    assert punishment.known_details.state is EnforcementState.ACTIVE
    assert punishment.victim_info == VictimInfo.player(STEVE)
    assert punishment.operator_info == CONSOLE


def test_history_rows_carry_no_state(legacy_db: Engine, resolver: FakeResolver) -> None:
    source = _source(
        legacy_db,
        resolver,
        history=[_row(1, punishmentType="TEMP_MUTE", end=START + 60_000, operator="Mod")],
    )

    [record] = source.records()

    assert isinstance(record, SourceRecord)
    details = record.punishment.known_details
    assert details.type is PunishmentType.MUTE
    assert details.state is None
    assert details.end == datetime.fromtimestamp((START + 60_000) / 1000, tz=UTC)
    assert record.punishment.operator_info == OperatorInfo.player(MODERATOR)


def test_ip_ban_targets_address(legacy_db: Engine, resolver: FakeResolver) -> None:
    source = _source(
        legacy_db, resolver, history=[_row(1, punishmentType="IP_BAN", uuid="10.1.2.3")]
    )

    [record] = source.records()

    assert isinstance(record, SourceRecord)
    assert record.punishment.victim_info == VictimInfo.of_address(IPv4Address("10.1.2.3"))


def test_offline_name_is_resolved(legacy_db: Engine, resolver: FakeResolver) -> None:
    source = _source(legacy_db, resolver, history=[_row(1, uuid="steve")])

    [record] = source.records()

    assert isinstance(record, SourceRecord)
    assert record.punishment.victim_info == VictimInfo.player(STEVE)
    assert resolver.calls == ["Steve"]


def test_unresolvable_victim_becomes_placeholder(
    legacy_db: Engine,
    resolver: FakeResolver,
    caplog: pytest.LogCaptureFixture,
) -> None:
    source = _source(legacy_db, resolver, history=[_row(1, name="Flaky", uuid="flaky")])

    with caplog.at_level(logging.WARNING):
        [record] = source.records()

    assert isinstance(record, SourceRecord)
    assert record.punishment.victim_info == VictimInfo.unresolved("Flaky")
    assert record.punishment.has_unresolved_identity
    warnings = [entry for entry in caplog.records if entry.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert "history:1" in warnings[0].getMessage()


def test_unknown_operator_keeps_name(legacy_db: Engine, resolver: FakeResolver) -> None:
    source = _source(legacy_db, resolver, history=[_row(1, operator="Herobrine")])

    [record] = source.records()

    assert isinstance(record, SourceRecord)
    assert record.punishment.operator_info == OperatorInfo.unknown("Herobrine")


def test_notes_and_broken_rows_are_skipped(legacy_db: Engine, resolver: FakeResolver) -> None:
    source = _source(
        legacy_db,
        resolver,
        history=[
            _row(1, punishmentType="NOTE"),
            _row(2, punishmentType="SHADOW_BAN"),
            _row(3, punishmentType="IP_BAN", uuid="not-an-ip"),
            _row(4, uuid=""),
            _row(5),
        ],
    )

    items = list(source.records())

    assert [type(item) for item in items] == [SkippedRecord] * 4 + [SourceRecord]
    assert isinstance(items[0], SkippedRecord)
    assert items[0].reason == "not a punishment"
    assert "SHADOW_BAN" in items[1].reason  # type: ignore[union-attr]


def test_resume_after_skips_earlier_rows(legacy_db: Engine, resolver: FakeResolver) -> None:
    source = _source(
        legacy_db, resolver, history=[_row(1), _row(2), _row(3)], active=[_row(1)]
    )

    items = list(source.records(resume_after="history:2"))

    assert [item.native_id for item in items] == ["history:3", "active:1"]
    assert [item.native_id for item in source.records(resume_after="active:1")] == []


def test_resume_after_unknown_table_is_rejected(legacy_db: Engine, resolver: FakeResolver) -> None:
    source = _source(legacy_db, resolver)

    with pytest.raises(ValueError, match="unknown table"):
        list(source.records(resume_after="bans:1"))


def test_missing_tables_raise_source_error(legacy_db: Engine, resolver: FakeResolver) -> None:
    source = AdvancedBanSource(legacy_db, resolver=resolver)

    with pytest.raises(SourceReadError):
        list(source.records())
