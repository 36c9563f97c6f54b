from __future__ import annotations

from signal import SIGINT, getsignal
from typing import TYPE_CHECKING

import pytest

from punishport.config import ImportConfig
from punishport.domain.importing import (
    ImportJob,
    ImportResult,
    JobState,
    TerminalReason,
    run_import,
)
from punishport.domain.importing.result import FailedRecord
from punishport.domain.model import SourceFamily
from punishport.ui import cli as cli_module

from tests.helpers.punishments import make_record
from tests.helpers.sources import ListSource
from tests.helpers.store import InMemoryPunishmentStore, make_writer

if TYPE_CHECKING:
    from collections.abc import Callable


def _result(
    *,
    state: JobState = JobState.COMPLETED,
    reason: TerminalReason = TerminalReason.SOURCE_EXHAUSTED,
    failures: tuple[FailedRecord, ...] = (),
) -> ImportResult:
    return ImportResult(
        source_id="advancedban",
        state=state,
        reason=reason,
        accepted=1,
        replaced=0,
        rejected=0,
        failed=len(failures),
        skipped=0,
        batches_committed=1,
        unresolved_identities=(),
        failures=failures,
        resume_after="history:1",
    )


def _capture(
    monkeypatch: pytest.MonkeyPatch, result: ImportResult | None = None
) -> dict[str, object]:
    captured: dict[str, object] = {}

    def fake_import(family: SourceFamily, **kwargs: object) -> ImportResult:
        captured["family"] = family
        captured.update(kwargs)
        return result or _result()

    monkeypatch.setattr(cli_module, "import_punishments", fake_import)
    return captured


def test_cli_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = _capture(monkeypatch)

    cli_module.main(["advancedban", "sqlite:///bans.db"])

    assert captured["family"] is SourceFamily.ADVANCEDBAN
    assert captured["location"] == "sqlite:///bans.db"
    assert captured["batch_size"] is None
    assert captured["resume_after"] is None
    assert captured["offline_mode"] is False
    assert captured["table_prefix"] is None


def test_cli_with_flags(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = _capture(monkeypatch)

    cli_module.main(
        [
            "litebans",
            "mysql+pymysql://user@db/litebans",
            "--source-id",
            "network",
            "--batch-size",
            "50",
            "--resume-after",
            "bans:10",
            "--offline-mode",
            "--table-prefix",
            "lb_",
            "--database-uri",
            "sqlite:///store.db",
        ]
    )

    assert captured["family"] is SourceFamily.LITEBANS
    assert captured["source_id"] == "network"
    assert captured["batch_size"] == 50
    assert captured["resume_after"] == "bans:10"
    assert captured["offline_mode"] is True
    assert captured["table_prefix"] == "lb_"
    assert captured["database_uri"] == "sqlite:///store.db"


@pytest.mark.parametrize("argv", [["vanilla", "--batch-size", "0"], ["essentials"], []])
def test_cli_rejects_invalid_arguments(monkeypatch: pytest.MonkeyPatch, argv: list[str]) -> None:
    _capture(monkeypatch)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(argv)

    assert excinfo.value.code == 2


def test_cli_exits_nonzero_when_import_fails(monkeypatch: pytest.MonkeyPatch) -> None:
    _capture(
        monkeypatch,
        _result(state=JobState.FAILED, reason=TerminalReason.SOURCE_ERROR),
    )

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["vanilla", "/srv/minecraft"])

    assert excinfo.value.code == 1


def test_cli_reports_failed_records(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    _capture(monkeypatch, _result(failures=(FailedRecord("bans:3", "disk full"),)))

    cli_module.main(["litebans", "sqlite:///litebans.db"])

    assert "bans:3" in caplog.text
    assert "disk full" in caplog.text


def test_cli_exits_on_unexpected_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def broken_import(*_: object, **__: object) -> ImportResult:
        raise RuntimeError("no database")

    monkeypatch.setattr(cli_module, "import_punishments", broken_import)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["advancedban", "sqlite:///bans.db"])

    assert excinfo.value.code == 1


def test_interrupt_cancels_running_import(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    store = InMemoryPunishmentStore()
    interrupted: list[bool] = []

    def interrupt_once(_punishment: object) -> bool:
        if not interrupted:
            interrupted.append(True)
            handler = getsignal(SIGINT)
            assert callable(handler)
            handler(SIGINT, None)
        return False

    store.fail_when = interrupt_once  # type: ignore[assignment]
    results: list[ImportResult] = []

    def fake_import(
        family: SourceFamily, *, on_job: Callable[[ImportJob], None], **_: object
    ) -> ImportResult:
        records = [make_record(f"bans:{index}", start=index) for index in range(10)]
        job = ImportJob(
            source=ListSource(records, family=family),
            writer=make_writer(store),
            config=ImportConfig(batch_size=2),
        )
        on_job(job)
        results.append(run_import(job))
        return results[0]

    monkeypatch.setattr(cli_module, "import_punishments", fake_import)
    handler_before = getsignal(SIGINT)

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["litebans", "sqlite:///litebans.db"])

    assert excinfo.value.code == 1
    [result] = results
    assert result.reason is TerminalReason.CANCELLED
    assert result.batches_committed == 1
    assert store.count() == 2
    assert "--resume-after bans:1" in caplog.text
    assert getsignal(SIGINT) is handler_before


def test_cli_warns_that_failed_records_need_full_rerun(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    _capture(monkeypatch, _result(failures=(FailedRecord("bans:3", "disk full"),)))

    cli_module.main(["litebans", "sqlite:///litebans.db"])

    assert "rerun without --resume-after" in caplog.text
