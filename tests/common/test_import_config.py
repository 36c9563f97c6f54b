from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from punishport.config import (
    ConfigurationError,
    ImportConfig,
    MissingConfigurationError,
    get_database_uri,
    get_import_config,
    get_legacy_source_config,
    get_mojang_config,
    optional_positive_int,
    require_env_vars,
)
from punishport.config.storage import StorageConfig

if TYPE_CHECKING:
    from pathlib import Path


def test_require_env_vars_returns_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "value")

    assert require_env_vars(["EXAMPLE_VAR"]) == {"EXAMPLE_VAR": "value"}


def test_require_env_vars_reports_blank_and_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BLANK_VAR", "  ")
    monkeypatch.delenv("MISSING_VAR", raising=False)

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_VAR", "BLANK_VAR"])

    assert "BLANK_VAR, MISSING_VAR" in str(exc.value)


@pytest.mark.parametrize("raw", ["abc", "0", "-3"])
def test_optional_positive_int_rejects_bad_values(
    monkeypatch: pytest.MonkeyPatch, raw: str
) -> None:
    monkeypatch.setenv("SOME_SIZE", raw)

    with pytest.raises(ConfigurationError):
        optional_positive_int("SOME_SIZE", 5)


def test_import_config_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PUNISHPORT_BATCH_SIZE", "25")
    monkeypatch.delenv("PUNISHPORT_MAX_PENDING_BATCHES", raising=False)

    config = get_import_config()

    assert config.batch_size == 25
    assert config.max_pending_batches == ImportConfig().max_pending_batches


def test_import_config_overrides_produce_new_snapshot() -> None:
    original = ImportConfig(batch_size=10, max_pending_batches=2)

    updated = original.with_overrides(batch_size=50)

    assert updated == ImportConfig(batch_size=50, max_pending_batches=2)
    assert original.batch_size == 10
    assert original.with_overrides() == original


def test_import_config_validates_sizes() -> None:
    with pytest.raises(ConfigurationError):
        ImportConfig(batch_size=0)
    with pytest.raises(ConfigurationError):
        ImportConfig(max_pending_batches=0)


def test_legacy_source_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PUNISHPORT_SOURCE", "sqlite:///env.db")
    monkeypatch.setenv("PUNISHPORT_LITEBANS_TABLE_PREFIX", "lb_")

    assert get_legacy_source_config().location == "sqlite:///env.db"
    assert get_legacy_source_config(location="sqlite:///arg.db").location == "sqlite:///arg.db"
    assert get_legacy_source_config().litebans_table_prefix == "lb_"


def test_legacy_source_config_requires_location(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PUNISHPORT_SOURCE", raising=False)

    with pytest.raises(MissingConfigurationError):
        get_legacy_source_config()


def test_database_uri_defaults_to_data_dir(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.delenv("DATABASE_URI", raising=False)
    monkeypatch.setenv("PUNISHPORT_DATA_DIR", str(tmp_path))

    uri = get_database_uri()

    assert uri.startswith("sqlite+pysqlite:///")
    assert uri.endswith("punishport.db")


def test_storage_config_paths(tmp_path: Path) -> None:
    config = StorageConfig(data_dir=tmp_path / "data")

    assert config.database_path().name == "punishport.db"
    assert config.http_cache_path(ensure=False).name == "http_cache.db"
    assert config.resolve_data_dir().is_dir()


def test_mojang_config_caches_only_resolved_profiles() -> None:
    config = get_mojang_config(cache_backend="memory")

    cache = config.resilience.cache
    assert cache is not None
    assert cache.backend == "memory"
    assert cache.should_cache is not None
    assert cache.should_cache({"id": "abc", "name": "Steve"})
    assert not cache.should_cache({"errorMessage": "nope"})


def test_configuration_errors_name_the_setting(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SOME_SIZE", "abc")

    with pytest.raises(ConfigurationError) as bad_value:
        optional_positive_int("SOME_SIZE", 5)
    with pytest.raises(ConfigurationError) as bad_size:
        ImportConfig(max_pending_batches=0)

    assert bad_value.value.setting == "SOME_SIZE"
    assert bad_size.value.setting == "max_pending_batches"
    assert MissingConfigurationError(["B", "A"]).names == ("A", "B")


def test_mojang_lookups_retry_only_reads() -> None:
    resilience = get_mojang_config(cache_backend="memory").resilience

    assert resilience.retry.allowed_methods == frozenset({"GET", "HEAD", "OPTIONS"})
    assert resilience.user_agent is not None
    assert resilience.user_agent.startswith("punishport/")
