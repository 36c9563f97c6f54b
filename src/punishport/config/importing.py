"""Import job defaults.

A job receives one immutable ``ImportConfig`` snapshot for its whole run.
Reloading settings produces a new snapshot; in-flight jobs keep their own.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from .env import optional_positive_int
from .errors import ConfigurationError

DEFAULT_BATCH_SIZE = 200
DEFAULT_MAX_PENDING_BATCHES = 4


@dataclass(frozen=True, slots=True)
class ImportConfig:
    batch_size: int = DEFAULT_BATCH_SIZE
    max_pending_batches: int = DEFAULT_MAX_PENDING_BATCHES

    def __post_init__(self) -> None:
        if self.batch_size <= 0:
            raise ConfigurationError(
                f"batch_size must be positive, got {self.batch_size}", setting="batch_size"
            )
        if self.max_pending_batches <= 0:
            raise ConfigurationError(
                f"max_pending_batches must be positive, got {self.max_pending_batches}",
                setting="max_pending_batches",
            )

    def with_overrides(
        self,
        *,
        batch_size: int | None = None,
        max_pending_batches: int | None = None,
    ) -> ImportConfig:
        """Return a new snapshot, keeping current values where no override is given."""

        return replace(
            self,
            batch_size=batch_size if batch_size is not None else self.batch_size,
            max_pending_batches=(
                max_pending_batches
                if max_pending_batches is not None
                else self.max_pending_batches
            ),
        )


def get_import_config() -> ImportConfig:
    return ImportConfig(
        batch_size=optional_positive_int("PUNISHPORT_BATCH_SIZE", DEFAULT_BATCH_SIZE),
        max_pending_batches=optional_positive_int(
            "PUNISHPORT_MAX_PENDING_BATCHES", DEFAULT_MAX_PENDING_BATCHES
        ),
    )
