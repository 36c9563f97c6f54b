from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, getsignal, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from punishport.app import import_punishments
from punishport.config import configure_logging
from punishport.domain.model import SourceFamily

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from punishport.domain.importing import ImportJob

log = logging.getLogger(__name__)

_LOCATION_HELP = {
    SourceFamily.ADVANCEDBAN: "SQLAlchemy URI of the AdvancedBan database",
    SourceFamily.LITEBANS: "SQLAlchemy URI of the LiteBans database",
    SourceFamily.VANILLA: "Server directory holding banned-players.json and banned-ips.json",
}


def _positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Not an integer: {value}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError(f"Must be positive: {value}")
    return parsed


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import punishments from legacy plugins")
    subparsers = parser.add_subparsers(dest="command", required=True)

    for family in SourceFamily:
        command = subparsers.add_parser(family.value, help=f"Import from {family.value}")
        command.add_argument(
            "location",
            nargs="?",
            default=None,
            help=f"{_LOCATION_HELP[family]} (defaults to PUNISHPORT_SOURCE)",
        )
        command.add_argument(
            "--source-id",
            type=str,
            help="Provenance namespace for this source (defaults to the plugin name)",
        )
        command.add_argument(
            "--batch-size",
            type=_positive_int,
            default=None,
            help="Records per transaction (defaults to config)",
        )
        command.add_argument(
            "--resume-after",
            type=str,
            help="Native id reported by an interrupted run; import only what follows it",
        )
        command.add_argument(
            "--offline-mode",
            action="store_true",
            help="Derive player UUIDs from names as an offline-mode server does",
        )
        command.add_argument(
            "--database-uri",
            type=str,
            help="Destination database URI (defaults to DATABASE_URI or the data directory)",
        )
        if family is SourceFamily.LITEBANS:
            command.add_argument(
                "--table-prefix",
                type=str,
                default=None,
                help="LiteBans table prefix (defaults to litebans_)",
            )

    return parser.parse_args(list(argv))


def _cancel_on_interrupt(job: ImportJob) -> None:
    """Route Ctrl+C to ``job.cancel()``; a second Ctrl+C aborts immediately."""

    def handler(_signal_received: int, _frame: FrameType | None) -> None:
        if job.cancel_requested:
            raise KeyboardInterrupt
        log.warning("Interrupted; stopping %s after the current batch", job.source_id)
        job.cancel()

    signal(SIGINT, handler)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        family = SourceFamily(parsed_args.command)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    previous_handler = getsignal(SIGINT)
    try:
        result = import_punishments(
            family,
            location=parsed_args.location,
            offline_mode=parsed_args.offline_mode,
            source_id=parsed_args.source_id,
            table_prefix=getattr(parsed_args, "table_prefix", None),
            batch_size=parsed_args.batch_size,
            resume_after=parsed_args.resume_after,
            database_uri=parsed_args.database_uri,
            on_job=_cancel_on_interrupt,
        )
    except Exception:
        log.exception("Fatal error during import")
        sys.exit(1)
    finally:
        if previous_handler is not None:
            signal(SIGINT, previous_handler)

    for failure in result.failures:
        log.error("Not imported: %s (%s)", failure.native_id, failure.error)
    for native_id in result.unresolved_identities:
        log.warning("Needs review, unresolved identity: %s", native_id)
    if result.failed:
        # The resume marker moves past failed batches.
        log.warning(
            "%s records of %s were not imported; rerun without --resume-after to retry them",
            result.failed,
            result.source_id,
        )
    if not result.succeeded:
        log.error(
            "Import from %s ended %s (%s); rerun with --resume-after %s to continue",
            result.source_id,
            result.state,
            result.reason,
            result.resume_after,
        )
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
