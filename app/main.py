import argparse
from collections.abc import Sequence

from app.config.settings import Settings
from app.contacts.dedup import Deduplicator, DedupMode, DedupResult
from app.database.connection import close_pool, ensure_schema, init_pool
from app.database.repositories.contact_repository import ContactRepository
from app.database.repositories.job_run_repository import JobRunRepository
from app.jobs.models import JobStatus, TriggerType
from app.jobs.tracker import JobRunTracker
from app.logging.logger import Log
from app.processor.processor import build_processor
from app.worker.job_runner import JobRunner


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="filing-contacts",
        description="Extract owner contacts from regulatory PDF filings",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    process = commands.add_parser("process", help="Run one extraction job over a prefix")
    process.add_argument("--prefix", default=None, help="Source prefix (defaults to SOURCE_PREFIX)")
    process.add_argument(
        "--trigger",
        choices=[t.value for t in TriggerType],
        default=TriggerType.MANUAL.value,
    )

    dedup = commands.add_parser("dedup", help="Find and optionally delete duplicate contacts")
    dedup.add_argument("--mode", choices=[m.value for m in DedupMode], default=DedupMode.NAME_COMPANY.value)
    dedup.add_argument("--apply", action="store_true", help="Delete duplicates instead of reporting")

    commands.add_parser("init-db", help="Create the job_runs and contacts tables")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point: settings -> logging -> pool -> reclaim stale runs -> command."""
    args = build_parser().parse_args(argv)
    settings = Settings()
    Log.configure(settings.log_level)
    init_pool(settings)

    try:
        if args.command == "init-db":
            ensure_schema()
            Log.info("Database schema is ready")
            return 0

        tracker = JobRunTracker(JobRunRepository(), stale_after_hours=settings.stale_job_hours)
        tracker.reclaim_stale()

        if args.command == "dedup":
            deduplicator = Deduplicator(ContactRepository(), settings.dedup_fuzzy_threshold)
            _report_dedup(deduplicator.deduplicate_stored(args.mode, dry_run=not args.apply))
            return 0

        runner = JobRunner(build_processor(settings), tracker, settings)
        run = runner.run(args.trigger, args.prefix)
        return 0 if run.status is JobStatus.COMPLETED else 1
    finally:
        close_pool()


def _report_dedup(result: DedupResult) -> None:
    for cluster in result.clusters:
        Log.info(f"Keeping contact {cluster.canonical_id} ({cluster.canonical.display_name})")
        for entry in cluster.duplicates:
            Log.info(f"  duplicate {entry.duplicate_id}: {entry.match_reason}")
    action = "would delete" if result.dry_run else f"deleted {result.deleted_count} of"
    Log.info(f"Dedup {result.mode.value}: {action} {len(result.duplicates)} duplicates")


if __name__ == "__main__":
    raise SystemExit(main())
