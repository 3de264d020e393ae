"""CLI command for removing pending mint jobs that never received their items.

Job and item rows are written in one transaction, so new orphans cannot
appear; this command clears rows left behind by older deployments that wrote
them in two steps.

Usage:
    python -m animetoken.cli.cleanup_orphaned_jobs [OPTIONS]

Examples:
    # Show what would be removed
    python -m animetoken.cli.cleanup_orphaned_jobs --dry-run

    # Remove orphans older than one hour, with debug logging
    python -m animetoken.cli.cleanup_orphaned_jobs --older-than-minutes 60 -v
"""

import asyncio
import sys
from argparse import ArgumentParser, Namespace
from datetime import timedelta
from typing import Optional, Sequence

import structlog

from animetoken.core import timezone  # noqa: F401
from animetoken.core.config import Settings, configure_logging
from animetoken.core.database import setup_db_session
from animetoken.core.timezone import utcnow
from animetoken.uow import create_uow_factory

logger = structlog.get_logger()

DEFAULT_OLDER_THAN_MINUTES = 10


def parse_args(argv: Optional[Sequence[str]] = None) -> Namespace:
    """Parse command-line arguments."""
    parser = ArgumentParser(description="Remove pending mint jobs that have no items")

    parser.add_argument(
        "--older-than-minutes",
        type=int,
        default=DEFAULT_OLDER_THAN_MINUTES,
        help=f"Only consider jobs created before this many minutes ago "
        f"(default: {DEFAULT_OLDER_THAN_MINUTES})",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List orphaned jobs without deleting them",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging (DEBUG level)",
    )

    return parser.parse_args(argv)


async def cleanup_orphaned_jobs(uow_factory, older_than: timedelta, dry_run: bool = False) -> int:
    """Delete pending jobs with zero items created before ``now - older_than``.

    Returns:
        Number of orphaned jobs found (deleted unless ``dry_run``)
    """
    cutoff = utcnow() - older_than
    async with await uow_factory() as uow:
        orphans = await uow.mint_jobs.list_orphaned_pending(created_before=cutoff)
        for job in orphans:
            logger.debug(
                "cleanup_orphaned_jobs.orphan",
                job_id=str(job.id),
                wallet_address=job.wallet_address,
                created_at=job.created_at.isoformat(),
            )
            if not dry_run:
                await uow.mint_jobs.delete(job)

    logger.info(
        "cleanup_orphaned_jobs.done",
        found=len(orphans),
        deleted=0 if dry_run else len(orphans),
        dry_run=dry_run,
    )
    return len(orphans)


async def async_main(argv: Optional[Sequence[str]] = None) -> int:
    """Main CLI entry point (async).

    Returns:
        Exit code: 0 (success), 1 (error)
    """
    args = parse_args(argv)

    settings = Settings()  # type: ignore[call-arg]
    if args.verbose:
        settings.log_level = "DEBUG"
    configure_logging(settings)

    if args.dry_run:
        logger.info("cleanup_orphaned_jobs.dry_run", message="DRY RUN MODE - No deletions")

    session_factory = setup_db_session(settings.database_url, settings.db_pool_size)
    uow_factory = create_uow_factory(session_factory)

    try:
        count = await cleanup_orphaned_jobs(
            uow_factory, timedelta(minutes=args.older_than_minutes), dry_run=args.dry_run
        )
        verb = "Found" if args.dry_run else "Deleted"
        print(f"{verb} {count} orphaned mint job(s)")
        return 0

    except KeyboardInterrupt:
        logger.info("cli.interrupted")
        print("\nCleanup interrupted by user", file=sys.stderr)
        return 130

    except Exception as e:
        logger.error(
            "cli.unexpected_error",
            error=str(e),
            error_type=type(e).__name__,
        )
        print(f"\nUnexpected error: {e}", file=sys.stderr)
        return 1

    finally:
        await session_factory.kw["bind"].dispose()


def main() -> None:
    """Synchronous entry point for CLI."""
    sys.exit(asyncio.run(async_main()))


if __name__ == "__main__":
    main()
