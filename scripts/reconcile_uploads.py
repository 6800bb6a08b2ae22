"""Reconcile abandoned uploads: pending/uploading files older than ABANDONED_UPLOAD_TTL_HOURS.

Usage:
    python -m scripts.reconcile_uploads [none|purge]
The policy argument overrides RECONCILIATION_POLICY from config.
"none" only reports; "purge" aborts multipart sessions, deletes partial
objects and soft-deletes the records.
Requires Postgres and a configured storage backend.
"""

import asyncio
import sys
from datetime import timedelta

from assethub.application.use_cases.files import (
    ReconcileAbandonedUploadsUseCase,
    ReconciliationPolicy,
)
from assethub.core.config import get_settings
from assethub.infrastructure.external.storage import StorageFactory
from assethub.infrastructure.persistence.database import dispose_engine, get_session_factory
from assethub.infrastructure.persistence.repositories import FileRepository
from assethub.shared.telemetry import setup_logging


async def main() -> None:
    """Run one reconciliation pass and print the summary."""
    settings = get_settings()
    setup_logging()
    raw_policy = sys.argv[1] if len(sys.argv) > 1 else settings.reconciliation_policy
    try:
        policy = ReconciliationPolicy(raw_policy.lower())
    except ValueError:
        print(f"Unknown policy: {raw_policy} (expected 'none' or 'purge')", file=sys.stderr)
        sys.exit(2)
    if settings.abandoned_upload_ttl_hours < 1:
        print("Set ABANDONED_UPLOAD_TTL_HOURS (>= 1)", file=sys.stderr)
        sys.exit(1)

    session_factory = get_session_factory()
    storage = StorageFactory.create_storage_service(settings)
    try:
        async with session_factory() as session:
            async with session.begin():
                use_case = ReconcileAbandonedUploadsUseCase(
                    FileRepository(session),
                    storage,
                    policy,
                    ttl=timedelta(hours=settings.abandoned_upload_ttl_hours),
                )
                result = await use_case.run()
    finally:
        await dispose_engine()

    print(
        f"Done. policy={result.policy.value} cutoff={result.cutoff.isoformat()} "
        f"stale={result.stale} purged={result.purged} failed={result.failed}"
    )


if __name__ == "__main__":
    asyncio.run(main())
