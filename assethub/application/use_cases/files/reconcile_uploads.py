"""Reconcile abandoned uploads: pending/uploading records whose bytes never arrived.

A presigned or multipart upload the client never finishes leaves a live row
(and possibly an open multipart session). Reconciliation finds rows older
than the TTL and either reports them (NONE) or purges them (PURGE).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING

from assethub.domain.enums import IN_FLIGHT_STATUSES
from assethub.domain.exceptions import AssetHubException
from assethub.shared.telemetry import get_logger
from assethub.shared.utils.datetime import utc_now

if TYPE_CHECKING:
    from assethub.application.dtos.file import FileResult
    from assethub.application.interfaces.repositories import IFileRepository
    from assethub.application.interfaces.storage import IStorageService

logger = get_logger(__name__)

# Batch size for listing stale records (avoid loading too many at once)
RECONCILE_BATCH_SIZE = 500


class ReconciliationPolicy(str, Enum):
    """What to do with abandoned records."""

    NONE = "none"
    PURGE = "purge"


@dataclass(frozen=True)
class ReconcileResult:
    """Summary of one reconciliation run."""

    policy: ReconciliationPolicy
    cutoff: datetime
    stale: int
    purged: int
    failed: int


class ReconcileAbandonedUploadsUseCase:
    """Finds pending/uploading records created before now - ttl and applies the policy.

    PURGE, per record: abort the multipart session when upload_id is set,
    delete any partial object, soft-delete the row. Each record runs in its
    own scoped transaction; failures are logged and counted, never retried.
    """

    def __init__(
        self,
        file_repo: "IFileRepository",
        storage_service: "IStorageService",
        policy: ReconciliationPolicy = ReconciliationPolicy.NONE,
        *,
        ttl: timedelta = timedelta(hours=24),
        batch_size: int = RECONCILE_BATCH_SIZE,
    ) -> None:
        self._file_repo = file_repo
        self._storage = storage_service
        self._policy = ReconciliationPolicy(policy)
        self._ttl = ttl
        self._batch_size = batch_size

    async def run(self, now: datetime | None = None) -> ReconcileResult:
        """Run one pass over all stale records.

        Returns:
            Counts of stale, purged and failed records with the cutoff used.
        """
        cutoff = (now or utc_now()) - self._ttl
        stale = purged = failed = 0
        # Purged rows drop out of list_stale; only failed (or reported) rows are skipped.
        skip = 0
        while True:
            batch = await self._file_repo.list_stale(
                IN_FLIGHT_STATUSES,
                cutoff,
                offset=skip,
                limit=self._batch_size,
            )
            if not batch:
                break
            stale += len(batch)
            if self._policy is ReconciliationPolicy.PURGE:
                for file in batch:
                    if await self._purge(file):
                        purged += 1
                    else:
                        failed += 1
                        skip += 1
            else:
                skip += len(batch)
            if len(batch) < self._batch_size:
                break
        logger.info(
            "Reconciliation finished: policy=%s cutoff=%s stale=%d purged=%d failed=%d",
            self._policy.value,
            cutoff.isoformat(),
            stale,
            purged,
            failed,
        )
        return ReconcileResult(
            policy=self._policy,
            cutoff=cutoff,
            stale=stale,
            purged=purged,
            failed=failed,
        )

    async def _purge(self, file: "FileResult") -> bool:
        try:
            async with self._file_repo.transaction():
                if file.upload_id:
                    await self._storage.abort_multipart_upload(
                        file.storage_key, file.upload_id
                    )
                await self._storage.delete(file.storage_key)
                await self._file_repo.soft_delete(file.id)
        except AssetHubException as e:
            logger.warning(
                "Failed to purge abandoned file %s (%s): %s",
                file.id,
                file.status.value,
                e.message,
            )
            return False
        logger.debug("Purged abandoned file %s (key=%s)", file.id, file.storage_key)
        return True
