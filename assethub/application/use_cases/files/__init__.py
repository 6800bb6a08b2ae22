"""File upload, query, deletion and reconciliation use cases."""

from assethub.application.use_cases.files.file_operations import (
    FileDeletionService,
    FileQueryService,
    FileUploadService,
)
from assethub.application.use_cases.files.reconcile_uploads import (
    ReconcileAbandonedUploadsUseCase,
    ReconciliationPolicy,
    ReconcileResult,
)

__all__ = [
    "FileUploadService",
    "FileQueryService",
    "FileDeletionService",
    "ReconcileAbandonedUploadsUseCase",
    "ReconciliationPolicy",
    "ReconcileResult",
]
