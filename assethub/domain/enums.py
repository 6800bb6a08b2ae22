"""Domain enumerations for AssetHub.

Enums represent fixed sets of domain values (e.g. file upload status).
"""

from enum import Enum


class FileStatus(str, Enum):
    """Upload lifecycle status of a file record.

    pending   -> record created, bytes not confirmed yet (direct / presigned single).
    uploading -> multipart session open on the storage backend.
    completed -> bytes confirmed durable in the backend.
    failed    -> reserved; compensation deletes staged rows instead of writing it.
    """

    PENDING = "pending"
    UPLOADING = "uploading"
    COMPLETED = "completed"
    FAILED = "failed"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid status values as strings.

        Returns:
            List of enum value strings (e.g. for validation or serialization).
        """
        return [status.value for status in cls]

    def can_transition_to(self, target: "FileStatus") -> bool:
        """Return True if moving from this status to target is allowed.

        Transitions are monotonic: pending -> uploading | completed,
        uploading -> completed. Staying on the same status is allowed.
        """
        if self is target:
            return True
        return target in _ALLOWED_TRANSITIONS.get(self, frozenset())


_ALLOWED_TRANSITIONS: dict[FileStatus, frozenset[FileStatus]] = {
    FileStatus.PENDING: frozenset({FileStatus.UPLOADING, FileStatus.COMPLETED}),
    FileStatus.UPLOADING: frozenset({FileStatus.COMPLETED}),
}

# Statuses of records whose bytes may never arrive (abandoned sessions).
IN_FLIGHT_STATUSES: tuple[FileStatus, ...] = (FileStatus.PENDING, FileStatus.UPLOADING)
