"""Tests for domain exceptions, the status lifecycle and the HTTP status mapping."""

import pytest

from assethub.core.exception_handlers import status_for
from assethub.domain.enums import IN_FLIGHT_STATUSES, FileStatus
from assethub.domain.exceptions import (
    AssetHubException,
    InvalidStatusTransitionException,
    PreconditionFailedException,
    ResourceNotFoundException,
    SqlNotConfiguredException,
    UpstreamFailureException,
    ValidationException,
)
from assethub.infrastructure.exceptions import (
    MetadataStoreError,
    StorageConfigurationError,
    StorageMultipartError,
    StorageNotFoundError,
    StoragePermissionError,
    StorageUploadError,
)


def test_base_exception_default_error_code() -> None:
    """AssetHubException uses class name as error_code when not provided."""
    exc = AssetHubException("Something failed")
    assert exc.message == "Something failed"
    assert exc.error_code == "AssetHubException"
    assert exc.details == {}


def test_to_dict_shape() -> None:
    """to_dict returns the JSON error body."""
    exc = AssetHubException("Oops", error_code="CUSTOM", details={"key": "value"})
    assert exc.to_dict() == {
        "error": "CUSTOM",
        "message": "Oops",
        "details": {"key": "value"},
    }


def test_validation_exception() -> None:
    """ValidationException sets VALIDATION_ERROR and optional field in details."""
    exc = ValidationException("Invalid name", field="name")
    assert exc.error_code == "VALIDATION_ERROR"
    assert exc.details == {"field": "name"}
    assert ValidationException("Invalid").details == {}


def test_resource_not_found_exception() -> None:
    """ResourceNotFoundException carries resource type and id."""
    exc = ResourceNotFoundException("file", "f1")
    assert exc.error_code == "RESOURCE_NOT_FOUND"
    assert "f1" in exc.message
    assert exc.details == {"resource_type": "file", "resource_id": "f1"}


def test_invalid_transition_is_precondition_failure() -> None:
    """InvalidStatusTransitionException records current and target status."""
    exc = InvalidStatusTransitionException("f1", "completed", "pending")
    assert isinstance(exc, PreconditionFailedException)
    assert exc.error_code == "PRECONDITION_FAILED"
    assert exc.details == {
        "file_id": "f1",
        "status": "completed",
        "target_status": "pending",
    }


def test_storage_errors_are_upstream_failures() -> None:
    """Storage and metadata-store errors share the upstream-failure family."""
    for exc in (
        StorageNotFoundError("files/1/a.txt"),
        StorageMultipartError("files/1/a.txt", "u1", "complete", "boom"),
        MetadataStoreError("create_file", "connection reset"),
    ):
        assert isinstance(exc, UpstreamFailureException)
    assert MetadataStoreError("update", "x").details == {
        "operation": "update",
        "reason": "x",
    }


@pytest.mark.parametrize(
    ("exc", "status"),
    [
        (ResourceNotFoundException("file", "f1"), 404),
        (ValidationException("bad"), 400),
        (PreconditionFailedException("not ready", "f1", "pending"), 409),
        (InvalidStatusTransitionException("f1", "completed", "pending"), 409),
        (StorageNotFoundError("k"), 404),
        (StoragePermissionError("../etc/passwd", "path_validation"), 403),
        (StorageUploadError("k", "reset"), 502),
        (StorageConfigurationError("ftp", "unknown"), 502),
        (MetadataStoreError("get_by_id", "timeout"), 502),
        (SqlNotConfiguredException(), 503),
        (AssetHubException("other"), 400),
    ],
)
def test_status_for(exc: AssetHubException, status: int) -> None:
    """Each exception family maps to one HTTP status."""
    assert status_for(exc) == status


def test_status_transitions_are_monotonic() -> None:
    """pending -> uploading -> completed only; nothing leaves completed."""
    assert FileStatus.PENDING.can_transition_to(FileStatus.COMPLETED)
    assert FileStatus.PENDING.can_transition_to(FileStatus.UPLOADING)
    assert FileStatus.UPLOADING.can_transition_to(FileStatus.COMPLETED)
    assert FileStatus.COMPLETED.can_transition_to(FileStatus.COMPLETED)
    assert not FileStatus.COMPLETED.can_transition_to(FileStatus.PENDING)
    assert not FileStatus.COMPLETED.can_transition_to(FileStatus.UPLOADING)
    assert not FileStatus.UPLOADING.can_transition_to(FileStatus.PENDING)


def test_in_flight_statuses() -> None:
    """Only pending and uploading records can be abandoned."""
    assert set(IN_FLIGHT_STATUSES) == {FileStatus.PENDING, FileStatus.UPLOADING}
    assert FileStatus.values() == ["pending", "uploading", "completed", "failed"]
