"""Storage backend construction, settings validation and offline S3/OSS presigning."""

import pytest
from botocore.stub import Stubber
from pydantic import ValidationError

from assethub.application.interfaces.storage import PresignOptions
from assethub.core.config import Settings
from assethub.infrastructure.exceptions import StorageConfigurationError, StorageDeleteError
from assethub.infrastructure.external.storage import StorageFactory
from assethub.infrastructure.external.storage.local_storage import LocalStorageService
from assethub.infrastructure.external.storage.oss_storage import (
    OSSStorageService,
    normalize_endpoint,
    region_from_endpoint,
)
from assethub.infrastructure.external.storage.s3_storage import S3StorageService

DB_URL = "postgresql+asyncpg://u:p@localhost:5432/assethub"
KEY = "files/1700000000/abc.txt"


def _s3_settings(**overrides) -> Settings:
    values = {
        "database_url": DB_URL,
        "storage_backend": "s3",
        "s3_bucket": "assets",
        "s3_endpoint_url": "http://localhost:9000",
        "s3_access_key": "minio",
        "s3_secret_key": "minio-secret",
        "s3_use_path_style": True,
    }
    values.update(overrides)
    return Settings(**values)


def _oss_settings(**overrides) -> Settings:
    values = {
        "database_url": DB_URL,
        "storage_backend": "oss",
        "oss_endpoint": "oss-cn-shanghai.aliyuncs.com",
        "oss_bucket": "assets",
        "oss_access_key_id": "LTAIexample",
        "oss_access_key_secret": "secret",
    }
    values.update(overrides)
    return Settings(**values)


# -- settings ------------------------------------------------------------------


def test_settings_require_database_url() -> None:
    """DATABASE_URL is mandatory."""
    with pytest.raises(ValidationError):
        Settings(database_url="", storage_backend="local")


def test_settings_require_backend_fields() -> None:
    """Each backend validates its own required fields."""
    with pytest.raises(ValidationError):
        _s3_settings(s3_bucket=None)
    with pytest.raises(ValidationError):
        _oss_settings(oss_access_key_secret=None)
    with pytest.raises(ValidationError):
        Settings(database_url=DB_URL, storage_backend="ftp")


def test_settings_reject_unknown_reconciliation_policy() -> None:
    """Only none and purge are accepted."""
    with pytest.raises(ValidationError):
        Settings(database_url=DB_URL, storage_backend="local", reconciliation_policy="archive")


# -- factory -------------------------------------------------------------------


def test_factory_builds_local(tmp_path) -> None:
    """local -> LocalStorageService rooted at STORAGE_ROOT."""
    settings = Settings(database_url=DB_URL, storage_backend="local", storage_root=str(tmp_path))
    storage = StorageFactory.create_storage_service(settings)
    assert isinstance(storage, LocalStorageService)
    assert storage.storage_root == tmp_path.resolve()


def test_factory_builds_s3_and_oss() -> None:
    """s3 and oss settings produce their backends."""
    s3 = StorageFactory.create_storage_service(_s3_settings())
    oss = StorageFactory.create_storage_service(_oss_settings())
    assert type(s3) is S3StorageService
    assert isinstance(oss, OSSStorageService)
    assert oss.region == "cn-shanghai"


def test_factory_rejects_unknown_backend() -> None:
    """Settings that skipped validation still cannot build an unknown backend."""
    settings = Settings.model_construct(database_url=DB_URL, storage_backend="ftp")
    with pytest.raises(StorageConfigurationError):
        StorageFactory.create_storage_service(settings)


# -- OSS endpoint helpers --------------------------------------------------------


@pytest.mark.parametrize(
    ("endpoint", "region"),
    [
        ("oss-cn-shanghai.aliyuncs.com", "cn-shanghai"),
        ("https://oss-ap-southeast-1.aliyuncs.com", "ap-southeast-1"),
        ("oss-cn-beijing-internal.aliyuncs.com", "cn-beijing"),
        ("storage.example.com", "cn-hangzhou"),
    ],
)
def test_region_from_endpoint(endpoint: str, region: str) -> None:
    """Region comes from the endpoint host, defaulting to cn-hangzhou."""
    assert region_from_endpoint(endpoint) == region


def test_normalize_endpoint() -> None:
    """Bare hosts get https://; explicit schemes are kept."""
    assert normalize_endpoint("oss-cn-shanghai.aliyuncs.com") == "https://oss-cn-shanghai.aliyuncs.com"
    assert normalize_endpoint("http://127.0.0.1:9000/") == "http://127.0.0.1:9000"


# -- presigning (offline, no network) ------------------------------------------


async def test_s3_presigned_put_path_style() -> None:
    """Path-style endpoints put the bucket in the URL path."""
    storage = StorageFactory.create_storage_service(_s3_settings())
    url = await storage.presign_upload_url(KEY, 3600, "text/plain")
    assert url.startswith(f"http://localhost:9000/assets/{KEY}?")
    assert "X-Amz-Expires=3600" in url


async def test_s3_presigned_get_overrides_headers() -> None:
    """S3 download URLs carry both response overrides."""
    storage = StorageFactory.create_storage_service(_s3_settings())
    url = await storage.presign_download_url(
        KEY, 900, PresignOptions(content_type="text/plain", content_disposition="inline")
    )
    assert "response-content-type=text%2Fplain" in url
    assert "response-content-disposition=inline" in url
    assert "X-Amz-Expires=900" in url


async def test_s3_presigned_part_url() -> None:
    """Part URLs are bound to the upload id and part number."""
    storage = StorageFactory.create_storage_service(_s3_settings())
    url = await storage.presign_part_url(KEY, "upload-1", 3, 3600)
    assert "uploadId=upload-1" in url
    assert "partNumber=3" in url


async def test_oss_presigned_get_virtual_host_without_content_type() -> None:
    """OSS URLs use the bucket host, the derived region, and disposition only."""
    storage = StorageFactory.create_storage_service(_oss_settings())
    url = await storage.presign_download_url(
        KEY, 900, PresignOptions(content_type="text/plain", content_disposition="attachment")
    )
    assert url.startswith(f"https://assets.oss-cn-shanghai.aliyuncs.com/{KEY}?")
    assert "cn-shanghai" in url.split("X-Amz-Credential=", 1)[1]
    assert "response-content-disposition=attachment" in url
    assert "response-content-type" not in url


# -- S3 error mapping (botocore Stubber) ---------------------------------------


async def test_s3_stat_missing_returns_none() -> None:
    """A 404 on HeadObject means the object is absent."""
    storage = StorageFactory.create_storage_service(_s3_settings())
    with Stubber(storage._client) as stubber:
        stubber.add_client_error(
            "head_object",
            service_error_code="404",
            http_status_code=404,
            expected_params={"Bucket": "assets", "Key": KEY},
        )
        assert await storage.stat(KEY) is None


async def test_s3_abort_ignores_missing_session() -> None:
    """Aborting an unknown multipart session succeeds."""
    storage = StorageFactory.create_storage_service(_s3_settings())
    with Stubber(storage._client) as stubber:
        stubber.add_client_error(
            "abort_multipart_upload",
            service_error_code="NoSuchUpload",
            http_status_code=404,
        )
        await storage.abort_multipart_upload(KEY, "upload-1")


async def test_s3_delete_access_denied() -> None:
    """Vendor errors surface as storage exceptions with the reason kept."""
    storage = StorageFactory.create_storage_service(_s3_settings())
    with Stubber(storage._client) as stubber:
        stubber.add_client_error(
            "delete_object",
            service_error_code="AccessDenied",
            http_status_code=403,
        )
        with pytest.raises(StorageDeleteError) as exc_info:
            await storage.delete(KEY)
    assert "AccessDenied" in exc_info.value.details["reason"]
