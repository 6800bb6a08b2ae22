"""HTTP tests for /api/v1/files and the local token endpoints under /api/v1/storage."""

from httpx import AsyncClient

FILES = "/api/v1/files"


async def _presigned(client: AsyncClient, name: str = "notes.txt", content_type: str = "text/plain") -> dict:
    response = await client.post(
        f"{FILES}/presigned", json={"name": name, "content_type": content_type, "size": 11}
    )
    assert response.status_code == 201
    return response.json()


async def test_presigned_upload_flow(client: AsyncClient) -> None:
    """init -> PUT to the token URL -> confirm -> download through both paths."""
    init = await _presigned(client)
    assert init["upload_url"].startswith("/api/v1/storage/upload/")
    assert init["expires_in"] == 3600
    assert init["storage_key"].endswith(f"/{init['file_id']}.txt")

    put = await client.put(
        init["upload_url"], content=b"hello world", headers={"Content-Type": "text/plain"}
    )
    assert put.status_code == 200
    assert put.headers["etag"].startswith('"')

    confirmed = await client.post(f"{FILES}/{init['file_id']}/confirm")
    assert confirmed.status_code == 200
    assert confirmed.json()["status"] == "completed"

    url = await client.get(f"{FILES}/{init['file_id']}/download-url")
    assert url.status_code == 200
    assert url.json()["expires_in"] == 900

    presigned_get = await client.get(url.json()["url"])
    assert presigned_get.status_code == 200
    assert presigned_get.content == b"hello world"
    assert presigned_get.headers["content-type"].startswith("text/plain")
    assert presigned_get.headers["content-disposition"] == "inline"

    passthrough = await client.get(f"{FILES}/{init['file_id']}/download")
    assert passthrough.status_code == 200
    assert passthrough.content == b"hello world"
    assert passthrough.headers["content-disposition"] == 'inline; filename="notes.txt"'
    assert passthrough.headers["content-length"] == "11"


async def test_presigned_put_with_wrong_content_type(client: AsyncClient) -> None:
    """The token only accepts the content type it was signed for."""
    init = await _presigned(client)
    put = await client.put(
        init["upload_url"], content=b"<html/>", headers={"Content-Type": "text/html"}
    )
    assert put.status_code == 403
    assert put.json()["error"] == "HTTP_ERROR"


async def test_invalid_token(client: AsyncClient) -> None:
    """Unknown tokens are refused on every token route."""
    assert (await client.put("/api/v1/storage/upload/nope", content=b"x")).status_code == 403
    assert (await client.put("/api/v1/storage/parts/nope", content=b"x")).status_code == 403
    assert (await client.get("/api/v1/storage/download/nope")).status_code == 403


async def test_direct_upload(client: AsyncClient) -> None:
    """Multipart form upload returns 201 with the completed record and a download URL."""
    response = await client.post(
        f"{FILES}/upload",
        files={"file": ("notes.txt", b"hello there, some plain text\n", "application/octet-stream")},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["file"]["status"] == "completed"
    assert body["file"]["content_type"] == "text/plain"
    assert body["file"]["name"] == "notes.txt"
    assert body["download_url"].startswith("/api/v1/storage/download/")
    assert body["expires_in"] == 900

    download = await client.get(body["download_url"])
    assert download.content == b"hello there, some plain text\n"


async def test_direct_upload_name_override_and_unicode_disposition(client: AsyncClient) -> None:
    """The form name wins over the filename; non-ASCII names get filename*."""
    response = await client.post(
        f"{FILES}/upload",
        files={"file": ("upload.bin", b"some words in a text file\n", "text/plain")},
        data={"name": "résumé.txt"},
    )
    assert response.status_code == 201
    file_id = response.json()["file"]["id"]

    download = await client.get(f"{FILES}/{file_id}/download")
    disposition = download.headers["content-disposition"]
    assert disposition.startswith('inline; filename="r_sum_.txt"')
    assert "filename*=UTF-8''r%C3%A9sum%C3%A9.txt" in disposition


async def test_multipart_upload_flow(client: AsyncClient) -> None:
    """init -> part URLs -> part PUTs -> complete -> download."""
    init = await client.post(
        f"{FILES}/multipart", json={"name": "video.mp4", "content_type": "video/mp4"}
    )
    assert init.status_code == 201
    file_id = init.json()["file_id"]
    assert init.json()["upload_id"]

    record = await client.get(f"{FILES}/{file_id}")
    assert record.json()["status"] == "uploading"

    parts = []
    for number, chunk in ((1, b"first-"), (2, b"second")):
        url = await client.post(f"{FILES}/{file_id}/parts", json={"part_number": number})
        assert url.status_code == 200
        assert url.json()["part_number"] == number
        put = await client.put(url.json()["upload_url"], content=chunk)
        assert put.status_code == 200
        parts.append({"part_number": number, "etag": put.headers["etag"]})

    completed = await client.post(f"{FILES}/{file_id}/complete", json={"parts": parts})
    assert completed.status_code == 200
    assert completed.json()["status"] == "completed"

    download = await client.get(f"{FILES}/{file_id}/download")
    assert download.content == b"first-second"
    assert download.headers["content-disposition"] == 'inline; filename="video.mp4"'

    again = await client.post(f"{FILES}/{file_id}/complete", json={"parts": parts})
    assert again.status_code == 400


async def test_multipart_bad_etag_is_upstream_failure(client: AsyncClient) -> None:
    """A part list the backend rejects maps to 502 and the record stays uploading."""
    init = await client.post(f"{FILES}/multipart", json={"name": "video.mp4"})
    file_id = init.json()["file_id"]
    url = await client.post(f"{FILES}/{file_id}/parts", json={"part_number": 1})
    await client.put(url.json()["upload_url"], content=b"abc")

    response = await client.post(
        f"{FILES}/{file_id}/complete", json={"parts": [{"part_number": 1, "etag": "bogus"}]}
    )
    assert response.status_code == 502
    assert response.json()["error"] == "STORAGE_MULTIPART_ERROR"
    assert (await client.get(f"{FILES}/{file_id}")).json()["status"] == "uploading"


async def test_error_bodies(client: AsyncClient) -> None:
    """Unknown ids 404, wrong status 409, wrong mode 400, bad payload 422."""
    missing = await client.get(f"{FILES}/missing")
    assert missing.status_code == 404
    assert missing.json()["error"] == "RESOURCE_NOT_FOUND"

    pending = await _presigned(client)
    not_ready = await client.get(f"{FILES}/{pending['file_id']}/download-url")
    assert not_ready.status_code == 409
    assert not_ready.json()["error"] == "PRECONDITION_FAILED"
    assert not_ready.json()["details"]["status"] == "pending"

    multipart = await client.post(f"{FILES}/multipart", json={"name": "video.mp4"})
    wrong_mode = await client.post(f"{FILES}/{multipart.json()['file_id']}/confirm")
    assert wrong_mode.status_code == 400
    assert wrong_mode.json()["error"] == "VALIDATION_ERROR"

    bad_payload = await client.post(f"{FILES}/presigned", json={"name": ""})
    assert bad_payload.status_code == 422
    assert bad_payload.json()["error"] == "VALIDATION_ERROR"

    bad_part = await client.post(
        f"{FILES}/{multipart.json()['file_id']}/parts", json={"part_number": 0}
    )
    assert bad_part.status_code == 422


async def test_list_files(client: AsyncClient) -> None:
    """Listing is paginated and validates its bounds."""
    for name in ("a.txt", "b.txt", "c.txt"):
        await _presigned(client, name=name)

    page = await client.get(FILES, params={"limit": 2})
    assert page.status_code == 200
    body = page.json()
    assert body["total"] == 3
    assert len(body["items"]) == 2
    assert body["offset"] == 0 and body["limit"] == 2

    assert (await client.get(FILES, params={"limit": 0})).status_code == 422
    assert (await client.get(FILES, params={"offset": -1})).status_code == 422


async def test_delete_file(client: AsyncClient) -> None:
    """DELETE returns 204; the file is gone afterwards."""
    init = await _presigned(client)
    deleted = await client.delete(f"{FILES}/{init['file_id']}")
    assert deleted.status_code == 204
    assert (await client.get(f"{FILES}/{init['file_id']}")).status_code == 404
    assert (await client.delete(f"{FILES}/{init['file_id']}")).status_code == 404


async def test_token_download_of_missing_object(client: AsyncClient, local_storage) -> None:
    """A valid token for an object that is gone answers 404 with the storage error code."""
    response = await client.post(
        f"{FILES}/upload", files={"file": ("notes.txt", b"short lived text\n", "text/plain")}
    )
    body = response.json()
    await local_storage.delete(body["file"]["storage_key"])

    download = await client.get(body["download_url"])
    assert download.status_code == 404
    assert download.json()["error"] == "STORAGE_NOT_FOUND"
