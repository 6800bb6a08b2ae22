"""Tests for MIME resolution: extension table, reverse lookup, validation and sniffing."""

import pytest

from assethub.application.services import mime_resolver

PNG_HEADER = (
    b"\x89PNG\r\n\x1a\n"
    b"\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x02\x00\x00\x00"
    b"\x90wS\xde"
)


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("photo.JPG", "image/jpeg"),
        ("clip.mp4", "video/mp4"),
        ("report.pdf", "application/pdf"),
        ("notes.txt", "text/plain"),
        ("archive.tar.gz", "application/gzip"),
        ("README", "application/octet-stream"),
        ("data.unknownext", "application/octet-stream"),
    ],
)
def test_resolve_from_name(name: str, expected: str) -> None:
    """Extension lookup is case-insensitive; unknown names fall back to octet-stream."""
    assert mime_resolver.resolve_from_name(name) == expected


def test_reverse_to_extension() -> None:
    """Preferred extension wins for jpeg; unknown types map to .bin."""
    assert mime_resolver.reverse_to_extension("image/jpeg") == ".jpg"
    assert mime_resolver.reverse_to_extension("image/jpg") == ".jpg"
    assert mime_resolver.reverse_to_extension("video/mp4") == ".mp4"
    assert mime_resolver.reverse_to_extension("text/plain; charset=utf-8") == ".txt"
    assert mime_resolver.reverse_to_extension("application/x-made-up") == ".bin"


def test_validate_compares_base_types() -> None:
    """Parameters are ignored; the recommendation is always the name-derived type."""
    assert mime_resolver.validate("notes.txt", "text/plain; charset=utf-8") == (True, "text/plain")
    assert mime_resolver.validate("notes.txt", "image/png") == (False, "text/plain")


def test_validate_rejects_empty_and_octet_stream() -> None:
    """An empty or generic declaration never counts as a match."""
    assert mime_resolver.validate("photo.png", None) == (False, "image/png")
    assert mime_resolver.validate("photo.png", "") == (False, "image/png")
    assert mime_resolver.validate("photo.png", "application/octet-stream") == (False, "image/png")


def test_resolve_declared() -> None:
    """Declared type is kept only when it agrees with the name."""
    assert mime_resolver.resolve_declared("photo.png", "image/png") == "image/png"
    assert mime_resolver.resolve_declared("photo.png", "text/html") == "image/png"
    assert mime_resolver.resolve_declared("blob", None) == "application/octet-stream"


@pytest.mark.parametrize(
    ("content_type", "previewable"),
    [
        ("image/png", True),
        ("video/mp4", True),
        ("audio/mpeg", True),
        ("text/plain; charset=utf-8", True),
        ("application/pdf", True),
        ("application/zip", False),
        ("application/octet-stream", False),
        (None, False),
    ],
)
def test_is_previewable(content_type: str | None, previewable: bool) -> None:
    """Media types browsers render inline."""
    assert mime_resolver.is_previewable(content_type) is previewable


def test_sniff_from_bytes() -> None:
    """libmagic detects PNG and text; empty input is octet-stream."""
    assert mime_resolver.sniff_from_bytes(PNG_HEADER) == "image/png"
    assert mime_resolver.sniff_from_bytes(b"hello world, plain text here\n") == "text/plain"
    assert mime_resolver.sniff_from_bytes(b"") == "application/octet-stream"


def test_sniff_uses_only_prefix() -> None:
    """Bytes past the sniff window do not change the result."""
    assert mime_resolver.sniff_from_bytes(PNG_HEADER + b"\x00" * 4096) == "image/png"
