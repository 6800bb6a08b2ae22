"""MIME resolution: extension table, reverse lookup, validation and sniffing.

The extension table is static so results are deterministic across hosts
(the stdlib mimetypes registry reads platform files). Content sniffing uses
libmagic through python-magic.
"""

import logging
import os

import magic

from assethub.core.constants import (
    DEFAULT_CONTENT_TYPE,
    DEFAULT_EXTENSION,
    MIME_SNIFF_BYTES,
)

logger = logging.getLogger(__name__)

# Order matters for reverse lookup: first extension listed for a type wins.
EXTENSION_TO_MIME: dict[str, str] = {
    # images
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
    ".ico": "image/x-icon",
    ".bmp": "image/bmp",
    # video
    ".mp4": "video/mp4",
    ".webm": "video/webm",
    ".ogv": "video/ogg",
    ".mov": "video/quicktime",
    ".avi": "video/x-msvideo",
    ".mkv": "video/x-matroska",
    ".flv": "video/x-flv",
    # audio
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".oga": "audio/ogg",
    ".m4a": "audio/mp4",
    ".flac": "audio/flac",
    # documents
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".xls": "application/vnd.ms-excel",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".ppt": "application/vnd.ms-powerpoint",
    ".pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    # text
    ".txt": "text/plain",
    ".html": "text/html",
    ".css": "text/css",
    ".js": "application/javascript",
    ".json": "application/json",
    ".xml": "application/xml",
    ".csv": "text/csv",
    # archives
    ".zip": "application/zip",
    ".rar": "application/x-rar-compressed",
    ".7z": "application/x-7z-compressed",
    ".tar": "application/x-tar",
    ".gz": "application/gzip",
}

PREFERRED_EXTENSIONS: dict[str, str] = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
}

PREVIEWABLE_PREFIXES = ("image/", "video/", "audio/", "text/")
PREVIEWABLE_EXACT = frozenset({"application/pdf"})


def base_type(content_type: str | None) -> str:
    """Return the media type without parameters (e.g. 'text/plain; charset=utf-8' -> 'text/plain')."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def file_extension(name: str) -> str:
    """Return the lowercased extension of name including the dot, or ''."""
    return os.path.splitext(name)[1].lower()


def resolve_from_name(name: str) -> str:
    """Content type for a file name from the static table; unknown -> application/octet-stream."""
    return EXTENSION_TO_MIME.get(file_extension(name), DEFAULT_CONTENT_TYPE)


def reverse_to_extension(content_type: str) -> str:
    """Preferred extension for a content type; unknown -> '.bin'."""
    media_type = base_type(content_type)
    if media_type in PREFERRED_EXTENSIONS:
        return PREFERRED_EXTENSIONS[media_type]
    for ext, mime in EXTENSION_TO_MIME.items():
        if mime == media_type:
            return ext
    return DEFAULT_EXTENSION


def validate(name: str, declared: str | None) -> tuple[bool, str]:
    """Check a declared content type against the name.

    Returns:
        (matches, recommended) where recommended is always the name-derived type.
        An empty or application/octet-stream declaration never matches.
    """
    expected = resolve_from_name(name)
    if not declared or base_type(declared) == DEFAULT_CONTENT_TYPE:
        return False, expected
    return base_type(declared) == base_type(expected), expected


def resolve_declared(name: str, declared: str | None) -> str:
    """Content type used for presigned uploads: the declared one only when it validates."""
    matches, recommended = validate(name, declared)
    if matches and declared:
        return declared
    return recommended


def is_previewable(content_type: str | None) -> bool:
    """True when browsers can render the type inline (image/video/audio/text, or PDF)."""
    media_type = base_type(content_type)
    if media_type in PREVIEWABLE_EXACT:
        return True
    return media_type.startswith(PREVIEWABLE_PREFIXES)


def sniff_from_bytes(prefix: bytes) -> str:
    """Detect the content type from the first bytes of a payload.

    Only the first MIME_SNIFF_BYTES bytes are inspected. Empty input or a
    result libmagic cannot determine returns application/octet-stream.
    """
    if not prefix:
        return DEFAULT_CONTENT_TYPE
    detected = magic.from_buffer(bytes(prefix[:MIME_SNIFF_BYTES]), mime=True)
    if not detected or "/" not in detected:
        logger.debug("Content sniffing inconclusive (%d bytes)", len(prefix))
        return DEFAULT_CONTENT_TYPE
    return detected
