"""Identifiers minted by the service: file ids, local upload sessions and access tokens."""

import secrets

from cuid2 import cuid_wrapper

_next_cuid = cuid_wrapper()


def generate_file_id() -> str:
    """CUID2 for a file record.

    Minted before the storage key so the key can embed it, which keeps keys
    unique without asking the backend.
    """
    return str(_next_cuid())


def generate_upload_id() -> str:
    """Multipart session id for the local backend (32 hex chars, safe as a directory name)."""
    return secrets.token_hex(16)


def generate_access_token() -> str:
    """Unguessable URL-safe token for a local presigned URL."""
    return secrets.token_urlsafe(32)
