"""Shared utilities: datetime and generators."""

from assethub.shared.utils.datetime import (
    ensure_utc,
    unix_seconds,
    utc_now,
)
from assethub.shared.utils.generators import generate_file_id

__all__ = [
    "generate_file_id",
    "utc_now",
    "ensure_utc",
    "unix_seconds",
]
