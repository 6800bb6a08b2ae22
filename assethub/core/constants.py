"""Core constants: shared literal values for the upload protocols.

Single source of truth for values the orchestrator and the HTTP layer both
report (e.g. expires_in) so they cannot drift apart.
"""

DEFAULT_CONTENT_TYPE = "application/octet-stream"
DEFAULT_EXTENSION = ".bin"

# Presigned URL lifetimes (seconds)
UPLOAD_URL_EXPIRY_SECONDS = 3600
PART_URL_EXPIRY_SECONDS = 3600
DOWNLOAD_URL_EXPIRY_SECONDS = 900

# Bytes inspected for content sniffing on the proxied upload path
MIME_SNIFF_BYTES = 512

# Storage key layout: files/<unix-ts>/<file-id><ext>
STORAGE_KEY_PREFIX = "files"

DISPOSITION_INLINE = "inline"
DISPOSITION_ATTACHMENT = "attachment"
