"""HTTP middleware: timeout, request size limit, request ID.

Applied in main app; order matters (last added = outermost).
Import and use from assethub.main.
"""

from assethub.middleware.request_id import RequestIDMiddleware
from assethub.middleware.request_size_limit import RequestSizeLimitMiddleware
from assethub.middleware.timeout import TimeoutMiddleware

__all__ = [
    "RequestIDMiddleware",
    "RequestSizeLimitMiddleware",
    "TimeoutMiddleware",
]
