"""Internal machinery: HTTP and retry."""

from .http import (
    Auth,
    BearerAuth,
    HttpClient,
    HttpError,
    TokenAuth,
)
from .retry import (
    on_status_code,
    retry,
)

__all__ = [
    "Auth",
    "BearerAuth",
    "HttpClient",
    "HttpError",
    "TokenAuth",
    "on_status_code",
    "retry",
]
