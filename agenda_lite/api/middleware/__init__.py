"""aiohttp middlewares for agenda_lite."""

from .correlation_id import correlation_id_middleware, get_request_id, request_id_var
from .cors import CORS_HEADERS, cors_middleware

__all__ = [
    "CORS_HEADERS",
    "correlation_id_middleware",
    "cors_middleware",
    "get_request_id",
    "request_id_var",
]
