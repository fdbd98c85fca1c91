"""stories_shared.errors — Error taxonomy shared by every handler.

Handlers raise these from validation and lookup code and convert them to a
JSON error envelope at the handler boundary (see ``http_utils._error``).
"""

from __future__ import annotations

__all__ = [
    "ApiError",
    "BadRequest",
    "Conflict",
    "InternalError",
    "InvalidArgument",
    "NotFound",
    "PayloadTooLarge",
    "UnsupportedMediaType",
]


class ApiError(Exception):
    """Base error carrying the HTTP status and envelope code."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class BadRequest(ApiError):
    status_code = 400
    code = "INVALID_INPUT"


class InvalidArgument(BadRequest):
    code = "INVALID_ARGUMENT"


class UnsupportedMediaType(BadRequest):
    code = "UNSUPPORTED_MEDIA_TYPE"


class PayloadTooLarge(BadRequest):
    code = "PAYLOAD_TOO_LARGE"


class NotFound(ApiError):
    status_code = 404
    code = "NOT_FOUND"


class Conflict(ApiError):
    status_code = 409
    code = "CONFLICT"


class InternalError(ApiError):
    pass
