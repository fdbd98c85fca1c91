"""stories_shared.http_utils — Request/Response structs and JSON envelopes with CORS.

Handlers receive API Gateway proxy events (payload v1 or v2). ``Request``
normalises the event; ``Response`` renders back to the proxy response shape.
The ``_response``/``_error`` helpers build the standard JSON envelope used by
all veteran stories Lambda functions.
"""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Optional, Union

from stories_shared import config
from stories_shared.errors import ApiError, BadRequest

__all__ = [
    "MediaPayload",
    "Request",
    "Response",
    "_api_error",
    "_cors_headers",
    "_error",
    "_media_response",
    "_preflight",
    "_response",
    "_server_error",
]


# ---------------------------------------------------------------------------
# Request / Response structs
# ---------------------------------------------------------------------------


@dataclass
class Request:
    method: str
    headers: Dict[str, str] = field(default_factory=dict)
    query_params: Dict[str, str] = field(default_factory=dict)
    body: Optional[Union[str, bytes]] = None
    is_body_base64: bool = False

    @classmethod
    def from_event(cls, event: Dict[str, Any]) -> "Request":
        """Build a Request from an API Gateway v1 or v2 event."""
        rc = event.get("requestContext") or {}
        http = rc.get("http") or {}
        method = (http.get("method") or event.get("httpMethod") or "GET").upper()
        headers = {
            str(k).lower(): str(v)
            for k, v in (event.get("headers") or {}).items()
            if v is not None
        }
        query_params = {
            str(k): str(v)
            for k, v in (event.get("queryStringParameters") or {}).items()
            if v is not None
        }
        return cls(
            method=method,
            headers=headers,
            query_params=query_params,
            body=event.get("body"),
            is_body_base64=bool(event.get("isBase64Encoded")),
        )

    def header(self, name: str, default: str = "") -> str:
        return self.headers.get(name.lower(), default)

    def raw_body(self) -> bytes:
        """Return the body as bytes, undoing the transport's base64 encoding."""
        if self.body is None:
            return b""
        if isinstance(self.body, bytes):
            return self.body
        if self.is_body_base64:
            return base64.b64decode(self.body)
        return self.body.encode("utf-8")

    def json_body(self) -> Dict[str, Any]:
        """Parse a JSON object body. Raises BadRequest if it is not one."""
        try:
            parsed = json.loads(self.raw_body().decode("utf-8") or "null")
        except (UnicodeDecodeError, ValueError) as exc:
            raise BadRequest("Invalid JSON in request body") from exc
        if not isinstance(parsed, dict):
            raise BadRequest("Invalid JSON in request body")
        return parsed


@dataclass
class Response:
    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: str = ""
    is_body_base64: bool = False

    @classmethod
    def binary(cls, status_code: int, data: bytes, headers: Dict[str, str]) -> "Response":
        return cls(
            status_code=status_code,
            headers=headers,
            body=base64.b64encode(data).decode("ascii"),
            is_body_base64=True,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "statusCode": self.status_code,
            "headers": dict(self.headers),
            "body": self.body,
            "isBase64Encoded": self.is_body_base64,
        }


@dataclass(frozen=True)
class MediaPayload:
    """Stored media bytes plus the headers needed to serve them."""

    data: bytes
    content_type: str
    filename: str
    size: int


# ---------------------------------------------------------------------------
# Envelope helpers
# ---------------------------------------------------------------------------


def _cors_headers() -> Dict[str, str]:
    return {
        "Access-Control-Allow-Origin": config.CORS_ORIGIN,
        "Access-Control-Allow-Headers": "Content-Type",
        "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    }


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Decimal):
        if obj % 1 == 0:
            return int(obj)
        return float(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def _response(
    status_code: int,
    body: Any,
    headers: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """Build a standard API Gateway JSON response with CORS headers."""
    return Response(
        status_code=status_code,
        headers={**_cors_headers(), "Content-Type": "application/json", **(headers or {})},
        body=json.dumps(body, default=_json_default),
    ).to_dict()


def _preflight() -> Dict[str, Any]:
    return Response(status_code=204, headers=_cors_headers()).to_dict()


def _error(status_code: int, error_message: str, **extra: Any) -> Dict[str, Any]:
    """Build a standard error response.

    Args:
        status_code: HTTP status code.
        error_message: Human-readable error message.
        **extra: Additional fields merged into the response payload. ``code``
            and ``retryable`` override the envelope defaults.
    """
    code = str(extra.pop("code", "") or "").strip().upper()
    if not code:
        if status_code == 400:
            code = "INVALID_INPUT"
        elif status_code == 404:
            code = "NOT_FOUND"
        elif status_code == 405:
            code = "METHOD_NOT_ALLOWED"
        elif status_code == 409:
            code = "CONFLICT"
        else:
            code = "INTERNAL_ERROR"
    retryable = bool(extra.pop("retryable", status_code >= 500))
    details = dict(extra)
    payload: Dict[str, Any] = {
        "success": False,
        "error": error_message,
        "error_envelope": {
            "code": code,
            "message": error_message,
            "retryable": retryable,
            "details": details,
        },
    }
    payload.update(details)
    return _response(status_code, payload)


def _media_response(payload: MediaPayload) -> Dict[str, Any]:
    """Binary response for a stored media object, cacheable for a year."""
    filename = payload.filename.replace('"', "").replace("\r", "").replace("\n", "")
    headers = {
        **_cors_headers(),
        "Content-Type": payload.content_type,
        "Content-Length": str(payload.size),
        "Cache-Control": "public, max-age=31536000",
        "Content-Disposition": f'inline; filename="{filename}"',
    }
    return Response.binary(200, payload.data, headers).to_dict()


def _api_error(exc: ApiError) -> Dict[str, Any]:
    return _error(exc.status_code, exc.message, code=exc.code)


def _server_error(exc: BaseException, generic_message: str) -> Dict[str, Any]:
    """500 response; the exception text is only exposed when configured to."""
    message = str(exc) if config.EXPOSE_ERROR_DETAILS else generic_message
    return _error(500, "Internal Server Error", message=message)
