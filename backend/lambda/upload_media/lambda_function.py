"""upload_media/lambda_function.py

Lambda API for veteran story media uploads. Accepts a multipart/form-data
body with a binary ``file`` part and a ``type`` field (photo|video),
validates the file against the category's allow-list and size ceiling, and
stores it in S3 under the category's partition.

Routes (via API Gateway proxy):
    POST    /api/v1/upload-media   — upload a photo or video
    OPTIONS /api/v1/upload-media   — CORS preflight

Response (200):
    {"id", "filename", "contentType", "size", "url"}

Environment variables:
    MEDIA_BUCKET           default: veteran-stories-media
    MEDIA_PREFIX           default: media
    MEDIA_ENDPOINT         default: /api/v1/media
    S3_REGION              default: us-west-2
    EXPOSE_ERROR_DETAILS   default: false (true when ENVIRONMENT=development)
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from botocore.exceptions import BotoCoreError, ClientError

from stories_shared import config, media, multipart
from stories_shared.aws_clients import s3_provider
from stories_shared.errors import ApiError, BadRequest
from stories_shared.http_utils import (
    Request,
    _api_error,
    _error,
    _preflight,
    _response,
    _server_error,
)
from stories_shared.object_store import CATEGORIES, MediaStore

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logger = logging.getLogger()
logger.setLevel(logging.INFO)

# ---------------------------------------------------------------------------
# Storage (client created on first upload)
# ---------------------------------------------------------------------------

_S3 = s3_provider()


def _get_store() -> MediaStore:
    return MediaStore(_S3, config.MEDIA_BUCKET, config.MEDIA_PREFIX)


# ---------------------------------------------------------------------------
# Request parsing
# ---------------------------------------------------------------------------


def _decode_form(request: Request) -> Dict[str, multipart.MultipartField]:
    content_type = request.header("content-type")
    if not multipart.is_multipart(content_type):
        raise BadRequest("Invalid Content-Type")

    boundary = multipart.parse_boundary(content_type)
    if not boundary:
        raise BadRequest("Missing boundary in multipart form data")

    try:
        raw = request.raw_body()
    except ValueError as exc:
        raise BadRequest("Request body is not valid base64") from exc
    return multipart.decode(raw, boundary)


# ---------------------------------------------------------------------------
# POST — Upload
# ---------------------------------------------------------------------------


def _handle_upload(request: Request) -> Dict[str, Any]:
    logger.info(
        "request parse: method=%s qs_keys=%s content_type=%s body_base64=%s",
        request.method, sorted(request.query_params.keys()),
        request.header("content-type"), request.is_body_base64,
    )
    fields = _decode_form(request)

    file_field = fields.get("file")
    type_field = fields.get("type")
    category = type_field.value if type_field is not None and not type_field.is_file else None
    if file_field is None or not file_field.is_file or category not in CATEGORIES:
        logger.warning(
            "upload rejected: fields=%s category=%s", sorted(fields.keys()), category,
        )
        raise BadRequest("Invalid file or type")

    result = media.upload(
        _get_store(),
        file_field.data,
        file_field.filename or "",
        file_field.content_type,
        category,
        config.MEDIA_ENDPOINT,
    )
    logger.info(
        "media uploaded: id=%s category=%s content_type=%s size=%d",
        result["id"], category, result["contentType"], result["size"],
    )
    return _response(200, result)


# ---------------------------------------------------------------------------
# Handler
# ---------------------------------------------------------------------------


def lambda_handler(event: Dict, context: Any) -> Dict:
    request = Request.from_event(event)

    if request.method == "OPTIONS":
        return _preflight()
    if request.method != "POST":
        return _error(405, f"Method {request.method} not allowed.")

    try:
        return _handle_upload(request)
    except ApiError as exc:
        logger.info("upload validation failed: %s", exc.message)
        return _api_error(exc)
    except (BotoCoreError, ClientError) as exc:
        logger.error("S3 upload failed: %s", exc)
        return _server_error(exc, "Failed to store media.")
    except Exception as exc:
        logger.exception("upload failed unexpectedly: %s", exc)
        return _server_error(exc, "Failed to store media.")
