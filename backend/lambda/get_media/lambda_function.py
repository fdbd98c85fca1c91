"""get_media/lambda_function.py

Lambda API that streams a stored photo or video back to the browser.

Routes (via API Gateway proxy):
    GET     /api/v1/media?media={id}&type={photo|video}   — raw media bytes
    GET     /api/v1/media?id={id}&type={photo|video}      — same, legacy param
    OPTIONS /api/v1/media                                 — CORS preflight

Successful responses carry the object bytes base64-encoded for API Gateway
(``isBase64Encoded: true``) with a one-year public Cache-Control: media
objects are never modified after upload. Errors are JSON.

Environment variables:
    MEDIA_BUCKET           default: veteran-stories-media
    MEDIA_PREFIX           default: media
    S3_REGION              default: us-west-2
    EXPOSE_ERROR_DETAILS   default: false (true when ENVIRONMENT=development)
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from botocore.exceptions import BotoCoreError, ClientError

from stories_shared import config, media
from stories_shared.aws_clients import s3_provider
from stories_shared.errors import ApiError, BadRequest
from stories_shared.http_utils import (
    Request,
    _api_error,
    _error,
    _media_response,
    _preflight,
    _server_error,
)
from stories_shared.object_store import MediaStore

logger = logging.getLogger()
logger.setLevel(logging.INFO)

_S3 = s3_provider()


def _get_store() -> MediaStore:
    return MediaStore(_S3, config.MEDIA_BUCKET, config.MEDIA_PREFIX)


def _handle_get(request: Request) -> Dict[str, Any]:
    qs = request.query_params
    logger.info("request parse: method=%s qs_keys=%s", request.method, sorted(qs.keys()))

    object_id = (qs.get("media") or qs.get("id") or "").strip()
    category = (qs.get("type") or "").strip()
    if not object_id or not category:
        raise BadRequest("Missing id or type parameter")

    payload = media.retrieve(_get_store(), object_id, category)
    logger.info("media served: id=%s category=%s size=%d", object_id, category, payload.size)
    return _media_response(payload)


def lambda_handler(event: Dict, context: Any) -> Dict:
    request = Request.from_event(event)

    if request.method == "OPTIONS":
        return _preflight()
    if request.method != "GET":
        return _error(405, f"Method {request.method} not allowed.")

    try:
        return _handle_get(request)
    except ApiError as exc:
        return _api_error(exc)
    except (BotoCoreError, ClientError) as exc:
        logger.error("S3 get_object failed: %s", exc)
        return _server_error(exc, "Failed to fetch media.")
    except Exception as exc:
        logger.exception("media retrieval failed unexpectedly: %s", exc)
        return _server_error(exc, "Failed to fetch media.")
