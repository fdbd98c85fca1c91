"""put_veterans/lambda_function.py

Lambda API for veteran story submissions. Validates the submitted JSON,
normalises it into a story document with ``status: pending`` and writes it
to DynamoDB.

Routes (via API Gateway proxy):
    POST    /api/v1/veterans   — submit a new story
    OPTIONS /api/v1/veterans   — CORS preflight

Required body fields: name, location, serviceYears, branch, story, consent.
Optional: age, rank, unit, contactEmail, biography, medals, campaigns,
additionalInfo, country, photoUrl, photoId, videoUrl, videoId.

Environment variables:
    STORIES_TABLE          default: veteran-stories
    DYNAMODB_REGION        default: us-west-2
    EXPOSE_ERROR_DETAILS   default: false (true when ENVIRONMENT=development)
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, Optional

from botocore.exceptions import BotoCoreError, ClientError

from stories_shared.aws_clients import ddb_provider
from stories_shared.errors import ApiError, BadRequest
from stories_shared.http_utils import (
    Request,
    _api_error,
    _error,
    _preflight,
    _response,
    _server_error,
)
from stories_shared.serialization import _now_z
from stories_shared.stories import put_story

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

REQUIRED_FIELDS = ("name", "location", "serviceYears", "branch", "story", "consent")
OPTIONAL_TEXT_FIELDS = (
    "rank", "unit", "contactEmail", "biography", "medals", "campaigns", "additionalInfo",
)
MEDIA_REFERENCE_FIELDS = ("photoUrl", "photoId", "videoUrl", "videoId")
DEFAULT_COUNTRY = "United States"
_NEGATIVE_CONSENT = {"false", "no", "off", "0"}

logger = logging.getLogger()
logger.setLevel(logging.INFO)

_DDB = ddb_provider()


# ---------------------------------------------------------------------------
# Validation / normalisation
# ---------------------------------------------------------------------------


def _is_blank(value: Any) -> bool:
    if isinstance(value, str):
        return not value.strip()
    return not value


def _text(value: Any) -> Optional[str]:
    if _is_blank(value):
        return None
    return str(value).strip()


def _parse_age(value: Any) -> Optional[int]:
    if _is_blank(value) or isinstance(value, bool):
        return None
    try:
        return int(float(str(value).strip()))
    except (ValueError, OverflowError):
        return None


def _build_story(data: Dict[str, Any]) -> Dict[str, Any]:
    missing = [f for f in REQUIRED_FIELDS if _is_blank(data.get(f))]
    if missing:
        raise BadRequest(f"Missing required fields: {', '.join(missing)}")

    consent = data["consent"]
    if isinstance(consent, str) and consent.strip().lower() in _NEGATIVE_CONSENT:
        raise BadRequest("Consent is required to submit story")

    story: Dict[str, Any] = {
        "story_id": uuid.uuid4().hex,
        "name": _text(data["name"]),
        "age": _parse_age(data.get("age")),
        "location": _text(data["location"]),
        "serviceYears": _text(data["serviceYears"]),
        "branch": _text(data["branch"]),
        "story": _text(data["story"]),
        "consent": True,
        "submittedAt": _now_z(),
        "status": "pending",
        "country": _text(data.get("country")) or DEFAULT_COUNTRY,
    }
    for field in OPTIONAL_TEXT_FIELDS:
        story[field] = _text(data.get(field))
    for field in MEDIA_REFERENCE_FIELDS:
        story[field] = data.get(field) or None
    return story


# ---------------------------------------------------------------------------
# POST — Submit story
# ---------------------------------------------------------------------------


def _handle_post(request: Request) -> Dict[str, Any]:
    logger.info(
        "request parse: method=%s qs_keys=%s content_type=%s",
        request.method, sorted(request.query_params.keys()), request.header("content-type"),
    )
    story = _build_story(request.json_body())
    put_story(_DDB, story)
    logger.info(
        "story submitted: %s branch=%s photo=%s video=%s",
        story["story_id"], story["branch"], bool(story["photoId"]), bool(story["videoId"]),
    )
    return _response(201, {
        "success": True,
        "message": "Story submitted successfully",
        "id": story["story_id"],
        "veteranStory": story,
    })


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
        return _handle_post(request)
    except ApiError as exc:
        logger.info("story submission rejected: %s", exc.message)
        return _api_error(exc)
    except (BotoCoreError, ClientError) as exc:
        logger.error("DynamoDB put_item failed: %s", exc)
        return _server_error(exc, "Failed to process request")
    except Exception as exc:
        logger.exception("story submission failed unexpectedly: %s", exc)
        return _server_error(exc, "Failed to process request")
