"""get_veterans/lambda_function.py

Lambda API for reading veteran stories.

Routes (via API Gateway proxy):
    GET     /api/v1/veterans?q={term}                  — search (newest first)
    GET     /api/v1/veterans?id={id}                   — story detail
    GET     /api/v1/veterans?media={id}&type={t}       — media bytes (same as get_media)
    OPTIONS /api/v1/veterans                           — CORS preflight

Search is a case-insensitive substring match across the story text fields
and never returns rejected stories. Detail lookups accept the story key or
either legacy identifier attribute (``id``, ``veteranId``).

Environment variables:
    STORIES_TABLE          default: veteran-stories
    MEDIA_BUCKET           default: veteran-stories-media
    MEDIA_PREFIX           default: media
    SEARCH_PAGE_SIZE       default: 50
    DYNAMODB_REGION        default: us-west-2
    EXPOSE_ERROR_DETAILS   default: false (true when ENVIRONMENT=development)
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from botocore.exceptions import BotoCoreError, ClientError

from stories_shared import config, media
from stories_shared.aws_clients import ddb_provider, s3_provider
from stories_shared.errors import ApiError, NotFound
from stories_shared.http_utils import (
    Request,
    _api_error,
    _error,
    _media_response,
    _preflight,
    _response,
    _server_error,
)
from stories_shared.object_store import MediaStore
from stories_shared.stories import find_story, search_stories

logger = logging.getLogger()
logger.setLevel(logging.INFO)

_DDB = ddb_provider()
_S3 = s3_provider()

DETAIL_CACHE_CONTROL = "public, max-age=300"
SEARCH_CACHE_CONTROL = "public, max-age=60"


# ---------------------------------------------------------------------------
# GET — Media passthrough
# ---------------------------------------------------------------------------


def _get_media(object_id: str, category: str) -> Dict[str, Any]:
    store = MediaStore(_S3, config.MEDIA_BUCKET, config.MEDIA_PREFIX)
    return _media_response(media.retrieve(store, object_id, category))


# ---------------------------------------------------------------------------
# GET — Detail / search
# ---------------------------------------------------------------------------


def _get_detail(story_id: str) -> Dict[str, Any]:
    story = find_story(_DDB, story_id)
    if story is None:
        raise NotFound("Veteran not found")
    return _response(200, story, headers={"Cache-Control": DETAIL_CACHE_CONTROL})


def _search(term: str) -> Dict[str, Any]:
    return _response(200, search_stories(_DDB, term), headers={"Cache-Control": SEARCH_CACHE_CONTROL})


def _handle_get(request: Request) -> Dict[str, Any]:
    qs = request.query_params
    logger.info("request parse: method=%s qs_keys=%s", request.method, sorted(qs.keys()))

    media_id = (qs.get("media") or "").strip()
    category = (qs.get("type") or "").strip()
    if media_id and category:
        return _get_media(media_id, category)

    story_id = (qs.get("id") or "").strip()
    if story_id:
        return _get_detail(story_id)

    return _search((qs.get("q") or "").strip())


# ---------------------------------------------------------------------------
# Handler
# ---------------------------------------------------------------------------


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
        logger.error("story read failed: %s", exc)
        return _server_error(exc, "Failed to fetch data")
    except Exception as exc:
        logger.exception("story read failed unexpectedly: %s", exc)
        return _server_error(exc, "Failed to fetch data")
