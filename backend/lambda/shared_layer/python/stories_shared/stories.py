"""stories_shared.stories — Story record DynamoDB persistence helpers.

Story documents are keyed by ``story_id``. Older records may also carry an
``id`` or ``veteranId`` attribute; detail lookups accept any of the three.
Media references are stored as ``photoId``/``videoId``; the retrieval URLs
are derived on read and never persisted.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Iterator, List, Optional

from botocore.exceptions import ClientError

from stories_shared import config
from stories_shared.aws_clients import ClientProvider
from stories_shared.errors import Conflict
from stories_shared.media import media_url
from stories_shared.serialization import _deserialize, _serialize, _serialize_item

__all__ = [
    "SEARCH_FIELDS",
    "find_story",
    "put_story",
    "search_stories",
    "with_media_urls",
]

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ("name", "location", "story", "country", "branch", "rank", "unit", "biography")
REJECTED_STATUS = "rejected"


def _scan(provider: ClientProvider, **params: Any) -> Iterator[Dict[str, Any]]:
    """Yield deserialized items across every scan page."""
    ddb = provider.get_or_create()
    params = {"TableName": config.STORIES_TABLE, "Limit": config.SEARCH_SCAN_LIMIT, **params}
    while True:
        resp = ddb.scan(**params)
        for item in resp.get("Items", []):
            yield _deserialize(item)
        last_key = resp.get("LastEvaluatedKey")
        if not last_key:
            return
        params["ExclusiveStartKey"] = last_key


def with_media_urls(story: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(story)
    if out.get("photoId"):
        out["photo"] = media_url(str(out["photoId"]), "photo")
    if out.get("videoId"):
        out["videoUrl"] = media_url(str(out["videoId"]), "video")
    return out


def put_story(provider: ClientProvider, story: Dict[str, Any]) -> None:
    """Insert a new story. Raises Conflict if the key is already taken."""
    ddb = provider.get_or_create()
    try:
        ddb.put_item(
            TableName=config.STORIES_TABLE,
            Item=_serialize_item(story),
            ConditionExpression="attribute_not_exists(story_id)",
        )
    except ClientError as exc:
        if exc.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException":
            raise Conflict("A story with similar content already exists") from exc
        raise


def find_story(provider: ClientProvider, story_id: str) -> Optional[Dict[str, Any]]:
    """Look a story up by its key, falling back to the legacy id attributes."""
    ddb = provider.get_or_create()
    resp = ddb.get_item(
        TableName=config.STORIES_TABLE,
        Key={"story_id": _serialize(story_id)},
        ConsistentRead=True,
    )
    item = resp.get("Item")
    if item:
        return with_media_urls(_deserialize(item))

    legacy = next(
        _scan(
            provider,
            FilterExpression="#id = :sid OR veteranId = :sid",
            ExpressionAttributeNames={"#id": "id"},
            ExpressionAttributeValues={":sid": _serialize(story_id)},
        ),
        None,
    )
    return with_media_urls(legacy) if legacy is not None else None


def search_stories(provider: ClientProvider, term: str = "") -> List[Dict[str, Any]]:
    """Case-insensitive substring search over the text fields, newest first.

    Rejected stories are never returned. An empty term lists everything.
    """
    pattern = re.compile(re.escape(term), re.IGNORECASE) if term else None
    matches: List[Dict[str, Any]] = []
    for story in _scan(
        provider,
        FilterExpression="attribute_not_exists(#status) OR #status <> :rejected",
        ExpressionAttributeNames={"#status": "status"},
        ExpressionAttributeValues={":rejected": _serialize(REJECTED_STATUS)},
    ):
        if pattern is not None and not any(
            isinstance(story.get(f), str) and pattern.search(story[f]) for f in SEARCH_FIELDS
        ):
            continue
        matches.append(story)

    matches.sort(key=lambda s: str(s.get("submittedAt") or ""), reverse=True)
    logger.info("story search: term=%r matches=%d", term, len(matches))
    return [with_media_urls(s) for s in matches[: config.SEARCH_PAGE_SIZE]]
