"""stories_shared.media — Media upload validation and retrieval.

``upload`` validates before it writes: a rejected file never reaches the
object store. ``retrieve`` returns the stored bytes unchanged.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from stories_shared import config
from stories_shared.errors import InvalidArgument, NotFound, PayloadTooLarge, UnsupportedMediaType
from stories_shared.http_utils import MediaPayload
from stories_shared.object_store import CATEGORIES, MediaStore, is_valid_id

__all__ = [
    "ALLOWED_CONTENT_TYPES",
    "MAX_SIZES",
    "MediaPayload",
    "media_url",
    "retrieve",
    "upload",
]

logger = logging.getLogger(__name__)

MIB = 1024 * 1024

ALLOWED_CONTENT_TYPES: Dict[str, frozenset] = {
    "photo": frozenset({"image/jpeg", "image/jpg", "image/png", "image/webp"}),
    "video": frozenset({"video/mp4", "video/webm", "video/mov", "video/quicktime"}),
}
MAX_SIZES: Dict[str, int] = {"photo": 10 * MIB, "video": 100 * MIB}


def _validate_category(category: str) -> None:
    if category not in CATEGORIES:
        raise InvalidArgument("Type must be photo or video")


def media_url(object_id: str, category: str, endpoint: str = "") -> str:
    """Retrieval URL for a stored object."""
    return f"{endpoint or config.MEDIA_ENDPOINT}?media={object_id}&type={category}"


def upload(
    store: MediaStore,
    file_bytes: bytes,
    filename: str,
    content_type: str,
    category: str,
    media_endpoint: str = "",
) -> Dict[str, Any]:
    """Validate a file and store it in the category's partition.

    Checks run in order and the first failure is raised: category, declared
    content type against the category allow-list, then size ceiling (the
    ceiling itself is allowed).

    Returns:
        ``{id, filename, contentType, size, url}`` for the stored object.
    """
    _validate_category(category)

    media_type = (content_type or "").split(";", 1)[0].strip().lower()
    if media_type not in ALLOWED_CONTENT_TYPES[category]:
        raise UnsupportedMediaType(f"Invalid file type: {content_type}")

    if len(file_bytes) > MAX_SIZES[category]:
        raise PayloadTooLarge(f"File too large. Max size: {MAX_SIZES[category] // MIB}MB")

    stored = store.put(file_bytes, filename, content_type, category)
    return {
        "id": stored.id,
        "filename": stored.filename,
        "contentType": stored.content_type,
        "size": stored.size_bytes,
        "url": media_url(stored.id, category, media_endpoint),
    }


def retrieve(store: MediaStore, object_id: str, category: str) -> MediaPayload:
    """Fetch a stored object's bytes. Raises NotFound if it is not in the partition."""
    if not is_valid_id(object_id):
        raise InvalidArgument("Invalid file ID")
    _validate_category(category)

    found = store.get(object_id, category)
    if found is None:
        logger.info("media object not found: id=%s category=%s", object_id, category)
        raise NotFound("File not found")
    stored, data = found
    return MediaPayload(
        data=data,
        content_type=stored.content_type,
        filename=stored.filename,
        size=len(data),
    )
