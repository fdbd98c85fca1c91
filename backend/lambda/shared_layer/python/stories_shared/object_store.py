"""stories_shared.object_store — S3-backed binary object store for story media.

Objects live under ``{prefix}/{partition}/{id}`` in one bucket, where the
partition is fixed by the object's category (``photo`` -> ``photos``,
``video`` -> ``videos``). The two partitions are disjoint, so looking up a
valid id under the wrong category is an ordinary miss.

Objects are immutable: they are written once by ``put`` and never updated.
There is no delete operation here.
"""

from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass
from typing import Dict, Optional, Tuple
from urllib.parse import quote, unquote

from botocore.exceptions import ClientError

from stories_shared.aws_clients import ClientProvider
from stories_shared.multipart import DEFAULT_CONTENT_TYPE
from stories_shared.serialization import _now_z

__all__ = ["CATEGORIES", "PARTITIONS", "MediaStore", "StoredObject", "is_valid_id"]

logger = logging.getLogger(__name__)

PARTITIONS: Dict[str, str] = {"photo": "photos", "video": "videos"}
CATEGORIES = tuple(PARTITIONS)
IMMUTABLE_CACHE_CONTROL = "public, max-age=31536000, immutable"

_ID_RE = re.compile(r"^[0-9a-fA-F]{32}$")
_MISSING_CODES = {"NoSuchKey", "404", "NotFound"}


def is_valid_id(value: str) -> bool:
    return bool(value) and bool(_ID_RE.match(value))


@dataclass(frozen=True)
class StoredObject:
    id: str
    filename: str
    content_type: str
    size_bytes: int
    category: str
    uploaded_at: str


class MediaStore:
    """Stores and fetches media bytes in the category's partition."""

    def __init__(self, provider: ClientProvider, bucket: str, prefix: str = "") -> None:
        self.provider = provider
        self.bucket = bucket
        self.prefix = prefix.strip("/")

    def key_for(self, object_id: str, category: str) -> str:
        partition = PARTITIONS[category]
        if self.prefix:
            return f"{self.prefix}/{partition}/{object_id}"
        return f"{partition}/{object_id}"

    def put(self, data: bytes, filename: str, content_type: str, category: str) -> StoredObject:
        """Persist ``data`` and return the record with its newly assigned id."""
        object_id = uuid.uuid4().hex
        stored = StoredObject(
            id=object_id,
            filename=filename,
            content_type=content_type,
            size_bytes=len(data),
            category=category,
            uploaded_at=_now_z(),
        )
        key = self.key_for(object_id, category)
        self.provider.get_or_create().put_object(
            Bucket=self.bucket,
            Key=key,
            Body=data,
            ContentType=content_type,
            CacheControl=IMMUTABLE_CACHE_CONTROL,
            Metadata={
                # S3 user metadata must be ASCII.
                "filename": quote(filename, safe=""),
                "content-type": content_type,
                "upload-date": stored.uploaded_at,
                "file-size": str(stored.size_bytes),
                "category": category,
            },
        )
        logger.info("media object stored: s3://%s/%s size=%d", self.bucket, key, stored.size_bytes)
        return stored

    def get(self, object_id: str, category: str) -> Optional[Tuple[StoredObject, bytes]]:
        """Fetch an object's record and bytes, or None if the partition lacks it."""
        s3 = self.provider.get_or_create()
        key = self.key_for(object_id.lower(), category)
        try:
            resp = s3.get_object(Bucket=self.bucket, Key=key)
        except ClientError as exc:
            if str(exc.response.get("Error", {}).get("Code", "")) in _MISSING_CODES:
                return None
            raise

        body = resp["Body"]
        try:
            data = body.read()
        finally:
            body.close()

        metadata = {str(k).lower(): v for k, v in (resp.get("Metadata") or {}).items()}
        filename = unquote(metadata.get("filename", "")) or object_id
        content_type = (
            metadata.get("content-type")
            or resp.get("ContentType")
            or DEFAULT_CONTENT_TYPE
        )
        stored = StoredObject(
            id=object_id.lower(),
            filename=filename,
            content_type=content_type,
            size_bytes=len(data),
            category=metadata.get("category", category),
            uploaded_at=metadata.get("upload-date", ""),
        )
        return stored, data
