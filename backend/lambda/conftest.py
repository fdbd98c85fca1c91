"""Shared pytest fixtures for the Lambda test suites.

Provides an in-memory S3 stand-in so media uploads and retrievals can be
exercised end to end without AWS credentials.
"""

from __future__ import annotations

import io
import os
import sys
from typing import Any, Dict, Optional, Tuple

import pytest
from botocore.exceptions import ClientError

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "shared_layer", "python"))

from stories_shared.aws_clients import ClientProvider  # noqa: E402


class FakeS3:
    """Dict-backed put_object/get_object with S3's NoSuchKey behaviour."""

    def __init__(self) -> None:
        self.objects: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self.put_calls = 0

    def put_object(
        self,
        Bucket: str,
        Key: str,
        Body: bytes,
        ContentType: str = "binary/octet-stream",
        CacheControl: Optional[str] = None,
        Metadata: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        self.put_calls += 1
        self.objects[(Bucket, Key)] = {
            "Body": bytes(Body),
            "ContentType": ContentType,
            "CacheControl": CacheControl,
            "Metadata": dict(Metadata or {}),
        }
        return {"ETag": '"fake"'}

    def get_object(self, Bucket: str, Key: str) -> Dict[str, Any]:
        obj = self.objects.get((Bucket, Key))
        if obj is None:
            raise ClientError(
                {"Error": {"Code": "NoSuchKey", "Message": "The specified key does not exist."}},
                "GetObject",
            )
        return {
            "Body": io.BytesIO(obj["Body"]),
            "ContentType": obj["ContentType"],
            "ContentLength": len(obj["Body"]),
            "Metadata": dict(obj["Metadata"]),
        }


@pytest.fixture
def fake_s3() -> FakeS3:
    return FakeS3()


@pytest.fixture
def s3_provider(fake_s3: FakeS3) -> ClientProvider:
    provider = ClientProvider("s3", region="us-west-2")
    provider._client = fake_s3
    return provider
