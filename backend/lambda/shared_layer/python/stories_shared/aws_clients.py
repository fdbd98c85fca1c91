"""stories_shared.aws_clients — Lazily-constructed AWS service clients.

A ``ClientProvider`` creates its boto3 client on the first ``get_or_create()``
call and hands the same instance to every later caller. This avoids paying
the boto3 client construction cost on cold starts until the client is
actually needed, and keeps validation-only requests from opening a
connection at all.

Contract: first caller wins; the cached client is never invalidated or
closed. Two cold invocations racing on the first call may each build a
client; the loser's client is simply dropped.
"""

from __future__ import annotations

from typing import Any, Optional

import boto3
from botocore.config import Config

from stories_shared import config

__all__ = ["ClientProvider", "ddb_provider", "s3_provider"]


class ClientProvider:
    """Builds one boto3 client on demand and caches it."""

    def __init__(
        self,
        service_name: str,
        region: Optional[str] = None,
        max_attempts: int = 3,
    ) -> None:
        self.service_name = service_name
        self.region = region
        self.max_attempts = max_attempts
        self._client: Any = None

    @property
    def initialized(self) -> bool:
        return self._client is not None

    def get_or_create(self) -> Any:
        """Get (or create) the cached client."""
        if self._client is None:
            self._client = boto3.client(
                self.service_name,
                region_name=self.region,
                config=Config(retries={"max_attempts": self.max_attempts, "mode": "standard"}),
            )
        return self._client


def ddb_provider(region: Optional[str] = None) -> ClientProvider:
    """Provider for the DynamoDB client holding story records."""
    return ClientProvider("dynamodb", region=region or config.DYNAMODB_REGION, max_attempts=5)


def s3_provider(region: Optional[str] = None) -> ClientProvider:
    """Provider for the S3 client holding media objects."""
    return ClientProvider("s3", region=region or config.S3_REGION)
