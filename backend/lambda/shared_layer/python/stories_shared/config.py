"""stories_shared.config — Environment variables and constants.

Every value is read once at import time; handlers and tests may override the
module attributes afterwards.

Environment variables:
    DYNAMODB_REGION        default: us-west-2
    S3_REGION              default: DYNAMODB_REGION
    STORIES_TABLE          default: veteran-stories
    MEDIA_BUCKET           default: veteran-stories-media
    MEDIA_PREFIX           default: media
    MEDIA_ENDPOINT         default: /api/v1/media
    CORS_ORIGIN            default: *
    ENVIRONMENT            default: production
    EXPOSE_ERROR_DETAILS   default: true only when ENVIRONMENT=development
    SEARCH_PAGE_SIZE       default: 50
    SEARCH_SCAN_LIMIT      default: 500
"""

from __future__ import annotations

import os

__all__ = [
    "CORS_ORIGIN",
    "DYNAMODB_REGION",
    "ENVIRONMENT",
    "EXPOSE_ERROR_DETAILS",
    "MEDIA_BUCKET",
    "MEDIA_ENDPOINT",
    "MEDIA_PREFIX",
    "S3_REGION",
    "SEARCH_PAGE_SIZE",
    "SEARCH_SCAN_LIMIT",
    "STORIES_TABLE",
]

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    return default


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, str(default)))
    except ValueError:
        return default


# ---------------------------------------------------------------------------
# AWS
# ---------------------------------------------------------------------------

DYNAMODB_REGION: str = os.environ.get("DYNAMODB_REGION", "us-west-2")
S3_REGION: str = os.environ.get("S3_REGION", DYNAMODB_REGION)
STORIES_TABLE: str = os.environ.get("STORIES_TABLE", "veteran-stories")
MEDIA_BUCKET: str = os.environ.get("MEDIA_BUCKET", "veteran-stories-media")
MEDIA_PREFIX: str = os.environ.get("MEDIA_PREFIX", "media").strip("/")

# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

MEDIA_ENDPOINT: str = os.environ.get("MEDIA_ENDPOINT", "/api/v1/media")
CORS_ORIGIN: str = os.environ.get("CORS_ORIGIN", "*")

# ---------------------------------------------------------------------------
# Error reporting
# ---------------------------------------------------------------------------

ENVIRONMENT: str = os.environ.get("ENVIRONMENT", "production").strip().lower()
# Backend exception text is only returned to clients when this is set.
EXPOSE_ERROR_DETAILS: bool = _env_flag("EXPOSE_ERROR_DETAILS", ENVIRONMENT == "development")

# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------

SEARCH_PAGE_SIZE: int = _env_int("SEARCH_PAGE_SIZE", 50)
SEARCH_SCAN_LIMIT: int = _env_int("SEARCH_SCAN_LIMIT", 500)
