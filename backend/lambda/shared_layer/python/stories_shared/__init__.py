"""stories_shared — Shared utilities for the veteran stories Lambda functions.

Provides:
    - Environment-driven configuration
    - Error taxonomy shared by every handler
    - Lazily-built boto3 client providers
    - Request/Response structs and JSON envelopes with CORS
    - DynamoDB serialization/deserialization
    - multipart/form-data decoding
    - S3-backed media storage with upload/retrieval validation
"""

__version__ = "1.0.0"
