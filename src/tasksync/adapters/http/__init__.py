"""
HTTP Adapters - REST client and cache-validated reads.
"""

from .client import (
    ApiClient,
    classify_status,
    decode_body,
    SUCCESS,
    NOT_MODIFIED,
    CLIENT_ERROR,
    SERVER_ERROR,
)
from .conditional import ConditionalFetchClient, snapshot_key

__all__ = [
    "ApiClient",
    "classify_status",
    "decode_body",
    "SUCCESS",
    "NOT_MODIFIED",
    "CLIENT_ERROR",
    "SERVER_ERROR",
    "ConditionalFetchClient",
    "snapshot_key",
]
