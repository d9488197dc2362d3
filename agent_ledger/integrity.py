"""
Content hashing for requests and logged payloads.
"""

import hashlib
from typing import Any

from agent_ledger.canonical_json import canonical_json_bytes


def sha256_digest(data: bytes) -> str:
    """Compute SHA256 hex digest of bytes."""
    return hashlib.sha256(data).hexdigest()


def content_digest(obj: Any) -> str:
    """SHA256 digest of an object's canonical JSON representation."""
    return sha256_digest(canonical_json_bytes(obj))
