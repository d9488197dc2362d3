"""
Canonical JSON for operation payloads.

Request digests and topic message bodies are computed from the same
serialization: sorted keys, no whitespace, UTF-8, no NaN/Infinity.
"""

import json
from typing import Any


def canonical_json(obj: Any) -> str:
    """
    Serialize object to canonical JSON string.

    Raises:
        TypeError: If the object contains non-JSON values.
        ValueError: If the object contains NaN or Infinity.
    """
    return json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def canonical_json_bytes(obj: Any) -> bytes:
    """Serialize to canonical JSON as UTF-8 bytes."""
    return canonical_json(obj).encode("utf-8")


def message_text(payload: Any) -> str:
    """Render a topic message body.

    Strings are sent verbatim; anything else (including None, which
    becomes an empty object) is serialized as canonical JSON.
    """
    if isinstance(payload, str):
        return payload
    return canonical_json({} if payload is None else payload)
