import hashlib
import json
from collections.abc import Iterable, Mapping
from typing import Any

REDACTED = "[REDACTED]"


def hash_payload(value: Any) -> str:
    """
    Return a stable SHA-256 hex digest for a value without exposing it.

    Used for secrets such as login passwords: two attempts with the same input
    produce the same digest, so logs can still correlate them.
    """

    if value is None:
        normalized = b"null"
    elif isinstance(value, bytes):
        normalized = value
    elif isinstance(value, str):
        normalized = value.encode("utf-8")
    else:
        normalized = json.dumps(value, sort_keys=True, default=str).encode("utf-8")

    return hashlib.sha256(normalized).hexdigest()


def redact_fields(payload: Mapping[str, Any], allowed_keys: Iterable[str]) -> dict[str, Any]:
    """Shallow copy of `payload` where every key outside `allowed_keys` is replaced by REDACTED."""

    allowed = set(allowed_keys)
    return {key: (value if key in allowed else REDACTED) for key, value in payload.items()}
