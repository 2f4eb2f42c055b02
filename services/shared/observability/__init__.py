"""
Observability helpers for the dashboard service: JSON logging, request-id
propagation, optional tracing and log-safe hashing/redaction.
"""

from .privacy import hash_payload, redact_fields
from .telemetry import (
    CORRELATION_ID_HEADER,
    bind_request_context,
    current_request_id,
    ensure_request_id,
    reset_request_context,
    setup_telemetry,
)

__all__ = [
    "hash_payload",
    "redact_fields",
    "CORRELATION_ID_HEADER",
    "bind_request_context",
    "current_request_id",
    "ensure_request_id",
    "reset_request_context",
    "setup_telemetry",
]
