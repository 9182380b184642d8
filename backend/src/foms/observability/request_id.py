"""Correlation ID management.

HTTP requests carry the X-Request-ID of the caller (or a generated one);
background purge passes get their own id so every log line of one pass can
be grouped.
"""

import uuid
from contextvars import ContextVar
from typing import Optional

# Context variable for request_id (async-safe)
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def generate_request_id(prefix: Optional[str] = None) -> str:
    """Generate a new unique correlation ID.

    Args:
        prefix: Optional label, e.g. "purge" -> "purge-<uuid4>"

    Returns:
        str: UUID v4, prefixed when a prefix is given
    """
    value = str(uuid.uuid4())
    return f"{prefix}-{value}" if prefix else value


def get_request_id() -> str:
    """Get current correlation ID from context.

    Returns:
        str: Current correlation ID or "no-request-id" if not set
    """
    return request_id_var.get() or "no-request-id"


def set_request_id(request_id: Optional[str]) -> None:
    """Set correlation ID in current context.

    Args:
        request_id: Correlation ID to set (None clears it)
    """
    request_id_var.set(request_id)
