"""Input validation for chronyx."""

import logging
from typing import Any, Dict, Optional

from chronyx.types import VALID_OPERATIONS

logger = logging.getLogger(__name__)

# Limits applied to queued writes
MAX_TABLE_NAME_LENGTH = 63  # Postgres identifier limit


def validate_backend_url(url: str) -> Optional[str]:
    """Check a project URL is safe to send the API key to.

    Only https is accepted for remote hosts; plain http is allowed for a
    local Supabase stack on localhost/127.0.0.1.

    Returns:
        The URL unchanged if valid, or ``None`` if rejected (with a
        warning logged).
    """
    if not url:
        return None
    from urllib.parse import urlparse

    parsed = urlparse(url)
    if parsed.scheme not in {"https", "http"}:
        logger.warning("Invalid backend url scheme; only http/https allowed.")
        return None
    if not parsed.netloc:
        logger.warning("Invalid backend url; missing host.")
        return None
    if parsed.scheme == "http" and (parsed.hostname or "") not in {"localhost", "127.0.0.1"}:
        logger.warning("Refusing non-local http backend url for security.")
        return None
    return url


def validate_operation(operation: str) -> str:
    """Normalize an operation name, raising ValueError for unknown ones."""
    if not isinstance(operation, str):
        raise ValueError("operation must be a string")
    normalized = operation.strip().lower()
    if normalized not in VALID_OPERATIONS:
        raise ValueError(
            f"Invalid operation '{operation}'. Must be one of: {', '.join(sorted(VALID_OPERATIONS))}"
        )
    return normalized


def validate_table_name(table: str) -> str:
    """Check a table name is a plain identifier safe to put in a URL path."""
    if not isinstance(table, str) or not table:
        raise ValueError("table must be a non-empty string")
    if len(table) > MAX_TABLE_NAME_LENGTH:
        raise ValueError(f"table too long (max {MAX_TABLE_NAME_LENGTH} characters)")
    if not all(c.isalnum() or c == "_" for c in table):
        raise ValueError(f"Invalid table name: {table!r}")
    return table


def validate_payload(data: Any) -> Dict[str, Any]:
    """Payloads are opaque, but must be JSON objects."""
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("data must be a mapping of field names to values")
    return data
