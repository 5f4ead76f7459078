"""Shared helper functions for CLI commands."""

import json
import re
from datetime import datetime, timezone
from typing import Any, Optional


def validate_input(value: str, field_name: str, max_length: int = 1000) -> str:
    """Validate and sanitize CLI inputs."""
    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string")

    if len(value) > max_length:
        raise ValueError(f"{field_name} too long (max {max_length} characters)")

    # Remove null bytes and control characters except newlines
    sanitized = re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]", "", value)

    return sanitized


def print_json(data: Any) -> None:
    """Print data as formatted JSON."""
    print(json.dumps(data, indent=2, default=str))


def parse_json_object(value: str, field_name: str) -> dict:
    """Parse a JSON object argument."""
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError as e:
        raise ValueError(f"{field_name} is not valid JSON: {e}")
    if not isinstance(parsed, dict):
        raise ValueError(f"{field_name} must be a JSON object")
    return parsed


def parse_scalar(value: Optional[str]) -> Any:
    """Interpret ``42``, ``true`` or ``"abc"`` as JSON, anything else as text."""
    if value is None:
        return None
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        return value


def format_timestamp(ms: Optional[int]) -> Optional[str]:
    """Render ms-since-epoch as an ISO timestamp."""
    if ms is None:
        return None
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).isoformat()
