"""
JSON serialization helpers for hydronet-mcp.

Calculation results may contain inf or nan (for example a node whose pressure
diverged), which are not valid JSON per RFC 7159. These helpers replace them
with null and flatten pydantic models before serialization.
"""

import json
import math
from enum import Enum
from typing import Any, List

from pydantic import BaseModel, ValidationError


def sanitize_for_json(obj: Any) -> Any:
    """
    Recursively sanitize an object for JSON serialization.

    Replaces inf and nan float values with None, which serializes to null.
    Pydantic models are dumped to plain dictionaries first.

    Examples:
        >>> sanitize_for_json({'value': float('inf')})
        {'value': None}
        >>> sanitize_for_json([1.0, float('nan'), 3.0])
        [1.0, None, 3.0]
    """
    if obj is None or isinstance(obj, (bool, int, str)):
        return obj

    if isinstance(obj, float):
        if math.isnan(obj) or math.isinf(obj):
            return None
        return obj

    if isinstance(obj, Enum):
        return obj.value

    if isinstance(obj, BaseModel):
        return sanitize_for_json(obj.model_dump(mode="python"))

    if isinstance(obj, dict):
        return {k: sanitize_for_json(v) for k, v in obj.items()}

    if isinstance(obj, (list, tuple)):
        return [sanitize_for_json(v) for v in obj]

    return str(obj)


def safe_json_dumps(obj: Any, **kwargs) -> str:
    """
    Safely serialize an object to JSON string.

    Examples:
        >>> safe_json_dumps({'value': float('inf')})
        '{"value": null}'
    """
    return json.dumps(sanitize_for_json(obj), **kwargs)


def validation_messages(error: ValidationError) -> List[str]:
    """One readable line per pydantic validation error."""
    messages = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ()))
        messages.append(f"{location}: {item.get('msg')}" if location else str(item.get("msg")))
    return messages
