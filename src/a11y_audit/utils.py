"""Small helpers shared by the engines, sources and CLI."""

import dataclasses
import math
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from .errors import InvalidInputError


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from negative infinity.

    Matches the dashboard's rounding, unlike Python's banker's rounding.
    """
    return int(math.floor(value + 0.5))


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp as stored by Postgres/Supabase."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise InvalidInputError(f"Invalid timestamp: {value!r}") from None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def to_jsonable(value: Any) -> Any:
    """Convert result records into plain JSON-serializable structures."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            f.name: to_jsonable(getattr(value, f.name))
            for f in dataclasses.fields(value)
        }
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {
            (k.value if isinstance(k, Enum) else k): to_jsonable(v)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value
