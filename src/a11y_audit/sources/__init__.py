"""Sources of audit and violation rows."""

from .providers import AuditSource, JsonFileSource, SupabaseSource, get_configured_source
from .periods import parse_period, window_start

__all__ = [
    "AuditSource",
    "JsonFileSource",
    "SupabaseSource",
    "get_configured_source",
    "parse_period",
    "window_start",
]
