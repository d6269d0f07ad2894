"""Scoring weights, insight thresholds and runtime settings."""

import os
from dataclasses import dataclass

from .models import Severity


# Weight of each passed rule in the score numerator and denominator.
PASS_WEIGHTS: dict[Severity, int] = {
    Severity.CRITICAL: 10,
    Severity.SERIOUS: 6,
    Severity.MODERATE: 4,
    Severity.MINOR: 1,
}

# Failures weigh at least as much as passes of the same severity.
FAIL_WEIGHTS: dict[Severity, int] = {
    Severity.CRITICAL: 20,
    Severity.SERIOUS: 14,
    Severity.MODERATE: 6,
    Severity.MINOR: 2,
}

# axe-core runs roughly this many rules per page; used to estimate passes
# for audits stored without a health score.
TOTAL_RULES_ESTIMATE = 100
PASSED_RULE_SHARE: dict[Severity, float] = {
    Severity.CRITICAL: 0.3,
    Severity.SERIOUS: 0.4,
    Severity.MODERATE: 0.2,
}

HEALTH_LABEL_THRESHOLDS = (
    (90, "excellent"),
    (70, "good"),
    (50, "fair"),
)
HEALTH_LABEL_FLOOR = "critical"

# Comparison insights
SCORE_CHANGE_THRESHOLD = 5
MANY_VIOLATIONS_THRESHOLD = 5
FOCUS_CRITICAL_MAX = 5
GREAT_PROGRESS_TOTAL = -10
REGRESSION_TOTAL = 10
STABLE_TOTAL_BAND = 3
STABLE_SCORE_BAND = 3
MAX_COMPARISON_INSIGHTS = 4

# Overall trend classification
REGRESSION_SCORE_DROP = -5

# Evolution insights
TREND_PERCENT_THRESHOLD = 10
SPIKE_THRESHOLD = 10
MAX_EVOLUTION_INSIGHTS = 3

# Evolution windows
PERIOD_DAYS: dict[str, int | None] = {
    "7d": 7,
    "30d": 30,
    "90d": 90,
    "1y": 365,
    "all": None,
}
DEFAULT_PERIOD = "30d"
DEFAULT_AUDIT_LIMIT = 20
MAX_AUDIT_LIMIT = 50

DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class Settings:
    """Connection settings for the hosted audit database."""
    supabase_url: str | None
    supabase_key: str | None
    timeout: float = DEFAULT_TIMEOUT

    @property
    def has_supabase(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)


def load_settings() -> Settings:
    """Read settings from the environment."""
    timeout = os.getenv("A11Y_AUDIT_TIMEOUT")
    try:
        timeout_value = float(timeout) if timeout else DEFAULT_TIMEOUT
    except ValueError:
        timeout_value = DEFAULT_TIMEOUT

    return Settings(
        supabase_url=os.getenv("SUPABASE_URL"),
        supabase_key=os.getenv("SUPABASE_SERVICE_ROLE_KEY") or os.getenv("SUPABASE_KEY"),
        timeout=timeout_value,
    )
