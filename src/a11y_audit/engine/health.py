"""Health score for audits stored without one."""

from ..config import (
    HEALTH_LABEL_FLOOR,
    HEALTH_LABEL_THRESHOLDS,
    PASSED_RULE_SHARE,
    TOTAL_RULES_ESTIMATE,
)
from ..models import AuditSnapshot, AuditSummary, RuleCounts, Severity
from ..utils import round_half_up
from .score import calculate_score


def estimate_rule_counts(total_rules_run: int, failed_by_impact: RuleCounts) -> tuple[RuleCounts, RuleCounts]:
    """Estimate passed rules per severity from the failures of an audit.

    axe-core only reports violations, so passes are assumed to be every
    other rule run, spread over severities by PASSED_RULE_SHARE with the
    remainder going to minor.
    """
    total_passed = max(0, total_rules_run - failed_by_impact.total)

    critical = round_half_up(total_passed * PASSED_RULE_SHARE[Severity.CRITICAL])
    serious = round_half_up(total_passed * PASSED_RULE_SHARE[Severity.SERIOUS])
    moderate = round_half_up(total_passed * PASSED_RULE_SHARE[Severity.MODERATE])
    minor = max(0, total_passed - critical - serious - moderate)

    passed = RuleCounts(critical=critical, serious=serious, moderate=moderate, minor=minor)
    return passed, failed_by_impact


def calculate_health_score(summary: AuditSummary | None) -> int:
    """Score an audit from its stored violation summary.

    Unique patterns are used when present: one template fix resolves all of
    a pattern's occurrences, so patterns reflect the real fixing effort.
    """
    if summary is None or summary.total == 0:
        return 100

    failed = summary.patterns if summary.patterns is not None else summary.counts
    passed, failed = estimate_rule_counts(TOTAL_RULES_ESTIMATE, failed)
    return calculate_score(passed, failed).score


def resolve_health_score(audit: AuditSnapshot) -> int:
    """Stored health score, or the estimate from the audit's summary."""
    if audit.health_score is not None:
        return audit.health_score
    return calculate_health_score(audit.summary)


def get_health_label(score: int) -> str:
    for threshold, label in HEALTH_LABEL_THRESHOLDS:
        if score >= threshold:
            return label
    return HEALTH_LABEL_FLOOR
