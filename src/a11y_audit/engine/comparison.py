"""Compare the violations of two audits."""

import logging
from dataclasses import replace
from enum import Enum
from typing import Iterable

from ..config import REGRESSION_SCORE_DROP, REGRESSION_TOTAL
from ..models import (
    AggregatedViolation,
    AuditSnapshot,
    AuditSummary,
    AvailableAudit,
    ComparisonDelta,
    ComparisonResult,
    ComparisonViolations,
    ViolationChangeDetail,
    ViolationChangeType,
    ViolationDelta,
    ViolationSide,
)
from .health import resolve_health_score
from .insights import first_audit_insight, generate_comparison_insights


logger = logging.getLogger(__name__)

EMPTY_SUMMARY = AuditSummary()


class OverallTrend(Enum):
    IMPROVING = "improving"
    WORSENING = "worsening"
    STABLE = "stable"


def calculate_comparison(
    current_audit: AuditSnapshot,
    current_violations: Iterable[AggregatedViolation],
    previous_audit: AuditSnapshot | None,
    previous_violations: Iterable[AggregatedViolation] = (),
    available_audits: Iterable[AvailableAudit] = (),
) -> ComparisonResult:
    """Compare an audit with its baseline.

    Without a baseline the result has `previous=None`, a zero delta, empty
    buckets and the first-audit insight.
    """
    current = _with_health_score(current_audit)
    available = tuple(available_audits)

    if previous_audit is None:
        logger.debug("No baseline for audit %s", current.id)
        return ComparisonResult(
            current=current,
            previous=None,
            delta=ComparisonDelta(),
            violations=ComparisonViolations(),
            available_audits=available,
            insights=(first_audit_insight(),),
        )

    previous = _with_health_score(previous_audit)
    delta = calculate_delta(current, previous)
    violations = calculate_violation_changes(current_violations, previous_violations)
    insights = generate_comparison_insights(delta, violations, current.summary)

    return ComparisonResult(
        current=current,
        previous=previous,
        delta=delta,
        violations=violations,
        available_audits=available,
        insights=tuple(insights),
    )


def calculate_delta(current_audit: AuditSnapshot, previous_audit: AuditSnapshot) -> ComparisonDelta:
    """Differences between two audits, current minus previous."""
    current = current_audit.summary or EMPTY_SUMMARY
    previous = previous_audit.summary or EMPTY_SUMMARY

    return ComparisonDelta(
        health_score=resolve_health_score(current_audit) - resolve_health_score(previous_audit),
        critical=current.critical - previous.critical,
        serious=current.serious - previous.serious,
        moderate=current.moderate - previous.moderate,
        minor=current.minor - previous.minor,
        total=current.total - previous.total,
        pages_audited=current_audit.pages_audited - previous_audit.pages_audited,
        broken_pages=current_audit.broken_pages_count - previous_audit.broken_pages_count,
    )


def calculate_violation_changes(
    current_violations: Iterable[AggregatedViolation],
    previous_violations: Iterable[AggregatedViolation],
) -> ComparisonViolations:
    """Classify every fingerprint of either audit into one lifecycle bucket.

    Violations present in both audits are compared by occurrences.
    """
    current_map = _index_by_fingerprint(current_violations, "current")
    previous_map = _index_by_fingerprint(previous_violations, "previous")

    buckets: dict[ViolationChangeType, list[ViolationChangeDetail]] = {
        change_type: [] for change_type in ViolationChangeType
    }

    for fingerprint in list(current_map) + [fp for fp in previous_map if fp not in current_map]:
        current = current_map.get(fingerprint)
        previous = previous_map.get(fingerprint)

        if previous is None:
            change_type = ViolationChangeType.NEW
        elif current is None:
            change_type = ViolationChangeType.FIXED
        elif current.occurrences > previous.occurrences:
            change_type = ViolationChangeType.WORSENED
        elif current.occurrences < previous.occurrences:
            change_type = ViolationChangeType.IMPROVED
        else:
            change_type = ViolationChangeType.PERSISTENT

        buckets[change_type].append(_change_detail(change_type, current, previous))

    for details in buckets.values():
        details.sort(key=lambda d: d.impact.rank)

    result = ComparisonViolations(**{t.value: tuple(d) for t, d in buckets.items()})
    logger.debug("Violation changes: %s", result.counts)
    return result


def _index_by_fingerprint(violations: Iterable[AggregatedViolation], side: str) -> dict[str, AggregatedViolation]:
    index: dict[str, AggregatedViolation] = {}
    for violation in violations:
        if violation.fingerprint in index:
            logger.warning("Duplicate fingerprint %s in %s audit, keeping last", violation.fingerprint, side)
        index[violation.fingerprint] = violation
    return index


def _change_detail(
    change_type: ViolationChangeType,
    current: AggregatedViolation | None,
    previous: AggregatedViolation | None,
) -> ViolationChangeDetail:
    source = current or previous

    return ViolationChangeDetail(
        type=change_type,
        rule_id=source.rule_id,
        fingerprint=source.fingerprint,
        help=source.help,
        description=source.description,
        current=_side(current),
        previous=_side(previous),
        delta=ViolationDelta(
            occurrences=(current.occurrences if current else 0) - (previous.occurrences if previous else 0),
            page_count=(current.page_count if current else 0) - (previous.page_count if previous else 0),
        ),
    )


def _side(violation: AggregatedViolation | None) -> ViolationSide | None:
    if violation is None:
        return None
    return ViolationSide(
        occurrences=violation.occurrences,
        page_count=violation.page_count,
        impact=violation.impact,
    )


def _with_health_score(audit: AuditSnapshot) -> AuditSnapshot:
    # Audits stored before scoring existed get the summary estimate.
    if audit.health_score is not None:
        return audit
    return replace(audit, health_score=resolve_health_score(audit))


def has_overall_improvement(delta: ComparisonDelta) -> bool:
    """Health went up, or fewer violations without new critical ones."""
    return delta.health_score > 0 or (delta.total < 0 and delta.critical <= 0)


def has_overall_regression(delta: ComparisonDelta) -> bool:
    return (
        delta.health_score < REGRESSION_SCORE_DROP
        or delta.critical > 0
        or delta.total > REGRESSION_TOTAL
    )


def classify_overall_trend(delta: ComparisonDelta) -> OverallTrend:
    if has_overall_improvement(delta):
        return OverallTrend.IMPROVING
    if has_overall_regression(delta):
        return OverallTrend.WORSENING
    return OverallTrend.STABLE


def format_delta(value: int, kind: str = "violations") -> str:
    """Format a delta for display: "0", "+3", "-2", "+5%" for scores."""
    if value == 0:
        return "0"
    prefix = "+" if value > 0 else ""
    suffix = "%" if kind == "score" else ""
    return f"{prefix}{value}{suffix}"


def delta_tone(value: int, kind: str = "violations") -> str:
    """Whether a delta is good news.

    Fewer violations is positive, a higher score is positive, page counts
    are always neutral.
    """
    if value == 0 or kind == "pages":
        return "neutral"
    if kind == "score":
        return "positive" if value > 0 else "negative"
    return "positive" if value < 0 else "negative"
