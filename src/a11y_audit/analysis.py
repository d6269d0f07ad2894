"""Fetch audits from a source and run the engines on them."""

import logging
from datetime import datetime
from typing import Sequence

from .config import DEFAULT_AUDIT_LIMIT, DEFAULT_PERIOD, MAX_AUDIT_LIMIT
from .engine import calculate_comparison, calculate_evolution
from .errors import AuditNotFoundError, InvalidInputError
from .models import AuditSnapshot, AvailableAudit, ComparisonResult, EvolutionResult
from .sources import AuditSource, parse_period, window_start


logger = logging.getLogger(__name__)


def select_baseline_id(
    current: AuditSnapshot,
    available: Sequence[AvailableAudit],
    compare_with: str | None = None,
) -> str | None:
    """Pick the audit to compare against.

    An explicit id wins, then the audit's recorded predecessor, then the
    most recent available audit.
    """
    if compare_with:
        return compare_with
    if current.previous_audit_id:
        return current.previous_audit_id
    if available:
        return available[0].id
    return None


def compare_audit(
    source: AuditSource,
    audit_id: str,
    compare_with: str | None = None,
) -> ComparisonResult:
    """Compare an audit with its baseline.

    Args:
        source: Where audits and violations are read from
        audit_id: The audit to compare
        compare_with: Baseline audit id (default: previous or latest audit)

    Returns:
        ComparisonResult; `previous` is None when no baseline exists

    Raises:
        InvalidInputError: compare_with is the audit itself
    """
    if compare_with == audit_id:
        raise InvalidInputError(f"Cannot compare audit {audit_id} with itself")

    current = source.get_audit(audit_id)
    violations = source.get_violations(audit_id)

    available = []
    if current.project_id:
        available = [
            AvailableAudit(id=a.id, created_at=a.created_at, summary=a.summary, health_score=a.health_score)
            for a in source.list_completed_audits(
                current.project_id, limit=DEFAULT_AUDIT_LIMIT, exclude_id=current.id
            )
        ]

    baseline_id = select_baseline_id(current, available, compare_with)
    if baseline_id is None:
        return calculate_comparison(current, violations, None, available_audits=available)

    try:
        previous = source.get_audit(baseline_id)
    except AuditNotFoundError:
        logger.warning("Baseline audit %s not found, comparing without baseline", baseline_id)
        return calculate_comparison(current, violations, None, available_audits=available)

    logger.info("Comparing audit %s with %s", current.id, previous.id)
    return calculate_comparison(
        current,
        violations,
        previous,
        source.get_violations(previous.id),
        available_audits=available,
    )


def project_evolution(
    source: AuditSource,
    project_id: str,
    period: str = DEFAULT_PERIOD,
    limit: int = DEFAULT_AUDIT_LIMIT,
    now: datetime | None = None,
) -> EvolutionResult:
    """Trends and insights for a project's completed audits in a window."""
    period = parse_period(period)
    limit = max(1, min(limit, MAX_AUDIT_LIMIT))

    newest_first = source.list_completed_audits(
        project_id, since=window_start(period, now), limit=limit
    )
    logger.info("Evolution of project %s over %s: %d audits", project_id, period, len(newest_first))
    return calculate_evolution(list(reversed(newest_first)))
