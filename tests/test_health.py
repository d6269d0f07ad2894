from __future__ import annotations

import pytest

from a11y_audit.engine.health import (
    calculate_health_score,
    estimate_rule_counts,
    get_health_label,
    resolve_health_score,
)
from a11y_audit.models import AuditSummary, RuleCounts
from tests.factories import make_audit, make_summary


def test_estimate_spreads_passed_rules_over_severities() -> None:
    passed, failed = estimate_rule_counts(100, RuleCounts())

    assert passed == RuleCounts(critical=30, serious=40, moderate=20, minor=10)
    assert failed == RuleCounts()


def test_estimate_never_goes_negative() -> None:
    failed = RuleCounts(critical=80, serious=80)
    passed, _ = estimate_rule_counts(100, failed)

    assert passed == RuleCounts()


def test_missing_or_empty_summary_is_healthy() -> None:
    assert calculate_health_score(None) == 100
    assert calculate_health_score(make_summary()) == 100


def test_health_score_from_summary() -> None:
    summary = make_summary(critical=2, serious=3, moderate=5, minor=8)

    assert calculate_health_score(summary) == 80


def test_patterns_take_precedence_over_occurrence_totals() -> None:
    by_occurrences = AuditSummary(critical=50, total=50)
    by_patterns = AuditSummary(critical=50, total=50, patterns=RuleCounts(critical=1))

    assert calculate_health_score(by_occurrences) == 24
    assert calculate_health_score(by_patterns) == 97


def test_resolve_prefers_stored_score() -> None:
    audit = make_audit(health_score=42, summary=make_summary(critical=2, serious=3, moderate=5, minor=8))

    assert resolve_health_score(audit) == 42


def test_resolve_falls_back_to_summary() -> None:
    audit = make_audit(health_score=None, summary=make_summary(critical=2, serious=3, moderate=5, minor=8))

    assert resolve_health_score(audit) == 80


@pytest.mark.parametrize(
    ("score", "label"),
    [(100, "excellent"), (90, "excellent"), (89, "good"), (70, "good"), (50, "fair"), (49, "critical"), (0, "critical")],
)
def test_health_labels(score: int, label: str) -> None:
    assert get_health_label(score) == label


def test_partial_patterns_fall_back_to_occurrence_counts() -> None:
    summary = AuditSummary.from_dict({"serious": 20, "total": 20, "patterns": {"critical": 0}})

    assert summary.patterns == RuleCounts(critical=0, serious=20, moderate=0, minor=0)
    assert calculate_health_score(summary) == 64
    assert calculate_health_score(summary) == calculate_health_score(make_summary(serious=20))


def test_listed_patterns_replace_occurrence_counts() -> None:
    summary = AuditSummary.from_dict({"serious": 20, "minor": 4, "total": 24, "patterns": {"serious": 2}})

    assert summary.patterns == RuleCounts(critical=0, serious=2, moderate=0, minor=4)
