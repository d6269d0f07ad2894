from __future__ import annotations

import pytest

from a11y_audit.engine.comparison import (
    OverallTrend,
    calculate_comparison,
    calculate_delta,
    calculate_violation_changes,
    classify_overall_trend,
    delta_tone,
    format_delta,
    has_overall_improvement,
    has_overall_regression,
)
from a11y_audit.engine.insights import InsightKey
from a11y_audit.models import (
    AuditSnapshot,
    ComparisonDelta,
    InsightType,
    Severity,
    ViolationChangeType,
)
from tests.factories import make_audit, make_summary, make_violation


def _bucket_of(violations, fingerprint):
    return [t for t in ViolationChangeType if any(d.fingerprint == fingerprint for d in violations.bucket(t))]


def test_fewer_occurrences_is_improved() -> None:
    changes = calculate_violation_changes(
        [make_violation("F1", occurrences=5)],
        [make_violation("F1", occurrences=10)],
    )

    assert len(changes.improved) == 1
    detail = changes.improved[0]
    assert detail.type is ViolationChangeType.IMPROVED
    assert detail.delta.occurrences == -5
    assert detail.current.occurrences == 5
    assert detail.previous.occurrences == 10


def test_new_and_fixed_fingerprints() -> None:
    changes = calculate_violation_changes(
        [make_violation("F2")],
        [make_violation("F3")],
    )

    assert [d.fingerprint for d in changes.new] == ["F2"]
    assert [d.fingerprint for d in changes.fixed] == ["F3"]
    assert changes.new[0].previous is None
    assert changes.fixed[0].current is None
    assert changes.new[0].delta.occurrences == 1
    assert changes.fixed[0].delta.occurrences == -1


def test_more_occurrences_is_worsened_and_equal_is_persistent() -> None:
    changes = calculate_violation_changes(
        [make_violation("up", occurrences=4, page_count=2), make_violation("same", occurrences=3, page_count=1)],
        [make_violation("up", occurrences=1, page_count=1), make_violation("same", occurrences=3, page_count=1)],
    )

    assert [d.fingerprint for d in changes.worsened] == ["up"]
    assert changes.worsened[0].delta.occurrences == 3
    assert changes.worsened[0].delta.page_count == 1
    assert [d.fingerprint for d in changes.persistent] == ["same"]
    assert changes.persistent[0].delta.occurrences == 0


def test_occurrences_decide_when_page_count_differs() -> None:
    changes = calculate_violation_changes(
        [make_violation("F1", occurrences=3, page_count=3)],
        [make_violation("F1", occurrences=3, page_count=1)],
    )

    assert [d.fingerprint for d in changes.persistent] == ["F1"]
    assert changes.persistent[0].delta.page_count == 2


def test_buckets_partition_the_fingerprint_union() -> None:
    current = [
        make_violation("a", occurrences=1),
        make_violation("b", occurrences=5),
        make_violation("c", occurrences=2),
        make_violation("d", occurrences=7),
    ]
    previous = [
        make_violation("b", occurrences=2),
        make_violation("c", occurrences=2),
        make_violation("d", occurrences=9),
        make_violation("e", occurrences=1),
        make_violation("f", occurrences=4),
    ]

    changes = calculate_violation_changes(current, previous)
    classified = [d.fingerprint for d in changes]

    assert sorted(classified) == sorted({v.fingerprint for v in current + previous})
    assert len(classified) == len(set(classified))
    assert changes.counts == {"new": 1, "fixed": 2, "persistent": 1, "worsened": 1, "improved": 1}
    for fingerprint in "abcdef":
        assert len(_bucket_of(changes, fingerprint)) == 1


def test_side_presence_matches_bucket() -> None:
    changes = calculate_violation_changes(
        [make_violation(f"n{i}") for i in range(3)] + [make_violation("both", occurrences=2)],
        [make_violation(f"f{i}") for i in range(3)] + [make_violation("both", occurrences=2)],
    )

    assert all(d.previous is None and d.current is not None for d in changes.new)
    assert all(d.current is None and d.previous is not None for d in changes.fixed)
    assert all(d.current is not None and d.previous is not None for d in changes.persistent)


def test_buckets_are_sorted_by_impact() -> None:
    changes = calculate_violation_changes(
        [
            make_violation("minor", impact=Severity.MINOR),
            make_violation("critical", impact=Severity.CRITICAL),
            make_violation("moderate", impact=Severity.MODERATE),
            make_violation("serious", impact=Severity.SERIOUS),
        ],
        [],
    )

    assert [d.fingerprint for d in changes.new] == ["critical", "serious", "moderate", "minor"]


def test_duplicate_fingerprint_keeps_last_row() -> None:
    changes = calculate_violation_changes(
        [make_violation("F1", occurrences=2), make_violation("F1", occurrences=8)],
        [make_violation("F1", occurrences=5)],
    )

    assert [d.fingerprint for d in changes.worsened] == ["F1"]
    assert changes.worsened[0].delta.occurrences == 3


def test_delta_is_current_minus_previous() -> None:
    current = make_audit("cur", health_score=85, summary=make_summary(critical=1, serious=2, moderate=3, minor=4),
                         pages=12, broken=1)
    previous = make_audit("prev", health_score=70, summary=make_summary(critical=3, serious=2, moderate=1, minor=4),
                          pages=10, broken=3)

    delta = calculate_delta(current, previous)

    assert delta == ComparisonDelta(
        health_score=15,
        critical=-2,
        serious=0,
        moderate=2,
        minor=0,
        total=0,
        pages_audited=2,
        broken_pages=-2,
    )


def test_delta_uses_estimated_score_for_old_audits() -> None:
    current = make_audit("cur", health_score=None, summary=make_summary())
    previous = make_audit("prev", health_score=None, summary=make_summary(critical=2, serious=3, moderate=5, minor=8))

    assert calculate_delta(current, previous).health_score == 100 - 80


def test_delta_treats_missing_summary_as_zero() -> None:
    current = make_audit("cur", summary=make_summary(serious=4))
    previous = AuditSnapshot(id="prev", created_at=current.created_at, health_score=80)

    delta = calculate_delta(current, previous)

    assert delta.serious == 4
    assert delta.total == 4


def test_comparison_without_baseline() -> None:
    current = make_audit("cur", health_score=None, summary=make_summary(critical=1))

    result = calculate_comparison(current, [make_violation("F1")], None, [make_violation("F2")])

    assert result.previous is None
    assert not result.has_baseline
    assert result.delta == ComparisonDelta()
    assert list(result.violations) == []
    assert result.current.health_score is not None
    assert [i.key for i in result.insights] == [InsightKey.FIRST_AUDIT]


def test_baseline_without_violations_is_not_missing_baseline() -> None:
    current = make_audit("cur", summary=make_summary(serious=1))
    previous = make_audit("prev", summary=make_summary())

    result = calculate_comparison(current, [make_violation("F1")], previous, [])

    assert result.has_baseline
    assert result.previous.id == "prev"
    assert [d.fingerprint for d in result.violations.new] == ["F1"]
    assert InsightKey.FIRST_AUDIT not in [i.key for i in result.insights]


def test_comparison_fills_missing_health_scores() -> None:
    current = make_audit("cur", health_score=None, summary=make_summary())
    previous = make_audit("prev", health_score=None, summary=make_summary(critical=2, serious=3, moderate=5, minor=8))

    result = calculate_comparison(current, [], previous, [])

    assert result.current.health_score == 100
    assert result.previous.health_score == 80
    assert result.delta.health_score == 20


def test_comparison_is_idempotent() -> None:
    current = make_audit("cur", summary=make_summary(critical=1, serious=1))
    previous = make_audit("prev", health_score=60, summary=make_summary(critical=2, serious=1))
    cur_violations = [make_violation("F1", occurrences=5), make_violation("F2")]
    prev_violations = [make_violation("F1", occurrences=10), make_violation("F3", impact=Severity.CRITICAL)]

    first = calculate_comparison(current, cur_violations, previous, prev_violations)
    second = calculate_comparison(current, cur_violations, previous, prev_violations)

    assert first == second


def test_overall_trend_classification() -> None:
    assert has_overall_improvement(ComparisonDelta(health_score=1))
    assert has_overall_improvement(ComparisonDelta(total=-3, critical=0))
    assert not has_overall_improvement(ComparisonDelta(total=-3, critical=1))

    assert has_overall_regression(ComparisonDelta(health_score=-6))
    assert has_overall_regression(ComparisonDelta(critical=1))
    assert has_overall_regression(ComparisonDelta(total=11))
    assert not has_overall_regression(ComparisonDelta(health_score=-5, total=10))

    assert classify_overall_trend(ComparisonDelta(health_score=3)) is OverallTrend.IMPROVING
    assert classify_overall_trend(ComparisonDelta(critical=2, total=2)) is OverallTrend.WORSENING
    assert classify_overall_trend(ComparisonDelta()) is OverallTrend.STABLE


@pytest.mark.parametrize(
    ("value", "kind", "text"),
    [(0, "violations", "0"), (3, "violations", "+3"), (-2, "violations", "-2"), (5, "score", "+5%"), (-1, "score", "-1%")],
)
def test_format_delta(value: int, kind: str, text: str) -> None:
    assert format_delta(value, kind) == text


def test_delta_tone_keeps_sign_asymmetry() -> None:
    assert delta_tone(-3, "violations") == "positive"
    assert delta_tone(3, "violations") == "negative"
    assert delta_tone(3, "score") == "positive"
    assert delta_tone(-3, "score") == "negative"
    assert delta_tone(10, "pages") == "neutral"
    assert delta_tone(0, "score") == "neutral"


def test_result_insights_are_ordered() -> None:
    current = make_audit("cur", health_score=60, summary=make_summary(critical=3, serious=1))
    previous = make_audit("prev", health_score=80, summary=make_summary(critical=1, serious=2))

    result = calculate_comparison(
        current,
        [make_violation("F1", impact=Severity.CRITICAL)],
        previous,
        [make_violation("F2", impact=Severity.SERIOUS)],
    )

    priorities = [0 if i.type in (InsightType.WARNING, InsightType.NEGATIVE) else
                  1 if i.type is InsightType.POSITIVE else 2 for i in result.insights]
    assert priorities == sorted(priorities)
    assert result.insights[0].type in (InsightType.WARNING, InsightType.NEGATIVE)
