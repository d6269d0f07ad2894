"""Qualitative insights for comparisons and evolution windows.

Insights only carry a template key and its parameters; the text is left to
the presentation layer. Lists are ordered so that warnings and negative
findings come first, then positive ones, then neutral summaries.
"""

from typing import Sequence

from ..config import (
    FOCUS_CRITICAL_MAX,
    GREAT_PROGRESS_TOTAL,
    MANY_VIOLATIONS_THRESHOLD,
    MAX_COMPARISON_INSIGHTS,
    MAX_EVOLUTION_INSIGHTS,
    REGRESSION_TOTAL,
    SCORE_CHANGE_THRESHOLD,
    SPIKE_THRESHOLD,
    STABLE_SCORE_BAND,
    STABLE_TOTAL_BAND,
    TREND_PERCENT_THRESHOLD,
)
from ..models import (
    AuditSnapshot,
    AuditSummary,
    ComparisonDelta,
    ComparisonViolations,
    EvolutionTrends,
    Insight,
    InsightType,
    SEVERITY_ORDER,
    Severity,
    TrendDirection,
)


class InsightKey:
    """Template keys understood by the presentation layer."""
    # Comparison
    CRITICAL_FIXED = "criticalFixed"
    SERIOUS_FIXED = "seriousFixed"
    NEW_CRITICAL = "newCritical"
    NEW_SERIOUS = "newSerious"
    CRITICAL_INCREASED = "criticalIncreased"
    SCORE_IMPROVED = "scoreImproved"
    SCORE_DECREASED = "scoreDecreased"
    FIXED_WITHOUT_NEW = "fixedWithoutNew"
    MANY_FIXED = "manyFixed"
    MANY_NEW = "manyNew"
    WORSENED_OUTPACES_FIXED = "worsenedOutpacesFixed"
    FOCUS_ON = "focusOn"
    IMPROVING = "improving"
    GREAT_PROGRESS = "greatProgress"
    SIGNIFICANT_REGRESSION = "significantRegression"
    NO_VIOLATIONS = "noViolations"
    FIRST_AUDIT = "firstAudit"
    STABLE = "stable"

    # Evolution
    CONSISTENT_IMPROVEMENT = "consistentImprovement"
    CONSISTENT_WORSENING = "consistentWorsening"
    CRITICAL_TREND = "criticalTrend"
    RECENT_SPIKE = "recentSpike"
    RECENT_DROP = "recentDrop"


INSIGHT_PRIORITY = {
    InsightType.WARNING: 0,
    InsightType.NEGATIVE: 0,
    InsightType.POSITIVE: 1,
    InsightType.NEUTRAL: 2,
}


def order_insights(insights: Sequence[Insight], limit: int | None = None) -> list[Insight]:
    """Sort by priority group, keeping generation order within a group."""
    ordered = sorted(insights, key=lambda i: INSIGHT_PRIORITY[i.type])
    return ordered if limit is None else ordered[:limit]


def first_audit_insight() -> Insight:
    return Insight(type=InsightType.NEUTRAL, key=InsightKey.FIRST_AUDIT, params={})


def generate_comparison_insights(
    delta: ComparisonDelta,
    violations: ComparisonViolations,
    current_summary: AuditSummary | None,
) -> list[Insight]:
    """Insights for an audit compared with its baseline."""
    insights: list[Insight] = []

    if current_summary is None:
        return insights

    def add(type_: InsightType, key: str, **params):
        insights.append(Insight(type=type_, key=key, params=params))

    fixed_by = _count_by_impact(d.previous.impact for d in violations.fixed)
    new_by = _count_by_impact(d.current.impact for d in violations.new)
    critical_fixed = fixed_by[Severity.CRITICAL]
    serious_fixed = fixed_by[Severity.SERIOUS]
    new_critical = new_by[Severity.CRITICAL]
    new_serious = new_by[Severity.SERIOUS]
    fixed_count = len(violations.fixed)
    new_count = len(violations.new)

    if critical_fixed > 0:
        add(InsightType.POSITIVE, InsightKey.CRITICAL_FIXED, count=critical_fixed)
    elif serious_fixed > 0:
        add(InsightType.POSITIVE, InsightKey.SERIOUS_FIXED, count=serious_fixed)

    if new_critical > 0:
        add(InsightType.NEGATIVE, InsightKey.NEW_CRITICAL, count=new_critical)
    elif new_serious > 0:
        add(InsightType.NEGATIVE, InsightKey.NEW_SERIOUS, count=new_serious)

    if delta.critical > 0:
        add(InsightType.WARNING, InsightKey.CRITICAL_INCREASED, count=delta.critical)

    if delta.health_score >= SCORE_CHANGE_THRESHOLD:
        add(InsightType.POSITIVE, InsightKey.SCORE_IMPROVED, percent=delta.health_score)
    elif delta.health_score <= -SCORE_CHANGE_THRESHOLD:
        add(InsightType.NEGATIVE, InsightKey.SCORE_DECREASED, percent=abs(delta.health_score))

    if fixed_count > 0 and new_count == 0:
        add(InsightType.POSITIVE, InsightKey.FIXED_WITHOUT_NEW, count=fixed_count)
    elif fixed_count >= MANY_VIOLATIONS_THRESHOLD and critical_fixed == 0 and serious_fixed == 0:
        add(InsightType.POSITIVE, InsightKey.MANY_FIXED, count=fixed_count)

    if new_count >= MANY_VIOLATIONS_THRESHOLD and new_critical == 0 and new_serious == 0:
        add(InsightType.WARNING, InsightKey.MANY_NEW, count=new_count)

    if len(violations.worsened) > fixed_count:
        add(
            InsightType.NEGATIVE,
            InsightKey.WORSENED_OUTPACES_FIXED,
            worsened=len(violations.worsened),
            fixed=fixed_count,
        )

    critical_remaining = current_summary.critical
    if 0 < critical_remaining <= FOCUS_CRITICAL_MAX and delta.critical <= 0:
        add(InsightType.WARNING, InsightKey.FOCUS_ON, count=critical_remaining)

    if delta.total < 0 and all(delta.get(s) <= 0 for s in SEVERITY_ORDER):
        add(InsightType.POSITIVE, InsightKey.IMPROVING, count=abs(delta.total))

    if delta.total <= GREAT_PROGRESS_TOTAL and delta.health_score > 0 and new_critical == 0:
        add(InsightType.POSITIVE, InsightKey.GREAT_PROGRESS)

    if delta.total >= REGRESSION_TOTAL and delta.health_score < -SCORE_CHANGE_THRESHOLD:
        add(InsightType.NEGATIVE, InsightKey.SIGNIFICANT_REGRESSION, count=delta.total)

    if current_summary.total == 0:
        add(InsightType.POSITIVE, InsightKey.NO_VIOLATIONS)

    if (
        not insights
        and abs(delta.total) < STABLE_TOTAL_BAND
        and abs(delta.health_score) < STABLE_SCORE_BAND
    ):
        add(InsightType.NEUTRAL, InsightKey.STABLE)

    return order_insights(insights, MAX_COMPARISON_INSIGHTS)


def generate_evolution_insights(
    audits: Sequence[AuditSnapshot],
    trends: EvolutionTrends,
) -> list[Insight]:
    """Insights for a window of audits ordered oldest first."""
    if len(audits) < 2:
        return [first_audit_insight()]

    insights: list[Insight] = []

    health = trends.health_score
    if health.direction is TrendDirection.UP and health.change_percent >= TREND_PERCENT_THRESHOLD:
        insights.append(Insight(
            type=InsightType.POSITIVE,
            key=InsightKey.CONSISTENT_IMPROVEMENT,
            params={"percent": health.change_percent},
        ))
    elif health.direction is TrendDirection.DOWN and health.change_percent <= -TREND_PERCENT_THRESHOLD:
        insights.append(Insight(
            type=InsightType.NEGATIVE,
            key=InsightKey.CONSISTENT_WORSENING,
            params={"percent": abs(health.change_percent)},
        ))

    # More critical violations is bad news even though the trend goes "up".
    critical = trends.critical
    if critical.direction is TrendDirection.UP:
        insights.append(Insight(
            type=InsightType.NEGATIVE,
            key=InsightKey.CRITICAL_TREND,
            params={"count": critical.change_absolute, "direction": "up"},
        ))
    elif critical.direction is TrendDirection.DOWN:
        insights.append(Insight(
            type=InsightType.POSITIVE,
            key=InsightKey.CRITICAL_TREND,
            params={"count": abs(critical.change_absolute), "direction": "down"},
        ))

    latest, before = audits[-1], audits[-2]
    if latest.summary is not None and before.summary is not None:
        diff = latest.summary.total - before.summary.total
        if diff > SPIKE_THRESHOLD:
            insights.append(Insight(
                type=InsightType.WARNING,
                key=InsightKey.RECENT_SPIKE,
                params={"count": diff},
            ))
        elif diff < -SPIKE_THRESHOLD:
            insights.append(Insight(
                type=InsightType.POSITIVE,
                key=InsightKey.RECENT_DROP,
                params={"count": abs(diff)},
            ))

    if not insights:
        insights.append(Insight(
            type=InsightType.NEUTRAL,
            key=InsightKey.STABLE,
            params={},
        ))

    return order_insights(insights, MAX_EVOLUTION_INSIGHTS)


def _count_by_impact(impacts) -> dict[Severity, int]:
    counts = {severity: 0 for severity in SEVERITY_ORDER}
    for impact in impacts:
        counts[impact] += 1
    return counts
