"""Per-metric trends over a window of audits."""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Sequence

from ..models import (
    AuditSnapshot,
    AuditSummary,
    EvolutionResult,
    EvolutionTrends,
    TrendData,
    TrendDirection,
    TrendPoint,
)
from ..utils import round_half_up
from .health import resolve_health_score
from .insights import generate_evolution_insights


logger = logging.getLogger(__name__)

EMPTY_SUMMARY = AuditSummary()


def calculate_trend(values: Sequence[int], dates: Sequence[datetime | None] = ()) -> TrendData:
    """Compare the first and last value of a series.

    The direction is the raw movement of the number: for violation counts
    "up" means more violations.
    """
    points = tuple(
        TrendPoint(date=dates[i] if i < len(dates) else None, value=value)
        for i, value in enumerate(values)
    )

    if len(values) < 2:
        return TrendData(
            direction=TrendDirection.STABLE,
            change_percent=0,
            change_absolute=0,
            values=points,
        )

    first = values[0]
    last = values[-1]
    change_absolute = last - first

    if first == 0:
        change_percent = 0 if last == 0 else 100
    else:
        change_percent = round_half_up(100 * (last - first) / first)

    if change_absolute > 0:
        direction = TrendDirection.UP
    elif change_absolute < 0:
        direction = TrendDirection.DOWN
    else:
        direction = TrendDirection.STABLE

    return TrendData(
        direction=direction,
        change_percent=change_percent,
        change_absolute=change_absolute,
        values=points,
    )


def calculate_evolution_trends(audits: Sequence[AuditSnapshot]) -> EvolutionTrends:
    """Trends for the health score and every violation count.

    Audits must already be ordered oldest first.
    """
    dates = [a.created_at for a in audits]
    summaries = [a.summary or EMPTY_SUMMARY for a in audits]

    return EvolutionTrends(
        health_score=calculate_trend([resolve_health_score(a) for a in audits], dates),
        critical=calculate_trend([s.critical for s in summaries], dates),
        serious=calculate_trend([s.serious for s in summaries], dates),
        moderate=calculate_trend([s.moderate for s in summaries], dates),
        minor=calculate_trend([s.minor for s in summaries], dates),
        total=calculate_trend([s.total for s in summaries], dates),
    )


def calculate_evolution(audits: Sequence[AuditSnapshot]) -> EvolutionResult:
    """Trends and insights for a project's audits, ordered oldest first.

    Filtering by period and sorting are up to the caller.
    """
    resolved = tuple(
        a if a.health_score is not None else replace(a, health_score=resolve_health_score(a))
        for a in audits
    )
    trends = calculate_evolution_trends(resolved)
    insights = generate_evolution_insights(resolved, trends)

    logger.debug(
        "Evolution over %d audits: health %s, total %s",
        len(resolved),
        trends.health_score.direction.value,
        trends.total.direction.value,
    )
    return EvolutionResult(audits=resolved, trends=trends, insights=tuple(insights))
