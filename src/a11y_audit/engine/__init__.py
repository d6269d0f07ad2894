"""Scoring, comparison and evolution engines."""

from .score import calculate_score
from .health import calculate_health_score, resolve_health_score
from .comparison import calculate_comparison
from .trends import calculate_evolution
from .insights import generate_comparison_insights, generate_evolution_insights

__all__ = [
    "calculate_score",
    "calculate_health_score",
    "resolve_health_score",
    "calculate_comparison",
    "calculate_evolution",
    "generate_comparison_insights",
    "generate_evolution_insights",
]
