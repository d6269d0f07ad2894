"""a11y-audit: accessibility audit scoring, comparison and evolution."""

__version__ = "0.3.0"

from .engine import calculate_comparison, calculate_evolution, calculate_score
from .errors import A11yAuditError, InvalidInputError, SourceError

__all__ = [
    "__version__",
    "calculate_score",
    "calculate_comparison",
    "calculate_evolution",
    "A11yAuditError",
    "InvalidInputError",
    "SourceError",
]
