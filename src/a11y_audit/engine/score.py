"""Weighted accessibility score from passed/failed rule counts."""

from typing import Any, Mapping

from ..config import FAIL_WEIGHTS, PASS_WEIGHTS
from ..errors import InvalidInputError
from ..models import RuleCounts, ScoreData, Severity, SEVERITY_ORDER
from ..utils import round_half_up


def validate_weights(pass_weights: Mapping[Severity, int], fail_weights: Mapping[Severity, int]) -> None:
    """Reject weight tables where a failure costs less than a pass gains."""
    for severity in SEVERITY_ORDER:
        if severity not in pass_weights or severity not in fail_weights:
            raise InvalidInputError(f"Missing weight for {severity.value}")
        passed = pass_weights[severity]
        failed = fail_weights[severity]
        if passed < 0 or failed < 0:
            raise InvalidInputError(f"Negative weight for {severity.value}")
        if failed < passed:
            raise InvalidInputError(
                f"Fail weight for {severity.value} ({failed}) is below its pass weight ({passed})"
            )


def weighted_sum(counts: RuleCounts, weights: Mapping[Severity, int]) -> int:
    return sum(count * weights[severity] for severity, count in counts.items())


def calculate_score(
    passed_rules: RuleCounts | Mapping[Any, int] | None,
    failed_rules: RuleCounts | Mapping[Any, int] | None,
    pass_weights: Mapping[Severity, int] | None = None,
    fail_weights: Mapping[Severity, int] | None = None,
) -> ScoreData:
    """Calculate the 0-100 accessibility score.

    Score = weighted passed / (weighted passed + weighted failed) * 100,
    or 100 when no rule was evaluated.

    `score_impact` is each severity's share of the failure penalty in score
    points. The impacts are rounded independently, so their sum only
    approximates `score - 100`.

    Args:
        passed_rules: Passed rule count per severity
        failed_rules: Failed rule count per severity
        pass_weights: Override for PASS_WEIGHTS
        fail_weights: Override for FAIL_WEIGHTS

    Raises:
        InvalidInputError: negative counts, unknown severities or
            inconsistent weight tables
    """
    pass_weights = PASS_WEIGHTS if pass_weights is None else pass_weights
    fail_weights = FAIL_WEIGHTS if fail_weights is None else fail_weights
    validate_weights(pass_weights, fail_weights)

    passed = RuleCounts.coerce(passed_rules)
    failed = RuleCounts.coerce(failed_rules)

    weighted_passed = weighted_sum(passed, pass_weights)
    weighted_failed = weighted_sum(failed, fail_weights)
    total = weighted_passed + weighted_failed

    if total == 0:
        score = 100
        score_impact = {severity: 0 for severity in SEVERITY_ORDER}
    else:
        score = round_half_up(100 * weighted_passed / total)
        score_impact = {
            severity: -round_half_up(100 * count * fail_weights[severity] / total)
            for severity, count in failed.items()
        }

    return ScoreData(
        score=score,
        passed_rules=passed,
        failed_rules=failed,
        score_impact=score_impact,
        weighted_passed=weighted_passed,
        weighted_failed=weighted_failed,
    )
