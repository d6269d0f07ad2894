"""Data models for audit scores, comparisons and evolution."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Iterator, Mapping

from .errors import InvalidInputError
from .utils import parse_timestamp, round_half_up


class Severity(Enum):
    """axe-core impact level of a rule."""
    CRITICAL = "critical"
    SERIOUS = "serious"
    MODERATE = "moderate"
    MINOR = "minor"

    @property
    def rank(self) -> int:
        """0 for critical, increasing as severity decreases."""
        return SEVERITY_ORDER.index(self)

    @classmethod
    def parse(cls, value: Any) -> "Severity":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise InvalidInputError(f"Unknown severity: {value!r}") from None


SEVERITY_ORDER = (Severity.CRITICAL, Severity.SERIOUS, Severity.MODERATE, Severity.MINOR)


def _count(value: Any, label: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(f"{label} must be an integer, got {value!r}")
    if value < 0:
        raise InvalidInputError(f"{label} must not be negative, got {value}")
    return value


def _row_int(value: Any, label: str) -> int:
    """Non-negative count from a stored row; missing values count as 0."""
    if value is None or value == "":
        return 0
    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        raise InvalidInputError(f"{label} must be an integer, got {value!r}") from None
    return _count(number, label)


@dataclass(frozen=True)
class RuleCounts:
    """Count per severity, used for passed and failed rules."""
    critical: int = 0
    serious: int = 0
    moderate: int = 0
    minor: int = 0

    def __post_init__(self):
        for severity in SEVERITY_ORDER:
            _count(getattr(self, severity.value), severity.value)

    @classmethod
    def coerce(cls, value: "RuleCounts | Mapping[Any, int] | None") -> "RuleCounts":
        """Build from a mapping keyed by severity name or Severity."""
        if isinstance(value, cls):
            return value
        if value is None:
            return cls()
        if not isinstance(value, Mapping):
            raise InvalidInputError(f"Expected a severity mapping, got {type(value).__name__}")
        counts = {}
        for key, count in value.items():
            severity = Severity.parse(key)
            counts[severity.value] = _count(count, severity.value)
        return cls(**counts)

    def get(self, severity: Severity) -> int:
        return getattr(self, severity.value)

    def items(self) -> Iterator[tuple[Severity, int]]:
        for severity in SEVERITY_ORDER:
            yield severity, self.get(severity)

    @property
    def total(self) -> int:
        return self.critical + self.serious + self.moderate + self.minor


@dataclass(frozen=True)
class AuditSummary:
    """Violation totals stored with an audit."""
    critical: int = 0
    serious: int = 0
    moderate: int = 0
    minor: int = 0
    total: int = 0
    patterns: RuleCounts | None = None  # unique violation patterns per severity

    def get(self, severity: Severity) -> int:
        return getattr(self, severity.value)

    @property
    def counts(self) -> RuleCounts:
        return RuleCounts(self.critical, self.serious, self.moderate, self.minor)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "AuditSummary | None":
        if data is None:
            return None
        if not isinstance(data, Mapping):
            raise InvalidInputError(f"Audit summary must be an object, got {type(data).__name__}")
        counts = {s.value: _row_int(data.get(s.value), s.value) for s in SEVERITY_ORDER}
        total = data.get("total")
        total = sum(counts.values()) if total is None else _row_int(total, "total")

        patterns = data.get("patterns")
        if patterns is not None and not isinstance(patterns, Mapping):
            raise InvalidInputError(f"Summary patterns must be an object, got {type(patterns).__name__}")
        if patterns:
            # Severities missing from patterns fall back to their occurrence count.
            patterns = RuleCounts(**{
                s.value: _row_int(patterns[s.value], f"patterns.{s.value}")
                if patterns.get(s.value) is not None else counts[s.value]
                for s in SEVERITY_ORDER
            })
        return cls(**counts, total=total, patterns=patterns or None)


@dataclass(frozen=True)
class ScoreData:
    """Weighted accessibility score and the sums behind it."""
    score: int  # 0-100
    passed_rules: RuleCounts
    failed_rules: RuleCounts
    score_impact: dict[Severity, int]  # score points lost per severity, <= 0
    weighted_passed: int
    weighted_failed: int


@dataclass(frozen=True)
class AggregatedViolation:
    """One deduplicated rule violation within an audit."""
    rule_id: str
    fingerprint: str
    impact: Severity
    occurrences: int
    page_count: int
    help: str = ""
    description: str = ""

    @classmethod
    def from_dict(cls, row: Mapping[str, Any]) -> "AggregatedViolation":
        try:
            return cls(
                rule_id=str(row["rule_id"]),
                fingerprint=str(row["fingerprint"]),
                impact=Severity.parse(row["impact"]),
                occurrences=_row_int(row.get("occurrences"), "occurrences"),
                page_count=_row_int(row.get("page_count"), "page_count"),
                help=row.get("help") or "",
                description=row.get("description") or "",
            )
        except KeyError as e:
            raise InvalidInputError(f"Violation row is missing {e.args[0]!r}") from None


@dataclass(frozen=True)
class AuditSnapshot:
    """One completed audit run of a project."""
    id: str
    created_at: datetime
    completed_at: datetime | None = None
    health_score: int | None = None
    summary: AuditSummary | None = None
    pages_audited: int = 0
    broken_pages_count: int = 0
    project_id: str | None = None
    previous_audit_id: str | None = None
    status: str = "COMPLETED"
    wcag_levels: tuple[str, ...] = ()
    include_emag: bool = False

    @classmethod
    def from_dict(cls, row: Mapping[str, Any]) -> "AuditSnapshot":
        if "id" not in row or not row.get("created_at"):
            raise InvalidInputError("Audit row needs 'id' and 'created_at'")
        health_score = row.get("health_score")
        if health_score is not None:
            try:
                health_score = round_half_up(float(health_score))
            except (TypeError, ValueError, OverflowError):
                raise InvalidInputError(f"health_score must be a number, got {health_score!r}") from None
        return cls(
            id=str(row["id"]),
            created_at=parse_timestamp(row["created_at"]),
            completed_at=parse_timestamp(row.get("completed_at")),
            health_score=health_score,
            summary=AuditSummary.from_dict(row.get("summary")),
            pages_audited=_row_int(row.get("processed_pages", row.get("pages_audited")), "processed_pages"),
            broken_pages_count=_row_int(row.get("broken_pages_count"), "broken_pages_count"),
            project_id=row.get("project_id"),
            previous_audit_id=row.get("previous_audit_id"),
            status=row.get("status") or "COMPLETED",
            wcag_levels=tuple(row.get("wcag_levels") or ()),
            include_emag=bool(row.get("include_emag", False)),
        )


class ViolationChangeType(Enum):
    """Lifecycle of a violation between two audits."""
    NEW = "new"
    FIXED = "fixed"
    PERSISTENT = "persistent"
    WORSENED = "worsened"
    IMPROVED = "improved"


@dataclass(frozen=True)
class ViolationSide:
    """A violation as seen in one of the compared audits."""
    occurrences: int
    page_count: int
    impact: Severity


@dataclass(frozen=True)
class ViolationDelta:
    occurrences: int
    page_count: int


@dataclass(frozen=True)
class ViolationChangeDetail:
    """One row of a comparison."""
    type: ViolationChangeType
    rule_id: str
    fingerprint: str
    current: ViolationSide | None
    previous: ViolationSide | None
    delta: ViolationDelta
    help: str = ""
    description: str = ""

    @property
    def impact(self) -> Severity:
        side = self.current or self.previous
        return side.impact if side else Severity.MINOR


@dataclass(frozen=True)
class ComparisonDelta:
    """Signed differences, current minus previous.

    Negative is better for violation and broken-page counts, positive is
    better for the health score.
    """
    health_score: int = 0
    critical: int = 0
    serious: int = 0
    moderate: int = 0
    minor: int = 0
    total: int = 0
    pages_audited: int = 0
    broken_pages: int = 0

    def get(self, severity: Severity) -> int:
        return getattr(self, severity.value)


@dataclass(frozen=True)
class ComparisonViolations:
    """Violations split into the five lifecycle buckets."""
    new: tuple[ViolationChangeDetail, ...] = ()
    fixed: tuple[ViolationChangeDetail, ...] = ()
    persistent: tuple[ViolationChangeDetail, ...] = ()
    worsened: tuple[ViolationChangeDetail, ...] = ()
    improved: tuple[ViolationChangeDetail, ...] = ()

    def bucket(self, change_type: ViolationChangeType) -> tuple[ViolationChangeDetail, ...]:
        return getattr(self, change_type.value)

    @property
    def counts(self) -> dict[str, int]:
        return {t.value: len(self.bucket(t)) for t in ViolationChangeType}

    def __iter__(self) -> Iterator[ViolationChangeDetail]:
        for change_type in ViolationChangeType:
            yield from self.bucket(change_type)


@dataclass(frozen=True)
class AvailableAudit:
    """A completed audit that can serve as a comparison baseline."""
    id: str
    created_at: datetime
    summary: AuditSummary | None
    health_score: int | None


class InsightType(Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"
    WARNING = "warning"


@dataclass(frozen=True)
class Insight:
    """A qualitative finding; `key` names a message template."""
    type: InsightType
    key: str
    params: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ComparisonResult:
    """Comparison of an audit with its baseline.

    `previous` is None when no baseline exists, which is not the same as a
    baseline without violations.
    """
    current: AuditSnapshot
    previous: AuditSnapshot | None
    delta: ComparisonDelta
    violations: ComparisonViolations
    available_audits: tuple[AvailableAudit, ...] = ()
    insights: tuple[Insight, ...] = ()

    @property
    def has_baseline(self) -> bool:
        return self.previous is not None


class TrendDirection(Enum):
    """Raw numeric movement of a metric, with no good/bad judgment."""
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


@dataclass(frozen=True)
class TrendPoint:
    date: datetime | None
    value: int


@dataclass(frozen=True)
class TrendData:
    direction: TrendDirection
    change_percent: int
    change_absolute: int
    values: tuple[TrendPoint, ...] = ()


TREND_METRICS = ("health_score", "critical", "serious", "moderate", "minor", "total")


@dataclass(frozen=True)
class EvolutionTrends:
    health_score: TrendData
    critical: TrendData
    serious: TrendData
    moderate: TrendData
    minor: TrendData
    total: TrendData

    def get(self, metric: str) -> TrendData:
        if metric not in TREND_METRICS:
            raise KeyError(metric)
        return getattr(self, metric)


@dataclass(frozen=True)
class EvolutionResult:
    """Audits of a time window, oldest first, with trends and insights."""
    audits: tuple[AuditSnapshot, ...]
    trends: EvolutionTrends
    insights: tuple[Insight, ...] = ()
