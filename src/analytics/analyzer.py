"""Generic metric-series analyzer.

Every analysis domain (recovery, sleep, strain, workout, burn rate) follows
the same skeleton:

  chart points  ->  valid-data filter  ->  averages / trend / consistency
                ->  domain extras      ->  threshold rules  ->  summary

A domain is described by a `DomainSpec` (field names, thresholds, rules and
a few shaping hooks); `MetricSeriesAnalyzer` runs the skeleton for it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from analytics.rules import Rule, RuleOutcome, apply_rules
from analytics.series import (
    TrendResult,
    classify_trend,
    consistency_score,
    mean,
    valid_points,
    values_of,
)
from artifact_schema import ArtifactKind
from constants import TREND_LABELS


@dataclass
class SeriesStats:
    """Everything rules and summaries may read for one series."""

    points: List[Dict[str, Any]]
    valid: List[Dict[str, Any]]
    averages: Dict[str, float]
    trend: TrendResult
    consistency: float
    options: Mapping[str, Any]
    extras: Dict[str, Any] = field(default_factory=dict)

    def avg(self, name: str) -> float:
        return self.averages.get(name, 0.0)

    def option(self, name: str, default: Any = None) -> Any:
        value = self.options.get(name)
        return default if value is None else value

    @property
    def valid_count(self) -> int:
        return len(self.valid)

    def __getitem__(self, key: str) -> Any:
        return self.extras[key]


@dataclass(frozen=True)
class DomainSpec:
    kind: ArtifactKind
    domain: str
    title: Union[str, Callable[[Mapping[str, Any]], str]]
    chart_point: Callable[[Mapping[str, Any]], Dict[str, Any]]
    summarize: Callable[[SeriesStats, RuleOutcome], Dict[str, Any]]
    build_metadata: Callable[[Mapping[str, Any], int, int, Optional[str]], Dict[str, Any]]
    trend_field: str
    trend_threshold: float
    trend_labels: Tuple[str, str, str] = TREND_LABELS
    higher_is_better: bool = True
    # None: every point counts toward the statistics
    valid_field: Optional[str] = None
    require_positive: bool = True
    # Field used for the metadata "validDataPoints" count (defaults to valid_field)
    count_field: Optional[str] = None
    average_fields: Tuple[str, ...] = ()
    consistency_field: Optional[str] = None
    consistency_scale: float = 100.0
    derive: Optional[Callable[[SeriesStats], Dict[str, Any]]] = None
    rules: Tuple[Rule, ...] = ()
    empty_summary: Optional[Callable[[SeriesStats], Dict[str, Any]]] = None


class MetricSeriesAnalyzer:
    """Runs the shared analysis skeleton for one domain spec."""

    def __init__(self, spec: DomainSpec):
        self.spec = spec

    def title(self, options: Mapping[str, Any]) -> str:
        title = self.spec.title
        return title(options) if callable(title) else title

    def chart_point(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        return self.spec.chart_point(record)

    def count_valid(self, points: Sequence[Mapping[str, Any]]) -> int:
        name = self.spec.count_field or self.spec.valid_field
        if name is None:
            return len(points)
        return len(valid_points(points, name, self.spec.require_positive))

    def metadata(
        self,
        records: Sequence[Mapping[str, Any]],
        options: Mapping[str, Any],
        user_id: Optional[str],
    ) -> Dict[str, Any]:
        points = [self.chart_point(r) for r in records]
        return self.spec.build_metadata(options, len(records), self.count_valid(points), user_id)

    def stats(self, points: Sequence[Dict[str, Any]], options: Optional[Mapping[str, Any]] = None) -> SeriesStats:
        spec = self.spec
        points = list(points)
        if spec.valid_field is None:
            valid = list(points)
        else:
            valid = valid_points(points, spec.valid_field, spec.require_positive)

        averages = {name: mean(values_of(valid, name)) for name in spec.average_fields}
        trend = classify_trend(
            values_of(valid, spec.trend_field),
            spec.trend_threshold,
            labels=spec.trend_labels,
            higher_is_better=spec.higher_is_better,
        )
        consistency = 100.0
        if spec.consistency_field:
            consistency = consistency_score(
                values_of(valid, spec.consistency_field),
                averages.get(spec.consistency_field),
                scale=spec.consistency_scale,
            )

        stats = SeriesStats(
            points=points,
            valid=valid,
            averages=averages,
            trend=trend,
            consistency=consistency,
            options=dict(options or {}),
        )
        if spec.derive is not None:
            stats.extras.update(spec.derive(stats))
        return stats

    def summarize(self, points: Sequence[Dict[str, Any]], options: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        stats = self.stats(points, options)
        if not stats.valid and self.spec.empty_summary is not None:
            return self.spec.empty_summary(stats)
        return self.spec.summarize(stats, apply_rules(self.spec.rules, stats))
