"""Threshold rules that turn summary statistics into advice.

Every rule whose predicate holds fires, in declaration order.  Outputs are
appended as-is: no deduplication, no ranking.  Closing advice that should
always appear is written as a rule with `when=always`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

Text = Union[str, Callable[[Any], str]]


def always(_stats: Any) -> bool:
    return True


def _render(text: Text, stats: Any) -> str:
    return text(stats) if callable(text) else text


@dataclass(frozen=True)
class InsightTemplate:
    title: str
    description: Text
    impact: str  # positive | negative | neutral
    confidence: float

    def render(self, stats: Any) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": _render(self.description, stats),
            "impact": self.impact,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class QualityTemplate:
    factor: str
    impact: str
    description: str

    def render(self) -> Dict[str, Any]:
        return {"factor": self.factor, "impact": self.impact, "description": self.description}


@dataclass(frozen=True)
class Rule:
    when: Callable[[Any], bool]
    risk_factor: Optional[Text] = None
    recommendation: Optional[Text] = None
    insight: Optional[InsightTemplate] = None
    quality_factor: Optional[QualityTemplate] = None


@dataclass
class RuleOutcome:
    risk_factors: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    insights: List[Dict[str, Any]] = field(default_factory=list)
    quality_factors: List[Dict[str, Any]] = field(default_factory=list)


def apply_rules(rules: Sequence[Rule], stats: Any) -> RuleOutcome:
    out = RuleOutcome()
    for rule in rules:
        if not rule.when(stats):
            continue
        if rule.risk_factor is not None:
            out.risk_factors.append(_render(rule.risk_factor, stats))
        if rule.quality_factor is not None:
            out.quality_factors.append(rule.quality_factor.render())
        if rule.recommendation is not None:
            out.recommendations.append(_render(rule.recommendation, stats))
        if rule.insight is not None:
            out.insights.append(rule.insight.render(stats))
    return out
