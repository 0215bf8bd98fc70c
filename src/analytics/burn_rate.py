"""Burn-rate analysis for a company's monthly financials.

Same skeleton as the wearable domains: a falling burn rate is the
improving direction, and any change between the two halves counts.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from analytics.analyzer import DomainSpec, SeriesStats
from analytics.rules import Rule, RuleOutcome
from artifact_schema import ArtifactKind

MAX_RUNWAY_MONTHS = 24
CRITICAL_RUNWAY = 6
WARNING_RUNWAY = 12


def runway_months(cash_balance: float, burn_rate: float) -> float:
    """Months of cash left at the current burn, capped for display."""
    if burn_rate <= 0:
        return MAX_RUNWAY_MONTHS
    return min(cash_balance / burn_rate, MAX_RUNWAY_MONTHS)


def _chart_point(record: Mapping[str, Any]) -> Dict[str, Any]:
    revenue = record.get("revenue") or 0
    expenses = record.get("expenses") or 0
    burn = expenses - revenue
    return {
        "month": record["month"],
        "revenue": revenue,
        "expenses": expenses,
        "burn_rate": burn,
        "runway": runway_months(record.get("cash_balance") or 0, burn),
    }


def _title(options: Mapping[str, Any]) -> str:
    return f"{options.get('company_name') or 'Company'} Burn Rate Analysis"


def _metadata(options: Mapping[str, Any], total: int, valid: int, user_id: Optional[str]) -> Dict[str, Any]:
    return {
        "company_name": options.get("company_name") or "",
        "total_months": total,
        "valid_data_points": valid,
        "user_id": user_id,
    }


def _runway(s: SeriesStats) -> float:
    return s.avg("runway")


# Alerts travel through the risk-factor channel
RULES = (
    Rule(
        when=lambda s: s.valid_count > 0 and _runway(s) < CRITICAL_RUNWAY,
        risk_factor="Critical: Average runway below 6 months",
        recommendation="Consider immediate cost reduction or fundraising",
    ),
    Rule(
        when=lambda s: s.valid_count > 0 and CRITICAL_RUNWAY <= _runway(s) < WARNING_RUNWAY,
        risk_factor="Warning: Average runway below 12 months",
        recommendation="Plan fundraising or revenue optimization",
    ),
    Rule(
        when=lambda s: s.trend.label == "declining",
        risk_factor="Burn rate trend is worsening",
        recommendation="Review expense categories for optimization opportunities",
    ),
    Rule(
        when=lambda s: s.avg("burn_rate") < 0,
        recommendation="Great! You're generating positive cash flow",
    ),
    Rule(
        when=lambda s: s.valid_count == 0,
        recommendation="Add monthly revenue and expense figures to analyze burn rate",
    ),
)


def _summarize(s: SeriesStats, outcome: RuleOutcome) -> Dict[str, Any]:
    return {
        "current_burn_rate": s.avg("burn_rate"),
        "average_runway": _runway(s),
        "trend": s.trend.label,
        "alerts": outcome.risk_factors,
        "recommendations": outcome.recommendations,
    }


BURN_RATE_SPEC = DomainSpec(
    kind=ArtifactKind.BURN_RATE,
    domain="burn-rate",
    title=_title,
    chart_point=_chart_point,
    summarize=_summarize,
    build_metadata=_metadata,
    average_fields=("burn_rate", "runway"),
    trend_field="burn_rate",
    trend_threshold=0,
    higher_is_better=False,
    rules=RULES,
)
