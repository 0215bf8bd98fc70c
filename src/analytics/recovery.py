"""Recovery analysis: recovery score, HRV and resting heart rate."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from analytics.analyzer import DomainSpec, SeriesStats
from analytics.rules import InsightTemplate, Rule, RuleOutcome, always
from analytics.series import round_half_up
from artifact_schema import ArtifactKind

TREND_THRESHOLD = 2  # recovery points between half averages
LOW_RECOVERY = 50
OPTIMAL_RECOVERY = 70
LOW_HRV = 30
STRONG_HRV = 50
HIGH_RHR = 60
LOW_CONSISTENCY = 70
HIGH_CONSISTENCY = 80


def _chart_point(record: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "date": record["date"],
        "recovery_score": record.get("recovery_score") or 0,
        "hrv_rmssd": record.get("hrv_rmssd") or 0,
        "resting_heart_rate": record.get("resting_heart_rate") or 0,
        # Not part of recovery records
        "sleep_performance": None,
        "skin_temp": None,
        "blood_oxygen": None,
    }


def _metadata(options: Mapping[str, Any], total: int, valid: int, user_id: Optional[str]) -> Dict[str, Any]:
    return {
        "date_range": options.get("date_range"),
        "total_days": total,
        "valid_data_points": valid,
        "user_id": user_id,
    }


def _recovery(s: SeriesStats) -> float:
    return s.avg("recovery_score")


RULES = (
    Rule(
        when=lambda s: _recovery(s) < LOW_RECOVERY,
        risk_factor="Low average recovery score indicates chronic stress or insufficient recovery",
        recommendation="Focus on sleep optimization and stress management techniques",
    ),
    Rule(
        when=lambda s: LOW_RECOVERY <= _recovery(s) < OPTIMAL_RECOVERY,
        risk_factor="Below-optimal recovery may impact performance and health",
        recommendation="Consider adjusting training load and recovery practices",
    ),
    Rule(
        when=lambda s: s.avg("hrv_rmssd") < LOW_HRV,
        risk_factor="Low HRV suggests elevated stress or poor autonomic function",
        recommendation="Implement breathing exercises and meditation to improve HRV",
    ),
    Rule(
        when=lambda s: s.avg("resting_heart_rate") > HIGH_RHR,
        risk_factor="Elevated resting heart rate may indicate overtraining or stress",
        recommendation="Monitor training intensity and ensure adequate rest days",
    ),
    Rule(
        when=lambda s: s.consistency < LOW_CONSISTENCY,
        risk_factor="Inconsistent recovery patterns suggest irregular stress or sleep",
        recommendation="Establish consistent sleep and wake times for better recovery",
    ),
    Rule(
        when=lambda s: s.trend.label == "improving",
        insight=InsightTemplate(
            title="Recovery Trend Improving",
            description=lambda s: f"Your recovery has improved by {s.trend.delta:.1f}% over the analysis period",
            impact="positive",
            confidence=0.8,
        ),
    ),
    Rule(
        when=lambda s: s.trend.label == "declining",
        insight=InsightTemplate(
            title="Recovery Trend Declining",
            description=lambda s: f"Your recovery has decreased by {-s.trend.delta:.1f}% over the analysis period",
            impact="negative",
            confidence=0.8,
        ),
    ),
    Rule(
        when=lambda s: s.avg("hrv_rmssd") > STRONG_HRV,
        insight=InsightTemplate(
            title="Strong Autonomic Function",
            description="Your HRV indicates good autonomic nervous system balance and stress resilience",
            impact="positive",
            confidence=0.9,
        ),
    ),
    Rule(
        when=lambda s: s.consistency > HIGH_CONSISTENCY,
        insight=InsightTemplate(
            title="Consistent Recovery Patterns",
            description="Your recovery scores show good consistency, indicating stable lifestyle habits",
            impact="positive",
            confidence=0.85,
        ),
    ),
    Rule(
        when=lambda s: _recovery(s) > OPTIMAL_RECOVERY,
        recommendation="Maintain current recovery practices - they're working well",
    ),
    Rule(when=always, recommendation="Track recovery trends to optimize training timing"),
    Rule(when=always, recommendation="Consider recovery-enhancing activities on low recovery days"),
)


def _summarize(s: SeriesStats, outcome: RuleOutcome) -> Dict[str, Any]:
    return {
        "average_recovery": round_half_up(_recovery(s)),
        "recovery_trend": s.trend.label,
        "avg_hrv": round_half_up(s.avg("hrv_rmssd")),
        "avg_rhr": round_half_up(s.avg("resting_heart_rate")),
        "consistency_score": round_half_up(s.consistency),
        "risk_factors": outcome.risk_factors,
        "recommendations": outcome.recommendations,
        "insights": outcome.insights,
    }


RECOVERY_SPEC = DomainSpec(
    kind=ArtifactKind.RECOVERY,
    domain="recovery",
    title="Recovery Analysis",
    chart_point=_chart_point,
    summarize=_summarize,
    build_metadata=_metadata,
    valid_field="recovery_score",
    average_fields=("recovery_score", "hrv_rmssd", "resting_heart_rate"),
    trend_field="recovery_score",
    trend_threshold=TREND_THRESHOLD,
    consistency_field="recovery_score",
    rules=RULES,
)
