"""Strain analysis: training load level, balance against recovery, fatigue."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from analytics.analyzer import DomainSpec, SeriesStats
from analytics.rules import InsightTemplate, Rule, RuleOutcome, always
from analytics.series import mean, round_half_up
from artifact_schema import ArtifactKind
from constants import LOAD_TREND_LABELS

TREND_THRESHOLD = 1
UNDER_STRAIN = 8
OVER_STRAIN = 15
WORKOUT_DAY_STRAIN = 8
PEAK_FACTOR = 1.2
PEAK_DAYS = 5
FATIGUE_WINDOW = 7
HIGH_FATIGUE = 16
MODERATE_FATIGUE = 12
# Recovery assumed for strain days without a matching recovery record
NEUTRAL_RECOVERY = 50


def _chart_point(record: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "date": record["date"],
        "strain": record.get("strain") or 0,
        "kilojoule": record.get("kilojoule"),
        "average_heart_rate": record.get("average_heart_rate"),
        "max_heart_rate": record.get("max_heart_rate"),
        "percent_recorded": record.get("percent_recorded"),
        "score_state": record.get("score_state") or "",
    }


def _metadata(options: Mapping[str, Any], total: int, valid: int, user_id: Optional[str]) -> Dict[str, Any]:
    return {
        "date_range": options.get("date_range"),
        "total_days": total,
        "valid_data_points": valid,
        "user_id": user_id,
    }


def recovery_by_date(recovery_data: List[Mapping[str, Any]]) -> Dict[str, float]:
    """First recovery score per date."""
    out: Dict[str, float] = {}
    for r in recovery_data:
        out.setdefault(r["date"], r.get("recovery_score"))
    return out


def _derive(s: SeriesStats) -> Dict[str, Any]:
    avg = s.avg("strain")
    strains = [p["strain"] for p in s.valid]

    if avg < UNDER_STRAIN:
        balance = "under"
    elif avg > OVER_STRAIN:
        balance = "over"
    else:
        balance = "optimal"

    recovery_data = s.options.get("recovery_data")
    ratio = 1.0
    if recovery_data and strains and avg > 0:
        scores = recovery_by_date(recovery_data)
        aligned = [scores.get(p["date"]) or NEUTRAL_RECOVERY for p in s.valid]
        ratio = mean(aligned) / (avg * 5)

    recent_avg = mean(strains[-FATIGUE_WINDOW:])
    if recent_avg > HIGH_FATIGUE:
        fatigue = "high"
    elif recent_avg > MODERATE_FATIGUE:
        fatigue = "moderate"
    else:
        fatigue = "low"

    workouts = sum(1 for v in strains if v > WORKOUT_DAY_STRAIN)
    return {
        "balance": balance,
        "weekly_target": avg * 7,
        "has_recovery": recovery_data is not None,
        "recovery_strain_ratio": ratio,
        "peak_days": [p["date"] for p in s.valid if p["strain"] > avg * PEAK_FACTOR][:PEAK_DAYS],
        "fatigue_risk": fatigue,
        "estimated_workouts": workouts,
        # Workouts per week; undefined without any valid day
        "workout_frequency": workouts / len(strains) * 7 if strains else None,
    }


def _avg(s: SeriesStats) -> float:
    return s.avg("strain")


RULES = (
    Rule(
        when=lambda s: _avg(s) < UNDER_STRAIN,
        recommendation="Consider increasing training intensity to optimize fitness gains",
        insight=InsightTemplate(
            title="Low Training Load",
            description="Your average strain is below optimal levels for fitness improvement",
            impact="neutral",
            confidence=0.8,
        ),
    ),
    Rule(
        when=lambda s: _avg(s) > OVER_STRAIN,
        recommendation="Consider reducing training intensity to prevent overtraining",
        insight=InsightTemplate(
            title="High Training Load",
            description="Your strain levels indicate very high training stress",
            impact="negative",
            confidence=0.9,
        ),
    ),
    Rule(
        when=lambda s: UNDER_STRAIN <= _avg(s) <= OVER_STRAIN,
        insight=InsightTemplate(
            title="Optimal Training Load",
            description="Your strain levels are in a good range for fitness development",
            impact="positive",
            confidence=0.85,
        ),
    ),
    Rule(
        when=lambda s: s.trend.label == "increasing",
        insight=InsightTemplate(
            title="Increasing Training Load",
            description=lambda s: f"Your strain has been trending upward by {s.trend.delta:.1f} points",
            impact="neutral",
            confidence=0.8,
        ),
        recommendation="Monitor recovery closely as training load increases",
    ),
    Rule(
        when=lambda s: s.trend.label == "decreasing",
        insight=InsightTemplate(
            title="Decreasing Training Load",
            description=lambda s: f"Your strain has decreased by {-s.trend.delta:.1f} points recently",
            impact="neutral",
            confidence=0.8,
        ),
    ),
    Rule(
        when=lambda s: s["has_recovery"] and s["recovery_strain_ratio"] < 0.8,
        recommendation="Your recovery is not keeping up with training strain - prioritize rest",
        insight=InsightTemplate(
            title="Recovery-Strain Imbalance",
            description="Your strain levels may be outpacing your recovery capacity",
            impact="negative",
            confidence=0.85,
        ),
    ),
    Rule(
        when=lambda s: s["has_recovery"] and s["recovery_strain_ratio"] > 1.2,
        insight=InsightTemplate(
            title="Good Recovery-Strain Balance",
            description="Your recovery is well-matched to your training strain",
            impact="positive",
            confidence=0.9,
        ),
    ),
    Rule(
        when=lambda s: s["workout_frequency"] is not None and s["workout_frequency"] < 3,
        recommendation="Consider increasing workout frequency for better fitness gains",
    ),
    Rule(
        when=lambda s: s["workout_frequency"] is not None and s["workout_frequency"] > 6,
        recommendation="High workout frequency - ensure adequate recovery between sessions",
    ),
    Rule(
        when=lambda s: s["fatigue_risk"] == "high",
        recommendation="High fatigue risk detected - consider a recovery week",
        insight=InsightTemplate(
            title="High Fatigue Risk",
            description="Recent strain levels suggest increased risk of overreaching",
            impact="negative",
            confidence=0.9,
        ),
    ),
    Rule(when=always, recommendation="Use strain data to time high-intensity sessions with good recovery"),
    Rule(when=always, recommendation="Aim for strain periodization throughout your training week"),
)


def _summarize(s: SeriesStats, outcome: RuleOutcome) -> Dict[str, Any]:
    return {
        "average_strain": round_half_up(_avg(s), 1),
        "strain_trend": s.trend.label,
        "weekly_strain_target": round_half_up(s["weekly_target"], 1),
        "strain_balance": s["balance"],
        "total_workouts": s["estimated_workouts"],
        "average_workout_strain": round_half_up(_avg(s), 1),
        "recovery_strain_ratio": round_half_up(s["recovery_strain_ratio"], 2),
        "peak_performance_days": s["peak_days"],
        "fatigue_risk": s["fatigue_risk"],
        "recommendations": outcome.recommendations,
        "insights": outcome.insights,
    }


STRAIN_SPEC = DomainSpec(
    kind=ArtifactKind.STRAIN,
    domain="strain",
    title="Strain Analysis",
    chart_point=_chart_point,
    summarize=_summarize,
    build_metadata=_metadata,
    valid_field="strain",
    average_fields=("strain",),
    trend_field="strain",
    trend_threshold=TREND_THRESHOLD,
    trend_labels=LOAD_TREND_LABELS,
    derive=_derive,
    rules=RULES,
)
