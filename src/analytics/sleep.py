"""Sleep analysis: performance, efficiency, duration, debt and stages.

Durations travel in milliseconds on the chart and are reported in hours in
the summary.  Consistency is the coefficient of variation of nightly
duration with a halved penalty (scale 50), which is unit independent.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from analytics.analyzer import DomainSpec, SeriesStats
from analytics.rules import InsightTemplate, QualityTemplate, Rule, RuleOutcome, always
from analytics.series import mean, round_half_up
from artifact_schema import ArtifactKind
from constants import MS_PER_HOUR

TREND_THRESHOLD = 3
DEFAULT_SLEEP_GOAL_HOURS = 8
CONSISTENCY_SCALE = 50


def _chart_point(record: Mapping[str, Any]) -> Dict[str, Any]:
    in_bed = record.get("total_in_bed_time") or 0
    awake = record.get("total_awake_time") or 0
    return {
        "date": record["date"],
        "sleep_performance": record.get("sleep_performance_percentage") or 0,
        "sleep_efficiency": record.get("sleep_efficiency_percentage") or 0,
        "time_in_bed": in_bed,
        "sleep_duration": in_bed - awake,
        "rem_sleep": record.get("total_rem_sleep_time") or None,
        "deep_sleep": record.get("total_slow_wave_sleep_time") or None,
        "light_sleep": record.get("total_light_sleep_time") or None,
        "awake_duration": awake or None,
        "sleep_onset": None,
        "disturbances": record.get("disturbance_count") or None,
    }


def _metadata(options: Mapping[str, Any], total: int, valid: int, user_id: Optional[str]) -> Dict[str, Any]:
    return {
        "date_range": options.get("date_range"),
        "total_nights": total,
        "valid_data_points": valid,
        "user_id": user_id,
    }


def _sleep_goal(s: SeriesStats) -> float:
    profile = s.option("user_profile", {})
    return profile.get("sleep_goal") or DEFAULT_SLEEP_GOAL_HOURS


def _derive(s: SeriesStats) -> Dict[str, Any]:
    goal = _sleep_goal(s)
    hours = [p["sleep_duration"] / MS_PER_HOUR for p in s.valid]
    debt = max(0.0, goal * len(hours) - sum(hours)) if hours else 0.0

    staged = [p for p in s.valid if p.get("rem_sleep") and p.get("deep_sleep") and p["sleep_duration"] > 0]
    rem_pct = deep_pct = None
    if staged:
        rem_pct = mean([p["rem_sleep"] / p["sleep_duration"] * 100 for p in staged])
        deep_pct = mean([p["deep_sleep"] / p["sleep_duration"] * 100 for p in staged])

    return {
        "sleep_goal": goal,
        "duration_hours": s.avg("sleep_duration") / MS_PER_HOUR,
        "sleep_debt": debt,
        "rem_pct": rem_pct,
        "deep_pct": deep_pct,
    }


def _efficiency(s: SeriesStats) -> float:
    return s.avg("sleep_efficiency")


RULES = (
    Rule(
        when=lambda s: _efficiency(s) > 85,
        quality_factor=QualityTemplate(
            "Sleep Efficiency",
            "positive",
            "High sleep efficiency indicates good sleep quality with minimal time awake in bed",
        ),
    ),
    Rule(
        when=lambda s: _efficiency(s) < 75,
        quality_factor=QualityTemplate(
            "Sleep Efficiency",
            "negative",
            "Low sleep efficiency suggests difficulty staying asleep or excessive time in bed",
        ),
        recommendation="Limit time in bed to actual sleep time to improve efficiency",
    ),
    Rule(
        when=lambda s: s["duration_hours"] < 7,
        quality_factor=QualityTemplate(
            "Sleep Duration",
            "negative",
            "Insufficient sleep duration may impact recovery and performance",
        ),
        recommendation="Aim for 7-9 hours of sleep per night for optimal health",
    ),
    Rule(
        when=lambda s: s["duration_hours"] > 9,
        quality_factor=QualityTemplate(
            "Sleep Duration",
            "neutral",
            "Long sleep duration - ensure it's quality sleep rather than excessive time in bed",
        ),
    ),
    Rule(
        when=lambda s: s.consistency > 80,
        insight=InsightTemplate(
            title="Consistent Sleep Patterns",
            description="Your sleep duration is consistent, which supports healthy circadian rhythms",
            impact="positive",
            confidence=0.9,
        ),
    ),
    Rule(
        when=lambda s: s.consistency < 60,
        quality_factor=QualityTemplate(
            "Sleep Consistency",
            "negative",
            "Irregular sleep patterns can disrupt circadian rhythms",
        ),
        recommendation="Maintain consistent sleep and wake times, even on weekends",
    ),
    Rule(
        when=lambda s: s["sleep_debt"] > 10,
        insight=InsightTemplate(
            title="Significant Sleep Debt",
            description=lambda s: (
                f"You have accumulated {s['sleep_debt']:.1f} hours of sleep debt over the analysis period"
            ),
            impact="negative",
            confidence=0.8,
        ),
        recommendation="Gradually increase sleep duration to pay down sleep debt",
    ),
    Rule(
        when=lambda s: s["sleep_debt"] < 3,
        insight=InsightTemplate(
            title="Minimal Sleep Debt",
            description="You're maintaining good sleep duration relative to your sleep goal",
            impact="positive",
            confidence=0.85,
        ),
    ),
    Rule(
        when=lambda s: s["rem_pct"] is not None and s["rem_pct"] < 15,
        quality_factor=QualityTemplate(
            "REM Sleep",
            "negative",
            "Low REM sleep percentage may affect memory consolidation and emotional processing",
        ),
        recommendation="Avoid alcohol and late meals which can suppress REM sleep",
    ),
    Rule(
        when=lambda s: s["deep_pct"] is not None and s["deep_pct"] < 15,
        quality_factor=QualityTemplate(
            "Deep Sleep",
            "negative",
            "Insufficient deep sleep may impact physical recovery and immune function",
        ),
        recommendation="Keep bedroom cool and dark to promote deep sleep",
    ),
    Rule(
        when=lambda s: s.trend.label == "improving",
        insight=InsightTemplate(
            title="Sleep Quality Improving",
            description=lambda s: f"Your sleep performance has improved by {s.trend.delta:.1f}% over the analysis period",
            impact="positive",
            confidence=0.8,
        ),
    ),
    Rule(
        when=lambda s: s.trend.label == "declining",
        insight=InsightTemplate(
            title="Sleep Quality Declining",
            description=lambda s: f"Your sleep performance has decreased by {-s.trend.delta:.1f}% over the analysis period",
            impact="negative",
            confidence=0.8,
        ),
        recommendation="Review recent lifestyle changes that might be affecting sleep",
    ),
    Rule(when=always, recommendation="Maintain a consistent sleep schedule to optimize circadian rhythms"),
    Rule(when=always, recommendation="Create a relaxing bedtime routine to improve sleep onset"),
)


def _summarize(s: SeriesStats, outcome: RuleOutcome) -> Dict[str, Any]:
    return {
        "average_sleep_performance": round_half_up(s.avg("sleep_performance")),
        "average_sleep_efficiency": round_half_up(_efficiency(s)),
        "average_sleep_duration": round_half_up(s["duration_hours"], 1),
        "sleep_trend": s.trend.label,
        "sleep_debt": round_half_up(s["sleep_debt"], 1),
        "optimal_sleep_time": s["sleep_goal"],
        "consistency_score": round_half_up(s.consistency),
        "sleep_quality_factors": outcome.quality_factors,
        "recommendations": outcome.recommendations,
        "insights": outcome.insights,
    }


SLEEP_SPEC = DomainSpec(
    kind=ArtifactKind.SLEEP,
    domain="sleep",
    title="Sleep Analysis",
    chart_point=_chart_point,
    summarize=_summarize,
    build_metadata=_metadata,
    valid_field="sleep_duration",
    count_field="sleep_performance",
    average_fields=("sleep_performance", "sleep_efficiency", "sleep_duration"),
    trend_field="sleep_performance",
    trend_threshold=TREND_THRESHOLD,
    consistency_field="sleep_duration",
    consistency_scale=CONSISTENCY_SCALE,
    derive=_derive,
    rules=RULES,
)
