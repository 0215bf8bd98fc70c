"""Workout analysis: frequency, intensity mix, sports and recovery timing.

Unlike the daily series, every workout counts toward the statistics (a
zero-strain workout is still a workout); the strain > 0 filter only feeds
the metadata count.
"""

from __future__ import annotations

import math
from collections import Counter
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd

from analytics.analyzer import DomainSpec, SeriesStats
from analytics.rules import InsightTemplate, Rule, RuleOutcome, always
from analytics.series import mean, round_half_up
from analytics.strain import NEUTRAL_RECOVERY, recovery_by_date
from artifact_schema import ArtifactKind
from constants import MS_PER_MINUTE

TREND_THRESHOLD = 1
LOW_INTENSITY = 8
HIGH_INTENSITY = 15
LOW_SPORT_STRAIN = 8
HIGH_SPORT_STRAIN = 16
OPTIMAL_TIMING_DAYS = 5


def _chart_point(record: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "date": record["date"],
        "workout_id": str(record.get("workout_id") or ""),
        "sport_id": record.get("sport_id"),
        "strain": record.get("strain") or 0,
        "duration": record.get("duration") or 0,
        "kilojoule": record.get("kilojoule"),
        "average_heart_rate": record.get("average_heart_rate"),
        "max_heart_rate": record.get("max_heart_rate"),
        "percent_recorded": record.get("percent_recorded"),
        "distance_meters": record.get("distance_meters"),
        "altitude_gain_meters": record.get("altitude_gain_meters"),
        "score_state": record.get("score_state") or "",
    }


def _metadata(options: Mapping[str, Any], total: int, valid: int, user_id: Optional[str]) -> Dict[str, Any]:
    return {
        "date_range": options.get("date_range"),
        "total_workouts": total,
        "valid_data_points": valid,
        "user_id": user_id,
    }


def sport_label(sport_id: Optional[int]) -> str:
    return f"Sport {sport_id}" if sport_id else "Unknown"


def analysis_days(date_range: Optional[Mapping[str, Any]], points: List[Dict[str, Any]]) -> int:
    """Whole days covered by the analysis window (at least one)."""
    if date_range and date_range.get("start") and date_range.get("end"):
        start, end = pd.Timestamp(date_range["start"]), pd.Timestamp(date_range["end"])
    else:
        dates = pd.to_datetime([p["date"] for p in points])
        start, end = dates.min(), dates.max()
    return max(1, math.ceil((end - start).total_seconds() / 86400))


def _sport_insight(sport: str, workouts: List[Dict[str, Any]]) -> Dict[str, Any]:
    avg_strain = mean([w["strain"] for w in workouts])
    distances = [w["distance_meters"] for w in workouts if w.get("distance_meters") is not None]
    avg_distance = mean(distances)

    recommendations = []
    if avg_strain < LOW_SPORT_STRAIN:
        recommendations.append(f"Consider increasing intensity for {sport} workouts")
    elif avg_strain > HIGH_SPORT_STRAIN:
        recommendations.append(f"High strain in {sport} - monitor recovery closely")

    return {
        "sport": sport,
        "average_strain": round_half_up(avg_strain, 1),
        "frequency": len(workouts),
        "average_distance": round_half_up(avg_distance / 1000, 1) if avg_distance > 0 else None,
        "recommendations": recommendations,
    }


def _derive(s: SeriesStats) -> Dict[str, Any]:
    workouts = s.valid
    total = len(workouts)
    if total == 0:
        return {"total": 0}

    avg_strain = s.avg("strain")
    frequency = total / analysis_days(s.options.get("date_range"), workouts) * 7

    sport_counts = Counter(sport_label(w.get("sport_id")) for w in workouts)
    most_frequent = max(sport_counts.items(), key=lambda kv: kv[1])[0]

    low = sum(1 for w in workouts if w["strain"] < LOW_INTENSITY)
    high = sum(1 for w in workouts if w["strain"] >= HIGH_INTENSITY)
    moderate = total - low - high
    distribution = {
        "low": round_half_up(low / total * 100),
        "moderate": round_half_up(moderate / total * 100),
        "high": round_half_up(high / total * 100),
    }

    adequacy = "adequate"
    timing: List[str] = []
    recovery_data = s.options.get("recovery_data")
    if recovery_data:
        scores = recovery_by_date(recovery_data)
        pairs = [(w, scores.get(w["date"]) or NEUTRAL_RECOVERY) for w in workouts]
        avg_recovery = mean([r for _, r in pairs])
        if avg_recovery < 50:
            adequacy = "insufficient"
        elif avg_recovery > 80:
            adequacy = "excessive"
        good_days = [w["date"] for w, r in pairs if r > 70 and w["strain"] > avg_strain]
        timing = list(dict.fromkeys(good_days))[:OPTIMAL_TIMING_DAYS]

    sports = [
        _sport_insight(sport, [w for w in workouts if sport_label(w.get("sport_id")) == sport])
        for sport in sport_counts
    ]

    return {
        "total": total,
        "duration_minutes": s.avg("duration") / MS_PER_MINUTE,
        "frequency": frequency,
        "most_frequent_sport": most_frequent,
        "distribution": distribution,
        "recovery_adequacy": adequacy,
        "optimal_timing": timing,
        "sport_insights": sports,
    }


def _freq(s: SeriesStats) -> float:
    return s["frequency"]


def _high(s: SeriesStats) -> int:
    return s["distribution"]["high"]


RULES = (
    Rule(
        when=lambda s: _freq(s) < 3,
        recommendation="Consider increasing workout frequency to 3-5 sessions per week",
        insight=InsightTemplate(
            title="Low Workout Frequency",
            description=lambda s: f"You're averaging {_freq(s):.1f} workouts per week",
            impact="neutral",
            confidence=0.9,
        ),
    ),
    Rule(
        when=lambda s: _freq(s) > 6,
        recommendation="High workout frequency - ensure adequate recovery between sessions",
        insight=InsightTemplate(
            title="High Workout Frequency",
            description=lambda s: f"You're averaging {_freq(s):.1f} workouts per week",
            impact="neutral",
            confidence=0.9,
        ),
    ),
    Rule(
        when=lambda s: 3 <= _freq(s) <= 6,
        insight=InsightTemplate(
            title="Good Workout Frequency",
            description=lambda s: f"Your workout frequency of {_freq(s):.1f} per week is optimal",
            impact="positive",
            confidence=0.85,
        ),
    ),
    Rule(
        when=lambda s: _high(s) > 30,
        recommendation="High percentage of high-intensity workouts - add more easy sessions",
        insight=InsightTemplate(
            title="High Intensity Focus",
            description=lambda s: f"{_high(s)}% of your workouts are high intensity",
            impact="negative",
            confidence=0.8,
        ),
    ),
    Rule(
        when=lambda s: _high(s) < 10,
        recommendation="Consider adding more high-intensity workouts for performance gains",
    ),
    Rule(
        when=lambda s: s["distribution"]["low"] > 60,
        insight=InsightTemplate(
            title="Good Easy Training Base",
            description="You maintain a good base of low-intensity training",
            impact="positive",
            confidence=0.8,
        ),
    ),
    Rule(
        when=lambda s: s.trend.label == "improving",
        insight=InsightTemplate(
            title="Performance Improving",
            description=lambda s: f"Your workout strain has improved by {s.trend.delta:.1f} points",
            impact="positive",
            confidence=0.8,
        ),
    ),
    Rule(
        when=lambda s: s.trend.label == "declining",
        insight=InsightTemplate(
            title="Performance Declining",
            description=lambda s: f"Your workout strain has decreased by {-s.trend.delta:.1f} points",
            impact="negative",
            confidence=0.8,
        ),
        recommendation="Review training program and ensure adequate progression",
    ),
    Rule(
        when=lambda s: s["recovery_adequacy"] == "insufficient",
        recommendation="Your recovery may not be adequate for your training load",
        insight=InsightTemplate(
            title="Recovery-Training Imbalance",
            description="Your workouts are occurring on days with lower recovery",
            impact="negative",
            confidence=0.8,
        ),
    ),
    Rule(
        when=lambda s: s["recovery_adequacy"] == "excessive",
        recommendation="You may be under-utilizing high recovery days for training",
    ),
    Rule(
        when=lambda s: s["duration_minutes"] < 30,
        recommendation="Consider longer workout sessions for better training adaptations",
    ),
    Rule(
        when=lambda s: s["duration_minutes"] > 90,
        recommendation="Very long workout sessions - ensure recovery is prioritized",
    ),
    Rule(when=always, recommendation="Use recovery data to time high-intensity workouts optimally"),
    Rule(when=always, recommendation="Maintain variety in workout types and intensities"),
)


def _summarize(s: SeriesStats, outcome: RuleOutcome) -> Dict[str, Any]:
    return {
        "total_workouts": s["total"],
        "average_workout_strain": round_half_up(s.avg("strain"), 1),
        "average_workout_duration": round_half_up(s["duration_minutes"], 1),
        "most_frequent_sport": s["most_frequent_sport"],
        "workout_frequency": round_half_up(_freq(s), 1),
        "intensity_distribution": s["distribution"],
        "performance_trend": s.trend.label,
        "recovery_adequacy": s["recovery_adequacy"],
        "optimal_workout_timing": s["optimal_timing"],
        "sport_specific_insights": s["sport_insights"],
        "recommendations": outcome.recommendations,
        "insights": outcome.insights,
    }


def _empty_summary(_s: SeriesStats) -> Dict[str, Any]:
    return {
        "total_workouts": 0,
        "average_workout_strain": 0,
        "average_workout_duration": 0,
        "workout_frequency": 0,
        "intensity_distribution": {"low": 0, "moderate": 0, "high": 0},
        "performance_trend": "stable",
        "recovery_adequacy": "adequate",
        "optimal_workout_timing": [],
        "sport_specific_insights": [],
        "recommendations": ["Start incorporating regular workouts to improve fitness"],
        "insights": [
            {
                "title": "No Workout Data",
                "description": "No workouts found in the analysis period",
                "impact": "neutral",
                "confidence": 1,
            }
        ],
    }


WORKOUT_SPEC = DomainSpec(
    kind=ArtifactKind.WORKOUT,
    domain="workout",
    title="Workout Analysis",
    chart_point=_chart_point,
    summarize=_summarize,
    build_metadata=_metadata,
    count_field="strain",
    average_fields=("strain", "duration"),
    trend_field="strain",
    trend_threshold=TREND_THRESHOLD,
    derive=_derive,
    rules=RULES,
    empty_summary=_empty_summary,
)
