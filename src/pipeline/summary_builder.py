"""Helpers for building the short synopsis text that accompanies a result."""

from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Optional

from artifact_schema import ArtifactKind
from invocation_context import Caller


def _who(caller: Caller, subject: Optional[str]) -> str:
    if subject:
        return f"{subject} (User: {caller.label()} - {caller.id})"
    return f"{caller.label()} ({caller.id})"


def _num(value: Any) -> str:
    """53.0 -> "53", 7.25 -> "7.25"."""
    value = float(value)
    return str(int(value)) if value.is_integer() else f"{value:g}"


def _count(summary: Mapping[str, Any], key: str) -> int:
    return len(summary.get(key) or [])


def _recovery(s: Mapping[str, Any], who: str) -> str:
    return (
        f"Completed recovery analysis for {who}. "
        f"Average recovery: {_num(s['average_recovery'])}%, trend: {s['recovery_trend']}. "
        f"Found {_count(s, 'risk_factors')} risk factors and "
        f"{_count(s, 'recommendations')} recommendations."
    )


def _sleep(s: Mapping[str, Any], who: str) -> str:
    return (
        f"Completed sleep analysis for {who}. "
        f"Average sleep performance: {_num(s['average_sleep_performance'])}%, "
        f"average duration: {_num(s['average_sleep_duration'])}h, trend: {s['sleep_trend']}. "
        f"Sleep debt: {_num(s['sleep_debt'])}h. "
        f"{_count(s, 'recommendations')} recommendations generated."
    )


def _strain(s: Mapping[str, Any], who: str) -> str:
    return (
        f"Completed strain analysis for {who}. "
        f"Average strain: {_num(s['average_strain'])}, trend: {s['strain_trend']}, "
        f"balance: {s['strain_balance']}, fatigue risk: {s['fatigue_risk']}. "
        f"{_count(s, 'recommendations')} recommendations generated."
    )


def _workout(s: Mapping[str, Any], who: str) -> str:
    if not s.get("total_workouts"):
        return f"No workout data found for {who} in the specified period."
    sport = s.get("most_frequent_sport") or "Unknown"
    return (
        f"Completed workout analysis for {who}. "
        f"{s['total_workouts']} workouts ({_num(s['workout_frequency'])} per week), "
        f"most frequent sport: {sport}, trend: {s['performance_trend']}. "
        f"{_count(s, 'recommendations')} recommendations generated."
    )


def _burn_rate(s: Mapping[str, Any], who: str) -> str:
    return (
        f"Completed burn rate analysis for {who}. "
        f"The analysis shows a {s['trend']} trend with an average runway of "
        f"{float(s['average_runway']):.1f} months. "
        f"{_count(s, 'alerts')} alerts and {_count(s, 'recommendations')} "
        f"recommendations have been generated."
    )


_TEMPLATES: Dict[ArtifactKind, Callable[[Mapping[str, Any], str], str]] = {
    ArtifactKind.RECOVERY: _recovery,
    ArtifactKind.SLEEP: _sleep,
    ArtifactKind.STRAIN: _strain,
    ArtifactKind.WORKOUT: _workout,
    ArtifactKind.BURN_RATE: _burn_rate,
}


def build_synopsis(
    kind: ArtifactKind,
    summary: Mapping[str, Any],
    caller: Caller,
    subject: Optional[str] = None,
) -> str:
    """One-paragraph description of a finished analysis.

    Every number is read from `summary` (snake_case keys) so the text can
    never disagree with the artifact it describes.
    """
    return _TEMPLATES[ArtifactKind(kind)](summary, _who(caller, subject))
