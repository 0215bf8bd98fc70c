"""Series primitives shared by every analysis domain.

All helpers are pure and tolerate empty input: an empty series averages to
0, trends to "stable" and scores 100 on consistency.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Sequence, Tuple

import numpy as np

from constants import TREND_LABELS

# Boundary comparisons on float averages
_TOLERANCE = 1e-9


@dataclass(frozen=True)
class TrendResult:
    label: str
    first_avg: float
    second_avg: float
    delta: float  # second_avg - first_avg


def valid_points(
    points: Iterable[Dict[str, Any]],
    field: str,
    require_positive: bool = True,
) -> List[Dict[str, Any]]:
    """Points whose `field` is present (and > 0 when required), in order."""
    out = []
    for p in points:
        value = p.get(field)
        if value is None:
            continue
        if require_positive and not value > 0:
            continue
        out.append(p)
    return out


def values_of(points: Iterable[Dict[str, Any]], field: str) -> List[float]:
    """Numeric values of `field`, with missing values read as 0."""
    return [float(p.get(field) or 0) for p in points]


def mean(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.mean(np.asarray(values, dtype=np.float64)))


def classify_trend(
    values: Sequence[float],
    threshold: float,
    labels: Tuple[str, str, str] = TREND_LABELS,
    higher_is_better: bool = True,
) -> TrendResult:
    """First-half vs second-half comparison.

    labels = (up, down, flat).  A delta of exactly +threshold is "up",
    exactly -threshold is "down".  A zero threshold compares strictly so
    equal halves stay flat.
    """
    up, down, flat = labels
    if len(values) < 2:
        return TrendResult(flat, 0.0, 0.0, 0.0)

    mid = len(values) // 2
    first_avg = mean(values[:mid])
    second_avg = mean(values[mid:])
    delta = second_avg - first_avg
    signed = delta if higher_is_better else -delta

    if threshold > 0:
        rising = signed > threshold or math.isclose(signed, threshold, abs_tol=_TOLERANCE)
        falling = signed < -threshold or math.isclose(signed, -threshold, abs_tol=_TOLERANCE)
    else:
        rising = signed > _TOLERANCE
        falling = signed < -_TOLERANCE

    if rising:
        label = up
    elif falling:
        label = down
    else:
        label = flat
    return TrendResult(label, first_avg, second_avg, delta)


def consistency_score(values: Sequence[float], average: float = None, scale: float = 100.0) -> float:
    """100 - coefficient of variation * scale, clamped to [0, 100].

    Fewer than two values, or a non-positive average, is perfectly
    consistent by definition.
    """
    if len(values) < 2:
        return 100.0
    avg = mean(values) if average is None else float(average)
    if avg <= 0:
        return 100.0
    std = float(np.std(np.asarray(values, dtype=np.float64)))  # population (ddof=0)
    return max(0.0, min(100.0, 100.0 - (std / avg) * scale))


def round_half_up(value: float, digits: int = 0):
    """Round halves away from -inf (52.5 -> 53), not to even."""
    factor = 10 ** digits
    rounded = math.floor(float(value) * factor + 0.5) / factor
    if digits == 0:
        return int(rounded)
    return rounded
