"""
Artifact Schema Registry
========================
Declares every artifact kind the engine can stream as a named payload shape
with defaulted fields.  The same shapes validate each progressive update and
type the final result.

Payload models use snake_case attributes and camelCase wire aliases
(`chart_data` <-> `chartData`).  Undeclared fields are rejected.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Literal, Mapping, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from constants import WIRE_PART_PREFIX

log = logging.getLogger("artifact_schema")


class ArtifactKind(str, Enum):
    """Closed set of artifact kinds; the value is the wire label."""

    RECOVERY = "whoop-recovery"
    SLEEP = "whoop-sleep"
    STRAIN = "whoop-strain"
    WORKOUT = "whoop-workout"
    BURN_RATE = "burn-rate"


Stage = Literal["loading", "processing", "analyzing", "complete"]
Impact = Literal["positive", "negative", "neutral"]
Trend = Literal["improving", "stable", "declining"]
LoadTrend = Literal["increasing", "stable", "decreasing"]


class DuplicateKindError(Exception):
    """Raised when an artifact kind is defined twice in one registry."""


class PayloadValidationError(ValueError):
    """Raised when a payload carries undeclared or ill-typed fields."""

    def __init__(self, kind: ArtifactKind, error: ValidationError):
        self.kind = kind
        self.errors = error.errors()
        super().__init__(f"Invalid {kind.value} payload: {error}")


class WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


# ─── Shared pieces ─────────────────────────────────────────


class Insight(WireModel):
    title: str
    description: str
    impact: Impact
    confidence: float = Field(ge=0, le=1)


class QualityFactor(WireModel):
    factor: str
    impact: Impact
    description: str


class DateRange(WireModel):
    start: str
    end: str


class ArtifactPayload(WireModel):
    """Fields every artifact payload carries."""

    title: str
    stage: Stage = "loading"
    progress: float = Field(default=0, ge=0, le=1)


# ─── Recovery ──────────────────────────────────────────────


class RecoveryPoint(WireModel):
    date: str
    recovery_score: float
    hrv_rmssd: float
    resting_heart_rate: float
    sleep_performance: Optional[float] = None
    skin_temp: Optional[float] = None
    blood_oxygen: Optional[float] = None


class RecoverySummary(WireModel):
    average_recovery: float
    recovery_trend: Trend
    avg_hrv: float
    avg_rhr: float
    consistency_score: float
    risk_factors: List[str]
    recommendations: List[str]
    insights: List[Insight]


class SeriesMetadata(WireModel):
    date_range: DateRange
    total_days: int
    valid_data_points: int
    user_id: Optional[str] = None


class RecoveryPayload(ArtifactPayload):
    chart_data: List[RecoveryPoint] = Field(default_factory=list)
    summary: Optional[RecoverySummary] = None
    metadata: Optional[SeriesMetadata] = None


# ─── Sleep ─────────────────────────────────────────────────


class SleepPoint(WireModel):
    date: str
    sleep_performance: float
    sleep_efficiency: float
    time_in_bed: float  # milliseconds
    sleep_duration: float  # milliseconds
    rem_sleep: Optional[float] = None
    deep_sleep: Optional[float] = None
    light_sleep: Optional[float] = None
    awake_duration: Optional[float] = None
    sleep_onset: Optional[float] = None  # minutes
    disturbances: Optional[float] = None


class SleepSummary(WireModel):
    average_sleep_performance: float
    average_sleep_efficiency: float
    average_sleep_duration: float  # hours
    sleep_trend: Trend
    sleep_debt: float  # hours
    optimal_sleep_time: float
    consistency_score: float
    sleep_quality_factors: List[QualityFactor]
    recommendations: List[str]
    insights: List[Insight]


class SleepMetadata(WireModel):
    date_range: DateRange
    total_nights: int
    valid_data_points: int
    user_id: Optional[str] = None


class SleepPayload(ArtifactPayload):
    chart_data: List[SleepPoint] = Field(default_factory=list)
    summary: Optional[SleepSummary] = None
    metadata: Optional[SleepMetadata] = None


# ─── Strain ────────────────────────────────────────────────


class StrainPoint(WireModel):
    date: str
    strain: float
    kilojoule: Optional[float] = None
    average_heart_rate: Optional[float] = None
    max_heart_rate: Optional[float] = None
    percent_recorded: Optional[float] = None
    score_state: str


class StrainSummary(WireModel):
    average_strain: float
    strain_trend: LoadTrend
    weekly_strain_target: float
    strain_balance: Literal["under", "optimal", "over"]
    total_workouts: int
    average_workout_strain: float
    recovery_strain_ratio: float
    peak_performance_days: List[str]
    fatigue_risk: Literal["low", "moderate", "high"]
    recommendations: List[str]
    insights: List[Insight]


class StrainPayload(ArtifactPayload):
    chart_data: List[StrainPoint] = Field(default_factory=list)
    summary: Optional[StrainSummary] = None
    metadata: Optional[SeriesMetadata] = None


# ─── Workout ───────────────────────────────────────────────


class WorkoutPoint(WireModel):
    date: str
    workout_id: str
    sport_id: Optional[int] = None
    strain: float
    duration: float  # milliseconds
    kilojoule: Optional[float] = None
    average_heart_rate: Optional[float] = None
    max_heart_rate: Optional[float] = None
    percent_recorded: Optional[float] = None
    distance_meters: Optional[float] = None
    altitude_gain_meters: Optional[float] = None
    score_state: str


class IntensityDistribution(WireModel):
    low: float
    moderate: float
    high: float


class SportInsight(WireModel):
    sport: str
    average_strain: float
    frequency: int
    average_distance: Optional[float] = None  # km
    recommendations: List[str]


class WorkoutSummary(WireModel):
    total_workouts: int
    average_workout_strain: float
    average_workout_duration: float  # minutes
    most_frequent_sport: Optional[str] = None
    workout_frequency: float  # per week
    intensity_distribution: IntensityDistribution
    performance_trend: Trend
    recovery_adequacy: Literal["adequate", "insufficient", "excessive"]
    optimal_workout_timing: List[str]
    sport_specific_insights: List[SportInsight]
    recommendations: List[str]
    insights: List[Insight]


class WorkoutMetadata(WireModel):
    date_range: DateRange
    total_workouts: int
    valid_data_points: int
    user_id: Optional[str] = None


class WorkoutPayload(ArtifactPayload):
    chart_data: List[WorkoutPoint] = Field(default_factory=list)
    summary: Optional[WorkoutSummary] = None
    metadata: Optional[WorkoutMetadata] = None


# ─── Burn rate ─────────────────────────────────────────────


class BurnRatePoint(WireModel):
    month: str
    revenue: float
    expenses: float
    burn_rate: float
    runway: float


class BurnRateSummary(WireModel):
    current_burn_rate: float
    average_runway: float
    trend: Trend
    alerts: List[str]
    recommendations: List[str]


class BurnRateMetadata(WireModel):
    company_name: str
    total_months: int
    valid_data_points: int
    user_id: Optional[str] = None


class BurnRatePayload(ArtifactPayload):
    currency: str = "USD"
    chart_data: List[BurnRatePoint] = Field(default_factory=list)
    summary: Optional[BurnRateSummary] = None
    metadata: Optional[BurnRateMetadata] = None


# ─── Registry ──────────────────────────────────────────────


@dataclass(frozen=True)
class ArtifactDefinition:
    """Immutable kind + payload shape pair, created once per process."""

    kind: ArtifactKind
    payload_model: Type[ArtifactPayload]

    @property
    def part_type(self) -> str:
        return f"{WIRE_PART_PREFIX}{self.kind.value}"

    def field_name(self, key: str) -> str:
        """Map a wire alias (chartData) to its attribute name (chart_data)."""
        for name, info in self.payload_model.model_fields.items():
            if key == name or key == info.alias:
                return name
        return key

    def normalize(self, fields: Mapping[str, Any]) -> Dict[str, Any]:
        return {self.field_name(k): v for k, v in fields.items()}

    def validate(self, payload: Mapping[str, Any]) -> ArtifactPayload:
        try:
            return self.payload_model.model_validate(dict(payload))
        except ValidationError as e:
            raise PayloadValidationError(self.kind, e) from e

    def default_payload(self, title: str, **fields: Any) -> ArtifactPayload:
        return self.validate({"title": title, **self.normalize(fields)})


class SchemaRegistry:
    """Kind -> definition map.  Read-only once populated at import time."""

    def __init__(self):
        self._definitions: Dict[ArtifactKind, ArtifactDefinition] = {}
        self._lock = threading.Lock()

    def define(self, kind: ArtifactKind, payload_model: Type[ArtifactPayload]) -> ArtifactDefinition:
        if not isinstance(kind, ArtifactKind):
            raise TypeError(f"Artifact kind must be an ArtifactKind, got {kind!r}")
        if not (isinstance(payload_model, type) and issubclass(payload_model, ArtifactPayload)):
            raise TypeError(f"Payload shape for {kind.value} must subclass ArtifactPayload")
        with self._lock:
            if kind in self._definitions:
                raise DuplicateKindError(f"Artifact kind already defined: {kind.value}")
            definition = ArtifactDefinition(kind=kind, payload_model=payload_model)
            self._definitions[kind] = definition
        log.debug("Defined artifact kind %s", kind.value)
        return definition

    def get(self, kind: ArtifactKind) -> ArtifactDefinition:
        try:
            return self._definitions[ArtifactKind(kind)]
        except (KeyError, ValueError):
            raise KeyError(f"Unknown artifact kind: {kind}") from None

    def kinds(self) -> List[ArtifactKind]:
        return list(self._definitions)

    def __contains__(self, kind: object) -> bool:
        return kind in self._definitions


REGISTRY = SchemaRegistry()
RecoveryArtifact = REGISTRY.define(ArtifactKind.RECOVERY, RecoveryPayload)
SleepArtifact = REGISTRY.define(ArtifactKind.SLEEP, SleepPayload)
StrainArtifact = REGISTRY.define(ArtifactKind.STRAIN, StrainPayload)
WorkoutArtifact = REGISTRY.define(ArtifactKind.WORKOUT, WorkoutPayload)
BurnRateArtifact = REGISTRY.define(ArtifactKind.BURN_RATE, BurnRatePayload)
