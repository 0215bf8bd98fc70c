"""
Tool invocation contract.

Each tool is a name, a description, a pydantic input model (camelCase on the
wire) and a `prepare` step that turns validated arguments into an analysis
request: which domain to run, on which records, with which options.

  invoke_tool(name, arguments, context)  -> tool result dict
  stream_tool(name, arguments, context)  -> iterator of wire messages

Input errors and upstream data failures never raise out of these two calls;
they come back as `{"error": ..., "hasData": False}`.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from analytics.analyzer import DomainSpec
from analytics.burn_rate import BURN_RATE_SPEC
from analytics.recovery import RECOVERY_SPEC
from analytics.sleep import SLEEP_SPEC
from analytics.strain import STRAIN_SPEC
from analytics.workout import WORKOUT_SPEC
from artifact_stream import Listener
from config import ANALYSIS_DEFAULT_DAYS, ANALYSIS_MAX_DAYS
from invocation_context import InvocationContext
from pipeline.analysis_runner import AnalysisRunner, error_result
from record_source import DataSourceError

log = logging.getLogger("tools")


class UnknownToolError(KeyError):
    """No tool with that name is registered."""


# ─── Input models ─────────────────────────────────────────


class ToolInput(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DateRangeInput(ToolInput):
    start: str
    end: str


class RecoveryRecord(ToolInput):
    date: str
    recovery_score: Optional[float] = Field(default=None, ge=0, le=100)
    hrv_rmssd: Optional[float] = None
    resting_heart_rate: Optional[float] = None
    user_calibrating: Optional[bool] = None
    score_state: str = "SCORED"


class SleepRecord(ToolInput):
    date: str
    sleep_performance_percentage: Optional[float] = None
    sleep_efficiency_percentage: Optional[float] = None
    total_in_bed_time: Optional[float] = None
    total_awake_time: Optional[float] = None
    total_rem_sleep_time: Optional[float] = None
    total_slow_wave_sleep_time: Optional[float] = None
    total_light_sleep_time: Optional[float] = None
    sleep_cycle_count: Optional[float] = None
    disturbance_count: Optional[float] = None
    respiratory_rate: Optional[float] = None
    sleep_consistency_percentage: Optional[float] = None


class UserProfile(ToolInput):
    age: Optional[float] = None
    sleep_goal: Optional[float] = None


class StrainRecord(ToolInput):
    date: str
    strain: Optional[float] = None
    kilojoule: Optional[float] = None
    average_heart_rate: Optional[float] = None
    max_heart_rate: Optional[float] = None
    percent_recorded: Optional[float] = None
    score_state: str = "SCORED"


class RecoveryScore(ToolInput):
    date: str
    recovery_score: float = Field(ge=0, le=100)


class WorkoutRecord(ToolInput):
    date: str
    workout_id: str
    sport_id: Optional[int] = None
    strain: Optional[float] = None
    start: Optional[str] = None
    end: Optional[str] = None
    duration: float  # milliseconds
    kilojoule: Optional[float] = None
    average_heart_rate: Optional[float] = None
    max_heart_rate: Optional[float] = None
    percent_recorded: Optional[float] = None
    distance_meters: Optional[float] = None
    altitude_gain_meters: Optional[float] = None
    altitude_change_meters: Optional[float] = None
    score_state: str = "SCORED"


class MonthlyFinancials(ToolInput):
    month: str
    revenue: float
    expenses: float
    cash_balance: float


class RecoveryToolInput(ToolInput):
    user_id: str
    date_range: DateRangeInput
    recovery_data: List[RecoveryRecord]


class SleepToolInput(ToolInput):
    user_id: str
    date_range: DateRangeInput
    sleep_data: List[SleepRecord]
    user_profile: Optional[UserProfile] = None


class StrainToolInput(ToolInput):
    user_id: str
    date_range: DateRangeInput
    strain_data: List[StrainRecord]
    recovery_data: Optional[List[RecoveryScore]] = None


class WorkoutToolInput(ToolInput):
    user_id: str
    date_range: DateRangeInput
    workout_data: List[WorkoutRecord]
    recovery_data: Optional[List[RecoveryScore]] = None


class BurnRateToolInput(ToolInput):
    company_name: str
    monthly_data: List[MonthlyFinancials]


class AutoToolInput(ToolInput):
    days: int = Field(default=ANALYSIS_DEFAULT_DAYS, ge=1, le=ANALYSIS_MAX_DAYS)


# ─── Requests ─────────────────────────────────────────────


@dataclass
class AnalysisRequest:
    spec: DomainSpec
    records: List[Dict[str, Any]]
    options: Dict[str, Any] = field(default_factory=dict)
    subject: Optional[str] = None


def _dump(items: Optional[List[BaseModel]]) -> Optional[List[Dict[str, Any]]]:
    if items is None:
        return None
    return [item.model_dump() for item in items]


def _explicit(spec: DomainSpec, records_field: str) -> Callable[[Any, InvocationContext], AnalysisRequest]:
    """Analysis over records supplied in the arguments; never touches the source."""

    def prepare(args: Any, context: InvocationContext) -> AnalysisRequest:
        options: Dict[str, Any] = {"date_range": args.date_range.model_dump(), "user_id": args.user_id}
        if getattr(args, "user_profile", None) is not None:
            options["user_profile"] = args.user_profile.model_dump()
        if getattr(args, "recovery_data", None) is not None and records_field != "recovery_data":
            options["recovery_data"] = _dump(args.recovery_data)
        return AnalysisRequest(spec, _dump(getattr(args, records_field)), options)

    return prepare


def _prepare_burn_rate(args: BurnRateToolInput, context: InvocationContext) -> AnalysisRequest:
    return AnalysisRequest(
        BURN_RATE_SPEC,
        _dump(args.monthly_data),
        {"company_name": args.company_name},
        subject=args.company_name,
    )


def _load(context: InvocationContext, domain: str, start: date, end: date) -> List[Dict[str, Any]]:
    """Cached records for the domain, else the context's source."""
    if context.has_cached_data(domain):
        return context.get_cached_data(domain)
    if context.source is None:
        raise DataSourceError("No data source configured")
    records = context.source.fetch(domain, context.get_current_caller().id, start, end)
    context.set_cached_data(domain, records)
    return records


def _auto(spec: DomainSpec, with_recovery: bool = False) -> Callable[[AutoToolInput, InvocationContext], AnalysisRequest]:
    def prepare(args: AutoToolInput, context: InvocationContext) -> AnalysisRequest:
        end = date.today()
        start = end - timedelta(days=args.days)
        options: Dict[str, Any] = {"date_range": {"start": start.isoformat(), "end": end.isoformat()}}
        records = _load(context, spec.domain, start, end)
        if with_recovery:
            # Optional: analysis still runs without it
            recovery = context.get_cached_data("recovery")
            if recovery is None and context.source is not None:
                try:
                    recovery = _load(context, "recovery", start, end)
                except DataSourceError as e:
                    log.warning("Recovery data unavailable for %s analysis: %s", spec.domain, e)
            if recovery is not None:
                options["recovery_data"] = recovery
        return AnalysisRequest(spec, records, options)

    return prepare


# ─── Catalog ──────────────────────────────────────────────


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    input_model: Type[ToolInput]
    prepare: Callable[[Any, InvocationContext], AnalysisRequest]
    domain: str

    def describe(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_model.model_json_schema(by_alias=True),
        }


TOOLS: Dict[str, ToolSpec] = {
    t.name: t
    for t in (
        ToolSpec(
            "analyzeWhoopRecovery",
            "Analyze WHOOP recovery data with HRV, resting heart rate and recovery score "
            "trends, risk factors and recommendations.",
            RecoveryToolInput,
            _explicit(RECOVERY_SPEC, "recovery_data"),
            "recovery",
        ),
        ToolSpec(
            "analyzeWhoopSleep",
            "Analyze WHOOP sleep data: performance, efficiency, duration, sleep debt and stages.",
            SleepToolInput,
            _explicit(SLEEP_SPEC, "sleep_data"),
            "sleep",
        ),
        ToolSpec(
            "analyzeWhoopStrain",
            "Analyze WHOOP strain data: training load, strain-recovery balance and fatigue risk.",
            StrainToolInput,
            _explicit(STRAIN_SPEC, "strain_data"),
            "strain",
        ),
        ToolSpec(
            "analyzeWhoopWorkout",
            "Analyze WHOOP workouts: frequency, intensity distribution, sports and recovery timing.",
            WorkoutToolInput,
            _explicit(WORKOUT_SPEC, "workout_data"),
            "workout",
        ),
        ToolSpec(
            "analyzeBurnRate",
            "Analyze company burn rate with runway calculations, alerts and recommendations.",
            BurnRateToolInput,
            _prepare_burn_rate,
            "burn-rate",
        ),
        ToolSpec(
            "autoWhoopRecovery",
            "Automatically analyze the caller's synced WHOOP recovery data for the last N days.",
            AutoToolInput,
            _auto(RECOVERY_SPEC),
            "recovery",
        ),
        ToolSpec(
            "autoWhoopSleep",
            "Automatically analyze the caller's synced WHOOP sleep data for the last N days.",
            AutoToolInput,
            _auto(SLEEP_SPEC),
            "sleep",
        ),
        ToolSpec(
            "autoWhoopStrain",
            "Automatically analyze the caller's synced WHOOP strain data for the last N days.",
            AutoToolInput,
            _auto(STRAIN_SPEC, with_recovery=True),
            "strain",
        ),
        ToolSpec(
            "autoWhoopWorkout",
            "Automatically analyze the caller's synced WHOOP workouts for the last N days.",
            AutoToolInput,
            _auto(WORKOUT_SPEC, with_recovery=True),
            "workout",
        ),
    )
}


def get_tool(name: str) -> ToolSpec:
    try:
        return TOOLS[name]
    except KeyError:
        raise UnknownToolError(name) from None


def _upstream_message(tool: ToolSpec) -> str:
    return f"Failed to fetch WHOOP {tool.domain} data. Please ensure your WHOOP account is connected."


def _prepare(tool: ToolSpec, arguments: Mapping[str, Any], context: InvocationContext):
    """(request, None) on success, (None, error result) otherwise."""
    try:
        args = tool.input_model.model_validate(dict(arguments or {}))
    except ValidationError as e:
        log.warning("Invalid arguments for %s: %d error(s)", tool.name, e.error_count())
        return None, error_result(f"Invalid arguments for {tool.name}: {e.errors(include_url=False)}")
    try:
        return tool.prepare(args, context), None
    except DataSourceError as e:
        log.error("%s: upstream data unavailable for %s: %s", tool.name, context.caller.id, e)
        return None, error_result(_upstream_message(tool))


def invoke_tool(
    name: str,
    arguments: Mapping[str, Any],
    context: InvocationContext,
    cancel_event: Optional[threading.Event] = None,
    listener: Optional[Listener] = None,
) -> Dict[str, Any]:
    tool = get_tool(name)
    request, error = _prepare(tool, arguments, context)
    if error is not None:
        return error
    log.info("Running %s for %s (%d records)", tool.name, context.caller.id, len(request.records))
    return AnalysisRunner(request.spec).run(
        context,
        request.records,
        request.options,
        cancel_event=cancel_event,
        listener=listener,
        subject=request.subject,
    )


def stream_tool(
    name: str,
    arguments: Mapping[str, Any],
    context: InvocationContext,
    cancel_event: Optional[threading.Event] = None,
) -> Iterator[Dict[str, Any]]:
    """Wire snapshots in version order; a single `error` message on bad input.

    Unknown tool names raise immediately, before iteration starts.
    """
    return _stream(get_tool(name), arguments, context, cancel_event)


def _stream(
    tool: ToolSpec,
    arguments: Mapping[str, Any],
    context: InvocationContext,
    cancel_event: Optional[threading.Event],
) -> Iterator[Dict[str, Any]]:
    request, error = _prepare(tool, arguments, context)
    if error is not None:
        yield {"type": "error", "data": error}
        return
    yield from AnalysisRunner(request.spec).iter_run(
        context, request.records, request.options, cancel_event=cancel_event
    )
