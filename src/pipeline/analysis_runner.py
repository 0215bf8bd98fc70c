"""Invocation lifecycle for one analysis tool call.

  create (loading)  ->  processing, one update per record  ->  analyzing
                    ->  summary  ->  complete

Progress is driven by the data pass itself: 0.1 when processing starts,
0.1 + (i+1)/n * 0.6 after record i, 0.8 while analyzing, 1.0 at complete.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence

from analytics.analyzer import DomainSpec, MetricSeriesAnalyzer
from artifact_schema import REGISTRY, SchemaRegistry
from artifact_stream import ArtifactError, ArtifactStatus, ArtifactStream, Listener
from constants import PROGRESS_ANALYZING, PROGRESS_PROCESSING_SPAN, PROGRESS_PROCESSING_START
from invocation_context import InvocationContext
from pipeline.summary_builder import build_synopsis

log = logging.getLogger("analysis_runner")

CANCELLED_MESSAGE = "Analysis cancelled"


def record_progress(index: int, total: int) -> float:
    """Progress after the record at `index` (0-based) of `total`."""
    return PROGRESS_PROCESSING_START + (index + 1) / total * PROGRESS_PROCESSING_SPAN


def error_result(message: str, parts: Optional[List[Dict[str, Any]]] = None, **extra: Any) -> Dict[str, Any]:
    return {"error": message, "hasData": False, "parts": parts or [], **extra}


class AnalysisRunner:
    """Drives one artifact through its lifecycle for a domain."""

    def __init__(self, spec: DomainSpec, registry: SchemaRegistry = REGISTRY):
        self.spec = spec
        self.analyzer = MetricSeriesAnalyzer(spec)
        self.definition = registry.get(spec.kind)

    def iter_run(
        self,
        context: InvocationContext,
        records: Sequence[Mapping[str, Any]],
        options: Optional[Mapping[str, Any]] = None,
        cancel_event: Optional[threading.Event] = None,
        listener: Optional[Listener] = None,
    ) -> Iterator[Dict[str, Any]]:
        """Yield every wire snapshot of the artifact, in version order.

        Stops without completing when `cancel_event` is set or the consumer
        closes the iterator.  A failure during the pass marks the artifact
        failed and yields that snapshot last.
        """
        options = dict(options or {})
        records = list(records)
        caller = context.get_current_caller()

        def cancelled() -> bool:
            if cancel_event is not None and cancel_event.is_set():
                log.info("%s analysis for %s cancelled at v%d", self.spec.domain, caller.id, stream.version)
                return True
            return False

        stream = ArtifactStream.create(
            self.definition,
            {
                "title": self.analyzer.title(options),
                "chart_data": [],
                "metadata": self.analyzer.metadata(records, options, options.get("user_id") or caller.id),
            },
            listener=listener,
        )
        yield stream.to_wire()

        try:
            if cancelled():
                return
            stream.update({"stage": "processing", "progress": PROGRESS_PROCESSING_START})
            yield stream.to_wire()

            chart_data: List[Dict[str, Any]] = []
            for i, record in enumerate(records):
                if cancelled():
                    return
                chart_data.append(self.analyzer.chart_point(record))
                stream.update({"chart_data": list(chart_data), "progress": record_progress(i, len(records))})
                yield stream.to_wire()

            if cancelled():
                return
            stream.update({"stage": "analyzing", "progress": PROGRESS_ANALYZING})
            yield stream.to_wire()

            summary = self.analyzer.summarize(chart_data, options)
            if cancelled():
                return
            stream.complete({"summary": summary})
        except ArtifactError:
            raise
        except Exception as e:
            log.error("%s analysis for %s failed: %s", self.spec.domain, caller.id, e)
            # A finished artifact cannot be marked failed; surface the real error
            if stream.is_terminal:
                raise
            stream.fail(e)
        yield stream.to_wire()

    def run(
        self,
        context: InvocationContext,
        records: Sequence[Mapping[str, Any]],
        options: Optional[Mapping[str, Any]] = None,
        cancel_event: Optional[threading.Event] = None,
        listener: Optional[Listener] = None,
        subject: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Run to the end and return the tool result."""
        last: Optional[Dict[str, Any]] = None
        try:
            for message in self.iter_run(context, records, options, cancel_event, listener):
                last = message
        except ArtifactError:
            raise
        except Exception as e:
            log.error("%s analysis aborted: %s", self.spec.domain, e)
            return error_result(
                f"Failed to analyze {self.spec.domain} data: {e}",
                [last] if last is not None else [],
            )

        parts = [last] if last is not None else []
        status = last["data"]["status"] if last is not None else None

        if status == ArtifactStatus.FAILED.value:
            return error_result(f"Failed to analyze {self.spec.domain} data: {last['data']['error']}", parts)
        if status != ArtifactStatus.COMPLETE.value:
            return error_result(CANCELLED_MESSAGE, parts, cancelled=True)

        definition = self.definition
        summary = definition.validate(last["data"]["payload"]).summary
        text = build_synopsis(self.spec.kind, summary.model_dump(), context.get_current_caller(), subject)
        return {"parts": parts, "text": text}
