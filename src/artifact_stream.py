"""
Artifact Stream Controller
==========================
Owns one artifact instance for one tool invocation and exposes a small,
strictly ordered operation set:

  create()   -> version 1, status=loading, progress=0
  update()   -> shallow merge, version += 1, progress never decreases
  complete() -> final update with stage=complete, progress=1, then locked
  fail()     -> terminal failed state, partial payload kept for diagnostics

Every accepted operation produces a full wire snapshot (never a diff),
returned by `to_wire()` and pushed to the optional listener.
"""

from __future__ import annotations

import logging
import math
import time
import uuid
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional

from artifact_schema import (
    REGISTRY,
    ArtifactDefinition,
    ArtifactKind,
    ArtifactPayload,
    PayloadValidationError,
    SchemaRegistry,
)
from constants import PROGRESS_COMPLETE, WIRE_PART_PREFIX

log = logging.getLogger("artifact_stream")

Listener = Callable[[Dict[str, Any]], None]

__all__ = [
    "AlreadyCompleteError",
    "ArtifactError",
    "ArtifactStatus",
    "ArtifactStream",
    "PayloadValidationError",
    "ProgressRegressionError",
]


class ArtifactStatus(str, Enum):
    LOADING = "loading"
    PROCESSING = "processing"
    ANALYZING = "analyzing"
    COMPLETE = "complete"
    FAILED = "failed"


TERMINAL_STATUSES = (ArtifactStatus.COMPLETE, ArtifactStatus.FAILED)


class ArtifactError(Exception):
    """Controller contract violation (a bug in the calling tool)."""


class AlreadyCompleteError(ArtifactError):
    """Raised on any write to an artifact in a terminal state."""


class ProgressRegressionError(ArtifactError, ValueError):
    """Raised when progress would decrease or leave [0, 1]."""


class ArtifactStream:
    """One versioned, progressively updated artifact instance."""

    def __init__(
        self,
        definition: ArtifactDefinition,
        payload: ArtifactPayload,
        listener: Optional[Listener] = None,
        artifact_id: Optional[str] = None,
        created_at: Optional[int] = None,
    ):
        self.definition = definition
        self.id = artifact_id or uuid.uuid4().hex
        self.version = 1
        self.status = ArtifactStatus(payload.stage)
        self.progress = float(payload.progress)
        self.created_at = created_at if created_at is not None else int(time.time() * 1000)
        self.error: Optional[str] = None
        self._payload = payload
        self._listener = listener

    # ─── Construction ──────────────────────────────────────

    @classmethod
    def create(
        cls,
        definition: ArtifactDefinition,
        initial_payload: Mapping[str, Any],
        listener: Optional[Listener] = None,
    ) -> "ArtifactStream":
        fields = definition.normalize(initial_payload)
        fields["stage"] = ArtifactStatus.LOADING.value
        fields["progress"] = 0.0
        stream = cls(definition, definition.validate(fields), listener=listener)
        log.info("Artifact %s (%s) created", stream.id, definition.kind.value)
        stream._emit()
        return stream

    @classmethod
    def from_wire(cls, message: Mapping[str, Any], registry: SchemaRegistry = REGISTRY) -> "ArtifactStream":
        """Rebuild a detached snapshot from a wire message."""
        part_type = str(message.get("type", ""))
        if not part_type.startswith(WIRE_PART_PREFIX):
            raise ValueError(f"Not an artifact part: {part_type!r}")
        definition = registry.get(ArtifactKind(part_type[len(WIRE_PART_PREFIX):]))
        data = message["data"]
        stream = cls(
            definition,
            definition.validate(data["payload"]),
            artifact_id=data["id"],
            created_at=int(data["createdAt"]),
        )
        stream.version = int(data["version"])
        stream.status = ArtifactStatus(data["status"])
        stream.progress = float(data["progress"])
        stream.error = data.get("error")
        return stream

    # ─── Accessors ─────────────────────────────────────────

    @property
    def kind(self) -> ArtifactKind:
        return self.definition.kind

    @property
    def data(self) -> ArtifactPayload:
        return self._payload

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    # ─── Operations ────────────────────────────────────────

    def update(self, partial: Mapping[str, Any]) -> "ArtifactStream":
        fields = self.definition.normalize(partial)
        if fields.get("stage") == ArtifactStatus.COMPLETE.value:
            return self.complete(fields)
        self._apply(fields)
        return self

    def complete(self, final_payload: Optional[Mapping[str, Any]] = None) -> "ArtifactStream":
        fields = self.definition.normalize(final_payload or {})
        fields["stage"] = ArtifactStatus.COMPLETE.value
        fields["progress"] = PROGRESS_COMPLETE
        self._apply(fields)
        log.info("Artifact %s complete at version %d", self.id, self.version)
        return self

    def fail(self, reason: Any) -> "ArtifactStream":
        self._ensure_open()
        self.status = ArtifactStatus.FAILED
        self.error = str(reason) or type(reason).__name__
        self.version += 1
        log.error("Artifact %s failed at version %d: %s", self.id, self.version, self.error)
        self._emit()
        return self

    def to_wire(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "version": self.version,
            "status": self.status.value,
            "progress": self.progress,
            "payload": self._payload.model_dump(by_alias=True, mode="json"),
            "createdAt": self.created_at,
        }
        if self.error is not None:
            data["error"] = self.error
        return {"type": self.definition.part_type, "data": data}

    # ─── Internals ─────────────────────────────────────────

    def _ensure_open(self) -> None:
        if self.is_terminal:
            raise AlreadyCompleteError(
                f"Artifact {self.id} is {self.status.value}; no further updates are accepted"
            )

    def _next_progress(self, value: Any) -> float:
        if value is None:
            return self.progress
        progress = float(value)
        if math.isnan(progress) or progress < 0 or progress > 1:
            raise ProgressRegressionError(f"Progress must be within [0, 1], got {value!r}")
        if progress < self.progress:
            raise ProgressRegressionError(
                f"Progress may not decrease ({self.progress:.3f} -> {progress:.3f})"
            )
        return progress

    def _apply(self, fields: Dict[str, Any]) -> None:
        self._ensure_open()
        progress = self._next_progress(fields.get("progress"))
        merged = self._payload.model_dump()
        merged.update(fields)
        merged["progress"] = progress
        payload = self.definition.validate(merged)

        previous = self.status
        self._payload = payload
        self.progress = progress
        self.status = ArtifactStatus(payload.stage)
        self.version += 1

        if self.status != previous:
            log.info("Artifact %s: %s -> %s (v%d)", self.id, previous.value, self.status.value, self.version)
        else:
            log.debug("Artifact %s v%d progress=%.3f", self.id, self.version, self.progress)
        self._emit()

    def _emit(self) -> None:
        if self._listener is not None:
            self._listener(self.to_wire())
