"""
Shared helpers for API routes.
Contains: caller identity from request headers, record-source resolution,
NDJSON encoding of wire messages.
"""

from __future__ import annotations

import json
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, Iterator, Optional

from fastapi import Header, HTTPException

from invocation_context import Caller
from record_source import PostgresRecordSource, RecordSource

log = logging.getLogger("api")


# ─── Caller ────────────────────────────────────────────────

def get_caller(
    x_caller_id: Optional[str] = Header(default=None),
    x_caller_name: Optional[str] = Header(default=None),
) -> Caller:
    """Caller identity set by the authenticating proxy in front of this API."""
    caller_id = (x_caller_id or "").strip()
    if not caller_id:
        raise HTTPException(status_code=401, detail="Missing X-Caller-Id header")
    return Caller(id=caller_id, display_name=(x_caller_name or "").strip())


def get_record_source() -> RecordSource:
    return PostgresRecordSource()


# ─── Encoding ──────────────────────────────────────────────

def _to_jsonable(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    raise TypeError(f"{type(value).__name__} is not JSON serializable")


def encode_ndjson(messages: Iterable[Dict[str, Any]]) -> Iterator[str]:
    """One compact JSON document per line."""
    for message in messages:
        yield json.dumps(message, default=_to_jsonable, separators=(",", ":")) + "\n"
