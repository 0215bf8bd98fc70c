"""
FastAPI wire adapter for the analysis tools.

Route handlers are defined here; shared utilities live in routes/helpers.py.
Authentication happens upstream: the caller arrives as X-Caller-Id /
X-Caller-Name headers.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import Body, Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse

from config import FRONTEND_ORIGINS
from invocation_context import Caller, InvocationContext
from record_source import RecordSource
from routes.helpers import encode_ndjson, get_caller, get_record_source
from tools import TOOLS, invoke_tool, stream_tool

log = logging.getLogger("api")


# ─── App setup ─────────────────────────────────────────────

app = FastAPI(title="Artifact Analysis API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=FRONTEND_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


def _context(
    caller: Caller = Depends(get_caller),
    source: RecordSource = Depends(get_record_source),
) -> InvocationContext:
    # Fresh per request: no cache or identity shared between callers
    return InvocationContext(caller, source=source)


def _require_tool(name: str) -> None:
    if name not in TOOLS:
        raise HTTPException(status_code=404, detail=f"Unknown tool: {name}")


# ─── Routes ────────────────────────────────────────────────

@app.get("/")
def root() -> Dict[str, Any]:
    return {"service": "artifact-analysis-api", "status": "ok"}


@app.get("/api/v1/tools")
def list_tools() -> Dict[str, List[Dict[str, Any]]]:
    return {"tools": [t.describe() for t in TOOLS.values()]}


@app.post("/api/v1/tools/{name}")
def run_tool(
    name: str,
    arguments: Dict[str, Any] = Body(default_factory=dict),
    context: InvocationContext = Depends(_context),
) -> Dict[str, Any]:
    _require_tool(name)
    return invoke_tool(name, arguments, context)


@app.post("/api/v1/tools/{name}/stream")
def stream_tool_route(
    name: str,
    arguments: Dict[str, Any] = Body(default_factory=dict),
    context: InvocationContext = Depends(_context),
) -> StreamingResponse:
    _require_tool(name)
    messages = stream_tool(name, arguments, context)
    log.info("Streaming %s for %s", name, context.caller.id)
    return StreamingResponse(encode_ndjson(messages), media_type="application/x-ndjson")
