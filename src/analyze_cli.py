"""
Run one analysis tool from the command line.

Usage:
    python analyze_cli.py analyzeWhoopRecovery args.json --caller-id u1
    python analyze_cli.py autoWhoopSleep - --caller-id u1 --stream < args.json

Prints the tool result as JSON (or one wire message per line with
--stream) to stdout.  Logs go to stderr.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from config import LOG_LEVEL
from invocation_context import Caller, InvocationContext
from record_source import PostgresRecordSource
from routes.helpers import encode_ndjson
from tools import TOOLS, invoke_tool, stream_tool

log = logging.getLogger("analyze_cli")


def _read_arguments(path: str) -> Dict[str, Any]:
    if path == "-":
        return json.load(sys.stdin)
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Run a wearable / burn-rate analysis tool")
    parser.add_argument("tool", choices=sorted(TOOLS), help="Tool name")
    parser.add_argument("arguments", help="JSON file with the tool arguments ('-' for stdin)")
    parser.add_argument("--caller-id", default="cli", help="Caller id (default: cli)")
    parser.add_argument("--caller-name", default="", help="Caller display name")
    parser.add_argument("--stream", action="store_true",
                        help="Print every artifact version as NDJSON")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.INFO),
        format="%(asctime)s  %(levelname)-8s  %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        arguments = _read_arguments(args.arguments)
    except (OSError, json.JSONDecodeError) as e:
        log.error("Could not read arguments from %s: %s", args.arguments, e)
        return 1

    context = InvocationContext(
        Caller(id=args.caller_id, display_name=args.caller_name),
        source=PostgresRecordSource(),
    )

    if args.stream:
        failed = False
        for line in encode_ndjson(stream_tool(args.tool, arguments, context)):
            sys.stdout.write(line)
            message = json.loads(line)
            failed = message["type"] == "error" or message["data"].get("status") == "failed"
        sys.stdout.flush()
        return 1 if failed else 0

    result = invoke_tool(args.tool, arguments, context)
    print(json.dumps(result, indent=2))
    if "error" in result:
        log.error("%s: %s", args.tool, result["error"])
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
