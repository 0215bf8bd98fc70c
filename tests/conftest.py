"""
Shared test configuration.

Adds src/ to sys.path so the flat modules (artifact_schema, tools, api, ...)
and the analytics / pipeline / routes packages import exactly as they do
when the project is installed.
"""

import os
import sys

import pytest

_project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
_src_dir = os.path.join(_project_root, "src")

if _src_dir not in sys.path:
    sys.path.insert(0, _src_dir)


RECOVERY_SCORES = [40, 42, 45, 48, 50, 55, 58, 60, 62, 65]


def recovery_records(scores=RECOVERY_SCORES, hrv=25, rhr=65):
    return [
        {
            "date": f"2024-01-{i + 1:02d}",
            "recovery_score": s,
            "hrv_rmssd": hrv,
            "resting_heart_rate": rhr,
            "score_state": "SCORED",
        }
        for i, s in enumerate(scores)
    ]


@pytest.fixture
def recovery_scenario():
    return recovery_records()


@pytest.fixture
def date_range():
    return {"start": "2024-01-01", "end": "2024-01-10"}


@pytest.fixture
def context():
    from invocation_context import Caller, InvocationContext

    return InvocationContext(Caller(id="u1", display_name="Ada"))
