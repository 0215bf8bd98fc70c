"""
Contract/behavior tests for src/api.py.

The record source dependency is overridden with a static source, so no
database is touched.  Validates caller headers, tool catalog, tool results
and NDJSON streaming.
"""
import json

import pytest
from fastapi.testclient import TestClient

import api as api_mod
from conftest import recovery_records
from record_source import StaticRecordSource
from routes.helpers import encode_ndjson, get_record_source

HEADERS = {"X-Caller-Id": "u1", "X-Caller-Name": "Ada"}


@pytest.fixture
def client():
    api_mod.app.dependency_overrides[get_record_source] = lambda: StaticRecordSource()
    yield TestClient(api_mod.app)
    api_mod.app.dependency_overrides.clear()


def recovery_body():
    return {
        "userId": "u1",
        "dateRange": {"start": "2024-01-01", "end": "2024-01-10"},
        "recoveryData": [
            {"date": r["date"], "recoveryScore": r["recovery_score"], "hrvRmssd": 25,
             "restingHeartRate": 65, "scoreState": "SCORED"}
            for r in recovery_records()
        ],
    }


def test_root(client):
    assert client.get("/").json()["status"] == "ok"


def test_tool_catalog(client):
    names = [t["name"] for t in client.get("/api/v1/tools").json()["tools"]]
    assert "analyzeWhoopRecovery" in names
    assert "autoWhoopWorkout" in names


def test_missing_caller_is_401(client):
    resp = client.post("/api/v1/tools/analyzeWhoopRecovery", json=recovery_body())
    assert resp.status_code == 401


def test_unknown_tool_is_404(client):
    resp = client.post("/api/v1/tools/analyzeMood", json={}, headers=HEADERS)
    assert resp.status_code == 404


def test_run_tool(client):
    resp = client.post("/api/v1/tools/analyzeWhoopRecovery", json=recovery_body(), headers=HEADERS)
    assert resp.status_code == 200
    body = resp.json()
    data = body["parts"][0]["data"]
    assert data["status"] == "complete"
    assert data["payload"]["summary"]["averageRecovery"] == 53
    assert body["text"].startswith("Completed recovery analysis for Ada (u1).")


def test_input_error_is_a_result_not_a_crash(client):
    resp = client.post("/api/v1/tools/analyzeWhoopRecovery", json={"userId": "u1"}, headers=HEADERS)
    assert resp.status_code == 200
    assert resp.json()["hasData"] is False


def test_auto_tool_without_data(client):
    resp = client.post("/api/v1/tools/autoWhoopRecovery", json={"days": 7}, headers=HEADERS)
    body = resp.json()
    assert body["hasData"] is False
    assert "Please ensure your WHOOP account is connected." in body["error"]


def test_stream_tool_ndjson(client):
    resp = client.post("/api/v1/tools/analyzeWhoopRecovery/stream", json=recovery_body(), headers=HEADERS)
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("application/x-ndjson")
    messages = [json.loads(line) for line in resp.text.splitlines() if line]
    assert [m["data"]["version"] for m in messages] == list(range(1, 15))
    assert messages[-1]["data"]["status"] == "complete"
    progress = [m["data"]["progress"] for m in messages]
    assert progress == sorted(progress)


def test_stream_unknown_tool_is_404(client):
    resp = client.post("/api/v1/tools/analyzeMood/stream", json={}, headers=HEADERS)
    assert resp.status_code == 404


def test_encode_ndjson_one_line_per_message():
    lines = list(encode_ndjson([{"a": 1}, {"b": [1, 2]}]))
    assert lines == ['{"a":1}\n', '{"b":[1,2]}\n']
