"""
Tests for the raw data source adapters.

Postgres access is mocked: psycopg2.connect and pandas.read_sql_query are
patched so no database is needed.
"""
from datetime import date
from unittest.mock import MagicMock, patch

import pandas as pd
import psycopg2
import pytest

import config
import record_source
from record_source import (
    QUERIES,
    DataSourceError,
    PostgresRecordSource,
    RecordSource,
    StaticRecordSource,
    frame_to_records,
)

START, END = date(2024, 1, 1), date(2024, 1, 31)


# ─── Connection string ─────────────────────────────────────

class TestConnStr:

    def test_whoop_variable_wins(self, monkeypatch):
        monkeypatch.setenv("WHOOP_CONNECTION_STRING", "postgresql://whoop")
        monkeypatch.setenv("DATABASE_URL", "postgresql://other")
        assert config.get_conn_str() == "postgresql://whoop"

    def test_heroku_scheme_normalised(self, monkeypatch):
        monkeypatch.delenv("WHOOP_CONNECTION_STRING", raising=False)
        monkeypatch.delenv("POSTGRES_CONNECTION_STRING", raising=False)
        monkeypatch.setenv("DATABASE_URL", "postgres://u:p@host/db")
        assert config.get_conn_str() == "postgresql://u:p@host/db"


# ─── Adapter base ─────────────────────────────────────────

class TestRecordSourceBase:

    def test_base_cannot_be_instantiated(self):
        with pytest.raises(TypeError):
            RecordSource()

    def test_subclass_must_implement_fetch(self):
        class NoFetch(RecordSource):
            pass

        with pytest.raises(TypeError):
            NoFetch()


# ─── Static source ─────────────────────────────────────────

class TestStaticRecordSource:

    def test_filters_by_date_and_sorts(self):
        source = StaticRecordSource({"recovery": [
            {"date": "2024-01-05", "recovery_score": 60},
            {"date": "2023-12-31", "recovery_score": 10},
            {"date": "2024-01-02", "recovery_score": 50},
        ]})
        rows = source.fetch("recovery", "u1", START, END)
        assert [r["date"] for r in rows] == ["2024-01-02", "2024-01-05"]

    def test_missing_domain(self):
        with pytest.raises(DataSourceError):
            StaticRecordSource().fetch("sleep", "u1", START, END)


# ─── Frame normalisation ───────────────────────────────────

class TestFrameToRecords:

    def test_dates_and_nulls(self):
        df = pd.DataFrame({
            "date": [date(2024, 1, 2), date(2024, 1, 1)],
            "recovery_score": [55.0, float("nan")],
        })
        rows = frame_to_records(df)
        assert rows[0]["date"] == "2024-01-01"
        assert rows[0]["recovery_score"] is None
        assert rows[1] == {"date": "2024-01-02", "recovery_score": 55.0}

    def test_empty_frame(self):
        assert frame_to_records(pd.DataFrame()) == []


# ─── Postgres source ───────────────────────────────────────

class TestPostgresRecordSource:

    def test_every_domain_has_a_scored_query(self):
        for domain in ("recovery", "sleep", "strain", "workout"):
            assert "SCORED" in QUERIES[domain]
            assert "AS date" in QUERIES[domain]

    def test_fetch_reads_and_closes(self):
        conn = MagicMock()
        df = pd.DataFrame({"date": [date(2024, 1, 1)], "strain": [12.5], "score_state": ["SCORED"]})
        with patch.object(record_source.psycopg2, "connect", return_value=conn) as connect, \
                patch.object(record_source.pd, "read_sql_query", return_value=df) as read:
            rows = PostgresRecordSource("postgresql://x").fetch("strain", "u1", START, END)
        connect.assert_called_once_with("postgresql://x")
        assert read.call_args.kwargs["params"] == ("u1", START, END)
        conn.close.assert_called_once()
        assert rows == [{"date": "2024-01-01", "strain": 12.5, "score_state": "SCORED"}]

    def test_missing_connection_string(self):
        with pytest.raises(DataSourceError):
            PostgresRecordSource("").fetch("recovery", "u1", START, END)

    def test_unknown_domain(self):
        with pytest.raises(DataSourceError):
            PostgresRecordSource("postgresql://x").fetch("burn-rate", "u1", START, END)

    def test_connect_failure_is_wrapped(self):
        with patch.object(record_source.psycopg2, "connect", side_effect=psycopg2.OperationalError("refused")):
            with pytest.raises(DataSourceError, match="refused"):
                PostgresRecordSource("postgresql://x").fetch("recovery", "u1", START, END)

    def test_query_failure_is_wrapped_and_closes(self):
        conn = MagicMock()
        with patch.object(record_source.psycopg2, "connect", return_value=conn), \
                patch.object(record_source.pd, "read_sql_query", side_effect=psycopg2.ProgrammingError("no table")):
            with pytest.raises(DataSourceError):
                PostgresRecordSource("postgresql://x").fetch("sleep", "u1", START, END)
        conn.close.assert_called_once()
