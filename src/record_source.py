"""
Raw data source adapter.

The analysis engine consumes plain record dicts (snake_case keys, one per
day / night / workout, ascending by date).  This module is the only place
that knows where such records come from:

  StaticRecordSource   - pre-fetched arrays (CLI input files, tests)
  PostgresRecordSource - the synced WHOOP tables, SCORED rows only
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd
import psycopg2

from config import get_conn_str

log = logging.getLogger("record_source")


class DataSourceError(RuntimeError):
    """Upstream data could not be read (no connection, DB error, no account)."""


class RecordSource(ABC):
    """Abstract adapter: `fetch(domain, user_id, start, end)` -> list of records."""

    @abstractmethod
    def fetch(self, domain: str, user_id: str, start: date, end: date) -> List[Dict[str, Any]]:
        """Records for one owner and date range, ascending by date."""


class StaticRecordSource(RecordSource):
    """Serves records that were fetched elsewhere, keyed by domain."""

    def __init__(self, records: Optional[Mapping[str, List[Dict[str, Any]]]] = None):
        self.records = dict(records or {})

    def fetch(self, domain: str, user_id: str, start: date, end: date) -> List[Dict[str, Any]]:
        if domain not in self.records:
            raise DataSourceError(f"No {domain} data available for {user_id}")
        rows = [
            r for r in self.records[domain]
            if start.isoformat() <= str(r.get("date", ""))[:10] <= end.isoformat()
        ]
        return sorted(rows, key=lambda r: str(r.get("date", "")))


# Per-domain query; every query selects a `date` column and the record fields.
QUERIES: Dict[str, str] = {
    "recovery": """
        SELECT created_at::date AS date,
               recovery_score, hrv_rmssd, resting_heart_rate, score_state
        FROM whoop_recovery
        WHERE whoop_user_id = %s AND score_state = 'SCORED'
          AND created_at::date BETWEEN %s AND %s
        ORDER BY created_at ASC
    """,
    "sleep": """
        SELECT start::date AS date,
               sleep_performance_percentage, sleep_efficiency_percentage,
               total_in_bed_time, total_awake_time, total_rem_sleep_time,
               total_slow_wave_sleep_time, total_light_sleep_time,
               disturbance_count, score_state
        FROM whoop_sleep
        WHERE whoop_user_id = %s AND score_state = 'SCORED' AND NOT nap
          AND start::date BETWEEN %s AND %s
        ORDER BY start ASC
    """,
    "strain": """
        SELECT start::date AS date,
               strain, kilojoule, average_heart_rate, max_heart_rate,
               percent_recorded, score_state
        FROM whoop_cycle
        WHERE whoop_user_id = %s AND score_state = 'SCORED'
          AND start::date BETWEEN %s AND %s
        ORDER BY start ASC
    """,
    "workout": """
        SELECT start::date AS date, workout_id, sport_id,
               strain, kilojoule, average_heart_rate, max_heart_rate,
               percent_recorded, distance_meters, altitude_gain_meters, score_state,
               (EXTRACT(EPOCH FROM ("end" - start)) * 1000)::bigint AS duration
        FROM whoop_workout
        WHERE whoop_user_id = %s AND score_state = 'SCORED'
          AND start::date BETWEEN %s AND %s
        ORDER BY start ASC
    """,
}


def frame_to_records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """ISO date strings, NaN -> None, ascending date."""
    if df.empty:
        return []
    df = df.copy()
    df["date"] = pd.to_datetime(df["date"]).dt.strftime("%Y-%m-%d")
    df = df.sort_values("date", kind="stable")
    df = df.astype(object).where(pd.notna(df), None)
    return df.to_dict("records")


class PostgresRecordSource(RecordSource):
    """Reads the synced WHOOP tables for one owner."""

    def __init__(self, conn_str: Optional[str] = None):
        self.conn_str = conn_str if conn_str is not None else get_conn_str()

    def fetch(self, domain: str, user_id: str, start: date, end: date) -> List[Dict[str, Any]]:
        if domain not in QUERIES:
            raise DataSourceError(f"No WHOOP table for domain {domain!r}")
        if not self.conn_str:
            raise DataSourceError("No database connection string configured")

        try:
            conn = psycopg2.connect(self.conn_str)
        except psycopg2.Error as e:
            raise DataSourceError(f"Could not connect to database: {e}") from e
        try:
            df = pd.read_sql_query(QUERIES[domain], conn, params=(user_id, start, end))
        except (psycopg2.Error, pd.errors.DatabaseError) as e:
            raise DataSourceError(f"Failed to read {domain} data: {e}") from e
        finally:
            conn.close()

        records = frame_to_records(df)
        log.info("Loaded %d %s records for %s (%s -> %s)", len(records), domain, user_id, start, end)
        return records
