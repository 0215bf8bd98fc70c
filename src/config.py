"""Configuration loaded from .env"""

import os

from dotenv import load_dotenv

load_dotenv()

# Analysis window for the auto tools (days)
ANALYSIS_DEFAULT_DAYS = int(os.getenv("ANALYSIS_DEFAULT_DAYS", "30"))
ANALYSIS_MAX_DAYS = int(os.getenv("ANALYSIS_MAX_DAYS", "90"))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# HTTP
FRONTEND_ORIGINS = [
    o.strip() for o in os.getenv("FRONTEND_ORIGINS", "").split(",") if o.strip()
] or [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]


def get_conn_str() -> str:
    """Return the PostgreSQL connection string for wearable records.

    Checks WHOOP_CONNECTION_STRING, then POSTGRES_CONNECTION_STRING, then
    DATABASE_URL (Heroku standard).  Normalises postgres:// to postgresql://.
    """
    url = (
        os.getenv("WHOOP_CONNECTION_STRING")
        or os.getenv("POSTGRES_CONNECTION_STRING")
        or os.getenv("DATABASE_URL")
        or ""
    ).strip()
    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://"):]
    return url
