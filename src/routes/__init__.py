"""
API Routes Package
==================
Request-level plumbing shared by the FastAPI app in api.py.

Modules:
  helpers  - caller headers, record-source dependency, NDJSON encoding
"""
