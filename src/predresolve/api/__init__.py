"""HTTP facade (FastAPI)."""
