"""arcio backend - FastAPI host for a single editing session."""
