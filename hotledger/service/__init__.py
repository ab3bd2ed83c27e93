"""HotLedger relayer service (FastAPI)."""
