"""MindToss session/account backend (FastAPI)."""
