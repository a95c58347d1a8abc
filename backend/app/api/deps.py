"""Shared dependencies for the API routers."""

from fastapi import HTTPException

from app.core.engine import TransitEngine

# Will be set by main.py
engine: TransitEngine | None = None


def get_engine() -> TransitEngine:
    if engine is None or not engine.ready:
        raise HTTPException(status_code=503, detail="Transit network not loaded yet")
    return engine
