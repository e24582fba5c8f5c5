"""
Entrypoint for uvicorn.

This module re-exports the FastAPI app from backend.src.media_api so the
service can be started with ``uvicorn backend.main:app``.
"""

from backend.src.media_api import app  # noqa: F401
