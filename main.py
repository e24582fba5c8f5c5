#!/usr/bin/env python3
"""
Media Studio - AI media processing API

Entry point for local development.
Run with: python main.py
"""

import os

import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "backend.main:app",
        host=os.getenv("MEDIA_STUDIO_HOST", "0.0.0.0"),
        port=int(os.getenv("MEDIA_STUDIO_PORT", "8000")),
        reload=os.getenv("MEDIA_STUDIO_RELOAD", "0").strip().lower() in {"1", "true", "yes", "on"},
    )
