from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

ROOT_DIR = Path(__file__).resolve().parents[3]

DATA_DIR = Path(
    os.getenv("MEDIA_STUDIO_DATA_DIR", ROOT_DIR / "data" / "media_studio")
).resolve()

DB_PATH = Path(os.getenv("MEDIA_STUDIO_DB", DATA_DIR / "media_studio.db"))

DATABASE_URL = os.getenv("MEDIA_STUDIO_DATABASE_URL", f"sqlite:///{DB_PATH}")

LOG_LEVEL = os.getenv("MEDIA_STUDIO_LOG_LEVEL", "INFO").strip().upper()

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("MEDIA_STUDIO_CORS_ORIGINS", "*").split(",")
    if origin.strip()
]

# Base URL the media host calls back into for document conversion notifications
PUBLIC_BASE_URL = os.getenv("MEDIA_STUDIO_PUBLIC_BASE_URL", "http://localhost:8000").rstrip("/")

# =============================================================================
# Cloudinary
# =============================================================================

CLOUDINARY_CLOUD_NAME = os.getenv("CLOUDINARY_CLOUD_NAME") or os.getenv(
    "NEXT_PUBLIC_CLOUDINARY_CLOUD_NAME", ""
)
CLOUDINARY_API_KEY = os.getenv("CLOUDINARY_API_KEY", "")
CLOUDINARY_API_SECRET = os.getenv("CLOUDINARY_API_SECRET", "")

VIDEO_FOLDER = os.getenv("MEDIA_STUDIO_VIDEO_FOLDER", "saas-pro-videos-upload")
IMAGE_FOLDER = os.getenv("MEDIA_STUDIO_IMAGE_FOLDER", "saas-pro-ai-images")
FACE_FOLDER = os.getenv("MEDIA_STUDIO_FACE_FOLDER", "saas-pro-face-detection")
DOCUMENT_FOLDER = os.getenv("MEDIA_STUDIO_DOCUMENT_FOLDER", "saas-pro-documents")

AI_VISION_BASE_URL = os.getenv(
    "MEDIA_STUDIO_AI_VISION_BASE_URL",
    f"https://api.cloudinary.com/v2/analysis/{CLOUDINARY_CLOUD_NAME}/analyze",
).rstrip("/")
VISION_TIMEOUT = float(os.getenv("MEDIA_STUDIO_VISION_TIMEOUT", "60"))

VERIFY_WEBHOOKS = os.getenv("MEDIA_STUDIO_VERIFY_WEBHOOKS", "1").strip().lower() in {
    "1",
    "true",
    "yes",
    "on",
}
WEBHOOK_MAX_AGE = int(os.getenv("MEDIA_STUDIO_WEBHOOK_MAX_AGE", "7200"))

# =============================================================================
# Authentication (tokens issued by the identity provider)
# =============================================================================

AUTH_SECRET = os.getenv("MEDIA_STUDIO_AUTH_SECRET", "")
AUTH_ALGORITHMS = [
    alg.strip()
    for alg in os.getenv("MEDIA_STUDIO_AUTH_ALGORITHMS", "HS256").split(",")
    if alg.strip()
]
AUTH_AUDIENCE = os.getenv("MEDIA_STUDIO_AUTH_AUDIENCE") or None
AUTH_ISSUER = os.getenv("MEDIA_STUDIO_AUTH_ISSUER") or None


def cloudinary_configured() -> bool:
    return bool(CLOUDINARY_CLOUD_NAME and CLOUDINARY_API_KEY and CLOUDINARY_API_SECRET)


def ensure_dirs() -> None:
    DATA_DIR.mkdir(parents=True, exist_ok=True)
