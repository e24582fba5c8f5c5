"""AI Vision: shape LLM analysis requests and call the analysis endpoints."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

import requests
from requests.auth import HTTPBasicAuth
from sqlalchemy import select

from . import config
from .exceptions import ProviderError, VisionRequestError
from .models import Image

logger = logging.getLogger(__name__)

MAX_ENTRIES = 10


class VisionMode(str, Enum):
    TAGGING = "tagging"
    MODERATION = "moderation"
    GENERAL = "general"


ENDPOINTS = {
    VisionMode.TAGGING: "ai_vision_tagging",
    VisionMode.MODERATION: "ai_vision_moderation",
    VisionMode.GENERAL: "ai_vision_general",
}

PAYLOAD_KEYS = {
    VisionMode.TAGGING: "tag_definitions",
    VisionMode.MODERATION: "rejection_questions",
    VisionMode.GENERAL: "prompts",
}

MISSING_MESSAGES = {
    VisionMode.TAGGING: "Tag definitions are required for tagging mode",
    VisionMode.MODERATION: "Rejection questions are required for moderation mode",
    VisionMode.GENERAL: "Prompts are required for general mode",
}

IMAGE_COLUMNS = {
    VisionMode.TAGGING: "ai_vision_tags",
    VisionMode.MODERATION: "ai_vision_moderation",
    VisionMode.GENERAL: "ai_vision_general",
}


@dataclass
class VisionRequest:
    mode: VisionMode
    endpoint: str
    payload: Dict[str, Any] = field(default_factory=dict)


def sanitize_tag_name(name: str) -> str:
    """Lower-case a tag name and keep only ``a-z``, ``0-9`` and single hyphens."""
    text = (name or "").strip().lower()
    text = re.sub(r"[\s_]+", "-", text)
    text = re.sub(r"[^a-z0-9-]", "", text)
    text = re.sub(r"-{2,}", "-", text).strip("-")
    if not text:
        raise VisionRequestError(f"Invalid tag name: {name!r}")
    return text


def parse_mode(mode: str) -> VisionMode:
    try:
        return VisionMode(mode)
    except ValueError:
        raise VisionRequestError(
            "Invalid mode. Must be 'tagging', 'moderation', or 'general'"
        ) from None


def build_vision_request(
    mode: str,
    image_url: Optional[str],
    tag_definitions: Optional[List[Dict[str, str]]] = None,
    rejection_questions: Optional[List[str]] = None,
    prompts: Optional[List[str]] = None,
    base_url: Optional[str] = None,
) -> VisionRequest:
    vision_mode = parse_mode(mode)
    if not image_url:
        raise VisionRequestError("Image URL is required")

    entries: List[Any]
    if vision_mode is VisionMode.TAGGING:
        entries = [
            {
                "name": sanitize_tag_name(item.get("name", "")),
                "description": item.get("description", ""),
            }
            for item in (tag_definitions or [])[:MAX_ENTRIES]
        ]
    elif vision_mode is VisionMode.MODERATION:
        entries = [q for q in (rejection_questions or []) if q and q.strip()][:MAX_ENTRIES]
    else:
        entries = [p for p in (prompts or []) if p and p.strip()][:MAX_ENTRIES]

    if not entries:
        raise VisionRequestError(MISSING_MESSAGES[vision_mode])

    base = (base_url or config.AI_VISION_BASE_URL).rstrip("/")
    return VisionRequest(
        mode=vision_mode,
        endpoint=f"{base}/{ENDPOINTS[vision_mode]}",
        payload={"source": {"uri": image_url}, PAYLOAD_KEYS[vision_mode]: entries},
    )


def extract_error_message(response: requests.Response) -> str:
    """Pull a readable message out of a failed response, structured body first."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
        if body.get("message"):
            return str(body["message"])
    text = (response.text or "").strip()
    if text:
        return text
    return f"AI Vision API error: {response.status_code}"


class VisionClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        timeout: float = config.VISION_TIMEOUT,
    ):
        self.api_key = api_key or config.CLOUDINARY_API_KEY
        self.api_secret = api_secret or config.CLOUDINARY_API_SECRET
        self.timeout = timeout

    def analyze(self, request: VisionRequest) -> Dict[str, Any]:
        response = requests.post(
            request.endpoint,
            json=request.payload,
            auth=HTTPBasicAuth(self.api_key, self.api_secret),
            timeout=self.timeout,
        )
        if not response.ok:
            message = extract_error_message(response)
            logger.error("AI Vision %s failed (%s): %s", request.mode.value, response.status_code, message)
            raise ProviderError(message, status_code=response.status_code)
        return response.json()


def _field(data: Any, key: str) -> Any:
    return data.get(key) if isinstance(data, dict) else None


def store_analysis(session, public_id: str, mode: VisionMode, result: Dict[str, Any]) -> bool:
    """Patch the image row matching ``public_id``.

    Returns False when no row matches or the provider body carries no analysis.
    """
    analysis = _field(_field(result, "data"), "analysis")
    if analysis is None:
        logger.warning("AI Vision %s result for %s has no analysis", mode.value, public_id)
        return False
    image = session.execute(
        select(Image).where(Image.public_id == public_id)
    ).scalar_one_or_none()
    if image is None:
        return False
    usage = _field(_field(_field(result, "limits"), "usage"), "count")
    image.tokens_used = usage if isinstance(usage, int) else 0
    setattr(image, IMAGE_COLUMNS[mode], analysis)
    session.add(image)
    session.commit()
    return True
