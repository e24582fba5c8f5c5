"""Image AI processors backed by the media host's add-ons.

Each processor takes the storage id of an already uploaded image, triggers one
add-on, and reshapes the provider's response into a small dict that always
carries ``tags`` and ``type``. Processors never raise: on failure they log and
return a ``<feature>-failed`` fallback so the upload can still be recorded.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List

from .media_host import MediaHost

logger = logging.getLogger(__name__)

MAX_TAGS = 10


class ProcessType(str, Enum):
    BACKGROUND_REMOVAL = "background-removal"
    OCR = "ocr"
    AUTO_TAG = "auto-tag"
    ENHANCE = "enhance"
    QUALITY_ANALYSIS = "quality-analysis"
    WATERMARK_DETECTION = "watermark-detection"
    CAPTIONING = "captioning"
    OBJECT_DETECTION = "object-detection"


ProcessorFn = Callable[[MediaHost, str], Dict[str, Any]]


def _dig(data: Any, *path: Any) -> Any:
    """Walk nested dicts/lists, returning None as soon as a step is missing."""
    current = data
    for key in path:
        if isinstance(key, int):
            if not isinstance(current, list) or len(current) <= key:
                return None
        elif not isinstance(current, dict) or key not in current:
            return None
        current = current[key]
    return current


def _unique(items: List[str]) -> List[str]:
    seen: List[str] = []
    for item in items:
        if item not in seen:
            seen.append(item)
    return seen


def _detection_models(result: Dict[str, Any]) -> Dict[str, Any]:
    data = _dig(result, "info", "detection", "object_detection", "data")
    return data if isinstance(data, dict) else {}


def remove_background(host: MediaHost, public_id: str) -> Dict[str, Any]:
    kind = ProcessType.BACKGROUND_REMOVAL.value
    try:
        processed_url = host.signed_url(public_id, effect="background_removal", format="png")
        fine_edges_url = host.signed_url(
            public_id, effect="background_removal:fineedges_y", format="png"
        )
        return {
            "processedUrl": processed_url,
            "fineEdgesUrl": fine_edges_url,
            "tags": ["background-removed"],
            "type": kind,
        }
    except Exception:
        logger.exception("Background removal failed for %s", public_id)
        return {"processedUrl": None, "fineEdgesUrl": None, "tags": [], "type": kind}


def extract_text(host: MediaHost, public_id: str) -> Dict[str, Any]:
    kind = ProcessType.OCR.value
    try:
        result = host.resource(public_id, ocr="adv_ocr")
        text = _dig(
            result, "info", "ocr", "adv_ocr", "data", 0, "textAnnotations", 0, "description"
        ) or ""
        return {
            "extractedText": text,
            "tags": ["text-detected"] if text else ["no-text"],
            "type": kind,
        }
    except Exception:
        logger.exception("OCR failed for %s", public_id)
        return {"extractedText": "", "tags": ["ocr-failed"], "type": kind}


def auto_tag(host: MediaHost, public_id: str) -> Dict[str, Any]:
    kind = ProcessType.AUTO_TAG.value
    try:
        result = host.upload_remote(
            public_id,
            detection="coco",
            auto_tagging=0.6,
            public_id=f"{public_id}_tagged",
            overwrite=True,
        )
        tags = [tag for tag in result.get("tags") or [] if isinstance(tag, str)]
        detected = []
        for model_data in _detection_models(result).values():
            model_tags = model_data.get("tags") if isinstance(model_data, dict) else None
            if not isinstance(model_tags, dict):
                continue
            for name, detections in model_tags.items():
                if isinstance(detections, list):
                    detected.append(name)
        return {"tags": _unique(tags + detected)[:MAX_TAGS], "type": kind}
    except Exception:
        logger.exception("Auto-tagging failed for %s", public_id)
        return {"tags": ["auto-tag-failed"], "type": kind}


def enhance(host: MediaHost, public_id: str) -> Dict[str, Any]:
    kind = ProcessType.ENHANCE.value
    try:
        processed_url = host.signed_url(
            public_id, effect="viesus_correct", quality="auto:best", fetch_format="auto"
        )
        return {
            "processedUrl": processed_url,
            "tags": ["enhanced", "viesus-corrected"],
            "type": kind,
        }
    except Exception:
        logger.exception("Enhancement failed for %s", public_id)
        return {"processedUrl": None, "tags": ["enhancement-failed"], "type": kind}


def analyze_quality(host: MediaHost, public_id: str) -> Dict[str, Any]:
    kind = ProcessType.QUALITY_ANALYSIS.value
    try:
        result = host.upload_remote(
            public_id,
            detection="iqa",
            public_id=f"{public_id}_quality",
            overwrite=True,
        )
        attributes = _dig(
            _detection_models(result), "iqa", "tags", "iqa-analysis", 0, "attributes"
        ) or {}
        level = attributes.get("quality") or "unknown"
        return {
            "qualityScore": attributes.get("score") or 0,
            "qualityLevel": level,
            "tags": [f"quality-{level}"],
            "type": kind,
        }
    except Exception:
        logger.exception("Quality analysis failed for %s", public_id)
        return {
            "qualityScore": 0,
            "qualityLevel": "unknown",
            "tags": ["quality-failed"],
            "type": kind,
        }


def _confidence(tags: Dict[str, Any], name: str) -> float:
    value = _dig(tags, name, 0, "confidence")
    return float(value) if isinstance(value, (int, float)) else 0.0


def detect_watermark(host: MediaHost, public_id: str) -> Dict[str, Any]:
    kind = ProcessType.WATERMARK_DETECTION.value
    try:
        result = host.upload_remote(
            public_id,
            detection="watermark-detection",
            auto_tagging=0.5,
            public_id=f"{public_id}_watermark",
            overwrite=True,
        )
        tags = _dig(_detection_models(result), "watermark-detection", "tags") or {}
        watermark = "clean"
        if _confidence(tags, "banner") > 0.5:
            watermark = "banner"
        elif _confidence(tags, "watermark") > 0.5:
            watermark = "watermark"
        return {"watermarkDetected": watermark, "tags": [watermark], "type": kind}
    except Exception:
        logger.exception("Watermark detection failed for %s", public_id)
        return {"watermarkDetected": "unknown", "tags": ["watermark-failed"], "type": kind}


def caption(host: MediaHost, public_id: str) -> Dict[str, Any]:
    kind = ProcessType.CAPTIONING.value
    try:
        result = host.upload_remote(
            public_id,
            detection="captioning",
            public_id=f"{public_id}_caption",
            overwrite=True,
        )
        text = _dig(result, "info", "detection", "captioning", "data", "caption") or ""
        return {
            "aiCaption": text,
            "tags": ["captioned"] if text else ["caption-failed"],
            "type": kind,
        }
    except Exception:
        logger.exception("Captioning failed for %s", public_id)
        return {"aiCaption": "", "tags": ["caption-failed"], "type": kind}


def detect_objects(host: MediaHost, public_id: str) -> Dict[str, Any]:
    kind = ProcessType.OBJECT_DETECTION.value
    try:
        result = host.upload_remote(
            public_id,
            auto_tagging=0.6,
            public_id=f"{public_id}_objects",
            overwrite=True,
        )
        objects: List[Dict[str, Any]] = []
        for model, model_data in _detection_models(result).items():
            model_tags = model_data.get("tags") if isinstance(model_data, dict) else None
            if not isinstance(model_tags, dict):
                continue
            for name, detections in model_tags.items():
                if not isinstance(detections, list):
                    continue
                for detection in detections:
                    objects.append(
                        {
                            "object": name,
                            "confidence": detection.get("confidence"),
                            "boundingBox": detection.get("bounding-box"),
                            "model": model,
                        }
                    )
        return {
            "objectDetection": objects,
            "tags": [obj["object"] for obj in objects][:MAX_TAGS],
            "type": kind,
        }
    except Exception:
        logger.exception("Object detection failed for %s", public_id)
        return {"objectDetection": [], "tags": ["object-detection-failed"], "type": kind}


PROCESSORS: Dict[ProcessType, ProcessorFn] = {
    ProcessType.BACKGROUND_REMOVAL: remove_background,
    ProcessType.OCR: extract_text,
    ProcessType.AUTO_TAG: auto_tag,
    ProcessType.ENHANCE: enhance,
    ProcessType.QUALITY_ANALYSIS: analyze_quality,
    ProcessType.WATERMARK_DETECTION: detect_watermark,
    ProcessType.CAPTIONING: caption,
    ProcessType.OBJECT_DETECTION: detect_objects,
}


def process_image(host: MediaHost, public_id: str, process_type: str | None) -> Dict[str, Any]:
    try:
        kind = ProcessType(process_type)
    except ValueError:
        logger.info("Unknown process type %r for %s", process_type, public_id)
        return {"tags": [], "extractedText": None, "type": "unknown"}
    return PROCESSORS[kind](host, public_id)


def image_fields_from_result(process_type: str | None, processed: Dict[str, Any]) -> Dict[str, Any]:
    """Map a processor result onto Image columns, dropping values of the wrong type."""

    def text(key: str):
        value = processed.get(key)
        return value if isinstance(value, str) else None

    tags = processed.get("tags")
    score = processed.get("qualityScore")
    return {
        "tags": [tag for tag in tags if isinstance(tag, str)] if isinstance(tags, list) else [],
        "extracted_text": text("extractedText"),
        "has_background_removed": process_type == ProcessType.BACKGROUND_REMOVAL.value,
        "is_enhanced": process_type == ProcessType.ENHANCE.value,
        "ai_caption": text("aiCaption"),
        "quality_score": score if isinstance(score, (int, float)) and not isinstance(score, bool) else None,
        "quality_level": text("qualityLevel"),
        "watermark_detected": text("watermarkDetected"),
        "object_detection": {
            "processType": process_type,
            "processedUrls": {
                "processedUrl": text("processedUrl"),
                "fineEdgesUrl": text("fineEdgesUrl"),
            },
            "processedAt": datetime.now(timezone.utc).isoformat(),
            "originalData": processed.get("objectDetection") or None,
        },
    }
