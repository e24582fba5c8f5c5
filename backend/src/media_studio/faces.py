"""Relabel the media host's advanced face detection payload.

Nothing is inferred here: the tags and preview URLs are derived from the
per-face boxes and attributes the provider already computed.
"""

from __future__ import annotations

from typing import Any, Dict, List

from .media_host import MediaHost

FACE_DETECTION = "face-detection"
FACE_CROP = "face-crop"
FACE_OVERLAY = "face-overlay"
RED_EYE_REMOVAL = "red-eye-removal"


def faces_from_upload(upload_result: Dict[str, Any]) -> List[Dict[str, Any]]:
    detection = (upload_result.get("info") or {}).get("detection") or {}
    faces = (detection.get("adv_face") or {}).get("data") or []
    return [face for face in faces if isinstance(face, dict)]


def preview_urls(host: MediaHost, public_id: str, mode: str | None) -> Dict[str, str]:
    if mode == FACE_DETECTION:
        return {
            "faceDetection": host.url(
                public_id,
                overlay="text:Arial_20_bold:Face%20Detected",
                gravity="adv_faces",
                color="red",
            ),
        }
    if mode == FACE_CROP:
        return {
            "faceCropSingle": host.url(
                public_id, width=300, height=300, crop="thumb", gravity="adv_face"
            ),
            "faceCropAll": host.url(
                public_id, width=400, height=300, crop="fill", gravity="adv_faces"
            ),
        }
    if mode == FACE_OVERLAY:
        return {
            "faceOverlay": host.url(
                public_id,
                transformation=[
                    {"overlay": "text:Arial_30_bold:\U0001F60A"},
                    {"flags": "region_relative", "width": "0.8", "crop": "scale"},
                    {"flags": "layer_apply", "gravity": "adv_faces"},
                ],
            ),
            "eyesOverlay": host.url(
                public_id,
                transformation=[
                    {"overlay": "text:Arial_20_bold:\U0001F440"},
                    {"flags": "region_relative", "width": "1.2", "crop": "scale"},
                    {"flags": "layer_apply", "gravity": "adv_eyes"},
                ],
            ),
        }
    if mode == RED_EYE_REMOVAL:
        return {"redEyeRemoval": host.url(public_id, effect="adv_redeye")}
    return {
        "faceDetection": host.url(
            public_id,
            overlay="text:Arial_16_bold:Faces%20Detected",
            gravity="adv_faces",
            color="white",
            background="black",
        ),
        "faceThumbnail": host.url(
            public_id, width=200, height=200, crop="thumb", gravity="adv_face"
        ),
    }


MODE_TAGS = {
    FACE_DETECTION: "face-detection-applied",
    FACE_CROP: "face-crop-applied",
    FACE_OVERLAY: "face-overlay-applied",
    RED_EYE_REMOVAL: "red-eye-removal-applied",
}


def attribute_tags(face: Dict[str, Any]) -> List[str]:
    attrs = face.get("attributes") or {}
    tags: List[str] = []
    glasses = attrs.get("glasses")
    if glasses and glasses != "NoGlasses":
        tags.append("glasses-detected")
    if (attrs.get("blur") or {}).get("blurLevel") == "high":
        tags.append("blurry-face")
    occlusion = attrs.get("occlusion") or {}
    if occlusion.get("eyeOccluded"):
        tags.append("eyes-occluded")
    if occlusion.get("mouthOccluded"):
        tags.append("mouth-occluded")
    if occlusion.get("foreheadOccluded"):
        tags.append("forehead-occluded")
    if attrs.get("accessories"):
        tags.append("accessories-detected")
    return tags


def process_faces(
    host: MediaHost, public_id: str, faces: List[Dict[str, Any]], mode: str | None
) -> Dict[str, Any]:
    if not faces:
        return {"tags": ["no-faces-detected"], "processedUrls": {}, "faceCount": 0, "type": mode}

    tags = [f"{len(faces)}-faces-detected"]
    processed_urls = preview_urls(host, public_id, mode)
    if mode in MODE_TAGS:
        tags.append(MODE_TAGS[mode])
    for face in faces:
        tags.extend(attribute_tags(face))

    return {
        "tags": list(dict.fromkeys(tags)),
        "processedUrls": processed_urls,
        "faceCount": len(faces),
        "type": mode,
    }


def face_image_fields(faces: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "facial_attributes": faces,
        "face_count": len(faces),
        "has_faces": len(faces) > 0,
        "faces_bounding_boxes": [face.get("bounding_box") for face in faces],
        "facial_landmarks": [
            face["facial_landmarks"] for face in faces if face.get("facial_landmarks")
        ],
    }
