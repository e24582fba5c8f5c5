from backend.src.media_studio.faces import (
    face_image_fields,
    faces_from_upload,
    process_faces,
)


def _face(**attributes):
    return {
        "bounding_box": {"top": 1, "left": 2, "width": 30, "height": 40},
        "attributes": attributes,
    }


def test_no_faces(fake_host):
    result = process_faces(fake_host, "asset", [], "face-crop")
    assert result == {
        "tags": ["no-faces-detected"],
        "processedUrls": {},
        "faceCount": 0,
        "type": "face-crop",
    }


def test_face_crop_urls_and_tags(fake_host):
    result = process_faces(fake_host, "asset", [_face(), _face()], "face-crop")
    assert result["tags"] == ["2-faces-detected", "face-crop-applied"]
    assert set(result["processedUrls"]) == {"faceCropSingle", "faceCropAll"}
    assert "gravity=adv_face," in result["processedUrls"]["faceCropSingle"]
    assert "gravity=adv_faces" in result["processedUrls"]["faceCropAll"]
    assert result["faceCount"] == 2


def test_overlay_uses_faces_and_eyes_gravity(fake_host):
    result = process_faces(fake_host, "asset", [_face()], "face-overlay")
    assert set(result["processedUrls"]) == {"faceOverlay", "eyesOverlay"}
    assert "adv_eyes" in result["processedUrls"]["eyesOverlay"]
    assert "face-overlay-applied" in result["tags"]


def test_red_eye_removal(fake_host):
    result = process_faces(fake_host, "asset", [_face()], "red-eye-removal")
    assert result["processedUrls"] == {"redEyeRemoval": "https://media.test/asset?effect=adv_redeye"}
    assert result["tags"] == ["1-faces-detected", "red-eye-removal-applied"]


def test_default_mode_builds_preview_and_thumbnail(fake_host):
    result = process_faces(fake_host, "asset", [_face()], None)
    assert set(result["processedUrls"]) == {"faceDetection", "faceThumbnail"}
    assert result["tags"] == ["1-faces-detected"]


def test_attribute_tags_are_deduplicated(fake_host):
    faces = [
        _face(glasses="ReadingGlasses", blur={"blurLevel": "high", "value": 0.9}),
        _face(
            glasses="NoGlasses",
            occlusion={"eyeOccluded": True, "mouthOccluded": True, "foreheadOccluded": False},
            accessories=[{"type": "headwear", "confidence": 0.9}],
        ),
        _face(glasses="Sunglasses", blur={"blurLevel": "low", "value": 0.1}),
    ]
    result = process_faces(fake_host, "asset", faces, "face-detection")
    assert result["tags"] == [
        "3-faces-detected",
        "face-detection-applied",
        "glasses-detected",
        "blurry-face",
        "eyes-occluded",
        "mouth-occluded",
        "accessories-detected",
    ]


def test_faces_from_upload_and_image_fields():
    landmarks = {"eye": [{"x": 1, "y": 2}]}
    upload = {
        "public_id": "asset",
        "info": {
            "detection": {
                "adv_face": {
                    "status": "complete",
                    "data": [dict(_face(), facial_landmarks=landmarks), _face()],
                }
            }
        },
    }
    faces = faces_from_upload(upload)
    fields = face_image_fields(faces)
    assert fields["face_count"] == 2
    assert fields["has_faces"] is True
    assert fields["faces_bounding_boxes"][0] == {"top": 1, "left": 2, "width": 30, "height": 40}
    assert fields["facial_landmarks"] == [landmarks]


def test_faces_from_upload_without_detection():
    assert faces_from_upload({"public_id": "asset"}) == []
    assert face_image_fields([])["has_faces"] is False
