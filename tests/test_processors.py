import cloudinary.uploader
import pytest

from backend.src.media_studio.media_host import MediaHost
from backend.src.media_studio.processors import (
    PROCESSORS,
    ProcessType,
    image_fields_from_result,
    process_image,
)


def _detections(data):
    return {"info": {"detection": {"object_detection": {"data": data}}}}


@pytest.mark.parametrize("process_type", [kind.value for kind in ProcessType])
def test_every_process_type_reports_tags_and_type(fake_host, process_type):
    result = process_image(fake_host, "asset", process_type)
    assert isinstance(result["tags"], list)
    assert result["type"] == process_type


@pytest.mark.parametrize("process_type", [kind.value for kind in ProcessType])
def test_processor_failures_degrade_to_fallback(fake_host, process_type):
    fake_host.fail_with = RuntimeError("provider down")
    result = process_image(fake_host, "asset", process_type)
    assert result["type"] == process_type
    assert isinstance(result["tags"], list)
    if process_type != "background-removal":
        assert any(tag.endswith("-failed") for tag in result["tags"])


def test_dispatcher_calls_exactly_one_handler(fake_host, monkeypatch):
    calls = []
    for kind in ProcessType:
        monkeypatch.setitem(
            PROCESSORS,
            kind,
            lambda host, public_id, kind=kind: calls.append(kind) or {"tags": [], "type": kind.value},
        )
    process_image(fake_host, "asset", "captioning")
    assert calls == [ProcessType.CAPTIONING]


def test_unknown_process_type_returns_empty_tags(fake_host):
    assert process_image(fake_host, "asset", "sharpen") == {
        "tags": [],
        "extractedText": None,
        "type": "unknown",
    }
    assert process_image(fake_host, "asset", None)["tags"] == []
    assert fake_host.remote_uploads == []


def test_background_removal_builds_signed_png_urls(fake_host):
    result = process_image(fake_host, "asset", "background-removal")
    assert result["tags"] == ["background-removed"]
    assert "effect=background_removal," in result["processedUrl"]
    assert "effect=background_removal:fineedges_y" in result["fineEdgesUrl"]
    assert "sign_url=True" in result["processedUrl"]


def test_ocr_extracts_first_annotation(fake_host):
    fake_host.resource_response = {
        "info": {
            "ocr": {
                "adv_ocr": {
                    "data": [{"textAnnotations": [{"description": "HELLO\nWORLD"}]}]
                }
            }
        }
    }
    result = process_image(fake_host, "asset", "ocr")
    assert result["extractedText"] == "HELLO\nWORLD"
    assert result["tags"] == ["text-detected"]
    assert fake_host.resource_calls == [{"public_id": "asset", "ocr": "adv_ocr"}]


def test_ocr_without_text(fake_host):
    result = process_image(fake_host, "asset", "ocr")
    assert result == {"extractedText": "", "tags": ["no-text"], "type": "ocr"}


def test_auto_tag_merges_tags_and_detected_objects(fake_host):
    fake_host.remote_response = {
        "tags": ["cat", "pet"],
        **_detections(
            {
                "coco": {"tags": {"cat": [{"confidence": 0.9}], "sofa": [{"confidence": 0.7}]}},
                "lvis": {"tags": {"pillow": [{"confidence": 0.6}]}},
            }
        ),
    }
    result = process_image(fake_host, "asset", "auto-tag")
    assert result["tags"] == ["cat", "pet", "sofa", "pillow"]
    call = fake_host.remote_uploads[0]
    assert call["detection"] == "coco"
    assert call["public_id"] == "asset_tagged"


def test_auto_tag_limits_to_ten(fake_host):
    fake_host.remote_response = {"tags": [f"tag-{i}" for i in range(15)]}
    assert len(process_image(fake_host, "asset", "auto-tag")["tags"]) == 10


def test_quality_analysis_reads_iqa_attributes(fake_host):
    fake_host.remote_response = _detections(
        {"iqa": {"tags": {"iqa-analysis": [{"attributes": {"score": 0.82, "quality": "high"}}]}}}
    )
    result = process_image(fake_host, "asset", "quality-analysis")
    assert result["qualityScore"] == 0.82
    assert result["qualityLevel"] == "high"
    assert result["tags"] == ["quality-high"]


def test_quality_analysis_defaults_to_unknown(fake_host):
    result = process_image(fake_host, "asset", "quality-analysis")
    assert result["qualityScore"] == 0
    assert result["tags"] == ["quality-unknown"]


@pytest.mark.parametrize(
    "tags,expected",
    [
        ({"banner": [{"confidence": 0.8}], "watermark": [{"confidence": 0.9}]}, "banner"),
        ({"banner": [{"confidence": 0.3}], "watermark": [{"confidence": 0.9}]}, "watermark"),
        ({"watermark": [{"confidence": 0.5}]}, "clean"),
        ({}, "clean"),
    ],
)
def test_watermark_classification(fake_host, tags, expected):
    fake_host.remote_response = _detections({"watermark-detection": {"tags": tags}})
    result = process_image(fake_host, "asset", "watermark-detection")
    assert result["watermarkDetected"] == expected
    assert result["tags"] == [expected]


def test_captioning(fake_host):
    fake_host.remote_response = {
        "info": {"detection": {"captioning": {"data": {"caption": "A cat on a sofa"}}}}
    }
    result = process_image(fake_host, "asset", "captioning")
    assert result["aiCaption"] == "A cat on a sofa"
    assert result["tags"] == ["captioned"]


def test_captioning_empty_caption(fake_host):
    result = process_image(fake_host, "asset", "captioning")
    assert result["tags"] == ["caption-failed"]


def test_object_detection_flattens_detections(fake_host):
    box = [10, 20, 30, 40]
    fake_host.remote_response = _detections(
        {"coco": {"tags": {"dog": [{"confidence": 0.91, "bounding-box": box}, {"confidence": 0.7}]}}}
    )
    result = process_image(fake_host, "asset", "object-detection")
    assert result["objectDetection"] == [
        {"object": "dog", "confidence": 0.91, "boundingBox": box, "model": "coco"},
        {"object": "dog", "confidence": 0.7, "boundingBox": None, "model": "coco"},
    ]
    assert result["tags"] == ["dog", "dog"]


def test_image_fields_type_checks_values():
    fields = image_fields_from_result(
        "enhance",
        {"tags": "oops", "extractedText": 12, "qualityScore": "high", "processedUrl": "https://x"},
    )
    assert fields["tags"] == []
    assert fields["extracted_text"] is None
    assert fields["quality_score"] is None
    assert fields["is_enhanced"] is True
    assert fields["has_background_removed"] is False
    assert fields["object_detection"]["processType"] == "enhance"
    assert fields["object_detection"]["processedUrls"] == {
        "processedUrl": "https://x",
        "fineEdgesUrl": None,
    }


@pytest.mark.parametrize(
    "process_type,suffix",
    [
        ("auto-tag", "tagged"),
        ("quality-analysis", "quality"),
        ("watermark-detection", "watermark"),
        ("captioning", "caption"),
        ("object-detection", "objects"),
    ],
)
def test_detection_processors_reach_the_sdk(monkeypatch, process_type, suffix):
    calls = []

    def fake_upload(file, **options):
        calls.append({"file": file, **options})
        return {
            "tags": ["cat"],
            "info": {"detection": {"captioning": {"data": {"caption": "A cat"}}}},
        }

    monkeypatch.setattr(cloudinary.uploader, "upload", fake_upload)
    host = MediaHost(cloud_name="demo", api_key="1234", api_secret="shh")

    result = process_image(host, "asset", process_type)

    assert len(calls) == 1
    assert calls[0]["file"].startswith("https://res.cloudinary.com/demo/image/upload/")
    assert calls[0]["file"].endswith("/asset")
    assert calls[0]["public_id"] == f"asset_{suffix}"
    assert calls[0]["overwrite"] is True
    assert not any(tag.endswith("-failed") for tag in result["tags"])
