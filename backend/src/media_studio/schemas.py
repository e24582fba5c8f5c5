from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class VideoOut(CamelModel):
    id: str
    title: str
    description: Optional[str] = None
    public_id: str
    original_size: str
    compressed_size: str
    duration: float
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ImageOut(CamelModel):
    id: str
    title: str
    description: Optional[str] = None
    public_id: str
    original_size: str
    file_type: str
    tags: List[str] = []
    extracted_text: Optional[str] = None
    has_background_removed: bool = False
    is_enhanced: bool = False
    ai_caption: Optional[str] = None
    quality_score: Optional[float] = None
    quality_level: Optional[str] = None
    watermark_detected: Optional[str] = None
    object_detection: Optional[Any] = None
    ai_vision_tags: Optional[Any] = None
    ai_vision_moderation: Optional[Any] = None
    ai_vision_general: Optional[Any] = None
    tokens_used: Optional[int] = None
    facial_attributes: Optional[Any] = None
    face_count: Optional[int] = None
    has_faces: bool = False
    faces_bounding_boxes: Optional[Any] = None
    facial_landmarks: Optional[Any] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ImageProcessResponse(ImageOut):
    processed_data: Dict[str, Any]
    original_url: str
    processed_url: Optional[str] = None


class FaceDetectionResponse(ImageOut):
    face_detection_data: Dict[str, Any]
    original_url: str
    processed_urls: Dict[str, str] = {}


class FaceData(CamelModel):
    id: str
    title: str
    public_id: str
    facial_attributes: Optional[Any] = None
    face_count: Optional[int] = None
    has_faces: bool = False
    faces_bounding_boxes: Optional[Any] = None
    facial_landmarks: Optional[Any] = None


class VisionData(CamelModel):
    id: str
    title: str
    public_id: str
    ai_vision_tags: Optional[Any] = None
    ai_vision_moderation: Optional[Any] = None
    ai_vision_general: Optional[Any] = None
    tokens_used: Optional[int] = None


class TagDefinition(BaseModel):
    name: str
    description: str = ""


class VisionRequestBody(CamelModel):
    mode: str = ""
    image_url: Optional[str] = None
    public_id: Optional[str] = None
    tag_definitions: Optional[List[TagDefinition]] = None
    rejection_questions: Optional[List[str]] = None
    prompts: Optional[List[str]] = None


class DocumentOut(CamelModel):
    id: str
    title: str
    description: Optional[str] = None
    original_public_id: str
    pdf_public_id: Optional[str] = None
    thumbnail_public_id: Optional[str] = None
    original_size: str
    file_type: str
    conversion_status: str
    page_count: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class DocumentUploadResponse(DocumentOut):
    original_url: str
    message: str


class SignedUrlRequest(CamelModel):
    public_id: Optional[str] = None


class SignedUrls(CamelModel):
    original: str
    standard: str
    fine_edges: str
    with_shadow: str
    enhanced: str


class DeleteResponse(BaseModel):
    success: bool = True


class WebhookAck(BaseModel):
    success: bool = True
    status: Optional[str] = Field(default=None)
