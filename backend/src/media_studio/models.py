from __future__ import annotations

import uuid

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, Integer, String, Text
from sqlalchemy.sql import func

from .db import Base


def generate_id() -> str:
    return str(uuid.uuid4())


class Video(Base):
    __tablename__ = "videos"

    id = Column(String, primary_key=True, index=True, default=generate_id)
    title = Column(String, nullable=False, default="")
    description = Column(Text, nullable=True)
    public_id = Column(String, nullable=False, unique=True, index=True)
    original_size = Column(String, nullable=False, default="0")
    compressed_size = Column(String, nullable=False, default="0")
    duration = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class Image(Base):
    __tablename__ = "images"

    id = Column(String, primary_key=True, index=True, default=generate_id)
    title = Column(String, nullable=False, default="")
    description = Column(Text, nullable=True)
    public_id = Column(String, nullable=False, unique=True, index=True)
    original_size = Column(String, nullable=False, default="0")
    file_type = Column(String, nullable=False, default="")
    tags = Column(JSON, nullable=False, default=list)
    extracted_text = Column(Text, nullable=True)
    has_background_removed = Column(Boolean, nullable=False, default=False)
    is_enhanced = Column(Boolean, nullable=False, default=False)
    ai_caption = Column(Text, nullable=True)
    quality_score = Column(Float, nullable=True)
    quality_level = Column(String, nullable=True)
    watermark_detected = Column(String, nullable=True)
    object_detection = Column(JSON, nullable=True)
    # AI Vision results, one column per mode
    ai_vision_tags = Column(JSON, nullable=True)
    ai_vision_moderation = Column(JSON, nullable=True)
    ai_vision_general = Column(JSON, nullable=True)
    tokens_used = Column(Integer, nullable=True)
    # Advanced face detection
    facial_attributes = Column(JSON, nullable=True)
    face_count = Column(Integer, nullable=True)
    has_faces = Column(Boolean, nullable=False, default=False)
    faces_bounding_boxes = Column(JSON, nullable=True)
    facial_landmarks = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class Document(Base):
    __tablename__ = "documents"

    id = Column(String, primary_key=True, index=True, default=generate_id)
    title = Column(String, nullable=False, default="")
    description = Column(Text, nullable=True)
    original_public_id = Column(String, nullable=False, unique=True, index=True)
    pdf_public_id = Column(String, nullable=True)
    thumbnail_public_id = Column(String, nullable=True)
    original_size = Column(String, nullable=False, default="0")
    file_type = Column(String, nullable=False)
    conversion_status = Column(String, nullable=False, default="pending")
    page_count = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
