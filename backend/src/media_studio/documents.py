from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from pathlib import PurePath
from typing import Any, Dict, Optional

from sqlalchemy import select

from . import config
from .exceptions import DocumentNotFoundError, DocumentValidationError
from .models import Document

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = [
    "doc",
    "docx",
    "docm",
    "dotx",
    "rtf",
    "txt",
    "xls",
    "xlsx",
    "xlsm",
    "pot",
    "potm",
    "potx",
    "pps",
    "ppsm",
    "pptx",
    "ppt",
    "pptm",
]

MAX_DOCUMENT_SIZE = 10 * 1024 * 1024

PENDING = "pending"
COMPLETE = "complete"
FAILED = "failed"


def validate_document(filename: str, size: int) -> str:
    """Return the lower-cased extension, or raise before anything is uploaded."""
    if size > MAX_DOCUMENT_SIZE:
        raise DocumentValidationError("File size exceeds 10MB limit")
    extension = PurePath(filename or "").suffix.lstrip(".").lower()
    if extension not in SUPPORTED_FORMATS:
        raise DocumentValidationError(
            f"Unsupported file format. Supported formats: {', '.join(SUPPORTED_FORMATS)}"
        )
    return extension


def document_public_id(title: str, now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    millis = int(now.timestamp() * 1000)
    slug = re.sub(r"\s+", "_", title.strip())
    return f"{slug}_{millis}"


def upload_options(public_id: str) -> Dict[str, Any]:
    return {
        "resource_type": "raw",
        "folder": config.DOCUMENT_FOLDER,
        "raw_convert": "aspose",
        "public_id": public_id,
        "notification_url": f"{config.PUBLIC_BASE_URL}/api/document-webhook",
    }


def is_conversion_notification(payload: Dict[str, Any]) -> bool:
    return payload.get("notification_type") == "info" and payload.get("info_kind") == "aspose"


def apply_conversion_callback(session, payload: Dict[str, Any]) -> Optional[Document]:
    """Move a pending document to ``complete`` or ``failed``.

    Returns None for notifications that are not Aspose conversion results.
    """
    if not is_conversion_notification(payload):
        return None

    public_id = payload.get("public_id")
    status = payload.get("info_status")
    document = session.execute(
        select(Document).where(Document.original_public_id == public_id)
    ).scalar_one_or_none()
    if document is None:
        logger.error("Document not found for public_id %s", public_id)
        raise DocumentNotFoundError(f"Document not found: {public_id}")

    if document.conversion_status != PENDING:
        logger.info(
            "Ignoring %s callback for %s, already %s",
            status,
            public_id,
            document.conversion_status,
        )
        return document

    if status == COMPLETE:
        document.conversion_status = COMPLETE
        # The converted PDF and its first-page thumbnail share the original storage id
        document.pdf_public_id = public_id
        document.thumbnail_public_id = public_id
        logger.info("Document conversion completed: %s", public_id)
    elif status == FAILED:
        document.conversion_status = FAILED
        logger.error("Document conversion failed: %s", public_id)
    else:
        return document

    session.add(document)
    session.commit()
    return document
