from __future__ import annotations

import json
import logging
from pathlib import PurePath
from typing import List, Optional

from fastapi import Depends, FastAPI, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.routing import APIRouter
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from backend.src.media_studio import config
from backend.src.media_studio.auth import CurrentUser, get_current_user
from backend.src.media_studio.config import ensure_dirs
from backend.src.media_studio.db import SessionLocal, init_db
from backend.src.media_studio.documents import (
    PENDING,
    apply_conversion_callback,
    document_public_id,
    upload_options,
    validate_document,
)
from backend.src.media_studio.exceptions import (
    ConfigurationError,
    DocumentNotFoundError,
    DocumentValidationError,
    MediaStudioError,
    ProviderError,
    UploadError,
    VisionRequestError,
)
from backend.src.media_studio.faces import face_image_fields, faces_from_upload, process_faces
from backend.src.media_studio.logging_setup import configure_logging
from backend.src.media_studio.media_host import MediaHost
from backend.src.media_studio.models import Document, Image, Video
from backend.src.media_studio.processors import image_fields_from_result, process_image
from backend.src.media_studio.schemas import (
    DeleteResponse,
    DocumentOut,
    DocumentUploadResponse,
    FaceData,
    FaceDetectionResponse,
    ImageOut,
    ImageProcessResponse,
    SignedUrlRequest,
    SignedUrls,
    VideoOut,
    VisionData,
    VisionRequestBody,
    WebhookAck,
)
from backend.src.media_studio.signed_urls import signed_url_set
from backend.src.media_studio.vision import VisionClient, build_vision_request, store_analysis

configure_logging()
logger = logging.getLogger("media_studio.api")

app = FastAPI(title="Media Studio API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

router = APIRouter(prefix="/api")


def get_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def get_media_host() -> MediaHost:
    return MediaHost()


def get_vision_client() -> VisionClient:
    return VisionClient()


def _error(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.exception_handler(ConfigurationError)
def configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.error("%s %s: %s", request.method, request.url.path, exc)
    return _error(500, exc)


@app.exception_handler(UploadError)
def upload_error_handler(request: Request, exc: UploadError):
    logger.error("%s %s: %s", request.method, request.url.path, exc)
    return _error(502, exc)


@app.exception_handler(DocumentValidationError)
@app.exception_handler(VisionRequestError)
def validation_error_handler(request: Request, exc: MediaStudioError):
    return _error(400, exc)


@app.exception_handler(DocumentNotFoundError)
def not_found_handler(request: Request, exc: DocumentNotFoundError):
    return _error(404, exc)


@app.exception_handler(ProviderError)
def provider_error_handler(request: Request, exc: ProviderError):
    return _error(exc.status_code or 502, exc)


@app.on_event("startup")
def startup() -> None:
    ensure_dirs()
    init_db()


@app.get("/health")
def health_check() -> dict:
    return {"status": "ok"}


def _require_file(file: Optional[UploadFile]) -> bytes:
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded")
    return file.file.read()


def _read_document(file: Optional[UploadFile]) -> tuple:
    """Validate a document upload, checking the declared size before buffering it."""
    if file is not None and file.filename and file.size is not None:
        validate_document(file.filename, file.size)
    data = _require_file(file)
    return data, validate_document(file.filename, len(data))


# ---------------------------------------------------------------------------
# Videos
# ---------------------------------------------------------------------------


@router.post("/video-upload", response_model=VideoOut)
def upload_video(
    user: CurrentUser = Depends(get_current_user),
    file: Optional[UploadFile] = File(None),
    title: str = Form(""),
    description: str = Form(""),
    original_size: str = Form("", alias="originalSize"),
    host: MediaHost = Depends(get_media_host),
    session=Depends(get_session),
):
    host.require_credentials()
    data = _require_file(file)
    try:
        result = host.upload_bytes(
            data,
            resource_type="video",
            folder=config.VIDEO_FOLDER,
            transformation=[{"quality": "auto", "fetch_format": "mp4"}],
        )
        video = Video(
            title=title or file.filename,
            description=description,
            public_id=result["public_id"],
            original_size=original_size or str(len(data)),
            compressed_size=str(result.get("bytes", 0)),
            duration=float(result.get("duration") or 0),
        )
        session.add(video)
        session.commit()
        session.refresh(video)
    except MediaStudioError:
        raise
    except Exception as exc:
        logger.exception("Error uploading video for %s", user.user_id)
        raise HTTPException(status_code=500, detail="Error uploading video") from exc
    return video


@router.get("/videos", response_model=List[VideoOut])
def list_videos(
    user: CurrentUser = Depends(get_current_user),
    session=Depends(get_session),
):
    return session.execute(select(Video).order_by(Video.created_at.desc())).scalars().all()


# ---------------------------------------------------------------------------
# AI image processing
# ---------------------------------------------------------------------------


@router.post("/ai-image-process", response_model=ImageProcessResponse)
def process_ai_image(
    user: CurrentUser = Depends(get_current_user),
    file: Optional[UploadFile] = File(None),
    title: str = Form(""),
    description: str = Form(""),
    process_type: Optional[str] = Form(None, alias="processType"),
    host: MediaHost = Depends(get_media_host),
    session=Depends(get_session),
):
    host.require_credentials()
    data = _require_file(file)
    try:
        upload = host.upload_bytes(data, folder=config.IMAGE_FOLDER, resource_type="image")
        public_id = upload["public_id"]
        processed = process_image(host, public_id, process_type)
        image = Image(
            title=title or file.filename,
            description=description,
            public_id=public_id,
            original_size=str(upload.get("bytes", len(data))),
            file_type=upload.get("format") or "",
            **image_fields_from_result(process_type, processed),
        )
        session.add(image)
        session.commit()
        session.refresh(image)
        original_url = host.url(public_id)
    except MediaStudioError:
        raise
    except Exception as exc:
        logger.exception("Error processing image for %s", user.user_id)
        raise HTTPException(status_code=500, detail="Error processing image") from exc

    return ImageProcessResponse(
        **ImageOut.model_validate(image).model_dump(),
        processed_data=processed,
        original_url=original_url,
        processed_url=processed.get("processedUrl") or None,
    )


@router.get("/ai-images", response_model=List[ImageOut])
def list_images(
    user: CurrentUser = Depends(get_current_user),
    session=Depends(get_session),
):
    return session.execute(select(Image).order_by(Image.created_at.desc())).scalars().all()


@router.delete("/ai-images", response_model=DeleteResponse)
def delete_image(
    image_id: Optional[str] = Query(None, alias="id"),
    user: CurrentUser = Depends(get_current_user),
    session=Depends(get_session),
):
    if not image_id:
        raise HTTPException(status_code=400, detail="Image ID required")
    image = session.get(Image, image_id)
    if image is None:
        return JSONResponse(status_code=404, content={"error": "Image not found"})
    session.delete(image)
    session.commit()
    return DeleteResponse()


# ---------------------------------------------------------------------------
# AI Vision
# ---------------------------------------------------------------------------


@router.post("/ai-vision")
def analyze_with_vision(
    body: VisionRequestBody,
    user: CurrentUser = Depends(get_current_user),
    client: VisionClient = Depends(get_vision_client),
    session=Depends(get_session),
):
    request = build_vision_request(
        body.mode,
        body.image_url,
        tag_definitions=[tag.model_dump() for tag in body.tag_definitions or []],
        rejection_questions=body.rejection_questions,
        prompts=body.prompts,
    )
    try:
        result = client.analyze(request)
    except MediaStudioError:
        raise
    except Exception as exc:
        logger.exception("AI Vision request failed for %s", user.user_id)
        raise HTTPException(status_code=500, detail="AI Vision processing failed") from exc

    persisted = False
    if body.public_id:
        try:
            persisted = store_analysis(session, body.public_id, request.mode, result)
        except SQLAlchemyError:
            session.rollback()
            logger.exception("Could not store AI Vision %s result for %s", request.mode.value, body.public_id)
    return {**result, "persisted": persisted}


@router.get("/ai-vision", response_model=VisionData)
def get_vision_results(
    public_id: Optional[str] = Query(None, alias="publicId"),
    user: CurrentUser = Depends(get_current_user),
    session=Depends(get_session),
):
    return _image_by_public_id(session, public_id)


# ---------------------------------------------------------------------------
# Face detection
# ---------------------------------------------------------------------------


@router.post("/face-detection", response_model=FaceDetectionResponse)
def detect_faces(
    user: CurrentUser = Depends(get_current_user),
    file: Optional[UploadFile] = File(None),
    title: str = Form(""),
    description: str = Form(""),
    process_type: Optional[str] = Form(None, alias="processType"),
    host: MediaHost = Depends(get_media_host),
    session=Depends(get_session),
):
    host.require_credentials()
    data = _require_file(file)
    try:
        upload = host.upload_bytes(
            data,
            folder=config.FACE_FOLDER,
            resource_type="image",
            detection="adv_face",
        )
        public_id = upload["public_id"]
        faces = faces_from_upload(upload)
        processed = process_faces(host, public_id, faces, process_type)
        image = Image(
            title=title or file.filename,
            description=description,
            public_id=public_id,
            original_size=str(upload.get("bytes", len(data))),
            file_type=upload.get("format") or "",
            tags=processed["tags"],
            **face_image_fields(faces),
        )
        session.add(image)
        session.commit()
        session.refresh(image)
        original_url = host.url(public_id)
    except MediaStudioError:
        raise
    except Exception as exc:
        logger.exception("Error processing face detection for %s", user.user_id)
        raise HTTPException(status_code=500, detail="Error processing face detection") from exc

    return FaceDetectionResponse(
        **ImageOut.model_validate(image).model_dump(),
        face_detection_data=processed,
        original_url=original_url,
        processed_urls=processed.get("processedUrls") or {},
    )


def _image_by_public_id(session, public_id: Optional[str]) -> Image:
    if not public_id:
        raise HTTPException(status_code=400, detail="Public ID is required")
    image = session.execute(
        select(Image).where(Image.public_id == public_id)
    ).scalar_one_or_none()
    if image is None:
        raise HTTPException(status_code=404, detail="Image not found")
    return image


@router.get("/face-detection", response_model=FaceData)
def get_face_data(
    public_id: Optional[str] = Query(None, alias="publicId"),
    user: CurrentUser = Depends(get_current_user),
    session=Depends(get_session),
):
    return _image_by_public_id(session, public_id)


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


@router.post("/document-upload", response_model=DocumentUploadResponse)
def upload_document(
    user: CurrentUser = Depends(get_current_user),
    file: Optional[UploadFile] = File(None),
    title: str = Form(""),
    description: str = Form(""),
    host: MediaHost = Depends(get_media_host),
    session=Depends(get_session),
):
    data, extension = _read_document(file)
    host.require_credentials()
    try:
        name = title or PurePath(file.filename).stem
        result = host.upload_bytes(data, **upload_options(document_public_id(name)))
        document = Document(
            title=title or file.filename,
            description=description,
            original_public_id=result["public_id"],
            original_size=str(result.get("bytes", len(data))),
            file_type=extension,
            conversion_status=PENDING,
        )
        session.add(document)
        session.commit()
        session.refresh(document)
        original_url = host.url(document.original_public_id, resource_type="raw")
    except MediaStudioError:
        raise
    except Exception as exc:
        logger.exception("Error uploading document for %s", user.user_id)
        raise HTTPException(status_code=500, detail="Error uploading document") from exc

    return DocumentUploadResponse(
        **DocumentOut.model_validate(document).model_dump(),
        original_url=original_url,
        message="Document uploaded successfully. PDF conversion in progress...",
    )


@router.post("/document-webhook", response_model=WebhookAck)
async def document_webhook(
    request: Request,
    host: MediaHost = Depends(get_media_host),
    session=Depends(get_session),
):
    if config.VERIFY_WEBHOOKS:
        host.require_credentials()
    raw = (await request.body()).decode("utf-8")
    if config.VERIFY_WEBHOOKS and not host.verify_notification(
        raw,
        request.headers.get("X-Cld-Timestamp"),
        request.headers.get("X-Cld-Signature"),
        valid_for=config.WEBHOOK_MAX_AGE,
    ):
        logger.warning("Rejected document webhook with invalid signature")
        raise HTTPException(status_code=401, detail="Invalid notification signature")
    try:
        payload = json.loads(raw)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON body") from None
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Invalid JSON body")

    document = apply_conversion_callback(session, payload)
    return WebhookAck(status=document.conversion_status if document else None)


@router.get("/documents", response_model=List[DocumentOut])
def list_documents(
    user: CurrentUser = Depends(get_current_user),
    session=Depends(get_session),
):
    return session.execute(select(Document).order_by(Document.created_at.desc())).scalars().all()


@router.delete("/documents", response_model=DeleteResponse)
def delete_document(
    document_id: Optional[str] = Query(None, alias="id"),
    user: CurrentUser = Depends(get_current_user),
    session=Depends(get_session),
):
    if not document_id:
        raise HTTPException(status_code=400, detail="Document ID required")
    document = session.get(Document, document_id)
    if document is None:
        return JSONResponse(status_code=404, content={"error": "Document not found"})
    session.delete(document)
    session.commit()
    return DeleteResponse()


# ---------------------------------------------------------------------------
# Signed URLs
# ---------------------------------------------------------------------------


@router.post("/generate-signed-urls", response_model=SignedUrls)
def generate_signed_urls(
    body: SignedUrlRequest,
    user: CurrentUser = Depends(get_current_user),
    host: MediaHost = Depends(get_media_host),
):
    if not body.public_id:
        raise HTTPException(status_code=400, detail="Public ID is required")
    return SignedUrls(**signed_url_set(host, body.public_id))


app.include_router(router)
