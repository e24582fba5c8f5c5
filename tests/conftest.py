from __future__ import annotations

import os
import tempfile
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from jose import jwt

os.environ.setdefault("MEDIA_STUDIO_DATA_DIR", tempfile.mkdtemp(prefix="media-studio-"))

from backend.src.media_api import app, get_media_host, get_session, get_vision_client  # noqa: E402
from backend.src.media_studio import config  # noqa: E402
from backend.src.media_studio.db import init_db, make_engine, make_session_factory  # noqa: E402
from backend.src.media_studio.exceptions import ConfigurationError  # noqa: E402

TEST_SECRET = "test-secret"


class FakeHost:
    """Stands in for the Cloudinary wrapper; records every call it receives."""

    def __init__(self):
        self.configured = True
        self.signature_valid = True
        self.uploads: List[Dict[str, Any]] = []
        self.remote_uploads: List[Dict[str, Any]] = []
        self.resource_calls: List[Dict[str, Any]] = []
        self.upload_response: Dict[str, Any] = {}
        self.remote_response: Dict[str, Any] = {}
        self.resource_response: Dict[str, Any] = {}
        self.fail_with: Optional[Exception] = None

    def require_credentials(self) -> None:
        if not self.configured:
            raise ConfigurationError("Missing Cloudinary credentials")

    def upload_bytes(self, data: bytes, **options: Any) -> Dict[str, Any]:
        self.uploads.append({"size": len(data), **options})
        response = {"public_id": "folder/asset-1", "bytes": len(data), "format": "png"}
        response.update(self.upload_response)
        return response

    def upload_remote(self, source_public_id: str, **options: Any) -> Dict[str, Any]:
        self.remote_uploads.append({"source": source_public_id, **options})
        if self.fail_with:
            raise self.fail_with
        return self.remote_response

    def resource(self, public_id: str, **options: Any) -> Dict[str, Any]:
        self.resource_calls.append({"public_id": public_id, **options})
        if self.fail_with:
            raise self.fail_with
        return self.resource_response

    def url(self, public_id: str, **options: Any) -> str:
        if self.fail_with:
            raise self.fail_with
        params = ",".join(f"{key}={options[key]}" for key in sorted(options))
        return f"https://media.test/{public_id}?{params}"

    def signed_url(self, public_id: str, **options: Any) -> str:
        return self.url(public_id, sign_url=True, **options)

    def verify_notification(self, body, timestamp, signature, valid_for) -> bool:
        return self.signature_valid


class FakeVisionClient:
    def __init__(self):
        self.requests = []
        self.result: Dict[str, Any] = {
            "data": {"analysis": {"tags": [{"name": "cat", "confidence": 0.9}]}},
            "limits": {"usage": {"count": 7}},
        }
        self.error: Optional[Exception] = None

    def analyze(self, request):
        self.requests.append(request)
        if self.error:
            raise self.error
        return self.result


@pytest.fixture
def session_factory(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'test.db'}")
    init_db(engine)
    factory = make_session_factory(engine)
    yield factory
    engine.dispose()


@pytest.fixture
def session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def fake_host():
    return FakeHost()


@pytest.fixture
def fake_vision():
    return FakeVisionClient()


@pytest.fixture
def client(session_factory, fake_host, fake_vision, monkeypatch):
    monkeypatch.setattr(config, "AUTH_SECRET", TEST_SECRET)
    monkeypatch.setattr(config, "AUTH_ALGORITHMS", ["HS256"])
    monkeypatch.setattr(config, "AUTH_AUDIENCE", None)
    monkeypatch.setattr(config, "AUTH_ISSUER", None)

    def override_session():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_media_host] = lambda: fake_host
    app.dependency_overrides[get_vision_client] = lambda: fake_vision
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    token = jwt.encode({"sub": "user_123"}, TEST_SECRET, algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}
