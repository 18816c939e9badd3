"""
Test fixtures for the StudyQuiz API.

Each test gets its own SQLite file and upload directory. The LLM is replaced by a
scripted fake and the face embedder by a deterministic one, so nothing leaves the
process.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient

from studyquiz.embeddings import FaceDetection
from studyquiz.main import create_app
from studyquiz.settings import Settings


class FakeLLM:
    """Returns queued responses in order and records every prompt."""

    def __init__(self, responses: Optional[List[str]] = None) -> None:
        self.responses = list(responses or [])
        self.prompts: List[str] = []
        self.closed = False

    def queue(self, *responses: str) -> None:
        self.responses.extend(responses)

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.responses:
            raise AssertionError("FakeLLM has no response queued")
        return self.responses.pop(0)

    async def aclose(self) -> None:
        self.closed = True


class FixedEmbedder:
    """Hands out preset detections, then repeats the last one."""

    def __init__(self, detections: List[FaceDetection]) -> None:
        self.detections = list(detections)
        self.calls: List[Path] = []

    def embed(self, image_path: Path) -> FaceDetection:
        self.calls.append(Path(image_path))
        if len(self.detections) > 1:
            return self.detections.pop(0)
        return self.detections[0]


def unit_vector(index: int, length: int = 128) -> List[float]:
    vec = [0.0] * length
    vec[index] = 1.0
    return vec


STRONG_PASSWORD = "Secret123"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        DATABASE_URL=f"sqlite:///{tmp_path / 'test.db'}",
        UPLOAD_DIR=str(tmp_path / "uploads"),
        JWT_SECRET_KEY="test-secret-key",
        GEMINI_API_KEY=None,
        SEED_CATALOG=True,
        APP_ENV="development",
    )


@pytest.fixture
def llm():
    return FakeLLM()


@pytest.fixture
def embedder():
    return FixedEmbedder([FaceDetection(descriptors=[unit_vector(0)], confidence=0.97)])


@pytest.fixture
def app(settings, llm, embedder):
    return create_app(settings, llm=llm, embedder=embedder, configure_logs=False)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db(app, client):
    """Direct database access; ``client`` is requested so tables exist."""
    session = app.state.ctx.session_factory()
    try:
        yield session
    finally:
        session.close()


def register(client, email="student@example.com", password=STRONG_PASSWORD, **extra):
    body = {"firstName": "Ada", "lastName": "Lovelace", "email": email, "password": password}
    body.update(extra)
    return client.post("/api/auth/register", json=body)


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def token(client):
    resp = register(client)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]["token"]


@pytest.fixture
def headers(token):
    return auth_headers(token)
