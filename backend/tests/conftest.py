import os
import json

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("OPENAI_API_KEY", "test-key")

import pytest
from fastapi.testclient import TestClient

from docquiz.db.models import Base
from docquiz.db.session import engine, SessionLocal
from docquiz.storage.memory import QUIZ_SESSIONS


SAMPLE_SUMMARY = {
    "longSummary": "Photosynthesis converts light energy into chemical energy stored in glucose.",
    "shortSummary": "Plants turn light into sugar.",
    "keyPoints": ["Chlorophyll absorbs light", "Oxygen is released", "Glucose stores energy"],
    "mainTopics": ["Photosynthesis", "Chloroplasts", "Energy"],
    "documentType": "educational",
    "difficulty": "beginner",
}

SAMPLE_QUIZ = {
    "questions": [
        {
            "id": 1,
            "type": "mcq",
            "question": "Which pigment absorbs light?",
            "options": ["Chlorophyll", "Keratin", "Melanin", "Hemoglobin"],
            "correctAnswer": "Chlorophyll",
            "explanation": "The document names chlorophyll as the light-absorbing pigment.",
        },
        {
            "id": 2,
            "type": "fill",
            "question": "Photosynthesis releases ____ as a by-product.",
            "correctAnswer": "oxygen",
            "explanation": "Oxygen is released when water is split.",
        },
        {
            "id": 3,
            "type": "short",
            "question": "Name the sugar produced.",
            "correctAnswer": "Glucose",
            "explanation": "Glucose stores the captured energy.",
        },
    ]
}

LONG_TEXT = (
    "Photosynthesis is the process used by plants, algae and certain bacteria to convert light "
    "energy into chemical energy. Chlorophyll inside chloroplasts absorbs sunlight, water molecules "
    "are split, oxygen is released into the atmosphere, and carbon dioxide is fixed into glucose. "
    "This glucose stores energy that fuels growth and cellular respiration."
)


class _Message:
    def __init__(self, content):
        self.content = content


class _Choice:
    def __init__(self, content):
        self.message = _Message(content)


class _Response:
    def __init__(self, content):
        self.choices = [_Choice(content)]


class _Completions:
    def __init__(self, owner):
        self._owner = owner

    def create(self, **kwargs):
        self._owner.calls.append(kwargs)
        item = self._owner.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        if not isinstance(item, str):
            item = json.dumps(item)
        return _Response(item)


class _Chat:
    def __init__(self, owner):
        self.completions = _Completions(owner)


class FakeOpenAI:
    """Stands in for openai.OpenAI; replies are consumed in call order."""
    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []
        self.chat = _Chat(self)


@pytest.fixture
def fake_openai():
    return FakeOpenAI


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def test_app(db):
    from docquiz.main import app, new_session_manager
    from docquiz.auth.security import RateLimiter

    app.state.sessions = new_session_manager()
    app.state.rate_limiter = RateLimiter(max_attempts=5, window_seconds=15 * 60)
    QUIZ_SESSIONS.clear()
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()
    QUIZ_SESSIONS.clear()


@pytest.fixture
def auth_headers(test_app):
    response = test_app.post("/auth/sign-up", json={
        "email": "ada@example.com",
        "password": "Secret123",
        "full_name": "Ada Lovelace",
    })
    assert response.status_code == 201
    response = test_app.post("/auth/sign-in", json={"email": "ada@example.com", "password": "Secret123"})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}
