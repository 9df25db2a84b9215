# =============================================================================
# Shared fixtures: in-memory database, settings, fake Gemini upstream
# =============================================================================

import json
import os
from typing import Any, Callable, Dict, List

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_LEVEL", "ERROR")

import httpx
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool


# =============================================================================
# DATABASE
# =============================================================================


@pytest.fixture
def engine():
    from quizapp.db import Base
    import quizapp.models  # noqa: F401  (registers tables)

    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)


@pytest.fixture
def settings():
    from quizapp.settings import Settings

    return Settings(
        gemini_api_key="test-key",
        jwt_secret_key="test-secret",
        gemini_base_delay_seconds=1.0,
        seed_admin_username=None,
        seed_student_username=None,
    )


@pytest.fixture
def make_user(session_factory, settings):
    """Create a user row and return (id, bearer token)."""
    from quizapp.models import User
    from quizapp.security import TokenService, hash_password

    tokens = TokenService(settings)

    def _make(username: str, role: str = "student", password: str = "secret123"):
        db = session_factory()
        try:
            row = User(username=username, password_hash=hash_password(password), role=role)
            db.add(row)
            db.commit()
            user_id = row.id
        finally:
            db.close()
        return user_id, tokens.issue_token(user_id, username, role)

    return _make


@pytest.fixture
def make_quiz(session_factory):
    """Insert a quiz directly; `keys` lists each question's correct index."""
    from quizapp.models import Question, Quiz

    def _make(title: str = "Sample", keys: List[int] = (0, 1), created_by=None) -> Dict[str, Any]:
        db = session_factory()
        try:
            quiz = Quiz(title=title, created_by=created_by)
            db.add(quiz)
            db.flush()
            ids = []
            for n, key in enumerate(keys):
                q = Question(
                    quiz_id=quiz.id,
                    question_text=f"Question {n + 1}?",
                    options=[{"text": "a"}, {"text": "b"}, {"text": "c"}],
                    correct_option=key,
                )
                db.add(q)
                db.flush()
                ids.append(q.id)
            db.commit()
            return {"id": quiz.id, "question_ids": ids}
        finally:
            db.close()

    return _make


# =============================================================================
# FAKE UPSTREAM
# =============================================================================


def gemini_body(payload: Any) -> Dict[str, Any]:
    text = payload if isinstance(payload, str) else json.dumps(payload)
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def sample_questions(n: int) -> List[Dict[str, Any]]:
    return [
        {
            "question_text": f"Planet question {i + 1}?",
            "options": [{"text": "Mercury"}, {"text": "Venus"}, {"text": "Earth"}, {"text": "Mars"}],
            "correct_option": i % 4,
        }
        for i in range(n)
    ]


class FakeUpstream:
    """Scripted responses served through httpx.MockTransport."""

    def __init__(self, responses: List[Any]):
        self.responses = list(responses)
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, Exception):
            raise item
        if isinstance(item, httpx.Response):
            return item
        status, body = item
        return httpx.Response(status, json=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


class RecordingSleep:
    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def fake_sleep():
    return RecordingSleep()


@pytest.fixture
def gemini_factory(fake_sleep) -> Callable[[FakeUpstream], Callable]:
    """Build a client_factory for the pipeline backed by a FakeUpstream."""
    from quizapp.gemini_client import GeminiClient

    def _factory(upstream: FakeUpstream):
        return lambda s: GeminiClient(s, transport=upstream.transport, sleep=fake_sleep)

    return _factory


# =============================================================================
# FASTAPI
# =============================================================================


@pytest.fixture
def upstream():
    return FakeUpstream([(200, gemini_body(sample_questions(6)))])


@pytest.fixture
def client(session_factory, settings, upstream, gemini_factory):
    from fastapi.testclient import TestClient

    from quizapp.db import get_db, get_session_factory
    from quizapp.dependencies import get_generation_pipeline
    from quizapp.generation import QuizGenerationPipeline
    from quizapp.main import app
    from quizapp.settings import get_settings

    def _get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_generation_pipeline] = lambda: QuizGenerationPipeline(
        settings, session_factory, client_factory=gemini_factory(upstream)
    )
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
