"""Shared fixtures: temp SQLite session store, fake backend, TestClient."""

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from app.db import init_db, make_engine
from app.deps import get_registry, get_sessions, get_transport
from app.main import app
from app.session import SessionStore, UserSession
from app.store import StoreRegistry, make_store


SID = "test-sid"
TOKEN = "token-abc"
USER_ID = "7"


class FakeBackend:
    """Canned JSON responses keyed by (method, path); records every request."""

    def __init__(self):
        self.routes = {}
        self.calls = []

    def on(self, method, path, status=200, json=None):
        self.routes[(method.upper(), path)] = (status, json)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        key = (request.method, request.url.path)
        if key not in self.routes:
            return httpx.Response(404, json={"message": f"no route {key}"})
        status, body = self.routes[key]
        if callable(body):
            body = body(request)
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    def hits(self, method, path):
        return [c for c in self.calls if c.method == method.upper() and c.url.path == path]


@pytest.fixture
def engine(tmp_path):
    eng = make_engine(f"sqlite:///{tmp_path / 'sessions.db'}")
    init_db(eng)
    return eng


@pytest.fixture
def sessions(engine):
    return SessionStore(engine)


@pytest.fixture
def registry():
    return StoreRegistry(make_store)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest_asyncio.fixture
async def http(backend):
    async with httpx.AsyncClient(
        base_url="http://backend.test", transport=httpx.MockTransport(backend.handler)
    ) as client:
        yield client


@pytest.fixture
def client(sessions, registry, backend):
    app.dependency_overrides[get_sessions] = lambda: sessions
    app.dependency_overrides[get_registry] = lambda: registry
    app.dependency_overrides[get_transport] = lambda: httpx.MockTransport(backend.handler)
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def logged_in(client, sessions):
    """A browser that already holds a session cookie with a stored token."""
    sessions.save(SID, UserSession(token=TOKEN, user_id=USER_ID, user_name="Mona Adel", user_email="mona@example.com"))
    client.cookies.set("portal_sid", SID)
    return client


@pytest.fixture
def store(registry):
    return registry.get(SID)


COURSE = {
    "id": 1,
    "title": "Algebra 1",
    "price": 0,
    "description": "Linear equations",
    "videos": [
        {"id": 11, "title": "Intro", "durationSeconds": 600},
        {"id": 12, "title": "Equations", "durationSeconds": 900},
    ],
}

QUIZ = {
    "id": 5,
    "title": "Intro quiz",
    "videoId": 11,
    "passingScore": 60,
    "questions": [
        {"id": 1, "text": "2 + 2 = ?", "options": ["3", "4", "5"]},
        {"id": 2, "text": "3 * 3 = ?", "options": [{"id": 0, "text": "9"}, {"id": 1, "text": "6"}]},
        {"id": 3, "text": "10 / 2 = ?", "options": ["5", "2"]},
    ],
}


@pytest.fixture
def course_backend(backend):
    """Backend for an enrolled learner on course 1 with nothing completed yet."""
    backend.on("GET", "/courses/1", json=COURSE)
    backend.on("POST", "/enroll/api/enrollment-status", json={"enrolled": True})
    backend.on("GET", "/quizzes/course/1", json=[QUIZ])
    backend.on(
        "GET",
        "/assignments/course/1",
        json={"course": {"id": 1}, "assignments": [{"id": 9, "title": "Homework 1", "videoId": 11}]},
    )
    backend.on("GET", "/progress/11", json={"completed": False})
    backend.on("GET", "/progress/12", json={"completed": False})
    return backend
