import json

import pytest
from fastapi.testclient import TestClient

from api_judge.main import app
from api_judge.rate_limit import RateLimiter, get_rate_limiter
from api_judge.routers import auth
from api_judge.routers.auth import User, get_current_user
from api_judge.routers.evaluate import get_client_factory
from api_judge.settings import settings


class FakeClient:
    def __init__(self, fragments):
        self.fragments = fragments
        self.prompts = []
        self.closed = False

    async def stream_generate(self, prompt):
        self.prompts.append(prompt)
        for fragment in self.fragments:
            yield fragment

    async def aclose(self):
        self.closed = True


def _events(body: str):
    return [json.loads(frame[len("data: "):]) for frame in body.split("\n\n") if frame.startswith("data: ")]


@pytest.fixture
def fake_client(document):
    return FakeClient([document[:30], document[30:]])


@pytest.fixture
def client(monkeypatch, fake_client):
    monkeypatch.setattr(settings, "gemini_api_key", "test-key")
    limiter = RateLimiter(0)
    app.dependency_overrides[get_current_user] = lambda: User(username="tester")
    app.dependency_overrides[get_rate_limiter] = lambda: limiter
    app.dependency_overrides[get_client_factory] = lambda: (lambda: fake_client)
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_evaluate_streams_events(client, fake_client, payload):
    response = client.post("/evaluate", json={"swagger": {"openapi": "3.0.0", "paths": {"/users": {}}}})
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    events = _events(response.text)
    assert events[0]["type"] == "status"
    assert events[-1]["type"] == "complete"
    assert events[-1]["evaluation"]["summary"] == payload["summary"]
    assert '"/users"' in fake_client.prompts[0]
    assert fake_client.closed


def test_evaluate_requires_document(client):
    response = client.post("/evaluate", json={})
    assert response.status_code == 400


def test_evaluate_requires_api_key(client, monkeypatch):
    monkeypatch.setattr(settings, "gemini_api_key", None)
    response = client.post("/evaluate", json={"swagger": "openapi: 3.0.0"})
    assert response.status_code == 500


def test_evaluate_is_throttled_per_client(client):
    limiter = RateLimiter(60)
    app.dependency_overrides[get_rate_limiter] = lambda: limiter
    assert client.post("/evaluate", json={"swagger": "openapi: 3.0.0"}).status_code == 200
    throttled = client.post("/evaluate", json={"swagger": "openapi: 3.0.0"})
    assert throttled.status_code == 429
    assert int(throttled.headers["retry-after"]) >= 1


def test_evaluate_requires_login():
    response = TestClient(app).post("/evaluate", json={"swagger": "openapi: 3.0.0"})
    assert response.status_code == 401


def test_categories_use_configured_labels(monkeypatch):
    monkeypatch.setattr(settings, "category_labels", {"versioning": {"label": "API Versions"}, "bogus": {"label": "x"}})
    body = TestClient(app).get("/evaluate/categories").json()
    assert [c["key"] for c in body][:2] == ["resource_design", "http_methods"]
    assert len(body) == 7
    versioning = next(c for c in body if c["key"] == "versioning")
    assert versioning["label"] == "API Versions"
    assert versioning["icon"]


def test_login_me_and_logout(monkeypatch):
    monkeypatch.setattr(settings, "account", "admin")
    monkeypatch.setattr(settings, "password", "s3cret")
    monkeypatch.setattr(auth, "_users", {})
    http = TestClient(app)

    assert http.post("/auth/token", data={"username": "admin", "password": "wrong"}).status_code == 401

    response = http.post("/auth/token", data={"username": "admin", "password": "s3cret"})
    assert response.status_code == 200
    token = response.json()["access_token"]
    assert "auth-token" in response.headers["set-cookie"]

    me = http.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json() == {"username": "admin"}

    logout = http.post("/auth/logout")
    assert logout.json()["success"] is True
    assert "auth-token" in logout.headers["set-cookie"]


def test_info_reports_configuration(monkeypatch):
    monkeypatch.setattr(settings, "gemini_api_key", None)
    assert TestClient(app).get("/info").json() == {"status": "ok", "gemini_configured": False}
