"""
tests/test_api_routes.py — Webhook Route Integration Tests
===========================================================

Uses the FastAPI TestClient with the handlers dependency overridden to a
SQLite-backed registry and a scripted activity source.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from conftest import NOW, FakeActivitySource, active_days, make_report
from streakboard.api.deps import get_handlers
from streakboard.api.main import app
from streakboard.services.command_service import CommandHandlers


@pytest.fixture
def handlers(registry, cfg):
    source = FakeActivitySource({"bob": make_report("bob", active_days(NOW, 3), best=6)})
    return CommandHandlers(registry, source, cfg, clock=lambda: NOW)


@pytest.fixture
def client(handlers, monkeypatch):
    monkeypatch.delenv("WEBHOOK_SECRET", raising=False)
    app.dependency_overrides[get_handlers] = lambda: handlers
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


def _post(client, **event):
    return client.post("/api/events", json=event)


class TestHealthEndpoint:
    def test_health_returns_ok(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}


class TestEvents:
    def test_add_then_leaderboard(self, client, registry):
        resp = _post(client, kind="add", chat_id="c1", username="bob")
        assert resp.status_code == 200
        assert "'bob' added" in resp.json()["text"]
        assert registry.list("c1") == ["bob"]

        body = _post(client, kind="leaderboard", chat_id="c1").json()
        assert "1. [bob]" in body["text"]
        assert body["choices"] == []

    def test_remove_flow_via_action_id(self, client, registry):
        registry.add("c1", "bob")
        body = _post(client, kind="remove", chat_id="c1").json()
        assert [c["label"] for c in body["choices"]] == ["bob", "Cancel"]

        pick = body["choices"][0]["action_id"]
        resolved = _post(client, kind="removal_selected", chat_id="c1", action_id=pick).json()
        assert resolved["replace"] is True
        assert registry.list("c1") == []

    def test_remove_by_username(self, client, registry):
        registry.add("c1", "bob")
        registry.add("c1", "amy")
        body = _post(client, kind="remove", chat_id="c1", username="bob").json()
        assert body["choices"] == []
        assert "Removed 'bob'" in body["text"]
        assert registry.list("c1") == ["amy"]

    def test_cancel(self, client, registry):
        registry.add("c1", "bob")
        body = _post(client, kind="removal_cancelled", chat_id="c1").json()
        assert body["dismiss"] is True
        assert registry.list("c1") == ["bob"]

    def test_unknown_kind_rejected(self, client):
        assert _post(client, kind="explode", chat_id="c1").status_code == 422

    def test_missing_chat_id_rejected(self, client):
        assert _post(client, kind="list").status_code == 422


class TestWebhookSecret:
    def test_secret_required_when_configured(self, client, monkeypatch):
        monkeypatch.setenv("WEBHOOK_SECRET", "s3cret")
        assert _post(client, kind="list", chat_id="c1").status_code == 401

    def test_wrong_secret(self, client, monkeypatch):
        monkeypatch.setenv("WEBHOOK_SECRET", "s3cret")
        resp = client.post(
            "/api/events", json={"kind": "list", "chat_id": "c1"},
            headers={"X-Webhook-Secret": "nope"},
        )
        assert resp.status_code == 401

    def test_correct_secret(self, client, monkeypatch):
        monkeypatch.setenv("WEBHOOK_SECRET", "s3cret")
        resp = client.post(
            "/api/events", json={"kind": "list", "chat_id": "c1"},
            headers={"X-Webhook-Secret": "s3cret"},
        )
        assert resp.status_code == 200
