"""Tests for the HTTP surface, with the processor's collaborators swapped in."""

import pytest
from fastapi.testclient import TestClient

import main
from models import Document, DocumentStatus
from processor import DocumentProcessor
from rate_limiter import RateLimiter
from store import InMemoryDocumentStore

from conftest import FakeProvider, ok


@pytest.fixture
def api(monkeypatch):
    """TestClient without lifespan; module globals patched per test."""
    store = InMemoryDocumentStore()
    store.add_document(Document(
        id="doc-1", user_id="user-1", document_type="passport",
        files=[{"id": "f1", "file_key": "a.jpg", "file_type": "front", "url": "https://img.test/a.jpg"}],
    ))
    primary = FakeProvider("gemini", [ok("gemini", {"firstName": "Ana"})])

    monkeypatch.setattr(main, "_store", store)
    monkeypatch.setattr(main, "_processor", DocumentProcessor(store, primary))
    monkeypatch.setattr(main, "_providers", {"gemini": primary})
    monkeypatch.setattr(main, "_rate_limiter", RateLimiter())
    return TestClient(main.app), store


class TestProcessEndpoint:
    def test_success(self, api):
        client, store = api
        resp = client.post(
            "/api/v1/documents/doc-1/process",
            json={"enable_dual_verification": False},
            headers={"X-User-Id": "user-1"},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["document_id"] == "doc-1"
        assert body["confidence_score"] == 0.8
        assert body["fields_for_review"] == []
        assert body["extraction_id"] == store.extractions[0].id
        assert store.documents["doc-1"].status == DocumentStatus.COMPLETED

    def test_body_is_optional(self, api):
        client, _ = api
        resp = client.post("/api/v1/documents/doc-1/process", headers={"X-User-Id": "user-1"})
        assert resp.status_code == 200

    def test_requires_identity(self, api):
        client, _ = api
        resp = client.post("/api/v1/documents/doc-1/process", json={})
        assert resp.status_code == 401

    def test_unknown_document(self, api):
        client, _ = api
        resp = client.post("/api/v1/documents/missing/process", json={}, headers={"X-User-Id": "user-1"})
        assert resp.status_code == 404

    def test_other_users_document(self, api):
        client, _ = api
        resp = client.post("/api/v1/documents/doc-1/process", json={}, headers={"X-User-Id": "user-2"})
        assert resp.status_code == 404

    def test_already_completed(self, api):
        client, store = api
        store.documents["doc-1"].status = DocumentStatus.COMPLETED
        resp = client.post("/api/v1/documents/doc-1/process", json={}, headers={"X-User-Id": "user-1"})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Document already processed"

    def test_processing_failure_returns_500(self, api, monkeypatch):
        from errors import AIError, AIErrorType

        client, store = api
        failing = FakeProvider("gemini", [AIError(AIErrorType.QUOTA_EXCEEDED, "quota exhausted", "gemini")])
        monkeypatch.setattr(main, "_processor", DocumentProcessor(store, failing))

        resp = client.post("/api/v1/documents/doc-1/process", json={}, headers={"X-User-Id": "user-1"})

        assert resp.status_code == 500
        assert resp.json()["error"] == "quota exhausted"
        assert store.documents["doc-1"].status == DocumentStatus.FAILED
        assert store.errors[0].error_type == "quota_exceeded"

    def test_no_provider_configured(self, api, monkeypatch):
        client, _ = api
        monkeypatch.setattr(main, "_processor", None)
        resp = client.post("/api/v1/documents/doc-1/process", json={}, headers={"X-User-Id": "user-1"})
        assert resp.status_code == 503


class TestHealth:
    def test_health(self, api):
        client, _ = api
        body = client.get("/health").json()
        assert body["status"] == "healthy"
        assert body["extraction_available"] is True
        assert body["providers"] == ["gemini"]
        assert body["rate_limits"]["gemini"] == {"minute": 0, "hour": 0, "day": 0}


class TestLifespan:
    def test_startup_wires_processor_and_shutdown_resets_it(self, monkeypatch):
        monkeypatch.setattr(main.settings, "PRIMARY_PROVIDER", "gemini")
        monkeypatch.setattr(main.settings, "SECONDARY_PROVIDER", "openai")
        monkeypatch.setattr(main.settings, "GOOGLE_GEMINI_API_KEY", "test-key")
        monkeypatch.setattr(main.settings, "OPENAI_API_KEY", "")

        with TestClient(main.app) as client:
            body = client.get("/health").json()
            assert body["extraction_available"] is True
            assert body["providers"] == ["gemini"]

        assert main._processor is None
        assert main._store is None
        assert main._rate_limiter is None
        assert main._http_client is None
        assert main._providers == {}

    def test_requests_after_shutdown_are_unavailable(self, monkeypatch):
        monkeypatch.setattr(main.settings, "PRIMARY_PROVIDER", "gemini")
        monkeypatch.setattr(main.settings, "GOOGLE_GEMINI_API_KEY", "test-key")

        with TestClient(main.app):
            pass

        client = TestClient(main.app)
        resp = client.post("/api/v1/documents/doc-1/process", json={}, headers={"X-User-Id": "user-1"})
        assert resp.status_code == 503
