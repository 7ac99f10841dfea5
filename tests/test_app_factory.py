"""Tests for the Flask application factory and shared error handling."""

from __future__ import annotations

from app import create_app
from config import Config
from models import db


def test_health_endpoint_returns_ok(client, tmp_path):
    """The health endpoint responds with OK and the uploads dir exists."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.get_json() == {"status": "ok"}
    assert (tmp_path / "uploads").is_dir()


def test_blueprints_registered(app):
    bps = set(app.blueprints.keys())
    assert {
        "users",
        "applications",
        "application_documents",
        "programs",
        "program_certificates",
        "certificate_types",
        "files",
        "notifications",
    }.issubset(bps)


def test_not_found_uses_json_envelope(client):
    response = client.get("/api/does-not-exist", headers={"X-Request-ID": "req-123"})
    assert response.status_code == 404
    body = response.get_json()
    assert body["error"] == "Not Found"
    assert body["request_id"] == "req-123"
    assert body["message"] == body["detail"]
    assert response.headers["X-Request-ID"] == "req-123"


def test_missing_token_is_401_envelope(client):
    response = client.get("/api/applications")
    assert response.status_code == 401
    body = response.get_json()
    assert body["error"] == "Unauthorized"
    assert body["message"]
    assert response.headers.get("X-Request-ID")


def test_invalid_token_is_401(client):
    response = client.get(
        "/api/applications", headers={"Authorization": "Bearer not-a-token"}
    )
    assert response.status_code == 401
    assert response.get_json()["error"] == "Unauthorized"


def test_non_json_body_is_rejected(client):
    response = client.post("/api/users/login", data="email=x", content_type="text/plain")
    assert response.status_code == 400
    assert response.get_json()["message"] == "Request content type must be application/json."


def test_cors_headers_present(client):
    response = client.get("/health", headers={"Origin": "https://portal.example.com"})
    assert response.headers.get("Access-Control-Allow-Origin") in {
        "*",
        "https://portal.example.com",
    }


def test_rate_limit_returns_429_envelope(tmp_path):
    class LimitedConfig(Config):
        TESTING = True
        SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
        UPLOAD_DIR = str(tmp_path / "limited")
        RATE_LIMIT = "2 per minute"
        RATELIMIT_KEY_PREFIX = ""

    application = create_app(LimitedConfig)
    with application.app_context():
        db.create_all()
        limited = application.test_client()
        assert limited.get("/health").status_code == 200
        assert limited.get("/health").status_code == 200
        response = limited.get("/health")
        assert response.status_code == 429
        body = response.get_json()
        assert body["error"] == "Too Many Requests"
        assert body["request_id"]
        db.drop_all()
