from __future__ import annotations

from fastapi.testclient import TestClient

from app.main import app


client = TestClient(app)


def test_preserves_incoming_request_id_header():
    incoming_id = "test-request-id-123"
    resp = client.get("/health", headers={"X-Request-ID": incoming_id})

    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID") == incoming_id


def test_generates_request_id_when_missing():
    resp = client.get("/health")

    assert resp.status_code == 200
    generated = resp.headers.get("X-Request-ID")
    assert generated
    assert isinstance(generated, str)

    duration = resp.headers.get("X-Request-Duration-ms")
    assert duration is not None


def test_preflight_carries_request_id_and_cors_headers():
    resp = client.options("/api/proxy", headers={"X-Request-ID": "preflight-1"})

    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID") == "preflight-1"
    assert resp.headers.get("Access-Control-Allow-Origin") == "*"


def test_error_responses_carry_request_id():
    resp = client.post(
        "/api/proxy",
        content=b"not json",
        headers={"X-Request-ID": "bad-body-1", "Content-Type": "application/json"},
    )

    assert resp.status_code == 400
    assert resp.headers.get("X-Request-ID") == "bad-body-1"
