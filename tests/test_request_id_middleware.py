from __future__ import annotations

from fastapi.testclient import TestClient

from gatekeeper.main import app


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


def test_rejected_requests_keep_request_id():
    limited = TestClient(app)
    incoming_id = "req-throttled"
    max_attempts = app.state.throttle.max_attempts

    responses = [
        limited.get("/v1/admission", headers={"X-Request-ID": incoming_id, "Host": "rid.example.com"})
        for _ in range(max_attempts + 1)
    ]

    assert responses[-1].status_code == 429
    assert responses[-1].headers.get("X-Request-ID") == incoming_id
