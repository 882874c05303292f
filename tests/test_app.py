import json

import httpx
import pytest
from fastapi.testclient import TestClient

from cheap_asr.app import create_app
from cheap_asr.config import Settings
from cheap_asr.sample import SAMPLE_JOB_ID

BODY = {"token": "secret-token", "input_url": "https://example.com/audio.mp3"}


def _remote(request: httpx.Request) -> httpx.Response:
    if request.url.path.endswith("/jobs/auth"):
        if request.headers.get("Authorization") == "Bearer good":
            return httpx.Response(200, json={"ok": True})
        return httpx.Response(401, json={"error": "Invalid token"})
    return httpx.Response(202, json={"id": "job-9", "status": "PENDING"})


@pytest.fixture
def client(make_client, registry):
    app = create_app(
        settings=Settings(service_name="cheap-asr-test"),
        client=make_client(_remote),
        callbacks=registry,
    )
    return TestClient(app)


def _webhook_url(recorded) -> str:
    return json.loads(recorded[-1].content)["webhook_url"]


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "service": "cheap-asr-test", "pending_callbacks": 0}


def test_submit_then_complete(client, recorded):
    resp = client.post("/v1/transcriptions", json={**BODY, "can_include_json": True})
    assert resp.status_code == 202
    assert resp.json()["id"] == "job-9"
    assert client.get("/health").json()["pending_callbacks"] == 1

    pending = client.get("/v1/transcriptions/job-9")
    assert pending.status_code == 202
    assert pending.json() == {"id": "job-9", "status": "PENDING"}

    path = httpx.URL(_webhook_url(recorded)).path
    payload = {
        "id": "job-9",
        "status": "COMPLETED",
        "output": {"request": {}, "segments": []},
        "querystring": {"x": "1"},
    }
    resp = client.post(path, json=payload)
    assert resp.status_code == 200
    assert resp.json() == {"received": True, "duplicate": False}

    result = client.get("/v1/transcriptions/job-9")
    assert result.status_code == 200
    data = result.json()
    assert "querystring" not in data
    assert json.loads(data["json"]) == {k: v for k, v in data.items() if k != "json"}

    again = client.post(path, json=payload)
    assert again.status_code == 200
    assert again.json() == {"received": True, "duplicate": True}
    assert client.get("/v1/transcriptions/job-9").json() == data


def test_submit_then_failed(client, recorded):
    client.post("/v1/transcriptions", json=BODY)
    path = httpx.URL(_webhook_url(recorded)).path
    delivery = {"id": "job-9", "status": "FAILED", "output": {"request": {}, "error": "bad audio codec"}}

    assert client.post(path, json=delivery).status_code == 200
    assert client.post(path, json=delivery).json()["duplicate"] is True

    resp = client.get("/v1/transcriptions/job-9")
    assert resp.status_code == 400
    assert resp.json() == {"error": "TranscriptionError", "message": "bad audio codec"}


def test_malformed_delivery_keeps_callback_open(client, recorded):
    client.post("/v1/transcriptions", json=BODY)
    path = httpx.URL(_webhook_url(recorded)).path

    bad = client.post(path, json={"status": "COMPLETED"})
    assert bad.status_code == 400
    assert bad.json()["error"] == "WebhookError"

    good = client.post(
        path, json={"id": "job-9", "status": "COMPLETED", "output": {"request": {}, "segments": []}}
    )
    assert good.status_code == 200
    assert client.get("/v1/transcriptions/job-9").json()["status"] == "COMPLETED"


@pytest.mark.parametrize("remote_status", [200, 204])
def test_remote_success_status_is_an_error(make_client, registry, remote_status):
    def remote(request):
        if remote_status == 204:
            return httpx.Response(204)
        return httpx.Response(200, json={"id": "x"})

    app = create_app(client=make_client(remote), callbacks=registry)
    resp = TestClient(app).post("/v1/transcriptions", json=BODY)
    assert resp.status_code == 502
    assert resp.json() == {
        "error": "TranscriptionError",
        "message": f"API returned status {remote_status}",
    }


def test_unknown_job(client):
    assert client.get("/v1/transcriptions/nope").status_code == 404


def test_submit_sample(client, recorded):
    resp = client.post("/v1/transcriptions?sample=true", json={**BODY, "can_label_audio": True})
    assert resp.status_code == 200
    data = resp.json()
    assert data["id"] == SAMPLE_JOB_ID
    assert data["output"]["segments"][0]["label"] == "speech"
    assert "json" not in data
    assert recorded == []


def test_submit_invalid(client, recorded):
    resp = client.post("/v1/transcriptions", json={**BODY, "segment_duration": 45})
    assert resp.status_code == 400
    assert resp.json()["error"] == "TranscriptionConfigurationError"
    assert recorded == []


def test_submit_missing_token(client):
    resp = client.post("/v1/transcriptions", json={"input_url": BODY["input_url"]})
    assert resp.status_code == 422


def test_unknown_callback(client):
    resp = client.post("/v1/callbacks/not-a-token", json={"id": "x", "status": "COMPLETED"})
    assert resp.status_code == 404


@pytest.mark.parametrize(
    ("headers", "status"),
    [({"Authorization": "Bearer good"}, 200), ({"Authorization": "Bearer bad"}, 401), ({}, 401)],
)
def test_auth_check(client, headers, status):
    resp = client.get("/v1/auth/check", headers=headers)
    assert resp.status_code == status
    if status == 200:
        assert resp.json() == {"valid": True}
    else:
        assert resp.json()["error"] == "AuthenticationError"


def test_auth_check_unreachable(make_client, registry):
    def boom(request):
        raise httpx.ConnectError("down", request=request)

    app = create_app(client=make_client(boom), callbacks=registry)
    resp = TestClient(app).get("/v1/auth/check", headers={"Authorization": "Bearer good"})
    assert resp.status_code == 502
