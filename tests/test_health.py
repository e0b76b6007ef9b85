from app.recon.core.config import settings


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ok"
    assert payload["trace_id"]


def test_public_config_without_push_provider(client):
    response = client.get("/api/config")
    assert response.status_code == 200
    assert response.json() == {"oneSignalAppId": None}


def test_public_config_exposes_app_id(client, monkeypatch):
    monkeypatch.setattr(settings, "ONESIGNAL_APP_ID", "app-123")

    response = client.get("/api/config")
    assert response.json() == {"oneSignalAppId": "app-123"}


def test_metrics_endpoint_requires_session(client):
    response = client.get("/api/ops/metrics")
    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_TOKEN"
