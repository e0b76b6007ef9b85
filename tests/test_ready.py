from sqlalchemy.exc import OperationalError

from app.recon.routers.health import get_db


class _UnreachableSession:
    def execute(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))


def test_ready(client):
    response = client.get("/ready")
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ready"
    assert payload["trace_id"]


def test_ready_reports_database_unavailable(client):
    client.app.dependency_overrides[get_db] = lambda: _UnreachableSession()
    try:
        response = client.get("/ready")
    finally:
        client.app.dependency_overrides.clear()

    assert response.status_code == 503
    payload = response.json()
    assert payload["code"] == "DB_UNAVAILABLE"
    assert payload["success"] is False
