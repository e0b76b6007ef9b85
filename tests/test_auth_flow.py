from sqlalchemy import select

from app.recon.core.security import is_password_hash
from app.recon.db.models import Admin, AdminSession
from tests.recon_helpers import ADMIN_PASSWORD, auth_headers, create_admin, login


def test_login_success(client, db_session):
    create_admin(db_session)

    response = client.post("/api/login", json={"username": "manager", "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    payload = response.json()
    assert payload["success"] is True
    assert payload["token"].startswith("sess_")
    assert payload["user"] == {"name": "Manager", "username": "manager"}


def test_login_invalid_password(client, db_session):
    create_admin(db_session)

    response = client.post("/api/login", json={"username": "manager", "password": "wrong-pass"})
    assert response.status_code == 401
    payload = response.json()
    assert payload["success"] is False
    assert payload["code"] == "INVALID_CREDENTIALS"


def test_login_unknown_user(client):
    response = client.post("/api/login", json={"username": "ghost", "password": "whatever"})
    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_CREDENTIALS"


def test_login_requires_both_fields(client):
    response = client.post("/api/login", json={"username": "manager"})
    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_session_token_is_stored_as_digest(client, db_session):
    create_admin(db_session)
    token = login(client)

    digests = db_session.execute(select(AdminSession.token_digest)).scalars().all()
    assert len(digests) == 1
    assert token not in digests


def test_legacy_plaintext_credential_is_upgraded(client, db_session):
    db_session.add(Admin(username="legacy", password="plain-secret", name="Legacy"))
    db_session.commit()

    login(client, "legacy", "plain-secret")

    db_session.expire_all()
    stored = db_session.execute(select(Admin).where(Admin.username == "legacy")).scalar_one()
    assert is_password_hash(stored.password)
    assert stored.password != "plain-secret"
    # Still valid after the upgrade.
    login(client, "legacy", "plain-secret")


def test_gated_api_without_token_returns_json_401(client):
    response = client.get("/api/reports")
    assert response.status_code == 401
    payload = response.json()
    assert payload["success"] is False
    assert payload["code"] == "INVALID_TOKEN"
    assert payload["message"] == "Session expired or unauthorized"
    assert payload["trace_id"]


def test_gated_api_with_unknown_token(client):
    response = client.get("/api/stats", headers=auth_headers("sess_not-a-real-token"))
    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_TOKEN"


def test_gated_page_redirects_browser_to_login(client):
    response = client.get("/dashboard", headers={"Accept": "text/html"}, follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/login"


def test_api_path_never_redirects(client):
    response = client.get("/api/metadata", headers={"Accept": "text/html"}, follow_redirects=False)
    assert response.status_code == 401


def test_me_returns_principal(client, db_session):
    admin = create_admin(db_session)
    token = login(client)

    response = client.get("/api/me", headers=auth_headers(token))
    assert response.status_code == 200
    payload = response.json()
    assert payload["id"] == admin.id
    assert payload["username"] == "manager"
    assert payload["name"] == "Manager"
    assert payload["trace_id"]


def test_logout_invalidates_session(client, db_session):
    create_admin(db_session)
    token = login(client)

    response = client.post("/api/logout", headers=auth_headers(token))
    assert response.status_code == 200
    assert response.json()["success"] is True

    assert client.get("/api/me", headers=auth_headers(token)).status_code == 401


def test_expired_session_is_rejected(client, db_session):
    create_admin(db_session)
    token = login(client)

    session = db_session.execute(select(AdminSession)).scalar_one()
    session.expires_at = session.created_at
    db_session.commit()

    assert client.get("/api/me", headers=auth_headers(token)).status_code == 401
    db_session.expire_all()
    assert db_session.execute(select(AdminSession)).scalars().all() == []
