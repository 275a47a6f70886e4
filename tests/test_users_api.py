import uuid
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from medcamp.main import app
from medcamp.models.user import Profile
from medcamp.routers import users as users_router


def test_me_returns_own_profile(client, patient, patient_headers):
    r = client.get("/api/users/me", headers=patient_headers)

    assert r.status_code == 200
    body = r.json()
    assert body["id"] == str(patient.id)
    assert body["email"] == "patient@camp.org"
    assert body["name"] == "Pat"
    assert body["role"] == "user"


def test_me_provisions_missing_profile(client, mint_token):
    sub = uuid.uuid4()
    headers = {"Authorization": f"Bearer {mint_token(sub, email='fresh@camp.org')}"}

    r = client.get("/api/users/me", headers=headers)

    assert r.status_code == 200
    assert r.json()["id"] == str(sub)
    assert r.json()["email"] == "fresh@camp.org"
    assert r.json()["role"] == "user"
    assert r.json()["name"] is None


def test_me_backfills_missing_role(client, session, add_profile, headers_for):
    legacy = add_profile(role=None)
    assert legacy.role is None

    r = client.get("/api/users/me", headers=headers_for(legacy))

    assert r.status_code == 200
    assert r.json()["role"] == "user"
    session.expire_all()
    assert session.get(Profile, legacy.id).role == "user"


def test_admin_can_read_own_profile(client, admin_headers):
    r = client.get("/api/users/me", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["role"] == "admin"


def test_update_me_is_partial(client, patient_headers):
    r = client.patch(
        "/api/users/me",
        json={"phone": " 555-0100 ", "age": 42},
        headers=patient_headers,
    )

    assert r.status_code == 200
    body = r.json()
    assert body["phone"] == "555-0100"
    assert body["age"] == 42
    assert body["name"] == "Pat"
    assert body["address"] is None


def test_update_me_persists(client, patient_headers):
    client.patch(
        "/api/users/me",
        json={"name": "  Patricia  ", "address": "12 Camp Road"},
        headers=patient_headers,
    )

    body = client.get("/api/users/me", headers=patient_headers).json()
    assert body["name"] == "Patricia"
    assert body["address"] == "12 Camp Road"


@pytest.mark.parametrize(
    "payload",
    [
        {"role": "admin"},
        {"email": "other@camp.org"},
        {"name": "   "},
        {"age": -1},
        {"age": 200},
    ],
)
def test_update_me_rejects_invalid_or_protected_fields(client, patient_headers, payload):
    r = client.patch("/api/users/me", json=payload, headers=patient_headers)

    assert r.status_code == 400
    assert client.get("/api/users/me", headers=patient_headers).json()["role"] == "user"


def test_admin_lists_all_profiles_newest_first(client, add_profile, admin, admin_headers):
    now = datetime.now(timezone.utc)
    older = add_profile(role="user", created_at=now - timedelta(days=2))
    newer = add_profile(role="user", created_at=now + timedelta(days=1))

    r = client.get("/api/users", headers=admin_headers)

    assert r.status_code == 200
    ids = [u["id"] for u in r.json()]
    assert ids == [str(newer.id), str(admin.id), str(older.id)]
    assert set(r.json()[0]) == {
        "id", "email", "name", "phone", "age", "address", "role", "created_at",
    }


def test_health_is_public(client):
    assert client.get("/api/health").json() == {"status": "ok", "message": "Backend is healthy"}
    assert client.get("/").json() == {"status": "ok", "service": "medcamp-backend"}


def test_unknown_route_uses_message_shape(client):
    r = client.get("/api/nothing-here")
    assert r.status_code == 404
    assert r.json() == {"message": "Not Found"}


def test_stored_emails_are_returned_as_is(client, add_profile, admin_headers):
    nurse = add_profile(role="user", email="nurse@camp.local")

    r = client.get("/api/users", headers=admin_headers)

    assert r.status_code == 200
    assert nurse.email in [u["email"] for u in r.json()]


def test_me_provisions_any_identity_provider_email(client, mint_token):
    headers = {"Authorization": f"Bearer {mint_token(uuid.uuid4(), email='pat@clinic.test')}"}

    r = client.get("/api/users/me", headers=headers)

    assert r.status_code == 200
    assert r.json()["email"] == "pat@clinic.test"


def test_unexpected_error_is_json_500(client, admin_headers, monkeypatch):
    def broken(*args, **kwargs):
        raise RuntimeError("upstream client blew up")

    monkeypatch.setattr(users_router.repo, "list", broken)
    lenient = TestClient(app, raise_server_exceptions=False)

    r = lenient.get("/api/users", headers=admin_headers)

    assert r.status_code == 500
    assert r.headers["content-type"] == "application/json"
    assert r.json() == {"message": "Server error"}
