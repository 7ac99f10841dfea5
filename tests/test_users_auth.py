"""Login, lockout, registration and user administration."""

from __future__ import annotations

import pytest

from models import db
from models.user import User

PASSWORD = "Secret123"


def _login(client, email, password=PASSWORD):
    return client.post("/api/users/login", json={"email": email, "password": password})


def test_login_returns_token_and_user(client, student):
    response = _login(client, "Student@Example.com")
    assert response.status_code == 200
    body = response.get_json()
    assert body["token"]
    assert body["user"]["email"] == "student@example.com"
    assert "passwordHash" not in body["user"]
    assert db.session.get(User, student.id).last_login is not None


@pytest.mark.parametrize(
    "payload, status_code",
    [
        ({"email": "student@example.com"}, 400),
        ({"password": PASSWORD}, 400),
        ({"email": "student@example.com", "password": "wrong"}, 401),
        ({"email": "nobody@example.com", "password": PASSWORD}, 401),
    ],
)
def test_login_validation(client, student, payload, status_code):
    response = client.post("/api/users/login", json=payload)
    assert response.status_code == status_code


def test_token_from_login_authorizes_requests(client, student):
    token = _login(client, student.email).get_json()["token"]
    response = client.get("/api/users/profile", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    assert response.get_json()["user"]["id"] == student.id


def test_lockout_after_repeated_failures(client, student):
    for _ in range(3):
        assert _login(client, student.email, "wrong").status_code == 401

    locked = _login(client, student.email)
    assert locked.status_code == 403
    assert "locked" in locked.get_json()["message"]


def test_successful_login_resets_attempts(client, student):
    _login(client, student.email, "wrong")
    assert _login(client, student.email).status_code == 200
    assert db.session.get(User, student.id).login_attempts == 0


def test_inactive_user_cannot_login(client, make_user):
    make_user("gone@example.com", is_active=False)
    assert _login(client, "gone@example.com").status_code == 403


def test_register_creates_student(client):
    response = client.post(
        "/api/users", json={"email": "new@example.com", "password": PASSWORD, "role": "student"}
    )
    assert response.status_code == 201
    body = response.get_json()
    assert body["user"]["role"] == "student"
    assert body["token"]


def test_register_rejects_duplicates_and_short_passwords(client, student):
    dup = client.post("/api/users", json={"email": student.email, "password": PASSWORD})
    assert dup.status_code == 409
    short = client.post("/api/users", json={"email": "s@example.com", "password": "123"})
    assert short.status_code == 400


@pytest.mark.parametrize(
    "overrides",
    [{"role": 5}, {"email": 5}, {"password": 123456}, {"role": ["admin"]}],
)
def test_register_rejects_non_string_fields(client, overrides):
    payload = {"email": "typed@example.com", "password": PASSWORD, **overrides}
    response = client.post("/api/users", json=payload)
    assert response.status_code == 400
    assert "must be a string" in response.get_json()["message"]
    assert User.query.filter_by(email="typed@example.com").first() is None


def test_login_rejects_non_string_email(client, student):
    response = client.post("/api/users/login", json={"email": 5, "password": PASSWORD})
    assert response.status_code == 400


def test_self_registration_cannot_create_admin(client):
    response = client.post(
        "/api/users", json={"email": "evil@example.com", "password": PASSWORD, "role": "admin"}
    )
    assert response.status_code == 403


def test_admin_creates_program_admin(client, admin, program, auth_headers):
    response = client.post(
        "/api/users",
        json={
            "email": "pa@example.com",
            "password": PASSWORD,
            "role": "program_admin",
            "programId": program.id,
        },
        headers=auth_headers(admin),
    )
    assert response.status_code == 201
    assert response.get_json()["user"]["programId"] == program.id


def test_admin_lists_and_filters_users(client, admin, student, auth_headers):
    body = client.get("/api/users?role=student", headers=auth_headers(admin)).get_json()
    assert body["totalDocs"] == 1
    assert body["docs"][0]["email"] == student.email


def test_non_admin_cannot_list_users(client, student, auth_headers):
    assert client.get("/api/users", headers=auth_headers(student)).status_code == 403


def test_admin_updates_and_deletes_user(client, admin, make_user, auth_headers):
    target = make_user("target@example.com")
    headers = auth_headers(admin)

    updated = client.put(
        f"/api/users/{target.id}", json={"isActive": False}, headers=headers
    )
    assert updated.status_code == 200
    assert updated.get_json()["user"]["isActive"] is False

    deleted = client.delete(f"/api/users/{target.id}", headers=headers)
    assert deleted.status_code == 200
    assert db.session.get(User, target.id) is None


def test_admin_cannot_delete_self(client, admin, auth_headers):
    response = client.delete(f"/api/users/{admin.id}", headers=auth_headers(admin))
    assert response.status_code == 400


def test_profile_password_change_requires_current(client, student, auth_headers):
    headers = auth_headers(student)
    wrong = client.put(
        "/api/users/profile",
        json={"currentPassword": "nope", "newPassword": "NewSecret1"},
        headers=headers,
    )
    assert wrong.status_code == 400

    ok = client.put(
        "/api/users/profile",
        json={"currentPassword": PASSWORD, "newPassword": "NewSecret1"},
        headers=headers,
    )
    assert ok.status_code == 200
    assert _login(client, student.email, "NewSecret1").status_code == 200


def test_deactivated_token_holder_is_forbidden(client, student, auth_headers):
    headers = auth_headers(student)
    student.is_active = False
    db.session.commit()
    assert client.get("/api/applications", headers=headers).status_code == 403
