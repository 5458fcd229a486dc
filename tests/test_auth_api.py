"""Login, session, logout, user listing, password changes and login throttling."""

from fastapi.testclient import TestClient
from jose import jwt

from app.main import app
from app.services import auth_service
from app.utils.constants import AUTH_COOKIE_NAME, CSRF_COOKIE_NAME
from tests.helpers import csrf_headers, login


def test_login_sets_cookies_and_returns_principal(client):
    response = client.post("/api/auth/login", json={"username": "Shyam", "password": "shyamadmin"})

    assert response.status_code == 200
    body = response.json()
    assert body["username"] == "Shyam"
    assert body["role"] == "admin"
    assert body["displayName"] == "Shyam (Admin)"
    assert len(body["csrfToken"]) == 48

    assert client.cookies.get(CSRF_COOKIE_NAME) == body["csrfToken"]
    assert client.cookies.get(AUTH_COOKIE_NAME)

    set_cookie = ", ".join(response.headers.get_list("set-cookie"))
    assert "HttpOnly" in set_cookie
    assert "SameSite=strict" in set_cookie or "samesite=strict" in set_cookie.lower()


def test_login_username_is_case_insensitive(client):
    response = client.post("/api/auth/login", json={"username": "rakesh", "password": "rakesh123"})
    assert response.status_code == 200
    assert response.json()["username"] == "Rakesh"


def test_invalid_credentials(client):
    for username, password in (("Rakesh", "wrong"), ("Nobody", "rakesh123")):
        response = client.post("/api/auth/login", json={"username": username, "password": password})
        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Invalid credentials"}


def test_login_requires_both_fields(client):
    response = client.post("/api/auth/login", json={"username": "Rakesh", "password": ""})
    assert response.status_code == 400
    assert response.json()["error"] == "Username and password are required"


def test_session_and_logout(client):
    assert client.get("/api/auth/session").status_code == 401

    csrf = login(client, "Akhil")
    response = client.get("/api/auth/session")
    assert response.status_code == 200
    assert response.json() == {
        "username": "Akhil",
        "role": "user",
        "displayName": "Akhil",
        "csrfToken": csrf,
    }

    response = client.post("/api/auth/logout")
    assert response.status_code == 204
    assert client.get("/api/auth/session").status_code == 401


def test_forged_cookie_is_anonymous(client):
    forged_token = jwt.encode(
        {"username": "Shyam", "role": "admin", "displayName": "Shyam (Admin)", "csrfToken": "c" * 48},
        "not-the-server-secret",
        algorithm="HS256",
    )
    forged = TestClient(app, cookies={AUTH_COOKIE_NAME: forged_token})

    assert forged.get("/api/auth/session").status_code == 401
    assert forged.get("/api/items").status_code == 401


def test_list_users_is_public_and_hides_passwords(client):
    response = client.get("/api/auth/users")

    assert response.status_code == 200
    users = response.json()
    assert [u["username"] for u in users] == ["Akhil", "Nabeel", "Rakesh", "Shyam"]
    assert all(set(u) == {"username", "displayName", "role"} for u in users)


def test_admin_changes_password_directly(make_client):
    admin = make_client()
    csrf = login(admin, "Shyam")

    response = admin.put(
        "/api/auth/users/Akhil/password",
        json={"newPassword": "newpass1"},
        headers=csrf_headers(csrf),
    )
    assert response.status_code == 200
    assert response.json() == {"message": "Password updated for Akhil"}

    akhil = make_client()
    assert akhil.post("/api/auth/login", json={"username": "Akhil", "password": "akhil123"}).status_code == 401
    login(akhil, "Akhil", "newpass1")


def test_technician_needs_admin_override(make_client):
    client = make_client()
    csrf = login(client, "Rakesh")

    response = client.put(
        "/api/auth/users/Rakesh/password",
        json={"newPassword": "fresh123"},
        headers=csrf_headers(csrf),
    )
    assert response.status_code == 403

    response = client.put(
        "/api/auth/users/Rakesh/password",
        json={"newPassword": "fresh123", "overrideUsername": "Nabeel", "overridePassword": "nabeel123"},
        headers=csrf_headers(csrf),
    )
    assert response.status_code == 403

    response = client.put(
        "/api/auth/users/Rakesh/password",
        json={"newPassword": "fresh123", "overrideUsername": "Shyam", "overridePassword": "shyamadmin"},
        headers=csrf_headers(csrf),
    )
    assert response.status_code == 200

    login(make_client(), "Rakesh", "fresh123")


def test_password_change_requires_csrf(client):
    login(client, "Shyam")
    response = client.put("/api/auth/users/Akhil/password", json={"newPassword": "newpass1"})
    assert response.status_code == 403
    assert response.json()["error"] == "CSRF validation failed"


def test_password_change_validation(client):
    csrf = login(client, "Shyam")

    response = client.put(
        "/api/auth/users/Akhil/password",
        json={"newPassword": "abc"},
        headers=csrf_headers(csrf),
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Password must be at least 4 characters"

    response = client.put(
        "/api/auth/users/Ghost/password",
        json={"newPassword": "abcd"},
        headers=csrf_headers(csrf),
    )
    assert response.status_code == 404


def test_password_change_requires_session(client):
    response = client.put("/api/auth/users/Akhil/password", json={"newPassword": "abcd"})
    assert response.status_code == 401


def test_login_rate_limited(client, fake_redis):
    for _ in range(10):
        response = client.post("/api/auth/login", json={"username": "Rakesh", "password": "wrong"})
        assert response.status_code == 401

    response = client.post("/api/auth/login", json={"username": "Rakesh", "password": "rakesh123"})
    assert response.status_code == 429
    assert response.json()["error"] == "Too many login attempts. Try again later."
    assert response.headers["retry-after"] == "900"
    assert fake_redis.ttls["login:attempts:testclient"] == 900


def test_login_rate_limit_is_per_forwarded_client(client, fake_redis):
    blocked = {"X-Forwarded-For": "203.0.113.1"}
    for _ in range(10):
        response = client.post(
            "/api/auth/login", json={"username": "Rakesh", "password": "wrong"}, headers=blocked
        )
        assert response.status_code == 401

    response = client.post(
        "/api/auth/login", json={"username": "Rakesh", "password": "rakesh123"}, headers=blocked
    )
    assert response.status_code == 429

    response = client.post(
        "/api/auth/login",
        json={"username": "Rakesh", "password": "rakesh123"},
        headers={"X-Forwarded-For": "198.51.100.7, 10.0.0.2"},
    )
    assert response.status_code == 200
    assert "login:attempts:203.0.113.1" in fake_redis.store
    assert "login:attempts:198.51.100.7" in fake_redis.store


def test_unknown_user_still_runs_a_hash_check(client, monkeypatch):
    calls = []
    monkeypatch.setattr(auth_service, "dummy_verify_password", lambda: calls.append(1))

    response = client.post("/api/auth/login", json={"username": "Nobody", "password": "secret"})
    assert response.status_code == 401
    assert response.json()["error"] == "Invalid credentials"
    assert calls == [1]

    response = client.post("/api/auth/login", json={"username": "Rakesh", "password": "wrong"})
    assert response.status_code == 401
    assert calls == [1]
