import pytest

pytestmark = pytest.mark.integration


def _register(client, email="new@taskflow.dev", password="secret123"):
    return client.post("/api/auth/register", json={"name": "New", "email": email, "password": password})


class TestRegisterAndLogin:
    def test_register_returns_tokens(self, client):
        resp = _register(client, email="New@Taskflow.dev")
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["user"]["email"] == "new@taskflow.dev"
        assert body["access_token"] and body["refresh_token"]
        assert "password_hash" not in body["user"]

    def test_duplicate_email(self, client):
        _register(client)
        resp = _register(client, email="NEW@taskflow.dev")
        assert resp.status_code == 409
        assert resp.get_json()["error"] == "email_already_exists"

    def test_weak_password(self, client):
        resp = _register(client, password="short")
        assert resp.status_code == 400
        body = resp.get_json()
        assert body["error"] == "validation_error"
        assert body["details"]

    def test_login(self, client, user):
        resp = client.post("/api/auth/login", json={"email": "ADA@taskflow.dev", "password": "secret123"})
        assert resp.status_code == 200
        assert resp.get_json()["user"]["id"] == user.id

    def test_login_wrong_password(self, client, user):
        resp = client.post("/api/auth/login", json={"email": "ada@taskflow.dev", "password": "nope"})
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "invalid_credentials"


class TestTokens:
    def test_missing_token(self, client):
        resp = client.get("/api/auth/me")
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "unauthorized"

    def test_garbage_token(self, client):
        resp = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert resp.status_code == 401

    def test_me(self, client, auth_headers, user):
        resp = client.get("/api/auth/me", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.get_json()["user"]["email"] == user.email

    def test_refresh_and_logout(self, client, user):
        tokens = client.post(
            "/api/auth/login", json={"email": "ada@taskflow.dev", "password": "secret123"}
        ).get_json()
        refresh_headers = {"Authorization": f"Bearer {tokens['refresh_token']}"}
        access_headers = {"Authorization": f"Bearer {tokens['access_token']}"}

        resp = client.post("/api/auth/refresh", headers=refresh_headers)
        assert resp.status_code == 200
        assert resp.get_json()["access_token"]

        assert client.post("/api/auth/logout", headers=access_headers).status_code == 200
        resp = client.get("/api/auth/me", headers=access_headers)
        assert resp.status_code == 401
        assert resp.get_json()["message"] == "token has been revoked"

    def test_access_token_cannot_refresh(self, client, auth_headers):
        assert client.post("/api/auth/refresh", headers=auth_headers).status_code == 401


class TestUserApi:
    def test_update_profile_and_settings(self, client, auth_headers):
        resp = client.patch("/api/users/me", json={"name": "Ada L."}, headers=auth_headers)
        assert resp.get_json()["user"]["name"] == "Ada L."
        client.put("/api/users/me/settings", json={"settings": {"theme": "dark"}}, headers=auth_headers)
        resp = client.put("/api/users/me/settings", json={"settings": {"tz": "UTC"}}, headers=auth_headers)
        assert resp.get_json()["user"]["settings"] == {"theme": "dark", "tz": "UTC"}

    def test_change_password(self, client, auth_headers):
        resp = client.post(
            "/api/users/me/password",
            json={"current_password": "wrong", "new_password": "n3w-secret"},
            headers=auth_headers,
        )
        assert resp.status_code == 400
        resp = client.post(
            "/api/users/me/password",
            json={"current_password": "secret123", "new_password": "n3w-secret"},
            headers=auth_headers,
        )
        assert resp.status_code == 200

    def test_soft_delete(self, client, auth_headers):
        resp = client.delete("/api/users/me", headers=auth_headers)
        assert resp.get_json() == {"ok": True, "hard": False}
        assert client.get("/api/auth/me", headers=auth_headers).status_code == 404
        resp = client.post("/api/auth/login", json={"email": "ada@taskflow.dev", "password": "secret123"})
        assert resp.status_code == 401

    def test_hard_delete(self, client, auth_headers):
        resp = client.delete("/api/users/me?hard=true", headers=auth_headers)
        assert resp.get_json()["hard"] is True
        assert client.get("/api/users/me", headers=auth_headers).status_code == 404

    def test_stats(self, client, auth_headers):
        client.post("/api/tasks", json={"title": "x"}, headers=auth_headers)
        resp = client.get("/api/users/me/stats", headers=auth_headers)
        assert resp.get_json()["stats"]["total_tasks"] == 1


def test_health(client):
    assert client.get("/health").get_json() == {"ok": True}
