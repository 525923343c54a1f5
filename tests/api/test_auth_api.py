"""Auth endpoints + bearer middleware"""

import jwt
from fastapi.testclient import TestClient

from tavern.config import settings
from tavern.core.enums import Role
from tavern.core.security import create_access_token


def _register_body(**overrides):
    body = {
        "email": "aria@tavern.io",
        "username": "aria",
        "display_name": "Aria",
        "password": "secret123",
    }
    body.update(overrides)
    return body


class TestRegister:
    def test_register_defaults_to_adventurer(self, client: TestClient):
        response = client.post("/auth/register", json=_register_body())
        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["data"]["token"]
        user = body["data"]["user"]
        assert user["role"] == "ADVENTURER"
        assert user["gold"] == 0
        assert "password_hash" not in user

    def test_duplicate_is_conflict(self, client: TestClient):
        client.post("/auth/register", json=_register_body())
        response = client.post("/auth/register", json=_register_body(email="new@tavern.io"))
        assert response.status_code == 409
        assert response.json() == {
            "success": False,
            "message": "User with this email/username already exists",
        }

    def test_validation_envelope(self, client: TestClient):
        response = client.post(
            "/auth/register",
            json=_register_body(email="not-an-email", username="ab", password="123"),
        )
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Validation error"
        assert {issue["path"] for issue in body["issues"]} == {"email", "username", "password"}

    def test_unknown_role_rejected(self, client: TestClient):
        response = client.post("/auth/register", json=_register_body(role="DRAGON"))
        assert response.status_code == 400

    def test_username_cannot_look_like_an_email(self, client: TestClient):
        response = client.post("/auth/register", json=_register_body(username="aria@tavern.io"))
        assert response.status_code == 400
        assert {issue["path"] for issue in response.json()["issues"]} == {"username"}


class TestLogin:
    def test_login_and_me(self, client: TestClient, register, auth):
        register("aria", role="NPC")
        response = client.post(
            "/auth/login", json={"email_or_username": "aria@tavern.io", "password": "secret123"}
        )
        assert response.status_code == 200
        token = response.json()["data"]["token"]

        me = client.get("/auth/me", headers=auth(token))
        assert me.status_code == 200
        assert me.json()["data"]["username"] == "aria"
        assert me.json()["data"]["role"] == "NPC"

    def test_bad_credentials_are_uniform(self, client: TestClient, register):
        register("aria")
        wrong = client.post(
            "/auth/login", json={"email_or_username": "aria", "password": "wrong-pass"}
        )
        unknown = client.post(
            "/auth/login", json={"email_or_username": "ghost", "password": "secret123"}
        )
        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json() == unknown.json() == {
            "success": False,
            "message": "Invalid credentials",
        }


class TestBearer:
    def test_missing_header(self, client: TestClient):
        response = client.get("/auth/me")
        assert response.status_code == 401
        assert response.json()["message"] == "Missing Authorization header"

    def test_garbage_token(self, client: TestClient, auth):
        response = client.get("/auth/me", headers=auth("not.a.jwt"))
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid or expired token"

    def test_expired_token(self, client: TestClient, auth):
        token = create_access_token("someone", Role.ADVENTURER, expires_minutes=-1)
        response = client.get("/auth/me", headers=auth(token))
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid or expired token"

    def test_payload_without_role(self, client: TestClient, auth):
        token = jwt.encode({"sub": "someone"}, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
        response = client.get("/auth/me", headers=auth(token))
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token payload"

    def test_token_for_deleted_user(self, client: TestClient, auth):
        token = create_access_token("gone", Role.ADVENTURER)
        response = client.get("/auth/me", headers=auth(token))
        assert response.status_code == 404

    def test_role_gate(self, client: TestClient, register, auth):
        token, _ = register("aria")
        response = client.get("/npc-organizations/me", headers=auth(token))
        assert response.status_code == 403
        assert response.json() == {"success": False, "message": "Forbidden"}
