"""
HTTP-level tests for the auth, game result and health routes.

The app is built with create_app() but the lifespan is not run: services
backed by the in-memory stores from conftest are placed on app.state instead.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from app import create_app
from config import AppSettings

PASSWORD = "Str0ng@Pass"
EMAIL = "ada@example.com"


@pytest.fixture
def settings(monkeypatch, jwt_settings, auth_settings):
    monkeypatch.setenv("MONGODB_URI", "mongodb://localhost:27017/")
    return AppSettings(
        frontend_url="https://admin.example.com",
        jwt=jwt_settings,
        auth=auth_settings,
    )


@pytest.fixture
def db():
    mock_db = MagicMock()
    mock_db.client.admin.command = AsyncMock(return_value={"ok": 1})
    return mock_db


@pytest.fixture
def client(settings, db, auth_service, game_result_service):
    app = create_app(settings)
    app.state.db = db
    app.state.auth_service = auth_service
    app.state.game_result_service = game_result_service
    return TestClient(app, raise_server_exceptions=False)


def _register(client, email=EMAIL, password=PASSWORD):
    return client.post(
        "/api/auth/register",
        json={
            "firstName": "Ada",
            "lastName": "Lovelace",
            "email": email,
            "password": password,
        },
    )


def _login(client, mailer) -> str:
    assert _register(client).status_code == 201
    client.post(
        "/api/auth/verify-email",
        json={"email": EMAIL, "otp": mailer.last("verify")["otp"]},
    )
    client.post("/api/auth/login/request-otp", json={"identifier": EMAIL})
    client.post(
        "/api/auth/login/verify-otp",
        json={"identifier": EMAIL, "otp": mailer.last("login_otp")["otp"]},
    )
    resp = client.post(
        "/api/auth/login/password", json={"identifier": EMAIL, "password": PASSWORD}
    )
    assert resp.status_code == 200
    return resp.json()["access_token"]


def _auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


# ── Health ────────────────────────────────────────────────────────────────────


class TestHealth:
    def test_root(self, client):
        assert client.get("/").json() == {"message": "API is running!"}

    def test_healthy(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "healthy", "checks": {"mongodb": "ok"}}

    def test_unhealthy(self, client, db):
        db.client.admin.command.side_effect = Exception("down")
        resp = client.get("/health")
        assert resp.status_code == 503
        assert resp.json()["checks"]["mongodb"] == "error"


# ── Auth ──────────────────────────────────────────────────────────────────────


class TestRegisterRoute:
    def test_created(self, client):
        resp = _register(client, email="Ada@Example.com")
        assert resp.status_code == 201
        body = resp.json()
        assert body["success"] is True
        assert body["requires_verification"] is True
        assert body["user_name"].startswith("ada_")
        assert body["verification_expires_at"]

    def test_weak_password(self, client):
        resp = _register(client, password="weak")
        assert resp.status_code == 400
        body = resp.json()
        assert body["code"] == "validation_error"
        assert body["field"] == "password"
        assert body["error"] == "Password must be strong (Upper, Lower, Number, Special char)"

    def test_duplicate(self, client):
        _register(client)
        resp = _register(client)
        assert resp.status_code == 409
        assert resp.json()["error"] == "User already exists"

    def test_email_failure_is_502(self, client, mailer):
        mailer.fail = True
        resp = _register(client)
        assert resp.status_code == 502
        assert resp.json()["code"] == "email_delivery_failed"


class TestLoginRoutes:
    def test_full_flow_and_profile(self, client, mailer):
        token = _login(client, mailer)
        resp = client.get("/api/auth/profile", headers=_auth(token))
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["email"] == EMAIL
        assert data["role"] == "admin"
        assert data["is_verified"] is True
        for secret in ("password", "otp", "login_attempts", "reset_password"):
            assert secret not in resp.text

    def test_login_response_shape(self, client, mailer):
        _register(client)
        client.post(
            "/api/auth/verify-email",
            json={"email": EMAIL, "otp": mailer.last("verify")["otp"]},
        )
        client.post("/api/auth/login/request-otp", json={"identifier": EMAIL})
        client.post(
            "/api/auth/login/verify-otp",
            json={"identifier": EMAIL, "otp": mailer.last("login_otp")["otp"]},
        )
        body = client.post(
            "/api/auth/login/password",
            json={"identifier": EMAIL, "password": PASSWORD},
        ).json()
        assert body["message"] == "Login successful"
        assert body["token_type"] == "Bearer"
        assert body["expires_in"] == 3600
        assert "password_hash" not in body["user"]

    def test_unverified_request_otp(self, client):
        _register(client)
        resp = client.post("/api/auth/login/request-otp", json={"identifier": EMAIL})
        assert resp.status_code == 400
        assert resp.json()["error"] == "User not found or not verified"

    def test_password_before_otp(self, client, mailer):
        _register(client)
        client.post(
            "/api/auth/verify-email",
            json={"email": EMAIL, "otp": mailer.last("verify")["otp"]},
        )
        resp = client.post(
            "/api/auth/login/password", json={"identifier": EMAIL, "password": PASSWORD}
        )
        assert resp.status_code == 403
        assert resp.json()["code"] == "otp_required"

    def test_profile_requires_token(self, client):
        resp = client.get("/api/auth/profile")
        assert resp.status_code == 401
        assert resp.json()["error"] == "Not authorized, no token"

    def test_profile_bad_token(self, client):
        resp = client.get("/api/auth/profile", headers=_auth("garbage"))
        assert resp.status_code == 401
        assert resp.json()["error"] == "Not authorized, token failed"


class TestPasswordRoutes:
    def test_forgot_password_same_answer(self, client, mailer):
        _login(client, mailer)
        known = client.post("/api/auth/forgot-password", json={"email": EMAIL})
        unknown = client.post(
            "/api/auth/forgot-password", json={"email": "nobody@example.com"}
        )
        assert known.status_code == unknown.status_code == 200
        assert known.json() == unknown.json()

    def test_reset_password(self, client, mailer):
        _login(client, mailer)
        client.post("/api/auth/forgot-password", json={"email": EMAIL})
        token = mailer.last("reset")["reset_url"].rsplit("/", 1)[1]
        body = {"token": token, "newPassword": "N3w@Passw0rd", "confirmPassword": "N3w@Passw0rd"}

        first = client.post("/api/auth/reset-password", json=body)
        assert first.status_code == 200
        assert first.json()["message"] == "Password reset successful. Please login."

        second = client.post("/api/auth/reset-password", json=body)
        assert second.status_code == 400
        assert second.json()["error"] == "Invalid or expired token"

    def test_reset_password_mismatch(self, client):
        resp = client.post(
            "/api/auth/reset-password",
            json={"token": "t", "newPassword": "N3w@Passw0rd", "confirmPassword": "Other@Pass1"},
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "Passwords do not match"

    def test_change_password(self, client, mailer):
        token = _login(client, mailer)
        resp = client.put(
            "/api/auth/change-password",
            headers=_auth(token),
            json={
                "oldPassword": PASSWORD,
                "newPassword": "N3w@Passw0rd",
                "confirmNewPassword": "N3w@Passw0rd",
            },
        )
        assert resp.status_code == 200
        assert resp.json()["message"] == "Password changed successfully"

    def test_change_password_wrong_old(self, client, mailer):
        token = _login(client, mailer)
        resp = client.put(
            "/api/auth/change-password",
            headers=_auth(token),
            json={
                "oldPassword": "Wr0ng@Pass",
                "newPassword": "N3w@Passw0rd",
                "confirmNewPassword": "N3w@Passw0rd",
            },
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "Incorrect current password"


# ── Game results ──────────────────────────────────────────────────────────────


class TestGameResultRoutes:
    def _add(self, client, token, **overrides):
        body = {"gameId": "GAME_A", "date": "05-11-2025", "resultNumber": "42"}
        body.update(overrides)
        return client.post("/api/game/game-results/add", headers=_auth(token), json=body)

    def test_add_requires_auth(self, client):
        resp = client.post(
            "/api/game/game-results/add",
            json={"gameId": "GAME_A", "date": "05-11-2025", "resultNumber": "42"},
        )
        assert resp.status_code == 401

    def test_add(self, client, mailer):
        token = _login(client, mailer)
        resp = self._add(client, token)
        assert resp.status_code == 201
        body = resp.json()
        assert body["message"] == "Game result added successfully"
        assert body["data"]["game_id"] == "GAME_A"
        assert body["data"]["date"] == "05-11-2025"

    def test_duplicate(self, client, mailer):
        token = _login(client, mailer)
        self._add(client, token)
        resp = self._add(client, token, resultNumber="7")
        assert resp.status_code == 409
        assert resp.json()["error"] == "Result already exists for this game & date"

    def test_bad_date(self, client, mailer):
        token = _login(client, mailer)
        resp = self._add(client, token, date="2025-11-05")
        assert resp.status_code == 400
        assert resp.json()["error"] == "Date must be in DD-MM-YYYY format"
        assert resp.json()["field"] == "date"

    def test_list_grouped_is_public(self, client, mailer):
        token = _login(client, mailer)
        self._add(client, token, date="10-11-2025")
        self._add(client, token, date="05-11-2025")
        self._add(client, token, gameId="GAME_B")

        resp = client.get("/api/game/game-results")
        assert resp.status_code == 200
        body = resp.json()
        assert body["total_games"] == 2
        assert [g["game_id"] for g in body["data"]] == ["GAME_A", "GAME_B"]
        assert [r["date"] for r in body["data"][0]["results"]] == [
            "05-11-2025",
            "10-11-2025",
        ]

    def test_list_empty(self, client):
        body = client.get("/api/game/game-results").json()
        assert body == {"success": True, "total_games": 0, "data": []}
