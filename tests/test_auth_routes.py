"""
tests/test_auth_routes.py -- Integration tests for registration, login and /me.

These tests exercise the full stack: FastAPI routing -> request model ->
IdentityService -> UserStore -> response model serialization.

Coverage:
  - Register happy path: 201, token, public user view with role "user"
  - Register validation: missing fields, bad email, short password, mismatch
  - Duplicate email (case-insensitive) -> 400 "User already exists"
  - Login happy path and the identical failure for unknown email / wrong password
  - GET /me with and without a token, and after the account is deleted
"""

from __future__ import annotations

import pytest

from auth.models import Role
from auth.tokens import decode_access_token

REGISTER = "/api/v1/auth/register"
LOGIN = "/api/v1/auth/login"
ME = "/api/v1/auth/me"

ANN = {"name": "Ann", "email": "a@x.com", "password": "secret1", "confirmPassword": "secret1"}


class TestRegister:
    def test_register_returns_token_and_user(self, api) -> None:
        resp = api.client.post(REGISTER, json=ANN)
        assert resp.status_code == 201, resp.text
        data = resp.json()
        assert data["message"] == "User registered successfully"
        assert data["user"]["role"] == "user"
        assert data["user"]["email"] == "a@x.com"
        assert data["user"]["name"] == "Ann"
        assert "createdAt" in data["user"]
        identity = decode_access_token(api.settings, data["token"])
        assert identity.user_id == data["user"]["id"]
        assert identity.role is Role.user

    def test_register_never_returns_password_hash(self, api) -> None:
        data = api.client.post(REGISTER, json=ANN).json()
        assert not any("password" in key.lower() for key in data["user"])

    def test_register_then_login(self, api) -> None:
        """Register Ann, then log in with the same credentials and get a new valid token."""
        assert api.client.post(REGISTER, json=ANN).status_code == 201
        resp = api.client.post(LOGIN, json={"email": "a@x.com", "password": "secret1"})
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["message"] == "Login successful"
        assert data["user"]["role"] == "user"
        me = api.client.get(ME, headers={"Authorization": f"Bearer {data['token']}"})
        assert me.status_code == 200
        assert me.json()["user"]["email"] == "a@x.com"

    @pytest.mark.parametrize("missing", ["name", "email", "password", "confirmPassword"])
    def test_register_missing_field(self, api, missing: str) -> None:
        body = {k: v for k, v in ANN.items() if k != missing}
        resp = api.client.post(REGISTER, json=body)
        assert resp.status_code == 400
        assert resp.json() == {"message": "All fields are required"}

    def test_register_invalid_email(self, api) -> None:
        resp = api.client.post(REGISTER, json={**ANN, "email": "not-an-email"})
        assert resp.status_code == 400
        assert resp.json()["message"] == "Invalid email format"

    def test_register_short_password(self, api) -> None:
        resp = api.client.post(REGISTER, json={**ANN, "password": "abc", "confirmPassword": "abc"})
        assert resp.status_code == 400
        assert resp.json()["message"] == "Password must be at least 6 characters"

    def test_register_password_mismatch(self, api) -> None:
        resp = api.client.post(REGISTER, json={**ANN, "confirmPassword": "secret2"})
        assert resp.status_code == 400
        assert resp.json()["message"] == "Passwords do not match"

    def test_register_duplicate_email_case_insensitive(self, api) -> None:
        assert api.client.post(REGISTER, json=ANN).status_code == 201
        resp = api.client.post(REGISTER, json={**ANN, "email": "  A@X.COM "})
        assert resp.status_code == 400
        assert resp.json()["message"] == "User already exists"

    def test_register_cannot_choose_role(self, api) -> None:
        """Extra fields such as role are ignored: self-registration is always a regular user."""
        resp = api.client.post(REGISTER, json={**ANN, "role": "admin"})
        assert resp.status_code == 201
        assert resp.json()["user"]["role"] == "user"

    def test_register_without_body(self, api) -> None:
        resp = api.client.post(REGISTER)
        assert resp.status_code == 400
        assert "message" in resp.json()

    @pytest.mark.parametrize("password", ["a" * 100, "\u00e9" * 40])
    def test_register_password_over_bcrypt_limit(self, api, password: str) -> None:
        body = {**ANN, "password": password, "confirmPassword": password}
        resp = api.client.post(REGISTER, json=body)
        assert resp.status_code == 400
        assert resp.json() == {"message": "Password cannot exceed 72 bytes"}

    def test_register_password_at_bcrypt_limit(self, api) -> None:
        password = "a" * 72
        resp = api.client.post(REGISTER, json={**ANN, "password": password, "confirmPassword": password})
        assert resp.status_code == 201
        login = api.client.post(LOGIN, json={"email": ANN["email"], "password": password})
        assert login.status_code == 200

    def test_register_whitespace_password_is_length_checked(self, api) -> None:
        resp = api.client.post(REGISTER, json={**ANN, "password": "   ", "confirmPassword": "   "})
        assert resp.status_code == 400
        assert resp.json() == {"message": "Password must be at least 6 characters"}


class TestLogin:
    def test_login_sets_no_store(self, api) -> None:
        api.create_user("carol@example.com", password="hunter22")
        resp = api.client.post(LOGIN, json={"email": "Carol@Example.com", "password": "hunter22"})
        assert resp.status_code == 200
        assert resp.headers["cache-control"] == "no-store"

    def test_wrong_password_and_unknown_email_look_the_same(self, api) -> None:
        api.create_user("carol@example.com", password="hunter22")
        wrong_pw = api.client.post(LOGIN, json={"email": "carol@example.com", "password": "nope-nope"})
        unknown = api.client.post(LOGIN, json={"email": "nobody@example.com", "password": "nope-nope"})
        assert wrong_pw.status_code == unknown.status_code == 401
        assert wrong_pw.json() == unknown.json() == {"message": "Invalid credentials"}

    def test_login_requires_both_fields(self, api) -> None:
        resp = api.client.post(LOGIN, json={"email": "carol@example.com"})
        assert resp.status_code == 400
        assert resp.json()["message"] == "Email and password are required"


class TestMe:
    def test_me_requires_token(self, api) -> None:
        resp = api.client.get(ME)
        assert resp.status_code == 401
        assert resp.json() == {"message": "No token provided"}
        assert resp.headers["www-authenticate"] == "Bearer"

    def test_me_returns_current_user(self, api, alice) -> None:
        uid, headers = alice
        resp = api.client.get(ME, headers=headers)
        assert resp.status_code == 200
        user = resp.json()["user"]
        assert user["id"] == uid
        assert user["email"] == "alice@example.com"
        assert user["role"] == "user"

    def test_me_after_account_deleted(self, api, alice, admin_headers) -> None:
        uid, headers = alice
        assert api.client.delete(f"/api/v1/auth/users/{uid}", headers=admin_headers).status_code == 200
        resp = api.client.get(ME, headers=headers)
        assert resp.status_code == 404
        assert resp.json()["message"] == "User not found"


class TestRateLimits:
    def test_login_limit_returns_429_with_retry_after(self, limited_api) -> None:
        bad = {"email": "nobody@example.com", "password": "wrong-pass"}
        statuses = [limited_api.client.post(LOGIN, json=bad).status_code for _ in range(10)]
        assert statuses == [401] * 10

        resp = limited_api.client.post(LOGIN, json=bad)
        assert resp.status_code == 429
        assert resp.json() == {"message": "Too many requests, please try again later"}
        assert resp.headers["retry-after"] == "60"

    def test_register_limit(self, limited_api) -> None:
        statuses = [limited_api.client.post(REGISTER, json={}).status_code for _ in range(21)]
        assert statuses[:20] == [400] * 20
        assert statuses[20] == 429

    def test_disabled_app_is_not_limited(self, api) -> None:
        bad = {"email": "nobody@example.com", "password": "wrong-pass"}
        statuses = {api.client.post(LOGIN, json=bad).status_code for _ in range(12)}
        assert statuses == {401}

    def test_apps_do_not_share_the_switch(self, api, limited_api) -> None:
        # Building the limited app must not switch limits on for the other one.
        bad = {"email": "nobody@example.com", "password": "wrong-pass"}
        statuses = {api.client.post(LOGIN, json=bad).status_code for _ in range(12)}
        assert statuses == {401}
