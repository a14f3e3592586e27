"""
tests/test_admin_routes.py -- Admin-only user management endpoints.

Every route here sits behind require_admin; the gate itself is covered in
test_access_gate.py, so these tests focus on behavior once the caller is in.
"""

import pytest

from auth.models import Role

USERS = "/api/v1/auth/users"
STATS = "/api/v1/auth/stats"


class TestListUsers:
    def test_lists_every_account_without_hashes(self, api, admin_headers, alice, bob) -> None:
        resp = api.client.get(USERS, headers=admin_headers)
        assert resp.status_code == 200
        users = resp.json()["users"]
        assert {u["email"] for u in users} == {"admin@example.com", "alice@example.com", "bob@example.com"}
        for user in users:
            assert set(user) == {"id", "name", "email", "role", "createdAt"}

    def test_newest_first(self, api, admin_headers, alice, bob) -> None:
        ids = [u["id"] for u in api.client.get(USERS, headers=admin_headers).json()["users"]]
        assert ids.index(bob[0]) < ids.index(alice[0])


class TestChangeRole:
    def test_promote_user(self, api, admin_headers, alice) -> None:
        uid, _ = alice
        resp = api.client.put(f"{USERS}/{uid}/role", json={"role": "admin"}, headers=admin_headers)
        assert resp.status_code == 200
        body = resp.json()
        assert body["message"] == "User role updated successfully"
        assert body["user"]["id"] == uid
        assert body["user"]["role"] == "admin"

    def test_promoted_user_gets_admin_access_on_next_login(self, api, admin_headers, alice) -> None:
        uid, _ = alice
        api.client.put(f"{USERS}/{uid}/role", json={"role": "admin"}, headers=admin_headers)
        login = api.client.post(
            "/api/v1/auth/login", json={"email": "alice@example.com", "password": "secret1"}
        ).json()
        assert login["user"]["role"] == "admin"
        resp = api.client.get(USERS, headers={"Authorization": f"Bearer {login['token']}"})
        assert resp.status_code == 200

    def test_existing_token_keeps_its_role(self, api, admin_headers, alice) -> None:
        uid, headers = alice
        api.client.put(f"{USERS}/{uid}/role", json={"role": "admin"}, headers=admin_headers)
        assert api.client.get(USERS, headers=headers).status_code == 403

    @pytest.mark.parametrize("body", [{"role": "superuser"}, {"role": ""}, {}])
    def test_invalid_role_is_400(self, api, admin_headers, alice, body) -> None:
        uid, _ = alice
        resp = api.client.put(f"{USERS}/{uid}/role", json=body, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json() == {"message": "Invalid role"}

    def test_unknown_user_is_404(self, api, admin_headers) -> None:
        resp = api.client.put(f"{USERS}/999/role", json={"role": "user"}, headers=admin_headers)
        assert resp.status_code == 404
        assert resp.json() == {"message": "User not found"}

    def test_regular_user_is_forbidden(self, api, alice, bob) -> None:
        _, headers = alice
        resp = api.client.put(f"{USERS}/{bob[0]}/role", json={"role": "admin"}, headers=headers)
        assert resp.status_code == 403
        assert api.app.state.user_store.get_by_id(bob[0]).role is Role.user


class TestDeleteUser:
    def test_delete_removes_account(self, api, admin_headers, alice) -> None:
        uid, headers = alice
        resp = api.client.delete(f"{USERS}/{uid}", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json() == {"message": "User deleted successfully"}
        assert api.app.state.user_store.get_by_id(uid) is None
        assert api.client.get("/api/v1/auth/me", headers=headers).status_code == 404

    def test_products_survive_creator_deletion(self, api, admin_headers, alice) -> None:
        uid, headers = alice
        product = api.create_product(headers)
        api.client.delete(f"{USERS}/{uid}", headers=admin_headers)
        assert api.client.get(f"/api/v1/products/{product['id']}").status_code == 200

    def test_unknown_user_is_404(self, api, admin_headers) -> None:
        resp = api.client.delete(f"{USERS}/999", headers=admin_headers)
        assert resp.status_code == 404
        assert resp.json() == {"message": "User not found"}

    def test_regular_user_is_forbidden(self, api, alice, bob) -> None:
        _, headers = alice
        assert api.client.delete(f"{USERS}/{bob[0]}", headers=headers).status_code == 403


class TestStats:
    def test_counts_by_role(self, api, admin_headers, alice, bob) -> None:
        resp = api.client.get(STATS, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json() == {
            "totalUsers": 3,
            "adminUsers": 1,
            "regularUsers": 2,
            "stats": {"admin": 1, "user": 2},
        }

    def test_requires_admin(self, api, alice) -> None:
        _, headers = alice
        assert api.client.get(STATS, headers=headers).status_code == 403
