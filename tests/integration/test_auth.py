"""Integration tests for authentication and caller identity.

Validates:
  - /health is public (plain Django view, no DRF).
  - Protected DRF endpoints return 401 without or with a bad token.
  - A SimpleJWT access token authenticates against /api/v1/me.
  - The caller's role is read from their group membership.
"""

import pytest

from modules.core.identity import Role

pytestmark = pytest.mark.integration


class TestPublicEndpoints:
    def test_health_is_public(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestProtectedEndpoints:
    def test_no_token_returns_401(self, api_client):
        assert api_client.get("/api/v1/me").status_code == 401

    def test_invalid_token_returns_401(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION="Bearer invalid.token.here")
        assert api_client.get("/api/v1/me").status_code == 401

    def test_malformed_auth_header_returns_401(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION="Token some-token")
        assert api_client.get("/api/v1/me").status_code == 401

    def test_401_includes_www_authenticate_header(self, api_client):
        response = api_client.get("/api/v1/me")
        assert response.status_code == 401
        assert "Bearer" in response.get("WWW-Authenticate", "")


class TestTokenFlow:
    def test_obtained_token_authenticates(self, api_client, supplier_user):
        response = api_client.post(
            "/api/v1/auth/token/",
            {"username": "supplier", "password": "testpass123"},
            format="json",
        )
        assert response.status_code == 200
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.json()['access']}")

        me = api_client.get("/api/v1/me")
        assert me.status_code == 200
        assert me.json() == {
            "id": str(supplier_user.pk),
            "role": Role.SUPPLIER,
            "is_administrative": False,
        }

    def test_wrong_password(self, api_client, supplier_user):
        response = api_client.post(
            "/api/v1/auth/token/",
            {"username": "supplier", "password": "nope"},
            format="json",
        )
        assert response.status_code == 401


class TestWhoAmI:
    @pytest.mark.parametrize(
        "fixture,role,administrative",
        [
            ("customer_user", Role.CUSTOMER, False),
            ("manager_user", Role.MANAGER, True),
            ("admin_user", Role.ADMIN, True),
        ],
    )
    def test_role_from_group(self, request, client_for, fixture, role, administrative):
        user = request.getfixturevalue(fixture)
        data = client_for(user).get("/api/v1/me").json()
        assert data["role"] == role
        assert data["is_administrative"] is administrative

    def test_superuser_is_admin(self, client_for, django_user_model):
        root = django_user_model.objects.create_superuser("root", password="x")
        assert client_for(root).get("/api/v1/me").json()["role"] == Role.ADMIN

    def test_user_without_group_has_no_role(self, client_for, make_user):
        data = client_for(make_user("nobody")).get("/api/v1/me").json()
        assert data["role"] is None
