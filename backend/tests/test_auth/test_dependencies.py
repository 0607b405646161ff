"""Tests for auth dependencies: token checks and permission gates."""

import uuid
from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import require_permission
from app.auth.jwt import create_access_token, create_token_pair
from app.auth.passwords import hash_password
from app.auth.permissions import resolve_permissions
from app.models.user import User

pytestmark = pytest.mark.asyncio


class TestGetCurrentUser:
    """Test get_current_user dependency via the /me endpoint."""

    async def test_valid_token(self, client: AsyncClient, auth_headers: dict, admin_user: User):
        response = await client.get("/api/v1/auth/me", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["username"] == admin_user.username

    async def test_missing_token_rejected(self, client: AsyncClient):
        response = await client.get("/api/v1/auth/me")
        assert response.status_code in (401, 403)

    async def test_expired_token_rejected(self, client: AsyncClient, admin_user: User):
        token = create_access_token({"sub": str(admin_user.id)}, expires_delta=timedelta(seconds=-1))
        headers = {"Authorization": f"Bearer {token}"}
        response = await client.get("/api/v1/auth/me", headers=headers)
        assert response.status_code == 401

    async def test_invalid_token_format(self, client: AsyncClient):
        headers = {"Authorization": "Bearer not.a.valid.jwt"}
        response = await client.get("/api/v1/auth/me", headers=headers)
        assert response.status_code == 401

    async def test_refresh_token_type_rejected(self, client: AsyncClient, admin_user: User):
        tokens = create_token_pair(str(admin_user.id))
        headers = {"Authorization": f"Bearer {tokens['refresh_token']}"}
        response = await client.get("/api/v1/auth/me", headers=headers)
        assert response.status_code == 401

    async def test_non_uuid_subject_rejected(self, client: AsyncClient):
        token = create_access_token({"sub": "not-a-uuid"})
        response = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    async def test_nonexistent_user_id_rejected(self, client: AsyncClient):
        token = create_access_token({"sub": str(uuid.uuid4())})
        headers = {"Authorization": f"Bearer {token}"}
        response = await client.get("/api/v1/auth/me", headers=headers)
        assert response.status_code == 401

    async def test_inactive_user_rejected(self, client: AsyncClient, db_session: AsyncSession):
        user = User(
            username=f"inactive-{uuid.uuid4().hex[:8]}",
            hashed_password=hash_password("testpass"),
            name="Inactive Desk",
            role="reception",
            permissions=resolve_permissions("reception"),
            is_active=False,
        )
        db_session.add(user)
        await db_session.flush()

        token = create_access_token({"sub": str(user.id)})
        response = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401


class TestRequirePermission:
    """Permission toggles gate the API per screen."""

    async def test_unknown_permission_is_a_programming_error(self):
        with pytest.raises(ValueError):
            require_permission("can_do_anything")

    async def test_reception_denied_reports(self, client: AsyncClient, reception_headers: dict):
        response = await client.get("/api/v1/reports/finance", headers=reception_headers)
        assert response.status_code == 403
        assert response.json()["detail"]["permission"] == "can_view_reports"

    async def test_reception_allowed_dashboard(self, client: AsyncClient, reception_headers: dict):
        response = await client.get("/api/v1/reports/dashboard", headers=reception_headers)
        assert response.status_code == 200

    async def test_override_grants_access(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        reception_user: User,
        reception_headers: dict,
    ):
        reception_user.permissions = resolve_permissions("reception", {"can_view_reports": True})
        db_session.add(reception_user)
        await db_session.flush()

        response = await client.get("/api/v1/reports/finance", headers=reception_headers)
        assert response.status_code == 200

    async def test_admin_passes_every_gate(self, client: AsyncClient, auth_headers: dict):
        response = await client.get("/api/v1/users", headers=auth_headers)
        assert response.status_code == 200
