"""Tests for account deletion."""

from __future__ import annotations

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from mindtoss.gateway import hash_password
from mindtoss_api.db.models import AuthSession, User, UserState
from tests.conftest import bearer, register


class TestDeleteAccount:
    @pytest.mark.asyncio
    async def test_removes_user_sessions_and_state(self, api: AsyncClient, app):
        data = await register(api)
        token = data["sessionToken"]
        # A second session on another device.
        await api.post(
            "/api/auth/sign-in",
            json={"email": "ann@example.com", "passwordHash": hash_password("hunter2")},
        )
        await api.post(
            "/api/state",
            json={
                "emailAccountsJson": "[]",
                "historyJson": "[]",
                "userProfileJson": "{}",
                "categoriesJson": "[]",
                "darkMode": False,
            },
            headers=bearer(token),
        )

        resp = await api.post("/api/account/delete", headers=bearer(token))
        assert resp.status_code == 200
        assert resp.json() == {"success": True}

        async with app.state.db.session() as db:
            for model in (User, AuthSession, UserState):
                count = (await db.execute(select(func.count()).select_from(model))).scalar_one()
                assert count == 0

    @pytest.mark.asyncio
    async def test_other_users_are_untouched(self, api: AsyncClient, app):
        ann = await register(api, email="ann@example.com")
        bob = await register(api, email="bob@example.com")

        await api.post("/api/account/delete", headers=bearer(ann["sessionToken"]))

        resp = await api.get("/api/auth/session", headers=bearer(bob["sessionToken"]))
        assert resp.status_code == 200
        assert resp.json()["session"]["user"]["email"] == "bob@example.com"

    @pytest.mark.asyncio
    async def test_token_is_dead_afterwards(self, api: AsyncClient):
        data = await register(api)
        headers = bearer(data["sessionToken"])
        await api.post("/api/account/delete", headers=headers)

        assert (await api.get("/api/auth/session", headers=headers)).status_code == 401
        assert (await api.post("/api/account/delete", headers=headers)).status_code == 401

    @pytest.mark.asyncio
    async def test_email_can_register_again(self, api: AsyncClient):
        data = await register(api)
        await api.post("/api/account/delete", headers=bearer(data["sessionToken"]))
        again = await register(api)
        assert again["user"]["id"] != data["user"]["id"]

    @pytest.mark.asyncio
    async def test_requires_session(self, api: AsyncClient):
        resp = await api.post("/api/account/delete")
        assert resp.status_code == 401
