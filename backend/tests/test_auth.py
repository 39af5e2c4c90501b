"""
Tests for Supabase access-token verification
"""

from unittest.mock import AsyncMock, Mock, patch

import httpx
import pytest
from fastapi import HTTPException

from src.auth.dependencies import get_current_user, get_identity, require_auth
from src.config import Settings


@pytest.fixture
def settings():
    return Settings(supabase_url="https://proj.supabase.co/", supabase_service_key="service-key")


def _client_returning(resp=None, error=None):
    client = Mock()
    client.get = AsyncMock(return_value=resp, side_effect=error)
    return client


class TestGetCurrentUser:
    @pytest.mark.asyncio
    async def test_valid_token(self, settings):
        resp = Mock(status_code=200)
        resp.json.return_value = {"id": "u1", "email": "jo@x.com"}
        client = _client_returning(resp)

        with patch("src.auth.dependencies.get_http_client", return_value=client):
            user = await get_current_user("Bearer good-token", settings)

        assert user["id"] == "u1"
        url = client.get.call_args.args[0]
        headers = client.get.call_args.kwargs["headers"]
        assert url == "https://proj.supabase.co/auth/v1/user"
        assert headers["Authorization"] == "Bearer good-token"
        assert headers["apikey"] == "service-key"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("header", [None, "", "Basic abc", "Bearer "])
    async def test_missing_or_malformed_header_is_anonymous(self, settings, header):
        client = _client_returning()
        with patch("src.auth.dependencies.get_http_client", return_value=client):
            assert await get_current_user(header, settings) is None
        client.get.assert_not_called()

    @pytest.mark.asyncio
    async def test_expired_token_is_anonymous(self, settings):
        client = _client_returning(Mock(status_code=401))
        with patch("src.auth.dependencies.get_http_client", return_value=client):
            assert await get_current_user("Bearer old", settings) is None

    @pytest.mark.asyncio
    async def test_unreachable_auth_is_503(self, settings):
        client = _client_returning(error=httpx.ConnectError("refused"))

        with patch("src.auth.dependencies.get_http_client", return_value=client):
            with pytest.raises(HTTPException) as exc_info:
                await get_current_user("Bearer tok", settings)

        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_unconfigured_supabase_is_anonymous(self):
        assert await get_current_user("Bearer tok", Settings(supabase_url="")) is None


class TestRequireAuth:
    @pytest.mark.asyncio
    async def test_anonymous_rejected(self):
        with pytest.raises(HTTPException) as exc_info:
            await require_auth(None)
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_identity_from_auth_user(self):
        user = {"id": "u1", "email": "jo@x.com", "user_metadata": {"full_name": "Jo Smith"}}

        identity = await get_identity(await require_auth(user))

        assert identity.id == "u1"
        assert identity.email == "jo@x.com"
        assert identity.name_hint == "Jo Smith"
