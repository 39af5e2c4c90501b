from fastapi import Depends, HTTPException, Header
from typing import Optional
import logging
import httpx

from src.config import get_settings, Settings
from src.profiles.schemas import Identity

logger = logging.getLogger(__name__)

_http_client: Optional[httpx.AsyncClient] = None


def get_http_client() -> httpx.AsyncClient:
    """Shared client for Supabase Auth calls, created on first use."""
    global _http_client
    if _http_client is None or _http_client.is_closed:
        _http_client = httpx.AsyncClient(timeout=5.0)
    return _http_client


async def close_http_client():
    global _http_client
    if _http_client is not None:
        await _http_client.aclose()
        _http_client = None


async def get_current_user(
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> Optional[dict]:
    """Verify the Supabase access token from the Authorization header.
    Returns the auth user payload, or None when the caller is anonymous."""
    if not authorization or not authorization.startswith("Bearer "):
        return None

    token = authorization.split(" ", 1)[1].strip()
    if not token or not settings.supabase_url:
        return None

    try:
        resp = await get_http_client().get(
            f"{settings.supabase_url.rstrip('/')}/auth/v1/user",
            headers={
                "Authorization": f"Bearer {token}",
                "apikey": settings.supabase_service_key,
            },
        )
    except httpx.ConnectError:
        logger.error("Cannot connect to Supabase Auth. Project may be paused or URL is wrong")
        raise HTTPException(
            status_code=503,
            detail="Authentication service is temporarily unavailable. Please try again later."
        )
    except httpx.TimeoutException:
        logger.error("Supabase auth request timed out")
        raise HTTPException(
            status_code=503,
            detail="Authentication service timed out. Please try again."
        )
    except httpx.HTTPError as e:
        logger.error(f"Unexpected auth transport error: {e}")
        return None

    if resp.status_code == 200:
        return resp.json()
    if resp.status_code in (401, 403):
        return None  # expired or revoked token
    logger.warning(f"Supabase auth returned {resp.status_code}: {resp.text[:200]}")
    return None


async def require_auth(
    user: Optional[dict] = Depends(get_current_user),
) -> dict:
    """Require an authenticated user. Raises 401 otherwise."""
    if user is None or not user.get("id"):
        raise HTTPException(status_code=401, detail="Authentication required")
    return user


async def get_identity(user: dict = Depends(require_auth)) -> Identity:
    return Identity.from_auth_user(user)
