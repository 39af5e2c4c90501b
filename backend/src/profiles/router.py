"""
Profile Router

  GET   /api/profile/me               bootstrap-or-fetch the caller's profile
  PATCH /api/profile/me               correct the display name
  POST  /api/profile/me/credits/use   spend find or verify credits

Every endpoint requires a Supabase access token.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from src.auth.dependencies import get_identity
from src.middleware import limiter
from src.profiles.bootstrap import ProfileBootstrapper
from src.profiles.dependencies import get_bootstrapper, get_profile_service
from src.profiles.errors import (
    BootstrapFailed,
    InsufficientCredits,
    InvalidInput,
    NotFound,
    ProfileError,
    StoreError,
)
from src.profiles.schemas import (
    Identity,
    NameUpdate,
    ProfileUpdate,
    UseCreditsRequest,
    UserProfile,
)
from src.profiles.service import ProfileService

logger = logging.getLogger(__name__)
router = APIRouter()


def _to_http(e: ProfileError) -> HTTPException:
    if isinstance(e, InvalidInput):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, NotFound):
        return HTTPException(status_code=404, detail="Profile not found")
    if isinstance(e, InsufficientCredits):
        return HTTPException(status_code=402, detail={
            "message": str(e),
            "kind": e.kind,
            "available": e.available,
            "requested": e.requested,
        })
    if isinstance(e, (BootstrapFailed, StoreError)):
        return HTTPException(
            status_code=503,
            detail="Profile storage is temporarily unavailable. Please try again later.",
        )
    return HTTPException(status_code=500, detail="Profile operation failed")


@router.get("/me", response_model=UserProfile)
@limiter.limit("30/minute")
async def get_my_profile(
    request: Request,
    identity: Identity = Depends(get_identity),
    bootstrapper: ProfileBootstrapper = Depends(get_bootstrapper),
):
    """Return the caller's profile, creating it with free-plan defaults on first access."""
    try:
        return await bootstrapper.ensure_profile_with_retry(identity)
    except ProfileError as e:
        if isinstance(e, BootstrapFailed):
            logger.error(f"Profile bootstrap failed for {identity.id}: {e.last_error}")
        raise _to_http(e)


@router.patch("/me", response_model=UserProfile)
@limiter.limit("10/minute")
async def update_my_profile(
    request: Request,
    body: NameUpdate,
    identity: Identity = Depends(get_identity),
    service: ProfileService = Depends(get_profile_service),
):
    try:
        return await service.update_profile(identity.id, ProfileUpdate(full_name=body.full_name))
    except ProfileError as e:
        raise _to_http(e)


@router.post("/me/credits/use", response_model=UserProfile)
@limiter.limit("60/minute")
async def use_my_credits(
    request: Request,
    body: UseCreditsRequest,
    identity: Identity = Depends(get_identity),
    service: ProfileService = Depends(get_profile_service),
):
    try:
        return await service.use_credits(identity.id, body.kind, body.quantity)
    except ProfileError as e:
        raise _to_http(e)
