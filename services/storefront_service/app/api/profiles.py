"""HTTP routes for user profiles."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends

from ..auth import Identity, get_identity
from ..dependencies import get_profile_service, get_public_profile_service
from ..schemas import ProfileResponse, ProfileUpdate
from ..services import ProfileService
from .serialization import serialize_profile

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.patch("/me", response_model=ProfileResponse)
async def update_own_profile(
    payload: ProfileUpdate,
    identity: Identity = Depends(get_identity),
    service: ProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    profile = await service.rename(identity.user_id, payload.username)
    return ProfileResponse.model_validate(serialize_profile(profile))


@router.get("/{profile_id}", response_model=ProfileResponse)
async def get_profile(
    profile_id: uuid.UUID,
    service: ProfileService = Depends(get_public_profile_service),
) -> ProfileResponse:
    profile = await service.get_profile(profile_id)
    return ProfileResponse.model_validate(serialize_profile(profile))
