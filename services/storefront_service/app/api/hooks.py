"""Callbacks invoked by the auth provider."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response, status

from ..dependencies import get_provisioning_service
from ..schemas import IdentityCreatedHook, ProfileResponse
from ..services import ProfileService
from .serialization import serialize_profile

router = APIRouter(prefix="/hooks", tags=["hooks"])


@router.post("/identity-created", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
async def identity_created(
    payload: IdentityCreatedHook,
    request: Request,
    response: Response,
    service: ProfileService = Depends(get_provisioning_service),
) -> ProfileResponse:
    profile, created = await service.provision(
        payload.id,
        payload.email,
        payload.user_metadata,
        default_prefix=request.app.state.settings.default_username_prefix,
    )
    if not created:
        response.status_code = status.HTTP_200_OK
    return ProfileResponse.model_validate(serialize_profile(profile))
