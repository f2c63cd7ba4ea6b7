"""HTTP routes for browsing the catalogue."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ..dependencies import get_public_orchestrator
from ..schemas import ItemListResponse, ItemResponse
from ..services import CartOrchestrator
from .serialization import serialize_item

router = APIRouter(prefix="/items", tags=["items"])


@router.get("", response_model=ItemListResponse)
async def list_items(orchestrator: CartOrchestrator = Depends(get_public_orchestrator)) -> ItemListResponse:
    listing = await orchestrator.list_items()
    return ItemListResponse(
        items=[ItemResponse.model_validate(serialize_item(item)) for item in listing.items],
        notification=listing.notification,
    )
