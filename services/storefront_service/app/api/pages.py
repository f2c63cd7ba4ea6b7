"""Landing and shop screens."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from fastapi.responses import RedirectResponse

from ..auth import Identity, get_identity, get_optional_identity
from ..dependencies import get_orchestrator
from ..errors import ItemsUnavailableError
from ..schemas import ItemResponse, LandingResponse, Notification, ShopResponse
from ..services import CartOrchestrator, ItemListing
from .serialization import serialize_item

router = APIRouter(tags=["pages"])

LANDING = {
    "title": "ShopCart",
    "tagline": "Your favorite online shopping destination",
    "features": ["Wide Selection", "Easy Shopping", "Fast Checkout"],
    "signInUrl": "/auth",
}


@router.get("/", response_model=LandingResponse, responses={307: {"description": "Signed-in callers go to the shop"}})
async def landing(identity: Identity | None = Depends(get_optional_identity)):
    if identity is not None:
        return RedirectResponse(url="/shop", status_code=status.HTTP_307_TEMPORARY_REDIRECT)
    return LandingResponse.model_validate(LANDING)


@router.get("/shop", response_model=ShopResponse)
async def shop(
    identity: Identity = Depends(get_identity),
    orchestrator: CartOrchestrator = Depends(get_orchestrator),
) -> ShopResponse:
    session = await orchestrator.resolve_cart(identity.user_id)
    try:
        listing = await orchestrator.list_items()
    except ItemsUnavailableError as exc:
        # the cart stays usable when the catalogue read fails
        listing = ItemListing(items=[], notification=Notification(level="error", message=exc.message))
    return ShopResponse(
        items=[ItemResponse.model_validate(serialize_item(item)) for item in listing.items],
        cart_id=session.cart_id,
        notification=listing.notification,
    )
