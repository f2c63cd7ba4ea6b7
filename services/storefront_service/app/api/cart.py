"""HTTP routes for the caller's active cart and checkout."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ..auth import Identity, get_identity
from ..dependencies import get_orchestrator
from ..models import CART_ACTIVE
from ..schemas import (
    AddToCartRequest,
    AddToCartResponse,
    CartItemResponse,
    CartResponse,
    CartViewResponse,
    CheckoutResponse,
    OrderResponse,
)
from ..services import CartOrchestrator, cents_to_amount
from .serialization import serialize_cart_item, serialize_order

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("", response_model=CartViewResponse)
async def view_cart(
    identity: Identity = Depends(get_identity),
    orchestrator: CartOrchestrator = Depends(get_orchestrator),
) -> CartViewResponse:
    session = await orchestrator.resolve_cart(identity.user_id)
    contents = await orchestrator.view_cart(session)
    cart = CartResponse(
        id=session.cart_id,
        status=CART_ACTIVE,
        items=[CartItemResponse.model_validate(serialize_cart_item(entry)) for entry in contents.cart_items],
        total=cents_to_amount(contents.total_cents),
    )
    return CartViewResponse(cart=cart, notification=contents.notification)


@router.post("/items", response_model=AddToCartResponse)
async def add_to_cart(
    payload: AddToCartRequest,
    identity: Identity = Depends(get_identity),
    orchestrator: CartOrchestrator = Depends(get_orchestrator),
) -> AddToCartResponse:
    session = await orchestrator.resolve_cart(identity.user_id)
    outcome = await orchestrator.add_item(session, payload.item_id)
    return AddToCartResponse(added=outcome.added, cart_id=session.cart_id, notification=outcome.notification)


@router.post("/checkout", response_model=CheckoutResponse, status_code=status.HTTP_201_CREATED)
async def checkout(
    identity: Identity = Depends(get_identity),
    orchestrator: CartOrchestrator = Depends(get_orchestrator),
) -> CheckoutResponse:
    session = await orchestrator.resolve_cart(identity.user_id)
    result = await orchestrator.checkout(session)
    return CheckoutResponse(
        order=OrderResponse.model_validate(serialize_order(result.order)),
        cart_id=result.session.cart_id,
        notification=result.notification,
    )
