"""HTTP routes for order history."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ..auth import Identity, get_identity
from ..dependencies import get_orchestrator
from ..schemas import OrderHistoryResponse, OrderResponse
from ..services import CartOrchestrator
from .serialization import serialize_order

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("", response_model=OrderHistoryResponse)
async def order_history(
    identity: Identity = Depends(get_identity),
    orchestrator: CartOrchestrator = Depends(get_orchestrator),
) -> OrderHistoryResponse:
    history = await orchestrator.order_history(identity.user_id)
    return OrderHistoryResponse(
        orders=[OrderResponse.model_validate(serialize_order(order)) for order in history.orders],
        notification=history.notification,
    )
