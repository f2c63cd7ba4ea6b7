"""Service layer orchestrating the cart lifecycle and profile provisioning."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from sqlalchemy.exc import IntegrityError

from .client import StoreClient
from .errors import (
    AddToCartError,
    CartCreationError,
    CartEmptyError,
    CartLookupError,
    CheckoutIncompleteError,
    ItemsUnavailableError,
    OrderCreationError,
    OrderHistoryError,
    PersistenceError,
    ProfileLookupError,
    ProfileNotFoundError,
    ProfileProvisioningError,
    ProfileUpdateError,
    UsernameTakenError,
)
from .metrics import (
    STOREFRONT_CART_ADDS_TOTAL,
    STOREFRONT_CARTS_CREATED_TOTAL,
    STOREFRONT_CHECKOUTS_TOTAL,
    STOREFRONT_ORDER_TOTAL_AMOUNT,
    STOREFRONT_PROFILES_PROVISIONED_TOTAL,
)
from .models import CART_ACTIVE, CART_CHECKED_OUT, ITEM_ACTIVE, ORDER_COMPLETED, CartItem, Item, Order, Profile
from .schemas import Notification

logger = logging.getLogger(__name__)

_CENT = Decimal("0.01")


def cents_to_amount(cents: int) -> Decimal:
    return (Decimal(cents) / Decimal("100")).quantize(_CENT)


def cart_total_cents(cart_items: Iterable[CartItem]) -> int:
    """Sum price x quantity over the cart in integer cents."""

    return sum(entry.item.price_cents * entry.quantity for entry in cart_items)


@dataclass(frozen=True)
class CartSession:
    """The caller's current active cart, passed explicitly between operations."""

    user_id: uuid.UUID
    cart_id: uuid.UUID


@dataclass
class ItemListing:
    items: list[Item]
    notification: Notification | None


@dataclass
class AddItemOutcome:
    added: bool
    notification: Notification


@dataclass
class CartContents:
    cart_items: list[CartItem]
    total_cents: int
    notification: Notification


@dataclass
class OrderHistory:
    orders: list[Order]
    notification: Notification


@dataclass
class CheckoutResult:
    order: Order
    session: CartSession
    notification: Notification


class CartOrchestrator:
    """Sequences the persistence calls behind every shop action."""

    def __init__(self, client: StoreClient) -> None:
        self.client = client

    async def list_items(self) -> ItemListing:
        try:
            items = await self.client.select(
                "items", {"status": ITEM_ACTIVE}, order_by="created_at", descending=True
            )
        except PersistenceError as exc:
            raise ItemsUnavailableError() from exc
        if not items:
            return ItemListing(items=[], notification=Notification(level="info", message="No items available"))
        return ItemListing(items=items, notification=None)

    async def resolve_cart(self, user_id: uuid.UUID) -> CartSession:
        try:
            cart = await self.client.select_one("carts", {"user_id": user_id, "status": CART_ACTIVE})
        except PersistenceError as exc:
            raise CartLookupError() from exc
        if cart is not None:
            return CartSession(user_id=user_id, cart_id=cart.id)

        cart_id = await self._open_cart(user_id, error=CartCreationError)
        STOREFRONT_CARTS_CREATED_TOTAL.labels(reason="first_visit").inc()
        return CartSession(user_id=user_id, cart_id=cart_id)

    async def _open_cart(self, user_id: uuid.UUID, *, error: type[Exception]) -> uuid.UUID:
        try:
            cart = await self.client.insert("carts", {"user_id": user_id, "status": CART_ACTIVE})
        except PersistenceError as exc:
            logger.warning("Could not open a cart for %s: %s", user_id, exc)
            raise error() from exc
        logger.info("Opened cart %s", cart.id)
        return cart.id

    async def add_item(self, session: CartSession, item_id: uuid.UUID) -> AddItemOutcome:
        """Put ``item_id`` in the cart once; repeat adds are reported and ignored."""

        try:
            existing = await self.client.select_one(
                "cart_items", {"cart_id": session.cart_id, "item_id": item_id}
            )
            if existing is not None:
                STOREFRONT_CART_ADDS_TOTAL.labels(outcome="duplicate").inc()
                return AddItemOutcome(
                    added=False, notification=Notification(level="info", message="Item already in cart")
                )
            await self.client.insert(
                "cart_items", {"cart_id": session.cart_id, "item_id": item_id, "quantity": 1}
            )
        except PersistenceError as exc:
            STOREFRONT_CART_ADDS_TOTAL.labels(outcome="failed").inc()
            logger.warning("Add of item %s to cart %s failed: %s", item_id, session.cart_id, exc)
            raise AddToCartError() from exc

        STOREFRONT_CART_ADDS_TOTAL.labels(outcome="added").inc()
        return AddItemOutcome(added=True, notification=Notification(level="success", message="Added to cart!"))

    async def view_cart(self, session: CartSession) -> CartContents:
        try:
            cart_items = await self.client.select(
                "cart_items", {"cart_id": session.cart_id}, order_by="created_at", include=("item",)
            )
        except PersistenceError as exc:
            raise CartLookupError() from exc

        if not cart_items:
            notification = Notification(level="info", message="Your cart is empty")
        else:
            names = ", ".join(entry.item.name for entry in cart_items)
            notification = Notification(level="info", message=f"Cart Items: {names}")
        return CartContents(
            cart_items=cart_items,
            total_cents=cart_total_cents(cart_items),
            notification=notification,
        )

    async def order_history(self, user_id: uuid.UUID) -> OrderHistory:
        try:
            orders = await self.client.select(
                "orders", {"user_id": user_id}, order_by="created_at", descending=True
            )
        except PersistenceError as exc:
            raise OrderHistoryError() from exc

        if not orders:
            return OrderHistory(orders=[], notification=Notification(level="info", message="No orders yet"))
        lines = [f"Order #{str(order.id)[:8]} - ${cents_to_amount(order.total_cents)}" for order in orders]
        return OrderHistory(
            orders=orders,
            notification=Notification(level="info", message="Order History:\n" + "\n".join(lines)),
        )

    async def checkout(self, session: CartSession) -> CheckoutResult:
        """Turn the active cart into an order and open the next cart.

        Runs inside the caller's transaction: any failure after the order
        insert raises and the whole checkout rolls back.
        """

        try:
            cart_items = await self.client.select("cart_items", {"cart_id": session.cart_id}, include=("item",))
        except PersistenceError as exc:
            STOREFRONT_CHECKOUTS_TOTAL.labels(outcome="empty").inc()
            raise CartEmptyError() from exc
        if not cart_items:
            STOREFRONT_CHECKOUTS_TOTAL.labels(outcome="empty").inc()
            raise CartEmptyError()

        total_cents = cart_total_cents(cart_items)

        try:
            order = await self.client.insert(
                "orders",
                {
                    "user_id": session.user_id,
                    "cart_id": session.cart_id,
                    "total_cents": total_cents,
                    "status": ORDER_COMPLETED,
                },
            )
        except PersistenceError as exc:
            STOREFRONT_CHECKOUTS_TOTAL.labels(outcome="failed").inc()
            raise OrderCreationError() from exc

        try:
            closed = await self.client.update("carts", {"id": session.cart_id}, {"status": CART_CHECKED_OUT})
        except PersistenceError as exc:
            STOREFRONT_CHECKOUTS_TOTAL.labels(outcome="failed").inc()
            raise CheckoutIncompleteError() from exc
        if closed != 1:
            STOREFRONT_CHECKOUTS_TOTAL.labels(outcome="failed").inc()
            logger.warning("Cart %s was not closed (%d rows); abandoning order %s", session.cart_id, closed, order.id)
            raise CheckoutIncompleteError()

        next_cart_id = await self._open_cart(session.user_id, error=CheckoutIncompleteError)
        STOREFRONT_CARTS_CREATED_TOTAL.labels(reason="checkout").inc()
        STOREFRONT_CHECKOUTS_TOTAL.labels(outcome="completed").inc()
        STOREFRONT_ORDER_TOTAL_AMOUNT.observe(float(cents_to_amount(total_cents)))
        logger.info("Cart %s checked out as order %s (%d cents)", session.cart_id, order.id, total_cents)
        return CheckoutResult(
            order=order,
            session=CartSession(user_id=session.user_id, cart_id=next_cart_id),
            notification=Notification(level="success", message="Order successful!"),
        )


def derive_username(
    identity_id: uuid.UUID,
    email: str | None,
    metadata: Mapping[str, Any],
    *,
    default_prefix: str,
) -> tuple[str, str]:
    """Pick a username from signup metadata, then the email local part, then a default.

    Returns the username and where it came from.
    """

    candidate = metadata.get("username")
    if isinstance(candidate, str) and candidate.strip():
        return candidate.strip(), "metadata"
    if email and "@" in email:
        local_part = email.split("@", 1)[0].strip()
        if local_part:
            return local_part, "email"
    return f"{default_prefix}-{identity_id.hex[:8]}", "default"


class ProfileService:
    """Profile reads, owner updates and signup provisioning."""

    def __init__(self, client: StoreClient) -> None:
        self.client = client

    async def get_profile(self, profile_id: uuid.UUID) -> Profile:
        try:
            profile = await self.client.select_one("profiles", {"id": profile_id})
        except PersistenceError as exc:
            raise ProfileLookupError() from exc
        if profile is None:
            raise ProfileNotFoundError()
        return profile

    async def rename(self, profile_id: uuid.UUID, username: str) -> Profile:
        try:
            changed = await self.client.update("profiles", {"id": profile_id}, {"username": username})
        except PersistenceError as exc:
            if isinstance(exc.__cause__, IntegrityError):
                raise UsernameTakenError() from exc
            raise ProfileUpdateError() from exc
        if changed == 0:
            raise ProfileNotFoundError()
        return await self.get_profile(profile_id)

    async def provision(
        self,
        identity_id: uuid.UUID,
        email: str | None,
        metadata: Mapping[str, Any],
        *,
        default_prefix: str,
    ) -> tuple[Profile, bool]:
        """Create the profile for a new identity; returns ``(profile, created)``."""

        try:
            existing = await self.client.select_one("profiles", {"id": identity_id})
        except PersistenceError as exc:
            raise ProfileProvisioningError() from exc
        if existing is not None:
            return existing, False

        username, source = derive_username(identity_id, email, metadata, default_prefix=default_prefix)
        try:
            profile = await self.client.insert("profiles", {"id": identity_id, "username": username})
        except PersistenceError as exc:
            logger.warning("Profile provisioning for %s failed: %s", identity_id, exc)
            if isinstance(exc.__cause__, IntegrityError):
                raise UsernameTakenError() from exc
            raise ProfileProvisioningError() from exc
        STOREFRONT_PROFILES_PROVISIONED_TOTAL.labels(username_source=source).inc()
        logger.info("Provisioned profile %s as %r", identity_id, username)
        return profile, True
