"""Mapping of ORM rows onto response payloads."""

from __future__ import annotations

from ..models import CartItem, Item, Order, Profile
from ..services import cents_to_amount


def serialize_item(item: Item) -> dict[str, object]:
    return {
        "id": item.id,
        "name": item.name,
        "description": item.description,
        "price": cents_to_amount(item.price_cents),
        "imageUrl": item.image_url,
        "status": item.status,
        "createdAt": item.created_at,
    }


def serialize_cart_item(entry: CartItem) -> dict[str, object]:
    return {
        "id": entry.id,
        "itemId": entry.item_id,
        "name": entry.item.name,
        "price": cents_to_amount(entry.item.price_cents),
        "quantity": entry.quantity,
        "createdAt": entry.created_at,
    }


def serialize_order(order: Order) -> dict[str, object]:
    return {
        "id": order.id,
        "cartId": order.cart_id,
        "total": cents_to_amount(order.total_cents),
        "status": order.status,
        "createdAt": order.created_at,
    }


def serialize_profile(profile: Profile) -> dict[str, object]:
    return {
        "id": profile.id,
        "username": profile.username,
        "createdAt": profile.created_at,
    }
