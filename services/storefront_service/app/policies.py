"""Row-level authorization rules for every storefront table.

Each table carries up to four rules, mirroring row-level security policies:

* ``select``, ``update`` and ``delete`` build a SQL predicate that is ANDed
  onto the statement, so rows the caller may not see are silently excluded.
* ``insert`` builds a predicate over the candidate row values that must hold
  before the row is written; a failing check is an authorization error.

A missing rule denies the operation outright. Rules receive the caller's
identity, which is ``None`` for anonymous callers.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from sqlalchemy import ColumnElement, exists, false, select, true

from .models import ITEM_ACTIVE, Base, Cart, CartItem, Item, Order, Profile

RowRule = Callable[[uuid.UUID | None], ColumnElement[bool]]
CheckRule = Callable[[uuid.UUID | None, Mapping[str, Any]], ColumnElement[bool]]


@dataclass(frozen=True)
class TablePolicy:
    model: type[Base]
    select: RowRule | None = None
    insert: CheckRule | None = None
    update: RowRule | None = None
    delete: RowRule | None = None


def _owned_by(column, identity: uuid.UUID | None) -> ColumnElement[bool]:
    if identity is None:
        return false()
    return column == identity


def _claims_owner(identity: uuid.UUID | None, owner: Any) -> ColumnElement[bool]:
    if identity is None or owner is None:
        return false()
    return true() if _as_uuid(owner) == identity else false()


def _cart_owned(cart_id, identity: uuid.UUID | None) -> ColumnElement[bool]:
    if identity is None:
        return false()
    return exists().where(Cart.id == cart_id, Cart.user_id == identity)


def _as_uuid(value: Any) -> uuid.UUID | None:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def _cart_item_check(identity: uuid.UUID | None, values: Mapping[str, Any]) -> ColumnElement[bool]:
    cart_id = _as_uuid(values.get("cart_id"))
    if cart_id is None:
        return false()
    return _cart_owned(cart_id, identity)


POLICIES: dict[str, TablePolicy] = {
    "profiles": TablePolicy(
        model=Profile,
        select=lambda identity: true(),
        update=lambda identity: _owned_by(Profile.id, identity),
    ),
    "items": TablePolicy(
        model=Item,
        select=lambda identity: Item.status == ITEM_ACTIVE,
    ),
    "carts": TablePolicy(
        model=Cart,
        select=lambda identity: _owned_by(Cart.user_id, identity),
        insert=lambda identity, values: _claims_owner(identity, values.get("user_id")),
        update=lambda identity: _owned_by(Cart.user_id, identity),
    ),
    "cart_items": TablePolicy(
        model=CartItem,
        select=lambda identity: _cart_owned(CartItem.cart_id, identity),
        insert=_cart_item_check,
        delete=lambda identity: _cart_owned(CartItem.cart_id, identity),
    ),
    "orders": TablePolicy(
        model=Order,
        select=lambda identity: _owned_by(Order.user_id, identity),
        insert=lambda identity, values: _claims_owner(identity, values.get("user_id")),
    ),
}


def policy_for(table: str) -> TablePolicy:
    try:
        return POLICIES[table]
    except KeyError:
        raise KeyError(f"Unknown table: {table}") from None


def insert_check_statement(policy: TablePolicy, identity: uuid.UUID | None, values: Mapping[str, Any]):
    """Return a ``SELECT <predicate>`` statement for an insert, or ``None`` when inserts are denied."""

    if policy.insert is None:
        return None
    return select(policy.insert(identity, values))
