"""Pydantic schemas for the storefront service."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Notification(BaseModel):
    level: Literal["success", "info", "error"]
    message: str


class ItemResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: str | None = None
    price: Decimal
    image_url: str | None = Field(default=None, alias="imageUrl")
    status: str
    created_at: datetime = Field(alias="createdAt")

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class ItemListResponse(BaseModel):
    items: list[ItemResponse]
    notification: Notification | None = None


class CartItemResponse(BaseModel):
    id: uuid.UUID
    item_id: uuid.UUID = Field(alias="itemId")
    name: str
    price: Decimal
    quantity: int
    created_at: datetime = Field(alias="createdAt")

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class CartResponse(BaseModel):
    id: uuid.UUID
    status: str
    items: list[CartItemResponse]
    total: Decimal

    model_config = ConfigDict(populate_by_name=True)


class CartViewResponse(BaseModel):
    cart: CartResponse
    notification: Notification


class AddToCartRequest(BaseModel):
    item_id: uuid.UUID = Field(alias="itemId")

    model_config = ConfigDict(populate_by_name=True)


class AddToCartResponse(BaseModel):
    added: bool
    cart_id: uuid.UUID = Field(alias="cartId")
    notification: Notification

    model_config = ConfigDict(populate_by_name=True)


class OrderResponse(BaseModel):
    id: uuid.UUID
    cart_id: uuid.UUID = Field(alias="cartId")
    total: Decimal
    status: str
    created_at: datetime = Field(alias="createdAt")

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class OrderHistoryResponse(BaseModel):
    orders: list[OrderResponse]
    notification: Notification


class CheckoutResponse(BaseModel):
    order: OrderResponse
    cart_id: uuid.UUID = Field(alias="cartId")
    notification: Notification

    model_config = ConfigDict(populate_by_name=True)


class ShopResponse(BaseModel):
    items: list[ItemResponse]
    cart_id: uuid.UUID = Field(alias="cartId")
    notification: Notification | None = None

    model_config = ConfigDict(populate_by_name=True)


class LandingResponse(BaseModel):
    title: str
    tagline: str
    features: list[str]
    sign_in_url: str = Field(alias="signInUrl")

    model_config = ConfigDict(populate_by_name=True)


class ProfileResponse(BaseModel):
    id: uuid.UUID
    username: str
    created_at: datetime = Field(alias="createdAt")

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


class ProfileUpdate(BaseModel):
    username: str = Field(min_length=1)

    @field_validator("username")
    @classmethod
    def _strip(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            msg = "value must be non-empty"
            raise ValueError(msg)
        return cleaned


class IdentityCreatedHook(BaseModel):
    id: uuid.UUID
    email: str | None = None
    user_metadata: dict[str, Any] = Field(default_factory=dict, alias="userMetadata")

    model_config = ConfigDict(populate_by_name=True)
