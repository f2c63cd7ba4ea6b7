"""Error types raised by the storefront and their HTTP rendering."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class PersistenceError(RuntimeError):
    """A persistence call failed: constraint violation, driver error or policy denial."""

    def __init__(self, message: str, *, table: str, operation: str) -> None:
        super().__init__(message)
        self.table = table
        self.operation = operation


class AuthorizationError(PersistenceError):
    """A row-level authorization rule rejected the call."""


class StorefrontError(Exception):
    """User-facing failure of a storefront operation."""

    message = "Something went wrong"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        if message is not None:
            self.message = message


class ItemsUnavailableError(StorefrontError):
    message = "Failed to load items"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class CartLookupError(StorefrontError):
    message = "Failed to load cart"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class CartCreationError(StorefrontError):
    message = "Failed to create cart"
    status_code = status.HTTP_409_CONFLICT


class AddToCartError(StorefrontError):
    message = "Failed to add item to cart"
    status_code = status.HTTP_409_CONFLICT


class OrderHistoryError(StorefrontError):
    message = "Failed to load order history"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class CartEmptyError(StorefrontError):
    message = "Cart is empty"
    status_code = status.HTTP_400_BAD_REQUEST


class OrderCreationError(StorefrontError):
    message = "Failed to create order"
    status_code = status.HTTP_409_CONFLICT


class CheckoutIncompleteError(StorefrontError):
    message = "Failed to complete checkout"
    status_code = status.HTTP_409_CONFLICT


class ProfileNotFoundError(StorefrontError):
    message = "Profile not found"
    status_code = status.HTTP_404_NOT_FOUND


class ProfileLookupError(StorefrontError):
    message = "Failed to load profile"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class ProfileUpdateError(StorefrontError):
    message = "Failed to update profile"
    status_code = status.HTTP_409_CONFLICT


class UsernameTakenError(StorefrontError):
    message = "Username already taken"
    status_code = status.HTTP_409_CONFLICT


class ProfileProvisioningError(StorefrontError):
    message = "Failed to create profile"
    status_code = status.HTTP_409_CONFLICT


async def _handle_storefront_error(request: Request, exc: StorefrontError) -> JSONResponse:
    logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": exc.message,
            "notification": {"level": "error", "message": exc.message},
        },
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StorefrontError, _handle_storefront_error)  # type: ignore[arg-type]
