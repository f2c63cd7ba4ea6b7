"""Prometheus metrics for the storefront service."""

from __future__ import annotations

from typing import Final

from prometheus_client import Counter, Histogram


STOREFRONT_CARTS_CREATED_TOTAL: Final = Counter(
    "storefront_carts_created_total",
    "Number of active carts provisioned.",
    labelnames=("reason",),
)

STOREFRONT_CART_ADDS_TOTAL: Final = Counter(
    "storefront_cart_adds_total",
    "Add-to-cart attempts by outcome.",
    labelnames=("outcome",),
)

STOREFRONT_CHECKOUTS_TOTAL: Final = Counter(
    "storefront_checkouts_total",
    "Checkout attempts by outcome.",
    labelnames=("outcome",),
)

STOREFRONT_ORDER_TOTAL_AMOUNT: Final = Histogram(
    "storefront_order_total_amount",
    "Order totals in currency units.",
    buckets=(5, 10, 25, 50, 100, 250, 500, 1000, 2500),
)

STOREFRONT_PROFILES_PROVISIONED_TOTAL: Final = Counter(
    "storefront_profiles_provisioned_total",
    "Profiles created by the signup hook.",
    labelnames=("username_source",),
)
