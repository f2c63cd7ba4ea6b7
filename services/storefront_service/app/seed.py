"""Sample catalogue used for local development and demos."""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from services.common import lifespan_session

from .models import Item

logger = logging.getLogger(__name__)

_IMAGE_QUERY = "?w=400&h=400&fit=crop"

SAMPLE_ITEMS: tuple[dict[str, object], ...] = (
    {
        "name": "Classic Sneakers",
        "description": "Comfortable everyday sneakers",
        "price_cents": 7999,
        "image_url": "https://images.unsplash.com/photo-1549298916-b41d501d3772" + _IMAGE_QUERY,
    },
    {
        "name": "Wireless Headphones",
        "description": "Premium sound quality",
        "price_cents": 12999,
        "image_url": "https://images.unsplash.com/photo-1505740420928-5e560c06d30e" + _IMAGE_QUERY,
    },
    {
        "name": "Smart Watch",
        "description": "Track your fitness goals",
        "price_cents": 19999,
        "image_url": "https://images.unsplash.com/photo-1523275335684-37898b6baf30" + _IMAGE_QUERY,
    },
    {
        "name": "Laptop Backpack",
        "description": "Durable and stylish",
        "price_cents": 4999,
        "image_url": "https://images.unsplash.com/photo-1553062407-98eeb64c6a62" + _IMAGE_QUERY,
    },
    {
        "name": "Coffee Maker",
        "description": "Brew the perfect cup",
        "price_cents": 8999,
        "image_url": "https://images.unsplash.com/photo-1517668808822-9ebb02f2a0e6" + _IMAGE_QUERY,
    },
    {
        "name": "Yoga Mat",
        "description": "Non-slip premium quality",
        "price_cents": 3499,
        "image_url": "https://images.unsplash.com/photo-1601925260368-ae2f83cf8b7f" + _IMAGE_QUERY,
    },
)


async def seed_items(session: AsyncSession) -> int:
    """Insert the sample catalogue when the items table is empty; return rows added."""

    existing = await session.scalar(select(func.count(Item.id)))
    if existing:
        return 0
    session.add_all(Item(**entry) for entry in SAMPLE_ITEMS)
    await session.flush()
    logger.info("Seeded %d sample items", len(SAMPLE_ITEMS))
    return len(SAMPLE_ITEMS)


async def seed_sample_items(session_factory: async_sessionmaker[AsyncSession]) -> int:
    async with lifespan_session(session_factory) as session:
        return await seed_items(session)
