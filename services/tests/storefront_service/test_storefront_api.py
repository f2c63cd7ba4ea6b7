import asyncio
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy import select

from services.common import ServiceSettings, create_schema
from services.storefront_service.app.client import StoreClient
from services.storefront_service.app.dependencies import get_client, get_orchestrator
from services.storefront_service.app.errors import PersistenceError
from services.storefront_service.app.main import create_app
from services.storefront_service.app.models import Base, Cart, Order
from services.storefront_service.app.services import CartOrchestrator

SECRET = "storefront-test-secret"


def _run(coro):
    return asyncio.run(coro)


def _auth(user_id: uuid.UUID | str, **claims: Any) -> dict[str, str]:
    payload = {
        "sub": str(user_id),
        "aud": "authenticated",
        "exp": int(time.time()) + 3600,
        **claims,
    }
    return {"Authorization": f"Bearer {jwt.encode(payload, SECRET, algorithm='HS256')}"}


async def _prepare_app(tmp_path) -> FastAPI:
    database_url = f"sqlite+aiosqlite:///{tmp_path / 'storefront.db'}"
    await create_schema(database_url, Base)

    settings = ServiceSettings(
        app_name="Storefront Service Test",
        enable_metrics=False,
        enable_tracing=False,
        database_url=database_url,
        seed_sample_items=True,
        auth_jwt_secret=SECRET,
    )
    return create_app(settings)


async def _item_ids(client: AsyncClient) -> dict[str, str]:
    response = await client.get("/items")
    assert response.status_code == 200
    return {item["name"]: item["id"] for item in response.json()["items"]}


async def _carts_for(app: FastAPI, user_id: uuid.UUID) -> list[Cart]:
    async with app.state.session_factory() as session:
        result = await session.execute(select(Cart).where(Cart.user_id == user_id))
        return list(result.scalars())


def test_landing_redirects_signed_in_users(tmp_path) -> None:
    async def body() -> None:
        app = await _prepare_app(tmp_path)
        async with lifespan(app):
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                anonymous = await client.get("/")
                assert anonymous.status_code == 200
                assert anonymous.json()["title"] == "ShopCart"

                signed_in = await client.get("/", headers=_auth(uuid.uuid4()))
                assert signed_in.status_code == 307
                assert signed_in.headers["location"] == "/shop"

    _run(body())


def test_shop_requires_authentication(tmp_path) -> None:
    async def body() -> None:
        app = await _prepare_app(tmp_path)
        async with lifespan(app):
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                missing = await client.get("/shop")
                assert missing.status_code == 401

                forged = jwt.encode({"sub": str(uuid.uuid4()), "aud": "authenticated"}, "wrong", algorithm="HS256")
                rejected = await client.get("/cart", headers={"Authorization": f"Bearer {forged}"})
                assert rejected.status_code == 401

                not_a_uuid = await client.get("/cart", headers=_auth("someone"))
                assert not_a_uuid.status_code == 401

    _run(body())


def test_shop_lists_items_and_keeps_one_cart(tmp_path) -> None:
    user_id = uuid.uuid4()

    async def body() -> None:
        app = await _prepare_app(tmp_path)
        async with lifespan(app):
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                first = await client.get("/shop", headers=_auth(user_id))
                assert first.status_code == 200
                payload = first.json()
                assert len(payload["items"]) == 6
                assert payload["notification"] is None
                prices = {item["name"]: item["price"] for item in payload["items"]}
                assert prices["Classic Sneakers"] == "79.99"

                second = await client.get("/shop", headers=_auth(user_id))
                assert second.json()["cartId"] == payload["cartId"]

            carts = await _carts_for(app, user_id)
            assert len(carts) == 1
            assert carts[0].status == "active"

    _run(body())


class _CatalogueDownClient(StoreClient):
    async def select(self, table, filters=None, **kwargs):
        if table == "items":
            raise PersistenceError("catalogue replica unreachable", table=table, operation="select")
        return await super().select(table, filters, **kwargs)


def _catalogue_down_orchestrator(client: StoreClient = Depends(get_client)) -> CartOrchestrator:
    return CartOrchestrator(_CatalogueDownClient(client.session, client.identity))


def test_shop_keeps_cart_when_items_fail_to_load(tmp_path) -> None:
    user_id = uuid.uuid4()

    async def body() -> None:
        app = await _prepare_app(tmp_path)
        app.dependency_overrides[get_orchestrator] = _catalogue_down_orchestrator
        async with lifespan(app):
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                response = await client.get("/shop", headers=_auth(user_id))
                assert response.status_code == 200
                payload = response.json()
                assert payload["items"] == []
                assert payload["notification"] == {"level": "error", "message": "Failed to load items"}
                cart_id = payload["cartId"]

            carts = await _carts_for(app, user_id)
            assert [str(cart.id) for cart in carts] == [cart_id]

    _run(body())


def test_add_item_twice_keeps_single_row(tmp_path) -> None:
    headers = _auth(uuid.uuid4())

    async def body() -> None:
        app = await _prepare_app(tmp_path)
        async with lifespan(app):
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                ids = await _item_ids(client)

                added = await client.post("/cart/items", json={"itemId": ids["Smart Watch"]}, headers=headers)
                assert added.status_code == 200
                assert added.json()["added"] is True
                assert added.json()["notification"] == {"level": "success", "message": "Added to cart!"}

                repeat = await client.post("/cart/items", json={"itemId": ids["Smart Watch"]}, headers=headers)
                assert repeat.status_code == 200
                assert repeat.json()["added"] is False
                assert repeat.json()["notification"] == {"level": "info", "message": "Item already in cart"}

                cart = await client.get("/cart", headers=headers)
                view = cart.json()
                assert len(view["cart"]["items"]) == 1
                assert view["cart"]["items"][0]["quantity"] == 1
                assert view["cart"]["total"] == "199.99"
                assert view["notification"]["message"] == "Cart Items: Smart Watch"

    _run(body())


def test_add_unknown_item_is_reported(tmp_path) -> None:
    headers = _auth(uuid.uuid4())

    async def body() -> None:
        app = await _prepare_app(tmp_path)
        async with lifespan(app):
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                response = await client.post("/cart/items", json={"itemId": str(uuid.uuid4())}, headers=headers)
                assert response.status_code == 409
                assert response.json()["notification"] == {
                    "level": "error",
                    "message": "Failed to add item to cart",
                }

                cart = await client.get("/cart", headers=headers)
                assert cart.json()["notification"]["message"] == "Your cart is empty"

    _run(body())


def test_checkout_creates_order_and_rotates_cart(tmp_path) -> None:
    user_id = uuid.uuid4()
    headers = _auth(user_id)

    async def body() -> None:
        app = await _prepare_app(tmp_path)
        async with lifespan(app):
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                ids = await _item_ids(client)
                await client.post("/cart/items", json={"itemId": ids["Classic Sneakers"]}, headers=headers)
                await client.post("/cart/items", json={"itemId": ids["Yoga Mat"]}, headers=headers)
                before = (await client.get("/cart", headers=headers)).json()
                assert before["cart"]["total"] == "114.98"

                checkout = await client.post("/cart/checkout", headers=headers)
                assert checkout.status_code == 201
                result = checkout.json()
                assert result["order"]["total"] == "114.98"
                assert result["order"]["status"] == "completed"
                assert result["order"]["cartId"] == before["cart"]["id"]
                assert result["cartId"] != before["cart"]["id"]
                assert result["notification"] == {"level": "success", "message": "Order successful!"}

                after = (await client.get("/cart", headers=headers)).json()
                assert after["cart"]["id"] == result["cartId"]
                assert after["cart"]["items"] == []
                assert after["notification"]["message"] == "Your cart is empty"

                history = (await client.get("/orders", headers=headers)).json()
                assert len(history["orders"]) == 1
                order_id = history["orders"][0]["id"]
                assert history["notification"]["message"] == f"Order History:\nOrder #{order_id[:8]} - $114.98"

            carts = await _carts_for(app, user_id)
            statuses = sorted(cart.status for cart in carts)
            assert statuses == ["active", "checked_out"]

    _run(body())


def test_repeated_checkouts_list_newest_first(tmp_path) -> None:
    headers = _auth(uuid.uuid4())

    async def body() -> None:
        app = await _prepare_app(tmp_path)
        async with lifespan(app):
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                ids = await _item_ids(client)
                await client.post("/cart/items", json={"itemId": ids["Laptop Backpack"]}, headers=headers)
                first = await client.post("/cart/checkout", headers=headers)
                assert first.status_code == 201

                await client.post("/cart/items", json={"itemId": ids["Coffee Maker"]}, headers=headers)
                await client.post("/cart/items", json={"itemId": ids["Laptop Backpack"]}, headers=headers)
                second = await client.post("/cart/checkout", headers=headers)
                assert second.status_code == 201
                assert second.json()["order"]["total"] == "139.98"

                history = (await client.get("/orders", headers=headers)).json()
                assert [order["total"] for order in history["orders"]] == ["139.98", "49.99"]

    _run(body())


def test_checkout_empty_cart_creates_no_order(tmp_path) -> None:
    user_id = uuid.uuid4()
    headers = _auth(user_id)

    async def body() -> None:
        app = await _prepare_app(tmp_path)
        async with lifespan(app):
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                history = await client.get("/orders", headers=headers)
                assert history.status_code == 200
                assert history.json() == {
                    "orders": [],
                    "notification": {"level": "info", "message": "No orders yet"},
                }

                opened = await client.get("/cart", headers=headers)
                assert opened.json()["notification"]["message"] == "Your cart is empty"

                checkout = await client.post("/cart/checkout", headers=headers)
                assert checkout.status_code == 400
                assert checkout.json()["detail"] == "Cart is empty"
                assert checkout.json()["notification"]["level"] == "error"

            async with app.state.session_factory() as session:
                orders = (await session.execute(select(Order))).scalars().all()
                assert orders == []
            carts = await _carts_for(app, user_id)
            assert [cart.status for cart in carts] == ["active"]

    _run(body())


def test_orders_are_private_to_their_owner(tmp_path) -> None:
    alice = _auth(uuid.uuid4())
    bob = _auth(uuid.uuid4())

    async def body() -> None:
        app = await _prepare_app(tmp_path)
        async with lifespan(app):
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                ids = await _item_ids(client)
                await client.post("/cart/items", json={"itemId": ids["Wireless Headphones"]}, headers=alice)
                await client.post("/cart/checkout", headers=alice)

                bob_history = (await client.get("/orders", headers=bob)).json()
                assert bob_history["orders"] == []

                bob_cart = (await client.get("/cart", headers=bob)).json()
                assert bob_cart["cart"]["items"] == []

    _run(body())


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with app.router.lifespan_context(app):
        yield
