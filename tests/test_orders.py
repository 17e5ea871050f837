# tests/test_orders.py

import pytest
from fastapi import HTTPException
from httpx import AsyncClient

from storefront.core import locales
from storefront.schemas.order import CartOrderCreate, DirectOrderCreate
from storefront.services import order as order_service
from storefront.services.cart import CartSession

pytestmark = pytest.mark.asyncio

ADDRESS = "شارع الجمهورية، دمنهور"


# --- Direct orders ---

async def test_direct_order_writes_order_and_item(fake_client, test_user):
    result = await order_service.place_direct_order(
        fake_client, test_user,
        DirectOrderCreate(product_id=2, quantity=2, shipping_address=ADDRESS, notes="بعد الظهر"),
    )

    assert len(fake_client.tables["orders"]) == 1
    order_row = fake_client.tables["orders"][0]
    assert order_row["user_id"] == test_user.id
    assert order_row["total_amount"] == 241.0
    assert order_row["status"] == "pending"
    assert order_row["payment_status"] == "pending"
    assert order_row["shipping_address"] == ADDRESS

    item_row = fake_client.tables["order_items"][0]
    assert item_row["order_id"] == order_row["id"]
    assert item_row["quantity"] == 2
    assert item_row["unit_price"] == 120.5
    assert item_row["total_price"] == 241.0

    assert result.order.id == order_row["id"]
    assert result.message == locales.SUCCESS_ORDER_PLACED.format(name="عسل")


async def test_direct_order_requires_sign_in(fake_client):
    with pytest.raises(HTTPException) as exc_info:
        await order_service.place_direct_order(
            fake_client, None, DirectOrderCreate(product_id=1, shipping_address=ADDRESS)
        )

    assert exc_info.value.status_code == 401
    assert exc_info.value.detail == locales.ERROR_LOGIN_REQUIRED_FOR_ORDER
    assert fake_client.calls == []


@pytest.mark.parametrize("address", ["", "   "])
async def test_direct_order_requires_address(fake_client, test_user, address):
    with pytest.raises(HTTPException) as exc_info:
        await order_service.place_direct_order(
            fake_client, test_user, DirectOrderCreate(product_id=1, shipping_address=address)
        )

    assert exc_info.value.status_code == 400
    assert exc_info.value.detail == locales.ERROR_SHIPPING_ADDRESS_REQUIRED
    assert fake_client.calls == []


async def test_direct_order_clamps_quantity(fake_client, test_user):
    await order_service.place_direct_order(
        fake_client, test_user, DirectOrderCreate(product_id=1, quantity=-3, shipping_address=ADDRESS)
    )

    assert fake_client.tables["order_items"][0]["quantity"] == 1
    assert fake_client.tables["orders"][0]["total_amount"] == 50.0


async def test_direct_order_of_hidden_product_returns_404(fake_client, test_user):
    with pytest.raises(HTTPException) as exc_info:
        await order_service.place_direct_order(
            fake_client, test_user, DirectOrderCreate(product_id=3, shipping_address=ADDRESS)
        )

    assert exc_info.value.status_code == 404
    assert fake_client.tables["orders"] == []


async def test_direct_order_uses_saved_address(fake_client, test_user):
    fake_client.tables["user_addresses"].append({
        "id": "addr-1", "user_id": test_user.id, "street": "شارع الجمهورية",
        "city": "دمنهور", "governorate": "البحيرة", "is_default": True,
    })

    await order_service.place_direct_order(
        fake_client, test_user, DirectOrderCreate(product_id=1, address_id="addr-1")
    )

    assert fake_client.tables["orders"][0]["shipping_address"] == "شارع الجمهورية، دمنهور، البحيرة"


async def test_direct_order_with_foreign_address_returns_400(fake_client, test_user):
    fake_client.tables["user_addresses"].append({
        "id": "addr-9", "user_id": "someone-else", "street": "x", "city": "y", "governorate": "z",
    })

    with pytest.raises(HTTPException) as exc_info:
        await order_service.place_direct_order(
            fake_client, test_user, DirectOrderCreate(product_id=1, address_id="addr-9")
        )

    assert exc_info.value.status_code == 400
    assert fake_client.tables["orders"] == []


# --- Atomicity ---

async def test_failed_items_roll_back_the_order(fake_client, test_user):
    fake_client.fail_on.add(("insert", "order_items"))

    with pytest.raises(HTTPException) as exc_info:
        await order_service.place_direct_order(
            fake_client, test_user, DirectOrderCreate(product_id=1, shipping_address=ADDRESS)
        )

    assert exc_info.value.status_code == 503
    assert exc_info.value.detail == locales.ERROR_ORDER_FAILED
    assert fake_client.tables["orders"] == []
    assert ("delete", "orders") in fake_client.calls


async def test_failed_rollback_still_reports_failure(fake_client, test_user):
    fake_client.fail_on.update({("insert", "order_items"), ("delete", "orders")})

    with pytest.raises(HTTPException) as exc_info:
        await order_service.place_direct_order(
            fake_client, test_user, DirectOrderCreate(product_id=1, shipping_address=ADDRESS)
        )

    assert exc_info.value.status_code == 503


async def test_failed_order_insert_writes_nothing(fake_client, test_user):
    fake_client.fail_on.add(("insert", "orders"))

    with pytest.raises(HTTPException):
        await order_service.place_direct_order(
            fake_client, test_user, DirectOrderCreate(product_id=1, shipping_address=ADDRESS)
        )

    assert ("insert", "order_items") not in fake_client.calls


# --- Idempotency ---

async def test_repeated_idempotency_key_returns_first_order(fake_client, test_user):
    order_data = DirectOrderCreate(product_id=1, shipping_address=ADDRESS, idempotency_key="checkout-42")

    first = await order_service.place_direct_order(fake_client, test_user, order_data)
    second = await order_service.place_direct_order(fake_client, test_user, order_data)

    assert len(fake_client.tables["orders"]) == 1
    assert len(fake_client.tables["order_items"]) == 1
    assert second.order.id == first.order.id
    assert second.replayed is True
    assert second.order.order_number == "checkout-42"
    assert [i.id for i in second.items] == [i.id for i in first.items]


async def test_orders_without_key_get_distinct_numbers(fake_client, test_user):
    order_data = DirectOrderCreate(product_id=1, shipping_address=ADDRESS)

    first = await order_service.place_direct_order(fake_client, test_user, order_data)
    second = await order_service.place_direct_order(fake_client, test_user, order_data)

    assert first.order.order_number != second.order.order_number
    assert len(fake_client.tables["orders"]) == 2


# --- Orders from the cart ---

async def test_cart_order_snapshots_cart_and_clears_it(fake_client, user_cart, dates, honey):
    await user_cart.add(dates, 2)
    await user_cart.add(honey)

    result = await order_service.place_cart_order(
        fake_client, user_cart, CartOrderCreate(shipping_address=ADDRESS)
    )

    assert result.order.total_amount == 220.5
    assert sorted((i.product_id, i.quantity) for i in result.items) == [(1, 2), (2, 1)]
    assert fake_client.tables["cart_items"] == []
    assert user_cart.count == 0


async def test_cart_order_with_empty_cart_returns_400(fake_client, user_cart):
    with pytest.raises(HTTPException) as exc_info:
        await order_service.place_cart_order(fake_client, user_cart, CartOrderCreate(shipping_address=ADDRESS))

    assert exc_info.value.status_code == 400
    assert exc_info.value.detail == locales.ERROR_CART_EMPTY


async def test_cart_order_for_guest_returns_401(fake_client, guest_cart, dates):
    await guest_cart.add(dates)

    with pytest.raises(HTTPException) as exc_info:
        await order_service.place_cart_order(fake_client, guest_cart, CartOrderCreate(shipping_address=ADDRESS))

    assert exc_info.value.status_code == 401
    assert guest_cart.count == 1


async def test_repeated_cart_checkout_keeps_new_cart(fake_client, guest_store, locks, test_user, user_cart, dates, honey):
    order_data = CartOrderCreate(shipping_address=ADDRESS, idempotency_key="checkout-7")
    await user_cart.add(dates, 2)
    first = await order_service.place_cart_order(fake_client, user_cart, order_data)
    assert first.replayed is False

    # the customer starts a new cart, then the first checkout request is retried
    later_cart = CartSession(fake_client, guest_store, user=test_user, locks=locks)
    await later_cart.add(honey)
    retried = await order_service.place_cart_order(fake_client, later_cart, order_data)

    assert retried.replayed is True
    assert retried.order.id == first.order.id
    assert len(fake_client.tables["orders"]) == 1
    assert [r["product_id"] for r in fake_client.tables["cart_items"]] == [honey.id]
    assert later_cart.count == 1


async def test_repeated_cart_checkout_with_emptied_cart_returns_order(fake_client, user_cart, dates):
    order_data = CartOrderCreate(shipping_address=ADDRESS, idempotency_key="checkout-8")
    await user_cart.add(dates)
    first = await order_service.place_cart_order(fake_client, user_cart, order_data)

    retried = await order_service.place_cart_order(fake_client, user_cart, order_data)

    assert user_cart.items == []
    assert retried.replayed is True
    assert retried.order.id == first.order.id
    assert [i.product_id for i in retried.items] == [dates.id]


async def test_failed_cart_order_keeps_cart(fake_client, user_cart, dates):
    await user_cart.add(dates)
    fake_client.fail_on.add(("insert", "orders"))

    with pytest.raises(HTTPException):
        await order_service.place_cart_order(fake_client, user_cart, CartOrderCreate(shipping_address=ADDRESS))

    assert user_cart.count == 1
    assert len(fake_client.tables["cart_items"]) == 1


# --- HTTP ---

async def test_direct_order_endpoint(client: AsyncClient, fake_client, auth_cookies: dict):
    response = await client.post(
        "/api/v1/orders/direct",
        json={"product_id": 1, "quantity": 1, "shipping_address": ADDRESS},
        headers=auth_cookies,
    )

    assert response.status_code == 201
    data = response.json()
    assert data["order"]["total_amount"] == 50.0
    assert data["items"][0]["product_id"] == 1
    assert data["message"] == locales.SUCCESS_ORDER_PLACED.format(name="تمر")


async def test_direct_order_endpoint_for_guest_returns_401(client: AsyncClient, fake_client):
    response = await client.post("/api/v1/orders/direct", json={"product_id": 1, "shipping_address": ADDRESS})

    assert response.status_code == 401
    assert response.json()["detail"] == locales.ERROR_LOGIN_REQUIRED_FOR_ORDER
    assert fake_client.tables["orders"] == []


async def test_cart_checkout_endpoint(client: AsyncClient, fake_client, auth_cookies: dict):
    await client.post("/api/v1/cart/items", json={"product_id": 2, "quantity": 3}, headers=auth_cookies)

    response = await client.post("/api/v1/orders", json={"shipping_address": ADDRESS}, headers=auth_cookies)

    assert response.status_code == 201
    assert response.json()["order"]["total_amount"] == 361.5
    assert fake_client.tables["cart_items"] == []


async def test_order_history_newest_first(client: AsyncClient, fake_client, auth_cookies: dict):
    fake_client.tables["orders"].extend([
        {"id": "o-1", "user_id": "11111111-1111-1111-1111-111111111111", "status": "delivered",
         "payment_status": "paid", "total_amount": 50.0, "created_at": "2025-01-01T00:00:00+00:00"},
        {"id": "o-2", "user_id": "11111111-1111-1111-1111-111111111111", "status": "pending",
         "payment_status": "pending", "total_amount": 20.0, "created_at": "2025-02-01T00:00:00+00:00"},
        {"id": "o-3", "user_id": "someone-else", "status": "pending",
         "payment_status": "pending", "total_amount": 10.0, "created_at": "2025-03-01T00:00:00+00:00"},
    ])

    response = await client.get("/api/v1/orders", headers=auth_cookies)

    assert response.status_code == 200
    assert [o["id"] for o in response.json()] == ["o-2", "o-1"]


async def test_order_history_requires_sign_in(client: AsyncClient):
    response = await client.get("/api/v1/orders")
    assert response.status_code == 401
