from datetime import datetime, timedelta, timezone

import pytest

from shared.codes import BusinessCode


async def _seed(client, balance="100.00"):
    resp = await client.post(
        "/api/v1/meals",
        json={"id": "meal-1", "cook_id": "cook-1", "name": "Laksa", "price": "12.50", "available_quantity": 5},
    )
    assert resp.status_code == 201
    resp = await client.post("/api/v1/wallets/customer-1", json={"initial_balance": balance})
    assert resp.status_code == 200


async def _reserve(client, quantity=2):
    pickup = (datetime.now(timezone.utc) + timedelta(hours=2)).isoformat()
    return await client.post(
        "/api/v1/reservations",
        json={"meal_id": "meal-1", "customer_id": "customer-1", "quantity": quantity, "pickup_time": pickup},
    )


async def _set_status(client, reservation_id, status):
    return await client.patch(f"/api/v1/reservations/{reservation_id}/status", json={"status": status})


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["data"] == {"status": "healthy"}
    assert resp.headers.get("X-Request-ID")


@pytest.mark.asyncio
async def test_reservation_flow_over_http(client):
    await _seed(client)
    resp = await _reserve(client)
    assert resp.status_code == 201
    body = resp.json()
    assert body["code"] == BusinessCode.SUCCESS
    reservation = body["data"]
    assert reservation["total_price"] == "25.00"
    assert reservation["status"] == "pending"

    for status in ("confirmed", "ready_for_pickup", "completed"):
        resp = await _set_status(client, reservation["id"], status)
        assert resp.status_code == 200, resp.text
    assert resp.json()["data"]["payment_status"] == "paid"

    wallet = (await client.get("/api/v1/wallets/customer-1")).json()["data"]
    assert wallet["balance"] == "75.00"
    earnings = (await client.get("/api/v1/wallets/cook-1/earnings")).json()["data"]
    assert earnings == {"total_earned": "25.00", "pending_earnings": "0.00", "available_balance": "25.00"}

    resp = await client.post(
        f"/api/v1/reservations/{reservation['id']}/rating",
        json={"meal_rating": 5, "cook_rating": 4, "review_text": "Perfect"},
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["rating"]["meal_rating"] == 5

    resp = await client.post(
        f"/api/v1/reservations/{reservation['id']}/rating",
        json={"meal_rating": 5, "cook_rating": 4},
    )
    assert resp.status_code == 409
    assert resp.json()["code"] == BusinessCode.RESERVATION_ALREADY_RATED

    listed = (await client.get("/api/v1/reservations/customer/customer-1")).json()["data"]
    assert [r["id"] for r in listed] == [reservation["id"]]
    history = (await client.get("/api/v1/wallets/customer-1/transactions")).json()["data"]
    assert len(history) == 1
    assert history[0]["status"] == "completed"


@pytest.mark.asyncio
async def test_error_mapping(client):
    resp = await client.get("/api/v1/reservations/reservation-missing")
    assert resp.status_code == 404
    body = resp.json()
    assert body["code"] == BusinessCode.RESERVATION_NOT_FOUND
    assert body["error"]["type"] == "ReservationNotFound"
    assert body["error"]["request_id"]

    await _seed(client, balance="10.00")
    reservation = (await _reserve(client)).json()["data"]

    resp = await _set_status(client, reservation["id"], "completed")
    assert resp.status_code == 409
    assert resp.json()["code"] == BusinessCode.RESERVATION_INVALID_TRANSITION

    await _set_status(client, reservation["id"], "confirmed")
    resp = await _set_status(client, reservation["id"], "ready_for_pickup")
    assert resp.status_code == 402
    assert resp.json()["code"] == BusinessCode.INSUFFICIENT_FUNDS

    resp = await _reserve(client, quantity=50)
    assert resp.status_code == 409
    assert resp.json()["code"] == BusinessCode.MEAL_QUANTITY_INSUFFICIENT


@pytest.mark.asyncio
async def test_validation_errors(client):
    resp = await _reserve(client, quantity=0)
    assert resp.status_code == 422
    assert resp.json()["code"] == BusinessCode.PARAM_VALIDATION_ERROR

    resp = await client.post("/api/v1/reservations/any/rating", json={"meal_rating": 6, "cook_rating": 3})
    assert resp.status_code == 422

    resp = await client.patch("/api/v1/reservations/any/status", json={"status": "shipped"})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_manual_refund_and_price_change(client):
    await _seed(client)
    reservation = (await _reserve(client)).json()["data"]
    await _set_status(client, reservation["id"], "confirmed")
    ready = (await _set_status(client, reservation["id"], "ready_for_pickup")).json()["data"]

    resp = await client.patch("/api/v1/meals/meal-1/price", json={"price": "30.00"})
    assert resp.json()["data"]["price"] == "30.00"
    fetched = (await client.get(f"/api/v1/reservations/{reservation['id']}")).json()["data"]
    assert fetched["total_price"] == "25.00"

    resp = await client.post(f"/api/v1/wallets/transactions/{ready['payment_id']}/refund")
    assert resp.status_code == 200
    refund = resp.json()["data"]
    assert refund["type"] == "refund"
    assert refund["description"] == "Refund: Refund requested"
    assert (await client.get("/api/v1/wallets/customer-1")).json()["data"]["balance"] == "100.00"

    fetched = (await client.get(f"/api/v1/reservations/{reservation['id']}")).json()["data"]
    assert fetched["payment_status"] == "refunded"
    resp = await _set_status(client, reservation["id"], "completed")
    assert resp.status_code == 409
    assert resp.json()["code"] == BusinessCode.RESERVATION_INVALID_TRANSITION
    resp = await client.post(f"/api/v1/reservations/{reservation['id']}/cancel")
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "cancelled"
    assert (await client.get("/api/v1/wallets/customer-1")).json()["data"]["balance"] == "100.00"


@pytest.mark.asyncio
async def test_direct_payment_endpoint(client):
    await _seed(client)
    await client.post("/api/v1/wallets/cook-1", json={"initial_balance": "0.00"})
    payment = {"from_user_id": "customer-1", "to_user_id": "cook-1", "amount": "10.00", "description": "Tip"}

    resp = await client.post("/api/v1/wallets/payments", json=payment)
    assert resp.status_code == 422
    assert resp.json()["error"]["field"] == "idempotency_key"

    first = await client.post("/api/v1/wallets/payments", json={**payment, "idempotency_key": "tip-1"})
    assert first.status_code == 201, first.text
    assert first.json()["data"]["status"] == "pending"
    replay = await client.post("/api/v1/wallets/payments", json={**payment, "idempotency_key": "tip-1"})
    assert replay.json()["data"]["id"] == first.json()["data"]["id"]
    second = await client.post("/api/v1/wallets/payments", json={**payment, "idempotency_key": "tip-2"})
    assert second.json()["data"]["id"] != first.json()["data"]["id"]
    assert (await client.get("/api/v1/wallets/customer-1")).json()["data"]["balance"] == "80.00"

    conflicting = {**payment, "amount": "99.00", "idempotency_key": "tip-1"}
    resp = await client.post("/api/v1/wallets/payments", json=conflicting)
    assert resp.status_code == 409
    assert resp.json()["code"] == BusinessCode.IDEMPOTENCY_CONFLICT


@pytest.mark.asyncio
async def test_refresh_endpoint(client):
    await _seed(client)
    created = (await _reserve(client, quantity=1)).json()["data"]
    resp = await client.post("/api/v1/reservations/cook/cook-1/refresh")
    assert resp.status_code == 200
    assert [r["id"] for r in resp.json()["data"]] == [created["id"]]
