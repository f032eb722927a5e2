from decimal import Decimal

from fastapi.testclient import TestClient


def _create_stream(client: TestClient) -> str:
    return client.post("/api/v1/streams", json={"name": "Sale", "status": "live"}).json()["data"]["id"]


def test_create_and_list_discounts(client: TestClient) -> None:
    stream_id = _create_stream(client)
    res = client.post(
        "/api/v1/discounts",
        json={"amount": 4.99, "percent": 0, "percent_amount": True, "stream_id": stream_id},
    )
    assert res.status_code == 201, res.text
    body = res.json()
    assert body["message"] == "Discount created Successfully"
    code = body["data"]["discount_code"]

    listing = client.get("/api/v1/discounts")
    assert listing.status_code == 200
    [discount] = listing.json()["data"]
    assert discount["percent_amount"] is True
    assert Decimal(str(discount["amount"])) == Decimal("4.99")
    assert discount["discount_manager"]["code"] == code
    assert discount["discount_manager"]["discount_gift"] is False
    assert discount["discount_manager"]["gift_id"] is None


def test_discount_for_unknown_stream_creates_nothing(client: TestClient) -> None:
    res = client.post(
        "/api/v1/discounts",
        json={"amount": 0, "percent": 15, "percent_amount": False, "stream_id": "missing"},
    )
    assert res.status_code == 404
    assert client.get("/api/v1/discounts").json()["data"] == []


def test_discount_percent_must_be_within_range(client: TestClient) -> None:
    stream_id = _create_stream(client)
    res = client.post(
        "/api/v1/discounts",
        json={"amount": 0, "percent": 150, "percent_amount": False, "stream_id": stream_id},
    )
    assert res.status_code == 422


def test_discount_code_is_not_a_gift(client: TestClient) -> None:
    stream_id = _create_stream(client)
    code = client.post(
        "/api/v1/discounts",
        json={"amount": 0, "percent": 10, "percent_amount": False, "stream_id": stream_id},
    ).json()["data"]["discount_code"]
    res = client.post("/api/v1/gifts/redeem", json={"code": code})
    assert res.status_code == 404
