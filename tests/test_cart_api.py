import pytest

from storefront.config import settings
from storefront.database import db as file_db


def _delete(client, path, payload):
    return client.request("DELETE", path, json=payload)


def test_guest_add_without_id_creates_cart_and_issues_guest_id(client, make_product):
    p = make_product(name="Beanie", price=15.0, image_url="https://img.example/beanie.jpg")

    r = client.post("/api/cart", json={"productId": p["id"], "quantity": 2, "size": "M"})

    assert r.status_code == 201, r.text
    body = r.json()
    assert body["guestId"].startswith(settings.GUEST_ID_PREFIX)
    assert body["userId"] is None
    assert body["products"] == [
        {"productId": p["id"], "name": "Beanie", "image": "https://img.example/beanie.jpg", "price": 15.0, "size": "M", "quantity": 2}
    ]
    assert body["totalPrice"] == pytest.approx(30.0)
    assert body["itemCount"] == 2


def test_second_add_returns_200_and_accumulates(client, make_product):
    p = make_product(price=10.0)
    first = client.post("/api/cart", json={"productId": p["id"], "quantity": 2, "size": "M", "guestId": "guest_api"})
    assert first.status_code == 201

    r = client.post("/api/cart", json={"productId": p["id"], "quantity": 3, "size": "M", "guestId": "guest_api"})

    assert r.status_code == 200
    assert r.json()["products"][0]["quantity"] == 5
    assert r.json()["totalPrice"] == pytest.approx(50.0)
    assert r.json()["id"] == first.json()["id"]


def test_snake_case_body_is_accepted(client, make_product):
    p = make_product()
    r = client.post("/api/cart", json={"product_id": p["id"], "quantity": 1, "size": "S", "user_id": "u_snake"})
    assert r.status_code == 201
    assert r.json()["userId"] == "u_snake"


def test_add_errors(client, make_product):
    p = make_product()
    assert client.post("/api/cart", json={"productId": p["id"], "quantity": 0, "guestId": "g"}).status_code == 400
    assert client.post("/api/cart", json={"productId": p["id"], "quantity": -2, "guestId": "g"}).status_code == 400
    r = client.post("/api/cart", json={"productId": "nope", "quantity": 1, "guestId": "g"})
    assert r.status_code == 404
    assert r.json()["detail"] == "Product not found"
    # schema-level rejection for non-integer quantities
    assert client.post("/api/cart", json={"productId": p["id"], "quantity": 1.5, "guestId": "g"}).status_code == 422


def test_get_cart(client, make_product):
    p = make_product()
    client.post("/api/cart", json={"productId": p["id"], "quantity": 1, "size": "M", "guestId": "guest_get"})

    assert client.get("/api/cart", params={"guestId": "guest_get"}).status_code == 200
    assert client.get("/api/cart", params={"guestId": "guest_other"}).status_code == 404
    assert client.get("/api/cart").status_code == 400


def test_get_prefers_user_id(client, make_product):
    p = make_product()
    client.post("/api/cart", json={"productId": p["id"], "quantity": 1, "size": "M", "guestId": "guest_pref"})
    client.post("/api/cart", json={"productId": p["id"], "quantity": 4, "size": "M", "userId": "u_pref"})

    r = client.get("/api/cart", params={"guestId": "guest_pref", "userId": "u_pref"})

    assert r.status_code == 200
    assert r.json()["userId"] == "u_pref"
    assert r.json()["itemCount"] == 4


def test_put_sets_quantity_and_zero_removes(client, make_product):
    p = make_product(price=8.0)
    owner = {"guestId": "guest_put"}
    client.post("/api/cart", json={"productId": p["id"], "quantity": 5, "size": "M", **owner})

    r = client.put("/api/cart", json={"productId": p["id"], "quantity": 2, "size": "M", **owner})
    assert r.status_code == 200
    assert r.json()["products"][0]["quantity"] == 2
    assert r.json()["totalPrice"] == pytest.approx(16.0)

    r = client.put("/api/cart", json={"productId": p["id"], "quantity": 0, "size": "M", **owner})
    assert r.status_code == 200
    assert r.json()["products"] == []
    assert r.json()["totalPrice"] == 0.0
    assert client.get("/api/cart", params=owner).status_code == 200


def test_put_missing_cart_or_item(client, make_product):
    p = make_product()
    r = client.put("/api/cart", json={"productId": p["id"], "quantity": 1, "size": "M", "guestId": "guest_nocart"})
    assert r.status_code == 404
    assert r.json()["detail"] == "Cart not found"

    client.post("/api/cart", json={"productId": p["id"], "quantity": 1, "size": "M", "guestId": "guest_noitem"})
    r = client.put("/api/cart", json={"productId": p["id"], "quantity": 1, "size": "XL", "guestId": "guest_noitem"})
    assert r.status_code == 404
    assert r.json()["detail"] == "Product not found in cart"


def test_delete_line_twice(client, make_product):
    p = make_product(price=4.0)
    q = make_product(price=6.0)
    owner = {"userId": "u_del"}
    client.post("/api/cart", json={"productId": p["id"], "quantity": 1, "size": "M", **owner})
    client.post("/api/cart", json={"productId": q["id"], "quantity": 1, "size": "M", **owner})

    r = _delete(client, "/api/cart", {"productId": p["id"], "size": "M", **owner})
    assert r.status_code == 200
    assert [it["productId"] for it in r.json()["products"]] == [q["id"]]
    assert r.json()["totalPrice"] == pytest.approx(6.0)

    again = _delete(client, "/api/cart", {"productId": p["id"], "size": "M", **owner})
    assert again.status_code == 404
    assert client.get("/api/cart", params=owner).json()["totalPrice"] == pytest.approx(6.0)


def test_clear_cart(client, make_product):
    p = make_product()
    client.post("/api/cart", json={"productId": p["id"], "quantity": 3, "guestId": "guest_clr"})

    r = _delete(client, "/api/cart/items", {"guestId": "guest_clr"})

    assert r.status_code == 200
    assert r.json()["products"] == []
    assert _delete(client, "/api/cart/items", {"guestId": "guest_unknown"}).status_code == 404


def test_merge_requires_authentication(client):
    assert client.post("/api/cart/merge", json={"guestId": "guest_x"}).status_code == 401


def test_merge_endpoint(client, make_product, temp_user, auth_header):
    a = make_product(price=20.0)
    b = make_product(price=15.0)
    user_id = temp_user["id"]
    client.post("/api/cart", json={"productId": a["id"], "quantity": 2, "size": "M", "guestId": "guest_m"})
    client.post("/api/cart", json={"productId": a["id"], "quantity": 3, "size": "M", "userId": user_id})
    client.post("/api/cart", json={"productId": b["id"], "quantity": 1, "size": "L", "guestId": "guest_m"})

    r = client.post("/api/cart/merge", json={"guestId": "guest_m"}, headers=auth_header(user_id))

    assert r.status_code == 200, r.text
    body = r.json()
    assert body["userId"] == user_id
    assert body["guestId"] is None
    assert [(it["productId"], it["quantity"]) for it in body["products"]] == [(a["id"], 5), (b["id"], 1)]
    assert body["totalPrice"] == pytest.approx(5 * 20.0 + 15.0)
    assert client.get("/api/cart", params={"guestId": "guest_m"}).status_code == 404

    # retry after success returns the same cart
    again = client.post("/api/cart/merge", json={"guestId": "guest_m"}, headers=auth_header(user_id))
    assert again.status_code == 200
    assert again.json()["totalPrice"] == pytest.approx(body["totalPrice"])


def test_merge_endpoint_errors(client, make_product, temp_user, auth_header):
    p = make_product()
    hdr = auth_header(temp_user["id"])

    r = client.post("/api/cart/merge", json={"guestId": "guest_nothing"}, headers=hdr)
    assert r.status_code == 404

    client.post("/api/cart", json={"productId": p["id"], "quantity": 1, "guestId": "guest_empty"})
    client.put("/api/cart", json={"productId": p["id"], "quantity": 0, "guestId": "guest_empty"})
    r = client.post("/api/cart/merge", json={"guestId": "guest_empty"}, headers=hdr)
    assert r.status_code == 400
    assert r.json()["detail"] == "Guest cart is empty"

    assert client.post("/api/cart/merge", json={}, headers=hdr).status_code == 422


def test_merge_transfers_guest_cart_when_user_has_none(client, make_product, temp_user, auth_header):
    p = make_product()
    created = client.post("/api/cart", json={"productId": p["id"], "quantity": 1, "size": "S"}).json()

    r = client.post("/api/cart/merge", json={"guestId": created["guestId"]}, headers=auth_header(temp_user["id"]))

    assert r.status_code == 200
    assert r.json()["id"] == created["id"]
    assert r.json()["userId"] == temp_user["id"]
    assert len(file_db.list_records("carts")) == 1


def test_store_outage_maps_to_503(client, make_product, monkeypatch):
    p = make_product()

    def broken_upsert(*args, **kwargs):
        raise OSError("disk gone")

    monkeypatch.setattr(file_db, "upsert_record", broken_upsert)
    r = client.post("/api/cart", json={"productId": p["id"], "quantity": 1, "guestId": "guest_503"})
    assert r.status_code == 503
