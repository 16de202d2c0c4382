import uuid

API = "/api/v1"

ADDRESS = {
    "street": "1 Main St",
    "city": "Springfield",
    "state": "IL",
    "postal_code": "62701",
    "country": "US",
}


def add_line(client, headers, product_id, quantity, size="M", color="red"):
    return client.post(
        f"{API}/cart",
        json={"product_id": str(product_id), "quantity": quantity, "size": size, "color": color},
        headers=headers,
    )


def test_health(client):
    assert client.get("/").json()["status"] == "ok"


# -------- Auth gate --------


def test_cart_requires_token(client):
    resp = client.get(f"{API}/cart")
    assert resp.status_code == 401
    assert resp.json()["kind"] == "unauthorized"


def test_invalid_token_is_rejected(client):
    resp = client.get(f"{API}/cart", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401
    assert resp.json()["kind"] == "unauthorized"


def test_orders_require_token(client):
    assert client.get(f"{API}/orders").status_code == 401
    assert client.post(f"{API}/orders", json={}).status_code == 401


# -------- Cart --------


def test_get_cart_before_any_add_is_404(client, auth_headers):
    resp = client.get(f"{API}/cart", headers=auth_headers)
    assert resp.status_code == 404
    assert resp.json() == {"kind": "not_found", "detail": "Cart not found"}


def test_add_then_get(client, auth_headers, make_product):
    product = make_product(price=19.99)

    resp = add_line(client, auth_headers, product.id, 3)
    assert resp.status_code == 200

    cart = client.get(f"{API}/cart", headers=auth_headers).json()
    assert len(cart["lines"]) == 1
    line = cart["lines"][0]
    assert line["quantity"] == 3
    assert line["line_total"] == 19.99 * 3
    assert line["product"]["id"] == str(product.id)
    assert cart["total_price"] == line["line_total"]


def test_repeated_add_replaces_quantity(client, auth_headers, make_product):
    product = make_product(price=10.0)

    add_line(client, auth_headers, product.id, 2)
    cart = add_line(client, auth_headers, product.id, 5).json()

    assert [(l["size"], l["color"], l["quantity"]) for l in cart["lines"]] == [("M", "red", 5)]
    assert cart["total_price"] == 50.0


def test_color_list_takes_first_element(client, auth_headers, make_product):
    product = make_product()

    cart = add_line(client, auth_headers, product.id, 1, color=["navy", "red"]).json()

    assert cart["lines"][0]["color"] == "navy"


def test_invalid_cart_input_is_rejected(client, auth_headers, make_product):
    product = make_product()

    for bad in (
        {"quantity": 0, "size": "M", "color": "red"},
        {"quantity": 1, "size": "  ", "color": "red"},
        {"quantity": 1, "size": "M", "color": []},
        {"quantity": 1, "size": "M"},
    ):
        resp = client.post(
            f"{API}/cart", json={"product_id": str(product.id), **bad}, headers=auth_headers
        )
        assert resp.status_code == 422, bad
        assert resp.json()["kind"] == "invalid_input"


def test_add_unknown_product_is_404(client, auth_headers):
    resp = add_line(client, auth_headers, uuid.uuid4(), 1)
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Product not found"


def test_update_line(client, auth_headers, make_product):
    product = make_product(price=4.0)
    add_line(client, auth_headers, product.id, 1)

    resp = client.patch(
        f"{API}/cart/{product.id}",
        json={"quantity": 4, "size": "M", "color": "red"},
        headers=auth_headers,
    )

    assert resp.status_code == 200
    assert resp.json()["total_price"] == 16.0


def test_update_line_not_in_cart_is_404(client, auth_headers, make_product):
    product = make_product()
    add_line(client, auth_headers, product.id, 1)

    resp = client.patch(
        f"{API}/cart/{product.id}",
        json={"quantity": 4, "size": "XL", "color": "red"},
        headers=auth_headers,
    )

    assert resp.status_code == 404
    assert resp.json()["detail"] == "Product not in cart"


def test_remove_line_and_missing_key(client, auth_headers, make_product):
    product = make_product(price=10.0)
    add_line(client, auth_headers, product.id, 1, color="red")
    add_line(client, auth_headers, product.id, 1, color="blue")

    missing = client.delete(
        f"{API}/cart/{product.id}", params={"size": "M", "color": "green"}, headers=auth_headers
    )
    assert missing.status_code == 200
    assert len(missing.json()["lines"]) == 2

    removed = client.delete(
        f"{API}/cart/{product.id}", params={"size": "M", "color": "red"}, headers=auth_headers
    )
    assert [l["color"] for l in removed.json()["lines"]] == ["blue"]
    assert removed.json()["total_price"] == 10.0


def test_clear_cart(client, auth_headers, make_product):
    product = make_product()
    add_line(client, auth_headers, product.id, 1)

    assert client.delete(f"{API}/cart", headers=auth_headers).status_code == 204
    assert client.get(f"{API}/cart", headers=auth_headers).status_code == 404


# -------- Orders --------


def test_checkout_scenario(client, auth_headers, gateway, make_product):
    p1 = make_product(price=10.0, title="P1")
    p2 = make_product(price=25.0, title="P2")
    add_line(client, auth_headers, p1.id, 2, size="M", color="red")
    add_line(client, auth_headers, p2.id, 1, size="L", color="blue")

    resp = client.post(
        f"{API}/orders",
        json={"payment_method_id": "pm_card_visa", "shipping_address": ADDRESS},
        headers=auth_headers,
    )

    assert resp.status_code == 201
    order = resp.json()
    assert order["total_price"] == 45.0
    assert order["payment_info"] == {
        "payment_id": "pi_test_1",
        "status": "succeeded",
        "method": "pm_card_visa",
    }
    assert order["shipping_address"] == ADDRESS
    assert gateway.charges[0]["amount"] == 4500

    assert client.get(f"{API}/cart", headers=auth_headers).status_code == 404

    listed = client.get(f"{API}/orders", headers=auth_headers).json()
    assert [o["id"] for o in listed] == [order["id"]]


def test_place_order_with_empty_cart(client, auth_headers):
    resp = client.post(
        f"{API}/orders",
        json={"payment_method_id": "pm_card_visa", "shipping_address": ADDRESS},
        headers=auth_headers,
    )
    assert resp.status_code == 400
    assert resp.json()["kind"] == "empty_cart"


def test_declined_payment(client, auth_headers, gateway, make_product):
    product = make_product(price=10.0)
    add_line(client, auth_headers, product.id, 2)
    gateway.decline = True

    resp = client.post(
        f"{API}/orders",
        json={"payment_method_id": "pm_card_chargeDeclined", "shipping_address": ADDRESS},
        headers=auth_headers,
    )

    assert resp.status_code == 402
    assert resp.json()["kind"] == "payment_failed"
    cart = client.get(f"{API}/cart", headers=auth_headers).json()
    assert cart["lines"][0]["quantity"] == 2
    assert client.get(f"{API}/orders", headers=auth_headers).json() == []


def test_malformed_address_is_rejected(client, auth_headers, make_product):
    product = make_product()
    add_line(client, auth_headers, product.id, 1)

    resp = client.post(
        f"{API}/orders",
        json={"payment_method_id": "pm_card_visa", "shipping_address": {**ADDRESS, "city": ""}},
        headers=auth_headers,
    )

    assert resp.status_code == 422
    assert resp.json()["kind"] == "invalid_input"


def test_order_visibility_and_cancel(client, auth_headers, headers_for, gateway, make_product):
    product = make_product(price=10.0)
    add_line(client, auth_headers, product.id, 1)
    order = client.post(
        f"{API}/orders",
        json={"payment_method_id": "pm_card_visa", "shipping_address": ADDRESS},
        headers=auth_headers,
    ).json()

    stranger = headers_for(uuid.uuid4())
    assert client.get(f"{API}/orders/{order['id']}", headers=stranger).status_code == 404
    assert client.delete(f"{API}/orders/{order['id']}", headers=stranger).status_code == 404

    resp = client.delete(f"{API}/orders/{order['id']}", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["refunded"] is True
    assert gateway.refunds == ["pi_test_1"]
    assert client.get(f"{API}/orders/{order['id']}", headers=auth_headers).status_code == 404


# -------- Hosted checkout --------


def test_checkout_session(client, auth_headers, gateway, make_product):
    product = make_product(price=19.99, title="Tee")
    add_line(client, auth_headers, product.id, 2)

    resp = client.post(f"{API}/checkout/session", headers=auth_headers)

    assert resp.status_code == 200
    assert resp.json()["url"] == "https://checkout.test/cs_test_1"
    item = gateway.sessions[0]["line_items"][0]
    assert (item.name, item.unit_amount, item.quantity) == ("Tee", 1999, 2)


def test_checkout_session_with_empty_cart(client, auth_headers):
    resp = client.post(f"{API}/checkout/session", headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json()["kind"] == "empty_cart"


def test_checkout_status(client, auth_headers, gateway):
    resp = client.post(f"{API}/checkout/status", json={"session_id": "cs_1"}, headers=auth_headers)
    assert resp.json() == {"status": "succeeded"}

    gateway.paid = False
    resp = client.post(f"{API}/checkout/status", json={"session_id": "cs_1"}, headers=auth_headers)
    assert resp.json() == {"status": "failed"}

    gateway.provider_down = True
    resp = client.post(f"{API}/checkout/status", json={"session_id": "cs_1"}, headers=auth_headers)
    assert resp.status_code == 502
    assert resp.json()["kind"] == "provider_error"


def test_declined_card_then_another_card(client, auth_headers, gateway, make_product):
    product = make_product(price=10.0)
    add_line(client, auth_headers, product.id, 2)
    gateway.declined_methods.add("pm_card_chargeDeclined")

    declined = client.post(
        f"{API}/orders",
        json={"payment_method_id": "pm_card_chargeDeclined", "shipping_address": ADDRESS},
        headers=auth_headers,
    )
    assert declined.status_code == 402

    resp = client.post(
        f"{API}/orders",
        json={"payment_method_id": "pm_card_visa", "shipping_address": ADDRESS},
        headers=auth_headers,
    )
    assert resp.status_code == 201
    assert resp.json()["payment_info"]["method"] == "pm_card_visa"
    assert client.get(f"{API}/cart", headers=auth_headers).status_code == 404
