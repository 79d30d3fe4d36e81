from fastapi import status

from conftest import auth_headers, make_plan, make_product, make_tenant, make_user, recipients, subjects
from app.models.product import Product, ProductVariant
from app.services.cart import cart_service

ADDRESS = {
    "name": "Jane Doe",
    "email": "Jane@Example.com",
    "phone": "+254700000000",
    "address_line_1": "1 Market Street",
    "city": "Nairobi",
    "state": "Nairobi",
    "postal_code": "00100",
    "country": "KE",
}


def _checkout(client, headers, items, **extra):
    payload = {"items": items, "shipping_address": ADDRESS, "payment_method": "cash_on_delivery", **extra}
    return client.post("/api/store/checkout", json=payload, headers=headers)


def test_checkout_places_order(client, db, store, customer, shopper_headers, outbox):
    mug = make_product(db, store, name="Mug", price=12.0, sale_price=10.0, stock=5, sku="MUG-1")
    shirt = make_product(
        db, store, name="Shirt", price=20.0,
        variants=[{"name": "L", "sku": "SH-L", "stock_quantity": 3, "price": 22.5}],
    )
    large = shirt.variants[0]
    client.post("/api/store/cart/items", json={"product_id": mug.id}, headers=shopper_headers)

    resp = _checkout(client, shopper_headers, [
        {"product_id": mug.id, "quantity": 2},
        {"product_id": shirt.id, "variant_id": large.id, "quantity": 1},
    ], notes="Leave at the door")
    assert resp.status_code == status.HTTP_201_CREATED
    order = resp.json()
    assert order["order_number"].startswith("ORD-")
    assert order["status"] == "pending"
    assert order["payment_status"] == "pending"
    assert order["total_amount"] == 42.5
    assert order["item_count"] == 3
    assert order["billing_address"] == order["shipping_address"]
    assert [(i["name"], i["sku"], i["price"], i["total"]) for i in order["items"]] == [
        ("Mug", "MUG-1", 10.0, 20.0),
        ("Shirt - L", "SH-L", 22.5, 22.5),
    ]

    db.expire_all()
    assert db.get(Product, mug.id).stock_quantity == 3
    assert db.get(ProductVariant, large.id).stock_quantity == 2
    assert db.get(Product, shirt.id).stock_quantity == 2

    assert cart_service.count(store.id, f"user:{customer.id}") == 0
    assert f"Order Confirmation - {order['order_number']}" in subjects(outbox)
    assert f"New Order Alert - {order['order_number']}" in subjects(outbox)
    assert {r.lower() for r in recipients(outbox)} == {"jane@example.com", "owner@acme.example.com"}


def test_checkout_rejects_short_stock_without_side_effects(client, db, store, shopper_headers, outbox):
    mug = make_product(db, store, name="Mug", stock=5)
    pen = make_product(db, store, name="Pen", stock=1)

    resp = _checkout(client, shopper_headers, [
        {"product_id": mug.id, "quantity": 2},
        {"product_id": pen.id, "quantity": 2},
    ])
    assert resp.status_code == status.HTTP_400_BAD_REQUEST
    assert resp.json()["detail"] == "Insufficient stock for Pen. Available: 1"

    db.expire_all()
    assert db.get(Product, mug.id).stock_quantity == 5
    assert outbox == []


def test_repeated_lines_share_the_stock(client, db, store, shopper_headers):
    mug = make_product(db, store, name="Mug", stock=5)

    resp = _checkout(client, shopper_headers, [
        {"product_id": mug.id, "quantity": 3},
        {"product_id": mug.id, "quantity": 3},
    ])
    assert resp.status_code == status.HTTP_400_BAD_REQUEST
    assert resp.json()["detail"] == "Insufficient stock for Mug. Available: 5"

    ok = _checkout(client, shopper_headers, [
        {"product_id": mug.id, "quantity": 2},
        {"product_id": mug.id, "quantity": 3},
    ])
    assert ok.status_code == status.HTTP_201_CREATED
    db.expire_all()
    assert db.get(Product, mug.id).stock_quantity == 0


def test_checkout_validation(client, db, store, shopper_headers, guest_headers):
    mug = make_product(db, store, name="Mug")

    assert _checkout(client, guest_headers, [{"product_id": mug.id, "quantity": 1}]).status_code == 401
    assert _checkout(client, shopper_headers, []).status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    bad_method = _checkout(client, shopper_headers, [{"product_id": mug.id, "quantity": 1}], payment_method="cheque")
    assert bad_method.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    missing = _checkout(client, shopper_headers, [{"product_id": 9999, "quantity": 1}])
    assert missing.status_code == status.HTTP_404_NOT_FOUND
    assert missing.json()["detail"] == "Product 9999 not found"


def test_order_limit(client, db):
    plan = make_plan(db, name="Tiny", features={"max_orders": 1})
    tenant, _ = make_tenant(db, "tiny", plan=plan)
    shopper = make_user(db, tenant, "shopper@example.com")
    mug = make_product(db, tenant, name="Mug", stock=None)
    headers = auth_headers(shopper, subdomain="tiny")

    assert _checkout(client, headers, [{"product_id": mug.id, "quantity": 1}]).status_code == 201
    second = _checkout(client, headers, [{"product_id": mug.id, "quantity": 1}])
    assert second.status_code == status.HTTP_403_FORBIDDEN
    assert second.json()["detail"].startswith("Order limit reached (1/1)")


def test_customer_order_history_and_tracking(client, db, store, customer, shopper_headers, plan):
    mug = make_product(db, store, name="Mug")
    order = _checkout(client, shopper_headers, [{"product_id": mug.id, "quantity": 1}]).json()

    other = make_user(db, store, "other@example.com")
    other_headers = auth_headers(other, subdomain="acme")

    mine = client.get("/api/store/orders", headers=shopper_headers).json()
    assert [o["id"] for o in mine["orders"]] == [order["id"]]
    assert client.get("/api/store/orders", headers=other_headers).json()["orders"] == []
    assert client.get(f"/api/store/orders/{order['id']}", headers=other_headers).status_code == 404

    tracked = client.get(
        "/api/store/orders/track",
        params={"order_number": order["order_number"], "email": "JANE@example.com"},
        headers={"X-Tenant-Subdomain": "acme"},
    )
    assert tracked.status_code == status.HTTP_200_OK
    assert tracked.json()["status"] == "pending"

    wrong = client.get(
        "/api/store/orders/track",
        params={"order_number": order["order_number"], "email": "someone@example.com"},
        headers={"X-Tenant-Subdomain": "acme"},
    )
    assert wrong.status_code == status.HTTP_404_NOT_FOUND
    assert wrong.json()["detail"] == "Order not found. Please check your order number and email address."

    make_tenant(db, "other", plan=plan)
    elsewhere = client.get(
        "/api/store/orders/track",
        params={"order_number": order["order_number"], "email": "jane@example.com"},
        headers={"X-Tenant-Subdomain": "other"},
    )
    assert elsewhere.status_code == status.HTTP_404_NOT_FOUND


def test_dashboard_order_listing(client, db, store, shopper_headers, staff_headers):
    mug = make_product(db, store, name="Mug", price=5.0, stock=None)
    small = _checkout(client, shopper_headers, [{"product_id": mug.id, "quantity": 1}]).json()
    big = _checkout(client, shopper_headers, [{"product_id": mug.id, "quantity": 4}]).json()
    client.patch(f"/api/orders/{big['id']}", json={"status": "processing"}, headers=staff_headers)

    by_total = client.get("/api/orders?sort_by=total_amount&sort_order=asc", headers=staff_headers).json()
    assert [o["id"] for o in by_total["orders"]] == [small["id"], big["id"]]
    assert by_total["pagination"]["total"] == 2

    processing = client.get("/api/orders?status=processing", headers=staff_headers).json()
    assert [o["id"] for o in processing["orders"]] == [big["id"]]

    found = client.get(f"/api/orders?search={small['order_number']}", headers=staff_headers).json()
    assert [o["id"] for o in found["orders"]] == [small["id"]]

    paged = client.get("/api/orders?limit=1&page=2", headers=staff_headers).json()
    assert paged["pagination"]["total_pages"] == 2
    assert len(paged["orders"]) == 1


def test_status_workflow_and_emails(client, db, store, shopper_headers, staff_headers, outbox):
    mug = make_product(db, store, name="Mug", stock=5)
    order = _checkout(client, shopper_headers, [{"product_id": mug.id, "quantity": 1}]).json()
    url = f"/api/orders/{order['id']}"

    skip = client.patch(url, json={"status": "delivered"}, headers=staff_headers)
    assert skip.status_code == status.HTTP_400_BAD_REQUEST
    assert skip.json()["detail"] == "Cannot change order status from pending to delivered"

    client.patch(url, json={"status": "processing"}, headers=staff_headers)
    shipped = client.patch(
        url,
        json={"status": "shipped", "tracking_number": "TRK123", "shipping_carrier": "DHL"},
        headers=staff_headers,
    )
    assert shipped.json()["tracking_number"] == "TRK123"
    assert f"Your Order Has Shipped - {order['order_number']}" in subjects(outbox)

    delivered = client.patch(url, json={"status": "delivered"}, headers=staff_headers)
    assert delivered.json()["status"] == "delivered"
    assert f"Order Delivered - {order['order_number']}" in subjects(outbox)

    cancel = client.post(f"{url}/cancel", json={"reason": "Changed mind"}, headers=staff_headers)
    assert cancel.status_code == status.HTTP_400_BAD_REQUEST
    assert cancel.json()["detail"] == "Cannot cancel a delivered order"


def test_cancel_restocks_and_refunds(client, db, store, shopper_headers, staff_headers, outbox):
    mug = make_product(db, store, name="Mug", price=10.0, stock=5)
    order = _checkout(client, shopper_headers, [{"product_id": mug.id, "quantity": 2}], notes="Gift").json()
    url = f"/api/orders/{order['id']}"

    paid = client.patch(
        f"{url}/payment",
        json={"payment_status": "paid", "transaction_id": "TX-1", "payment_gateway": "pesapal"},
        headers=staff_headers,
    )
    assert paid.json()["payment_status"] == "paid"
    assert paid.json()["transaction_id"] == "TX-1"

    cancelled = client.post(
        f"{url}/cancel",
        json={"reason": "Out of business", "refund": True, "notes": "Refunded via gateway"},
        headers=staff_headers,
    )
    assert cancelled.status_code == status.HTTP_200_OK
    body = cancelled.json()
    assert body["status"] == "cancelled"
    assert body["payment_status"] == "refunded"
    assert body["cancellation_reason"] == "Out of business"
    assert body["cancelled_at"] is not None
    assert body["notes"] == "Gift\nRefunded via gateway"

    db.expire_all()
    assert db.get(Product, mug.id).stock_quantity == 5
    cancel_mail = next(m for m in outbox if m["subject"] == f"Order Cancelled - {order['order_number']}")
    assert "20.00" in cancel_mail["content"][0]["value"]

    again = client.post(f"{url}/cancel", json={"reason": "Twice"}, headers=staff_headers)
    assert again.json()["detail"] == "Order is already cancelled"


def test_cancelling_through_status_restocks(client, db, store, shopper_headers, staff_headers):
    shirt = make_product(db, store, name="Shirt", variants=[{"name": "M", "stock_quantity": 4}])
    variant_id = shirt.variants[0].id
    order = _checkout(
        client, shopper_headers, [{"product_id": shirt.id, "variant_id": variant_id, "quantity": 3}]
    ).json()

    db.expire_all()
    assert db.get(ProductVariant, variant_id).stock_quantity == 1

    resp = client.patch(f"/api/orders/{order['id']}", json={"status": "cancelled"}, headers=staff_headers)
    assert resp.json()["cancelled_at"] is not None

    db.expire_all()
    assert db.get(ProductVariant, variant_id).stock_quantity == 4
    assert db.get(Product, shirt.id).stock_quantity == 4


def test_orders_are_tenant_scoped(client, db, store, plan, shopper_headers):
    mug = make_product(db, store, name="Mug")
    order = _checkout(client, shopper_headers, [{"product_id": mug.id, "quantity": 1}]).json()
    _, other_admin = make_tenant(db, "other", plan=plan)

    assert client.get(f"/api/orders/{order['id']}", headers=auth_headers(other_admin)).status_code == 404
