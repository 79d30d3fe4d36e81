from fastapi import status

from conftest import make_product, make_tenant
from app.models.product import ProductStatus
from app.services.cart import CART_COOKIE_NAME, cart_service


def test_guest_cart_flow(client, db, store, guest_headers):
    mug = make_product(db, store, name="Mug", price=12.0, sale_price=9.5, stock=5, sku="MUG-1")

    assert client.get("/api/store/cart", headers=guest_headers).json() == {"items": [], "total": 0, "item_count": 0}

    added = client.post("/api/store/cart/items", json={"product_id": mug.id, "quantity": 2}, headers=guest_headers)
    assert added.status_code == status.HTTP_200_OK
    assert CART_COOKIE_NAME in added.cookies
    assert len(added.cookies[CART_COOKIE_NAME]) == 64
    cart = added.json()
    assert cart["items"][0]["price"] == 9.5
    assert cart["items"][0]["sku"] == "MUG-1"
    assert cart["total"] == 19.0

    again = client.post("/api/store/cart/items", json={"product_id": mug.id}, headers=guest_headers)
    assert again.json()["item_count"] == 3
    assert len(again.json()["items"]) == 1

    assert client.get("/api/store/cart/count", headers=guest_headers).json() == {"count": 3}

    updated = client.patch(
        "/api/store/cart/items", json={"product_id": mug.id, "quantity": 1}, headers=guest_headers
    )
    assert updated.json()["total"] == 9.5

    removed = client.patch(
        "/api/store/cart/items", json={"product_id": mug.id, "quantity": 0}, headers=guest_headers
    )
    assert removed.json()["items"] == []


def test_stock_is_checked_against_the_whole_line(client, db, store, guest_headers):
    mug = make_product(db, store, name="Mug", stock=3)
    client.post("/api/store/cart/items", json={"product_id": mug.id, "quantity": 2}, headers=guest_headers)

    resp = client.post("/api/store/cart/items", json={"product_id": mug.id, "quantity": 2}, headers=guest_headers)
    assert resp.status_code == status.HTTP_400_BAD_REQUEST
    assert resp.json()["detail"] == "Insufficient stock for Mug. Available: 3"


def test_untracked_products_have_no_stock_limit(client, db, store, guest_headers):
    ebook = make_product(db, store, name="E-book", stock=None)
    resp = client.post("/api/store/cart/items", json={"product_id": ebook.id, "quantity": 500}, headers=guest_headers)
    assert resp.status_code == status.HTTP_200_OK


def test_variant_lines(client, db, store, guest_headers):
    shirt = make_product(
        db, store, name="Shirt", price=20.0,
        variants=[{"name": "S", "stock_quantity": 2}, {"name": "L", "stock_quantity": 2, "price": 25.0}],
    )
    small, large = shirt.variants

    client.post("/api/store/cart/items", json={"product_id": shirt.id, "variant_id": small.id}, headers=guest_headers)
    cart = client.post(
        "/api/store/cart/items", json={"product_id": shirt.id, "variant_id": large.id}, headers=guest_headers
    ).json()
    assert [(i["name"], i["price"]) for i in cart["items"]] == [("Shirt - S", 20.0), ("Shirt - L", 25.0)]

    cart = client.post(
        "/api/store/cart/items/remove", json={"product_id": shirt.id, "variant_id": small.id}, headers=guest_headers
    ).json()
    assert [i["name"] for i in cart["items"]] == ["Shirt - L"]


def test_unavailable_items_cannot_be_added(client, db, store, guest_headers):
    draft = make_product(db, store, name="Draft", status=ProductStatus.draft)
    shirt = make_product(db, store, name="Shirt", variants=[{"name": "S", "stock_quantity": 2}])
    mug = make_product(db, store, name="Mug")

    resp = client.post("/api/store/cart/items", json={"product_id": draft.id}, headers=guest_headers)
    assert resp.status_code == status.HTTP_400_BAD_REQUEST
    assert resp.json()["detail"] == "Product is not available"

    wrong_variant = {"product_id": mug.id, "variant_id": shirt.variants[0].id}
    assert client.post("/api/store/cart/items", json=wrong_variant, headers=guest_headers).status_code == 404
    assert client.post("/api/store/cart/items", json={"product_id": 9999}, headers=guest_headers).status_code == 404


def test_updating_a_missing_line(client, db, store, guest_headers):
    mug = make_product(db, store, name="Mug")
    resp = client.patch("/api/store/cart/items", json={"product_id": mug.id, "quantity": 2}, headers=guest_headers)
    assert resp.status_code == status.HTTP_404_NOT_FOUND
    assert resp.json()["detail"] == "Item not in cart"


def test_clear_cart(client, db, store, shopper_headers, customer):
    mug = make_product(db, store, name="Mug")
    client.post("/api/store/cart/items", json={"product_id": mug.id}, headers=shopper_headers)
    assert cart_service.count(store.id, f"user:{customer.id}") == 1

    cleared = client.delete("/api/store/cart", headers=shopper_headers)
    assert cleared.json()["item_count"] == 0
    assert cart_service.count(store.id, f"user:{customer.id}") == 0


def test_signed_in_carts_do_not_use_the_cookie(client, db, store, shopper_headers):
    mug = make_product(db, store, name="Mug")
    resp = client.post("/api/store/cart/items", json={"product_id": mug.id}, headers=shopper_headers)
    assert CART_COOKIE_NAME not in resp.cookies


def test_merge_guest_cart_after_login(client, db, store, customer, guest_headers, shopper_headers):
    mug = make_product(db, store, name="Mug", stock=20)
    pen = make_product(db, store, name="Pen", stock=20)

    client.post("/api/store/cart/items", json={"product_id": mug.id, "quantity": 1}, headers=shopper_headers)

    client.post("/api/store/cart/items", json={"product_id": mug.id, "quantity": 2}, headers=guest_headers)
    client.post("/api/store/cart/items", json={"product_id": pen.id, "quantity": 1}, headers=guest_headers)

    resp = client.post("/api/store/cart/merge", headers=shopper_headers)
    assert resp.status_code == status.HTTP_200_OK
    body = resp.json()
    assert body["message"] == "Cart merged successfully"
    assert body["merged"] == 1
    assert body["updated"] == 1
    assert {i["name"]: i["quantity"] for i in body["cart"]["items"]} == {"Mug": 3, "Pen": 1}

    # the guest session is gone
    assert client.get("/api/store/cart", headers=guest_headers).json()["item_count"] == 0
    again = client.post("/api/store/cart/merge", headers=shopper_headers)
    assert again.status_code == status.HTTP_400_BAD_REQUEST
    assert again.json()["detail"] == "No guest cart to merge"


def test_merge_requires_login(client, guest_headers):
    assert client.post("/api/store/cart/merge", headers=guest_headers).status_code == status.HTTP_401_UNAUTHORIZED


def test_carts_are_per_store(client, db, store, plan, guest_headers):
    make_tenant(db, "other", plan=plan)
    mug = make_product(db, store, name="Mug")
    client.post("/api/store/cart/items", json={"product_id": mug.id}, headers=guest_headers)

    other = client.get("/api/store/cart", headers={"X-Tenant-Subdomain": "other"}).json()
    assert other["item_count"] == 0
