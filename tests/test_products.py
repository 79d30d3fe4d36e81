from fastapi import status

from conftest import auth_headers, make_plan, make_product, make_tenant


def test_product_crud_flow(client, staff_headers):
    payload = {"name": "Mug", "sku": "MUG-1", "price": 12.5, "sale_price": 10.0, "stock_quantity": 40}
    created = client.post("/api/products", json=payload, headers=staff_headers)
    assert created.status_code == status.HTTP_201_CREATED
    product_id = created.json()["id"]
    assert created.json()["variants"] == []

    listed = client.get("/api/products?search=mug", headers=staff_headers).json()
    assert listed["pagination"] == {"page": 1, "limit": 20, "total": 1, "total_pages": 1}
    assert listed["products"][0]["sku"] == "MUG-1"

    updated = client.patch(f"/api/products/{product_id}", json={"status": "archived"}, headers=staff_headers)
    assert updated.json()["status"] == "archived"

    archived = client.get("/api/products?status=archived", headers=staff_headers).json()
    assert archived["pagination"]["total"] == 1

    deleted = client.delete(f"/api/products/{product_id}", headers=staff_headers)
    assert deleted.json()["message"] == "Product deleted successfully"
    assert client.get(f"/api/products/{product_id}", headers=staff_headers).status_code == 404


def test_duplicate_sku_conflicts(client, staff_headers):
    payload = {"name": "Mug", "sku": "MUG-1", "price": 12.5}
    assert client.post("/api/products", json=payload, headers=staff_headers).status_code == 201
    again = client.post("/api/products", json=payload, headers=staff_headers)
    assert again.status_code == status.HTTP_409_CONFLICT
    assert again.json()["detail"] == "SKU already exists"


def test_negative_price_is_rejected(client, staff_headers):
    resp = client.post("/api/products", json={"name": "Mug", "price": -1}, headers=staff_headers)
    assert resp.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_products_are_tenant_scoped(client, db, store, plan, staff_headers):
    _, other_admin = make_tenant(db, "other", plan=plan)
    product = make_product(db, store, name="Secret")

    resp = client.get(f"/api/products/{product.id}", headers=auth_headers(other_admin))
    assert resp.status_code == status.HTTP_404_NOT_FOUND
    assert client.get("/api/products", headers=auth_headers(other_admin)).json()["products"] == []


def test_product_stock_follows_variants(client, staff_headers):
    payload = {
        "name": "Hoodie",
        "price": 45.0,
        "variants": [
            {"name": "S", "sku": "HOOD-S", "stock_quantity": 3},
            {"name": "M", "sku": "HOOD-M", "stock_quantity": 4, "price": 48.0},
        ],
    }
    created = client.post("/api/products", json=payload, headers=staff_headers)
    assert created.status_code == status.HTTP_201_CREATED
    product = created.json()
    assert product["stock_quantity"] == 7
    product_id = product["id"]
    small, medium = product["variants"]

    added = client.post(
        f"/api/products/{product_id}/variants",
        json={"name": "L", "sku": "HOOD-L", "stock_quantity": 5},
        headers=staff_headers,
    )
    assert added.status_code == status.HTTP_201_CREATED
    assert client.get(f"/api/products/{product_id}", headers=staff_headers).json()["stock_quantity"] == 12

    client.patch(
        f"/api/products/{product_id}/variants/{small['id']}",
        json={"stock_quantity": 0},
        headers=staff_headers,
    )
    assert client.get(f"/api/products/{product_id}", headers=staff_headers).json()["stock_quantity"] == 9

    removed = client.delete(f"/api/products/{product_id}/variants/{medium['id']}", headers=staff_headers)
    assert removed.json()["message"] == "Variant deleted successfully"
    assert client.get(f"/api/products/{product_id}", headers=staff_headers).json()["stock_quantity"] == 5


def test_variant_must_belong_to_product(client, db, store, staff_headers):
    shirt = make_product(db, store, name="Shirt", variants=[{"name": "S", "stock_quantity": 1}])
    mug = make_product(db, store, name="Mug")
    variant_id = shirt.variants[0].id

    resp = client.patch(f"/api/products/{mug.id}/variants/{variant_id}", json={"name": "X"}, headers=staff_headers)
    assert resp.status_code == status.HTTP_404_NOT_FOUND


def test_product_limit(client, db):
    plan = make_plan(db, name="Tiny", features={"max_products": 1})
    tenant, admin = make_tenant(db, "tiny", plan=plan)
    make_product(db, tenant)

    resp = client.post("/api/products", json={"name": "Second", "price": 1}, headers=auth_headers(admin))
    assert resp.status_code == status.HTTP_403_FORBIDDEN
    assert resp.json()["detail"] == (
        "Product limit reached (1/1). Please upgrade your plan to add more products."
    )


def test_store_without_plan_cannot_add_products(client, db):
    _, admin = make_tenant(db, "noplan")
    resp = client.post("/api/products", json={"name": "Mug", "price": 1}, headers=auth_headers(admin))
    assert resp.status_code == status.HTTP_403_FORBIDDEN
    assert resp.json()["detail"] == "No active subscription plan"
