from fastapi import status

from conftest import make_product
from app.models.product import Product, ProductVariant


def _adjust(client, headers, **payload):
    return client.post("/api/inventory/adjust", json=payload, headers=headers)


def test_adjust_product_stock_and_history(client, db, store, staff, staff_headers):
    product = make_product(db, store, stock=10, sku="MUG-1")

    resp = _adjust(client, staff_headers, product_id=product.id, adjustment_type="sale", quantity=3, reason="POS")
    assert resp.status_code == status.HTTP_200_OK
    assert resp.json()["message"] == "Inventory adjusted successfully"
    assert resp.json()["adjustment"]["quantity_before"] == 10
    assert resp.json()["adjustment"]["quantity_after"] == 7
    assert resp.json()["adjustment"]["quantity_change"] == -3

    _adjust(client, staff_headers, product_id=product.id, adjustment_type="return", quantity=1)
    _adjust(client, staff_headers, product_id=product.id, adjustment_type="damage", quantity=50)

    db.expire_all()
    assert db.get(Product, product.id).stock_quantity == 0

    history = client.get(f"/api/inventory/history?product_id={product.id}", headers=staff_headers).json()
    assert history["pagination"]["total"] == 3
    newest = history["history"][0]
    assert newest["adjustment_type"] == "damage"
    assert newest["quantity_before"] == 8
    assert newest["quantity_after"] == 0
    assert newest["quantity_change"] == -50
    assert newest["adjusted_by"] == staff.id

    only_sales = client.get("/api/inventory/history?adjustment_type=sale", headers=staff_headers).json()
    assert [h["reason"] for h in only_sales["history"]] == ["POS"]


def test_adjust_target_rules(client, db, store, staff_headers):
    product = make_product(db, store, variants=[{"name": "S", "stock_quantity": 1}])
    variant_id = product.variants[0].id

    neither = _adjust(client, staff_headers, adjustment_type="increase", quantity=1)
    assert neither.status_code == status.HTTP_400_BAD_REQUEST
    assert neither.json()["detail"] == "Either product_id or variant_id must be provided"

    both = _adjust(client, staff_headers, product_id=product.id, variant_id=variant_id, adjustment_type="increase", quantity=1)
    assert both.status_code == status.HTTP_400_BAD_REQUEST

    missing = _adjust(client, staff_headers, variant_id=9999, adjustment_type="increase", quantity=1)
    assert missing.status_code == status.HTTP_404_NOT_FOUND

    negative = _adjust(client, staff_headers, product_id=product.id, adjustment_type="increase", quantity=-1)
    assert negative.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_variant_adjustment_resyncs_parent(client, db, store, staff_headers):
    product = make_product(
        db, store, variants=[{"name": "S", "stock_quantity": 2}, {"name": "M", "stock_quantity": 3}]
    )
    variant_id = product.variants[0].id

    resp = _adjust(client, staff_headers, variant_id=variant_id, adjustment_type="set", quantity=10)
    assert resp.json()["adjustment"]["quantity_change"] == 8

    db.expire_all()
    assert db.get(ProductVariant, variant_id).stock_quantity == 10
    assert db.get(Product, product.id).stock_quantity == 13


def test_bulk_update_reports_errors_and_keeps_going(client, db, store, staff_headers):
    mug = make_product(db, store, name="Mug", stock=5)
    shirt = make_product(db, store, name="Shirt", variants=[{"name": "S", "stock_quantity": 1}])
    variant_id = shirt.variants[0].id

    resp = client.post(
        "/api/inventory/bulk-update",
        json={"updates": [
            {"product_id": mug.id, "adjustment_type": "increase", "quantity": 5},
            {"product_id": 9999, "adjustment_type": "increase", "quantity": 1},
            {"variant_id": variant_id, "adjustment_type": "set", "quantity": 4},
            {"product_id": mug.id, "variant_id": variant_id, "adjustment_type": "decrease", "quantity": 1},
        ]},
        headers=staff_headers,
    )
    assert resp.status_code == status.HTTP_200_OK
    body = resp.json()
    assert body["message"] == "Processed 2 updates, 2 errors"
    assert [r["quantity_after"] for r in body["results"]] == [10, 4]
    assert [(e["index"], e["error"]) for e in body["errors"]] == [
        (1, "Product not found"),
        (3, "Provide either product_id or variant_id, not both"),
    ]

    db.expire_all()
    assert db.get(Product, mug.id).stock_quantity == 10
    assert db.get(Product, shirt.id).stock_quantity == 4


def test_bulk_decrease_floors_at_zero(client, db, store, staff_headers):
    pen = make_product(db, store, name="Pen", stock=4)

    resp = client.post(
        "/api/inventory/bulk-update",
        json={"updates": [{"product_id": pen.id, "adjustment_type": "decrease", "quantity": 99}]},
        headers=staff_headers,
    )
    result = resp.json()["results"][0]
    assert result["quantity_before"] == 4
    assert result["quantity_after"] == 0
    assert result["quantity_change"] == -99

    db.expire_all()
    assert db.get(Product, pen.id).stock_quantity == 0


def test_bulk_update_needs_items(client, staff_headers):
    resp = client.post("/api/inventory/bulk-update", json={"updates": []}, headers=staff_headers)
    assert resp.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_low_stock_alerts_and_threshold(client, db, store, staff_headers, admin_headers):
    make_product(db, store, name="Plenty", stock=50)
    make_product(db, store, name="Scarce", stock=2)
    make_product(db, store, name="Untracked", stock=None)
    make_product(db, store, name="Shirt", variants=[{"name": "XL", "stock_quantity": 0}, {"name": "S", "stock_quantity": 30}])

    alerts = client.get("/api/inventory/alerts", headers=staff_headers).json()
    assert alerts["threshold"] == 10
    assert [(i["type"], i["name"]) for i in alerts["items"]] == [("variant", "Shirt - XL"), ("product", "Scarce")]

    assert client.put("/api/inventory/settings", json={"low_stock_threshold": 60}, headers=staff_headers).status_code == 403
    saved = client.put("/api/inventory/settings", json={"low_stock_threshold": 60}, headers=admin_headers)
    assert saved.json() == {"low_stock_threshold": 60}
    assert client.get("/api/inventory/settings", headers=staff_headers).json()["low_stock_threshold"] == 60

    alerts = client.get("/api/inventory/alerts", headers=staff_headers).json()
    assert alerts["total"] == 4

    override = client.get("/api/inventory/alerts?threshold=0", headers=staff_headers).json()
    assert [i["name"] for i in override["items"]] == ["Shirt - XL"]


def test_sync_recomputes_variant_totals(client, db, store, staff_headers, landlord_headers):
    product = make_product(db, store, variants=[{"name": "S", "stock_quantity": 2}, {"name": "M", "stock_quantity": 2}])
    product.stock_quantity = 99
    db.commit()

    resp = client.post("/api/inventory/sync", headers=staff_headers)
    assert resp.json() == {"message": "Synced 1 products", "synced": 1}
    db.expire_all()
    assert db.get(Product, product.id).stock_quantity == 4

    product.stock_quantity = 50
    db.commit()
    resp = client.post(f"/api/admin/inventory/sync-product-stocks?tenant_id={store.id}", headers=landlord_headers)
    assert resp.json()["synced"] == 1
    db.expire_all()
    assert db.get(Product, product.id).stock_quantity == 4


CSV = (
    "Type,SKU,Adjustment Type,Quantity,Reason\n"
    "product,MUG-1,increase,10,Restock\n"
    "variant,TEE-S,reduce,1,Damaged\n"
    "product,NOPE,set,3,\n"
    "gadget,MUG-1,set,3,\n"
    "product,MUG-1,set,2.5,\n"
)


def test_import_preview_then_apply(client, db, store, staff_headers):
    mug = make_product(db, store, name="Mug", sku="MUG-1", stock=5)
    tee = make_product(db, store, name="Tee", variants=[{"name": "S", "sku": "TEE-S", "stock_quantity": 4}])

    files = {"file": ("stock.csv", CSV.encode(), "text/csv")}
    preview = client.post("/api/inventory/import", files=files, headers=staff_headers)
    assert preview.status_code == status.HTTP_200_OK
    body = preview.json()
    assert body["applied"] is False
    assert body["result"] is None
    assert [u["adjustment_type"] for u in body["updates"]] == ["increase", "decrease"]
    assert body["errors"] == [
        {"row": 4, "error": "Product not found: NOPE"},
        {"row": 5, "error": "Type must be 'product' or 'variant'"},
        {"row": 6, "error": "Quantity must be a non-negative integer"},
    ]
    db.expire_all()
    assert db.get(Product, mug.id).stock_quantity == 5

    files = {"file": ("stock.csv", CSV.encode(), "text/csv")}
    applied = client.post("/api/inventory/import", files=files, data={"apply": "true"}, headers=staff_headers)
    assert applied.json()["applied"] is True
    assert applied.json()["result"]["message"] == "Processed 2 updates"

    db.expire_all()
    assert db.get(Product, mug.id).stock_quantity == 15
    assert db.get(Product, tee.id).stock_quantity == 3


def test_import_rejects_bad_files(client, staff_headers):
    missing = client.post(
        "/api/inventory/import",
        files={"file": ("stock.csv", b"SKU,Quantity\nMUG-1,3\n", "text/csv")},
        headers=staff_headers,
    )
    assert missing.status_code == status.HTTP_400_BAD_REQUEST
    assert missing.json()["detail"] == "Missing required columns: type, adjustment type"

    wrong_type = client.post(
        "/api/inventory/import",
        files={"file": ("stock.pdf", b"%PDF", "application/pdf")},
        headers=staff_headers,
    )
    assert wrong_type.status_code == status.HTTP_400_BAD_REQUEST


def test_import_template(client, staff_headers):
    resp = client.get("/api/inventory/import/template", headers=staff_headers)
    assert resp.status_code == status.HTTP_200_OK
    assert resp.headers["content-type"].startswith("text/csv")
    assert resp.text.splitlines()[0] == "Type,SKU,Adjustment Type,Quantity,Reason"
