from fastapi import status

from conftest import PASSWORD, auth_headers, make_plan, make_tenant, make_user
from app.models.tenant import TenantStatus
from app.models.user import UserRole


def test_login_and_me(client, store_admin):
    resp = client.post("/api/auth/login", json={"email": "ADMIN@acme.example.com", "password": PASSWORD})
    assert resp.status_code == status.HTTP_200_OK
    body = resp.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["role"] == "tenant_admin"

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.status_code == status.HTTP_200_OK
    assert me.json()["email"] == "admin@acme.example.com"


def test_login_rejects_wrong_password(client, store_admin):
    resp = client.post("/api/auth/login", json={"email": "admin@acme.example.com", "password": "nope-nope"})
    assert resp.status_code == status.HTTP_401_UNAUTHORIZED
    assert resp.json()["detail"] == "Incorrect email or password"


def test_inactive_user_cannot_log_in(client, db, staff):
    staff.is_active = False
    db.commit()
    resp = client.post("/api/auth/login", json={"email": "staff@acme.example.com", "password": PASSWORD})
    assert resp.status_code == status.HTTP_403_FORBIDDEN


def test_me_requires_a_valid_token(client):
    assert client.get("/api/auth/me").status_code == status.HTTP_401_UNAUTHORIZED
    resp = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == status.HTTP_401_UNAUTHORIZED


def test_customer_registration_on_storefront(client, guest_headers):
    payload = {"email": "new@example.com", "password": "longpassword", "name": "New Shopper"}
    resp = client.post("/api/auth/register", json=payload, headers=guest_headers)
    assert resp.status_code == status.HTTP_201_CREATED
    user = resp.json()["user"]
    assert user["role"] == "customer"
    assert user["tenant_id"] is not None

    again = client.post("/api/auth/register", json=payload, headers=guest_headers)
    assert again.status_code == status.HTTP_409_CONFLICT


def test_registration_needs_a_known_store(client, store):
    payload = {"email": "new@example.com", "password": "longpassword", "name": "New Shopper"}
    resp = client.post("/api/auth/register", json=payload, headers={"X-Tenant-Subdomain": "nowhere"})
    assert resp.status_code == status.HTTP_404_NOT_FOUND
    assert resp.json()["detail"] == "Store not found"


def test_storefront_resolves_store_from_host(client, store):
    payload = {"email": "host@example.com", "password": "longpassword", "name": "Host Shopper"}
    resp = client.post("/api/auth/register", json=payload, headers={"Host": "acme.storeflow.app"})
    assert resp.status_code == status.HTTP_201_CREATED
    assert resp.json()["user"]["tenant_id"] == store.id


def test_customer_limit_blocks_registration(client, db):
    plan = make_plan(db, name="Tiny", features={"max_customers": 1})
    tenant, _ = make_tenant(db, "tiny", plan=plan)
    make_user(db, tenant, "first@example.com")

    payload = {"email": "second@example.com", "password": "longpassword", "name": "Second"}
    resp = client.post("/api/auth/register", json=payload, headers={"X-Tenant-Subdomain": "tiny"})
    assert resp.status_code == status.HTTP_403_FORBIDDEN
    assert resp.json()["detail"].startswith("Customer limit reached (1/1)")


def test_suspended_store_is_closed(client, db, store):
    store.status = TenantStatus.suspended
    db.commit()
    resp = client.get("/api/store/cart", headers={"X-Tenant-Subdomain": "acme"})
    assert resp.status_code == status.HTTP_403_FORBIDDEN
    assert resp.json()["detail"] == "Store is suspended"


def test_role_guards(client, landlord_headers, staff_headers, admin_headers):
    # staff cannot manage users, only admins can
    assert client.get("/api/users", headers=staff_headers).status_code == status.HTTP_403_FORBIDDEN
    assert client.get("/api/users", headers=admin_headers).status_code == status.HTTP_200_OK
    # dashboard users cannot reach the landlord console
    assert client.get("/api/admin/tenants", headers=admin_headers).status_code == status.HTTP_403_FORBIDDEN
    # the landlord has no store of its own
    assert client.get("/api/products", headers=landlord_headers).status_code == status.HTTP_403_FORBIDDEN


def test_customer_token_is_bound_to_its_store(client, db, customer):
    make_tenant(db, "other", plan=make_plan(db, name="Other"))
    resp = client.get("/api/store/cart", headers=auth_headers(customer, subdomain="other"))
    assert resp.status_code == status.HTTP_403_FORBIDDEN
    assert resp.json()["detail"] == "User does not belong to this store"


def test_tenant_user_management(client, admin_headers, store_admin):
    payload = {"email": "helper@example.com", "password": "longpassword", "name": "Helper"}
    created = client.post("/api/users", json=payload, headers=admin_headers)
    assert created.status_code == status.HTTP_201_CREATED
    user_id = created.json()["id"]
    assert created.json()["role"] == "tenant_staff"

    promoted = client.patch(f"/api/users/{user_id}", json={"role": "tenant_admin"}, headers=admin_headers)
    assert promoted.json()["role"] == UserRole.tenant_admin.value

    listed = client.get("/api/users", headers=admin_headers).json()
    assert {u["email"] for u in listed} == {"admin@acme.example.com", "helper@example.com"}

    self_delete = client.delete(f"/api/users/{store_admin.id}", headers=admin_headers)
    assert self_delete.status_code == status.HTTP_400_BAD_REQUEST

    assert client.delete(f"/api/users/{user_id}", headers=admin_headers).status_code == status.HTTP_200_OK
    assert client.get(f"/api/users/{user_id}", headers=admin_headers).status_code == status.HTTP_404_NOT_FOUND
