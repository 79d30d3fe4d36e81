import os
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

TESTS_DIR = Path(__file__).resolve().parent

os.environ["DATABASE_URL"] = f"sqlite:///{TESTS_DIR / 'test_storeflow.db'}"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
# Keep tests off the network and on the in-memory cart store
os.environ["SENDGRID_API_KEY"] = ""
os.environ["VERCEL_TOKEN"] = ""
os.environ["VERCEL_PROJECT_ID"] = ""
os.environ["CRON_SECRET_TOKEN"] = ""
os.environ["REDIS_URL"] = ""

from main import app  # noqa: E402
from app.database import Base, SessionLocal, engine  # noqa: E402
from app.crud.tenant import tenant as tenant_crud  # noqa: E402
from app.crud.user import user as user_crud  # noqa: E402
from app.models.price_plan import PricePlan  # noqa: E402
from app.models.product import Product, ProductVariant  # noqa: E402
from app.models.user import UserRole  # noqa: E402
from app.services.cart import MemoryCartStore, cart_service  # noqa: E402
from app.services.email import EmailService  # noqa: E402
from app.services.user import issue_token  # noqa: E402
from app.utils.dates import utcnow, add_months  # noqa: E402

PASSWORD = "password123"
UNLIMITED = {"max_products": -1, "max_orders": -1, "max_customers": -1, "max_staff_users": -1}


@pytest.fixture(autouse=True)
def prepare_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    cart_service.store = MemoryCartStore()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def outbox(monkeypatch):
    """Every email the app tries to send, as SendGrid payloads."""
    sent = []

    def fake_deliver(self, message):
        sent.append(message)
        return True

    monkeypatch.setattr(EmailService, "_deliver", fake_deliver)
    return sent


def recipients(outbox):
    return [message["personalizations"][0]["to"][0]["email"] for message in outbox]


def subjects(outbox):
    return [message["subject"] for message in outbox]


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def auth_headers(user, subdomain=None):
    headers = {"Authorization": f"Bearer {issue_token(user)}"}
    if subdomain:
        headers["X-Tenant-Subdomain"] = subdomain
    return headers


def make_plan(db, name="Basic", price=29.0, duration_months=1, trial_days=0, features=None, **kwargs):
    plan = PricePlan(
        name=name,
        price=price,
        duration_months=duration_months,
        trial_days=trial_days,
        features=dict(UNLIMITED) if features is None else features,
        **kwargs,
    )
    db.add(plan)
    db.commit()
    db.refresh(plan)
    return plan


def make_tenant(db, subdomain="acme", plan=None, admin_email=None, **fields):
    now = utcnow()
    tenant, admin = tenant_crud.create_with_user(
        db,
        name=subdomain.title(),
        subdomain=subdomain,
        contact_email=f"owner@{subdomain}.example.com",
        admin_email=admin_email or f"admin@{subdomain}.example.com",
        admin_password=PASSWORD,
        admin_name="Store Admin",
        plan_id=plan.id if plan else None,
        start_date=now if plan else None,
        expire_date=add_months(now, 1) if plan else None,
    )
    if fields:
        tenant = tenant_crud.update(db, db_obj=tenant, fields=fields)
    return tenant, admin


def make_user(db, tenant, email, role=UserRole.customer, name="Test User"):
    return user_crud.create(
        db,
        email=email,
        password=PASSWORD,
        tenant_id=tenant.id if tenant else None,
        role=role,
        name=name,
    )


def make_product(db, tenant, name="T-Shirt", price=20.0, stock=10, sku=None, variants=None, **fields):
    product = Product(
        tenant_id=tenant.id,
        name=name,
        price=price,
        stock_quantity=stock,
        sku=sku,
        **fields,
    )
    for variant in variants or []:
        product.variants.append(ProductVariant(tenant_id=tenant.id, **variant))
    if variants:
        product.stock_quantity = sum(v.get("stock_quantity", 0) for v in variants)
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


@pytest.fixture
def plan(db):
    return make_plan(db)


@pytest.fixture
def landlord(db):
    return make_user(db, None, "landlord@example.com", role=UserRole.landlord, name="Platform Owner")


@pytest.fixture
def landlord_headers(landlord):
    return auth_headers(landlord)


@pytest.fixture
def store(db, plan):
    tenant, _ = make_tenant(db, "acme", plan=plan)
    return tenant


@pytest.fixture
def store_admin(db, store):
    return user_crud.get_by_email(db, "admin@acme.example.com")


@pytest.fixture
def admin_headers(store_admin):
    return auth_headers(store_admin)


@pytest.fixture
def staff(db, store):
    return make_user(db, store, "staff@acme.example.com", role=UserRole.tenant_staff, name="Sam Staff")


@pytest.fixture
def staff_headers(staff):
    return auth_headers(staff)


@pytest.fixture
def customer(db, store):
    return make_user(db, store, "jane@example.com", name="Jane Doe")


@pytest.fixture
def shopper_headers(customer):
    return auth_headers(customer, subdomain="acme")


@pytest.fixture
def guest_headers(store):
    return {"X-Tenant-Subdomain": "acme"}
