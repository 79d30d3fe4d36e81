from fastapi import status

from conftest import auth_headers, make_tenant, make_user, recipients, subjects
from app.core.config import settings


def _open_ticket(client, headers, subject="Where is my parcel?", **extra):
    payload = {"subject": subject, "description": "It has been a week.", **extra}
    return client.post("/api/store/support/tickets", json=payload, headers=headers)


def test_customer_opens_ticket_and_store_is_told(client, store, customer, shopper_headers, outbox):
    resp = _open_ticket(client, shopper_headers, priority="high")
    assert resp.status_code == status.HTTP_201_CREATED
    ticket = resp.json()
    assert ticket["status"] == "open"
    assert ticket["priority"] == "high"
    assert ticket["user_id"] == customer.id

    assert subjects(outbox) == ["New Support Ticket: Where is my parcel?"]
    assert recipients(outbox) == ["owner@acme.example.com"]


def test_customers_only_see_their_own_tickets(client, db, store, shopper_headers):
    ticket = _open_ticket(client, shopper_headers).json()
    other = make_user(db, store, "other@example.com")
    other_headers = auth_headers(other, subdomain="acme")

    assert client.get("/api/store/support/tickets", headers=other_headers).json()["tickets"] == []
    assert client.get(f"/api/store/support/tickets/{ticket['id']}", headers=other_headers).status_code == 404
    mine = client.get("/api/store/support/tickets", headers=shopper_headers).json()
    assert [t["id"] for t in mine["tickets"]] == [ticket["id"]]


def test_conversation_between_customer_and_staff(client, store, staff, shopper_headers, staff_headers, outbox):
    ticket = _open_ticket(client, shopper_headers).json()
    messages_url = f"/api/support/tickets/{ticket['id']}/messages"

    reply = client.post(
        messages_url,
        json={"message": "It ships today.", "attachments": ["https://cdn.example.com/label.pdf"]},
        headers=staff_headers,
    )
    assert reply.status_code == status.HTTP_201_CREATED
    assert reply.json()["is_staff"] is True
    assert reply.json()["user_id"] == staff.id
    assert reply.json()["attachments"] == ["https://cdn.example.com/label.pdf"]
    assert outbox[-1]["subject"] == "Reply to Your Support Ticket: Where is my parcel?"
    assert recipients(outbox)[-1] == "jane@example.com"

    answer = client.post(
        f"/api/store/support/tickets/{ticket['id']}/messages",
        json={"message": "Thanks!"},
        headers=shopper_headers,
    )
    assert answer.json()["is_staff"] is False
    assert outbox[-1]["subject"] == "New Reply: Where is my parcel?"
    assert recipients(outbox)[-1] == "owner@acme.example.com"

    thread = client.get(messages_url, headers=staff_headers).json()
    assert [m["message"] for m in thread] == ["It ships today.", "Thanks!"]


def test_status_changes_and_closing(client, store, shopper_headers, staff_headers, outbox):
    ticket = _open_ticket(client, shopper_headers).json()
    url = f"/api/support/tickets/{ticket['id']}"

    resolved = client.patch(url, json={"status": "resolved"}, headers=staff_headers)
    assert resolved.json()["status"] == "resolved"
    assert outbox[-1]["subject"] == "Support Ticket Status Updated: Where is my parcel?"
    assert recipients(outbox)[-1] == "jane@example.com"

    # a new message reopens a resolved ticket
    client.post(
        f"/api/store/support/tickets/{ticket['id']}/messages",
        json={"message": "Still missing"},
        headers=shopper_headers,
    )
    assert client.get(url, headers=staff_headers).json()["status"] == "in_progress"

    closed = client.delete(url, headers=staff_headers)
    assert closed.json()["status"] == "closed"
    late = client.post(f"{url}/messages", json={"message": "Hello?"}, headers=staff_headers)
    assert late.status_code == status.HTTP_400_BAD_REQUEST
    assert late.json()["detail"] == "Cannot add message to closed ticket"


def test_staff_ticket_filters(client, store, shopper_headers, staff_headers):
    _open_ticket(client, shopper_headers, subject="Refund please", priority="urgent")
    _open_ticket(client, shopper_headers, subject="Wrong size", priority="low")

    urgent = client.get("/api/support/tickets?priority=urgent", headers=staff_headers).json()
    assert [t["subject"] for t in urgent["tickets"]] == ["Refund please"]

    found = client.get("/api/support/tickets?search=size", headers=staff_headers).json()
    assert [t["subject"] for t in found["tickets"]] == ["Wrong size"]

    oldest_first = client.get("/api/support/tickets?sort_order=asc", headers=staff_headers).json()
    assert [t["subject"] for t in oldest_first["tickets"]] == ["Refund please", "Wrong size"]
    assert oldest_first["pagination"]["total"] == 2


def test_tickets_are_tenant_scoped(client, db, store, plan, shopper_headers):
    ticket = _open_ticket(client, shopper_headers).json()
    _, other_admin = make_tenant(db, "other", plan=plan)

    resp = client.get(f"/api/support/tickets/{ticket['id']}", headers=auth_headers(other_admin))
    assert resp.status_code == status.HTTP_404_NOT_FOUND


def test_customers_cannot_use_the_staff_desk(client, store, shopper_headers):
    assert client.get("/api/support/tickets", headers=shopper_headers).status_code == status.HTTP_403_FORBIDDEN


def test_store_asks_the_platform_for_help(client, store, admin_headers, landlord_headers, outbox):
    created = client.post(
        "/api/landlord-support/tickets",
        json={"subject": "Invoice question", "description": "Charged twice", "category": "billing"},
        headers=admin_headers,
    )
    assert created.status_code == status.HTTP_201_CREATED
    ticket = created.json()
    assert ticket["category"] == "billing"
    assert ticket["tenant_id"] == store.id
    assert recipients(outbox) == [settings.LANDLORD_SUPPORT_EMAIL]
    assert subjects(outbox) == ["New Support Ticket from Acme: Invoice question"]

    everything = client.get("/api/admin/support/tickets?category=billing", headers=landlord_headers).json()
    assert [t["id"] for t in everything["tickets"]] == [ticket["id"]]

    reply = client.post(
        f"/api/admin/support/tickets/{ticket['id']}/messages",
        json={"message": "Refund issued."},
        headers=landlord_headers,
    )
    assert reply.json()["is_landlord"] is True
    assert recipients(outbox)[-1] == "owner@acme.example.com"

    follow_up = client.post(
        f"/api/landlord-support/tickets/{ticket['id']}/messages",
        json={"message": "Thank you"},
        headers=admin_headers,
    )
    assert follow_up.json()["is_landlord"] is False
    assert recipients(outbox)[-1] == settings.LANDLORD_SUPPORT_EMAIL

    updated = client.patch(
        f"/api/admin/support/tickets/{ticket['id']}", json={"status": "resolved"}, headers=landlord_headers
    )
    assert updated.json()["status"] == "resolved"
    assert outbox[-1]["subject"] == "Support Ticket Status Updated: Invoice question"

    thread = client.get(f"/api/landlord-support/tickets/{ticket['id']}/messages", headers=admin_headers).json()
    assert [m["message"] for m in thread] == ["Refund issued.", "Thank you"]


def test_platform_tickets_are_private_to_each_store(client, db, store, plan, admin_headers, staff_headers):
    ticket = client.post(
        "/api/landlord-support/tickets",
        json={"subject": "Custom domain", "description": "Not verifying"},
        headers=admin_headers,
    ).json()
    assert ticket["category"] == "other"
    _, other_admin = make_tenant(db, "other", plan=plan)

    other = client.get(f"/api/landlord-support/tickets/{ticket['id']}", headers=auth_headers(other_admin))
    assert other.status_code == status.HTTP_404_NOT_FOUND
    assert client.get("/api/landlord-support/tickets", headers=auth_headers(other_admin)).json()["tickets"] == []
    assert client.get("/api/landlord-support/tickets", headers=staff_headers).json()["pagination"]["total"] == 1
    assert client.get("/api/admin/support/tickets", headers=admin_headers).status_code == status.HTTP_403_FORBIDDEN
