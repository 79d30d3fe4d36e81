import json

import httpx
import pytest
from fastapi import status

from conftest import make_tenant
from app.services.domain import domain_service
from app.services.vercel import VercelAPIError, VercelClient


class FakeVercel:
    """Answers the project domain endpoints from an in-memory dict."""

    def __init__(self, domains=None, fail_with=None):
        self.domains = dict(domains or {})
        self.fail_with = fail_with
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with:
            status_code, message = self.fail_with
            return httpx.Response(status_code, json={"error": {"message": message}})

        last = request.url.path.rstrip("/").split("/")[-1]
        if request.method == "POST":
            name = json.loads(request.content)["name"]
            if name in self.domains:
                return httpx.Response(
                    409, json={"error": {"code": "domain_already_exists", "message": "Domain already exists"}}
                )
            self.domains[name] = {"name": name, "verified": False, "verification": [{"type": "TXT"}]}
            return httpx.Response(200, json=self.domains[name])
        if request.method == "GET" and last == "domains":
            return httpx.Response(200, json={"domains": list(self.domains.values())})

        if last not in self.domains:
            return httpx.Response(404, json={"error": {"code": "not_found", "message": "Domain not found"}})
        if request.method == "DELETE":
            del self.domains[last]
            return httpx.Response(200, json={})
        return httpx.Response(200, json=self.domains[last])


def _vercel(fake, token="tok", project_id="prj_1", team_id=None):
    return VercelClient(
        token=token,
        project_id=project_id,
        team_id=team_id,
        base_url="https://vercel.example.com",
        transport=httpx.MockTransport(fake),
    )


@pytest.fixture
def fake_vercel(monkeypatch):
    fake = FakeVercel()
    monkeypatch.setattr(domain_service, "client", _vercel(fake))
    return fake


# Client

def test_add_domain_posts_to_project():
    fake = FakeVercel()
    result = _vercel(fake, team_id="team_9").add_domain("shop.example.com")

    assert result["name"] == "shop.example.com"
    request = fake.requests[0]
    assert request.method == "POST"
    assert request.url.path == "/v10/projects/prj_1/domains"
    assert request.url.params["teamId"] == "team_9"
    assert request.headers["Authorization"] == "Bearer tok"


def test_add_existing_domain_returns_its_info():
    fake = FakeVercel({"shop.example.com": {"name": "shop.example.com", "verified": True}})
    result = _vercel(fake).add_domain("shop.example.com")
    assert result == {"name": "shop.example.com", "verified": True}
    assert [r.method for r in fake.requests] == ["POST", "GET"]


def test_forbidden_is_reported_as_authorization_error():
    client = _vercel(FakeVercel(fail_with=(403, "Not authorized")))
    with pytest.raises(VercelAPIError) as exc:
        client.add_domain("shop.example.com")
    assert exc.value.status_code == 403
    assert "Vercel API authorization failed" in str(exc.value)


def test_other_failures_raise():
    client = _vercel(FakeVercel(fail_with=(500, "Internal error")))
    with pytest.raises(VercelAPIError) as exc:
        client.add_domain("shop.example.com")
    assert str(exc.value) == "Failed to add domain: Internal error"


def test_removing_an_unknown_domain_is_fine():
    fake = FakeVercel({"shop.example.com": {"name": "shop.example.com"}})
    client = _vercel(fake)
    assert client.remove_domain("shop.example.com") is True
    assert client.remove_domain("shop.example.com") is True
    assert fake.domains == {}


def test_get_domain_returns_none_when_unknown():
    assert _vercel(FakeVercel()).get_domain("nope.example.com") is None


def test_verify_domain_never_raises():
    verified = _vercel(FakeVercel({"shop.example.com": {"verified": True}})).verify_domain("shop.example.com")
    assert verified["verified"] is True

    missing = _vercel(FakeVercel()).verify_domain("shop.example.com")
    assert missing == {
        "verified": False, "verification": None, "configuration_issue": None, "reason": "Domain not found in Vercel",
    }

    broken = _vercel(FakeVercel(fail_with=(500, "boom"))).verify_domain("shop.example.com")
    assert broken["verified"] is False
    assert broken["reason"] == "boom"


def test_dns_configuration_and_listing():
    fake = FakeVercel({
        "shop.example.com": {"name": "shop.example.com", "cnames": ["cname.vercel-dns.com"], "verification": []},
    })
    client = _vercel(fake)
    dns = client.get_dns_configuration("shop.example.com")
    assert dns["cnames"] == ["cname.vercel-dns.com"]
    assert [d["name"] for d in client.list_project_domains()] == ["shop.example.com"]

    with pytest.raises(VercelAPIError):
        client.get_dns_configuration("other.example.com")


def test_missing_configuration():
    with pytest.raises(VercelAPIError) as no_token:
        _vercel(FakeVercel(), token="").get_domain("shop.example.com")
    assert no_token.value.status_code == 500

    with pytest.raises(VercelAPIError):
        _vercel(FakeVercel(), project_id="").add_domain("shop.example.com")


def _unreachable(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


def test_unreachable_vercel_raises_api_error():
    client = _vercel(_unreachable)
    with pytest.raises(VercelAPIError) as exc:
        client.add_domain("shop.example.com")
    assert exc.value.status_code == 502
    assert str(exc.value).startswith("Vercel request failed")

    result = client.verify_domain("shop.example.com")
    assert result["verified"] is False
    assert result["reason"].startswith("Vercel request failed")


# Endpoints

def test_add_and_remove_custom_domain(client, db, store, admin_headers, fake_vercel):
    added = client.post("/api/domains", json={"domain": "Shop.Example.com"}, headers=admin_headers)
    assert added.status_code == status.HTTP_200_OK
    assert added.json()["message"] == "Domain added successfully"
    assert added.json()["domain"] == "shop.example.com"
    assert "shop.example.com" in fake_vercel.domains

    # the store is now reachable through its own domain
    resolved = client.get("/api/store/cart", headers={"Host": "shop.example.com"})
    assert resolved.status_code == status.HTTP_200_OK

    info = client.get("/api/domains", headers=admin_headers).json()
    assert info["domain"] == "shop.example.com"
    assert info["verified"] is False
    assert info["dns_config"]["verification"] == [{"type": "TXT"}]

    removed = client.delete("/api/domains?domain=shop.example.com", headers=admin_headers)
    assert removed.json()["message"] == "Domain removed successfully"
    assert fake_vercel.domains == {}
    assert client.get("/api/domains", headers=admin_headers).json()["message"] == "No custom domain configured"


def test_domain_rules(client, db, store, plan, admin_headers, fake_vercel):
    bad = client.post("/api/domains", json={"domain": "not a domain"}, headers=admin_headers)
    assert bad.status_code == status.HTTP_400_BAD_REQUEST
    assert bad.json()["detail"] == "Invalid domain format"

    make_tenant(db, "other", plan=plan, custom_domain="taken.example.com")
    taken = client.post("/api/domains", json={"domain": "taken.example.com"}, headers=admin_headers)
    assert taken.status_code == status.HTTP_409_CONFLICT
    assert taken.json()["detail"] == "Domain is already in use by another store"

    foreign = client.delete("/api/domains?domain=taken.example.com", headers=admin_headers)
    assert foreign.status_code == status.HTTP_403_FORBIDDEN
    assert fake_vercel.requests == []


def test_vercel_failures_surface(client, store, admin_headers, monkeypatch):
    monkeypatch.setattr(domain_service, "client", _vercel(FakeVercel(fail_with=(403, "Forbidden"))))
    resp = client.post("/api/domains", json={"domain": "shop.example.com"}, headers=admin_headers)
    assert resp.status_code == status.HTTP_403_FORBIDDEN

    monkeypatch.setattr(domain_service, "client", _vercel(FakeVercel(), project_id=""))
    resp = client.post("/api/domains", json={"domain": "shop.example.com"}, headers=admin_headers)
    assert resp.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert resp.json()["detail"] == "Vercel project ID not configured"


def test_only_store_admins_manage_domains(client, staff_headers, fake_vercel):
    resp = client.post("/api/domains", json={"domain": "shop.example.com"}, headers=staff_headers)
    assert resp.status_code == status.HTTP_403_FORBIDDEN


def test_unreachable_vercel_is_a_bad_gateway(client, store, admin_headers, monkeypatch, caplog):
    monkeypatch.setattr(domain_service, "client", _vercel(_unreachable))
    resp = client.post("/api/domains", json={"domain": "shop.example.com"}, headers=admin_headers)
    assert resp.status_code == status.HTTP_502_BAD_GATEWAY
    assert resp.json()["detail"].startswith("Vercel request failed")
    assert "Error adding domain: tenant_id=" in caplog.text
