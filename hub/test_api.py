"""
Tests for the hub control API.
"""
import httpx
import pytest
from fastapi.testclient import TestClient

from hub.backend import BackendClient
from hub.hub import CoordinationHub
from hub.main import create_app
from hub.session import Session
from poster.channel import ContextChannel
from poster.store import SESSION_KEY, KeyValueStore


SESSION = Session(token="tok", api_key="key-1", user_id="u1", role="admin", organization_id="org1")


def make_hub(signed_in=True, status=None, tabs=None):
    calls = []
    status = status or {}

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        code = status.get(request.url.path, 200)
        return httpx.Response(code, json={"ok": code < 400})

    store = KeyValueStore(":memory:")
    if signed_in:
        store.set(SESSION_KEY, SESSION.to_dict())
    backend = BackendClient("https://backend.test/api", transport=httpx.MockTransport(handler))
    hub = CoordinationHub(store, backend, tabs=tabs)
    return hub, calls


@pytest.fixture
def client():
    hub, calls = make_hub()
    with TestClient(create_app(hub)) as c:
        c.hub = hub
        c.calls = calls
        yield c


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "healthy"
    assert body["authenticated"] is True
    assert body["browser"] is False
    assert body["tabs"] == 0


def test_session_lifecycle(client):
    assert client.get("/api/session").json() == {
        "authenticated": True, "user_id": "u1", "role": "admin", "organization_id": "org1",
    }
    assert client.delete("/api/session").json()["authenticated"] is False
    assert client.hub.session is None

    resp = client.post("/api/session", json={"token": "new", "userId": "u2"})
    assert resp.status_code == 200
    assert resp.json()["user_id"] == "u2"
    assert client.hub.store.get(SESSION_KEY)["token"] == "new"


def test_session_requires_credentials(client):
    resp = client.post("/api/session", json={"userId": "u2"})
    assert resp.status_code == 400


def test_mark_posted_is_idempotent(client):
    first = client.post("/api/vehicles/veh-1/posted", json={"listingUrl": "https://fb/item/1"})
    second = client.post("/api/vehicles/veh-1/posted", json={"listingUrl": "https://fb/item/1"})
    assert first.status_code == 200 and first.json()["duplicate"] is False
    assert second.json() == {"success": True, "duplicate": True, "data": None}
    assert client.calls.count("/api/vehicles/veh-1/posted") == 1


def test_mark_posted_without_session():
    hub, _ = make_hub(signed_in=False)
    with TestClient(create_app(hub)) as c:
        resp = c.post("/api/vehicles/veh-1/posted", json={})
    assert resp.status_code == 401


def test_mark_posted_backend_failure():
    hub, _ = make_hub(status={"/api/vehicles/veh-1/posted": 500})
    with TestClient(create_app(hub)) as c:
        resp = c.post("/api/vehicles/veh-1/posted", json={})
    assert resp.status_code == 502


def test_pending_post_set_and_clear(client):
    assert client.post("/api/pending-post", json={"data": {"make": "Kia"}}).status_code == 200
    assert client.hub.pending.load() == {"make": "Kia"}
    client.delete("/api/pending-post")
    assert client.hub.pending.load() is None


def test_automation_requires_vehicle(client):
    assert client.post("/api/automation/start", json={"vehicleId": "veh-1"}).status_code == 400


def test_automation_without_browser(client):
    resp = client.post("/api/automation/start", json={"vehicleData": {"make": "Kia"}})
    assert resp.status_code == 503


class DeadTabs:
    class Agent:
        def __init__(self):
            self.channel = ContextChannel(self.handle, is_alive=lambda: False)

        async def handle(self, message):
            return {}

    def live_agents(self):
        return []

    async def acquire(self):
        return self.Agent()


def test_automation_on_dead_tab_asks_for_reload():
    hub, _ = make_hub(tabs=DeadTabs())
    with TestClient(create_app(hub)) as c:
        resp = c.post("/api/automation/start", json={"vehicleId": "veh-2", "vehicleData": {"make": "Kia"}})
    assert resp.status_code == 409
    assert "Reload the posting tab" in resp.json()["detail"]


def test_progress_feed(client):
    for i in range(5):
        client.hub.record(f"step {i}")
    body = client.get("/api/progress", params={"limit": 2}).json()
    assert body["total"] == 5
    assert [item["message"] for item in body["items"]] == ["step 3", "step 4"]


def test_scrape_rejects_unknown_site(client):
    resp = client.post("/api/scrape", json={"url": "https://example.com/cars/1"})
    assert resp.status_code == 400


def test_routes_unavailable_before_hub_exists():
    c = TestClient(create_app())
    assert c.get("/api/session").status_code == 503
    assert c.get("/health").json()["status"] == "starting"
