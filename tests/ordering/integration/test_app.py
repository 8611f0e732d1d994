"""Integration tests for the assembled application: middleware, health and live updates."""

import asyncio
import inspect
import json
import time

import pytest
from app import app
from fastapi.routing import APIRoute
from fastapi.testclient import TestClient
from notifications.channel import set_live_channel
from notifications.channel.websocket_hub import WebSocketHub
from ordering.utils import settings
from starlette.websockets import WebSocketDisconnect

SLOW_SECONDS = 1.0


@pytest.fixture()
def app_client(products):
    return TestClient(app)


@pytest.fixture()
def slow_catalog(products, monkeypatch):
    resolve = products.resolve

    def slow_resolve(*args, **kwargs):
        time.sleep(SLOW_SECONDS)
        return resolve(*args, **kwargs)

    monkeypatch.setattr(products, "resolve", slow_resolve)
    return products


def _http_scope(method, path, body=b""):
    return {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": method,
        "scheme": "http",
        "path": path,
        "raw_path": path.encode(),
        "root_path": "",
        "query_string": b"",
        "headers": [
            (b"host", b"testserver"),
            (b"content-type", b"application/json"),
            (b"content-length", str(len(body)).encode()),
            (b"x-user-id", b"user-001"),
        ],
        "client": ("127.0.0.1", 50000),
        "server": ("testserver", 80),
    }


class TestHealth:
    def test_health(self, app_client):
        response = app_client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["domains"]["ordering"]["name"] == "ordering"

    def test_health_needs_no_identity(self, app_client):
        assert app_client.get("/health").status_code == 200


class TestDomainRoutes:
    def test_cart_round_trip(self, app_client):
        headers = {"X-User-Id": "user-001"}
        added = app_client.post("/cart/add", json={"productId": "prod-a", "quantity": 2}, headers=headers)
        assert added.status_code == 200, added.text

        data = app_client.get("/cart", headers=headers).json()["data"]
        assert data["totalItems"] == 2
        assert data["items"][0]["productId"] == "prod-a"

    def test_domain_errors_keep_their_status(self, app_client):
        response = app_client.post("/cart/checkout", headers={"X-User-Id": "user-001"})
        assert response.status_code == 404
        assert response.json()["kind"] == "NoCart"

    def test_only_the_webhook_runs_on_the_event_loop(self):
        on_loop = {
            route.path
            for route in app.routes
            if isinstance(route, APIRoute)
            and route.path.startswith(("/cart", "/orders", "/payment"))
            and inspect.iscoroutinefunction(route.endpoint)
        }
        assert on_loop == {"/payment/webhook"}


class TestRequestTimeout:
    def test_slow_request_answers_408(self, app_client, slow_catalog, monkeypatch):
        monkeypatch.setattr(settings, "REQUEST_TIMEOUT_SECONDS", 0.2)

        response = app_client.post("/cart/add", json={"productId": "prod-a"}, headers={"X-User-Id": "user-001"})

        assert response.status_code == 408
        assert response.json() == {
            "success": False,
            "kind": "RequestTimeout",
            "message": "Request timeout. Please try again.",
        }

    def test_408_is_sent_before_the_slow_work_finishes(self, slow_catalog, monkeypatch):
        monkeypatch.setattr(settings, "REQUEST_TIMEOUT_SECONDS", 0.2)
        body = json.dumps({"productId": "prod-a"}).encode()
        started = {}

        async def call():
            delivered = False

            async def receive():
                nonlocal delivered
                if not delivered:
                    delivered = True
                    return {"type": "http.request", "body": body, "more_body": False}
                await asyncio.Event().wait()

            async def send(message):
                if message["type"] == "http.response.start":
                    started["status"] = message["status"]
                    started["at"] = time.monotonic()

            begin = time.monotonic()
            await app(_http_scope("POST", "/cart/add", body), receive, send)
            return begin

        begin = asyncio.run(call())

        assert started["status"] == 408
        assert started["at"] - begin < SLOW_SECONDS * 0.8

    def test_fast_requests_are_untouched(self, app_client, monkeypatch):
        monkeypatch.setattr(settings, "REQUEST_TIMEOUT_SECONDS", 5)
        response = app_client.post("/cart/add", json={"productId": "prod-a"}, headers={"X-User-Id": "user-001"})
        assert response.status_code == 200


class TestLiveUpdates:
    def test_cart_change_reaches_open_socket(self, app_client):
        set_live_channel(WebSocketHub())

        with app_client.websocket_connect("/ws/cart?userId=user-001") as ws:
            assert ws.receive_json() == {"event": "connected", "data": {"userId": "user-001"}}

            response = app_client.post("/cart/add", json={"productId": "prod-a"}, headers={"X-User-Id": "user-001"})
            assert response.status_code == 200

            message = ws.receive_json()
            assert message["event"] == "cartUpdated"
            assert message["data"]["type"] == "ITEM_ADDED"
            assert message["data"]["cart"]["totalItems"] == 1

    def test_other_users_do_not_receive_updates(self, app_client):
        hub = WebSocketHub()
        set_live_channel(hub)

        with app_client.websocket_connect("/ws/cart?userId=user-002") as ws:
            ws.receive_json()
            app_client.post("/cart/add", json={"productId": "prod-a"}, headers={"X-User-Id": "user-001"})
            assert hub.publish("user-002", "ping", {}) == 1
            assert ws.receive_json()["event"] == "ping"

    def test_socket_refused_without_hub(self, app_client):
        with pytest.raises(WebSocketDisconnect) as exc:
            with app_client.websocket_connect("/ws/cart?userId=user-001") as ws:
                ws.receive_json()
        assert exc.value.code == 1013
