"""End-to-end tests of the realtime endpoint over a real WebSocket.

Learn: Starlette's TestClient runs the app on a portal thread. Inside
`with TestClient(app) as client` every websocket shares that portal, so
client.portal.call(registry.broadcast, ...) fans out from the same event
loop the connections live on — just like a REST handler would.

A ping → pong round trip is used as a barrier: frames are handled in
order, so once the pong arrives the adminAuth before it was applied.
"""

import asyncio
import time

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketState

from constructivo.realtime.registry import ConnectionRegistry
from constructivo.realtime.websocket import admin_cache_websocket
from constructivo.realtime.websocket import router as ws_router

ADMIN_AUTH = {"type": "adminAuth", "isAdmin": True}
PING = {"type": "ping"}
PONG = {"type": "pong"}


@pytest.fixture()
def realtime_app():
    app = FastAPI()
    app.state.admin_connections = ConnectionRegistry()
    app.include_router(ws_router)
    return app


def _invalidation(resource: str) -> dict:
    return {"event": "invalidateCache", "data": {"resource": resource}}


def _wait_until(predicate, timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def test_admin_receives_invalidation(realtime_app):
    registry = realtime_app.state.admin_connections
    with TestClient(realtime_app) as client:
        with client.websocket_connect("/") as ws:
            ws.send_json(ADMIN_AUTH)
            ws.send_json(PING)
            assert ws.receive_json() == PONG
            assert registry.admin_count == 1

            assert client.portal.call(registry.broadcast, "users") == 1
            assert ws.receive_json() == _invalidation("users")


def test_only_admins_receive_invalidations(realtime_app):
    registry = realtime_app.state.admin_connections
    with TestClient(realtime_app) as client:
        with client.websocket_connect("/") as a, client.websocket_connect("/") as b, \
                client.websocket_connect("/") as c:
            for ws in (a, b):
                ws.send_json(ADMIN_AUTH)
                ws.send_json(PING)
                assert ws.receive_json() == PONG
            c.send_json(PING)
            assert c.receive_json() == PONG

            assert client.portal.call(registry.broadcast, "users") == 2

            assert a.receive_json() == _invalidation("users")
            assert b.receive_json() == _invalidation("users")
            # Nothing was queued for C ahead of this pong
            c.send_json(PING)
            assert c.receive_json() == PONG


def test_events_arrive_in_broadcast_order(realtime_app):
    registry = realtime_app.state.admin_connections

    def moderate_testimonial():
        registry.invalidate_admin_cache("testimonials")
        registry.invalidate_admin_cache("notifications")

    with TestClient(realtime_app) as client:
        with client.websocket_connect("/") as ws:
            ws.send_json(ADMIN_AUTH)
            ws.send_json(PING)
            assert ws.receive_json() == PONG

            client.portal.call(moderate_testimonial)

            assert ws.receive_json() == _invalidation("testimonials")
            assert ws.receive_json() == _invalidation("notifications")


def test_malformed_frames_keep_connection_open(realtime_app):
    registry = realtime_app.state.admin_connections
    with TestClient(realtime_app) as client:
        with client.websocket_connect("/") as ws:
            ws.send_text("this is not json")
            ws.send_bytes(b"\x00\x01")
            ws.send_json({"type": "subscribe"})
            ws.send_json(ADMIN_AUTH)
            ws.send_json(PING)
            assert ws.receive_json() == PONG
            assert registry.admin_count == 1


def test_late_handshake_gets_later_events_only(realtime_app):
    registry = realtime_app.state.admin_connections
    with TestClient(realtime_app) as client:
        with client.websocket_connect("/") as ws:
            ws.send_json(PING)
            assert ws.receive_json() == PONG

            assert client.portal.call(registry.broadcast, "settings") == 0

            ws.send_json(ADMIN_AUTH)
            ws.send_json(PING)
            assert ws.receive_json() == PONG

            client.portal.call(registry.broadcast, "users")
            assert ws.receive_json() == _invalidation("users")


def test_closed_socket_leaves_registry(realtime_app):
    registry = realtime_app.state.admin_connections
    with TestClient(realtime_app) as client:
        with client.websocket_connect("/") as ws:
            ws.send_json(ADMIN_AUTH)
            ws.send_json(PING)
            assert ws.receive_json() == PONG
            assert len(registry) == 1

        assert _wait_until(lambda: len(registry) == 0)
        assert client.portal.call(registry.broadcast, "users") == 0


class _HangupSocket:
    """A socket whose client hangs up right after the handshake."""

    def __init__(self):
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED

    async def accept(self):
        pass

    async def receive(self):
        await asyncio.sleep(0)
        self.client_state = WebSocketState.DISCONNECTED
        return {"type": "websocket.disconnect", "code": 1000}

    async def send_text(self, data):
        pass

    async def close(self):
        self.application_state = WebSocketState.DISCONNECTED


@pytest.mark.asyncio
async def test_handler_waits_for_cancelled_sender():
    registry = ConnectionRegistry()
    before = asyncio.all_tasks()

    await admin_cache_websocket(_HangupSocket(), registry)

    leftover = [t for t in asyncio.all_tasks() - before if not t.done()]
    assert leftover == []
    assert len(registry) == 0
