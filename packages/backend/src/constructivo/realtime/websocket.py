"""WebSocket endpoint — admin cache-invalidation channel at the root path.

Learn: Each admin tab opens ws(s)://<host>/ and immediately sends
{"type": "adminAuth", "isAdmin": true}. Two concurrent tasks run per
connection:
1. Client listener — reads frames, hands them to the registry
2. Sender — drains the connection's outbox onto the socket

When either side finishes (usually the browser closing the tab), the
other is cancelled and the connection leaves the registry.
"""

import asyncio

import structlog
from fastapi import APIRouter, Depends, WebSocket
from starlette.websockets import WebSocketState

from constructivo.realtime.invalidation import get_registry
from constructivo.realtime.registry import AdminConnection, ConnectionRegistry

logger = structlog.get_logger()
router = APIRouter()


@router.websocket("/")
async def admin_cache_websocket(
    websocket: WebSocket,
    registry: ConnectionRegistry = Depends(get_registry),
):
    """Accept a realtime connection and serve it until it closes."""
    await websocket.accept()
    connection = registry.register(websocket)
    logger.info("realtime.connected", connections=len(registry))

    async def client_listener():
        """Feed inbound frames to the registry until the client disconnects."""
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    return
                raw = message.get("text")
                if raw is None:
                    raw = message.get("bytes") or b""
                registry.handle_message(connection, raw)
        except asyncio.CancelledError:
            pass

    listener_task = asyncio.create_task(client_listener())
    sender_task = asyncio.create_task(connection.run_sender())

    try:
        done, pending = await asyncio.wait(
            [listener_task, sender_task],
            return_when=asyncio.FIRST_COMPLETED,
        )
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
    finally:
        await _close(registry, connection)


async def _close(registry: ConnectionRegistry, connection: AdminConnection) -> None:
    registry.unregister(connection)
    logger.info(
        "realtime.disconnected",
        was_admin=connection.is_admin,
        connections=len(registry),
    )
    websocket = connection.websocket
    if (
        websocket.client_state == WebSocketState.CONNECTED
        and websocket.application_state == WebSocketState.CONNECTED
    ):
        await websocket.close()
