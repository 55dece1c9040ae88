"""Connection registry — live admin WebSocket connections and fan-out.

Learn: Every browser tab that opens the realtime socket gets an
AdminConnection. It starts non-admin and is promoted when the tab sends
the adminAuth handshake. broadcast() only touches in-memory queues:

    broadcast("users")
        └─ for each open admin connection: outbox.put_nowait(frame)

A per-connection sender task (see websocket.py) drains the outbox. That
keeps broadcast() synchronous and non-blocking — a slow tab can fill its
own outbox but can't stall other tabs or the REST response that
triggered the invalidation. One FIFO outbox per connection preserves the
order in which broadcasts were made.

State is in-memory only. A server restart drops every connection;
clients reconnect and send the handshake again.
"""

import asyncio

import structlog
from starlette.websockets import WebSocket, WebSocketDisconnect, WebSocketState

from constructivo.realtime.messages import (
    AdminAuth,
    MessageError,
    Ping,
    decode_client_message,
    encode_invalidation,
    encode_pong,
)

logger = structlog.get_logger()


class AdminConnection:
    """One live socket plus its admin flag and outbound queue."""

    def __init__(self, websocket: WebSocket, outbox_size: int = 100):
        self.websocket = websocket
        self.is_admin = False
        self.outbox: asyncio.Queue[str] = asyncio.Queue(maxsize=outbox_size)

    @property
    def is_open(self) -> bool:
        """True while both sides of the transport are still connected."""
        return (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    def enqueue(self, frame: str) -> bool:
        """Queue a frame for sending. Returns False if the outbox is full."""
        try:
            self.outbox.put_nowait(frame)
        except asyncio.QueueFull:
            return False
        return True

    async def run_sender(self) -> None:
        """Send queued frames in order until the transport goes away."""
        try:
            while True:
                frame = await self.outbox.get()
                await self.websocket.send_text(frame)
        except (WebSocketDisconnect, RuntimeError, OSError) as e:
            # Transport closed underneath us
            logger.debug("realtime.send_stopped", error=str(e))


class ConnectionRegistry:
    """The set of open realtime connections.

    Created once per app in create_app() and stored on app.state.
    """

    def __init__(self, outbox_size: int = 100):
        self.outbox_size = outbox_size
        self._connections: set[AdminConnection] = set()

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, connection: AdminConnection) -> bool:
        return connection in self._connections

    @property
    def admin_count(self) -> int:
        return sum(1 for c in self._connections if c.is_admin)

    # ─── Membership ───────────────────────────────────────

    def register(self, websocket: WebSocket) -> AdminConnection:
        """Track a newly accepted socket. It starts out non-admin."""
        connection = AdminConnection(websocket, outbox_size=self.outbox_size)
        self._connections.add(connection)
        return connection

    def unregister(self, connection: AdminConnection) -> None:
        """Forget a connection. Only the socket's close path calls this."""
        self._connections.discard(connection)

    # ─── Inbound ──────────────────────────────────────────

    def handle_message(self, connection: AdminConnection, raw: str | bytes) -> None:
        """Apply one inbound frame. Bad input is logged, never raised."""
        try:
            message = decode_client_message(raw)
        except MessageError as e:
            logger.warning("realtime.message_invalid", error=str(e))
            return

        if isinstance(message, AdminAuth):
            if message.is_admin and not connection.is_admin:
                connection.is_admin = True
                logger.info("realtime.admin_authenticated", admins=self.admin_count)
        elif isinstance(message, Ping):
            if connection.is_open:
                connection.enqueue(encode_pong())

    # ─── Fan-out ──────────────────────────────────────────

    def broadcast(self, resource: str) -> int:
        """Queue an invalidateCache event for every open admin connection.

        Returns the number of connections the event was queued for.
        Connections that aren't admin or whose transport is closing are
        skipped; there is no retry and no replay.
        """
        frame = encode_invalidation(resource)
        delivered = 0
        for connection in list(self._connections):
            if not (connection.is_admin and connection.is_open):
                continue
            if connection.enqueue(frame):
                delivered += 1
            else:
                logger.warning("realtime.outbox_full", resource=resource)
        logger.debug("realtime.broadcast", resource=resource, delivered=delivered)
        return delivered

    def invalidate_admin_cache(self, resource: str) -> None:
        """Fire-and-forget invalidation. Call only after the write committed."""
        self.broadcast(resource)
