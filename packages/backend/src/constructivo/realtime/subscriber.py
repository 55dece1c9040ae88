"""Client side of the invalidation channel.

Learn: A CacheSubscriber keeps one connection to the server, sends the
adminAuth handshake as soon as the socket opens, and maps each
invalidateCache event to the REST paths whose cached responses are now
stale:

    testimonials → /api/testimonials, /api/testimonials/approved
    users        → /api/users
    settings     → /api/settings

Unknown resources (including "notifications") are ignored. Events carry
nothing but the resource tag — the cache always refetches from REST.

If the connection drops, the subscriber reconnects with exponential
backoff. Because events sent while disconnected are lost, every mapped
key is invalidated once after a successful reconnect.
"""

import asyncio
import enum
from typing import Any, Callable, Iterable, Optional, Protocol
from urllib.parse import urlsplit, urlunsplit

import httpx
import structlog
import websockets
from websockets.exceptions import WebSocketException

from constructivo.realtime.messages import (
    SETTINGS,
    TESTIMONIALS,
    USERS,
    InvalidateCache,
    MessageError,
    decode_server_message,
)

logger = structlog.get_logger()

DEFAULT_RESOURCE_KEYS: dict[str, tuple[str, ...]] = {
    TESTIMONIALS: ("/api/testimonials", "/api/testimonials/approved"),
    USERS: ("/api/users",),
    SETTINGS: ("/api/settings",),
}

ADMIN_AUTH_FRAME = '{"type": "adminAuth", "isAdmin": true}'


class InvalidatableCache(Protocol):
    def invalidate(self, keys: list[str]) -> None: ...


class SubscriberState(str, enum.Enum):
    CONNECTING = "connecting"
    OPEN_NON_ADMIN = "open_non_admin"
    OPEN_ADMIN = "open_admin"
    CLOSED = "closed"


def websocket_url(base_url: str) -> str:
    """Derive the channel URL from the site URL: https → wss, http → ws."""
    parts = urlsplit(base_url)
    scheme = "wss" if parts.scheme == "https" else "ws"
    return urlunsplit((scheme, parts.netloc, "/", "", ""))


class QueryCache:
    """In-memory cache of REST GET responses keyed by path.

    invalidate() only marks entries stale; the next get() refetches.
    """

    def __init__(self, client: httpx.AsyncClient):
        self._client = client
        self._entries: dict[str, Any] = {}
        self._stale: set[str] = set()

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def is_stale(self, key: str) -> bool:
        return key not in self._entries or key in self._stale

    def invalidate(self, keys: list[str]) -> None:
        for key in keys:
            if key in self._entries:
                self._stale.add(key)

    async def get_or_fetch(self, key: str) -> Any:
        """Return the cached body for `key`, refetching if stale or missing."""
        if self.is_stale(key):
            resp = await self._client.get(key)
            resp.raise_for_status()
            self._entries[key] = resp.json()
            self._stale.discard(key)
        return self._entries[key]


class CacheSubscriber:
    """Keeps a cache fresh by listening for invalidateCache pushes."""

    def __init__(
        self,
        base_url: str,
        cache: InvalidatableCache,
        resource_keys: Optional[dict[str, Iterable[str]]] = None,
        initial_delay: float = 1.0,
        max_delay: float = 30.0,
        connect: Optional[Callable[[str], Any]] = None,
    ):
        self.url = websocket_url(base_url)
        self.cache = cache
        self.resource_keys = {
            resource: list(keys)
            for resource, keys in (resource_keys or DEFAULT_RESOURCE_KEYS).items()
        }
        self.initial_delay = initial_delay
        self.max_delay = max_delay
        self.state = SubscriberState.CLOSED
        self._connect = connect or websockets.connect
        self._ws = None
        self._running = False
        self._stopping = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    # ─── Frame handling ───────────────────────────────────

    def handle_frame(self, raw: str | bytes) -> list[str]:
        """Apply one server frame. Returns the keys that were invalidated."""
        try:
            message = decode_server_message(raw)
        except MessageError as e:
            logger.debug("subscriber.frame_ignored", error=str(e))
            return []

        if not isinstance(message, InvalidateCache):
            return []

        keys = self.resource_keys.get(message.data.resource)
        if not keys:
            logger.debug("subscriber.unmapped_resource", resource=message.data.resource)
            return []

        self.cache.invalidate(list(keys))
        return list(keys)

    def invalidate_all(self) -> None:
        """Mark every mapped key stale (used after a reconnect)."""
        keys = sorted({k for ks in self.resource_keys.values() for k in ks})
        self.cache.invalidate(keys)

    # ─── Lifecycle ────────────────────────────────────────

    async def run(self) -> None:
        """Connect, authenticate, and listen until stop() is called."""
        self._running = True
        self._stopping.clear()
        self._task = asyncio.current_task()
        delay = self.initial_delay
        connected_before = False

        try:
            while self._running:
                self.state = SubscriberState.CONNECTING
                try:
                    async with self._connect(self.url) as ws:
                        self._ws = ws
                        if not self._running:
                            break
                        self.state = SubscriberState.OPEN_NON_ADMIN
                        await ws.send(ADMIN_AUTH_FRAME)
                        self.state = SubscriberState.OPEN_ADMIN
                        delay = self.initial_delay
                        logger.info("subscriber.connected", url=self.url)

                        if connected_before:
                            self.invalidate_all()
                        connected_before = True

                        async for raw in ws:
                            self.handle_frame(raw)
                except (OSError, WebSocketException) as e:
                    logger.warning("subscriber.connection_lost", url=self.url, error=str(e))
                finally:
                    self._ws = None

                self.state = SubscriberState.CLOSED
                if not self._running:
                    break

                logger.info("subscriber.reconnecting", delay=delay)
                try:
                    await asyncio.wait_for(self._stopping.wait(), timeout=delay)
                except asyncio.TimeoutError:
                    pass
                delay = min(delay * 2, self.max_delay)
        except asyncio.CancelledError:
            # Cancelled by stop(); anything else propagates
            if self._running:
                raise
        finally:
            self._task = None
            self.state = SubscriberState.CLOSED

    async def stop(self) -> None:
        """Stop reconnecting and close the current socket, if any.

        Safe to call while connecting or backing off: the run() task is
        cancelled and awaited, so it has returned once stop() does.
        """
        self._running = False
        self._stopping.set()
        if self._ws is not None:
            await self._ws.close()

        task = self._task
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
