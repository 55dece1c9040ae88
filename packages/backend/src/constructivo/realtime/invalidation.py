"""Broadcast trigger — how mutation handlers reach the connection registry.

Learn: The registry is created once in create_app() and lives on
app.state. Route handlers take it through a dependency:

    async def approve(..., invalidate: CacheInvalidator = Depends(get_cache_invalidator)):
        await svc.set_status(...)          # commits
        invalidate(TESTIMONIALS)           # then tell admin tabs

Code that doesn't run inside a request (CLI, background jobs) can use the
module-level invalidate_admin_cache(), which goes through the registry
installed for the process. With no registry installed it's a no-op.
"""

from typing import Callable, Optional

import structlog
from starlette.requests import HTTPConnection

from constructivo.realtime.registry import ConnectionRegistry

logger = structlog.get_logger()

CacheInvalidator = Callable[[str], None]

# Process-wide registry (installed by create_app)
_registry: Optional[ConnectionRegistry] = None


def install_registry(registry: Optional[ConnectionRegistry]) -> None:
    global _registry
    _registry = registry


def get_installed_registry() -> Optional[ConnectionRegistry]:
    return _registry


def invalidate_admin_cache(resource: str) -> None:
    """Tell every connected admin tab to drop cached queries for `resource`."""
    if _registry is None:
        logger.debug("realtime.no_registry", resource=resource)
        return
    _registry.invalidate_admin_cache(resource)


def get_registry(conn: HTTPConnection) -> ConnectionRegistry:
    """FastAPI dependency — the registry owned by the running app."""
    return conn.app.state.admin_connections


def get_cache_invalidator(conn: HTTPConnection) -> CacheInvalidator:
    """FastAPI dependency — a bound invalidate_admin_cache for this app."""
    return get_registry(conn).invalidate_admin_cache
