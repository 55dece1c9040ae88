"""Real-time infrastructure — admin cache invalidation over WebSocket.

Learn: Events flow in one direction:
1. REST handler commits a write → invalidate_admin_cache(resource)
2. ConnectionRegistry queues {"event": "invalidateCache", ...} on every
   admin socket → each admin tab refetches the affected queries

Nothing is persisted. A missed event means a stale screen until the next
refetch, never wrong data — all reads go through the REST API.
"""
