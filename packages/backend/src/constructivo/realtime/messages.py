"""Wire messages for the admin cache-invalidation channel.

Client → server:
    {"type": "adminAuth", "isAdmin": true}     sent once, right after connecting
    {"type": "ping"}                           optional keepalive

Server → client:
    {"event": "invalidateCache", "data": {"resource": "users"}}
    {"type": "pong"}

Learn: Inbound frames are decoded through a pydantic discriminated union
on "type". Anything that isn't valid JSON or doesn't match one of the
known shapes raises MessageError — callers log it and keep the
connection open.
"""

import json
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, TypeAdapter, ValidationError

# ─── Resource tags ───────────────────────────────────────

TESTIMONIALS = "testimonials"
USERS = "users"
SETTINGS = "settings"
NOTIFICATIONS = "notifications"

RESOURCES = frozenset({TESTIMONIALS, USERS, SETTINGS, NOTIFICATIONS})

INVALIDATE_CACHE = "invalidateCache"


class MessageError(ValueError):
    """Raised when a frame can't be decoded into a known message."""


# ─── Client → server ─────────────────────────────────────


class AdminAuth(BaseModel):
    """Handshake claiming the tab belongs to an admin."""
    type: Literal["adminAuth"]
    is_admin: StrictBool = Field(alias="isAdmin")

    model_config = ConfigDict(populate_by_name=True)


class Ping(BaseModel):
    type: Literal["ping"]


ClientMessage = Annotated[Union[AdminAuth, Ping], Field(discriminator="type")]

_client_adapter = TypeAdapter(ClientMessage)


def decode_client_message(raw: str | bytes) -> AdminAuth | Ping:
    """Decode an inbound frame. Raises MessageError on anything unexpected."""
    try:
        return _client_adapter.validate_json(raw)
    except ValidationError as e:
        raise MessageError(_summarize(e)) from e


# ─── Server → client ─────────────────────────────────────


class InvalidationData(BaseModel):
    resource: str


class InvalidateCache(BaseModel):
    event: Literal["invalidateCache"]
    data: InvalidationData


class Pong(BaseModel):
    type: Literal["pong"]


ServerMessage = Union[InvalidateCache, Pong]

_server_adapter = TypeAdapter(ServerMessage)


def encode_invalidation(resource: str) -> str:
    return json.dumps({"event": INVALIDATE_CACHE, "data": {"resource": resource}})


def encode_pong() -> str:
    return json.dumps({"type": "pong"})


def decode_server_message(raw: str | bytes) -> InvalidateCache | Pong:
    """Decode a frame pushed by the server (used by the subscriber)."""
    try:
        return _server_adapter.validate_json(raw)
    except ValidationError as e:
        raise MessageError(_summarize(e)) from e


def _summarize(error: ValidationError) -> str:
    first = error.errors()[0]
    return f"{first['type']}: {first['msg']}"
