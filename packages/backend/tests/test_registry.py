"""ConnectionRegistry — handshake, fan-out, ordering, closed transports."""

import asyncio
import json

import pytest

from constructivo.realtime.registry import ConnectionRegistry

ADMIN_AUTH = '{"type": "adminAuth", "isAdmin": true}'


@pytest.fixture()
def reg():
    return ConnectionRegistry(outbox_size=5)


def test_new_connection_is_not_admin(reg, fake_socket):
    connection = reg.register(fake_socket())
    assert connection in reg
    assert connection.is_admin is False
    assert reg.admin_count == 0


def test_handshake_promotes_connection(reg, fake_socket):
    connection = reg.register(fake_socket())
    reg.handle_message(connection, ADMIN_AUTH)
    assert connection.is_admin is True
    assert reg.admin_count == 1


def test_handshake_false_does_not_promote(reg, fake_socket):
    connection = reg.register(fake_socket())
    reg.handle_message(connection, '{"type": "adminAuth", "isAdmin": false}')
    assert connection.is_admin is False


def test_admin_is_never_demoted(reg, fake_socket):
    connection = reg.register(fake_socket())
    reg.handle_message(connection, ADMIN_AUTH)
    reg.handle_message(connection, '{"type": "adminAuth", "isAdmin": false}')
    assert connection.is_admin is True


def test_malformed_frame_is_ignored(reg, fake_socket, drain):
    connection = reg.register(fake_socket())
    reg.handle_message(connection, "{oops")
    reg.handle_message(connection, '{"type": "unknown"}')
    assert connection in reg
    assert connection.is_admin is False
    assert drain(connection) == []


def test_ping_gets_pong(reg, fake_socket, drain):
    connection = reg.register(fake_socket())
    reg.handle_message(connection, '{"type": "ping"}')
    assert drain(connection) == [{"type": "pong"}]


def test_broadcast_reaches_only_admins(reg, fake_socket, drain):
    a = reg.register(fake_socket())
    b = reg.register(fake_socket())
    c = reg.register(fake_socket())
    reg.handle_message(a, ADMIN_AUTH)
    reg.handle_message(b, ADMIN_AUTH)

    delivered = reg.broadcast("users")

    assert delivered == 2
    expected = [{"event": "invalidateCache", "data": {"resource": "users"}}]
    assert drain(a) == expected
    assert drain(b) == expected
    assert drain(c) == []


def test_broadcast_with_no_connections_is_noop(reg):
    assert reg.broadcast("settings") == 0


def test_broadcast_skips_closed_transport(reg, fake_socket, drain):
    socket = fake_socket()
    connection = reg.register(socket)
    reg.handle_message(connection, ADMIN_AUTH)
    socket.disconnect()

    assert reg.broadcast("testimonials") == 0
    assert drain(connection) == []
    # Only the socket's own close path removes it
    assert connection in reg


def test_broadcast_preserves_call_order(reg, fake_socket, drain):
    connection = reg.register(fake_socket())
    reg.handle_message(connection, ADMIN_AUTH)

    reg.broadcast("testimonials")
    reg.broadcast("notifications")

    resources = [f["data"]["resource"] for f in drain(connection)]
    assert resources == ["testimonials", "notifications"]


def test_full_outbox_drops_frame_for_that_connection_only(reg, fake_socket, drain):
    slow = reg.register(fake_socket())
    fast = reg.register(fake_socket())
    reg.handle_message(slow, ADMIN_AUTH)
    reg.handle_message(fast, ADMIN_AUTH)

    for _ in range(5):
        reg.broadcast("users")
    drain(fast)

    assert reg.broadcast("settings") == 1
    assert drain(fast) == [{"event": "invalidateCache", "data": {"resource": "settings"}}]
    assert len(drain(slow)) == 5


def test_unregister(reg, fake_socket):
    connection = reg.register(fake_socket())
    reg.unregister(connection)
    assert connection not in reg
    assert len(reg) == 0
    # Unregistering twice is harmless
    reg.unregister(connection)


@pytest.mark.asyncio
async def test_sender_writes_frames_in_order(reg, fake_socket):
    socket = fake_socket()
    connection = reg.register(socket)
    reg.handle_message(connection, ADMIN_AUTH)
    reg.broadcast("testimonials")
    reg.broadcast("notifications")

    sender = asyncio.create_task(connection.run_sender())
    for _ in range(20):
        if len(socket.sent) == 2:
            break
        await asyncio.sleep(0)
    sender.cancel()
    with pytest.raises(asyncio.CancelledError):
        await sender

    assert [json.loads(f)["data"]["resource"] for f in socket.sent] == [
        "testimonials",
        "notifications",
    ]


@pytest.mark.asyncio
async def test_sender_stops_quietly_when_transport_fails(reg, fake_socket):
    socket = fake_socket()

    async def broken_send(data):
        raise RuntimeError("Cannot call send once a close message has been sent.")

    socket.send_text = broken_send
    connection = reg.register(socket)
    connection.enqueue("{}")

    await asyncio.wait_for(connection.run_sender(), timeout=1)


def test_truthy_non_boolean_handshake_does_not_promote(reg, fake_socket):
    connection = reg.register(fake_socket())
    reg.handle_message(connection, '{"type": "adminAuth", "isAdmin": "yes"}')
    reg.handle_message(connection, '{"type": "adminAuth", "isAdmin": 1}')
    assert connection.is_admin is False
