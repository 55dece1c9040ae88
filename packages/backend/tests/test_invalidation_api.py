"""REST mutations → invalidateCache fan-out to admin tabs.

Learn: Tabs here are fake sockets registered on the app's real registry,
so the route handler, the dependency wiring and the registry all run for
real. Frames are read straight from each tab's outbox.
"""

import pytest

from constructivo.db import models
from constructivo.db.models import Notification, Project
from constructivo.realtime.invalidation import invalidate_admin_cache
from constructivo.realtime.messages import RESOURCES


def _resources(frames: list[dict]) -> list[str]:
    return [f["data"]["resource"] for f in frames if f.get("event") == "invalidateCache"]


@pytest.mark.parametrize("resource", sorted(RESOURCES))
def test_every_resource_reaches_every_admin_once(resource, connect_tab, drain):
    a = connect_tab(admin=True)
    b = connect_tab(admin=True)
    c = connect_tab(admin=False)

    invalidate_admin_cache(resource)

    expected = [{"event": "invalidateCache", "data": {"resource": resource}}]
    assert drain(a) == expected
    assert drain(b) == expected
    assert drain(c) == []


def test_unauthenticated_tab_never_receives_events(connect_tab, drain):
    c = connect_tab(admin=False)
    for resource in ("users", "settings", "testimonials", "notifications", "users"):
        invalidate_admin_cache(resource)
    assert drain(c) == []


def test_unknown_resource_is_delivered_verbatim(connect_tab, drain):
    a = connect_tab(admin=True)
    invalidate_admin_cache("unknown-resource")
    assert _resources(drain(a)) == ["unknown-resource"]


@pytest.mark.asyncio
async def test_admin_status_change_invalidates_users(
    admin_client, regular_user, connect_tab, drain
):
    a = connect_tab(admin=True)
    b = connect_tab(admin=True)
    c = connect_tab(admin=False)

    r = await admin_client.patch(
        f"/api/users/{regular_user.id}/admin-status", json={"isAdmin": True}
    )
    assert r.status_code == 200

    assert _resources(drain(a)) == ["users"]
    assert _resources(drain(b)) == ["users"]
    assert drain(c) == []


@pytest.mark.asyncio
async def test_testimonial_moderation_invalidates_in_order(
    admin_client, db_session, connect_tab, drain
):
    testimonial = models.Testimonial(name="Ana", role="Homeowner", content="Great crew.")
    db_session.add(testimonial)
    await db_session.commit()
    a = connect_tab(admin=True)

    r = await admin_client.patch(
        f"/api/testimonials/{testimonial.id}/status", json={"approved": True}
    )
    assert r.status_code == 200
    assert _resources(drain(a)) == ["testimonials", "notifications"]

    r = await admin_client.delete(f"/api/testimonials/{testimonial.id}")
    assert r.status_code == 200
    assert _resources(drain(a)) == ["testimonials", "notifications"]


@pytest.mark.asyncio
async def test_settings_update_invalidates_settings(admin_client, connect_tab, drain):
    a = connect_tab(admin=True)
    r = await admin_client.patch("/api/settings", json={"theme": {"primary": "#ff6600"}})
    assert r.status_code == 200
    assert _resources(drain(a)) == ["settings"]


@pytest.mark.asyncio
async def test_notification_read_invalidates_notifications(
    admin_client, admin_user, db_session, connect_tab, drain
):
    note = Notification(user_id=admin_user.id, title="Hi", message="Hello", type="system")
    db_session.add(note)
    await db_session.commit()
    a = connect_tab(admin=True)

    r = await admin_client.patch(f"/api/notifications/{note.id}/read")
    assert r.status_code == 200
    r = await admin_client.post("/api/notifications/mark-all-read")
    assert r.status_code == 200
    assert _resources(drain(a)) == ["notifications", "notifications"]


@pytest.mark.asyncio
async def test_contact_form_invalidates_notifications(client, admin_user, connect_tab, drain):
    a = connect_tab(admin=True)
    r = await client.post("/api/contact", json={
        "name": "Maria Lopez",
        "email": "maria@example.com",
        "phone": "+1 (713) 555-0100",
        "message": "I'd like a quote for a kitchen remodel.",
    })
    assert r.status_code == 201
    assert _resources(drain(a)) == ["notifications"]


@pytest.mark.asyncio
async def test_failed_mutation_does_not_invalidate(admin_client, connect_tab, drain):
    a = connect_tab(admin=True)
    r = await admin_client.patch("/api/users/9999/admin-status", json={"isAdmin": True})
    assert r.status_code == 404
    r = await admin_client.patch("/api/testimonials/9999/status", json={"approved": True})
    assert r.status_code == 404
    assert drain(a) == []


@pytest.mark.asyncio
async def test_closing_admin_tab_does_not_break_rest_call(
    admin_client, regular_user, connect_tab, drain
):
    a = connect_tab(admin=True)
    closing = connect_tab(admin=True)
    closing.websocket.disconnect()
    b = connect_tab(admin=True)

    r = await admin_client.patch(
        f"/api/users/{regular_user.id}/admin-status", json={"isAdmin": True}
    )

    assert r.status_code == 200
    assert r.json()["isAdmin"] is True
    assert _resources(drain(a)) == ["users"]
    assert _resources(drain(b)) == ["users"]
    assert drain(closing) == []


@pytest.mark.asyncio
async def test_project_writes_never_invalidate(admin_client, db_session, connect_tab, drain):
    a = connect_tab(admin=True)

    r = await admin_client.post("/api/projects", json={
        "title": "Riverside Lofts",
        "description": "Twelve-unit loft conversion.",
        "category": "Residential",
    })
    assert r.status_code == 201
    project_id = r.json()["id"]

    r = await admin_client.patch(f"/api/projects/{project_id}", json={"featured": True})
    assert r.status_code == 200
    r = await admin_client.delete(f"/api/projects/{project_id}")
    assert r.status_code == 200

    assert await db_session.get(Project, project_id) is None
    frames = drain(a)
    assert "projects" not in _resources(frames)
    assert frames == []
