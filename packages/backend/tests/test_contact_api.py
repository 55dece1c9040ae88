"""Contact form API — submissions become admin notifications."""

import pytest
from sqlalchemy import select

from constructivo.db.models import Notification

VALID = {
    "name": "Maria Lopez",
    "email": "maria@example.com",
    "phone": "+1 (713) 555-0100",
    "message": "I'd like a quote for a kitchen remodel.",
}


@pytest.mark.asyncio
async def test_contact_notifies_admins(client, admin_user, regular_user, db_session):
    r = await client.post("/api/contact", json={
        **VALID,
        "location": {"latitude": 29.76, "longitude": -95.37, "address": "Houston, TX"},
    })
    assert r.status_code == 201
    assert r.json() == {"success": True}

    result = await db_session.execute(select(Notification))
    [note] = result.scalars().all()
    assert note.user_id == admin_user.id
    assert note.type == "contact"
    assert note.title == "New inquiry from Maria Lopez"
    assert "Location: Houston, TX" in note.message
    assert note.message.endswith(VALID["message"])


@pytest.mark.asyncio
async def test_contact_without_admins_still_succeeds(client):
    r = await client.post("/api/contact", json=VALID)
    assert r.status_code == 201


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "field,value",
    [
        ("name", "M"),
        ("email", "not-an-email"),
        ("phone", "call me maybe"),
        ("message", "too short"),
    ],
)
async def test_contact_validation(client, field, value):
    r = await client.post("/api/contact", json={**VALID, field: value})
    assert r.status_code == 422
