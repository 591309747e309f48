import pytest

from app.celltrack.db.models import AuditEvent, ImmutableAuditEventError
from tests.celltrack_helpers import audit_events, auth, create_transfer


def test_sequences_increase_and_filters_apply(client, world):
    created = create_transfer(client, world.admin_token, [world.imeis[0]], world.colinas.id)
    create_transfer(client, world.admin_token, [world.imeis[2]], world.hidalgo.id)

    events = audit_events(client, world.colinas_token)
    sequences = [event["sequence"] for event in events]
    assert sequences == sorted(sequences, reverse=True)
    assert len(set(sequences)) == len(sequences)

    logins = audit_events(client, world.admin_token, action="UserLogin")
    assert {event["details"]["username"] for event in logins} == {"admin", "agent-colinas", "agent-hidalgo"}

    scoped = audit_events(client, world.admin_token, transfer_id=created["id"])
    assert [event["action"] for event in scoped] == ["ItemsTransferred"]
    assert scoped[0]["actor"] == "Administrator"
    assert scoped[0]["actor_role"] == "ADMIN"


def test_audit_events_cannot_be_modified_or_deleted(client, db_session, world):
    create_transfer(client, world.admin_token, [world.imeis[0]], world.colinas.id)
    event = db_session.query(AuditEvent).filter(AuditEvent.action == "ItemsTransferred").one()

    event.actor = "someone else"
    with pytest.raises(ImmutableAuditEventError):
        db_session.flush()
    db_session.rollback()

    event = db_session.query(AuditEvent).filter(AuditEvent.action == "ItemsTransferred").one()
    db_session.delete(event)
    with pytest.raises(ImmutableAuditEventError):
        db_session.flush()
    db_session.rollback()

    assert audit_events(client, world.admin_token, action="ItemsTransferred")[0]["actor"] == "Administrator"


def test_failed_operation_leaves_no_audit_entry(client, world):
    before = audit_events(client, world.admin_token, limit=500)

    response = client.post(
        "/celltrack/transfers",
        headers=auth(world.admin_token),
        json={"imeis": ["does-not-exist"], "target_location_id": str(world.colinas.id)},
    )

    assert response.status_code == 404
    assert audit_events(client, world.admin_token, limit=500) == before
