import pytest

import app.celltrack.db.session as session_module
from app.celltrack.core.context import actor_from_user
from app.celltrack.core.error_catalog import AppError
from app.celltrack.core.scope import ADMIN_ROLE
from app.celltrack.repos.users import UserRepository
from app.celltrack.services.transfers import TransferService
from tests.celltrack_helpers import (
    ADMIN_USERNAME,
    AGENT_PASSWORD,
    audit_events,
    auth,
    create_agent,
    create_transfer,
    login,
    unit_location_id,
)


def _confirm(client, token, transfer_id, role):
    return client.post(f"/celltrack/transfers/{transfer_id}/confirm", headers=auth(token), json={"role": role})


def test_destination_before_admin_is_rejected_without_change(client, world):
    created = create_transfer(client, world.admin_token, [world.imeis[0]], world.colinas.id)

    response = _confirm(client, world.colinas_token, created["id"], "destination")

    assert response.status_code == 409
    assert response.json()["code"] == "INVALID_STATE"
    detail = client.get(f"/celltrack/transfers/{created['id']}", headers=auth(world.admin_token)).json()
    assert detail["state"] == "PendingAdminConfirmation"
    assert detail["version"] == 1
    assert audit_events(client, world.admin_token, action="TransferConfirmed") == []


def test_admin_confirmation_requires_admin_role(client, world):
    created = create_transfer(client, world.colinas_token, [world.imeis[0]], world.colinas.id)

    response = _confirm(client, world.colinas_token, created["id"], "admin")

    assert response.status_code == 403
    assert response.json()["code"] == "INVALID_ROLE"


def test_destination_confirmation_requires_matching_location(client, world):
    created = create_transfer(client, world.admin_token, [world.imeis[0]], world.colinas.id)
    assert _confirm(client, world.admin_token, created["id"], "admin").status_code == 200

    wrong_agent = _confirm(client, world.hidalgo_token, created["id"], "destination")
    assert wrong_agent.status_code == 403
    assert wrong_agent.json()["code"] == "WRONG_LOCATION"

    admin_without_location = _confirm(client, world.admin_token, created["id"], "destination")
    assert admin_without_location.status_code == 403
    assert admin_without_location.json()["code"] == "WRONG_LOCATION"


def test_second_admin_confirmation_is_rejected(client, world):
    created = create_transfer(client, world.admin_token, [world.imeis[0]], world.colinas.id)
    assert _confirm(client, world.admin_token, created["id"], "admin").status_code == 200

    again = _confirm(client, world.admin_token, created["id"], "admin")

    assert again.status_code == 409
    assert again.json()["code"] == "INVALID_STATE"


def test_terminal_transfers_reject_further_transitions(client, db_session, world):
    created = create_transfer(client, world.admin_token, [world.imeis[0]], world.colinas.id)
    _confirm(client, world.admin_token, created["id"], "admin")
    _confirm(client, world.colinas_token, created["id"], "destination")

    cancel = client.post(f"/celltrack/transfers/{created['id']}/cancel", headers=auth(world.admin_token))
    assert cancel.status_code == 409
    assert cancel.json()["code"] == "INVALID_STATE"
    assert unit_location_id(db_session, world.imeis[0]) == str(world.colinas.id)

    confirm = _confirm(client, world.colinas_token, created["id"], "destination")
    assert confirm.status_code == 409

    cancelled = create_transfer(client, world.admin_token, [world.imeis[2]], world.colinas.id)
    assert client.post(f"/celltrack/transfers/{cancelled['id']}/cancel", headers=auth(world.admin_token)).status_code == 200
    second_cancel = client.post(f"/celltrack/transfers/{cancelled['id']}/cancel", headers=auth(world.admin_token))
    assert second_cancel.status_code == 409
    assert _confirm(client, world.admin_token, cancelled["id"], "admin").status_code == 409
    assert len(audit_events(client, world.admin_token, action="TransferCancelled")) == 1


def test_cancel_requires_admin(client, world):
    created = create_transfer(client, world.admin_token, [world.imeis[0]], world.colinas.id)

    response = client.post(f"/celltrack/transfers/{created['id']}/cancel", headers=auth(world.colinas_token))

    assert response.status_code == 403
    assert response.json()["code"] == "INVALID_ROLE"


def test_unknown_imei_rejects_the_whole_batch(client, db_session, world):
    response = client.post(
        "/celltrack/transfers",
        headers=auth(world.admin_token),
        json={"imeis": [world.imeis[0], "999999999999999"], "target_location_id": str(world.colinas.id)},
    )

    assert response.status_code == 404
    assert response.json()["details"]["imeis"] == ["999999999999999"]
    assert unit_location_id(db_session, world.imeis[0]) == str(world.bodega.id)
    assert audit_events(client, world.admin_token, action="ItemsTransferred") == []

    created = create_transfer(client, world.admin_token, [world.imeis[0]], world.colinas.id)
    assert created["folio"] == "TR-00001"


def test_create_rejects_empty_duplicate_and_unknown_target(client, world):
    empty = client.post(
        "/celltrack/transfers",
        headers=auth(world.admin_token),
        json={"imeis": [], "target_location_id": str(world.colinas.id)},
    )
    assert empty.status_code == 422
    assert empty.json()["code"] == "VALIDATION_ERROR"

    duplicate = client.post(
        "/celltrack/transfers",
        headers=auth(world.admin_token),
        json={"imeis": [world.imeis[0], world.imeis[0]], "target_location_id": str(world.colinas.id)},
    )
    assert duplicate.status_code == 422
    assert duplicate.json()["details"]["imeis"] == [world.imeis[0]]

    unknown_target = client.post(
        "/celltrack/transfers",
        headers=auth(world.admin_token),
        json={"imeis": [world.imeis[0]], "target_location_id": "00000000-0000-0000-0000-000000000000"},
    )
    assert unknown_target.status_code == 404


def test_transfers_require_authentication(client, world):
    response = client.get("/celltrack/transfers")

    assert response.status_code == 401


def test_admin_confirmer_cannot_also_confirm_as_destination(client, db_session, world):
    create_agent(db_session, world.colinas, username="admin-colinas", display_name="Boss", role=ADMIN_ROLE)
    boss_token = login(client, "admin-colinas", AGENT_PASSWORD)
    created = create_transfer(client, boss_token, [world.imeis[0]], world.colinas.id)
    assert _confirm(client, boss_token, created["id"], "admin").status_code == 200

    response = _confirm(client, boss_token, created["id"], "destination")

    assert response.status_code == 403
    assert response.json()["code"] == "INVALID_ROLE"
    detail = client.get(f"/celltrack/transfers/{created['id']}", headers=auth(world.admin_token)).json()
    assert detail["state"] == "PendingDestinationConfirmation"
    assert detail["destination_confirmed_by"] is None
    assert len(audit_events(client, world.admin_token, action="TransferConfirmed")) == 1

    completed = _confirm(client, world.colinas_token, created["id"], "destination")
    assert completed.status_code == 200
    assert completed.json()["state"] == "Completed"


def test_stale_session_loses_the_admin_confirmation_race(client, world):
    created = create_transfer(client, world.admin_token, [world.imeis[0]], world.colinas.id)

    with session_module.SessionLocal() as first, session_module.SessionLocal() as second:
        actor = actor_from_user(UserRepository(first).get_by_username(ADMIN_USERNAME))
        stale = TransferService(second).get_transfer(created["id"])
        assert stale.state == "PendingAdminConfirmation"

        TransferService(first).confirm_admin(created["id"], actor)

        with pytest.raises(AppError) as excinfo:
            TransferService(second).confirm_admin(created["id"], actor)

    assert excinfo.value.error.code == "INVALID_STATE"
    assert excinfo.value.details["message"] == "transfer was modified concurrently"
    detail = client.get(f"/celltrack/transfers/{created['id']}", headers=auth(world.admin_token)).json()
    assert detail["state"] == "PendingDestinationConfirmation"
    assert detail["version"] == 2
    assert len(audit_events(client, world.admin_token, action="TransferConfirmed")) == 1
