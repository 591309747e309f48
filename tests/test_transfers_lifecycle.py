from tests.celltrack_helpers import audit_events, auth, create_transfer, unit_location_id


def test_create_transfer_moves_units_and_snapshots_origins(client, db_session, world):
    body = create_transfer(client, world.admin_token, world.imeis[:2], world.colinas.id)

    assert body["folio"] == "TR-00001"
    assert body["state"] == "PendingAdminConfirmation"
    assert body["version"] == 1
    assert [unit["imei"] for unit in body["units"]] == world.imeis[:2]
    assert [unit["original_location_name"] for unit in body["units"]] == ["Bodega", "CCF#1 Hidalgo"]
    assert body["units"][0]["product_name"] == "Samsung Galaxy A15"

    for imei in world.imeis[:2]:
        assert unit_location_id(db_session, imei) == str(world.colinas.id)
    assert unit_location_id(db_session, world.imeis[2]) == str(world.bodega.id)

    report = body["report_text"]
    assert "Transfer folio: TR-00001" in report
    assert "Destination: CCF#2 Colinas" in report
    assert "1. IMEI: 350000000000001" in report
    assert "Status: PENDING ADMIN CONFIRMATION" in report
    assert "Please confirm receipt" in report

    events = audit_events(client, world.admin_token, action="ItemsTransferred")
    assert len(events) == 1
    details = events[0]["details"]
    assert details["folio"] == "TR-00001"
    assert details["original_locations"] == {
        "350000000000001": str(world.bodega.id),
        "350000000000002": str(world.hidalgo.id),
    }
    assert events[0]["transfer_id"] == body["id"]


def test_full_flow_admin_then_destination_completes(client, db_session, world):
    created = create_transfer(client, world.admin_token, world.imeis[:2], world.colinas.id)

    admin_response = client.post(
        f"/celltrack/transfers/{created['id']}/confirm",
        headers=auth(world.admin_token),
        json={"role": "admin"},
    )
    assert admin_response.status_code == 200
    assert admin_response.json()["new_state"] == "PendingDestinationConfirmation"
    assert "PENDING DESTINATION CONFIRMATION (Admin: Administrator)" in admin_response.json()["report_text"]

    destination_response = client.post(
        f"/celltrack/transfers/{created['id']}/confirm",
        headers=auth(world.colinas_token),
        json={"role": "destination"},
    )
    assert destination_response.status_code == 200
    body = destination_response.json()
    assert body["new_state"] == "Completed"
    assert body["admin_confirmed_by"] == "Administrator"
    assert body["destination_confirmed_by"] == "Agent Colinas"
    assert body["version"] == 3
    assert "Status: COMPLETED (Admin: Administrator, Destination: Agent Colinas)" in body["report_text"]
    assert "Please confirm receipt" not in body["report_text"]

    for imei in world.imeis[:2]:
        assert unit_location_id(db_session, imei) == str(world.colinas.id)

    events = audit_events(client, world.admin_token, transfer_id=created["id"])
    assert [event["action"] for event in reversed(events)] == [
        "ItemsTransferred",
        "TransferConfirmed",
        "TransferConfirmed",
    ]
    assert [event["details"]["confirmation_type"] for event in reversed(events[:2])] == ["admin", "destination"]


def test_cancel_restores_original_locations(client, db_session, world):
    created = create_transfer(client, world.admin_token, world.imeis, world.colinas.id)
    client.post(
        f"/celltrack/transfers/{created['id']}/confirm",
        headers=auth(world.admin_token),
        json={"role": "admin"},
    )

    response = client.post(f"/celltrack/transfers/{created['id']}/cancel", headers=auth(world.admin_token))

    assert response.status_code == 200
    body = response.json()
    assert body["state"] == "Cancelled"
    assert body["cancelled_by"] == "Administrator"
    assert "Status: CANCELLED (by Administrator) on " in body["report_text"]
    assert unit_location_id(db_session, world.imeis[0]) == str(world.bodega.id)
    assert unit_location_id(db_session, world.imeis[1]) == str(world.hidalgo.id)
    assert unit_location_id(db_session, world.imeis[2]) == str(world.bodega.id)

    events = audit_events(client, world.admin_token, action="TransferCancelled")
    assert events[0]["details"]["restored_locations"][world.imeis[1]] == str(world.hidalgo.id)
    assert events[0]["details"]["missing_imeis"] == []


def test_list_and_get_transfers(client, world):
    first = create_transfer(client, world.admin_token, [world.imeis[0]], world.colinas.id)
    second = create_transfer(client, world.admin_token, [world.imeis[2]], world.hidalgo.id)
    client.post(f"/celltrack/transfers/{first['id']}/cancel", headers=auth(world.admin_token))

    listing = client.get("/celltrack/transfers", headers=auth(world.colinas_token))
    assert listing.status_code == 200
    assert [row["folio"] for row in listing.json()["rows"]] == ["TR-00002", "TR-00001"]

    open_only = client.get("/celltrack/transfers", headers=auth(world.admin_token), params={"open_only": True})
    assert [row["id"] for row in open_only.json()["rows"]] == [second["id"]]

    by_target = client.get(
        "/celltrack/transfers",
        headers=auth(world.admin_token),
        params={"target_location_id": str(world.colinas.id)},
    )
    assert [row["id"] for row in by_target.json()["rows"]] == [first["id"]]

    by_state = client.get("/celltrack/transfers", headers=auth(world.admin_token), params={"state": "Cancelled"})
    assert by_state.json()["total"] == 1

    detail = client.get(f"/celltrack/transfers/{second['id']}", headers=auth(world.hidalgo_token))
    assert detail.status_code == 200
    assert detail.json()["units"][0]["imei"] == world.imeis[2]

    missing = client.get("/celltrack/transfers/not-a-uuid", headers=auth(world.admin_token))
    assert missing.status_code == 404
    assert missing.json()["code"] == "NOT_FOUND"
