from app.celltrack.db.models import InventoryUnit
from tests.celltrack_helpers import ADMIN_PASSWORD, audit_events, auth


def _intake(world, imei, **overrides):
    payload = {
        "imei": imei,
        "product_type_id": str(world.galaxy.id),
        "location_id": str(world.bodega.id),
        "color": "White",
        "memory": "128GB",
        "purchase_price": "3499.90",
    }
    payload.update(overrides)
    return payload


def test_bulk_intake_skips_duplicates_and_unknown_references(client, db_session, world):
    response = client.post(
        "/celltrack/inventory",
        headers=auth(world.admin_token),
        json={
            "units": [
                _intake(world, "360000000000001"),
                _intake(world, "360000000000001"),
                _intake(world, world.imeis[0]),
                _intake(world, "360000000000002", product_type_id="00000000-0000-0000-0000-000000000000"),
                _intake(world, "360000000000003", product_type_id=str(world.redmi.id)),
            ]
        },
    )

    assert response.status_code == 201
    body = response.json()
    assert body["added_count"] == 2
    assert body["skipped_count"] == 3
    assert body["added_imeis"] == ["360000000000001", "360000000000003"]
    db_session.expire_all()
    assert str(db_session.get(InventoryUnit, "360000000000001").purchase_price) == "3499.90"

    details = audit_events(client, world.admin_token, action="ItemsAdded")[0]["details"]
    assert details["count"] == 2
    assert details["skipped_count"] == 3
    assert {group["product_name"] for group in details["groups"]} == {"Samsung Galaxy A15", "Xiaomi Redmi 13C"}


def test_register_unit_rejects_duplicate_imei(client, world):
    created = client.post("/celltrack/inventory/units", headers=auth(world.admin_token), json=_intake(world, "370000000000001"))
    assert created.status_code == 201
    assert created.json()["location_name"] == "Bodega"

    duplicate = client.post(
        "/celltrack/inventory/units",
        headers=auth(world.admin_token),
        json=_intake(world, "370000000000001"),
    )
    assert duplicate.status_code == 409
    assert duplicate.json()["code"] == "DUPLICATE_KEY"


def test_list_units_filters(client, world):
    by_location = client.get(
        "/celltrack/inventory",
        headers=auth(world.admin_token),
        params={"location_id": str(world.bodega.id)},
    )
    assert by_location.status_code == 200
    assert [row["imei"] for row in by_location.json()["rows"]] == [world.imeis[0], world.imeis[2]]

    by_type = client.get(
        "/celltrack/inventory",
        headers=auth(world.admin_token),
        params={"product_type_id": str(world.redmi.id)},
    )
    assert by_type.json()["total"] == 1
    assert by_type.json()["rows"][0]["product_name"] == "Xiaomi Redmi 13C"

    too_big = client.get("/celltrack/inventory", headers=auth(world.admin_token), params={"page_size": 100000})
    assert too_big.status_code == 422


def test_delete_units_requires_admin_and_credential(client, db_session, world):
    agent = client.post(
        "/celltrack/inventory/delete",
        headers=auth(world.colinas_token),
        json={"imeis": [world.imeis[0]], "credential": {"username": "admin", "password": ADMIN_PASSWORD}},
    )
    assert agent.status_code == 403

    bad_credential = client.post(
        "/celltrack/inventory/delete",
        headers=auth(world.admin_token),
        json={"imeis": [world.imeis[0]], "credential": {"username": "admin", "password": "nope"}},
    )
    assert bad_credential.status_code == 401
    assert bad_credential.json()["code"] == "REAUTH_FAILED"

    unknown = client.post(
        "/celltrack/inventory/delete",
        headers=auth(world.admin_token),
        json={"imeis": [world.imeis[0], "404"], "credential": {"username": "admin", "password": ADMIN_PASSWORD}},
    )
    assert unknown.status_code == 404
    db_session.expire_all()
    assert db_session.get(InventoryUnit, world.imeis[0]) is not None

    response = client.post(
        "/celltrack/inventory/delete",
        headers=auth(world.admin_token),
        json={"imeis": world.imeis[:2], "credential": {"username": "admin", "password": ADMIN_PASSWORD}},
    )
    assert response.status_code == 200
    assert response.json()["deleted_count"] == 2
    db_session.expire_all()
    assert db_session.get(InventoryUnit, world.imeis[0]) is None

    details = audit_events(client, world.admin_token, action="ItemsDeleted")[0]["details"]
    assert details["authorized_by"] == "Administrator"
    assert [item["location_name"] for item in details["deleted_items"]] == ["Bodega", "CCF#1 Hidalgo"]
