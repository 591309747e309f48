from sqlalchemy import select

from app.celltrack.db.models import Counter, InventoryUnit, ProductType
from tests.celltrack_helpers import audit_events, auth, create_transfer


def test_export_contains_catalog_ledger_transfers_and_log(client, world):
    create_transfer(client, world.admin_token, [world.imeis[0]], world.colinas.id)

    response = client.get("/celltrack/backup", headers=auth(world.admin_token))

    assert response.status_code == 200
    document = response.json()
    assert document["version"] == "1"
    assert document["folio_counter"] == 1
    assert {item["model"] for item in document["product_types"]} == {"Galaxy A15", "Redmi 13C"}
    assert {unit["imei"] for unit in document["units"]} == set(world.imeis)
    assert document["transfers"][0]["folio"] == "TR-00001"
    assert any(event["action"] == "ItemsTransferred" for event in document["audit_events"])


def test_export_and_restore_require_admin(client, world):
    assert client.get("/celltrack/backup", headers=auth(world.colinas_token)).status_code == 403
    response = client.post("/celltrack/backup/restore", headers=auth(world.colinas_token), json={})
    assert response.status_code == 403


def test_restore_replaces_catalog_and_ledger_with_dedupe(client, db_session, world):
    document = client.get("/celltrack/backup", headers=auth(world.admin_token)).json()
    audit_before = len(audit_events(client, world.admin_token, limit=500))
    document["product_types"].append(dict(document["product_types"][0], brand="Duplicate"))
    document["units"].append(dict(document["units"][0], color="Duplicate"))
    document["units"].append(dict(document["units"][0], imei="380000000000001", product_type_id="missing"))
    document["units"].append(
        dict(document["units"][0], imei="380000000000002", location_id="00000000-0000-0000-0000-000000000000")
    )

    response = client.post("/celltrack/backup/restore", headers=auth(world.admin_token), json=document)

    assert response.status_code == 200
    body = response.json()
    assert body["product_types_restored"] == 2
    assert body["skipped_product_types"] == 1
    assert body["units_restored"] == 3
    assert body["skipped_units"] == 3

    db_session.expire_all()
    assert len(db_session.execute(select(ProductType)).scalars().all()) == 2
    assert "Duplicate" not in {pt.brand for pt in db_session.execute(select(ProductType)).scalars().all()}
    assert len(db_session.execute(select(InventoryUnit)).scalars().all()) == 3

    after = audit_events(client, world.admin_token, limit=500)
    assert len(after) == audit_before + 1
    assert after[0]["action"] == "BackupRestored"


def test_restore_never_lowers_the_folio_counter(client, db_session, world):
    document = client.get("/celltrack/backup", headers=auth(world.admin_token)).json()
    create_transfer(client, world.admin_token, [world.imeis[0]], world.colinas.id)
    create_transfer(client, world.admin_token, [world.imeis[2]], world.colinas.id)

    response = client.post("/celltrack/backup/restore", headers=auth(world.admin_token), json=document)

    assert response.status_code == 200
    assert response.json()["folio_counter"] == 2
    next_transfer = create_transfer(client, world.admin_token, [world.imeis[1]], world.colinas.id)
    assert next_transfer["folio"] == "TR-00003"

    document["folio_counter"] = 40
    client.post("/celltrack/backup/restore", headers=auth(world.admin_token), json=document)
    db_session.expire_all()
    counter = db_session.execute(select(Counter).where(Counter.name == "transfer_folio")).scalars().one()
    assert counter.value == 40


def test_restore_skips_oversized_imeis_and_strips_imei2(client, db_session, world):
    document = client.get("/celltrack/backup", headers=auth(world.admin_token)).json()
    document["units"][0]["imei2"] = "  351111111111111  "
    document["units"].append(dict(document["units"][1], imei="3" * 33))
    document["units"].append(dict(document["units"][1], imei="380000000000003", imei2="4" * 33))

    response = client.post("/celltrack/backup/restore", headers=auth(world.admin_token), json=document)

    assert response.status_code == 200
    assert response.json()["units_restored"] == 3
    assert response.json()["skipped_units"] == 2
    db_session.expire_all()
    restored = db_session.get(InventoryUnit, document["units"][0]["imei"])
    assert restored.imei2 == "351111111111111"
    assert db_session.get(InventoryUnit, "3" * 33) is None
