from __future__ import annotations

import uuid
from datetime import datetime
from types import SimpleNamespace

from app.celltrack.core.scope import DESTINATION_AGENT_ROLE
from app.celltrack.core.security import get_password_hash
from app.celltrack.db.models import InventoryUnit, Location, ProductType, User
from app.celltrack.db.seed import run_seed
from app.celltrack.repos.locations import LocationRepository

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "change-me"
AGENT_PASSWORD = "Agent1234!"


def login(client, username: str, password: str) -> str:
    response = client.post("/celltrack/auth/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["access_token"]


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def location_by_name(db_session, name: str) -> Location:
    location = LocationRepository(db_session).get_by_name(name)
    assert location is not None, name
    return location


def create_agent(
    db_session,
    location: Location,
    *,
    username: str,
    display_name: str,
    role: str = DESTINATION_AGENT_ROLE,
) -> User:
    user = User(
        id=uuid.uuid4(),
        username=username,
        display_name=display_name,
        hashed_password=get_password_hash(AGENT_PASSWORD),
        role=role,
        location_id=location.id,
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    return user


def create_product_type(db_session, brand: str, model: str) -> ProductType:
    product_type = ProductType(id=uuid.uuid4(), brand=brand, model=model, created_at=datetime.utcnow())
    db_session.add(product_type)
    db_session.commit()
    return product_type


def create_unit(db_session, imei: str, product_type: ProductType, location: Location, **fields) -> InventoryUnit:
    unit = InventoryUnit(
        imei=imei,
        product_type_id=product_type.id,
        location_id=location.id,
        status=fields.pop("status", "New"),
        color=fields.pop("color", "Black"),
        created_at=datetime.utcnow(),
        **fields,
    )
    db_session.add(unit)
    db_session.commit()
    return unit


def unit_location_id(db_session, imei: str) -> str:
    db_session.expire_all()
    unit = db_session.get(InventoryUnit, imei)
    return str(unit.location_id)


def build_world(client, db_session) -> SimpleNamespace:
    """Seeded locations, the default admin, one agent per destination and a small stock."""
    run_seed(db_session)
    hidalgo = location_by_name(db_session, "CCF#1 Hidalgo")
    colinas = location_by_name(db_session, "CCF#2 Colinas")
    bodega = location_by_name(db_session, "Bodega")
    create_agent(db_session, colinas, username="agent-colinas", display_name="Agent Colinas")
    create_agent(db_session, hidalgo, username="agent-hidalgo", display_name="Agent Hidalgo")

    galaxy = create_product_type(db_session, "Samsung", "Galaxy A15")
    redmi = create_product_type(db_session, "Xiaomi", "Redmi 13C")
    create_unit(db_session, "350000000000001", galaxy, bodega, color="Black")
    create_unit(db_session, "350000000000002", galaxy, hidalgo, color="Blue")
    create_unit(db_session, "350000000000003", redmi, bodega, color="Green")

    return SimpleNamespace(
        hidalgo=hidalgo,
        colinas=colinas,
        bodega=bodega,
        galaxy=galaxy,
        redmi=redmi,
        admin_token=login(client, ADMIN_USERNAME, ADMIN_PASSWORD),
        colinas_token=login(client, "agent-colinas", AGENT_PASSWORD),
        hidalgo_token=login(client, "agent-hidalgo", AGENT_PASSWORD),
        imeis=["350000000000001", "350000000000002", "350000000000003"],
    )


def create_transfer(client, token: str, imeis: list[str], target_location_id) -> dict:
    response = client.post(
        "/celltrack/transfers",
        headers=auth(token),
        json={"imeis": imeis, "target_location_id": str(target_location_id)},
    )
    assert response.status_code == 201, response.text
    return response.json()


def audit_events(client, token: str, **params) -> list[dict]:
    response = client.get("/celltrack/audit-events", headers=auth(token), params=params)
    assert response.status_code == 200, response.text
    return response.json()["rows"]
