from sqlalchemy import select

from app.celltrack.core.config import settings
from app.celltrack.core.scope import ADMIN_ROLE
from app.celltrack.core.security import get_password_hash
from app.celltrack.db.models import Location, User


def _default_location_names() -> list[str]:
    return [name.strip() for name in settings.DEFAULT_LOCATIONS.split(",") if name.strip()]


def _get_or_create_locations(db) -> list[Location]:
    existing = {location.name: location for location in db.execute(select(Location)).scalars().all()}
    locations = []
    for name in _default_location_names():
        location = existing.get(name)
        if location is None:
            location = Location(name=name)
            db.add(location)
        locations.append(location)
    db.flush()
    return locations


def _get_or_create_admin(db) -> User:
    user = db.execute(select(User).where(User.username == settings.DEFAULT_ADMIN_USERNAME)).scalars().first()
    if user:
        return user
    user = User(
        username=settings.DEFAULT_ADMIN_USERNAME,
        display_name=settings.DEFAULT_ADMIN_NAME,
        hashed_password=get_password_hash(settings.DEFAULT_ADMIN_PASSWORD),
        role=ADMIN_ROLE,
        is_active=True,
    )
    db.add(user)
    return user


def run_seed(db):
    _get_or_create_locations(db)
    _get_or_create_admin(db)
    db.commit()


if __name__ == "__main__":
    from app.celltrack.db.session import SessionLocal

    with SessionLocal() as session:
        run_seed(session)
