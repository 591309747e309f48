from sqlalchemy import select

from app.celltrack.db.models import Location


class LocationRepository:
    def __init__(self, db):
        self.db = db

    def get(self, location_id) -> Location | None:
        return self.db.get(Location, location_id)

    def get_by_name(self, name: str) -> Location | None:
        return self.db.execute(select(Location).where(Location.name == name)).scalars().first()

    def list_locations(self) -> list[Location]:
        return self.db.execute(select(Location).order_by(Location.name.asc())).scalars().all()

    def names_by_id(self) -> dict[str, str]:
        return {str(location.id): location.name for location in self.list_locations()}
