import uuid

from sqlalchemy import select

from app.celltrack.db.models import User


class UserRepository:
    def __init__(self, db):
        self.db = db

    def get_by_id(self, user_id):
        try:
            key = user_id if isinstance(user_id, uuid.UUID) else uuid.UUID(str(user_id))
        except ValueError:
            return None
        return self.db.get(User, key)

    def get_by_username(self, username: str):
        stmt = select(User).where(User.username == username)
        return self.db.execute(stmt).scalars().first()
