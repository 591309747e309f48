from __future__ import annotations

import logging

from app.celltrack.core.context import actor_from_user
from app.celltrack.core.error_catalog import AppError, ErrorCatalog
from app.celltrack.core.logging import log_operation
from app.celltrack.core.security import create_user_access_token, verify_password
from app.celltrack.db.session import atomic
from app.celltrack.repos.users import UserRepository
from app.celltrack.schemas.audit import UserLoginDetails
from app.celltrack.services.audit import AuditService

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, db):
        self.db = db
        self.repo = UserRepository(db)
        self.audit = AuditService(db)

    def login(self, username: str, password: str, *, trace_id: str = ""):
        user = self.repo.get_by_username((username or "").strip())
        if user is None or not verify_password(password, user.hashed_password):
            logger.info("Login rejected", extra={"username": username, "trace_id": trace_id})
            raise AppError(ErrorCatalog.INVALID_CREDENTIALS)
        if not user.is_active:
            raise AppError(ErrorCatalog.USER_INACTIVE)

        actor = actor_from_user(user, trace_id=trace_id)
        with atomic(self.db):
            self.audit.record(
                actor,
                UserLoginDetails(
                    username=user.username,
                    role=actor.role,
                    location_name=user.location.name if user.location else None,
                ),
            )
        log_operation(logger, "auth.login", actor=actor, username=user.username)
        return user, create_user_access_token(user)
