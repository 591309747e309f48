from __future__ import annotations

from sqlalchemy import func, select

from app.celltrack.db.models import AuditEvent


class AuditRepository:
    """Append-only access to the audit log."""

    def __init__(self, db):
        self.db = db

    def append(self, event: AuditEvent) -> AuditEvent:
        self.db.add(event)
        self.db.flush()
        return event

    def list_events(
        self,
        *,
        action: str | None = None,
        transfer_id=None,
        limit: int | None = None,
        offset: int = 0,
    ) -> tuple[list[AuditEvent], int]:
        query = select(AuditEvent)
        count_query = select(func.count()).select_from(AuditEvent)
        if action:
            query = query.where(AuditEvent.action == action)
            count_query = count_query.where(AuditEvent.action == action)
        if transfer_id is not None:
            query = query.where(AuditEvent.transfer_id == transfer_id)
            count_query = count_query.where(AuditEvent.transfer_id == transfer_id)
        query = query.order_by(AuditEvent.sequence.desc()).offset(offset)
        if limit:
            query = query.limit(limit)
        rows = self.db.execute(query).scalars().all()
        total = self.db.execute(count_query).scalar_one()
        return rows, int(total)

    def list_all(self) -> list[AuditEvent]:
        return self.db.execute(select(AuditEvent).order_by(AuditEvent.sequence.asc())).scalars().all()
