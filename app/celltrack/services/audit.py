import logging
from datetime import datetime

from app.celltrack.core.context import Actor
from app.celltrack.db.models import AuditEvent
from app.celltrack.repos.audit import AuditRepository
from app.celltrack.repos.counters import AUDIT_SEQUENCE_COUNTER, CounterRepository
from app.celltrack.schemas.audit import AuditDetails, AuditEventResponse, audit_details_adapter

logger = logging.getLogger(__name__)


class AuditService:
    """Write-ahead audit logging.

    Events are added to the caller's session and flushed, never committed
    here: the entry becomes durable in the same commit as the state change it
    describes, or not at all. Failures propagate to the caller.
    """

    def __init__(self, db):
        self.db = db
        self.repo = AuditRepository(db)
        self.counters = CounterRepository(db)

    def record(self, actor: Actor, details: AuditDetails, *, transfer_id=None) -> AuditEvent:
        payload = details.model_dump(mode="json")
        try:
            event = AuditEvent(
                sequence=self.counters.next_value(AUDIT_SEQUENCE_COUNTER),
                action=details.action,
                actor=actor.name,
                actor_role=actor.role,
                user_id=actor.user_id,
                transfer_id=transfer_id,
                trace_id=actor.trace_id or None,
                details=payload,
                created_at=datetime.utcnow(),
            )
            return self.repo.append(event)
        except Exception:
            logger.exception(
                "Failed to append audit event",
                extra={"action": details.action, "trace_id": actor.trace_id},
            )
            raise

    def list_events(
        self,
        *,
        action: str | None = None,
        transfer_id=None,
        limit: int | None = None,
        offset: int = 0,
    ) -> tuple[list[AuditEventResponse], int]:
        rows, total = self.repo.list_events(action=action, transfer_id=transfer_id, limit=limit, offset=offset)
        return [to_audit_response(row) for row in rows], total


def to_audit_response(event: AuditEvent) -> AuditEventResponse:
    return AuditEventResponse(
        id=str(event.id),
        sequence=event.sequence,
        action=event.action,
        actor=event.actor,
        actor_role=event.actor_role,
        transfer_id=str(event.transfer_id) if event.transfer_id else None,
        created_at=event.created_at,
        details=audit_details_adapter.validate_python(event.details),
    )
