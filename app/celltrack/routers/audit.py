from fastapi import APIRouter, Depends, Query

from app.celltrack.core.config import settings
from app.celltrack.core.context import Actor
from app.celltrack.core.deps import require_actor
from app.celltrack.core.ids import parse_uuid
from app.celltrack.db.session import get_db
from app.celltrack.schemas.audit import AuditEventListResponse
from app.celltrack.schemas.errors import ERROR_RESPONSES
from app.celltrack.services.audit import AuditService

router = APIRouter()


@router.get("/celltrack/audit-events", response_model=AuditEventListResponse, responses=ERROR_RESPONSES)
def list_audit_events(
    action: str | None = Query(None),
    transfer_id: str | None = Query(None),
    limit: int = Query(100, ge=1),
    offset: int = Query(0, ge=0),
    actor: Actor = Depends(require_actor),
    db=Depends(get_db),
):
    resolved_transfer_id = parse_uuid(transfer_id, resource="transfer") if transfer_id else None
    rows, total = AuditService(db).list_events(
        action=action,
        transfer_id=resolved_transfer_id,
        limit=min(limit, settings.AUDIT_LIST_MAX_PAGE_SIZE),
        offset=offset,
    )
    return AuditEventListResponse(rows=rows, total=total)
