from fastapi import APIRouter, Depends, Request

from app.celltrack.core.context import Actor
from app.celltrack.core.deps import require_admin_actor
from app.celltrack.db.session import get_db
from app.celltrack.schemas.backup import BackupDocument, RestoreResponse
from app.celltrack.schemas.errors import ERROR_RESPONSES
from app.celltrack.services.backup import BackupService

router = APIRouter()


@router.get("/celltrack/backup", response_model=BackupDocument, responses=ERROR_RESPONSES)
def export_backup(actor: Actor = Depends(require_admin_actor), db=Depends(get_db)):
    return BackupService(db).export_backup()


@router.post("/celltrack/backup/restore", response_model=RestoreResponse, responses=ERROR_RESPONSES)
def restore_backup(
    request: Request,
    payload: BackupDocument,
    actor: Actor = Depends(require_admin_actor),
    db=Depends(get_db),
):
    outcome = BackupService(db).restore_backup(payload, actor)
    return RestoreResponse(
        product_types_restored=outcome.product_types_restored,
        units_restored=outcome.units_restored,
        skipped_product_types=outcome.skipped_product_types,
        skipped_units=outcome.skipped_units,
        folio_counter=outcome.folio_counter,
        trace_id=getattr(request.state, "trace_id", ""),
    )
