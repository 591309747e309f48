from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.celltrack.core.error_catalog import ErrorCatalog
from app.celltrack.core.errors import error_response
from app.celltrack.db.session import get_db
from app.celltrack.repos.counters import TRANSFER_FOLIO_COUNTER, CounterRepository

router = APIRouter()


@router.get("/health")
async def health(request: Request):
    return {"status": "ok", "trace_id": getattr(request.state, "trace_id", "")}


@router.get("/ready")
def ready(request: Request, db=Depends(get_db)):
    """Ready once the schema is migrated and the folio counter row exists."""
    trace_id = getattr(request.state, "trace_id", "")
    try:
        db.execute(text("SELECT 1"))
        folio = CounterRepository(db).current_value(TRANSFER_FOLIO_COUNTER)
    except SQLAlchemyError as exc:
        return error_response(ErrorCatalog.DB_UNAVAILABLE, trace_id, {"type": exc.__class__.__name__})
    return {"status": "ready", "last_folio": folio, "trace_id": trace_id}
