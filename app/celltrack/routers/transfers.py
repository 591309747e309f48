from fastapi import APIRouter, Depends, Query, Request

from app.celltrack.core.context import Actor
from app.celltrack.core.deps import require_actor
from app.celltrack.core.error_catalog import AppError, ErrorCatalog
from app.celltrack.core.ids import parse_uuid
from app.celltrack.core.states import TransferState
from app.celltrack.db.session import get_db
from app.celltrack.repos.transfers import TransferQueryFilters
from app.celltrack.schemas.errors import ERROR_RESPONSES
from app.celltrack.schemas.transfers import (
    TransferConfirmRequest,
    TransferConfirmResponse,
    TransferCreateRequest,
    TransferListResponse,
    TransferResponse,
)
from app.celltrack.services.transfers import TransferService, to_transfer_response

router = APIRouter()


@router.get("/celltrack/transfers", response_model=TransferListResponse, responses=ERROR_RESPONSES)
def list_transfers(
    state: str | None = Query(None),
    target_location_id: str | None = Query(None),
    open_only: bool = Query(False),
    actor: Actor = Depends(require_actor),
    db=Depends(get_db),
):
    if state is not None and state not in {item.value for item in TransferState}:
        raise AppError(
            ErrorCatalog.VALIDATION_ERROR,
            details={"message": "unknown transfer state", "state": state},
        )
    if target_location_id:
        target_location_id = str(parse_uuid(target_location_id, resource="location"))
    rows = TransferService(db).list_transfers(
        TransferQueryFilters(state=state, target_location_id=target_location_id, open_only=open_only)
    )
    return TransferListResponse(rows=[to_transfer_response(row) for row in rows], total=len(rows))


@router.post(
    "/celltrack/transfers",
    response_model=TransferResponse,
    status_code=201,
    responses=ERROR_RESPONSES,
    summary="Create a transfer and move its units to the destination",
)
def create_transfer(
    request: Request,
    payload: TransferCreateRequest,
    actor: Actor = Depends(require_actor),
    db=Depends(get_db),
):
    transfer = TransferService(db).create_transfer(payload.imeis, payload.target_location_id, actor)
    return to_transfer_response(transfer, trace_id=getattr(request.state, "trace_id", ""))


@router.get("/celltrack/transfers/{transfer_id}", response_model=TransferResponse, responses=ERROR_RESPONSES)
def get_transfer(
    request: Request,
    transfer_id: str,
    actor: Actor = Depends(require_actor),
    db=Depends(get_db),
):
    transfer = TransferService(db).get_transfer(transfer_id)
    return to_transfer_response(transfer, trace_id=getattr(request.state, "trace_id", ""))


@router.post(
    "/celltrack/transfers/{transfer_id}/confirm",
    response_model=TransferConfirmResponse,
    responses=ERROR_RESPONSES,
    summary="Record the administrator or destination confirmation",
)
def confirm_transfer(
    request: Request,
    transfer_id: str,
    payload: TransferConfirmRequest,
    actor: Actor = Depends(require_actor),
    db=Depends(get_db),
):
    transfer = TransferService(db).confirm_transfer(transfer_id, payload.role, actor)
    response = to_transfer_response(transfer, trace_id=getattr(request.state, "trace_id", ""))
    return TransferConfirmResponse(**response.model_dump(), new_state=transfer.state)


@router.post(
    "/celltrack/transfers/{transfer_id}/cancel",
    response_model=TransferResponse,
    responses=ERROR_RESPONSES,
    summary="Cancel a transfer and return its units to their original locations",
)
def cancel_transfer(
    request: Request,
    transfer_id: str,
    actor: Actor = Depends(require_actor),
    db=Depends(get_db),
):
    transfer = TransferService(db).cancel_transfer(transfer_id, actor)
    return to_transfer_response(transfer, trace_id=getattr(request.state, "trace_id", ""))
