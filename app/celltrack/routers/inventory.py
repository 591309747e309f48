from fastapi import APIRouter, Depends, Query, Request

from app.celltrack.core.config import settings
from app.celltrack.core.context import Actor
from app.celltrack.core.deps import require_actor
from app.celltrack.core.error_catalog import AppError, ErrorCatalog
from app.celltrack.core.states import UnitStatus
from app.celltrack.db.models import InventoryUnit
from app.celltrack.db.session import get_db
from app.celltrack.repos.catalog import CatalogRepository
from app.celltrack.repos.inventory import InventoryQueryFilters
from app.celltrack.repos.locations import LocationRepository
from app.celltrack.schemas.errors import ERROR_RESPONSES
from app.celltrack.schemas.inventory import (
    InventoryListResponse,
    InventoryUnitResponse,
    StatusChangeRequest,
    StatusChangeResponse,
    UnitDeleteRequest,
    UnitDeleteResponse,
    UnitIntake,
    UnitIntakeRequest,
    UnitIntakeResponse,
)
from app.celltrack.services.inventory import InventoryService

router = APIRouter()


def _unit_response(unit: InventoryUnit, *, product_names: dict, location_names: dict) -> InventoryUnitResponse:
    return InventoryUnitResponse(
        imei=unit.imei,
        imei2=unit.imei2,
        product_type_id=str(unit.product_type_id),
        product_name=product_names.get(str(unit.product_type_id)),
        location_id=str(unit.location_id),
        location_name=location_names.get(str(unit.location_id)),
        status=unit.status,
        memory=unit.memory,
        color=unit.color,
        supplier=unit.supplier,
        purchase_price=unit.purchase_price,
        purchase_invoice_id=unit.purchase_invoice_id,
        purchase_invoice_date=unit.purchase_invoice_date,
        created_at=unit.created_at,
        updated_at=unit.updated_at,
    )


@router.get("/celltrack/inventory", response_model=InventoryListResponse, responses=ERROR_RESPONSES)
def list_units(
    location_id: str | None = Query(None),
    status: str | None = Query(None),
    product_type_id: str | None = Query(None),
    q: str | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(100, ge=1),
    actor: Actor = Depends(require_actor),
    db=Depends(get_db),
):
    if page_size > settings.INVENTORY_LIST_MAX_PAGE_SIZE:
        raise AppError(
            ErrorCatalog.VALIDATION_ERROR,
            details={"message": "page_size exceeds maximum", "max_page_size": settings.INVENTORY_LIST_MAX_PAGE_SIZE},
        )
    if status is not None and status not in {item.value for item in UnitStatus}:
        raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"message": "unknown status", "status": status})
    filters = InventoryQueryFilters(location_id=location_id, status=status, product_type_id=product_type_id, q=q)
    rows, total = InventoryService(db).list_units(filters, page=page, page_size=page_size)
    product_names = {str(pt.id): pt.display_name for pt in CatalogRepository(db).list_product_types()}
    location_names = LocationRepository(db).names_by_id()
    return InventoryListResponse(
        rows=[_unit_response(row, product_names=product_names, location_names=location_names) for row in rows],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.post(
    "/celltrack/inventory",
    response_model=UnitIntakeResponse,
    status_code=201,
    responses=ERROR_RESPONSES,
    summary="Bulk intake; invalid or duplicate records are skipped",
)
def add_units(
    request: Request,
    payload: UnitIntakeRequest,
    actor: Actor = Depends(require_actor),
    db=Depends(get_db),
):
    result = InventoryService(db).add_units(payload.units, actor)
    return UnitIntakeResponse(
        added_count=result.added_count,
        skipped_count=result.skipped_count,
        added_imeis=result.added_imeis,
        skipped_imeis=result.skipped_imeis,
        trace_id=getattr(request.state, "trace_id", ""),
    )


@router.post(
    "/celltrack/inventory/units",
    response_model=InventoryUnitResponse,
    status_code=201,
    responses=ERROR_RESPONSES,
    summary="Register a single unit",
)
def register_unit(
    payload: UnitIntake,
    actor: Actor = Depends(require_actor),
    db=Depends(get_db),
):
    unit = InventoryService(db).register_unit(payload, actor)
    product_names = {str(pt.id): pt.display_name for pt in CatalogRepository(db).list_product_types()}
    return _unit_response(unit, product_names=product_names, location_names=LocationRepository(db).names_by_id())


@router.post(
    "/celltrack/inventory/status",
    response_model=StatusChangeResponse,
    responses=ERROR_RESPONSES,
    summary="Change the status of a batch of units",
)
def change_status(
    request: Request,
    payload: StatusChangeRequest,
    actor: Actor = Depends(require_actor),
    db=Depends(get_db),
):
    result = InventoryService(db).change_status(payload.imeis, payload.new_status, actor, payload.credential)
    return StatusChangeResponse(
        updated_count=result.updated_count,
        staged=result.staged,
        requires_reauth=result.requires_reauth,
        trace_id=getattr(request.state, "trace_id", ""),
    )


@router.post(
    "/celltrack/inventory/delete",
    response_model=UnitDeleteResponse,
    responses=ERROR_RESPONSES,
    summary="Hard-delete a batch of units (administrator credentials required)",
)
def delete_units(
    request: Request,
    payload: UnitDeleteRequest,
    actor: Actor = Depends(require_actor),
    db=Depends(get_db),
):
    count = InventoryService(db).delete_units(payload.imeis, actor, payload.credential)
    return UnitDeleteResponse(deleted_count=count, trace_id=getattr(request.state, "trace_id", ""))
