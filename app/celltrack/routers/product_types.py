from fastapi import APIRouter, Depends, Request

from app.celltrack.core.context import Actor
from app.celltrack.core.deps import require_actor
from app.celltrack.db.models import ProductType
from app.celltrack.db.session import get_db
from app.celltrack.schemas.catalog import (
    ProductTypeCreateRequest,
    ProductTypeDeleteResponse,
    ProductTypeListResponse,
    ProductTypeResponse,
    ProductTypeUpdateRequest,
    ReassignAndDeleteRequest,
    ReassignAndDeleteResponse,
)
from app.celltrack.schemas.errors import ERROR_RESPONSES
from app.celltrack.services.catalog import CatalogService

router = APIRouter()


def _product_type_response(product_type: ProductType) -> ProductTypeResponse:
    return ProductTypeResponse(
        id=str(product_type.id),
        brand=product_type.brand,
        model=product_type.model,
        display_name=product_type.display_name,
        minimum_stock=product_type.minimum_stock,
        created_at=product_type.created_at,
        updated_at=product_type.updated_at,
    )


@router.get("/celltrack/product-types", response_model=ProductTypeListResponse, responses=ERROR_RESPONSES)
def list_product_types(actor: Actor = Depends(require_actor), db=Depends(get_db)):
    rows = CatalogService(db).list_product_types()
    return ProductTypeListResponse(rows=[_product_type_response(row) for row in rows], total=len(rows))


@router.post(
    "/celltrack/product-types",
    response_model=ProductTypeResponse,
    status_code=201,
    responses=ERROR_RESPONSES,
)
def create_product_type(
    payload: ProductTypeCreateRequest,
    actor: Actor = Depends(require_actor),
    db=Depends(get_db),
):
    product_type = CatalogService(db).create_product_type(
        brand=payload.brand,
        model=payload.model,
        minimum_stock=payload.minimum_stock,
        actor=actor,
    )
    return _product_type_response(product_type)


@router.patch(
    "/celltrack/product-types/{product_type_id}",
    response_model=ProductTypeResponse,
    responses=ERROR_RESPONSES,
)
def update_product_type(
    product_type_id: str,
    payload: ProductTypeUpdateRequest,
    actor: Actor = Depends(require_actor),
    db=Depends(get_db),
):
    changes = payload.model_dump(exclude_unset=True)
    product_type = CatalogService(db).update_product_type(product_type_id, changes, actor)
    return _product_type_response(product_type)


@router.delete(
    "/celltrack/product-types/{product_type_id}",
    response_model=ProductTypeDeleteResponse,
    responses=ERROR_RESPONSES,
    summary="Delete a product type, or list where its units can be moved",
)
def delete_product_type(
    request: Request,
    product_type_id: str,
    actor: Actor = Depends(require_actor),
    db=Depends(get_db),
):
    outcome = CatalogService(db).request_delete(product_type_id, actor)
    trace_id = getattr(request.state, "trace_id", "")
    if outcome.deleted:
        return ProductTypeDeleteResponse(deleted=True, blocked=False, trace_id=trace_id)
    return ProductTypeDeleteResponse(
        deleted=False,
        blocked=outcome.blocked,
        affected_units=outcome.affected_units,
        candidates=[_product_type_response(candidate) for candidate in outcome.candidates],
        trace_id=trace_id,
    )


@router.post(
    "/celltrack/product-types/{product_type_id}/reassign-and-delete",
    response_model=ReassignAndDeleteResponse,
    responses=ERROR_RESPONSES,
)
def reassign_and_delete(
    request: Request,
    product_type_id: str,
    payload: ReassignAndDeleteRequest,
    actor: Actor = Depends(require_actor),
    db=Depends(get_db),
):
    count = CatalogService(db).reassign_and_delete(product_type_id, payload.target_product_type_id, actor)
    return ReassignAndDeleteResponse(reassigned_count=count, trace_id=getattr(request.state, "trace_id", ""))
