from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from app.celltrack.core.context import Actor
from app.celltrack.core.error_catalog import AppError, ErrorCatalog
from app.celltrack.core.ids import parse_uuid
from app.celltrack.core.logging import log_operation
from app.celltrack.core.scope import require_admin
from app.celltrack.db.models import ProductType
from app.celltrack.db.session import atomic
from app.celltrack.repos.catalog import CatalogRepository
from app.celltrack.schemas.audit import (
    ItemsReassignedDetails,
    ProductTypeAddedDetails,
    ProductTypeDeletedDetails,
    ProductTypeUpdatedDetails,
    ReassignmentPointer,
)
from app.celltrack.services.audit import AuditService

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = ("brand", "model", "minimum_stock")


@dataclass(frozen=True)
class DeletionOutcome:
    """Result of a delete request.

    `deleted` is set when the product type had no dependents and is gone.
    Otherwise `affected_units` and `candidates` describe the reassignment the
    caller has to choose before calling `reassign_and_delete`.
    """

    deleted: bool
    blocked: bool = False
    affected_units: int = 0
    candidates: list[ProductType] = field(default_factory=list)


def _clean_name(value, field_name: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise AppError(
            ErrorCatalog.VALIDATION_ERROR,
            details={"message": f"{field_name} must not be blank", "field": field_name},
        )
    return cleaned


def _check_minimum_stock(value):
    if value is not None and value < 0:
        raise AppError(
            ErrorCatalog.VALIDATION_ERROR,
            details={"message": "minimum_stock must be zero or greater", "minimum_stock": value},
        )
    return value


class CatalogService:
    def __init__(self, db):
        self.db = db
        self.repo = CatalogRepository(db)
        self.audit = AuditService(db)

    def list_product_types(self) -> list[ProductType]:
        return self.repo.list_product_types()

    def get_product_type(self, product_type_id) -> ProductType:
        product_type = self.repo.get(parse_uuid(product_type_id, resource="product type"))
        if product_type is None:
            raise AppError(
                ErrorCatalog.NOT_FOUND,
                details={"message": "product type not found", "id": str(product_type_id)},
            )
        return product_type

    def create_product_type(self, *, brand: str, model: str, minimum_stock: int | None, actor: Actor) -> ProductType:
        require_admin(actor)
        with atomic(self.db):
            product_type = ProductType(
                brand=_clean_name(brand, "brand"),
                model=_clean_name(model, "model"),
                minimum_stock=_check_minimum_stock(minimum_stock),
                created_at=datetime.utcnow(),
            )
            self.db.add(product_type)
            self.db.flush()
            self.audit.record(
                actor,
                ProductTypeAddedDetails(
                    product_type_id=str(product_type.id),
                    brand=product_type.brand,
                    model=product_type.model,
                    minimum_stock=product_type.minimum_stock,
                ),
            )
        log_operation(logger, "product_type.create", actor=actor, product_type_id=str(product_type.id))
        return product_type

    def update_product_type(self, product_type_id, changes: dict, actor: Actor) -> ProductType:
        """Apply a partial update; keys absent from `changes` are left alone."""
        require_admin(actor)
        unknown = sorted(set(changes) - set(_EDITABLE_FIELDS))
        if unknown:
            raise AppError(
                ErrorCatalog.VALIDATION_ERROR,
                details={"message": "unsupported fields", "fields": unknown},
            )
        with atomic(self.db):
            product_type = self.get_product_type(product_type_id)
            before = {name: getattr(product_type, name) for name in _EDITABLE_FIELDS}
            if "brand" in changes:
                product_type.brand = _clean_name(changes["brand"], "brand")
            if "model" in changes:
                product_type.model = _clean_name(changes["model"], "model")
            if "minimum_stock" in changes:
                product_type.minimum_stock = _check_minimum_stock(changes["minimum_stock"])
            product_type.updated_at = datetime.utcnow()
            self.db.flush()
            self.audit.record(
                actor,
                ProductTypeUpdatedDetails(
                    product_type_id=str(product_type.id),
                    old_brand=before["brand"],
                    old_model=before["model"],
                    old_minimum_stock=before["minimum_stock"],
                    new_brand=product_type.brand,
                    new_model=product_type.model,
                    new_minimum_stock=product_type.minimum_stock,
                ),
            )
        log_operation(logger, "product_type.update", actor=actor, product_type_id=str(product_type.id))
        return product_type

    def request_delete(self, product_type_id, actor: Actor) -> DeletionOutcome:
        require_admin(actor)
        with atomic(self.db):
            product_type = self.get_product_type(product_type_id)
            affected = self.repo.count_dependent_units(product_type.id)
            if affected == 0:
                self._delete(product_type, actor, pointer=None)
                outcome = DeletionOutcome(deleted=True)
            else:
                candidates = self.repo.list_other_product_types(product_type.id)
                if not candidates:
                    raise AppError(
                        ErrorCatalog.DELETION_BLOCKED,
                        details={
                            "message": "units still reference this product type and there is no other type to move them to",
                            "product_type_id": str(product_type.id),
                            "affected_units": affected,
                        },
                    )
                outcome = DeletionOutcome(deleted=False, affected_units=affected, candidates=candidates)
        log_operation(
            logger,
            "product_type.delete_request",
            actor=actor,
            product_type_id=str(product_type_id),
            deleted=outcome.deleted,
            affected_units=outcome.affected_units,
        )
        return outcome

    def reassign_and_delete(self, product_type_id, target_product_type_id, actor: Actor) -> int:
        require_admin(actor)
        source_id = parse_uuid(product_type_id, resource="product type")
        target_id = parse_uuid(target_product_type_id, resource="product type")
        if source_id == target_id:
            raise AppError(
                ErrorCatalog.VALIDATION_ERROR,
                details={"message": "target product type must differ from the one being deleted"},
            )
        with atomic(self.db):
            source = self.get_product_type(source_id)
            target = self.get_product_type(target_id)
            units = self.repo.dependent_units(source.id, for_update=True)
            now = datetime.utcnow()
            for unit in units:
                unit.product_type_id = target.id
                unit.updated_at = now
            self.db.flush()

            reassigned = self.audit.record(
                actor,
                ItemsReassignedDetails(
                    original_product_type_id=str(source.id),
                    original_product_name=source.display_name,
                    new_product_type_id=str(target.id),
                    new_product_name=target.display_name,
                    item_count=len(units),
                    imeis=[unit.imei for unit in units],
                ),
            )
            self._delete(
                source,
                actor,
                pointer=ReassignmentPointer(
                    new_product_type_id=str(target.id),
                    new_product_name=target.display_name,
                    item_count=len(units),
                    reassignment_event_id=str(reassigned.id),
                ),
            )
        log_operation(
            logger,
            "product_type.reassign_and_delete",
            actor=actor,
            product_type_id=str(source_id),
            target_product_type_id=str(target_id),
            reassigned=len(units),
        )
        return len(units)

    def _delete(self, product_type: ProductType, actor: Actor, *, pointer: ReassignmentPointer | None) -> None:
        details = ProductTypeDeletedDetails(
            product_type_id=str(product_type.id),
            brand=product_type.brand,
            model=product_type.model,
            minimum_stock=product_type.minimum_stock,
            reassigned_items_to=pointer,
        )
        self.db.delete(product_type)
        self.db.flush()
        self.audit.record(actor, details)
