"""Inventory ledger mutations: intake, bulk status changes and bulk deletes.

Status changes and deletes are all-or-nothing over the requested IMEIs.
Marking units as lost, and deleting them, needs an administrator to type
their credentials again; a lost request without them is staged and changes
nothing.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime

from app.celltrack.core.context import Actor
from app.celltrack.core.error_catalog import AppError, ErrorCatalog
from app.celltrack.core.ids import normalize_imeis, parse_uuid
from app.celltrack.core.logging import log_operation
from app.celltrack.core.scope import is_admin, require_admin
from app.celltrack.core.security import verify_password
from app.celltrack.core.states import REAUTH_REQUIRED_STATUSES, UnitStatus
from app.celltrack.db.models import InventoryUnit
from app.celltrack.db.session import atomic
from app.celltrack.repos.catalog import CatalogRepository
from app.celltrack.repos.inventory import InventoryQueryFilters, InventoryRepository
from app.celltrack.repos.locations import LocationRepository
from app.celltrack.repos.users import UserRepository
from app.celltrack.schemas.audit import (
    AddedUnitGroup,
    DeletedUnitSnapshot,
    ItemsAddedDetails,
    ItemsDeletedDetails,
    ItemsStatusChangedDetails,
    StatusChange,
)
from app.celltrack.services.audit import AuditService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatusChangeResult:
    updated_count: int
    staged: bool = False
    requires_reauth: bool = False
    changes: list[StatusChange] = field(default_factory=list)


@dataclass(frozen=True)
class IntakeResult:
    added_imeis: list[str]
    skipped_imeis: list[str]

    @property
    def added_count(self) -> int:
        return len(self.added_imeis)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped_imeis)


def _missing_units_error(missing: list[str]) -> AppError:
    return AppError(
        ErrorCatalog.NOT_FOUND,
        details={"message": "inventory units not found", "imeis": missing},
    )


class InventoryService:
    def __init__(self, db):
        self.db = db
        self.repo = InventoryRepository(db)
        self.catalog = CatalogRepository(db)
        self.locations = LocationRepository(db)
        self.users = UserRepository(db)
        self.audit = AuditService(db)

    def list_units(self, filters: InventoryQueryFilters, *, page: int, page_size: int):
        if filters.location_id:
            parse_uuid(filters.location_id, resource="location")
        if filters.product_type_id:
            parse_uuid(filters.product_type_id, resource="product type")
        return self.repo.list_units(filters, page=page, page_size=page_size)

    def change_status(self, imeis, new_status, actor: Actor, credential=None) -> StatusChangeResult:
        imeis = normalize_imeis(imeis)
        try:
            status = UnitStatus(new_status)
        except ValueError as exc:
            raise AppError(
                ErrorCatalog.VALIDATION_ERROR,
                details={"message": "unknown status", "new_status": str(new_status)},
            ) from exc

        with atomic(self.db):
            units = self.repo.get_many(imeis, for_update=True)
            missing = [imei for imei in imeis if imei not in units]
            if missing:
                raise _missing_units_error(missing)

            authorized_by = None
            if status in REAUTH_REQUIRED_STATUSES:
                if credential is None:
                    logger.info(
                        "Status change staged pending re-authentication",
                        extra={"new_status": status.value, "count": len(imeis), "trace_id": actor.trace_id},
                    )
                    return StatusChangeResult(updated_count=0, staged=True, requires_reauth=True)
                authorized_by = self._verify_admin_credential(credential)

            now = datetime.utcnow()
            changes = []
            for imei in imeis:
                unit = units[imei]
                changes.append(StatusChange(imei=imei, old_status=unit.status, new_status=status.value))
                unit.status = status.value
                unit.updated_at = now
            self.db.flush()
            self.audit.record(
                actor,
                ItemsStatusChangedDetails(
                    imeis=imeis,
                    new_status=status.value,
                    count=len(imeis),
                    changed_items=changes,
                    reauthenticated_by=authorized_by,
                ),
            )
        log_operation(
            logger,
            "inventory.change_status",
            actor=actor,
            new_status=status.value,
            count=len(imeis),
            reauthenticated_by=authorized_by,
        )
        return StatusChangeResult(updated_count=len(changes), changes=changes)

    def add_units(self, intakes, actor: Actor) -> IntakeResult:
        """Bulk intake. Records that cannot be stored are skipped and counted."""
        with atomic(self.db):
            product_types = {str(pt.id): pt for pt in self.catalog.list_product_types()}
            location_ids = set(self.locations.names_by_id())
            existing = self.repo.existing_imeis(intake.imei.strip() for intake in intakes)
            seen: set[str] = set()
            added: list[InventoryUnit] = []
            skipped: list[str] = []
            now = datetime.utcnow()
            for intake in intakes:
                imei = intake.imei.strip()
                if (
                    not imei
                    or imei in seen
                    or imei in existing
                    or str(intake.product_type_id) not in product_types
                    or str(intake.location_id) not in location_ids
                ):
                    skipped.append(imei)
                    continue
                seen.add(imei)
                unit = self._build_unit(intake, imei=imei, now=now)
                self.db.add(unit)
                added.append(unit)
            self.db.flush()

            if added:
                self.audit.record(
                    actor,
                    ItemsAddedDetails(
                        count=len(added),
                        skipped_count=len(skipped),
                        groups=self._group_by_product_type(added, product_types),
                    ),
                )
        result = IntakeResult(added_imeis=[unit.imei for unit in added], skipped_imeis=skipped)
        log_operation(
            logger,
            "inventory.add_units",
            actor=actor,
            added=result.added_count,
            skipped=result.skipped_count,
        )
        return result

    def register_unit(self, intake, actor: Actor) -> InventoryUnit:
        imei = intake.imei.strip()
        if not imei:
            raise AppError(ErrorCatalog.VALIDATION_ERROR, details={"message": "imei must not be blank"})
        with atomic(self.db):
            if self.repo.get(imei) is not None:
                raise AppError(
                    ErrorCatalog.DUPLICATE_KEY,
                    details={"message": "a unit with this IMEI already exists", "imei": imei},
                )
            product_type = self.catalog.get(intake.product_type_id)
            if product_type is None:
                raise AppError(
                    ErrorCatalog.NOT_FOUND,
                    details={"message": "product type not found", "id": str(intake.product_type_id)},
                )
            if self.locations.get(intake.location_id) is None:
                raise AppError(
                    ErrorCatalog.NOT_FOUND,
                    details={"message": "location not found", "id": str(intake.location_id)},
                )
            unit = self._build_unit(intake, imei=imei, now=datetime.utcnow())
            self.db.add(unit)
            self.db.flush()
            self.audit.record(
                actor,
                ItemsAddedDetails(
                    count=1,
                    groups=self._group_by_product_type([unit], {str(product_type.id): product_type}),
                ),
            )
        log_operation(logger, "inventory.register_unit", actor=actor, imei=imei)
        return unit

    def delete_units(self, imeis, actor: Actor, credential) -> int:
        require_admin(actor)
        imeis = normalize_imeis(imeis)
        with atomic(self.db):
            authorized_by = self._verify_admin_credential(credential)
            units = self.repo.get_many(imeis, for_update=True)
            missing = [imei for imei in imeis if imei not in units]
            if missing:
                raise _missing_units_error(missing)

            product_names = {str(pt.id): pt.display_name for pt in self.catalog.list_product_types()}
            location_names = self.locations.names_by_id()
            snapshots = []
            for imei in imeis:
                unit = units[imei]
                snapshots.append(
                    DeletedUnitSnapshot(
                        imei=unit.imei,
                        imei2=unit.imei2,
                        product_type_id=str(unit.product_type_id),
                        product_name=product_names.get(str(unit.product_type_id), "Unknown"),
                        location_id=str(unit.location_id),
                        location_name=location_names.get(str(unit.location_id), "N/A"),
                        status=unit.status,
                        memory=unit.memory,
                        color=unit.color,
                        supplier=unit.supplier,
                        purchase_price=unit.purchase_price,
                        purchase_invoice_id=unit.purchase_invoice_id,
                        purchase_invoice_date=unit.purchase_invoice_date,
                    )
                )
                self.db.delete(unit)
            self.db.flush()
            self.audit.record(
                actor,
                ItemsDeletedDetails(count=len(snapshots), deleted_items=snapshots, authorized_by=authorized_by),
            )
        log_operation(logger, "inventory.delete_units", actor=actor, count=len(imeis), authorized_by=authorized_by)
        return len(imeis)

    def _verify_admin_credential(self, credential) -> str:
        user = self.users.get_by_username(credential.username)
        if (
            user is None
            or not user.is_active
            or not is_admin(user.role)
            or not verify_password(credential.password, user.hashed_password)
        ):
            raise AppError(
                ErrorCatalog.REAUTH_FAILED,
                details={"message": "administrator credentials were not accepted"},
            )
        return user.display_name or user.username

    @staticmethod
    def _build_unit(intake, *, imei: str, now: datetime) -> InventoryUnit:
        return InventoryUnit(
            imei=imei,
            imei2=(intake.imei2 or "").strip() or None,
            product_type_id=intake.product_type_id,
            location_id=intake.location_id,
            status=UnitStatus(intake.status).value,
            memory=intake.memory,
            color=intake.color,
            supplier=intake.supplier,
            purchase_price=intake.purchase_price,
            purchase_invoice_id=intake.purchase_invoice_id,
            purchase_invoice_date=intake.purchase_invoice_date,
            created_at=now,
            updated_at=now,
        )

    @staticmethod
    def _group_by_product_type(units, product_types: dict) -> list[AddedUnitGroup]:
        groups: OrderedDict[str, list[str]] = OrderedDict()
        for unit in units:
            groups.setdefault(str(unit.product_type_id), []).append(unit.imei)
        return [
            AddedUnitGroup(
                product_type_id=product_type_id,
                product_name=product_types[product_type_id].display_name,
                count=len(imeis),
                imeis=imeis,
            )
            for product_type_id, imeis in groups.items()
        ]
