from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import delete

from app.celltrack.core.context import Actor
from app.celltrack.core.logging import log_operation
from app.celltrack.core.scope import require_admin
from app.celltrack.core.states import UnitStatus
from app.celltrack.db.models import InventoryUnit, ProductType
from app.celltrack.db.session import atomic
from app.celltrack.repos.audit import AuditRepository
from app.celltrack.repos.catalog import CatalogRepository
from app.celltrack.repos.counters import TRANSFER_FOLIO_COUNTER, CounterRepository
from app.celltrack.repos.inventory import InventoryRepository
from app.celltrack.repos.locations import LocationRepository
from app.celltrack.repos.transfers import TransferQueryFilters, TransferRepository
from app.celltrack.schemas.audit import BackupRestoredDetails
from app.celltrack.schemas.backup import BackupDocument, BackupProductType, BackupUnit
from app.celltrack.services.audit import AuditService, to_audit_response
from app.celltrack.services.transfers import to_transfer_response

logger = logging.getLogger(__name__)

_VALID_STATUSES = {status.value for status in UnitStatus}
# width of inventory_units.imei and imei2
_IMEI_MAX_LENGTH = 32


@dataclass(frozen=True)
class RestoreOutcome:
    product_types_restored: int
    units_restored: int
    skipped_product_types: int
    skipped_units: int
    folio_counter: int


def _as_uuid(value) -> uuid.UUID | None:
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


class BackupService:
    """Full export of catalog, ledger, transfers and audit log, and restore of catalog and ledger."""

    def __init__(self, db):
        self.db = db
        self.catalog = CatalogRepository(db)
        self.inventory = InventoryRepository(db)
        self.transfers = TransferRepository(db)
        self.locations = LocationRepository(db)
        self.counters = CounterRepository(db)
        self.audit_repo = AuditRepository(db)
        self.audit = AuditService(db)

    def export_backup(self) -> BackupDocument:
        return BackupDocument(
            exported_at=datetime.utcnow(),
            product_types=[
                BackupProductType(
                    id=str(pt.id),
                    brand=pt.brand,
                    model=pt.model,
                    minimum_stock=pt.minimum_stock,
                )
                for pt in self.catalog.list_product_types()
            ],
            units=[
                BackupUnit(
                    imei=unit.imei,
                    imei2=unit.imei2,
                    product_type_id=str(unit.product_type_id),
                    location_id=str(unit.location_id),
                    status=unit.status,
                    memory=unit.memory,
                    color=unit.color,
                    supplier=unit.supplier,
                    purchase_price=unit.purchase_price,
                    purchase_invoice_id=unit.purchase_invoice_id,
                    purchase_invoice_date=unit.purchase_invoice_date,
                )
                for unit in self.inventory.list_all()
            ],
            transfers=[to_transfer_response(t) for t in self.transfers.list_transfers(TransferQueryFilters())],
            audit_events=[to_audit_response(event) for event in self.audit_repo.list_all()],
            folio_counter=self.counters.current_value(TRANSFER_FOLIO_COUNTER),
        )

    def restore_backup(self, document: BackupDocument, actor: Actor) -> RestoreOutcome:
        """Replace product types and inventory units with the document's.

        Transfers and the audit log are left as they are. The folio counter
        only ever moves forward, so folios issued after the backup was taken
        are never handed out again.
        """
        require_admin(actor)
        with atomic(self.db):
            self.db.execute(delete(InventoryUnit))
            self.db.execute(delete(ProductType))
            self.db.flush()

            now = datetime.utcnow()
            restored_types: set[str] = set()
            skipped_types = 0
            for item in document.product_types:
                type_id = _as_uuid(item.id)
                if type_id is None or str(type_id) in restored_types or not item.brand.strip() or not item.model.strip():
                    skipped_types += 1
                    continue
                restored_types.add(str(type_id))
                self.db.add(
                    ProductType(
                        id=type_id,
                        brand=item.brand.strip(),
                        model=item.model.strip(),
                        minimum_stock=item.minimum_stock,
                        created_at=now,
                    )
                )
            self.db.flush()

            location_ids = set(self.locations.names_by_id())
            restored_imeis: set[str] = set()
            skipped_units = 0
            for item in document.units:
                imei = item.imei.strip()
                imei2 = (item.imei2 or "").strip() or None
                type_id = _as_uuid(item.product_type_id)
                location_id = _as_uuid(item.location_id)
                if (
                    not imei
                    or len(imei) > _IMEI_MAX_LENGTH
                    or (imei2 is not None and len(imei2) > _IMEI_MAX_LENGTH)
                    or imei in restored_imeis
                    or type_id is None
                    or str(type_id) not in restored_types
                    or location_id is None
                    or str(location_id) not in location_ids
                    or item.status not in _VALID_STATUSES
                ):
                    skipped_units += 1
                    continue
                restored_imeis.add(imei)
                self.db.add(
                    InventoryUnit(
                        imei=imei,
                        imei2=imei2,
                        product_type_id=type_id,
                        location_id=location_id,
                        status=item.status,
                        memory=item.memory,
                        color=item.color,
                        supplier=item.supplier,
                        purchase_price=item.purchase_price,
                        purchase_invoice_id=item.purchase_invoice_id,
                        purchase_invoice_date=item.purchase_invoice_date,
                        created_at=now,
                        updated_at=now,
                    )
                )
            self.db.flush()

            folio_counter = self.counters.raise_to(TRANSFER_FOLIO_COUNTER, document.folio_counter)
            outcome = RestoreOutcome(
                product_types_restored=len(restored_types),
                units_restored=len(restored_imeis),
                skipped_product_types=skipped_types,
                skipped_units=skipped_units,
                folio_counter=folio_counter,
            )
            self.audit.record(
                actor,
                BackupRestoredDetails(
                    backup_version=document.version,
                    product_types_restored=outcome.product_types_restored,
                    units_restored=outcome.units_restored,
                    skipped_product_types=outcome.skipped_product_types,
                    skipped_units=outcome.skipped_units,
                    folio_counter=outcome.folio_counter,
                ),
            )
        log_operation(
            logger,
            "backup.restore",
            actor=actor,
            units_restored=outcome.units_restored,
            skipped_units=outcome.skipped_units,
        )
        return outcome
