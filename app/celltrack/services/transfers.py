"""Transfer lifecycle and two-party confirmation.

Units move to the destination as soon as a transfer is created; custody is
then attested by an administrator and afterwards by an agent at the
destination. Cancelling puts every unit back where the creation snapshot
says it was.

Every transition is a compare-and-set on (state, version) executed in the
same transaction as the ledger changes and the audit entry describing them.
"""

from __future__ import annotations

import logging
from datetime import datetime

from app.celltrack.core.config import settings
from app.celltrack.core.context import Actor
from app.celltrack.core.error_catalog import AppError, ErrorCatalog
from app.celltrack.core.ids import normalize_imeis, parse_uuid
from app.celltrack.core.logging import log_operation
from app.celltrack.core.scope import require_admin, require_location
from app.celltrack.core.states import ConfirmationRole, TransferState, can_transition, is_terminal
from app.celltrack.db.models import Transfer, TransferUnit
from app.celltrack.db.session import atomic
from app.celltrack.repos.catalog import CatalogRepository
from app.celltrack.repos.counters import TRANSFER_FOLIO_COUNTER, CounterRepository
from app.celltrack.repos.inventory import InventoryRepository
from app.celltrack.repos.locations import LocationRepository
from app.celltrack.repos.transfers import TransferQueryFilters, TransferRepository
from app.celltrack.schemas.audit import (
    ItemsTransferredDetails,
    TransferCancelledDetails,
    TransferConfirmedDetails,
    TransferUnitSnapshot,
)
from app.celltrack.schemas.transfers import TransferResponse, TransferUnitResponse
from app.celltrack.services.audit import AuditService
from app.celltrack.services.transfer_report import render_transfer_report, report_input_from_transfer

logger = logging.getLogger(__name__)


def format_folio(number: int) -> str:
    return f"{settings.TRANSFER_FOLIO_PREFIX}-{number:0{settings.TRANSFER_FOLIO_WIDTH}d}"


def _invalid_state(transfer: Transfer, message: str) -> AppError:
    return AppError(
        ErrorCatalog.INVALID_STATE,
        details={"message": message, "transfer_id": str(transfer.id), "state": transfer.state},
    )


class TransferService:
    def __init__(self, db):
        self.db = db
        self.repo = TransferRepository(db)
        self.inventory = InventoryRepository(db)
        self.catalog = CatalogRepository(db)
        self.locations = LocationRepository(db)
        self.counters = CounterRepository(db)
        self.audit = AuditService(db)

    # -- reads ---------------------------------------------------------------

    def list_transfers(self, filters: TransferQueryFilters) -> list[Transfer]:
        return self.repo.list_transfers(filters)

    def get_transfer(self, transfer_id) -> Transfer:
        transfer = self.repo.get_transfer(parse_uuid(transfer_id, resource="transfer"))
        if transfer is None:
            raise AppError(ErrorCatalog.NOT_FOUND, details={"message": "transfer not found", "id": str(transfer_id)})
        return transfer

    # -- commands ------------------------------------------------------------

    def create_transfer(self, imeis, target_location_id, actor: Actor) -> Transfer:
        imeis = normalize_imeis(imeis)
        with atomic(self.db):
            target = self.locations.get(parse_uuid(target_location_id, resource="location"))
            if target is None:
                raise AppError(
                    ErrorCatalog.NOT_FOUND,
                    details={"message": "target location not found", "id": str(target_location_id)},
                )
            units = self.inventory.get_many(imeis, for_update=True)
            missing = [imei for imei in imeis if imei not in units]
            if missing:
                raise AppError(
                    ErrorCatalog.NOT_FOUND,
                    details={"message": "inventory units not found", "imeis": missing},
                )

            location_names = self.locations.names_by_id()
            product_names = {str(pt.id): pt.display_name for pt in self.catalog.list_product_types()}
            folio_number = self.counters.next_value(TRANSFER_FOLIO_COUNTER)
            now = datetime.utcnow()
            transfer = Transfer(
                folio_number=folio_number,
                folio=format_folio(folio_number),
                target_location_id=target.id,
                target_location_name=target.name,
                initiator_user_id=parse_uuid(actor.user_id, resource="user") if actor.user_id else None,
                initiator_name=actor.name,
                state=TransferState.PENDING_ADMIN_CONFIRMATION.value,
                version=1,
                created_at=now,
                updated_at=now,
            )
            for position, imei in enumerate(imeis, start=1):
                unit = units[imei]
                transfer.units.append(
                    TransferUnit(
                        position=position,
                        imei=imei,
                        product_name=product_names.get(str(unit.product_type_id), "Unknown"),
                        color=unit.color,
                        original_location_id=unit.location_id,
                        original_location_name=location_names.get(str(unit.location_id), "N/A"),
                    )
                )
                unit.location_id = target.id
                unit.updated_at = now
            transfer.report_text = self._render(transfer, generated_at=now)
            self.db.add(transfer)
            self.db.flush()

            snapshots = [
                TransferUnitSnapshot(
                    imei=unit.imei,
                    product_name=unit.product_name,
                    color=unit.color,
                    original_location_id=str(unit.original_location_id),
                    original_location_name=unit.original_location_name,
                )
                for unit in transfer.units
            ]
            self.audit.record(
                actor,
                ItemsTransferredDetails(
                    transfer_id=str(transfer.id),
                    folio=transfer.folio,
                    imeis=imeis,
                    count=len(imeis),
                    target_location_id=str(target.id),
                    target_location_name=target.name,
                    original_locations={snap.imei: snap.original_location_id for snap in snapshots},
                    units=snapshots,
                    initiator=actor.name,
                    state=transfer.state,
                ),
                transfer_id=transfer.id,
            )
        log_operation(
            logger,
            "transfer.create",
            actor=actor,
            transfer_id=str(transfer.id),
            folio=transfer.folio,
            count=len(imeis),
        )
        return transfer

    def confirm_transfer(self, transfer_id, role: ConfirmationRole | str, actor: Actor) -> Transfer:
        role = ConfirmationRole(role)
        if role == ConfirmationRole.ADMIN:
            return self.confirm_admin(transfer_id, actor)
        return self.confirm_destination(transfer_id, actor)

    def confirm_admin(self, transfer_id, actor: Actor) -> Transfer:
        require_admin(actor)
        with atomic(self.db):
            transfer = self._get_for_update(transfer_id)
            if transfer.state != TransferState.PENDING_ADMIN_CONFIRMATION.value or transfer.admin_confirmed_by:
                raise _invalid_state(transfer, "transfer is not pending administrator confirmation")
            now = datetime.utcnow()
            self._transition(
                transfer,
                new=TransferState.PENDING_DESTINATION_CONFIRMATION,
                now=now,
                values={
                    "admin_confirmed_by": actor.name,
                    "admin_confirmed_by_id": parse_uuid(actor.user_id, resource="user"),
                    "admin_confirmed_at": now,
                },
            )
            self._record_confirmation(transfer, ConfirmationRole.ADMIN, actor)
        log_operation(logger, "transfer.confirm_admin", actor=actor, transfer_id=str(transfer.id), folio=transfer.folio)
        return transfer

    def confirm_destination(self, transfer_id, actor: Actor) -> Transfer:
        with atomic(self.db):
            transfer = self._get_for_update(transfer_id)
            require_location(actor, str(transfer.target_location_id))
            if transfer.state != TransferState.PENDING_DESTINATION_CONFIRMATION.value or not transfer.admin_confirmed_by:
                raise _invalid_state(
                    transfer,
                    "transfer is not pending destination confirmation; an administrator must confirm first",
                )
            if actor.user_id and str(transfer.admin_confirmed_by_id) == actor.user_id:
                raise AppError(
                    ErrorCatalog.INVALID_ROLE,
                    details={"message": "the administrator who confirmed cannot also confirm as destination"},
                )
            now = datetime.utcnow()
            self._transition(
                transfer,
                new=TransferState.COMPLETED,
                now=now,
                values={"destination_confirmed_by": actor.name, "destination_confirmed_at": now},
            )
            self._record_confirmation(transfer, ConfirmationRole.DESTINATION, actor)
        log_operation(
            logger,
            "transfer.confirm_destination",
            actor=actor,
            transfer_id=str(transfer.id),
            folio=transfer.folio,
        )
        return transfer

    def cancel_transfer(self, transfer_id, actor: Actor) -> Transfer:
        require_admin(actor)
        with atomic(self.db):
            transfer = self._get_for_update(transfer_id)
            if is_terminal(transfer.state):
                raise _invalid_state(transfer, f"transfer is already {transfer.state}")

            snapshots = list(transfer.units)
            units = self.inventory.get_many([snap.imei for snap in snapshots], for_update=True)
            now = datetime.utcnow()
            restored: dict[str, str] = {}
            missing: list[str] = []
            for snap in snapshots:
                unit = units.get(snap.imei)
                if unit is None:
                    missing.append(snap.imei)
                    continue
                unit.location_id = snap.original_location_id
                unit.updated_at = now
                restored[snap.imei] = str(snap.original_location_id)
            self.db.flush()

            self._transition(
                transfer,
                new=TransferState.CANCELLED,
                now=now,
                values={"cancelled_by": actor.name, "cancelled_at": now},
            )
            self.audit.record(
                actor,
                TransferCancelledDetails(
                    transfer_id=str(transfer.id),
                    folio=transfer.folio,
                    cancelled_by=actor.name,
                    target_location_name=transfer.target_location_name,
                    item_count=len(snapshots),
                    imeis=[snap.imei for snap in snapshots],
                    restored_locations=restored,
                    missing_imeis=missing,
                ),
                transfer_id=transfer.id,
            )
        log_operation(
            logger,
            "transfer.cancel",
            actor=actor,
            transfer_id=str(transfer.id),
            folio=transfer.folio,
            restored=len(restored),
            missing=len(missing),
        )
        return transfer

    # -- internals -----------------------------------------------------------

    def _get_for_update(self, transfer_id) -> Transfer:
        transfer = self.repo.get_transfer(parse_uuid(transfer_id, resource="transfer"), for_update=True)
        if transfer is None:
            raise AppError(ErrorCatalog.NOT_FOUND, details={"message": "transfer not found", "id": str(transfer_id)})
        return transfer

    def _render(self, transfer: Transfer, *, generated_at: datetime, **overrides) -> str:
        return render_transfer_report(
            report_input_from_transfer(transfer, **overrides),
            generated_at=generated_at,
            timezone_name=settings.REPORT_TIMEZONE,
        )

    def _transition(self, transfer: Transfer, *, new: TransferState, now: datetime, values: dict) -> None:
        expected = TransferState(transfer.state)
        if not can_transition(expected, new):
            raise _invalid_state(transfer, f"cannot move transfer from {expected.value} to {new.value}")
        overrides = {
            "state": new,
            "admin_confirmer": values.get("admin_confirmed_by", transfer.admin_confirmed_by),
            "destination_confirmer": values.get("destination_confirmed_by", transfer.destination_confirmed_by),
            "cancelled_by": values.get("cancelled_by", transfer.cancelled_by),
            "cancelled_at": values.get("cancelled_at", transfer.cancelled_at),
        }
        report_text = self._render(transfer, generated_at=now, **overrides)
        changed = self.repo.compare_and_set_state(
            transfer,
            expected=expected,
            new=new,
            values={**values, "report_text": report_text, "updated_at": now},
        )
        if not changed:
            raise _invalid_state(transfer, "transfer was modified concurrently")

    def _record_confirmation(self, transfer: Transfer, role: ConfirmationRole, actor: Actor) -> None:
        self.audit.record(
            actor,
            TransferConfirmedDetails(
                transfer_id=str(transfer.id),
                folio=transfer.folio,
                confirmation_type=role.value,
                confirmed_by=actor.name,
                target_location_name=transfer.target_location_name,
                item_count=len(transfer.units),
                imeis=[unit.imei for unit in transfer.units],
                new_state=transfer.state,
            ),
            transfer_id=transfer.id,
        )


def to_transfer_response(transfer: Transfer, *, trace_id: str | None = None) -> TransferResponse:
    return TransferResponse(
        id=str(transfer.id),
        folio=transfer.folio,
        state=transfer.state,
        target_location_id=str(transfer.target_location_id),
        target_location_name=transfer.target_location_name,
        initiator_name=transfer.initiator_name,
        admin_confirmed_by=transfer.admin_confirmed_by,
        admin_confirmed_at=transfer.admin_confirmed_at,
        destination_confirmed_by=transfer.destination_confirmed_by,
        destination_confirmed_at=transfer.destination_confirmed_at,
        cancelled_by=transfer.cancelled_by,
        cancelled_at=transfer.cancelled_at,
        report_text=transfer.report_text,
        version=transfer.version,
        created_at=transfer.created_at,
        updated_at=transfer.updated_at,
        units=[
            TransferUnitResponse(
                position=unit.position,
                imei=unit.imei,
                product_name=unit.product_name,
                color=unit.color,
                original_location_id=str(unit.original_location_id),
                original_location_name=unit.original_location_name,
            )
            for unit in transfer.units
        ],
        trace_id=trace_id,
    )
