from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import select, update
from sqlalchemy.orm import selectinload

from app.celltrack.core.states import TERMINAL_TRANSFER_STATES, TransferState
from app.celltrack.db.models import Transfer


@dataclass(frozen=True)
class TransferQueryFilters:
    state: str | None = None
    target_location_id: str | None = None
    open_only: bool = False


class TransferRepository:
    def __init__(self, db):
        self.db = db

    def list_transfers(self, filters: TransferQueryFilters) -> list[Transfer]:
        query = select(Transfer).options(selectinload(Transfer.units))
        if filters.state:
            query = query.where(Transfer.state == filters.state)
        if filters.target_location_id:
            query = query.where(Transfer.target_location_id == filters.target_location_id)
        if filters.open_only:
            query = query.where(Transfer.state.not_in([state.value for state in TERMINAL_TRANSFER_STATES]))
        return self.db.execute(query.order_by(Transfer.folio_number.desc())).scalars().all()

    def get_transfer(self, transfer_id, *, for_update: bool = False) -> Transfer | None:
        query = select(Transfer).options(selectinload(Transfer.units)).where(Transfer.id == transfer_id)
        if for_update:
            query = query.with_for_update()
        return self.db.execute(query).scalars().first()

    def compare_and_set_state(
        self,
        transfer: Transfer,
        *,
        expected: TransferState,
        new: TransferState,
        values: dict,
    ) -> bool:
        """Move `transfer` from `expected` to `new` only if nobody else did first.

        The WHERE clause carries both the expected state and the version that
        was read, so two sessions racing on the same transfer cannot both win.
        """
        result = self.db.execute(
            update(Transfer)
            .where(
                Transfer.id == transfer.id,
                Transfer.state == expected.value,
                Transfer.version == transfer.version,
            )
            .values(state=new.value, version=Transfer.version + 1, **values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return False
        self.db.refresh(transfer)
        return True
