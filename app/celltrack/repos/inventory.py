from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy import func, or_, select

from app.celltrack.db.models import InventoryUnit


@dataclass(frozen=True)
class InventoryQueryFilters:
    location_id: str | None = None
    status: str | None = None
    product_type_id: str | None = None
    q: str | None = None


class InventoryRepository:
    def __init__(self, db):
        self.db = db

    def get(self, imei: str) -> InventoryUnit | None:
        return self.db.get(InventoryUnit, imei)

    def get_many(self, imeis: Iterable[str], *, for_update: bool = False) -> dict[str, InventoryUnit]:
        imeis = list(imeis)
        if not imeis:
            return {}
        query = select(InventoryUnit).where(InventoryUnit.imei.in_(imeis))
        if for_update:
            query = query.with_for_update()
        return {unit.imei: unit for unit in self.db.execute(query).scalars().all()}

    def existing_imeis(self, imeis: Iterable[str]) -> set[str]:
        imeis = list(imeis)
        if not imeis:
            return set()
        query = select(InventoryUnit.imei).where(InventoryUnit.imei.in_(imeis))
        return set(self.db.execute(query).scalars().all())

    def list_units(
        self,
        filters: InventoryQueryFilters,
        *,
        page: int = 1,
        page_size: int = 100,
    ) -> tuple[list[InventoryUnit], int]:
        query = self._apply_filters(select(InventoryUnit), filters)
        total = self.db.execute(select(func.count()).select_from(query.subquery())).scalar_one()
        rows = (
            self.db.execute(
                query.order_by(InventoryUnit.imei.asc()).offset((page - 1) * page_size).limit(page_size)
            )
            .scalars()
            .all()
        )
        return rows, int(total)

    def list_all(self) -> list[InventoryUnit]:
        return self.db.execute(select(InventoryUnit).order_by(InventoryUnit.imei.asc())).scalars().all()

    def _apply_filters(self, query, filters: InventoryQueryFilters):
        if filters.location_id:
            query = query.where(InventoryUnit.location_id == filters.location_id)
        if filters.status:
            query = query.where(InventoryUnit.status == filters.status)
        if filters.product_type_id:
            query = query.where(InventoryUnit.product_type_id == filters.product_type_id)
        if filters.q:
            like = f"%{filters.q}%"
            query = query.where(
                or_(
                    InventoryUnit.imei.ilike(like),
                    InventoryUnit.imei2.ilike(like),
                    InventoryUnit.color.ilike(like),
                    InventoryUnit.supplier.ilike(like),
                    InventoryUnit.purchase_invoice_id.ilike(like),
                )
            )
        return query
