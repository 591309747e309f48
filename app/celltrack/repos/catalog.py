from __future__ import annotations

from sqlalchemy import func, select

from app.celltrack.db.models import InventoryUnit, ProductType


class CatalogRepository:
    def __init__(self, db):
        self.db = db

    def get(self, product_type_id) -> ProductType | None:
        return self.db.get(ProductType, product_type_id)

    def list_product_types(self) -> list[ProductType]:
        query = select(ProductType).order_by(ProductType.brand.asc(), ProductType.model.asc())
        return self.db.execute(query).scalars().all()

    def list_other_product_types(self, product_type_id) -> list[ProductType]:
        query = (
            select(ProductType)
            .where(ProductType.id != product_type_id)
            .order_by(ProductType.brand.asc(), ProductType.model.asc())
        )
        return self.db.execute(query).scalars().all()

    def dependent_units(self, product_type_id, *, for_update: bool = False) -> list[InventoryUnit]:
        query = (
            select(InventoryUnit)
            .where(InventoryUnit.product_type_id == product_type_id)
            .order_by(InventoryUnit.imei.asc())
        )
        if for_update:
            query = query.with_for_update()
        return self.db.execute(query).scalars().all()

    def count_dependent_units(self, product_type_id) -> int:
        query = select(func.count()).select_from(InventoryUnit).where(InventoryUnit.product_type_id == product_type_id)
        return int(self.db.execute(query).scalar_one())

    def orphaned_units(self) -> list[InventoryUnit]:
        query = (
            select(InventoryUnit)
            .outerjoin(ProductType, ProductType.id == InventoryUnit.product_type_id)
            .where(ProductType.id.is_(None))
        )
        return self.db.execute(query).scalars().all()
