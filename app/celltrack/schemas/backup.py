from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from app.celltrack.schemas.audit import AuditEventResponse
from app.celltrack.schemas.transfers import TransferResponse

BACKUP_FORMAT_VERSION = "1"


class BackupProductType(BaseModel):
    id: str
    brand: str
    model: str
    minimum_stock: int | None = None


class BackupUnit(BaseModel):
    imei: str
    imei2: str | None = None
    product_type_id: str
    location_id: str
    status: str = "New"
    memory: str | None = None
    color: str | None = None
    supplier: str | None = None
    purchase_price: Decimal | None = None
    purchase_invoice_id: str | None = None
    purchase_invoice_date: date | None = None


class BackupDocument(BaseModel):
    version: str = BACKUP_FORMAT_VERSION
    exported_at: datetime | None = None
    product_types: list[BackupProductType] = Field(default_factory=list)
    units: list[BackupUnit] = Field(default_factory=list)
    transfers: list[TransferResponse] = Field(default_factory=list)
    audit_events: list[AuditEventResponse] = Field(default_factory=list)
    folio_counter: int = Field(default=0, ge=0)


class RestoreResponse(BaseModel):
    product_types_restored: int
    units_restored: int
    skipped_product_types: int
    skipped_units: int
    folio_counter: int
    trace_id: str
