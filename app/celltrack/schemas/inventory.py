from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from app.celltrack.core.states import UnitStatus


class AdminCredential(BaseModel):
    model_config = {"json_schema_extra": {"example": {"username": "admin", "password": "change-me"}}}

    username: str
    password: str


class UnitIntake(BaseModel):
    imei: str = Field(min_length=1, max_length=32)
    imei2: str | None = Field(default=None, max_length=32)
    product_type_id: UUID
    location_id: UUID
    status: UnitStatus = UnitStatus.NEW
    memory: str | None = None
    color: str | None = None
    supplier: str | None = None
    purchase_price: Decimal | None = None
    purchase_invoice_id: str | None = None
    purchase_invoice_date: date | None = None


class UnitIntakeRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "example": {
                "units": [
                    {
                        "imei": "356789012345678",
                        "product_type_id": "9a4d5c0e-7c51-4d47-9b7d-3fd2b7cc1f11",
                        "location_id": "0f6a1d8e-1f0e-4d0a-8a5e-5cf5d4c6a2b3",
                        "color": "Black",
                        "memory": "128GB",
                    }
                ]
            }
        }
    }

    units: list[UnitIntake] = Field(min_length=1)


class UnitIntakeResponse(BaseModel):
    added_count: int
    skipped_count: int
    added_imeis: list[str]
    skipped_imeis: list[str]
    trace_id: str


class StatusChangeRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "example": {
                "imeis": ["356789012345678"],
                "new_status": "Lost",
                "credential": {"username": "admin", "password": "change-me"},
            }
        }
    }

    imeis: list[str] = Field(min_length=1)
    new_status: UnitStatus
    credential: AdminCredential | None = None


class StatusChangeResponse(BaseModel):
    updated_count: int
    staged: bool
    requires_reauth: bool
    trace_id: str


class UnitDeleteRequest(BaseModel):
    imeis: list[str] = Field(min_length=1)
    credential: AdminCredential


class UnitDeleteResponse(BaseModel):
    deleted_count: int
    trace_id: str


class InventoryUnitResponse(BaseModel):
    imei: str
    imei2: str | None = None
    product_type_id: str
    product_name: str | None = None
    location_id: str
    location_name: str | None = None
    status: str
    memory: str | None = None
    color: str | None = None
    supplier: str | None = None
    purchase_price: Decimal | None = None
    purchase_invoice_id: str | None = None
    purchase_invoice_date: date | None = None
    created_at: datetime
    updated_at: datetime | None = None


class InventoryListResponse(BaseModel):
    rows: list[InventoryUnitResponse]
    total: int
    page: int
    page_size: int
