from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from app.celltrack.core.states import ConfirmationRole


class TransferCreateRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "example": {
                "imeis": ["356789012345678", "356789012345679"],
                "target_location_id": "0f6a1d8e-1f0e-4d0a-8a5e-5cf5d4c6a2b3",
            }
        }
    }

    imeis: list[str] = Field(min_length=1)
    target_location_id: str


class TransferConfirmRequest(BaseModel):
    model_config = {"json_schema_extra": {"example": {"role": "admin"}}}

    role: ConfirmationRole


class TransferUnitResponse(BaseModel):
    position: int
    imei: str
    product_name: str
    color: str | None = None
    original_location_id: str
    original_location_name: str


class TransferResponse(BaseModel):
    id: str
    folio: str
    state: str
    target_location_id: str
    target_location_name: str
    initiator_name: str
    admin_confirmed_by: str | None = None
    admin_confirmed_at: datetime | None = None
    destination_confirmed_by: str | None = None
    destination_confirmed_at: datetime | None = None
    cancelled_by: str | None = None
    cancelled_at: datetime | None = None
    report_text: str
    version: int
    created_at: datetime
    updated_at: datetime | None = None
    units: list[TransferUnitResponse]
    trace_id: str | None = None


class TransferListResponse(BaseModel):
    rows: list[TransferResponse]
    total: int


class TransferConfirmResponse(TransferResponse):
    new_state: str
