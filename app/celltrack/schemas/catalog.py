from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class ProductTypeCreateRequest(BaseModel):
    model_config = {"json_schema_extra": {"example": {"brand": "Samsung", "model": "Galaxy A15", "minimum_stock": 3}}}

    brand: str = Field(min_length=1, max_length=100)
    model: str = Field(min_length=1, max_length=150)
    minimum_stock: int | None = Field(default=None, ge=0)


class ProductTypeUpdateRequest(BaseModel):
    brand: str | None = Field(default=None, min_length=1, max_length=100)
    model: str | None = Field(default=None, min_length=1, max_length=150)
    minimum_stock: int | None = Field(default=None, ge=0)


class ProductTypeResponse(BaseModel):
    id: str
    brand: str
    model: str
    display_name: str
    minimum_stock: int | None = None
    created_at: datetime
    updated_at: datetime | None = None


class ProductTypeListResponse(BaseModel):
    rows: list[ProductTypeResponse]
    total: int


class ProductTypeDeleteResponse(BaseModel):
    deleted: bool
    blocked: bool
    affected_units: int | None = None
    candidates: list[ProductTypeResponse] | None = None
    trace_id: str


class ReassignAndDeleteRequest(BaseModel):
    model_config = {
        "json_schema_extra": {"example": {"target_product_type_id": "9a4d5c0e-7c51-4d47-9b7d-3fd2b7cc1f11"}}
    }

    target_product_type_id: str


class ReassignAndDeleteResponse(BaseModel):
    reassigned_count: int
    trace_id: str
