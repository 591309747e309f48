from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter


class TransferUnitSnapshot(BaseModel):
    imei: str
    product_name: str
    color: str | None = None
    original_location_id: str
    original_location_name: str


class ItemsTransferredDetails(BaseModel):
    action: Literal["ItemsTransferred"] = "ItemsTransferred"
    transfer_id: str
    folio: str
    imeis: list[str]
    count: int
    target_location_id: str
    target_location_name: str
    original_locations: dict[str, str]
    units: list[TransferUnitSnapshot]
    initiator: str
    state: str


class TransferConfirmedDetails(BaseModel):
    action: Literal["TransferConfirmed"] = "TransferConfirmed"
    transfer_id: str
    folio: str
    confirmation_type: Literal["admin", "destination"]
    confirmed_by: str
    target_location_name: str
    item_count: int
    imeis: list[str]
    new_state: str


class TransferCancelledDetails(BaseModel):
    action: Literal["TransferCancelled"] = "TransferCancelled"
    transfer_id: str
    folio: str
    cancelled_by: str
    target_location_name: str
    item_count: int
    imeis: list[str]
    restored_locations: dict[str, str]
    missing_imeis: list[str] = Field(default_factory=list)


class ProductTypeAddedDetails(BaseModel):
    action: Literal["ProductTypeAdded"] = "ProductTypeAdded"
    product_type_id: str
    brand: str
    model: str
    minimum_stock: int | None = None


class ProductTypeUpdatedDetails(BaseModel):
    action: Literal["ProductTypeUpdated"] = "ProductTypeUpdated"
    product_type_id: str
    old_brand: str
    old_model: str
    old_minimum_stock: int | None = None
    new_brand: str
    new_model: str
    new_minimum_stock: int | None = None


class ReassignmentPointer(BaseModel):
    new_product_type_id: str
    new_product_name: str
    item_count: int
    reassignment_event_id: str


class ProductTypeDeletedDetails(BaseModel):
    action: Literal["ProductTypeDeleted"] = "ProductTypeDeleted"
    product_type_id: str
    brand: str
    model: str
    minimum_stock: int | None = None
    reassigned_items_to: ReassignmentPointer | None = None


class ItemsReassignedDetails(BaseModel):
    action: Literal["ItemsReassigned"] = "ItemsReassigned"
    original_product_type_id: str
    original_product_name: str
    new_product_type_id: str
    new_product_name: str
    item_count: int
    imeis: list[str]


class StatusChange(BaseModel):
    imei: str
    old_status: str
    new_status: str


class ItemsStatusChangedDetails(BaseModel):
    action: Literal["ItemsStatusChanged"] = "ItemsStatusChanged"
    imeis: list[str]
    new_status: str
    count: int
    changed_items: list[StatusChange]
    reauthenticated_by: str | None = None


class AddedUnitGroup(BaseModel):
    product_type_id: str
    product_name: str
    count: int
    imeis: list[str]


class ItemsAddedDetails(BaseModel):
    action: Literal["ItemsAdded"] = "ItemsAdded"
    count: int
    skipped_count: int = 0
    groups: list[AddedUnitGroup]


class DeletedUnitSnapshot(BaseModel):
    imei: str
    imei2: str | None = None
    product_type_id: str
    product_name: str
    location_id: str
    location_name: str
    status: str
    memory: str | None = None
    color: str | None = None
    supplier: str | None = None
    purchase_price: Decimal | None = None
    purchase_invoice_id: str | None = None
    purchase_invoice_date: date | None = None


class ItemsDeletedDetails(BaseModel):
    action: Literal["ItemsDeleted"] = "ItemsDeleted"
    count: int
    deleted_items: list[DeletedUnitSnapshot]
    authorized_by: str


class UserLoginDetails(BaseModel):
    action: Literal["UserLogin"] = "UserLogin"
    username: str
    role: str
    location_name: str | None = None


class BackupRestoredDetails(BaseModel):
    action: Literal["BackupRestored"] = "BackupRestored"
    backup_version: str
    product_types_restored: int
    units_restored: int
    skipped_product_types: int
    skipped_units: int
    folio_counter: int


AuditDetails = Annotated[
    Union[
        ItemsTransferredDetails,
        TransferConfirmedDetails,
        TransferCancelledDetails,
        ProductTypeAddedDetails,
        ProductTypeUpdatedDetails,
        ProductTypeDeletedDetails,
        ItemsReassignedDetails,
        ItemsStatusChangedDetails,
        ItemsAddedDetails,
        ItemsDeletedDetails,
        UserLoginDetails,
        BackupRestoredDetails,
    ],
    Field(discriminator="action"),
]

audit_details_adapter: TypeAdapter[AuditDetails] = TypeAdapter(AuditDetails)


class AuditEventResponse(BaseModel):
    id: str
    sequence: int
    action: str
    actor: str
    actor_role: str | None
    transfer_id: str | None
    created_at: datetime
    details: AuditDetails


class AuditEventListResponse(BaseModel):
    rows: list[AuditEventResponse]
    total: int
