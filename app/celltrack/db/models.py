import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    JSON,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    event,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.types import TypeDecorator, CHAR


class GUID(TypeDecorator):
    impl = CHAR
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            from sqlalchemy.dialects.postgresql import UUID

            return dialect.type_descriptor(UUID(as_uuid=True))
        return dialect.type_descriptor(CHAR(36))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, uuid.UUID):
            return str(value)
        return str(uuid.UUID(value))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(value)


class Base(DeclarativeBase):
    pass


class Location(Base):
    __tablename__ = "locations"

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4)
    username: Mapped[str] = mapped_column(String(150), nullable=False, unique=True, index=True)
    display_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(50), default="DESTINATION_AGENT", nullable=False)
    location_id: Mapped[uuid.UUID | None] = mapped_column(
        GUID(), ForeignKey("locations.id"), index=True, nullable=True
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    location = relationship("Location")


class ProductType(Base):
    __tablename__ = "product_types"

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4)
    brand: Mapped[str] = mapped_column(String(100), nullable=False)
    model: Mapped[str] = mapped_column(String(150), nullable=False)
    minimum_stock: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    @property
    def display_name(self) -> str:
        return f"{self.brand} {self.model}"


class InventoryUnit(Base):
    __tablename__ = "inventory_units"

    imei: Mapped[str] = mapped_column(String(32), primary_key=True)
    imei2: Mapped[str | None] = mapped_column(String(32), nullable=True)
    product_type_id: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("product_types.id"), index=True, nullable=False
    )
    location_id: Mapped[uuid.UUID] = mapped_column(GUID(), ForeignKey("locations.id"), index=True, nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="New")
    memory: Mapped[str | None] = mapped_column(String(50), nullable=True)
    color: Mapped[str | None] = mapped_column(String(50), nullable=True)
    supplier: Mapped[str | None] = mapped_column(String(255), nullable=True)
    purchase_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    purchase_invoice_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    purchase_invoice_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)


class Transfer(Base):
    __tablename__ = "transfers"

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4)
    folio_number: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    folio: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    target_location_id: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("locations.id"), index=True, nullable=False
    )
    target_location_name: Mapped[str] = mapped_column(String(255), nullable=False)
    initiator_user_id: Mapped[uuid.UUID | None] = mapped_column(GUID(), nullable=True)
    initiator_name: Mapped[str] = mapped_column(String(255), nullable=False)
    state: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    admin_confirmed_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    admin_confirmed_by_id: Mapped[uuid.UUID | None] = mapped_column(GUID(), nullable=True)
    admin_confirmed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    destination_confirmed_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    destination_confirmed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    cancelled_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    report_text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    units = relationship(
        "TransferUnit",
        order_by="TransferUnit.position",
        back_populates="transfer",
        cascade="all, delete-orphan",
    )


class TransferUnit(Base):
    __tablename__ = "transfer_units"

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4)
    transfer_id: Mapped[uuid.UUID] = mapped_column(GUID(), ForeignKey("transfers.id"), index=True, nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    imei: Mapped[str] = mapped_column(String(32), index=True, nullable=False)
    product_name: Mapped[str] = mapped_column(String(255), nullable=False)
    color: Mapped[str | None] = mapped_column(String(50), nullable=True)
    original_location_id: Mapped[uuid.UUID] = mapped_column(GUID(), nullable=False)
    original_location_name: Mapped[str] = mapped_column(String(255), nullable=False)

    transfer = relationship("Transfer", back_populates="units")

    __table_args__ = (UniqueConstraint("transfer_id", "imei", name="uq_transfer_units_transfer_imei"),)


class AuditEvent(Base):
    __tablename__ = "audit_events"

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4)
    sequence: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    action: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    actor: Mapped[str] = mapped_column(String(255), nullable=False)
    actor_role: Mapped[str | None] = mapped_column(String(50), nullable=True)
    user_id: Mapped[uuid.UUID | None] = mapped_column(GUID(), nullable=True)
    transfer_id: Mapped[uuid.UUID | None] = mapped_column(GUID(), index=True, nullable=True)
    trace_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    details: Mapped[dict] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class Counter(Base):
    __tablename__ = "counters"

    name: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class ImmutableAuditEventError(RuntimeError):
    pass


@event.listens_for(AuditEvent, "before_update")
def _reject_audit_update(mapper, connection, target):
    raise ImmutableAuditEventError("audit events are append-only")


@event.listens_for(AuditEvent, "before_delete")
def _reject_audit_delete(mapper, connection, target):
    raise ImmutableAuditEventError("audit events are append-only")


Index("ix_transfers_target_state", Transfer.target_location_id, Transfer.state)
Index("ix_audit_events_action_sequence", AuditEvent.action, AuditEvent.sequence)
