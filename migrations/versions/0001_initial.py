"""initial

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-17 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


class GUID(sa.TypeDecorator):
    impl = sa.CHAR
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            from sqlalchemy.dialects.postgresql import UUID

            return dialect.type_descriptor(UUID(as_uuid=True))
        return dialect.type_descriptor(sa.CHAR(36))


def upgrade() -> None:
    op.create_table(
        "locations",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False, unique=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_table(
        "users",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("username", sa.String(length=150), nullable=False),
        sa.Column("display_name", sa.String(length=255), nullable=True),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=50), nullable=False, server_default="DESTINATION_AGENT"),
        sa.Column("location_id", GUID(), sa.ForeignKey("locations.id"), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_location_id", "users", ["location_id"], unique=False)

    op.create_table(
        "product_types",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("brand", sa.String(length=100), nullable=False),
        sa.Column("model", sa.String(length=150), nullable=False),
        sa.Column("minimum_stock", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_table(
        "inventory_units",
        sa.Column("imei", sa.String(length=32), primary_key=True),
        sa.Column("imei2", sa.String(length=32), nullable=True),
        sa.Column("product_type_id", GUID(), sa.ForeignKey("product_types.id"), nullable=False),
        sa.Column("location_id", GUID(), sa.ForeignKey("locations.id"), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="New"),
        sa.Column("memory", sa.String(length=50), nullable=True),
        sa.Column("color", sa.String(length=50), nullable=True),
        sa.Column("supplier", sa.String(length=255), nullable=True),
        sa.Column("purchase_price", sa.Numeric(12, 2), nullable=True),
        sa.Column("purchase_invoice_id", sa.String(length=100), nullable=True),
        sa.Column("purchase_invoice_date", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_inventory_units_product_type_id", "inventory_units", ["product_type_id"], unique=False)
    op.create_index("ix_inventory_units_location_id", "inventory_units", ["location_id"], unique=False)

    op.create_table(
        "transfers",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("folio_number", sa.Integer(), nullable=False, unique=True),
        sa.Column("folio", sa.String(length=32), nullable=False, unique=True),
        sa.Column("target_location_id", GUID(), sa.ForeignKey("locations.id"), nullable=False),
        sa.Column("target_location_name", sa.String(length=255), nullable=False),
        sa.Column("initiator_user_id", GUID(), nullable=True),
        sa.Column("initiator_name", sa.String(length=255), nullable=False),
        sa.Column("state", sa.String(length=50), nullable=False),
        sa.Column("admin_confirmed_by", sa.String(length=255), nullable=True),
        sa.Column("admin_confirmed_at", sa.DateTime(), nullable=True),
        sa.Column("destination_confirmed_by", sa.String(length=255), nullable=True),
        sa.Column("destination_confirmed_at", sa.DateTime(), nullable=True),
        sa.Column("cancelled_by", sa.String(length=255), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(), nullable=True),
        sa.Column("report_text", sa.Text(), nullable=False, server_default=""),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_transfers_target_location_id", "transfers", ["target_location_id"], unique=False)
    op.create_index("ix_transfers_state", "transfers", ["state"], unique=False)
    op.create_index("ix_transfers_target_state", "transfers", ["target_location_id", "state"], unique=False)

    op.create_table(
        "transfer_units",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("transfer_id", GUID(), sa.ForeignKey("transfers.id"), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("imei", sa.String(length=32), nullable=False),
        sa.Column("product_name", sa.String(length=255), nullable=False),
        sa.Column("color", sa.String(length=50), nullable=True),
        sa.Column("original_location_id", GUID(), nullable=False),
        sa.Column("original_location_name", sa.String(length=255), nullable=False),
        sa.UniqueConstraint("transfer_id", "imei", name="uq_transfer_units_transfer_imei"),
    )
    op.create_index("ix_transfer_units_transfer_id", "transfer_units", ["transfer_id"], unique=False)
    op.create_index("ix_transfer_units_imei", "transfer_units", ["imei"], unique=False)

    op.create_table(
        "audit_events",
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("sequence", sa.Integer(), nullable=False, unique=True),
        sa.Column("action", sa.String(length=64), nullable=False),
        sa.Column("actor", sa.String(length=255), nullable=False),
        sa.Column("actor_role", sa.String(length=50), nullable=True),
        sa.Column("user_id", GUID(), nullable=True),
        sa.Column("transfer_id", GUID(), nullable=True),
        sa.Column("trace_id", sa.String(length=255), nullable=True),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_audit_events_action", "audit_events", ["action"], unique=False)
    op.create_index("ix_audit_events_transfer_id", "audit_events", ["transfer_id"], unique=False)
    op.create_index("ix_audit_events_action_sequence", "audit_events", ["action", "sequence"], unique=False)

    counters = op.create_table(
        "counters",
        sa.Column("name", sa.String(length=64), primary_key=True),
        sa.Column("value", sa.Integer(), nullable=False, server_default="0"),
    )
    op.bulk_insert(
        counters,
        [
            {"name": "transfer_folio", "value": 0},
            {"name": "audit_sequence", "value": 0},
        ],
    )


def downgrade() -> None:
    op.drop_table("counters")
    op.drop_index("ix_audit_events_action_sequence", table_name="audit_events")
    op.drop_index("ix_audit_events_transfer_id", table_name="audit_events")
    op.drop_index("ix_audit_events_action", table_name="audit_events")
    op.drop_table("audit_events")
    op.drop_index("ix_transfer_units_imei", table_name="transfer_units")
    op.drop_index("ix_transfer_units_transfer_id", table_name="transfer_units")
    op.drop_table("transfer_units")
    op.drop_index("ix_transfers_target_state", table_name="transfers")
    op.drop_index("ix_transfers_state", table_name="transfers")
    op.drop_index("ix_transfers_target_location_id", table_name="transfers")
    op.drop_table("transfers")
    op.drop_index("ix_inventory_units_location_id", table_name="inventory_units")
    op.drop_index("ix_inventory_units_product_type_id", table_name="inventory_units")
    op.drop_table("inventory_units")
    op.drop_table("product_types")
    op.drop_index("ix_users_location_id", table_name="users")
    op.drop_index("ix_users_username", table_name="users")
    op.drop_table("users")
    op.drop_table("locations")
