"""initial dispatch schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "0001_initial"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _enum(name: str, *values: str) -> sa.Enum:
    return sa.Enum(*values, name=name, native_enum=False)


def upgrade() -> None:
    op.create_table(
        "employees",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("mobile", sa.String(length=20), nullable=True),
        sa.Column("username", sa.String(length=100), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("role", _enum("roleenum", "employee", "admin"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=True),
        sa.Column("is_online", sa.Boolean(), nullable=True),
        sa.Column("current_latitude", sa.Float(), nullable=True),
        sa.Column("current_longitude", sa.Float(), nullable=True),
        sa.Column("current_tracking_status", sa.String(length=20), nullable=True),
        sa.Column("last_location_update", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username"),
    )
    op.create_index(op.f("ix_employees_id"), "employees", ["id"], unique=False)
    op.create_index(op.f("ix_employees_mobile"), "employees", ["mobile"], unique=False)
    op.create_index(op.f("ix_employees_email"), "employees", ["email"], unique=False)

    op.create_table(
        "attendance",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("shift_start", sa.DateTime(), nullable=False),
        sa.Column("shift_end", sa.DateTime(), nullable=True),
        sa.Column("status", _enum("shiftstatusenum", "active", "ended"), nullable=False),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_attendance_id"), "attendance", ["id"], unique=False)
    op.create_index(op.f("ix_attendance_employee_id"), "attendance", ["employee_id"], unique=False)

    op.create_table(
        "orders",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("customer_name", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=False),
        sa.Column("address", sa.Text(), nullable=False),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("services", sa.JSON(), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False),
        sa.Column("appointment_time", sa.DateTime(), nullable=False),
        sa.Column("payment_mode", sa.String(length=50), nullable=False),
        sa.Column(
            "status",
            _enum("orderstatusenum", "pending", "confirmed", "in_progress", "completed", "cancelled", "expired"),
            nullable=False,
        ),
        sa.Column("employee_id", sa.Integer(), nullable=True),
        sa.Column("acceptance_status", sa.String(length=100), nullable=True),
        sa.Column("external_order_id", sa.String(length=100), nullable=True),
        sa.Column("reference_order_id", sa.Integer(), nullable=True),
        sa.Column("has_issue", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"]),
        sa.ForeignKeyConstraint(["reference_order_id"], ["orders.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_orders_id"), "orders", ["id"], unique=False)
    op.create_index(op.f("ix_orders_appointment_time"), "orders", ["appointment_time"], unique=False)
    op.create_index(op.f("ix_orders_status"), "orders", ["status"], unique=False)
    op.create_index(op.f("ix_orders_employee_id"), "orders", ["employee_id"], unique=False)
    op.create_index(op.f("ix_orders_external_order_id"), "orders", ["external_order_id"], unique=False)
    op.create_index(op.f("ix_orders_reference_order_id"), "orders", ["reference_order_id"], unique=False)

    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("unit", sa.String(length=50), nullable=False),
        sa.Column("cost_per_unit", sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column("low_stock_threshold", sa.Numeric(precision=12, scale=3), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_products_id"), "products", ["id"], unique=False)
    op.create_index("uq_products_name_lower", "products", [sa.text("lower(name)")], unique=True)

    op.create_table(
        "product_purchases",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Numeric(precision=12, scale=3), nullable=False),
        sa.Column("purchase_date", sa.Date(), nullable=False),
        sa.Column("vendor_name", sa.String(length=255), nullable=True),
        sa.Column("invoice_number", sa.String(length=100), nullable=True),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("quantity > 0", name="ck_purchase_quantity_positive"),
        sa.ForeignKeyConstraint(["created_by"], ["employees.id"]),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("product_id", "invoice_number", name="uq_purchase_product_invoice"),
    )
    op.create_index(op.f("ix_product_purchases_id"), "product_purchases", ["id"], unique=False)
    op.create_index(op.f("ix_product_purchases_product_id"), "product_purchases", ["product_id"], unique=False)

    op.create_table(
        "product_consumptions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("order_id", sa.Integer(), nullable=False),
        sa.Column("external_order_id", sa.String(length=100), nullable=True),
        sa.Column("beautician_id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("quantity_used", sa.Numeric(precision=12, scale=3), nullable=False),
        sa.Column("auto_generated", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.CheckConstraint("quantity_used >= 0", name="ck_consumption_quantity_non_negative"),
        sa.ForeignKeyConstraint(["beautician_id"], ["employees.id"]),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"]),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("order_id", "product_id", name="uq_consumption_order_product"),
    )
    op.create_index(op.f("ix_product_consumptions_id"), "product_consumptions", ["id"], unique=False)
    op.create_index(op.f("ix_product_consumptions_order_id"), "product_consumptions", ["order_id"], unique=False)
    op.create_index(op.f("ix_product_consumptions_external_order_id"), "product_consumptions", ["external_order_id"], unique=False)
    op.create_index(op.f("ix_product_consumptions_beautician_id"), "product_consumptions", ["beautician_id"], unique=False)
    op.create_index(op.f("ix_product_consumptions_product_id"), "product_consumptions", ["product_id"], unique=False)

    op.create_table(
        "service_product_mappings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("service_name", sa.String(length=255), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("quantity_required", sa.Numeric(precision=12, scale=3), nullable=False),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("service_name", "product_id", name="uq_mapping_service_product"),
    )
    op.create_index(op.f("ix_service_product_mappings_id"), "service_product_mappings", ["id"], unique=False)
    op.create_index(op.f("ix_service_product_mappings_service_name"), "service_product_mappings", ["service_name"], unique=False)

    op.create_table(
        "order_default_products",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Numeric(precision=12, scale=3), nullable=False),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("product_id"),
    )
    op.create_index(op.f("ix_order_default_products_id"), "order_default_products", ["id"], unique=False)

    op.create_table(
        "products_not_found",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("order_id", sa.Integer(), nullable=False),
        sa.Column("external_order_id", sa.String(length=100), nullable=True),
        sa.Column("service_name", sa.String(length=255), nullable=False),
        sa.Column("product_name", sa.String(length=255), nullable=True),
        sa.Column("reason", _enum("missingreasonenum", "no_mapping", "product_unavailable"), nullable=False),
        sa.Column("gap_key", sa.String(length=320), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("order_id", "gap_key", name="uq_missing_order_gap"),
    )
    op.create_index(op.f("ix_products_not_found_id"), "products_not_found", ["id"], unique=False)
    op.create_index(op.f("ix_products_not_found_order_id"), "products_not_found", ["order_id"], unique=False)

    op.create_table(
        "product_requests",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("beautician_id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("quantity_requested", sa.Numeric(precision=12, scale=3), nullable=False),
        sa.Column("quantity_approved", sa.Numeric(precision=12, scale=3), nullable=True),
        sa.Column(
            "status",
            _enum("productrequeststatusenum", "pending", "approved", "partially_approved", "rejected"),
            nullable=False,
        ),
        sa.Column("requested_at", sa.DateTime(), nullable=True),
        sa.Column("approved_at", sa.DateTime(), nullable=True),
        sa.Column("approved_by", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["approved_by"], ["employees.id"]),
        sa.ForeignKeyConstraint(["beautician_id"], ["employees.id"]),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_product_requests_id"), "product_requests", ["id"], unique=False)
    op.create_index(op.f("ix_product_requests_beautician_id"), "product_requests", ["beautician_id"], unique=False)
    op.create_index(op.f("ix_product_requests_product_id"), "product_requests", ["product_id"], unique=False)
    op.create_index(op.f("ix_product_requests_status"), "product_requests", ["status"], unique=False)

    op.create_table(
        "beautician_live_tracking",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("beautician_id", sa.Integer(), nullable=False),
        sa.Column("order_id", sa.Integer(), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=False),
        sa.Column("longitude", sa.Float(), nullable=False),
        sa.Column("accuracy", sa.Float(), nullable=True),
        sa.Column("speed", sa.Float(), nullable=True),
        sa.Column("status", _enum("trackingstatusenum", "traveling", "at_location", "idle"), nullable=False),
        sa.Column("timestamp", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["beautician_id"], ["employees.id"]),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_beautician_live_tracking_id"), "beautician_live_tracking", ["id"], unique=False)
    op.create_index(op.f("ix_beautician_live_tracking_order_id"), "beautician_live_tracking", ["order_id"], unique=False)
    op.create_index("ix_live_tracking_beautician_ts", "beautician_live_tracking", ["beautician_id", "timestamp"], unique=False)
    op.create_index("ix_live_tracking_ts", "beautician_live_tracking", ["timestamp"], unique=False)

    op.create_table(
        "issues",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("beautician_id", sa.Integer(), nullable=False),
        sa.Column("order_id", sa.Integer(), nullable=True),
        sa.Column("issue_type", sa.String(length=100), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("status", _enum("issuestatusenum", "open", "resolved"), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("resolved_at", sa.DateTime(), nullable=True),
        sa.Column("resolved_by", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["beautician_id"], ["employees.id"]),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"]),
        sa.ForeignKeyConstraint(["resolved_by"], ["employees.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_issues_id"), "issues", ["id"], unique=False)
    op.create_index(op.f("ix_issues_order_id"), "issues", ["order_id"], unique=False)
    op.create_index("ix_issues_beautician_status", "issues", ["beautician_id", "status"], unique=False)


def downgrade() -> None:
    op.drop_table("issues")
    op.drop_table("beautician_live_tracking")
    op.drop_table("product_requests")
    op.drop_table("products_not_found")
    op.drop_table("order_default_products")
    op.drop_table("service_product_mappings")
    op.drop_table("product_consumptions")
    op.drop_table("product_purchases")
    op.drop_index("uq_products_name_lower", table_name="products")
    op.drop_table("products")
    op.drop_table("orders")
    op.drop_table("attendance")
    op.drop_table("employees")
