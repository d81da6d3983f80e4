from sqlalchemy import (
    Column, Integer, String, DateTime, Date, ForeignKey, Numeric, Boolean, Index,
    UniqueConstraint, CheckConstraint, Enum as SQLEnum, func,
)
from sqlalchemy.orm import relationship
import enum
from app.core.database import Base
from app.core.time_utils import utcnow

# Fixed-point quantities; never floats
Quantity = Numeric(12, 3)


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    unit = Column(String(50), nullable=False, default="pcs")
    cost_per_unit = Column(Numeric(10, 2), nullable=False, default=0)
    low_stock_threshold = Column(Quantity, nullable=False, default=0)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, onupdate=utcnow)

    __table_args__ = (
        Index("uq_products_name_lower", func.lower(name), unique=True),
    )


class ProductPurchase(Base):
    """Ledger credit."""
    __tablename__ = "product_purchases"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    quantity = Column(Quantity, nullable=False)
    purchase_date = Column(Date, nullable=False)
    vendor_name = Column(String(255), nullable=True)
    invoice_number = Column(String(100), nullable=True)
    created_by = Column(Integer, ForeignKey("employees.id"), nullable=True)
    created_at = Column(DateTime, default=utcnow)

    product = relationship("Product")

    __table_args__ = (
        # NULL invoice numbers never collide, so this only binds imported invoices
        UniqueConstraint("product_id", "invoice_number", name="uq_purchase_product_invoice"),
        CheckConstraint("quantity > 0", name="ck_purchase_quantity_positive"),
    )


class ProductConsumption(Base):
    """Ledger debit, one row per order and product."""
    __tablename__ = "product_consumptions"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    external_order_id = Column(String(100), nullable=True, index=True)
    beautician_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    quantity_used = Column(Quantity, nullable=False)
    auto_generated = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    product = relationship("Product")

    __table_args__ = (
        UniqueConstraint("order_id", "product_id", name="uq_consumption_order_product"),
        CheckConstraint("quantity_used >= 0", name="ck_consumption_quantity_non_negative"),
    )


class ServiceProductMapping(Base):
    __tablename__ = "service_product_mappings"

    id = Column(Integer, primary_key=True, index=True)
    service_name = Column(String(255), nullable=False, index=True)  # stored lowercase
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    quantity_required = Column(Quantity, nullable=False)

    product = relationship("Product")

    __table_args__ = (
        UniqueConstraint("service_name", "product_id", name="uq_mapping_service_product"),
    )


class OrderDefaultProduct(Base):
    """Consumed once on every completed order, whatever the services."""
    __tablename__ = "order_default_products"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, unique=True)
    quantity = Column(Quantity, nullable=False)

    product = relationship("Product")


class MissingReasonEnum(str, enum.Enum):
    NO_MAPPING = "no_mapping"
    PRODUCT_UNAVAILABLE = "product_unavailable"


class ProductNotFound(Base):
    """Append-only audit of services/products the auto-deduction could not resolve."""
    __tablename__ = "products_not_found"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    external_order_id = Column(String(100), nullable=True)
    service_name = Column(String(255), nullable=False)
    product_name = Column(String(255), nullable=True)
    reason = Column(SQLEnum(MissingReasonEnum, values_callable=lambda x: [e.value for e in x], native_enum=False), nullable=False, default=MissingReasonEnum.NO_MAPPING)
    # "<reason>:<service>:<product id or empty>", one row per gap per order
    gap_key = Column(String(320), nullable=False)
    created_at = Column(DateTime, default=utcnow)

    __table_args__ = (
        UniqueConstraint("order_id", "gap_key", name="uq_missing_order_gap"),
    )


class ProductRequestStatusEnum(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    PARTIALLY_APPROVED = "partially_approved"
    REJECTED = "rejected"


class ProductRequest(Base):
    __tablename__ = "product_requests"

    id = Column(Integer, primary_key=True, index=True)
    beautician_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    quantity_requested = Column(Quantity, nullable=False)
    quantity_approved = Column(Quantity, nullable=True)
    status = Column(SQLEnum(ProductRequestStatusEnum, values_callable=lambda x: [e.value for e in x], native_enum=False), nullable=False, default=ProductRequestStatusEnum.PENDING, index=True)
    requested_at = Column(DateTime, default=utcnow)
    approved_at = Column(DateTime, nullable=True)
    approved_by = Column(Integer, ForeignKey("employees.id"), nullable=True)

    product = relationship("Product")
    beautician = relationship("Employee", foreign_keys=[beautician_id])
