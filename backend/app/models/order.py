from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Float, JSON, Text, Enum as SQLEnum
from sqlalchemy.orm import relationship
import enum
from app.core.database import Base
from app.core.time_utils import utcnow


class OrderStatusEnum(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    customer_name = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=False)
    address = Column(Text, nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    # [{"name": "Manicure", "price": 500}, ...]
    services = Column(JSON, nullable=False, default=list)
    amount = Column(Integer, nullable=False, default=0)
    duration = Column(Integer, nullable=False, default=60)  # minutes
    appointment_time = Column(DateTime, nullable=False, index=True)
    payment_mode = Column(String(50), nullable=False, default="cash")
    status = Column(SQLEnum(OrderStatusEnum, values_callable=lambda x: [e.value for e in x], native_enum=False), nullable=False, default=OrderStatusEnum.PENDING, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=True, index=True)
    # Cancellation reason code once cancelled/expired
    acceptance_status = Column(String(100), nullable=True)
    # Not unique: duplicate imports can map one external order to two rows
    external_order_id = Column(String(100), nullable=True, index=True)
    reference_order_id = Column(Integer, ForeignKey("orders.id"), nullable=True, index=True)
    # Set once any issue is raised against the order
    has_issue = Column(Boolean, default=False, nullable=False)
    completed_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, onupdate=utcnow)

    employee = relationship("Employee", back_populates="orders", foreign_keys=[employee_id])
    reference_order = relationship("Order", remote_side=[id])
