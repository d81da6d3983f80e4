from sqlalchemy import Column, Integer, String, Boolean, DateTime, Float, Enum as SQLEnum
from sqlalchemy.orm import relationship
import enum
from app.core.database import Base
from app.core.time_utils import utcnow


class RoleEnum(str, enum.Enum):
    EMPLOYEE = "employee"
    ADMIN = "admin"


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    mobile = Column(String(20), index=True, nullable=True)
    username = Column(String(100), unique=True, nullable=True)
    email = Column(String(255), index=True, nullable=True)
    hashed_password = Column(String(255), nullable=False)
    role = Column(SQLEnum(RoleEnum, values_callable=lambda x: [e.value for e in x], native_enum=False), nullable=False, default=RoleEnum.EMPLOYEE)
    is_active = Column(Boolean, default=True)
    # On shift; drives whether the field client tracks at all
    is_online = Column(Boolean, default=False)
    # Denormalized copy of the most recent tracking point
    current_latitude = Column(Float, nullable=True)
    current_longitude = Column(Float, nullable=True)
    current_tracking_status = Column(String(20), nullable=True)
    last_location_update = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, onupdate=utcnow)

    orders = relationship("Order", back_populates="employee", foreign_keys="Order.employee_id")
    shifts = relationship("Attendance", back_populates="employee", cascade="all, delete-orphan")

    @property
    def is_admin(self) -> bool:
        return self.role == RoleEnum.ADMIN
