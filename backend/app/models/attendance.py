from sqlalchemy import Column, Integer, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.orm import relationship
import enum
from app.core.database import Base
from app.core.time_utils import utcnow


class ShiftStatusEnum(str, enum.Enum):
    ACTIVE = "active"
    ENDED = "ended"


class Attendance(Base):
    __tablename__ = "attendance"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    shift_start = Column(DateTime, nullable=False, default=utcnow)
    shift_end = Column(DateTime, nullable=True)
    status = Column(SQLEnum(ShiftStatusEnum, values_callable=lambda x: [e.value for e in x], native_enum=False), nullable=False, default=ShiftStatusEnum.ACTIVE)

    employee = relationship("Employee", back_populates="shifts")
