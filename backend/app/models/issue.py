from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Float, Text, Index, Enum as SQLEnum
from sqlalchemy.orm import relationship
import enum
from app.core.database import Base
from app.core.time_utils import utcnow


class IssueStatusEnum(str, enum.Enum):
    OPEN = "open"
    RESOLVED = "resolved"


class Issue(Base):
    """A field problem raised by a beautician ("Cab Not Available", "Customer Not Reachable", ...)."""
    __tablename__ = "issues"

    id = Column(Integer, primary_key=True, index=True)
    beautician_id = Column(Integer, ForeignKey("employees.id"), nullable=False)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=True, index=True)
    issue_type = Column(String(100), nullable=False)
    notes = Column(Text, nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    status = Column(SQLEnum(IssueStatusEnum, values_callable=lambda x: [e.value for e in x], native_enum=False), nullable=False, default=IssueStatusEnum.OPEN)
    created_at = Column(DateTime, default=utcnow)
    resolved_at = Column(DateTime, nullable=True)
    resolved_by = Column(Integer, ForeignKey("employees.id"), nullable=True)

    beautician = relationship("Employee", foreign_keys=[beautician_id])

    __table_args__ = (
        Index("ix_issues_beautician_status", "beautician_id", "status"),
    )

    @property
    def beautician_name(self):
        return self.beautician.name if self.beautician else None
