from sqlalchemy import Column, Integer, DateTime, ForeignKey, Float, Index, Enum as SQLEnum
import enum
from app.core.database import Base
from app.core.time_utils import utcnow


class TrackingStatusEnum(str, enum.Enum):
    TRAVELING = "traveling"
    AT_LOCATION = "at_location"
    IDLE = "idle"


class LiveTrackingPoint(Base):
    """Immutable once written; ordered by timestamp per beautician it forms the trail."""
    __tablename__ = "beautician_live_tracking"

    id = Column(Integer, primary_key=True, index=True)
    beautician_id = Column(Integer, ForeignKey("employees.id"), nullable=False)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=True, index=True)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    accuracy = Column(Float, nullable=True)
    speed = Column(Float, nullable=True)  # m/s
    status = Column(SQLEnum(TrackingStatusEnum, values_callable=lambda x: [e.value for e in x], native_enum=False), nullable=False)
    timestamp = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index("ix_live_tracking_beautician_ts", "beautician_id", "timestamp"),
        Index("ix_live_tracking_ts", "timestamp"),
    )
