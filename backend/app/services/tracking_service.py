"""
Server side of live tracking: an append-only point history per beautician
plus a denormalized "current position" on the employee row for O(1) lookups.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, List, Optional
from sqlalchemy.orm import Session
from app.core.config import settings
from app.core.logging_config import get_logger
from app.core.time_utils import utcnow
from app.models.employee import Employee, RoleEnum
from app.models.order import Order, OrderStatusEnum
from app.models.tracking import LiveTrackingPoint, TrackingStatusEnum
from app.services import issue_service

logger = get_logger("tracking")

ACTIVE_ORDER_STATUSES = (OrderStatusEnum.IN_PROGRESS, OrderStatusEnum.CONFIRMED)


@dataclass
class LocationSample:
    latitude: float
    longitude: float
    accuracy: Optional[float] = None
    speed: Optional[float] = None
    order_id: Optional[int] = None
    tracking_status: Optional[TrackingStatusEnum] = None


def derive_status(speed: Optional[float], order_id: Optional[int]) -> TrackingStatusEnum:
    """Fallback when the client sent no status; same threshold as the field classifier."""
    if speed is not None and speed > settings.TRAVELING_SPEED_THRESHOLD_MPS:
        return TrackingStatusEnum.TRAVELING
    if order_id is not None:
        return TrackingStatusEnum.AT_LOCATION
    return TrackingStatusEnum.IDLE


def ingest(db: Session, beautician_id: int, sample: LocationSample) -> LiveTrackingPoint:
    status = sample.tracking_status or derive_status(sample.speed, sample.order_id)
    point = LiveTrackingPoint(
        beautician_id=beautician_id,
        order_id=sample.order_id,
        latitude=sample.latitude,
        longitude=sample.longitude,
        accuracy=sample.accuracy,
        speed=sample.speed,
        status=TrackingStatusEnum(status),
        timestamp=utcnow(),
    )
    db.add(point)

    employee = db.query(Employee).filter(Employee.id == beautician_id).first()
    # Never let a late-arriving point overwrite a newer cached position
    if employee is not None and (
        employee.last_location_update is None or point.timestamp >= employee.last_location_update
    ):
        employee.current_latitude = point.latitude
        employee.current_longitude = point.longitude
        employee.current_tracking_status = point.status.value
        employee.last_location_update = point.timestamp

    db.commit()
    db.refresh(point)
    logger.debug(
        f"Tracking point stored for beautician {beautician_id}",
        extra={"beautician_id": beautician_id, "status": point.status.value, "order_id": sample.order_id},
    )
    return point


def latest(db: Session, beautician_id: int) -> Optional[LiveTrackingPoint]:
    return db.query(LiveTrackingPoint).filter(
        LiveTrackingPoint.beautician_id == beautician_id
    ).order_by(LiveTrackingPoint.timestamp.desc(), LiveTrackingPoint.id.desc()).first()


def history(db: Session, beautician_id: int, since: Optional[datetime] = None) -> List[LiveTrackingPoint]:
    """Most recent first."""
    query = db.query(LiveTrackingPoint).filter(LiveTrackingPoint.beautician_id == beautician_id)
    if since is not None:
        query = query.filter(LiveTrackingPoint.timestamp >= since)
    return query.order_by(LiveTrackingPoint.timestamp.desc(), LiveTrackingPoint.id.desc()).all()


def trail_since(db: Session, beautician_id: int, duration: timedelta) -> List[LiveTrackingPoint]:
    """Oldest first, for drawing a movement path."""
    points = history(db, beautician_id, since=utcnow() - duration)
    return sorted(points, key=lambda p: (p.timestamp, p.id))


def history_for_order(db: Session, order_id: int) -> List[LiveTrackingPoint]:
    return db.query(LiveTrackingPoint).filter(
        LiveTrackingPoint.order_id == order_id
    ).order_by(LiveTrackingPoint.timestamp.desc(), LiveTrackingPoint.id.desc()).all()


def cleanup(db: Session, older_than: Optional[datetime] = None) -> int:
    """Delete points strictly older than the cutoff (default: retention window)."""
    if older_than is None:
        older_than = utcnow() - timedelta(days=settings.TRACKING_RETENTION_DAYS)
    deleted = db.query(LiveTrackingPoint).filter(
        LiveTrackingPoint.timestamp < older_than
    ).delete(synchronize_session=False)
    db.commit()
    logger.info(f"Tracking cleanup removed {deleted} point(s) older than {older_than.isoformat()}")
    return deleted


def tracking_overview(db: Session) -> List[Dict]:
    """Dispatch view: every field employee with current position, active order status and open-issue flag."""
    employees = db.query(Employee).filter(
        Employee.role == RoleEnum.EMPLOYEE,
        Employee.is_active.is_(True),
    ).order_by(Employee.name).all()

    active_orders: Dict[int, Order] = {}
    if employees:
        rows = db.query(Order).filter(
            Order.employee_id.in_([e.id for e in employees]),
            Order.status.in_(ACTIVE_ORDER_STATUSES),
        ).order_by(Order.appointment_time.desc()).all()
        for order in rows:
            current = active_orders.get(order.employee_id)
            # In-progress beats confirmed; otherwise the latest appointment wins
            if current is None or (
                order.status == OrderStatusEnum.IN_PROGRESS and current.status != OrderStatusEnum.IN_PROGRESS
            ):
                active_orders[order.employee_id] = order

    with_issues = issue_service.beauticians_with_open_issues(db, [e.id for e in employees])

    overview = []
    for employee in employees:
        order = active_orders.get(employee.id)
        overview.append({
            "id": employee.id,
            "name": employee.name,
            "is_online": bool(employee.is_online),
            "current_latitude": employee.current_latitude,
            "current_longitude": employee.current_longitude,
            "tracking_status": employee.current_tracking_status,
            "last_location_update": employee.last_location_update,
            "current_order_id": order.id if order else None,
            "current_order_status": order.status.value if order else None,
            "has_active_issue": employee.id in with_issues,
        })
    return overview
