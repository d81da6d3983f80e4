from datetime import timedelta

from app.core.time_utils import utcnow
from app.models import LiveTrackingPoint, OrderStatusEnum, TrackingStatusEnum
from app.services import shift_service, tracking_service
from app.services.tracking_service import LocationSample


def sample(**kwargs):
    values = {"latitude": 12.97, "longitude": 77.59}
    values.update(kwargs)
    return LocationSample(**values)


def test_derive_status_fallback():
    assert tracking_service.derive_status(1.2, None) == TrackingStatusEnum.TRAVELING
    assert tracking_service.derive_status(0.556, 4) == TrackingStatusEnum.AT_LOCATION
    assert tracking_service.derive_status(None, 4) == TrackingStatusEnum.AT_LOCATION
    assert tracking_service.derive_status(0.1, None) == TrackingStatusEnum.IDLE


def test_ingest_appends_point_and_updates_cached_position(db, employee):
    point = tracking_service.ingest(db, employee.id, sample(speed=2.0, tracking_status=TrackingStatusEnum.TRAVELING))

    db.refresh(employee)
    assert point.status == TrackingStatusEnum.TRAVELING
    assert employee.current_latitude == 12.97
    assert employee.current_tracking_status == "traveling"
    assert employee.last_location_update == point.timestamp


def test_client_status_wins_over_derived(db, employee):
    point = tracking_service.ingest(db, employee.id, sample(speed=5.0, tracking_status=TrackingStatusEnum.IDLE))
    assert point.status == TrackingStatusEnum.IDLE


def test_cached_position_never_moves_backwards(db, employee):
    newer = utcnow() + timedelta(hours=1)
    employee.current_latitude = 1.0
    employee.last_location_update = newer
    db.commit()

    tracking_service.ingest(db, employee.id, sample())

    db.refresh(employee)
    assert employee.current_latitude == 1.0
    assert employee.last_location_update == newer
    assert db.query(LiveTrackingPoint).count() == 1


def test_history_is_newest_first_and_trail_oldest_first(db, employee):
    ids = [tracking_service.ingest(db, employee.id, sample(latitude=10.0 + i)).id for i in range(3)]

    assert [p.id for p in tracking_service.history(db, employee.id)] == list(reversed(ids))
    assert [p.id for p in tracking_service.trail_since(db, employee.id, timedelta(minutes=30))] == ids
    assert tracking_service.latest(db, employee.id).id == ids[-1]


def test_history_since_filters_old_points(db, employee):
    db.add(LiveTrackingPoint(beautician_id=employee.id, latitude=1.0, longitude=1.0,
                             status=TrackingStatusEnum.IDLE, timestamp=utcnow() - timedelta(hours=3)))
    db.commit()
    recent = tracking_service.ingest(db, employee.id, sample())

    points = tracking_service.history(db, employee.id, since=utcnow() - timedelta(hours=1))
    assert [p.id for p in points] == [recent.id]


def test_order_history(db, employee, make_order):
    order = make_order(["Manicure"], employee=employee)
    tracking_service.ingest(db, employee.id, sample(order_id=order.id))
    tracking_service.ingest(db, employee.id, sample())
    assert len(tracking_service.history_for_order(db, order.id)) == 1


def test_cleanup_removes_points_past_retention(db, employee):
    db.add(LiveTrackingPoint(beautician_id=employee.id, latitude=1.0, longitude=1.0,
                             status=TrackingStatusEnum.IDLE, timestamp=utcnow() - timedelta(days=8)))
    db.commit()
    tracking_service.ingest(db, employee.id, sample())

    assert tracking_service.cleanup(db) == 1
    assert db.query(LiveTrackingPoint).count() == 1


def test_overview_shows_active_order(db, make_employee, make_order, admin):
    busy = make_employee(name="Busy")
    free = make_employee(name="Free")
    make_order(["Manicure"], employee=busy, status=OrderStatusEnum.CONFIRMED)
    active = make_order(["Pedicure"], employee=busy, status=OrderStatusEnum.IN_PROGRESS)
    shift_service.start_shift(db, busy)
    tracking_service.ingest(db, busy.id, sample(order_id=active.id))

    overview = {row["name"]: row for row in tracking_service.tracking_overview(db)}

    assert set(overview) == {"Busy", "Free"}
    assert overview["Busy"]["current_order_id"] == active.id
    assert overview["Busy"]["current_order_status"] == "in_progress"
    assert overview["Busy"]["is_online"] is True
    assert overview["Busy"]["tracking_status"] == "at_location"
    assert overview["Free"]["current_order_id"] is None
    assert overview["Free"]["is_online"] is False


def test_shift_start_is_idempotent_and_end_closes_it(db, employee):
    first = shift_service.start_shift(db, employee)
    again = shift_service.start_shift(db, employee)
    assert first.id == again.id
    assert employee.is_online is True

    ended = shift_service.end_shift(db, employee)
    assert ended.shift_end is not None
    assert employee.is_online is False
    assert shift_service.end_shift(db, employee) is None
