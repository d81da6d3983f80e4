from datetime import timedelta

import pytest

from app.core.time_utils import utcnow
from app.models import Order, OrderStatusEnum
from app.services import cancellation_service
from app.services.cancellation_service import (
    CancellationCategory,
    ReallocationError,
    classify_cancellation,
    normalize_reason,
)
from app.services.order_service import InvalidStatusTransition


@pytest.mark.parametrize("reason,code", [
    ("Customer Not Available", "customer_not_available"),
    ("customer-cancelled emergency", "customer_cancelled_emergency"),
    ("  Sick ", "unwell"),
    ("Timing conflict!", "timing_conflict"),
    ("expired", "no_action_expired"),
])
def test_normalize_reason(reason, code):
    assert normalize_reason(reason) == code


@pytest.mark.parametrize("reason,category", [
    ("customer_not_available", CancellationCategory.CUSTOMER),
    ("customer_canceled_delay", CancellationCategory.CUSTOMER),
    ("emergency", CancellationCategory.CUSTOMER),
    ("unwell", CancellationCategory.BEAUTICIAN),
    ("location_issue", CancellationCategory.BEAUTICIAN),
    ("no_action_expired", CancellationCategory.BEAUTICIAN),
    ("flat tyre", CancellationCategory.BEAUTICIAN),
    (None, CancellationCategory.BEAUTICIAN),
])
def test_every_reason_lands_in_exactly_one_bucket(reason, category):
    assert classify_cancellation(reason) == category


def test_cancel_records_reason_code(db, make_order, employee):
    order = make_order(["Facial"], employee=employee)
    cancelled = cancellation_service.cancel_order(db, order.id, "Feeling unwell")
    assert cancelled.status == OrderStatusEnum.CANCELLED
    assert cancelled.acceptance_status == "unwell"
    assert cancelled.cancelled_at is not None


def test_cancel_rejects_terminal_orders_and_blank_reasons(db, make_order, employee):
    done = make_order(["Facial"], employee=employee, status=OrderStatusEnum.COMPLETED)
    with pytest.raises(InvalidStatusTransition):
        cancellation_service.cancel_order(db, done.id, "unwell")
    open_order = make_order(["Facial"], employee=employee)
    with pytest.raises(ValueError):
        cancellation_service.cancel_order(db, open_order.id, "  !! ")


def test_cancelled_lists_split_by_category(db, make_order, employee):
    mine = make_order(["Facial"], employee=employee)
    theirs = make_order(["Facial"], employee=employee)
    cancellation_service.cancel_order(db, mine.id, "timing_conflict")
    cancellation_service.cancel_order(db, theirs.id, "customer_not_available")

    beautician = cancellation_service.list_cancelled_orders(db, CancellationCategory.BEAUTICIAN)
    customer = cancellation_service.list_cancelled_orders(db, CancellationCategory.CUSTOMER)

    assert [row["order"].id for row in beautician] == [mine.id]
    assert beautician[0]["employee_name"] == "Asha"
    assert beautician[0]["can_reallocate"] is True
    assert [row["order"].id for row in customer] == [theirs.id]
    assert customer[0]["can_reallocate"] is False


def test_reallocate_clones_into_new_unassigned_order(db, make_order, employee):
    original = make_order(["Facial", "Manicure"], employee=employee, external_order_id="SHEET-9")
    cancellation_service.cancel_order(db, original.id, "unwell")

    new_order = cancellation_service.reallocate(db, original.id)

    assert new_order.id != original.id
    assert new_order.status == OrderStatusEnum.PENDING
    assert new_order.employee_id is None
    assert new_order.reference_order_id == original.id
    assert new_order.services == original.services
    assert new_order.external_order_id.startswith(f"REALLOC-{original.id}-")

    db.refresh(original)
    assert original.status == OrderStatusEnum.CANCELLED
    assert original.employee_id == employee.id
    assert original.acceptance_status == "unwell"

    row = cancellation_service.list_cancelled_orders(db, CancellationCategory.BEAUTICIAN)[0]
    assert row["can_reallocate"] is False


def test_reallocate_only_once(db, make_order, employee):
    original = make_order(["Facial"], employee=employee)
    cancellation_service.cancel_order(db, original.id, "unwell")
    cancellation_service.reallocate(db, original.id)
    with pytest.raises(ReallocationError):
        cancellation_service.reallocate(db, original.id)
    assert db.query(Order).filter(Order.reference_order_id == original.id).count() == 1


def test_customer_cancellations_are_not_reallocated(db, make_order, employee):
    original = make_order(["Facial"], employee=employee)
    cancellation_service.cancel_order(db, original.id, "customer_not_available")
    with pytest.raises(ReallocationError):
        cancellation_service.reallocate(db, original.id)


def test_open_orders_are_not_reallocated(db, make_order, employee):
    original = make_order(["Facial"], employee=employee)
    with pytest.raises(ReallocationError):
        cancellation_service.reallocate(db, original.id)


def test_expire_sweep_only_touches_stale_unstarted_orders(db, make_order, employee):
    long_ago = utcnow() - timedelta(days=2)
    stale = make_order(["Facial"], employee=employee, status=OrderStatusEnum.PENDING, appointment_time=long_ago)
    started = make_order(["Facial"], employee=employee, status=OrderStatusEnum.IN_PROGRESS, appointment_time=long_ago)
    upcoming = make_order(["Facial"], employee=employee, status=OrderStatusEnum.CONFIRMED)

    assert cancellation_service.expire_inactive_orders(db) == 1

    db.refresh(stale)
    db.refresh(started)
    db.refresh(upcoming)
    assert stale.status == OrderStatusEnum.EXPIRED
    assert stale.acceptance_status == "no_action_expired"
    assert started.status == OrderStatusEnum.IN_PROGRESS
    assert upcoming.status == OrderStatusEnum.CONFIRMED

    expired = cancellation_service.list_cancelled_orders(db, CancellationCategory.BEAUTICIAN)
    assert [row["order"].id for row in expired] == [stale.id]
    assert expired[0]["can_reallocate"] is True
