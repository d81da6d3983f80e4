from decimal import Decimal

import pytest

from app.models import ProductPurchase, ProductRequestStatusEnum
from app.services import product_request_service, stock_ledger_service
from app.services.product_request_service import (
    ProductRequestConflict,
    ProductRequestNotFound,
    ProductRequestValidationError,
)


@pytest.fixture
def pending_request(db, make_product, employee):
    wax = make_product("Wax Strips")
    return product_request_service.create_request(db, employee.id, wax.id, Decimal("5"))


@pytest.mark.parametrize("approved,expected", [
    (Decimal("5"), ProductRequestStatusEnum.APPROVED),
    (Decimal("8"), ProductRequestStatusEnum.APPROVED),
    (Decimal("3"), ProductRequestStatusEnum.PARTIALLY_APPROVED),
    (Decimal("0"), ProductRequestStatusEnum.REJECTED),
])
def test_decide_status(approved, expected):
    assert product_request_service.decide_status(Decimal("5"), approved) == expected


def test_full_approval_credits_stock_as_internal_transfer(db, pending_request, admin):
    request = product_request_service.approve_request(db, pending_request.id, admin.id, Decimal("5"))

    assert request.status == ProductRequestStatusEnum.APPROVED
    assert request.quantity_approved == Decimal("5")
    assert request.approved_by == admin.id
    assert request.approved_at is not None

    purchase = db.query(ProductPurchase).one()
    assert purchase.invoice_number == f"REQ-{request.id}"
    assert purchase.vendor_name == "Internal Transfer"
    assert purchase.created_by == admin.id
    assert stock_ledger_service.stock_left(db, request.product_id) == Decimal("5")


def test_partial_approval_credits_approved_quantity(db, pending_request, admin):
    request = product_request_service.approve_request(db, pending_request.id, admin.id, Decimal("2"))
    assert request.status == ProductRequestStatusEnum.PARTIALLY_APPROVED
    assert stock_ledger_service.stock_left(db, request.product_id) == Decimal("2")


def test_zero_rejects_without_touching_stock(db, pending_request, admin):
    request = product_request_service.approve_request(db, pending_request.id, admin.id, Decimal("0"))
    assert request.status == ProductRequestStatusEnum.REJECTED
    assert db.query(ProductPurchase).count() == 0


def test_negative_quantity_is_rejected(db, pending_request, admin):
    with pytest.raises(ProductRequestValidationError):
        product_request_service.approve_request(db, pending_request.id, admin.id, Decimal("-1"))
    db.refresh(pending_request)
    assert pending_request.status == ProductRequestStatusEnum.PENDING


def test_unknown_request(db, admin):
    with pytest.raises(ProductRequestNotFound):
        product_request_service.approve_request(db, 999, admin.id, Decimal("1"))


def test_second_decision_conflicts(db, pending_request, admin):
    product_request_service.approve_request(db, pending_request.id, admin.id, Decimal("5"))

    with pytest.raises(ProductRequestConflict):
        product_request_service.approve_request(db, pending_request.id, admin.id, Decimal("1"))

    db.refresh(pending_request)
    assert pending_request.status == ProductRequestStatusEnum.APPROVED
    assert pending_request.quantity_approved == Decimal("5")
    assert db.query(ProductPurchase).count() == 1


def test_create_rejects_bad_input(db, make_product, employee):
    retired = make_product("Old Gel", is_active=False)
    with pytest.raises(ProductRequestValidationError):
        product_request_service.create_request(db, employee.id, retired.id, Decimal("1"))
    active = make_product("Gel")
    with pytest.raises(ProductRequestValidationError):
        product_request_service.create_request(db, employee.id, active.id, Decimal("0"))


def test_list_filters_by_beautician_and_status(db, make_product, make_employee, admin):
    wax = make_product("Wax Strips")
    first = make_employee()
    second = make_employee()
    mine = product_request_service.create_request(db, first.id, wax.id, Decimal("1"))
    product_request_service.create_request(db, second.id, wax.id, Decimal("1"))
    product_request_service.approve_request(db, mine.id, admin.id, Decimal("1"))

    assert [r.id for r in product_request_service.list_requests(db, beautician_id=first.id)] == [mine.id]
    pending = product_request_service.list_requests(db, status=ProductRequestStatusEnum.PENDING)
    assert [r.beautician_id for r in pending] == [second.id]
