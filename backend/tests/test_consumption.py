from decimal import Decimal

import pytest

from app.models import (
    MissingReasonEnum,
    OrderDefaultProduct,
    ProductConsumption,
    ProductNotFound,
    ServiceProductMapping,
)
from app.services import consumption_service
from app.services.consumption_service import (
    SKIP_ALREADY_PROCESSED,
    SKIP_NO_BEAUTICIAN,
    SKIP_ORDER_NOT_FOUND,
)


@pytest.fixture
def polish(db, make_product):
    product = make_product("Nail Polish")
    db.add(ServiceProductMapping(service_name="manicure", product_id=product.id, quantity_required=Decimal("1")))
    db.commit()
    return product


def consumptions(db, order_id):
    return {
        row.product_id: row.quantity_used
        for row in db.query(ProductConsumption).filter(ProductConsumption.order_id == order_id)
    }


def test_repeated_service_consumes_per_occurrence(db, polish, make_order, employee):
    order = make_order(["Manicure", "Manicure"], employee=employee)

    outcome = consumption_service.on_order_completed(db, order.id)

    assert outcome.skipped is None
    assert outcome.rows_inserted == 1
    assert consumptions(db, order.id) == {polish.id: Decimal("2")}
    row = db.query(ProductConsumption).filter_by(order_id=order.id).one()
    assert row.beautician_id == employee.id
    assert row.auto_generated is True


def test_second_trigger_is_a_noop(db, polish, make_order, employee):
    order = make_order(["Manicure"], employee=employee)

    consumption_service.on_order_completed(db, order.id)
    again = consumption_service.on_order_completed(db, order.id)

    assert again.skipped == SKIP_ALREADY_PROCESSED
    assert db.query(ProductConsumption).count() == 1


def test_service_names_match_case_insensitively(db, polish, make_order, employee):
    order = make_order(["  MANICURE "], employee=employee)
    consumption_service.on_order_completed(db, order.id)
    assert consumptions(db, order.id) == {polish.id: Decimal("1")}


def test_unmapped_service_is_logged_and_mapped_ones_still_post(db, polish, make_order, employee):
    order = make_order(["Manicure", "Threading"], employee=employee, external_order_id="EXT-7")

    outcome = consumption_service.on_order_completed(db, order.id)

    assert outcome.missing_logged == 1
    assert consumptions(db, order.id) == {polish.id: Decimal("1")}
    missing = db.query(ProductNotFound).one()
    assert missing.service_name == "threading"
    assert missing.reason == MissingReasonEnum.NO_MAPPING
    assert missing.external_order_id == "EXT-7"


def test_fully_unmapped_order_is_not_reprocessed(db, make_order, employee):
    order = make_order(["Threading"], employee=employee)

    consumption_service.on_order_completed(db, order.id)
    again = consumption_service.on_order_completed(db, order.id)

    assert again.skipped == SKIP_ALREADY_PROCESSED
    assert db.query(ProductNotFound).count() == 1
    assert db.query(ProductConsumption).count() == 0


def test_inactive_product_is_logged_as_unavailable(db, make_product, make_order, employee):
    retired = make_product("Old Gel", is_active=False)
    db.add(ServiceProductMapping(service_name="gel nails", product_id=retired.id, quantity_required=Decimal("1")))
    db.commit()
    order = make_order(["Gel Nails"], employee=employee)

    consumption_service.on_order_completed(db, order.id)

    missing = db.query(ProductNotFound).one()
    assert missing.reason == MissingReasonEnum.PRODUCT_UNAVAILABLE
    assert missing.product_name == "Old Gel"
    assert consumptions(db, order.id) == {}


def test_default_products_post_for_orders_without_services(db, make_product, make_order, employee):
    gloves = make_product("Gloves")
    db.add(OrderDefaultProduct(product_id=gloves.id, quantity=Decimal("2")))
    db.commit()
    order = make_order([], employee=employee)

    consumption_service.on_order_completed(db, order.id)

    assert consumptions(db, order.id) == {gloves.id: Decimal("2")}


def test_unassigned_order_is_skipped(db, polish, make_order):
    order = make_order(["Manicure"])
    outcome = consumption_service.on_order_completed(db, order.id)
    assert outcome.skipped == SKIP_NO_BEAUTICIAN
    assert db.query(ProductConsumption).count() == 0


def test_missing_order_is_skipped(db):
    assert consumption_service.on_order_completed(db, 999).skipped == SKIP_ORDER_NOT_FOUND


def test_external_order_id_guards_duplicate_imports(db, polish, make_order, employee):
    first = make_order(["Manicure"], employee=employee, external_order_id="SHEET-42")
    duplicate = make_order(["Manicure"], employee=employee, external_order_id="SHEET-42")

    consumption_service.on_order_completed(db, first.id)
    outcome = consumption_service.on_order_completed(db, duplicate.id)

    assert outcome.skipped == SKIP_ALREADY_PROCESSED
    assert db.query(ProductConsumption).count() == 1


def test_duplicate_triggers_past_the_fast_exit_post_each_gap_once(db, polish, make_order, employee, monkeypatch):
    order = make_order(["Manicure", "Threading"], employee=employee)
    monkeypatch.setattr(consumption_service, "already_processed", lambda session, target: False)

    first = consumption_service.on_order_completed(db, order.id)
    second = consumption_service.on_order_completed(db, order.id)

    assert (first.rows_inserted, first.missing_logged) == (1, 1)
    assert (second.rows_inserted, second.missing_logged) == (0, 0)
    assert consumptions(db, order.id) == {polish.id: Decimal("1")}
    assert db.query(ProductNotFound).filter_by(order_id=order.id).count() == 1


def test_trigger_overtaken_by_a_competing_commit_adds_nothing(db, polish, make_order, employee, monkeypatch):
    order = make_order(["Manicure", "Threading", "Threading"], employee=employee)
    competing = []

    def stale_check(session, target):
        # The competing trigger runs to commit after this one already decided to proceed
        if not competing:
            competing.append(None)
            competing[0] = consumption_service.on_order_completed(session, target.id)
        return False

    monkeypatch.setattr(consumption_service, "already_processed", stale_check)

    late = consumption_service.on_order_completed(db, order.id)

    assert competing[0].rows_inserted == 1
    assert competing[0].missing_logged == 1
    assert (late.rows_inserted, late.missing_logged) == (0, 0)
    assert consumptions(db, order.id) == {polish.id: Decimal("1")}
    missing = db.query(ProductNotFound).filter_by(order_id=order.id).all()
    assert [(m.service_name, m.reason) for m in missing] == [("threading", MissingReasonEnum.NO_MAPPING)]
