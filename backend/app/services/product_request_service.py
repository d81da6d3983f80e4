"""
Beautician low-stock requests and their one-time admin decision.

Approval posts the approved quantity to the stock ledger as an internal
transfer purchase keyed by a synthetic invoice number, so the ledger side is
idempotent per request. The status change itself is guarded by an
expected-status precondition: only a request that is still pending can be
decided, and a second approval (sequential or concurrent) is rejected as a
conflict without touching the ledger.
"""
from decimal import Decimal
from typing import List, Optional
from sqlalchemy.orm import Session
from app.core.config import settings
from app.core.logging_config import get_logger
from app.core.time_utils import utcnow
from app.models.inventory import Product, ProductRequest, ProductRequestStatusEnum
from app.services import stock_ledger_service
from app.services.product_resolver import to_quantity

logger = get_logger("product_requests")


class ProductRequestError(Exception):
    pass


class ProductRequestNotFound(ProductRequestError):
    pass


class ProductRequestConflict(ProductRequestError):
    pass


class ProductRequestValidationError(ProductRequestError):
    pass


def request_invoice_number(request_id: int) -> str:
    return f"{settings.PRODUCT_REQUEST_INVOICE_PREFIX}-{request_id}"


def decide_status(quantity_requested: Decimal, quantity_approved: Decimal) -> ProductRequestStatusEnum:
    if quantity_approved <= 0:
        return ProductRequestStatusEnum.REJECTED
    if quantity_approved >= quantity_requested:
        return ProductRequestStatusEnum.APPROVED
    return ProductRequestStatusEnum.PARTIALLY_APPROVED


def create_request(db: Session, beautician_id: int, product_id: int, quantity_requested) -> ProductRequest:
    quantity = to_quantity(quantity_requested)
    if quantity <= 0:
        raise ProductRequestValidationError("Requested quantity must be greater than zero")
    product = db.query(Product).filter(Product.id == product_id, Product.is_active.is_(True)).first()
    if product is None:
        raise ProductRequestValidationError("Product not found or inactive")

    request = ProductRequest(
        beautician_id=beautician_id,
        product_id=product_id,
        quantity_requested=quantity,
        status=ProductRequestStatusEnum.PENDING,
    )
    db.add(request)
    db.commit()
    db.refresh(request)
    logger.info(
        f"Product request {request.id} created by beautician {beautician_id}",
        extra={"request_id": request.id, "product_id": product_id, "quantity": str(quantity)},
    )
    return request


def list_requests(
    db: Session,
    beautician_id: Optional[int] = None,
    status: Optional[ProductRequestStatusEnum] = None,
) -> List[ProductRequest]:
    query = db.query(ProductRequest)
    if beautician_id is not None:
        query = query.filter(ProductRequest.beautician_id == beautician_id)
    if status is not None:
        query = query.filter(ProductRequest.status == status)
    return query.order_by(ProductRequest.requested_at.desc(), ProductRequest.id.desc()).all()


def approve_request(db: Session, request_id: int, approved_by: int, quantity_approved) -> ProductRequest:
    try:
        approved_qty = to_quantity(quantity_approved)
    except (ArithmeticError, TypeError, ValueError):
        raise ProductRequestValidationError("Approved quantity must be a number")
    if approved_qty < 0:
        raise ProductRequestValidationError("Approved quantity cannot be negative")

    request = db.query(ProductRequest).filter(ProductRequest.id == request_id).first()
    if request is None:
        raise ProductRequestNotFound(f"Product request {request_id} not found")

    new_status = decide_status(to_quantity(request.quantity_requested), approved_qty)
    now = utcnow()
    updated = db.query(ProductRequest).filter(
        ProductRequest.id == request_id,
        ProductRequest.status == ProductRequestStatusEnum.PENDING,
    ).update(
        {
            ProductRequest.status: new_status,
            ProductRequest.quantity_approved: approved_qty,
            ProductRequest.approved_at: now,
            ProductRequest.approved_by: approved_by,
        },
        synchronize_session=False,
    )
    if updated == 0:
        db.rollback()
        raise ProductRequestConflict(f"Product request {request_id} has already been decided")

    if approved_qty > 0:
        stock_ledger_service.record_purchase(db, stock_ledger_service.PurchaseInput(
            product_id=request.product_id,
            quantity=approved_qty,
            purchase_date=now.date(),
            vendor_name=settings.INTERNAL_TRANSFER_VENDOR,
            invoice_number=request_invoice_number(request.id),
            created_by=approved_by,
        ))

    db.commit()
    db.refresh(request)
    logger.info(
        f"Product request {request_id} {new_status.value} ({approved_qty})",
        extra={"request_id": request_id, "approved_by": approved_by, "status": new_status.value},
    )
    return request
