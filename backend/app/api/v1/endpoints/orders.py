from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from app.core.database import get_db
from app.models.employee import Employee
from app.models.order import Order, OrderStatusEnum
from app.api.v1.endpoints.auth import get_current_user, require_admin, ensure_self_or_admin
from app.schemas.order import (
    OrderResponse, OrderStatusUpdate, OrderCancelRequest, CancelledOrderResponse,
    ExpireInactiveRequest, ExpireInactiveResponse
)
from app.services import order_service, cancellation_service
from app.services.order_service import OrderNotFound, InvalidStatusTransition
from app.services.cancellation_service import CancellationCategory, ReallocationError

router = APIRouter()


def _load_order(db: Session, order_id: int) -> Order:
    try:
        return order_service.get_order(db, order_id)
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/", response_model=List[OrderResponse])
async def list_orders(
    status: Optional[OrderStatusEnum] = None,
    employee_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    """Admins see every order; employees only their own"""
    query = db.query(Order)
    if not current_user.is_admin:
        query = query.filter(Order.employee_id == current_user.id)
    elif employee_id is not None:
        query = query.filter(Order.employee_id == employee_id)
    if status is not None:
        query = query.filter(Order.status == status)
    return query.order_by(Order.appointment_time.desc(), Order.id.desc()).all()


@router.get("/cancelled", response_model=List[CancelledOrderResponse])
async def list_cancelled(
    category: CancellationCategory = Query(CancellationCategory.BEAUTICIAN),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_admin)
):
    rows = cancellation_service.list_cancelled_orders(db, category)
    return [
        CancelledOrderResponse(
            order=OrderResponse.model_validate(row["order"]),
            employee_name=row["employee_name"],
            reason_code=row["reason_code"],
            category=row["category"].value,
            can_reallocate=row["can_reallocate"],
        )
        for row in rows
    ]


@router.post("/expire-inactive", response_model=ExpireInactiveResponse)
async def expire_inactive(
    payload: Optional[ExpireInactiveRequest] = None,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_admin)
):
    before = payload.before if payload else None
    return {"expired": cancellation_service.expire_inactive_orders(db, before)}


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    order = _load_order(db, order_id)
    ensure_self_or_admin(current_user, order.employee_id)
    return order


@router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_status(
    order_id: int,
    payload: OrderStatusUpdate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    """Completing an order also deducts its products from stock"""
    order = _load_order(db, order_id)
    ensure_self_or_admin(current_user, order.employee_id)
    try:
        return order_service.update_order_status(db, order_id, payload.status)
    except InvalidStatusTransition as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: int,
    payload: OrderCancelRequest,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    order = _load_order(db, order_id)
    ensure_self_or_admin(current_user, order.employee_id)
    try:
        return cancellation_service.cancel_order(db, order_id, payload.reason)
    except InvalidStatusTransition as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/{order_id}/reallocate", response_model=OrderResponse, status_code=201)
async def reallocate_order(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_admin)
):
    """Re-offer a beautician-cancelled order as a new unassigned order"""
    try:
        return cancellation_service.reallocate(db, order_id)
    except OrderNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ReallocationError as e:
        raise HTTPException(status_code=409, detail=str(e))
