from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from app.models.order import OrderStatusEnum


class OrderServiceItem(BaseModel):
    name: str
    price: float = 0


class OrderResponse(BaseModel):
    id: int
    customer_name: str
    phone: str
    address: str
    latitude: Optional[float]
    longitude: Optional[float]
    services: List[OrderServiceItem]
    amount: int
    duration: int
    appointment_time: datetime
    payment_mode: str
    status: OrderStatusEnum
    employee_id: Optional[int]
    acceptance_status: Optional[str]
    external_order_id: Optional[str]
    reference_order_id: Optional[int]
    has_issue: bool = False
    completed_at: Optional[datetime]
    cancelled_at: Optional[datetime]

    class Config:
        from_attributes = True


class OrderStatusUpdate(BaseModel):
    status: OrderStatusEnum


class OrderCancelRequest(BaseModel):
    reason: str


class CancelledOrderResponse(BaseModel):
    order: OrderResponse
    employee_name: Optional[str]
    reason_code: str
    category: str
    can_reallocate: bool


class ExpireInactiveRequest(BaseModel):
    before: Optional[datetime] = None


class ExpireInactiveResponse(BaseModel):
    expired: int
