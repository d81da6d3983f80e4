from app.models.employee import Employee, RoleEnum
from app.models.attendance import Attendance, ShiftStatusEnum
from app.models.order import Order, OrderStatusEnum
from app.models.inventory import (
    Product,
    ProductPurchase,
    ProductConsumption,
    ServiceProductMapping,
    OrderDefaultProduct,
    ProductNotFound,
    MissingReasonEnum,
    ProductRequest,
    ProductRequestStatusEnum,
)
from app.models.tracking import LiveTrackingPoint, TrackingStatusEnum
from app.models.issue import Issue, IssueStatusEnum

__all__ = [
    "Employee",
    "RoleEnum",
    "Attendance",
    "ShiftStatusEnum",
    "Order",
    "OrderStatusEnum",
    "Product",
    "ProductPurchase",
    "ProductConsumption",
    "ServiceProductMapping",
    "OrderDefaultProduct",
    "ProductNotFound",
    "MissingReasonEnum",
    "ProductRequest",
    "ProductRequestStatusEnum",
    "LiveTrackingPoint",
    "TrackingStatusEnum",
    "Issue",
    "IssueStatusEnum",
]
