from pydantic import BaseModel, Field
from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from app.models.inventory import MissingReasonEnum, ProductRequestStatusEnum


class ProductUpsert(BaseModel):
    name: str = Field(..., min_length=1)
    unit: str = "pcs"
    cost_per_unit: Decimal = Field(..., ge=0)
    low_stock_threshold: Decimal = Field(Decimal("0"), ge=0)
    is_active: bool = True


class ProductResponse(BaseModel):
    id: int
    name: str
    unit: str
    cost_per_unit: Decimal
    low_stock_threshold: Decimal
    is_active: bool

    class Config:
        from_attributes = True


class PurchaseCreate(BaseModel):
    product_id: int
    quantity: Decimal = Field(..., gt=0)
    purchase_date: Optional[date] = None
    vendor_name: Optional[str] = None
    invoice_number: Optional[str] = None


class PurchaseResponse(BaseModel):
    id: int
    product_id: int
    quantity: Decimal
    purchase_date: date
    vendor_name: Optional[str]
    invoice_number: Optional[str]
    created_by: Optional[int]
    created: bool = True

    class Config:
        from_attributes = True


class ServiceMappingUpsert(BaseModel):
    service_name: str = Field(..., min_length=1)
    product_id: int
    quantity_required: Decimal = Field(..., gt=0)


class ServiceMappingResponse(BaseModel):
    id: int
    service_name: str
    product_id: int
    quantity_required: Decimal

    class Config:
        from_attributes = True


class DefaultProductUpsert(BaseModel):
    product_id: int
    quantity: Decimal = Field(..., gt=0)


class DefaultProductResponse(BaseModel):
    id: int
    product_id: int
    quantity: Decimal

    class Config:
        from_attributes = True


class StockSummaryItem(BaseModel):
    product_id: int
    product_name: str
    unit: str
    total_purchased: Decimal
    total_used: Decimal
    stock_left: Decimal
    low_stock_threshold: Decimal
    is_low_stock: bool


class ProductStockResponse(BaseModel):
    product_id: int
    stock_left: Decimal


class MissingProductResponse(BaseModel):
    id: int
    order_id: int
    external_order_id: Optional[str]
    service_name: str
    product_name: Optional[str]
    reason: MissingReasonEnum
    created_at: datetime

    class Config:
        from_attributes = True


class ProductRequestCreate(BaseModel):
    product_id: int
    quantity_requested: Decimal = Field(..., gt=0)


class ProductRequestApprove(BaseModel):
    # Negative values are rejected by the workflow with a 400, not here
    quantity_approved: Decimal


class ProductRequestResponse(BaseModel):
    id: int
    beautician_id: int
    product_id: int
    quantity_requested: Decimal
    quantity_approved: Optional[Decimal]
    status: ProductRequestStatusEnum
    requested_at: datetime
    approved_at: Optional[datetime]
    approved_by: Optional[int]

    class Config:
        from_attributes = True
