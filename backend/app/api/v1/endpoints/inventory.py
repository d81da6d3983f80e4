from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.core.database import get_db
from app.models.employee import Employee
from app.models.inventory import Product, ProductNotFound, ProductRequestStatusEnum
from app.api.v1.endpoints.auth import get_current_user, require_admin
from app.schemas.inventory import (
    ProductUpsert, ProductResponse, PurchaseCreate, PurchaseResponse,
    ServiceMappingUpsert, ServiceMappingResponse, DefaultProductUpsert, DefaultProductResponse,
    StockSummaryItem, ProductStockResponse, MissingProductResponse,
    ProductRequestCreate, ProductRequestApprove, ProductRequestResponse
)
from app.services import stock_ledger_service, product_request_service
from app.services.product_request_service import (
    ProductRequestNotFound, ProductRequestConflict, ProductRequestValidationError
)

router = APIRouter()


def _require_product(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


# Product requests

@router.post("/product-requests", response_model=ProductRequestResponse, status_code=201)
async def create_product_request(
    payload: ProductRequestCreate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    """A beautician asks for stock of one product"""
    try:
        return product_request_service.create_request(
            db, current_user.id, payload.product_id, payload.quantity_requested
        )
    except ProductRequestValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/product-requests", response_model=List[ProductRequestResponse])
async def list_product_requests(
    beautician_id: Optional[int] = None,
    status: Optional[ProductRequestStatusEnum] = None,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    if not current_user.is_admin:
        beautician_id = current_user.id
    return product_request_service.list_requests(db, beautician_id=beautician_id, status=status)


@router.patch("/product-requests/{request_id}/approve", response_model=ProductRequestResponse)
async def approve_product_request(
    request_id: int,
    payload: ProductRequestApprove,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_admin)
):
    """Approve, partially approve (less than requested) or reject (zero)"""
    try:
        return product_request_service.approve_request(
            db, request_id, current_user.id, payload.quantity_approved
        )
    except ProductRequestValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ProductRequestNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ProductRequestConflict as e:
        raise HTTPException(status_code=409, detail=str(e))


# Stock

@router.get("/stock-summary", response_model=List[StockSummaryItem])
async def stock_summary(
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_admin)
):
    return stock_ledger_service.get_stock_summary(db)


@router.get("/products/{product_id}/stock", response_model=ProductStockResponse)
async def product_stock(
    product_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    _require_product(db, product_id)
    return {"product_id": product_id, "stock_left": stock_ledger_service.stock_left(db, product_id)}


@router.get("/missing-products", response_model=List[MissingProductResponse])
async def missing_products(
    order_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_admin)
):
    query = db.query(ProductNotFound)
    if order_id is not None:
        query = query.filter(ProductNotFound.order_id == order_id)
    return query.order_by(ProductNotFound.created_at.desc(), ProductNotFound.id.desc()).all()


# Catalog (admin)

@router.get("/products", response_model=List[ProductResponse])
async def list_products(
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    return stock_ledger_service.get_active_products(db)


@router.post("/products", response_model=ProductResponse)
async def upsert_product(
    payload: ProductUpsert,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_admin)
):
    """Create or update a product, matched case-insensitively by name"""
    try:
        product = stock_ledger_service.upsert_product_by_name(
            db,
            name=payload.name,
            unit=payload.unit,
            cost_per_unit=payload.cost_per_unit,
            low_stock_threshold=payload.low_stock_threshold,
            is_active=payload.is_active,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    db.commit()
    db.refresh(product)
    return product


@router.post("/purchases", response_model=PurchaseResponse)
async def create_purchase(
    payload: PurchaseCreate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_admin)
):
    """Duplicate purchases return the existing row with created=false"""
    _require_product(db, payload.product_id)
    try:
        purchase, created = stock_ledger_service.record_purchase(db, stock_ledger_service.PurchaseInput(
            product_id=payload.product_id,
            quantity=payload.quantity,
            purchase_date=payload.purchase_date,
            vendor_name=payload.vendor_name,
            invoice_number=payload.invoice_number,
            created_by=current_user.id,
        ))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    db.commit()
    db.refresh(purchase)
    response = PurchaseResponse.model_validate(purchase)
    response.created = created
    return response


@router.post("/service-mappings", response_model=ServiceMappingResponse)
async def upsert_service_mapping(
    payload: ServiceMappingUpsert,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_admin)
):
    _require_product(db, payload.product_id)
    try:
        mapping = stock_ledger_service.upsert_service_product_mapping(
            db, payload.service_name, payload.product_id, payload.quantity_required
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    db.commit()
    db.refresh(mapping)
    return mapping


@router.post("/default-products", response_model=DefaultProductResponse)
async def upsert_default_product(
    payload: DefaultProductUpsert,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_admin)
):
    """Products deducted once for every completed order"""
    _require_product(db, payload.product_id)
    try:
        default = stock_ledger_service.upsert_order_default_product(db, payload.product_id, payload.quantity)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    db.commit()
    db.refresh(default)
    return default
