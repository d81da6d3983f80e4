from fastapi import APIRouter
from app.api.v1.endpoints import (
    auth,
    shifts,
    tracking,
    orders,
    inventory,
    issues,
)

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])
api_router.include_router(shifts.router, prefix="/shifts", tags=["shifts"])
api_router.include_router(tracking.router, prefix="/tracking", tags=["tracking"])
api_router.include_router(orders.router, prefix="/orders", tags=["orders"])
api_router.include_router(inventory.router, prefix="/inventory", tags=["inventory"])
api_router.include_router(issues.router, prefix="/issues", tags=["issues"])
