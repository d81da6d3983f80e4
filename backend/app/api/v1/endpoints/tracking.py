from typing import List, Optional
from datetime import datetime, timedelta
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from app.core.config import settings
from app.core.database import get_db
from app.core.time_utils import to_naive_utc, utcnow
from app.models.employee import Employee
from app.api.v1.endpoints.auth import get_current_user, require_admin, ensure_self_or_admin
from app.schemas.tracking import (
    LocationUpdate, LocationUpdateResponse, TrackingPointResponse, TrackingOverviewItem, CleanupResponse
)
from app.services import tracking_service

router = APIRouter()


@router.post("/location", response_model=LocationUpdateResponse)
async def update_location(
    update: LocationUpdate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    """Store one classified fix for the calling beautician"""
    tracking_service.ingest(db, current_user.id, tracking_service.LocationSample(
        latitude=update.latitude,
        longitude=update.longitude,
        accuracy=update.accuracy,
        speed=update.speed,
        order_id=update.order_id,
        tracking_status=update.tracking_status,
    ))
    return {"success": True}


@router.get("/overview", response_model=List[TrackingOverviewItem])
async def tracking_overview(
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_admin)
):
    return tracking_service.tracking_overview(db)


@router.get("/orders/{order_id}", response_model=List[TrackingPointResponse])
async def order_trail(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_admin)
):
    return tracking_service.history_for_order(db, order_id)


@router.delete("/cleanup", response_model=CleanupResponse)
async def cleanup_tracking(
    days: int = Query(settings.TRACKING_RETENTION_DAYS, ge=1),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_admin)
):
    deleted = tracking_service.cleanup(db, utcnow() - timedelta(days=days))
    return {"deleted": deleted}


@router.get("/{beautician_id}/latest", response_model=Optional[TrackingPointResponse])
async def latest_location(
    beautician_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    ensure_self_or_admin(current_user, beautician_id)
    return tracking_service.latest(db, beautician_id)


@router.get("/{beautician_id}/history", response_model=List[TrackingPointResponse])
async def location_history(
    beautician_id: int,
    since: Optional[datetime] = None,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    """Most recent first"""
    ensure_self_or_admin(current_user, beautician_id)
    return tracking_service.history(db, beautician_id, to_naive_utc(since))


@router.get("/{beautician_id}/trail", response_model=List[TrackingPointResponse])
async def location_trail(
    beautician_id: int,
    minutes: int = Query(60, ge=1, le=60 * 24 * 7),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_admin)
):
    """Oldest first, for drawing the path"""
    return tracking_service.trail_since(db, beautician_id, timedelta(minutes=minutes))
