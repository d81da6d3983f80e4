from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.core.database import get_db
from app.models.employee import Employee
from app.api.v1.endpoints.auth import get_current_user
from app.schemas.auth import ShiftResponse
from app.services import shift_service

router = APIRouter()


@router.post("/start", response_model=ShiftResponse)
async def start_shift(
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    """Start a shift; the field app begins tracking once this succeeds"""
    return shift_service.start_shift(db, current_user)


@router.post("/end", response_model=ShiftResponse)
async def end_shift(
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    shift = shift_service.end_shift(db, current_user)
    if shift is None:
        raise HTTPException(status_code=404, detail="No active shift")
    return shift
