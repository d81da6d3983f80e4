from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.core.database import get_db
from app.models.employee import Employee
from app.models.issue import IssueStatusEnum
from app.api.v1.endpoints.auth import get_current_user, require_admin
from app.schemas.issue import IssueCreate, IssueResponse
from app.services import issue_service
from app.services.issue_service import IssueNotFound, IssueConflict, IssueValidationError

router = APIRouter()


@router.post("/", response_model=IssueResponse, status_code=201)
async def create_issue(
    payload: IssueCreate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    """Raise a field issue for the calling beautician"""
    try:
        return issue_service.create_issue(
            db,
            current_user.id,
            payload.issue_type,
            order_id=payload.order_id,
            notes=payload.notes,
            latitude=payload.latitude,
            longitude=payload.longitude,
        )
    except IssueValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/", response_model=List[IssueResponse])
async def list_issues(
    beautician_id: Optional[int] = None,
    status: Optional[IssueStatusEnum] = None,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    if not current_user.is_admin:
        beautician_id = current_user.id
    return issue_service.list_issues(db, beautician_id=beautician_id, status=status)


@router.patch("/{issue_id}/resolve", response_model=IssueResponse)
async def resolve_issue(
    issue_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_admin)
):
    try:
        return issue_service.resolve_issue(db, issue_id, current_user.id)
    except IssueNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except IssueConflict as e:
        raise HTTPException(status_code=409, detail=str(e))
