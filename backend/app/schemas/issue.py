from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from app.models.issue import IssueStatusEnum


class IssueCreate(BaseModel):
    issue_type: str = Field(..., min_length=1, max_length=100)
    order_id: Optional[int] = None
    notes: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class IssueResponse(BaseModel):
    id: int
    beautician_id: int
    beautician_name: Optional[str] = None
    order_id: Optional[int]
    issue_type: str
    notes: Optional[str]
    latitude: Optional[float]
    longitude: Optional[float]
    status: IssueStatusEnum
    created_at: datetime
    resolved_at: Optional[datetime]
    resolved_by: Optional[int]

    class Config:
        from_attributes = True
