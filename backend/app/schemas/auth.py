from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from app.models.attendance import ShiftStatusEnum
from app.models.employee import RoleEnum


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: Optional[int] = None


class EmployeeResponse(BaseModel):
    id: int
    name: str
    mobile: Optional[str]
    username: Optional[str]
    email: Optional[str]
    role: RoleEnum
    is_active: bool
    is_online: bool = False

    class Config:
        from_attributes = True


class ShiftResponse(BaseModel):
    id: int
    employee_id: int
    shift_start: datetime
    shift_end: Optional[datetime]
    status: ShiftStatusEnum

    class Config:
        from_attributes = True
