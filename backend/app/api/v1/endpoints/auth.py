"""
JWT bearer auth for field employees and admins.
"""
from typing import Any, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.core.logging_config import get_logger
from app.core.security import create_access_token, decode_access_token, verify_password
from app.models.employee import Employee
from app.schemas.auth import Token, EmployeeResponse

logger = get_logger("auth")

router = APIRouter()
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


def find_employee_by_identifier(db: Session, identifier: str) -> Optional[Employee]:
    value = (identifier or "").strip()
    if not value:
        return None
    return db.query(Employee).filter(
        or_(
            Employee.username == value,
            Employee.mobile == value,
            Employee.email == value.lower(),
        )
    ).first()


def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> Any:
    """Returns the current Employee. Annotated as Any so FastAPI does not treat the ORM class as a response type."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid authentication credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if not token:
        raise credentials_exception

    payload = decode_access_token(token)
    if payload is None:
        logger.warning("get_current_user: token decode failed")
        raise credentials_exception

    subject = payload.get("sub")
    if not subject or not str(subject).isdigit():
        logger.warning("get_current_user: bad sub in payload")
        raise credentials_exception

    employee = db.query(Employee).filter(
        Employee.id == int(subject),
        Employee.is_active.is_(True),
    ).first()
    if employee is None:
        logger.warning(f"get_current_user: employee not found or inactive, id={subject}")
        raise credentials_exception
    return employee


def require_admin(current_user: Employee = Depends(get_current_user)) -> Any:
    if not current_user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return current_user


def ensure_self_or_admin(current_user: Employee, employee_id: Optional[int]) -> None:
    if current_user.is_admin:
        return
    if employee_id is None or employee_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")


@router.post("/login", response_model=Token)
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    """Login with username, mobile or email; returns a JWT in the body."""
    employee = find_employee_by_identifier(db, form_data.username)
    if employee is None or not verify_password(form_data.password, employee.hashed_password):
        logger.warning(f"login failed for identifier={form_data.username}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not employee.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is inactive")

    token = create_access_token(employee.id, employee.role.value)
    logger.info(f"login ok for employee_id={employee.id}")
    return {
        "access_token": token,
        "token_type": "bearer",
        "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    }


@router.get("/me", response_model=EmployeeResponse)
async def me(current_user: Employee = Depends(get_current_user)):
    return current_user
