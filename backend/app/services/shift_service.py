from typing import Optional
from sqlalchemy.orm import Session
from app.core.logging_config import get_logger
from app.core.time_utils import utcnow
from app.models.attendance import Attendance, ShiftStatusEnum
from app.models.employee import Employee

logger = get_logger("shifts")


def active_shift(db: Session, employee_id: int) -> Optional[Attendance]:
    return db.query(Attendance).filter(
        Attendance.employee_id == employee_id,
        Attendance.status == ShiftStatusEnum.ACTIVE,
    ).order_by(Attendance.shift_start.desc()).first()


def start_shift(db: Session, employee: Employee) -> Attendance:
    """Idempotent: an already-open shift is returned as is."""
    shift = active_shift(db, employee.id)
    if shift is None:
        shift = Attendance(employee_id=employee.id, shift_start=utcnow(), status=ShiftStatusEnum.ACTIVE)
        db.add(shift)
    employee.is_online = True
    db.commit()
    db.refresh(shift)
    logger.info(f"Shift started for employee {employee.id}", extra={"employee_id": employee.id, "shift_id": shift.id})
    return shift


def end_shift(db: Session, employee: Employee) -> Optional[Attendance]:
    shift = active_shift(db, employee.id)
    if shift is not None:
        shift.shift_end = utcnow()
        shift.status = ShiftStatusEnum.ENDED
    employee.is_online = False
    db.commit()
    if shift is not None:
        db.refresh(shift)
    logger.info(f"Shift ended for employee {employee.id}", extra={"employee_id": employee.id})
    return shift
