"""
Field issue reports. A beautician raises an issue (optionally against one of
their orders, with the position they were at); dispatch resolves it. Open
issues flag the beautician on the tracking overview.
"""
from typing import List, Optional, Set
from sqlalchemy.orm import Session
from app.core.logging_config import get_logger
from app.core.time_utils import utcnow
from app.models.issue import Issue, IssueStatusEnum
from app.models.order import Order

logger = get_logger("issues")


class IssueError(Exception):
    pass


class IssueNotFound(IssueError):
    pass


class IssueConflict(IssueError):
    pass


class IssueValidationError(IssueError):
    pass


def create_issue(
    db: Session,
    beautician_id: int,
    issue_type: str,
    order_id: Optional[int] = None,
    notes: Optional[str] = None,
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
) -> Issue:
    issue_type = (issue_type or "").strip()
    if not issue_type:
        raise IssueValidationError("Issue type is required")

    order = None
    if order_id is not None:
        order = db.query(Order).filter(Order.id == order_id).first()
        if order is None:
            raise IssueValidationError("Order not found")
        if order.employee_id != beautician_id:
            raise IssueValidationError("Order is not assigned to this beautician")

    issue = Issue(
        beautician_id=beautician_id,
        order_id=order_id,
        issue_type=issue_type,
        notes=(notes or "").strip() or None,
        latitude=latitude,
        longitude=longitude,
        status=IssueStatusEnum.OPEN,
    )
    db.add(issue)
    if order is not None:
        order.has_issue = True
    db.commit()
    db.refresh(issue)
    logger.warning(
        f"Issue '{issue_type}' raised by beautician {beautician_id}",
        extra={"issue_id": issue.id, "beautician_id": beautician_id, "order_id": order_id},
    )
    return issue


def list_issues(
    db: Session,
    beautician_id: Optional[int] = None,
    status: Optional[IssueStatusEnum] = None,
) -> List[Issue]:
    query = db.query(Issue)
    if beautician_id is not None:
        query = query.filter(Issue.beautician_id == beautician_id)
    if status is not None:
        query = query.filter(Issue.status == status)
    return query.order_by(Issue.created_at.desc(), Issue.id.desc()).all()


def resolve_issue(db: Session, issue_id: int, resolved_by: int) -> Issue:
    issue = db.query(Issue).filter(Issue.id == issue_id).first()
    if issue is None:
        raise IssueNotFound(f"Issue {issue_id} not found")
    if issue.status != IssueStatusEnum.OPEN:
        raise IssueConflict(f"Issue {issue_id} is already {issue.status.value}")

    issue.status = IssueStatusEnum.RESOLVED
    issue.resolved_at = utcnow()
    issue.resolved_by = resolved_by
    db.commit()
    db.refresh(issue)
    logger.info(f"Issue {issue_id} resolved by {resolved_by}", extra={"issue_id": issue_id})
    return issue


def beauticians_with_open_issues(db: Session, beautician_ids: Optional[List[int]] = None) -> Set[int]:
    query = db.query(Issue.beautician_id).filter(Issue.status == IssueStatusEnum.OPEN)
    if beautician_ids is not None:
        if not beautician_ids:
            return set()
        query = query.filter(Issue.beautician_id.in_(beautician_ids))
    return {beautician_id for (beautician_id,) in query.distinct().all()}
