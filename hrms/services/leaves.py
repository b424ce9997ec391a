from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy.orm import Session, selectinload

from hrms.errors import ForbiddenError, PayloadValidationError
from hrms.models import LeaveRequest, LeaveStatus, Role
from hrms.policy import ResourceKind, is_hr, require_linked_employee, require_owner_or_hr, scope_collection
from hrms.schemas import LeaveApprovalRequest, LeaveCreate, LeaveRead, LeaveUpdate
from hrms.security import CallerIdentity
from hrms.services.calculations import calculate_leave_days
from hrms.services.lookups import get_employee, get_live, live_select


def to_leave_read(leave: LeaveRequest) -> LeaveRead:
    return LeaveRead(
        id=leave.id,
        employee_id=leave.employee_id,
        employee_name=leave.employee.full_name if leave.employee else None,
        leave_type=leave.leave_type,
        start_date=leave.start_date,
        end_date=leave.end_date,
        days=leave.days,
        reason=leave.reason,
        status=leave.status,
        approved_by=leave.approved_by,
        approver_name=leave.approver.full_name if leave.approver else None,
        approved_at=leave.approved_at,
        comments=leave.comments,
        created_at=leave.created_at,
    )


def list_leaves(
    db: Session,
    caller: CallerIdentity,
    *,
    status: LeaveStatus | None = None,
) -> list[LeaveRequest]:
    scope = scope_collection(caller, ResourceKind.LEAVE)
    stmt = live_select(LeaveRequest).options(
        selectinload(LeaveRequest.employee),
        selectinload(LeaveRequest.approver),
    )
    stmt = scope.apply(stmt, LeaveRequest.employee_id)
    if status is not None:
        stmt = stmt.where(LeaveRequest.status == status)
    return list(db.scalars(stmt.order_by(LeaveRequest.id.asc())).all())


def get_leave(db: Session, caller: CallerIdentity, leave_id: int) -> LeaveRequest:
    scope = scope_collection(caller, ResourceKind.LEAVE)
    leave = get_live(db, LeaveRequest, leave_id, label="Leave request")
    if not scope.permits(leave.employee):
        raise ForbiddenError("You cannot access this leave request.")
    return leave


def create_leave(db: Session, caller: CallerIdentity, payload: LeaveCreate) -> LeaveRequest:
    if caller.role is Role.EMPLOYEE:
        employee_id = require_linked_employee(caller)
    elif payload.employee_id is None:
        raise PayloadValidationError("employee_id is required")
    else:
        employee_id = payload.employee_id
    get_employee(db, employee_id)

    leave = LeaveRequest(
        employee_id=employee_id,
        leave_type=payload.leave_type,
        start_date=payload.start_date,
        end_date=payload.end_date,
        days=calculate_leave_days(payload.start_date, payload.end_date),
        reason=payload.reason,
        status=LeaveStatus.PENDING,
    )
    db.add(leave)
    db.commit()
    db.refresh(leave)
    return leave


def _load_editable(db: Session, caller: CallerIdentity, leave_id: int) -> LeaveRequest:
    leave = get_live(db, LeaveRequest, leave_id, label="Leave request")
    require_owner_or_hr(caller, leave.employee_id)
    if not is_hr(caller) and leave.status != LeaveStatus.PENDING:
        raise ForbiddenError("Only pending leave requests can be changed.")
    return leave


def update_leave(db: Session, caller: CallerIdentity, leave_id: int, payload: LeaveUpdate) -> LeaveRequest:
    leave = _load_editable(db, caller, leave_id)
    changes = payload.model_dump(exclude_unset=True)
    for field in ("leave_type", "start_date", "end_date"):
        if field in changes and changes[field] is None:
            raise PayloadValidationError(f"{field} cannot be null")

    start_date = changes.get("start_date", leave.start_date)
    end_date = changes.get("end_date", leave.end_date)
    days = calculate_leave_days(start_date, end_date)

    for field, value in changes.items():
        setattr(leave, field, value)
    leave.days = days

    db.commit()
    db.refresh(leave)
    return leave


def delete_leave(db: Session, caller: CallerIdentity, leave_id: int) -> LeaveRequest:
    leave = _load_editable(db, caller, leave_id)
    leave.soft_delete()
    db.commit()
    return leave


def approve_leave(
    db: Session,
    caller: CallerIdentity,
    leave_id: int,
    payload: LeaveApprovalRequest,
) -> LeaveRequest:
    approver_id = require_linked_employee(
        caller,
        message="Approver must be associated with an employee record.",
    )
    leave = get_live(db, LeaveRequest, leave_id, label="Leave request")

    leave.status = payload.status
    leave.comments = payload.comments
    leave.approved_by = approver_id
    leave.approved_at = datetime.now(timezone.utc)

    db.commit()
    db.refresh(leave)
    return leave
