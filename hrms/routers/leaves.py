from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from hrms.audit import audit_caller_action
from hrms.db import get_db
from hrms.models import LeaveStatus
from hrms.policy import require_any_role, require_hr
from hrms.schemas import DeleteResponse, LeaveApprovalRequest, LeaveCreate, LeaveRead, LeaveUpdate
from hrms.security import CallerIdentity
from hrms.services import leaves as leave_service

router = APIRouter(tags=["leaves"])


@router.get("/api/v1/leaves", response_model=list[LeaveRead])
def list_leaves(
    status_filter: LeaveStatus | None = Query(default=None, alias="status"),
    caller: CallerIdentity = Depends(require_any_role),
    db: Session = Depends(get_db),
) -> list[LeaveRead]:
    return [leave_service.to_leave_read(item) for item in leave_service.list_leaves(db, caller, status=status_filter)]


@router.post("/api/v1/leaves", response_model=LeaveRead, status_code=status.HTTP_201_CREATED)
def create_leave(
    payload: LeaveCreate,
    request: Request,
    caller: CallerIdentity = Depends(require_any_role),
    db: Session = Depends(get_db),
) -> LeaveRead:
    leave = leave_service.create_leave(db, caller, payload)
    audit_caller_action(
        db,
        request,
        caller,
        action="LEAVE_CREATED",
        entity_type="leave",
        entity_id=leave.id,
        details={
            "employee_id": leave.employee_id,
            "leave_type": leave.leave_type.value,
            "start_date": leave.start_date.isoformat(),
            "end_date": leave.end_date.isoformat(),
            "days": leave.days,
        },
    )
    return leave_service.to_leave_read(leave)


@router.get("/api/v1/leaves/{leave_id}", response_model=LeaveRead)
def get_leave(
    leave_id: int,
    caller: CallerIdentity = Depends(require_any_role),
    db: Session = Depends(get_db),
) -> LeaveRead:
    return leave_service.to_leave_read(leave_service.get_leave(db, caller, leave_id))


@router.put("/api/v1/leaves/{leave_id}", response_model=LeaveRead)
def update_leave(
    leave_id: int,
    payload: LeaveUpdate,
    request: Request,
    caller: CallerIdentity = Depends(require_any_role),
    db: Session = Depends(get_db),
) -> LeaveRead:
    leave = leave_service.update_leave(db, caller, leave_id, payload)
    audit_caller_action(
        db,
        request,
        caller,
        action="LEAVE_UPDATED",
        entity_type="leave",
        entity_id=leave.id,
        details={"fields": sorted(payload.model_dump(exclude_unset=True)), "days": leave.days},
    )
    return leave_service.to_leave_read(leave)


@router.delete("/api/v1/leaves/{leave_id}", response_model=DeleteResponse)
def delete_leave(
    leave_id: int,
    request: Request,
    caller: CallerIdentity = Depends(require_any_role),
    db: Session = Depends(get_db),
) -> DeleteResponse:
    leave = leave_service.delete_leave(db, caller, leave_id)
    audit_caller_action(
        db,
        request,
        caller,
        action="LEAVE_DELETED",
        entity_type="leave",
        entity_id=leave.id,
        details={"employee_id": leave.employee_id},
    )
    return DeleteResponse(ok=True, id=leave.id)


@router.post("/api/v1/leaves/{leave_id}/approve", response_model=LeaveRead)
def approve_leave(
    leave_id: int,
    payload: LeaveApprovalRequest,
    request: Request,
    caller: CallerIdentity = Depends(require_hr),
    db: Session = Depends(get_db),
) -> LeaveRead:
    leave = leave_service.approve_leave(db, caller, leave_id, payload)
    audit_caller_action(
        db,
        request,
        caller,
        action="LEAVE_APPROVED" if leave.status == LeaveStatus.APPROVED else "LEAVE_REJECTED",
        entity_type="leave",
        entity_id=leave.id,
        details={"employee_id": leave.employee_id, "approved_by": leave.approved_by},
    )
    return leave_service.to_leave_read(leave)
