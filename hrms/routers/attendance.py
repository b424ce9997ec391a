from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from hrms.audit import audit_caller_action
from hrms.db import get_db
from hrms.policy import require_any_role, require_hr, require_manager
from hrms.schemas import (
    AttendanceCreate,
    AttendanceRead,
    AttendanceReportRow,
    AttendanceUpdate,
    DeleteResponse,
)
from hrms.security import CallerIdentity
from hrms.services import attendance as attendance_service

router = APIRouter(tags=["attendance"])


@router.get("/api/v1/attendance", response_model=list[AttendanceRead])
def list_attendance(
    caller: CallerIdentity = Depends(require_any_role),
    db: Session = Depends(get_db),
) -> list[AttendanceRead]:
    return [attendance_service.to_attendance_read(item) for item in attendance_service.list_attendance(db, caller)]


@router.post("/api/v1/attendance", response_model=AttendanceRead, status_code=status.HTTP_201_CREATED)
def create_attendance(
    payload: AttendanceCreate,
    request: Request,
    caller: CallerIdentity = Depends(require_any_role),
    db: Session = Depends(get_db),
) -> AttendanceRead:
    record = attendance_service.create_attendance(db, caller, payload)
    audit_caller_action(
        db,
        request,
        caller,
        action="ATTENDANCE_CREATED",
        entity_type="attendance",
        entity_id=record.id,
        details={
            "employee_id": record.employee_id,
            "date": record.date.isoformat(),
            "status": record.status.value,
        },
    )
    return attendance_service.to_attendance_read(record)


@router.get("/api/v1/attendance/report", response_model=list[AttendanceReportRow])
def attendance_report(
    caller: CallerIdentity = Depends(require_manager),
    db: Session = Depends(get_db),
) -> list[AttendanceReportRow]:
    return attendance_service.department_attendance_report(db, caller)


@router.get("/api/v1/attendance/{attendance_id}", response_model=AttendanceRead)
def get_attendance(
    attendance_id: int,
    caller: CallerIdentity = Depends(require_any_role),
    db: Session = Depends(get_db),
) -> AttendanceRead:
    return attendance_service.to_attendance_read(attendance_service.get_attendance(db, caller, attendance_id))


@router.put("/api/v1/attendance/{attendance_id}", response_model=AttendanceRead)
def update_attendance(
    attendance_id: int,
    payload: AttendanceUpdate,
    request: Request,
    caller: CallerIdentity = Depends(require_hr),
    db: Session = Depends(get_db),
) -> AttendanceRead:
    record = attendance_service.update_attendance(db, attendance_id, payload)
    audit_caller_action(
        db,
        request,
        caller,
        action="ATTENDANCE_UPDATED",
        entity_type="attendance",
        entity_id=record.id,
        details={"fields": sorted(payload.model_dump(exclude_unset=True))},
    )
    return attendance_service.to_attendance_read(record)


@router.delete("/api/v1/attendance/{attendance_id}", response_model=DeleteResponse)
def delete_attendance(
    attendance_id: int,
    request: Request,
    caller: CallerIdentity = Depends(require_hr),
    db: Session = Depends(get_db),
) -> DeleteResponse:
    record = attendance_service.delete_attendance(db, attendance_id)
    audit_caller_action(
        db,
        request,
        caller,
        action="ATTENDANCE_DELETED",
        entity_type="attendance",
        entity_id=record.id,
        details={"employee_id": record.employee_id},
    )
    return DeleteResponse(ok=True, id=record.id)
