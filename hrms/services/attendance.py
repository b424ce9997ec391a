from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from hrms.errors import ForbiddenError, PayloadValidationError
from hrms.models import Attendance, Employee, Role
from hrms.policy import ResourceKind, department_scope, require_linked_employee, scope_collection
from hrms.schemas import AttendanceCreate, AttendanceRead, AttendanceReportRow, AttendanceUpdate
from hrms.security import CallerIdentity
from hrms.services.calculations import calculate_working_hours, normalize_ts
from hrms.services.lookups import get_employee, get_live, live_select


def to_attendance_read(record: Attendance) -> AttendanceRead:
    return AttendanceRead(
        id=record.id,
        employee_id=record.employee_id,
        employee_name=record.employee.full_name if record.employee else None,
        date=record.date,
        check_in=record.check_in,
        check_out=record.check_out,
        status=record.status,
        working_hours=record.working_hours,
        comments=record.comments,
        created_at=record.created_at,
    )


def list_attendance(db: Session, caller: CallerIdentity) -> list[Attendance]:
    scope = scope_collection(caller, ResourceKind.ATTENDANCE)
    stmt = live_select(Attendance).options(selectinload(Attendance.employee))
    stmt = scope.apply(stmt, Attendance.employee_id).order_by(Attendance.id.asc())
    return list(db.scalars(stmt).all())


def get_attendance(db: Session, caller: CallerIdentity, attendance_id: int) -> Attendance:
    scope = scope_collection(caller, ResourceKind.ATTENDANCE)
    record = get_live(db, Attendance, attendance_id, label="Attendance record")
    if not scope.permits(record.employee):
        raise ForbiddenError("You cannot access this attendance record.")
    return record


def create_attendance(db: Session, caller: CallerIdentity, payload: AttendanceCreate) -> Attendance:
    if caller.role is Role.EMPLOYEE:
        # Employees can only log their own attendance.
        employee_id = require_linked_employee(caller)
    elif payload.employee_id is None:
        raise PayloadValidationError("employee_id is required")
    else:
        employee_id = payload.employee_id
    get_employee(db, employee_id)

    working_hours = calculate_working_hours(payload.check_in, payload.check_out)
    record = Attendance(
        employee_id=employee_id,
        date=payload.date,
        check_in=normalize_ts(payload.check_in) if payload.check_in else None,
        check_out=normalize_ts(payload.check_out) if payload.check_out else None,
        status=payload.status,
        working_hours=working_hours,
        comments=payload.comments,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def update_attendance(db: Session, attendance_id: int, payload: AttendanceUpdate) -> Attendance:
    record = get_live(db, Attendance, attendance_id, label="Attendance record")
    changes = payload.model_dump(exclude_unset=True)
    for field in ("date", "status"):
        if field in changes and changes[field] is None:
            raise PayloadValidationError(f"{field} cannot be null")

    check_in = changes["check_in"] if "check_in" in changes else record.check_in
    check_out = changes["check_out"] if "check_out" in changes else record.check_out
    working_hours = calculate_working_hours(check_in, check_out)

    for field, value in changes.items():
        if field in {"check_in", "check_out"} and value is not None:
            value = normalize_ts(value)
        setattr(record, field, value)
    record.working_hours = working_hours

    db.commit()
    db.refresh(record)
    return record


def delete_attendance(db: Session, attendance_id: int) -> Attendance:
    record = get_live(db, Attendance, attendance_id, label="Attendance record")
    record.soft_delete()
    db.commit()
    return record


def department_attendance_report(db: Session, caller: CallerIdentity) -> list[AttendanceReportRow]:
    scope = department_scope(caller, ResourceKind.ATTENDANCE)
    stmt = (
        select(Attendance, Employee)
        .join(Employee, Employee.id == Attendance.employee_id)
        .where(Attendance.deleted_at.is_(None))
        .order_by(Attendance.date.desc(), Attendance.id.desc())
    )
    stmt = scope.apply(stmt, Attendance.employee_id)
    return [
        AttendanceReportRow(
            employee_id=employee.id,
            employee_name=employee.full_name,
            date=record.date,
            check_in=record.check_in,
            check_out=record.check_out,
            working_hours=record.working_hours,
            status=record.status,
        )
        for record, employee in db.execute(stmt).all()
    ]
