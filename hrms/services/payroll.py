from __future__ import annotations

from calendar import monthrange
from datetime import date, datetime, timezone

from sqlalchemy import Select, select
from sqlalchemy.orm import Session, selectinload

from hrms.errors import ForbiddenError, PayloadValidationError
from hrms.models import Employee, PayrollRecord, PayrollStatus
from hrms.policy import ResourceKind, department_scope, scope_collection
from hrms.schemas import PayrollCreate, PayrollRead, PayrollReportRow, PayrollUpdate
from hrms.security import CallerIdentity
from hrms.services.calculations import calculate_pay, validate_period
from hrms.services.lookups import get_department, get_employee, get_live, live_select

_AMOUNT_FIELDS = ("basic_salary", "allowances", "deductions", "overtime", "tax")


def to_payroll_read(record: PayrollRecord) -> PayrollRead:
    return PayrollRead(
        id=record.id,
        employee_id=record.employee_id,
        employee_name=record.employee.full_name if record.employee else None,
        pay_period_start=record.pay_period_start,
        pay_period_end=record.pay_period_end,
        basic_salary=record.basic_salary,
        allowances=record.allowances,
        deductions=record.deductions,
        overtime=record.overtime,
        tax=record.tax,
        gross_pay=record.gross_pay,
        net_pay=record.net_pay,
        status=record.status,
        processed_at=record.processed_at,
        paid_at=record.paid_at,
        created_at=record.created_at,
    )


def _stamp_status(record: PayrollRecord, status: PayrollStatus) -> None:
    now = datetime.now(timezone.utc)
    if status == PayrollStatus.PROCESSED and record.processed_at is None:
        record.processed_at = now
    if status == PayrollStatus.PAID:
        if record.processed_at is None:
            record.processed_at = now
        if record.paid_at is None:
            record.paid_at = now
    record.status = status


def _recompute(record: PayrollRecord) -> None:
    totals = calculate_pay(
        basic_salary=record.basic_salary,
        allowances=record.allowances,
        overtime=record.overtime,
        deductions=record.deductions,
        tax=record.tax,
    )
    record.gross_pay = totals.gross_pay
    record.net_pay = totals.net_pay


def list_payroll(db: Session, caller: CallerIdentity) -> list[PayrollRecord]:
    scope = scope_collection(caller, ResourceKind.PAYROLL)
    stmt = live_select(PayrollRecord).options(selectinload(PayrollRecord.employee))
    stmt = scope.apply(stmt, PayrollRecord.employee_id).order_by(PayrollRecord.id.asc())
    return list(db.scalars(stmt).all())


def get_payroll(db: Session, caller: CallerIdentity, payroll_id: int) -> PayrollRecord:
    scope = scope_collection(caller, ResourceKind.PAYROLL)
    record = get_live(db, PayrollRecord, payroll_id, label="Payroll record")
    if not scope.permits(record.employee):
        raise ForbiddenError("You cannot access this payroll record.")
    return record


def create_payroll(db: Session, payload: PayrollCreate) -> PayrollRecord:
    validate_period(payload.pay_period_start, payload.pay_period_end)
    get_employee(db, payload.employee_id)

    record = PayrollRecord(
        employee_id=payload.employee_id,
        pay_period_start=payload.pay_period_start,
        pay_period_end=payload.pay_period_end,
        basic_salary=payload.basic_salary,
        allowances=payload.allowances,
        deductions=payload.deductions,
        overtime=payload.overtime,
        tax=payload.tax,
    )
    _recompute(record)
    _stamp_status(record, payload.status)
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def update_payroll(db: Session, payroll_id: int, payload: PayrollUpdate) -> PayrollRecord:
    record = get_live(db, PayrollRecord, payroll_id, label="Payroll record")
    changes = payload.model_dump(exclude_unset=True)
    for field, value in changes.items():
        if value is None:
            raise PayloadValidationError(f"{field} cannot be null")

    validate_period(
        changes.get("pay_period_start", record.pay_period_start),
        changes.get("pay_period_end", record.pay_period_end),
    )

    new_status = changes.pop("status", None)
    for field, value in changes.items():
        setattr(record, field, value)
    _recompute(record)
    if new_status is not None:
        _stamp_status(record, new_status)

    db.commit()
    db.refresh(record)
    return record


def delete_payroll(db: Session, payroll_id: int) -> PayrollRecord:
    record = get_live(db, PayrollRecord, payroll_id, label="Payroll record")
    record.soft_delete()
    db.commit()
    return record


def _report_rows(db: Session, stmt: Select[tuple[PayrollRecord, Employee]]) -> list[PayrollReportRow]:
    return [
        PayrollReportRow(
            employee_id=employee.id,
            employee_name=employee.full_name,
            pay_period_start=record.pay_period_start,
            pay_period_end=record.pay_period_end,
            gross_pay=record.gross_pay,
            net_pay=record.net_pay,
            status=record.status,
        )
        for record, employee in db.execute(stmt).all()
    ]


def _report_select() -> Select[tuple[PayrollRecord, Employee]]:
    return (
        select(PayrollRecord, Employee)
        .join(Employee, Employee.id == PayrollRecord.employee_id)
        .where(PayrollRecord.deleted_at.is_(None))
    )


def department_payroll_report(db: Session, caller: CallerIdentity) -> list[PayrollReportRow]:
    scope = department_scope(caller, ResourceKind.PAYROLL)
    stmt = scope.apply(_report_select(), PayrollRecord.employee_id).order_by(
        PayrollRecord.pay_period_start.desc(),
        PayrollRecord.id.desc(),
    )
    return _report_rows(db, stmt)


def payroll_report(
    db: Session,
    *,
    year: int | None = None,
    month: int | None = None,
    department_id: int | None = None,
) -> list[PayrollReportRow]:
    """Payroll rows for the download view.

    ``year`` and ``month`` select records whose pay period overlaps that
    calendar month and must be given together.
    """
    if (year is None) != (month is None):
        raise PayloadValidationError("year and month must be provided together")

    stmt = _report_select().order_by(PayrollRecord.pay_period_start.desc(), PayrollRecord.id.desc())
    if year is not None and month is not None:
        if not 1 <= month <= 12:
            raise PayloadValidationError("month must be between 1 and 12")
        days_in_month = monthrange(year, month)[1]
        start = date(year, month, 1)
        end = date(year, month, days_in_month)
        stmt = stmt.where(
            PayrollRecord.pay_period_start <= end,
            PayrollRecord.pay_period_end >= start,
        )
    if department_id is not None:
        get_department(db, department_id)
        stmt = stmt.where(Employee.department_id == department_id)
    return _report_rows(db, stmt)
