from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from hrms.audit import audit_caller_action
from hrms.db import get_db
from hrms.policy import require_any_role, require_hr, require_manager
from hrms.schemas import DeleteResponse, PayrollCreate, PayrollRead, PayrollReportRow, PayrollUpdate
from hrms.security import CallerIdentity
from hrms.services import payroll as payroll_service

router = APIRouter(tags=["payroll"])


@router.get("/api/v1/payroll", response_model=list[PayrollRead])
def list_payroll(
    caller: CallerIdentity = Depends(require_any_role),
    db: Session = Depends(get_db),
) -> list[PayrollRead]:
    return [payroll_service.to_payroll_read(item) for item in payroll_service.list_payroll(db, caller)]


@router.post("/api/v1/payroll", response_model=PayrollRead, status_code=status.HTTP_201_CREATED)
def create_payroll(
    payload: PayrollCreate,
    request: Request,
    caller: CallerIdentity = Depends(require_hr),
    db: Session = Depends(get_db),
) -> PayrollRead:
    record = payroll_service.create_payroll(db, payload)
    audit_caller_action(
        db,
        request,
        caller,
        action="PAYROLL_CREATED",
        entity_type="payroll",
        entity_id=record.id,
        details={
            "employee_id": record.employee_id,
            "gross_pay": record.gross_pay,
            "net_pay": record.net_pay,
            "status": record.status.value,
        },
    )
    return payroll_service.to_payroll_read(record)


@router.get("/api/v1/payroll/report", response_model=list[PayrollReportRow])
def payroll_department_report(
    caller: CallerIdentity = Depends(require_manager),
    db: Session = Depends(get_db),
) -> list[PayrollReportRow]:
    return payroll_service.department_payroll_report(db, caller)


@router.get("/api/v1/payroll/download", response_model=list[PayrollReportRow])
def payroll_download(
    year: int | None = Query(default=None, ge=1970, le=9999),
    month: int | None = Query(default=None, ge=1, le=12),
    department_id: int | None = Query(default=None, ge=1),
    _caller: CallerIdentity = Depends(require_hr),
    db: Session = Depends(get_db),
) -> list[PayrollReportRow]:
    return payroll_service.payroll_report(db, year=year, month=month, department_id=department_id)


@router.get("/api/v1/payroll/{payroll_id}", response_model=PayrollRead)
def get_payroll(
    payroll_id: int,
    caller: CallerIdentity = Depends(require_any_role),
    db: Session = Depends(get_db),
) -> PayrollRead:
    return payroll_service.to_payroll_read(payroll_service.get_payroll(db, caller, payroll_id))


@router.put("/api/v1/payroll/{payroll_id}", response_model=PayrollRead)
def update_payroll(
    payroll_id: int,
    payload: PayrollUpdate,
    request: Request,
    caller: CallerIdentity = Depends(require_hr),
    db: Session = Depends(get_db),
) -> PayrollRead:
    record = payroll_service.update_payroll(db, payroll_id, payload)
    audit_caller_action(
        db,
        request,
        caller,
        action="PAYROLL_UPDATED",
        entity_type="payroll",
        entity_id=record.id,
        details={
            "fields": sorted(payload.model_dump(exclude_unset=True)),
            "gross_pay": record.gross_pay,
            "net_pay": record.net_pay,
            "status": record.status.value,
        },
    )
    return payroll_service.to_payroll_read(record)


@router.delete("/api/v1/payroll/{payroll_id}", response_model=DeleteResponse)
def delete_payroll(
    payroll_id: int,
    request: Request,
    caller: CallerIdentity = Depends(require_hr),
    db: Session = Depends(get_db),
) -> DeleteResponse:
    record = payroll_service.delete_payroll(db, payroll_id)
    audit_caller_action(
        db,
        request,
        caller,
        action="PAYROLL_DELETED",
        entity_type="payroll",
        entity_id=record.id,
        details={"employee_id": record.employee_id},
    )
    return DeleteResponse(ok=True, id=record.id)
