from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from hrms.audit import audit_caller_action
from hrms.db import get_db
from hrms.policy import require_any_role, require_hr
from hrms.schemas import DeleteResponse, EmployeeCreate, EmployeeRead, EmployeeUpdate
from hrms.security import CallerIdentity
from hrms.services import employees as employee_service
from hrms.services.lookups import get_employee as load_employee

router = APIRouter(tags=["employees"])


@router.get("/api/v1/employees", response_model=list[EmployeeRead])
def list_employees(
    _caller: CallerIdentity = Depends(require_any_role),
    db: Session = Depends(get_db),
) -> list[EmployeeRead]:
    return [employee_service.to_employee_read(item) for item in employee_service.list_employees(db)]


@router.post("/api/v1/employees", response_model=EmployeeRead, status_code=status.HTTP_201_CREATED)
def create_employee(
    payload: EmployeeCreate,
    request: Request,
    caller: CallerIdentity = Depends(require_hr),
    db: Session = Depends(get_db),
) -> EmployeeRead:
    employee = employee_service.create_employee(db, payload)
    audit_caller_action(
        db,
        request,
        caller,
        action="EMPLOYEE_CREATED",
        entity_type="employee",
        entity_id=employee.id,
        details={"employee_code": employee.employee_code, "department_id": employee.department_id},
    )
    return employee_service.to_employee_read(employee)


@router.get("/api/v1/employees/{employee_id}", response_model=EmployeeRead)
def get_employee(
    employee_id: int,
    _caller: CallerIdentity = Depends(require_any_role),
    db: Session = Depends(get_db),
) -> EmployeeRead:
    return employee_service.to_employee_read(load_employee(db, employee_id))


@router.put("/api/v1/employees/{employee_id}", response_model=EmployeeRead)
def update_employee(
    employee_id: int,
    payload: EmployeeUpdate,
    request: Request,
    caller: CallerIdentity = Depends(require_hr),
    db: Session = Depends(get_db),
) -> EmployeeRead:
    employee = employee_service.update_employee(db, employee_id, payload)
    audit_caller_action(
        db,
        request,
        caller,
        action="EMPLOYEE_UPDATED",
        entity_type="employee",
        entity_id=employee.id,
        details={"fields": sorted(payload.model_dump(exclude_unset=True))},
    )
    return employee_service.to_employee_read(employee)


@router.delete("/api/v1/employees/{employee_id}", response_model=DeleteResponse)
def delete_employee(
    employee_id: int,
    request: Request,
    caller: CallerIdentity = Depends(require_hr),
    db: Session = Depends(get_db),
) -> DeleteResponse:
    employee = employee_service.delete_employee(db, employee_id)
    audit_caller_action(
        db,
        request,
        caller,
        action="EMPLOYEE_DELETED",
        entity_type="employee",
        entity_id=employee.id,
        details={"employee_code": employee.employee_code},
    )
    return DeleteResponse(ok=True, id=employee.id)
