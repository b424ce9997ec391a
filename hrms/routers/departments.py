from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from hrms.audit import audit_caller_action
from hrms.db import get_db
from hrms.policy import require_any_role, require_hr
from hrms.schemas import DeleteResponse, DepartmentCreate, DepartmentRead, DepartmentUpdate
from hrms.security import CallerIdentity
from hrms.services import departments as department_service
from hrms.services.lookups import get_department as load_department

router = APIRouter(tags=["departments"])


@router.get("/api/v1/departments", response_model=list[DepartmentRead])
def list_departments(
    _caller: CallerIdentity = Depends(require_any_role),
    db: Session = Depends(get_db),
) -> list[DepartmentRead]:
    return [department_service.to_department_read(db, item) for item in department_service.list_departments(db)]


@router.post("/api/v1/departments", response_model=DepartmentRead, status_code=status.HTTP_201_CREATED)
def create_department(
    payload: DepartmentCreate,
    request: Request,
    caller: CallerIdentity = Depends(require_hr),
    db: Session = Depends(get_db),
) -> DepartmentRead:
    department = department_service.create_department(db, payload)
    audit_caller_action(
        db,
        request,
        caller,
        action="DEPARTMENT_CREATED",
        entity_type="department",
        entity_id=department.id,
        details={"name": department.name},
    )
    return department_service.to_department_read(db, department)


@router.get("/api/v1/departments/{department_id}", response_model=DepartmentRead)
def get_department(
    department_id: int,
    _caller: CallerIdentity = Depends(require_any_role),
    db: Session = Depends(get_db),
) -> DepartmentRead:
    return department_service.to_department_read(db, load_department(db, department_id))


@router.put("/api/v1/departments/{department_id}", response_model=DepartmentRead)
def update_department(
    department_id: int,
    payload: DepartmentUpdate,
    request: Request,
    caller: CallerIdentity = Depends(require_hr),
    db: Session = Depends(get_db),
) -> DepartmentRead:
    department = department_service.update_department(db, department_id, payload)
    audit_caller_action(
        db,
        request,
        caller,
        action="DEPARTMENT_UPDATED",
        entity_type="department",
        entity_id=department.id,
        details={"fields": sorted(payload.model_dump(exclude_unset=True))},
    )
    return department_service.to_department_read(db, department)


@router.delete("/api/v1/departments/{department_id}", response_model=DeleteResponse)
def delete_department(
    department_id: int,
    request: Request,
    caller: CallerIdentity = Depends(require_hr),
    db: Session = Depends(get_db),
) -> DeleteResponse:
    department = department_service.delete_department(db, department_id)
    audit_caller_action(
        db,
        request,
        caller,
        action="DEPARTMENT_DELETED",
        entity_type="department",
        entity_id=department.id,
        details={"name": department.name},
    )
    return DeleteResponse(ok=True, id=department.id)
