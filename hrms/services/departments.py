from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from hrms.errors import ConflictError
from hrms.models import Department, Employee
from hrms.schemas import DepartmentCreate, DepartmentRead, DepartmentUpdate
from hrms.services.lookups import get_department, get_employee, live_select


def _count_live_employees(db: Session, department_id: int) -> int:
    return int(
        db.scalar(
            select(func.count(Employee.id)).where(
                Employee.department_id == department_id,
                Employee.deleted_at.is_(None),
            )
        )
        or 0
    )


def to_department_read(db: Session, department: Department) -> DepartmentRead:
    manager = department.manager if department.manager and department.manager.deleted_at is None else None
    return DepartmentRead(
        id=department.id,
        name=department.name,
        description=department.description,
        manager_id=department.manager_id,
        manager_name=manager.full_name if manager else None,
        employee_count=_count_live_employees(db, department.id),
    )


def _ensure_unique_name(db: Session, name: str, *, exclude_id: int | None = None) -> None:
    stmt = select(Department).where(Department.name == name)
    if exclude_id is not None:
        stmt = stmt.where(Department.id != exclude_id)
    if db.scalar(stmt) is not None:
        raise ConflictError("Department name already exists")


def list_departments(db: Session) -> list[Department]:
    stmt = live_select(Department).options(selectinload(Department.manager)).order_by(Department.id.asc())
    return list(db.scalars(stmt).all())


def create_department(db: Session, payload: DepartmentCreate) -> Department:
    name = payload.name.strip()
    _ensure_unique_name(db, name)
    if payload.manager_id is not None:
        get_employee(db, payload.manager_id)

    department = Department(
        name=name,
        description=payload.description,
        manager_id=payload.manager_id,
    )
    db.add(department)
    db.commit()
    db.refresh(department)
    return department


def update_department(db: Session, department_id: int, payload: DepartmentUpdate) -> Department:
    department = get_department(db, department_id)
    changes = payload.model_dump(exclude_unset=True)

    if changes.get("name") is not None:
        name = changes["name"].strip()
        _ensure_unique_name(db, name, exclude_id=department.id)
        department.name = name
    if "description" in changes:
        department.description = changes["description"]
    if "manager_id" in changes:
        if changes["manager_id"] is not None:
            get_employee(db, changes["manager_id"])
        department.manager_id = changes["manager_id"]

    db.commit()
    db.refresh(department)
    return department


def delete_department(db: Session, department_id: int) -> Department:
    department = get_department(db, department_id)
    if _count_live_employees(db, department.id):
        raise ConflictError("Department still has employees")

    department.soft_delete()
    db.commit()
    return department
