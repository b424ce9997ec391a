from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from hrms.errors import ConflictError, PayloadValidationError
from hrms.models import Employee
from hrms.schemas import EmployeeCreate, EmployeeRead, EmployeeUpdate
from hrms.services.lookups import get_department, get_employee, live_select

_NON_NULLABLE_FIELDS = (
    "employee_code",
    "first_name",
    "last_name",
    "email",
    "hire_date",
    "salary",
    "position",
    "status",
    "department_id",
)


def to_employee_read(employee: Employee) -> EmployeeRead:
    department = employee.department
    return EmployeeRead(
        id=employee.id,
        employee_code=employee.employee_code,
        first_name=employee.first_name,
        last_name=employee.last_name,
        full_name=employee.full_name,
        email=employee.email,
        phone=employee.phone,
        address=employee.address,
        date_of_birth=employee.date_of_birth,
        hire_date=employee.hire_date,
        salary=employee.salary,
        position=employee.position,
        status=employee.status,
        department_id=employee.department_id,
        department_name=department.name if department is not None else None,
        manager_id=employee.manager_id,
    )


def _ensure_unique(db: Session, *, employee_code: str | None, email: str | None, exclude_id: int | None) -> None:
    if employee_code is not None:
        stmt = select(Employee).where(Employee.employee_code == employee_code)
        if exclude_id is not None:
            stmt = stmt.where(Employee.id != exclude_id)
        if db.scalar(stmt) is not None:
            raise ConflictError("Employee code already exists")
    if email is not None:
        stmt = select(Employee).where(Employee.email == email)
        if exclude_id is not None:
            stmt = stmt.where(Employee.id != exclude_id)
        if db.scalar(stmt) is not None:
            raise ConflictError("Employee email already exists")


def list_employees(db: Session) -> list[Employee]:
    stmt = live_select(Employee).options(selectinload(Employee.department)).order_by(Employee.id.asc())
    return list(db.scalars(stmt).all())


def create_employee(db: Session, payload: EmployeeCreate) -> Employee:
    employee_code = payload.employee_code.strip()
    email = str(payload.email).lower()
    _ensure_unique(db, employee_code=employee_code, email=email, exclude_id=None)
    get_department(db, payload.department_id)
    if payload.manager_id is not None:
        get_employee(db, payload.manager_id)

    employee = Employee(
        employee_code=employee_code,
        first_name=payload.first_name.strip(),
        last_name=payload.last_name.strip(),
        email=email,
        phone=payload.phone,
        address=payload.address,
        date_of_birth=payload.date_of_birth,
        hire_date=payload.hire_date,
        salary=payload.salary,
        position=payload.position.strip(),
        status=payload.status,
        department_id=payload.department_id,
        manager_id=payload.manager_id,
    )
    db.add(employee)
    db.commit()
    db.refresh(employee)
    return employee


def update_employee(db: Session, employee_id: int, payload: EmployeeUpdate) -> Employee:
    employee = get_employee(db, employee_id)
    changes = payload.model_dump(exclude_unset=True)

    for field in _NON_NULLABLE_FIELDS:
        if field in changes and changes[field] is None:
            raise PayloadValidationError(f"{field} cannot be null")

    if "email" in changes:
        changes["email"] = str(changes["email"]).lower()
    _ensure_unique(
        db,
        employee_code=changes.get("employee_code"),
        email=changes.get("email"),
        exclude_id=employee.id,
    )
    if "department_id" in changes:
        get_department(db, changes["department_id"])
    if changes.get("manager_id") is not None:
        if changes["manager_id"] == employee.id:
            raise PayloadValidationError("An employee cannot be their own manager")
        get_employee(db, changes["manager_id"])

    for field, value in changes.items():
        setattr(employee, field, value)

    db.commit()
    db.refresh(employee)
    return employee


def delete_employee(db: Session, employee_id: int) -> Employee:
    employee = get_employee(db, employee_id)
    employee.soft_delete()
    db.commit()
    return employee
