"""Idempotent demo data: five departments and one linked user per role tier.

Rows are matched by department name and email, so running the seeder again
leaves existing data untouched.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from hrms.models import Department, Employee, EmployeeStatus, Role, User
from hrms.security import hash_password

logger = logging.getLogger("hrms.seeds")

DEMO_DEPARTMENTS: tuple[tuple[str, str], ...] = (
    ("Human Resources", "Manages employee relations and company policies"),
    ("Engineering", "Software development and technical operations"),
    ("Sales", "Customer acquisition and revenue generation"),
    ("Marketing", "Brand promotion and customer engagement"),
    ("Finance", "Financial planning and accounting"),
)

DEMO_EMPLOYEES: tuple[dict[str, object], ...] = (
    {
        "employee_code": "EMP001",
        "first_name": "John",
        "last_name": "Doe",
        "email": "admin@hrms.com",
        "phone": "+1234567890",
        "address": "123 Main St, City, State",
        "tenure_days": 730,
        "salary": 90000.0,
        "position": "System Administrator",
        "department": "Human Resources",
    },
    {
        "employee_code": "EMP002",
        "first_name": "Jane",
        "last_name": "Smith",
        "email": "manager@hrms.com",
        "phone": "+1234567891",
        "address": "456 Oak Ave, City, State",
        "tenure_days": 548,
        "salary": 75000.0,
        "position": "Engineering Manager",
        "department": "Engineering",
    },
    {
        "employee_code": "EMP003",
        "first_name": "Bob",
        "last_name": "Johnson",
        "email": "employee@hrms.com",
        "phone": "+1234567892",
        "address": "789 Pine St, City, State",
        "tenure_days": 90,
        "salary": 60000.0,
        "position": "Software Developer",
        "department": "Engineering",
    },
)

# (email, password, role); each user links to the employee with the same email.
DEMO_USERS: tuple[tuple[str, str, Role], ...] = (
    ("admin@hrms.com", "admin123", Role.ADMIN),
    ("manager@hrms.com", "manager123", Role.MANAGER),
    ("employee@hrms.com", "employee123", Role.EMPLOYEE),
)


def seed_demo_data(db: Session, *, today: date | None = None) -> dict[str, int]:
    today = today or date.today()
    created = {"departments": 0, "employees": 0, "users": 0}

    departments: dict[str, Department] = {}
    for name, description in DEMO_DEPARTMENTS:
        department = db.scalar(select(Department).where(Department.name == name))
        if department is None:
            department = Department(name=name, description=description)
            db.add(department)
            created["departments"] += 1
        departments[name] = department
    db.flush()

    employees: dict[str, Employee] = {}
    for row in DEMO_EMPLOYEES:
        email = str(row["email"])
        employee = db.scalar(select(Employee).where(Employee.email == email))
        if employee is None:
            employee = Employee(
                employee_code=str(row["employee_code"]),
                first_name=str(row["first_name"]),
                last_name=str(row["last_name"]),
                email=email,
                phone=str(row["phone"]),
                address=str(row["address"]),
                hire_date=today - timedelta(days=int(row["tenure_days"])),  # type: ignore[arg-type]
                salary=float(row["salary"]),  # type: ignore[arg-type]
                position=str(row["position"]),
                status=EmployeeStatus.ACTIVE,
                department_id=departments[str(row["department"])].id,
            )
            db.add(employee)
            created["employees"] += 1
        employees[email] = employee
    db.flush()

    for email, password, role in DEMO_USERS:
        if db.scalar(select(User).where(User.email == email)) is not None:
            continue
        employee = employees[email]
        db.add(
            User(
                email=email,
                password_hash=hash_password(password),
                first_name=employee.first_name,
                last_name=employee.last_name,
                role=role,
                is_active=True,
                employee_id=employee.id,
            )
        )
        created["users"] += 1

    db.commit()
    logger.info("seed_demo_data_complete", extra=created)
    return created
