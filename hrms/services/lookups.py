from __future__ import annotations

from typing import TypeVar

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from hrms.errors import NotFoundError
from hrms.models import Department, Employee, TimestampMixin

ModelT = TypeVar("ModelT", bound=TimestampMixin)


def get_live(db: Session, model: type[ModelT], pk: int, *, label: str) -> ModelT:
    row = db.get(model, pk)
    if row is None or row.deleted_at is not None:
        raise NotFoundError(f"{label} not found")
    return row


def get_employee(db: Session, employee_id: int) -> Employee:
    return get_live(db, Employee, employee_id, label="Employee")


def get_department(db: Session, department_id: int) -> Department:
    return get_live(db, Department, department_id, label="Department")


def live_select(model: type[ModelT]) -> Select[tuple[ModelT]]:
    return select(model).where(model.deleted_at.is_(None))
