from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from hrms.errors import ConflictError, ForbiddenError, PayloadValidationError
from hrms.models import User
from hrms.policy import is_hr, require_self_or_hr
from hrms.schemas import ProfileUpdate, UserCreate, UserUpdate
from hrms.security import CallerIdentity, hash_password
from hrms.services.lookups import get_employee, get_live, live_select

# Fields a non-HR caller may change on their own account.
SELF_EDITABLE_FIELDS = frozenset({"first_name", "last_name", "password"})


def _ensure_unique_email(db: Session, email: str, *, exclude_id: int | None = None) -> None:
    stmt = select(User).where(User.email == email)
    if exclude_id is not None:
        stmt = stmt.where(User.id != exclude_id)
    if db.scalar(stmt) is not None:
        raise ConflictError("Email already exists")


def _ensure_employee_unlinked(db: Session, employee_id: int, *, exclude_id: int | None = None) -> None:
    stmt = live_select(User).where(User.employee_id == employee_id)
    if exclude_id is not None:
        stmt = stmt.where(User.id != exclude_id)
    if db.scalar(stmt) is not None:
        raise ConflictError("Employee is already linked to another user")


def list_users(db: Session) -> list[User]:
    return list(db.scalars(live_select(User).order_by(User.id.asc())).all())


def get_user(db: Session, caller: CallerIdentity, user_id: int) -> User:
    require_self_or_hr(caller, user_id)
    return get_live(db, User, user_id, label="User")


def create_user(db: Session, payload: UserCreate) -> User:
    email = str(payload.email).lower()
    _ensure_unique_email(db, email)
    if payload.employee_id is not None:
        get_employee(db, payload.employee_id)
        _ensure_employee_unlinked(db, payload.employee_id)

    user = User(
        email=email,
        password_hash=hash_password(payload.password),
        first_name=payload.first_name.strip(),
        last_name=payload.last_name.strip(),
        role=payload.role,
        is_active=payload.is_active,
        employee_id=payload.employee_id,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def update_user(db: Session, caller: CallerIdentity, user_id: int, payload: UserUpdate) -> User:
    require_self_or_hr(caller, user_id)
    user = get_live(db, User, user_id, label="User")
    changes = payload.model_dump(exclude_unset=True)

    if not is_hr(caller):
        restricted = sorted(set(changes) - SELF_EDITABLE_FIELDS)
        if restricted:
            raise ForbiddenError(f"Only HR can change: {', '.join(restricted)}")

    for field in ("email", "first_name", "last_name", "role", "is_active"):
        if field in changes and changes[field] is None:
            raise PayloadValidationError(f"{field} cannot be null")

    if "email" in changes:
        email = str(changes["email"]).lower()
        _ensure_unique_email(db, email, exclude_id=user.id)
        user.email = email
    if "employee_id" in changes:
        if changes["employee_id"] is not None:
            get_employee(db, changes["employee_id"])
            _ensure_employee_unlinked(db, changes["employee_id"], exclude_id=user.id)
        user.employee_id = changes["employee_id"]
    if changes.get("first_name") is not None:
        user.first_name = changes["first_name"].strip()
    if changes.get("last_name") is not None:
        user.last_name = changes["last_name"].strip()
    if changes.get("password"):
        user.password_hash = hash_password(changes["password"])
    if "role" in changes:
        user.role = changes["role"]
    if "is_active" in changes:
        user.is_active = changes["is_active"]

    db.commit()
    db.refresh(user)
    return user


def update_profile(db: Session, caller: CallerIdentity, payload: ProfileUpdate) -> User:
    return update_user(
        db,
        caller,
        caller.user_id,
        UserUpdate(**payload.model_dump(exclude_unset=True)),
    )


def delete_user(db: Session, caller: CallerIdentity, user_id: int) -> User:
    user = get_live(db, User, user_id, label="User")
    if user.id == caller.user_id:
        raise ConflictError("You cannot delete your own account")

    user.soft_delete()
    user.is_active = False
    db.commit()
    return user
