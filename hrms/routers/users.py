from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from hrms.audit import audit_caller_action
from hrms.db import get_db
from hrms.policy import require_any_role, require_hr
from hrms.schemas import DeleteResponse, ProfileUpdate, UserCreate, UserRead, UserUpdate
from hrms.security import CallerIdentity, get_current_caller
from hrms.services import users as user_service

router = APIRouter(tags=["users"])


@router.get("/api/v1/users/me", response_model=UserRead)
def get_me(
    caller: CallerIdentity = Depends(get_current_caller),
    db: Session = Depends(get_db),
) -> UserRead:
    return user_service.get_user(db, caller, caller.user_id)


@router.put("/api/v1/users/me", response_model=UserRead)
def update_me(
    payload: ProfileUpdate,
    request: Request,
    caller: CallerIdentity = Depends(get_current_caller),
    db: Session = Depends(get_db),
) -> UserRead:
    user = user_service.update_profile(db, caller, payload)
    audit_caller_action(
        db,
        request,
        caller,
        action="PROFILE_UPDATED",
        entity_type="user",
        entity_id=user.id,
        details={"fields": sorted(payload.model_dump(exclude_unset=True, exclude={"password"}))},
    )
    return user


@router.get("/api/v1/users", response_model=list[UserRead])
def list_users(
    _caller: CallerIdentity = Depends(require_hr),
    db: Session = Depends(get_db),
) -> list[UserRead]:
    return user_service.list_users(db)


@router.post("/api/v1/users", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    request: Request,
    caller: CallerIdentity = Depends(require_hr),
    db: Session = Depends(get_db),
) -> UserRead:
    user = user_service.create_user(db, payload)
    audit_caller_action(
        db,
        request,
        caller,
        action="USER_CREATED",
        entity_type="user",
        entity_id=user.id,
        details={"email": user.email, "user_role": user.role.value, "employee_id": user.employee_id},
    )
    return user


@router.get("/api/v1/users/{user_id}", response_model=UserRead)
def get_user(
    user_id: int,
    caller: CallerIdentity = Depends(require_any_role),
    db: Session = Depends(get_db),
) -> UserRead:
    return user_service.get_user(db, caller, user_id)


@router.put("/api/v1/users/{user_id}", response_model=UserRead)
def update_user(
    user_id: int,
    payload: UserUpdate,
    request: Request,
    caller: CallerIdentity = Depends(require_any_role),
    db: Session = Depends(get_db),
) -> UserRead:
    user = user_service.update_user(db, caller, user_id, payload)
    audit_caller_action(
        db,
        request,
        caller,
        action="USER_UPDATED",
        entity_type="user",
        entity_id=user.id,
        details={"fields": sorted(payload.model_dump(exclude_unset=True, exclude={"password"}))},
    )
    return user


@router.delete("/api/v1/users/{user_id}", response_model=DeleteResponse)
def delete_user(
    user_id: int,
    request: Request,
    caller: CallerIdentity = Depends(require_hr),
    db: Session = Depends(get_db),
) -> DeleteResponse:
    user = user_service.delete_user(db, caller, user_id)
    audit_caller_action(
        db,
        request,
        caller,
        action="USER_DELETED",
        entity_type="user",
        entity_id=user.id,
        details={"email": user.email},
    )
    return DeleteResponse(ok=True, id=user.id)
