from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import uuid4

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from passlib.exc import UnknownHashError
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from hrms.db import get_db
from hrms.errors import ForbiddenError, InvalidCredentialsError, TokenExpiredError, TokenInvalidError
from hrms.models import Role, User
from hrms.settings import get_settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
bearer_scheme = HTTPBearer(auto_error=False)

JWT_ALGORITHM = "HS256"


@dataclass(frozen=True)
class CallerIdentity:
    """Who is making the request, resolved once per request from the bearer token."""

    user_id: int
    email: str
    role: Role
    employee_id: int | None = None
    department_id: int | None = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return pwd_context.verify(password, password_hash)
    except (ValueError, TypeError, UnknownHashError):
        # Corrupt hashes count as a mismatch.
        return False


def authenticate(db: Session, email: str, password: str) -> User:
    user = db.scalar(
        select(User).where(
            User.email == email.strip().lower(),
            User.deleted_at.is_(None),
        )
    )
    # Unknown, deactivated and wrong-password logins are indistinguishable to the caller.
    if user is None or not user.is_active:
        raise InvalidCredentialsError()
    if not verify_password(password, user.password_hash):
        raise InvalidCredentialsError()
    return user


def create_access_token(user: User) -> tuple[str, int, dict[str, Any]]:
    settings = get_settings()
    now = _utcnow()
    expires_delta = timedelta(hours=settings.access_token_hours)
    claims: dict[str, Any] = {
        "sub": str(user.id),
        "email": user.email,
        "role": Role(user.role).value,
        "employee_id": user.employee_id,
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "iat": int(now.timestamp()),
        "exp": int((now + expires_delta).timestamp()),
        "jti": str(uuid4()),
        "typ": "access",
    }
    token = jwt.encode(claims, settings.jwt_secret, algorithm=JWT_ALGORITHM)
    return token, int(expires_delta.total_seconds()), claims


def decode_token(token: str) -> dict[str, Any]:
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[JWT_ALGORITHM],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
            options={"require_sub": True, "require_iat": True, "require_exp": True},
        )
    except ExpiredSignatureError as exc:
        raise TokenExpiredError() from exc
    except JWTError as exc:
        raise TokenInvalidError() from exc

    if payload.get("typ") != "access":
        raise TokenInvalidError("Token type is invalid.")

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject.isdigit():
        raise TokenInvalidError("Token subject is invalid.")

    return payload


def parse_role(raw: Any) -> Role:
    try:
        return Role(raw)
    except ValueError as exc:
        raise ForbiddenError("Invalid user role.") from exc


def caller_from_user(user: User, *, role: Role | None = None) -> CallerIdentity:
    employee = user.employee if user.employee is not None and user.employee.deleted_at is None else None
    return CallerIdentity(
        user_id=user.id,
        email=user.email,
        role=role if role is not None else parse_role(user.role),
        employee_id=employee.id if employee else None,
        department_id=employee.department_id if employee else None,
    )


def get_current_caller(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> CallerIdentity:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise TokenInvalidError("Missing bearer token.")

    claims = decode_token(credentials.credentials)
    role = parse_role(claims.get("role"))

    user = db.scalar(
        select(User)
        .options(selectinload(User.employee))
        .where(User.id == int(claims["sub"]), User.deleted_at.is_(None))
    )
    if user is None or not user.is_active:
        raise TokenInvalidError("Token subject is no longer active.")

    caller = caller_from_user(user, role=role)
    request.state.actor_id = str(caller.user_id)
    request.state.role = caller.role.value
    return caller
