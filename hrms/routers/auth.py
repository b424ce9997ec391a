from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from hrms.audit import client_ip, log_audit
from hrms.db import get_db
from hrms.errors import InvalidCredentialsError
from hrms.models import AuditActorType
from hrms.schemas import AuthResponse, LoginRequest, LogoutResponse, UserRead
from hrms.security import authenticate, create_access_token

router = APIRouter(tags=["auth"])


@router.post("/api/v1/auth/login", response_model=AuthResponse)
def login(
    payload: LoginRequest,
    request: Request,
    db: Session = Depends(get_db),
) -> AuthResponse:
    email = str(payload.email).strip().lower()
    ip = client_ip(request)
    user_agent = request.headers.get("user-agent")
    request_id = getattr(request.state, "request_id", None)

    try:
        user = authenticate(db, email, payload.password)
    except InvalidCredentialsError:
        log_audit(
            db,
            actor_type=AuditActorType.SYSTEM,
            actor_id=email,
            action="LOGIN_FAIL",
            success=False,
            ip=ip,
            user_agent=user_agent,
            details={"reason": "INVALID_CREDENTIALS"},
            request_id=request_id,
        )
        raise

    access_token, expires_in, claims = create_access_token(user)
    request.state.actor_id = str(user.id)
    request.state.role = claims["role"]

    log_audit(
        db,
        actor_type=AuditActorType.USER,
        actor_id=str(user.id),
        action="LOGIN_SUCCESS",
        success=True,
        entity_type="user",
        entity_id=str(user.id),
        ip=ip,
        user_agent=user_agent,
        details={"access_jti": claims["jti"], "role": claims["role"]},
        request_id=request_id,
    )

    return AuthResponse(
        access_token=access_token,
        expires_in=expires_in,
        user=UserRead.model_validate(user),
    )


@router.post("/api/v1/auth/logout", response_model=LogoutResponse)
def logout() -> LogoutResponse:
    # Tokens are stateless; clients drop them and they expire on their own.
    return LogoutResponse(ok=True)
