from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse


class ApiError(Exception):
    def __init__(self, status_code: int, code: str, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message


class InvalidCredentialsError(ApiError):
    def __init__(self, message: str = "Invalid credentials."):
        super().__init__(status_code=401, code="INVALID_CREDENTIALS", message=message)


class TokenInvalidError(ApiError):
    def __init__(self, message: str = "Token is invalid."):
        super().__init__(status_code=401, code="INVALID_TOKEN", message=message)


class TokenExpiredError(ApiError):
    def __init__(self, message: str = "Token has expired."):
        super().__init__(status_code=401, code="TOKEN_EXPIRED", message=message)


class ForbiddenError(ApiError):
    def __init__(self, message: str = "Insufficient permissions."):
        super().__init__(status_code=403, code="FORBIDDEN", message=message)


class PolicyViolationError(ApiError):
    """The caller's role needs a linked employee record that does not exist."""

    def __init__(self, message: str):
        super().__init__(status_code=403, code="POLICY_VIOLATION", message=message)


class NotFoundError(ApiError):
    def __init__(self, message: str):
        super().__init__(status_code=404, code="NOT_FOUND", message=message)


class ConflictError(ApiError):
    def __init__(self, message: str):
        super().__init__(status_code=409, code="CONFLICT", message=message)


class PayloadValidationError(ApiError):
    def __init__(self, message: str):
        super().__init__(status_code=422, code="VALIDATION_ERROR", message=message)


def get_request_id(request: Request) -> str:
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        return str(request_id)
    return "unknown"


def error_response(request: Request, *, status_code: int, code: str, message: str) -> JSONResponse:
    payload = {
        "error": {
            "code": code,
            "message": message,
            "request_id": get_request_id(request),
        }
    }
    return JSONResponse(status_code=status_code, content=payload)
