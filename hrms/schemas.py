import datetime as dt
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from hrms.models import (
    AttendanceStatus,
    EmployeeStatus,
    LeaveStatus,
    LeaveType,
    PayrollStatus,
    Role,
)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class AuthResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: "UserRead"


class LogoutResponse(BaseModel):
    ok: bool


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    role: Role = Role.EMPLOYEE
    is_active: bool = True
    employee_id: int | None = Field(default=None, ge=1)


class UserUpdate(BaseModel):
    email: EmailStr | None = None
    password: str | None = Field(default=None, min_length=8, max_length=128)
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    role: Role | None = None
    is_active: bool | None = None
    employee_id: int | None = Field(default=None, ge=1)


class ProfileUpdate(BaseModel):
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    password: str | None = Field(default=None, min_length=8, max_length=128)


class UserRead(BaseModel):
    id: int
    email: str
    first_name: str
    last_name: str
    role: Role
    is_active: bool
    employee_id: int | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DepartmentCreate(BaseModel):
    name: str = Field(min_length=2, max_length=255)
    description: str | None = None
    manager_id: int | None = Field(default=None, ge=1)


class DepartmentUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=2, max_length=255)
    description: str | None = None
    manager_id: int | None = Field(default=None, ge=1)


class DepartmentRead(BaseModel):
    id: int
    name: str
    description: str | None = None
    manager_id: int | None = None
    manager_name: str | None = None
    employee_count: int = 0


class EmployeeCreate(BaseModel):
    employee_code: str = Field(min_length=1, max_length=50)
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    phone: str | None = Field(default=None, max_length=50)
    address: str | None = Field(default=None, max_length=500)
    date_of_birth: date | None = None
    hire_date: date
    salary: float = Field(ge=0)
    position: str = Field(min_length=1, max_length=255)
    status: EmployeeStatus = EmployeeStatus.ACTIVE
    department_id: int = Field(ge=1)
    manager_id: int | None = Field(default=None, ge=1)


class EmployeeUpdate(BaseModel):
    employee_code: str | None = Field(default=None, min_length=1, max_length=50)
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=50)
    address: str | None = Field(default=None, max_length=500)
    date_of_birth: date | None = None
    hire_date: date | None = None
    salary: float | None = Field(default=None, ge=0)
    position: str | None = Field(default=None, min_length=1, max_length=255)
    status: EmployeeStatus | None = None
    department_id: int | None = Field(default=None, ge=1)
    manager_id: int | None = Field(default=None, ge=1)


class EmployeeRead(BaseModel):
    id: int
    employee_code: str
    first_name: str
    last_name: str
    full_name: str
    email: str
    phone: str | None = None
    address: str | None = None
    date_of_birth: date | None = None
    hire_date: date
    salary: float
    position: str
    status: EmployeeStatus
    department_id: int
    department_name: str | None = None
    manager_id: int | None = None


class AttendanceCreate(BaseModel):
    employee_id: int | None = Field(default=None, ge=1)
    date: dt.date
    check_in: datetime | None = None
    check_out: datetime | None = None
    status: AttendanceStatus = AttendanceStatus.PRESENT
    comments: str | None = None


class AttendanceUpdate(BaseModel):
    date: dt.date | None = None
    check_in: datetime | None = None
    check_out: datetime | None = None
    status: AttendanceStatus | None = None
    comments: str | None = None


class AttendanceRead(BaseModel):
    id: int
    employee_id: int
    employee_name: str | None = None
    date: dt.date
    check_in: datetime | None = None
    check_out: datetime | None = None
    status: AttendanceStatus
    working_hours: float
    comments: str | None = None
    created_at: datetime


class AttendanceReportRow(BaseModel):
    employee_id: int
    employee_name: str
    date: dt.date
    check_in: datetime | None = None
    check_out: datetime | None = None
    working_hours: float
    status: AttendanceStatus


class LeaveCreate(BaseModel):
    employee_id: int | None = Field(default=None, ge=1)
    leave_type: LeaveType
    start_date: date
    end_date: date
    reason: str | None = Field(default=None, max_length=2000)


class LeaveUpdate(BaseModel):
    leave_type: LeaveType | None = None
    start_date: date | None = None
    end_date: date | None = None
    reason: str | None = Field(default=None, max_length=2000)


class LeaveApprovalRequest(BaseModel):
    status: LeaveStatus
    comments: str | None = Field(default=None, max_length=2000)

    @model_validator(mode="after")
    def _decision_only(self) -> "LeaveApprovalRequest":
        if self.status == LeaveStatus.PENDING:
            raise ValueError("status must be approved or rejected")
        return self


class LeaveRead(BaseModel):
    id: int
    employee_id: int
    employee_name: str | None = None
    leave_type: LeaveType
    start_date: date
    end_date: date
    days: int
    reason: str | None = None
    status: LeaveStatus
    approved_by: int | None = None
    approver_name: str | None = None
    approved_at: datetime | None = None
    comments: str | None = None
    created_at: datetime


class PayrollCreate(BaseModel):
    employee_id: int = Field(ge=1)
    pay_period_start: date
    pay_period_end: date
    basic_salary: float = Field(ge=0)
    allowances: float = Field(default=0.0, ge=0)
    deductions: float = Field(default=0.0, ge=0)
    overtime: float = Field(default=0.0, ge=0)
    tax: float = Field(default=0.0, ge=0)
    status: PayrollStatus = PayrollStatus.DRAFT


class PayrollUpdate(BaseModel):
    pay_period_start: date | None = None
    pay_period_end: date | None = None
    basic_salary: float | None = Field(default=None, ge=0)
    allowances: float | None = Field(default=None, ge=0)
    deductions: float | None = Field(default=None, ge=0)
    overtime: float | None = Field(default=None, ge=0)
    tax: float | None = Field(default=None, ge=0)
    status: PayrollStatus | None = None


class PayrollRead(BaseModel):
    id: int
    employee_id: int
    employee_name: str | None = None
    pay_period_start: date
    pay_period_end: date
    basic_salary: float
    allowances: float
    deductions: float
    overtime: float
    tax: float
    gross_pay: float
    net_pay: float
    status: PayrollStatus
    processed_at: datetime | None = None
    paid_at: datetime | None = None
    created_at: datetime


class PayrollReportRow(BaseModel):
    employee_id: int
    employee_name: str
    pay_period_start: date
    pay_period_end: date
    gross_pay: float
    net_pay: float
    status: PayrollStatus


class DeleteResponse(BaseModel):
    ok: bool
    id: int


AuthResponse.model_rebuild()
