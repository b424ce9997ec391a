from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone

from hrms.errors import PayloadValidationError


@dataclass(frozen=True)
class PayTotals:
    gross_pay: float
    net_pay: float


def normalize_ts(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def calculate_leave_days(start_date: date, end_date: date) -> int:
    """Inclusive day count: a leave starting and ending on the same day is one day."""
    if end_date < start_date:
        raise PayloadValidationError("end_date must be greater than or equal to start_date")
    return (end_date - start_date).days + 1


def calculate_working_hours(check_in: datetime | None, check_out: datetime | None) -> float:
    if check_in is None or check_out is None:
        return 0.0
    start = normalize_ts(check_in)
    end = normalize_ts(check_out)
    if end < start:
        raise PayloadValidationError("check_out must not be earlier than check_in")
    return (end - start).total_seconds() / 3600


def calculate_pay(
    *,
    basic_salary: float,
    allowances: float,
    overtime: float,
    deductions: float,
    tax: float,
) -> PayTotals:
    gross_pay = basic_salary + allowances + overtime
    return PayTotals(gross_pay=gross_pay, net_pay=gross_pay - deductions - tax)


def validate_period(start: date, end: date) -> None:
    if end < start:
        raise PayloadValidationError("pay_period_end must be greater than or equal to pay_period_start")
