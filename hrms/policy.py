"""Central access policy: route gates, ownership checks and collection scoping.

Every rule about who may see or change which rows lives here. Services call
these helpers with an explicit :class:`CallerIdentity` instead of comparing
role strings themselves.
"""

from __future__ import annotations

import enum
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from fastapi import Depends
from sqlalchemy import Select, select
from sqlalchemy.orm import InstrumentedAttribute

from hrms.errors import ForbiddenError, PolicyViolationError
from hrms.models import Employee, Role
from hrms.security import CallerIdentity, get_current_caller

HR_ROLES: frozenset[Role] = frozenset({Role.HR, Role.ADMIN})
MANAGER_ROLES: frozenset[Role] = HR_ROLES | {Role.MANAGER}
ALL_ROLES: frozenset[Role] = MANAGER_ROLES | {Role.EMPLOYEE}


class ResourceKind(str, enum.Enum):
    ATTENDANCE = "attendance"
    LEAVE = "leave"
    PAYROLL = "payroll"


class ScopeKind(str, enum.Enum):
    ALL = "all"
    DEPARTMENT = "department"
    EMPLOYEE = "employee"


@dataclass(frozen=True)
class CollectionScope:
    kind: ScopeKind
    department_id: int | None = None
    employee_id: int | None = None

    def apply(self, stmt: Select[Any], owner_column: InstrumentedAttribute[int]) -> Select[Any]:
        """Restrict ``stmt`` to rows whose owning employee falls inside the scope."""
        if self.kind is ScopeKind.ALL:
            return stmt
        if self.kind is ScopeKind.DEPARTMENT:
            department_members = select(Employee.id).where(Employee.department_id == self.department_id)
            return stmt.where(owner_column.in_(department_members))
        return stmt.where(owner_column == self.employee_id)

    def permits(self, owner: Employee) -> bool:
        if self.kind is ScopeKind.ALL:
            return True
        if self.kind is ScopeKind.DEPARTMENT:
            return owner.department_id == self.department_id
        return owner.id == self.employee_id


MATCH_ALL = CollectionScope(kind=ScopeKind.ALL)


def is_hr(caller: CallerIdentity) -> bool:
    return caller.role in HR_ROLES


def require_role(role: Role, allowed: Iterable[Role]) -> None:
    if role not in frozenset(allowed):
        raise ForbiddenError("Insufficient permissions for this operation.")


def require_linked_employee(caller: CallerIdentity, *, message: str | None = None) -> int:
    if caller.employee_id is None:
        raise PolicyViolationError(message or "User must be associated with an employee record.")
    return caller.employee_id


def scope_collection(caller: CallerIdentity, resource_kind: ResourceKind) -> CollectionScope:
    if caller.role in HR_ROLES:
        return MATCH_ALL
    if caller.role is Role.MANAGER:
        require_linked_employee(caller, message="Manager has no employee record.")
        return CollectionScope(kind=ScopeKind.DEPARTMENT, department_id=caller.department_id)
    if caller.role is Role.EMPLOYEE:
        employee_id = require_linked_employee(caller)
        return CollectionScope(kind=ScopeKind.EMPLOYEE, employee_id=employee_id)
    raise ForbiddenError(f"Role cannot access {resource_kind.value} records.")


def department_scope(caller: CallerIdentity, resource_kind: ResourceKind) -> CollectionScope:
    """Scope to the caller's own department whatever their role (report views)."""
    require_linked_employee(
        caller,
        message=f"A {resource_kind.value} report requires an employee record.",
    )
    return CollectionScope(kind=ScopeKind.DEPARTMENT, department_id=caller.department_id)


def require_owner_or_hr(caller: CallerIdentity, owner_employee_id: int) -> None:
    if caller.role in HR_ROLES:
        return
    if caller.employee_id is not None and caller.employee_id == owner_employee_id:
        return
    raise ForbiddenError("You can only access your own records.")


def require_self_or_hr(caller: CallerIdentity, user_id: int) -> None:
    if caller.role in HR_ROLES:
        return
    if caller.user_id == user_id:
        return
    raise ForbiddenError("You can only access your own data.")


def require_roles(*roles: Role) -> Callable[..., CallerIdentity]:
    allowed = frozenset(roles)
    if not allowed:
        raise ValueError("At least one role is required.")

    def _dependency(caller: CallerIdentity = Depends(get_current_caller)) -> CallerIdentity:
        require_role(caller.role, allowed)
        return caller

    return _dependency


require_hr = require_roles(*HR_ROLES)
require_manager = require_roles(*MANAGER_ROLES)
require_any_role = require_roles(*ALL_ROLES)
