"""
Normalized lookup indices over the reference data.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from sirtis.services.reconciliation.loader import (
    ReferenceData,
    DepartmentRef,
    UserRef,
    EmployeeRef,
)

logger = logging.getLogger(__name__)


def normalize(value: Optional[str]) -> str:
    """Trim and lower-case; None becomes the empty string."""
    return value.strip().lower() if value else ""


def full_name(first_name: Optional[str], last_name: Optional[str]) -> str:
    return f"{first_name or ''} {last_name or ''}".strip()


@dataclass(frozen=True)
class TopLevelDepartment:
    id: int
    name: str


@dataclass(frozen=True)
class SubUnit:
    id: int
    name: str
    parent_name: Optional[str]


@dataclass
class LookupIndices:
    department_by_id: Dict[int, DepartmentRef] = field(default_factory=dict)
    top_level_department_by_name: Dict[str, TopLevelDepartment] = field(default_factory=dict)
    subunit_by_name: Dict[str, SubUnit] = field(default_factory=dict)
    user_by_id: Dict[int, UserRef] = field(default_factory=dict)
    user_by_email: Dict[str, UserRef] = field(default_factory=dict)
    user_by_full_name: Dict[str, UserRef] = field(default_factory=dict)
    employee_by_email: Dict[str, EmployeeRef] = field(default_factory=dict)
    employee_by_full_name: Dict[str, EmployeeRef] = field(default_factory=dict)
    employee_by_user_id: Dict[int, EmployeeRef] = field(default_factory=dict)
    audit_actor_by_document_id: Dict[int, int] = field(default_factory=dict)


def top_level_ancestor(
    department: DepartmentRef,
    department_by_id: Dict[int, DepartmentRef],
) -> Optional[DepartmentRef]:
    """
    Walk parent links up to the department that has no parent.

    Deeper-than-two hierarchies are flattened onto their root. Returns None
    when a parent is missing or the chain loops.
    """
    seen = {department.id}
    current = department_by_id.get(department.parent_id) if department.parent_id is not None else None
    while current is not None:
        if current.id in seen:
            return None
        if current.parent_id is None:
            return current
        seen.add(current.id)
        current = department_by_id.get(current.parent_id)
    return None


def build_indices(reference: ReferenceData) -> LookupIndices:
    indices = LookupIndices()

    for dept in reference.departments:
        indices.department_by_id[dept.id] = dept

    nested = 0
    for dept in reference.departments:
        key = normalize(dept.name)
        if not key:
            continue
        if dept.parent_id is None:
            indices.top_level_department_by_name[key] = TopLevelDepartment(id=dept.id, name=dept.name)
        else:
            parent = indices.department_by_id.get(dept.parent_id)
            if parent is not None and parent.parent_id is not None:
                nested += 1
            root = top_level_ancestor(dept, indices.department_by_id)
            indices.subunit_by_name[key] = SubUnit(
                id=dept.id,
                name=dept.name,
                parent_name=root.name if root else None,
            )
    if nested:
        logger.warning(
            f"{nested} department(s) sit deeper than two levels; "
            "they are filed under their top-level ancestor"
        )

    for user in reference.users:
        indices.user_by_id[user.id] = user
        if user.email:
            indices.user_by_email[normalize(user.email)] = user
        name_key = normalize(full_name(user.first_name, user.last_name))
        if name_key:
            indices.user_by_full_name[name_key] = user

    for employee in reference.employees:
        if employee.email:
            indices.employee_by_email[normalize(employee.email)] = employee
        name_key = normalize(full_name(employee.first_name, employee.last_name))
        if name_key:
            indices.employee_by_full_name[name_key] = employee
        if employee.user_id is not None:
            indices.employee_by_user_id[employee.user_id] = employee

    for entry in reference.audit_entries:
        if entry.user_id is not None and entry.document_id not in indices.audit_actor_by_document_id:
            indices.audit_actor_by_document_id[entry.document_id] = entry.user_id

    return indices
