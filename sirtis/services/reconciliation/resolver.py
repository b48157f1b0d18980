"""
Entity resolution for a single document.

Department resolution is an ordered chain of small resolver functions; each
returns a DepartmentResolution or None, and the first non-None result wins.
Every function here is pure over the prebuilt LookupIndices.
"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional, TypeVar

from sirtis.models.document import DocumentCategory, UNKNOWN_DEPARTMENT
from sirtis.services.reconciliation.indices import (
    LookupIndices,
    SubUnit,
    normalize,
    top_level_ancestor,
)
from sirtis.services.reconciliation.loader import DocumentRef, EmployeeRef, UserRef

GENERAL_DEPARTMENT = "General"

CATEGORY_DISPLAY_NAMES: Dict[DocumentCategory, str] = {
    DocumentCategory.POLICY: "Policies & Procedures",
    DocumentCategory.PROCEDURE: "Policies & Procedures",
    DocumentCategory.FORM: "Forms & Templates",
    DocumentCategory.REPORT: "Reports",
    DocumentCategory.CONTRACT: "Contracts & Agreements",
    DocumentCategory.INVOICE: "Budget & Financial Documents",
    DocumentCategory.PRESENTATION: "Presentations",
    DocumentCategory.SPREADSHEET: "Data Collection & Analysis",
    DocumentCategory.IMAGE: "Media & Creative Assets",
    DocumentCategory.VIDEO: "Media & Creative Assets",
    DocumentCategory.AUDIO: "Media & Creative Assets",
    DocumentCategory.ARCHIVE: "Archived Records",
    DocumentCategory.OTHER: "General Document",
}

T = TypeVar("T")


@dataclass(frozen=True)
class DepartmentResolution:
    name: str
    subunit: Optional[str] = None
    department_id: Optional[int] = None


@dataclass(frozen=True)
class Uploader:
    user: Optional[UserRef] = None
    employee: Optional[EmployeeRef] = None


@dataclass(frozen=True)
class ResolutionContext:
    document: DocumentRef
    indices: LookupIndices
    uploader: Uploader
    metadata: Dict[str, Any]


@dataclass(frozen=True)
class ResolvedDocument:
    document_id: int
    department: str
    subunit: Optional[str]
    department_id: Optional[int]
    category: DocumentCategory
    category_display: str


def first_success(steps: Iterable[Callable[..., Optional[T]]], *args) -> Optional[T]:
    for step in steps:
        result = step(*args)
        if result is not None:
            return result
    return None


def metadata_as_dict(value: Any) -> Dict[str, Any]:
    """Custom metadata is only trusted when it is a JSON object."""
    return dict(value) if isinstance(value, dict) else {}


# ---------------------------------------------------------------------------
# Uploader identification
# ---------------------------------------------------------------------------

def _user_by_email(uploader: str, document_id: int, indices: LookupIndices) -> Optional[UserRef]:
    if "@" in uploader:
        return indices.user_by_email.get(uploader)
    return None


def _user_by_full_name(uploader: str, document_id: int, indices: LookupIndices) -> Optional[UserRef]:
    if uploader:
        return indices.user_by_full_name.get(uploader)
    return None


def _user_by_id(uploader: str, document_id: int, indices: LookupIndices) -> Optional[UserRef]:
    # isdigit() also accepts superscripts that int() rejects
    if uploader.isdecimal():
        return indices.user_by_id.get(int(uploader))
    return None


def _user_by_audit_actor(uploader: str, document_id: int, indices: LookupIndices) -> Optional[UserRef]:
    actor_id = indices.audit_actor_by_document_id.get(document_id)
    if actor_id is not None:
        return indices.user_by_id.get(actor_id)
    return None


USER_LOOKUPS = (_user_by_email, _user_by_full_name, _user_by_id, _user_by_audit_actor)


def _employee_by_user(user, uploader, document_id, indices: LookupIndices) -> Optional[EmployeeRef]:
    if user is not None:
        return indices.employee_by_user_id.get(user.id)
    return None


def _employee_by_email(user, uploader, document_id, indices: LookupIndices) -> Optional[EmployeeRef]:
    if "@" in uploader:
        return indices.employee_by_email.get(uploader)
    return None


def _employee_by_full_name(user, uploader, document_id, indices: LookupIndices) -> Optional[EmployeeRef]:
    if uploader:
        return indices.employee_by_full_name.get(uploader)
    return None


def _employee_by_audit_actor(user, uploader, document_id, indices: LookupIndices) -> Optional[EmployeeRef]:
    actor_id = indices.audit_actor_by_document_id.get(document_id)
    if actor_id is not None:
        return indices.employee_by_user_id.get(actor_id)
    return None


EMPLOYEE_LOOKUPS = (_employee_by_user, _employee_by_email, _employee_by_full_name, _employee_by_audit_actor)


def identify_uploader(document: DocumentRef, indices: LookupIndices) -> Uploader:
    uploader = normalize(document.uploaded_by)
    user = first_success(USER_LOOKUPS, uploader, document.id, indices)
    employee = first_success(EMPLOYEE_LOOKUPS, user, uploader, document.id, indices)
    return Uploader(user=user, employee=employee)


# ---------------------------------------------------------------------------
# Department resolution chain
# ---------------------------------------------------------------------------

def _retained_subunit(department_name: str, ctx: ResolutionContext) -> Optional[SubUnit]:
    """A sub-unit recorded by an earlier pass, kept while it still belongs to this department."""
    recorded = ctx.metadata.get("subunit")
    if not isinstance(recorded, str) or not recorded.strip():
        return None

    # Sub-unit names repeat across departments; the stored id is authoritative
    department_by_id = ctx.indices.department_by_id
    node = department_by_id.get(ctx.document.department_id) if ctx.document.department_id is not None else None
    if node is not None and node.parent_id is not None and normalize(node.name) == normalize(recorded):
        root = top_level_ancestor(node, department_by_id)
        if root is not None and normalize(root.name) == normalize(department_name):
            return SubUnit(id=node.id, name=node.name, parent_name=root.name)

    subunit = ctx.indices.subunit_by_name.get(normalize(recorded))
    if subunit is not None and normalize(subunit.parent_name) == normalize(department_name):
        return subunit
    return None


def classify_department_name(name: str, ctx: ResolutionContext) -> DepartmentResolution:
    key = normalize(name)

    subunit = ctx.indices.subunit_by_name.get(key)
    if subunit is not None:
        return DepartmentResolution(
            name=subunit.parent_name or name,
            subunit=subunit.name,
            department_id=subunit.id,
        )

    top_level = ctx.indices.top_level_department_by_name.get(key)
    if top_level is not None:
        retained = _retained_subunit(name, ctx)
        if retained is not None:
            return DepartmentResolution(name=name, subunit=retained.name, department_id=retained.id)
        return DepartmentResolution(name=name, department_id=top_level.id)

    # Unknown name: keep it as declared, with whatever reference the document already had
    return DepartmentResolution(name=name, department_id=ctx.document.department_id)


def resolve_department_id(department_id: Optional[int], indices: LookupIndices) -> Optional[DepartmentResolution]:
    if department_id is None:
        return None
    node = indices.department_by_id.get(department_id)
    if node is None:
        return None
    if node.parent_id is None:
        return DepartmentResolution(name=node.name, department_id=node.id)
    root = top_level_ancestor(node, indices.department_by_id)
    return DepartmentResolution(
        name=root.name if root else node.name,
        subunit=node.name,
        department_id=node.id,
    )


def from_declared_department(ctx: ResolutionContext) -> Optional[DepartmentResolution]:
    declared = ctx.document.department
    if not declared or not declared.strip() or declared == UNKNOWN_DEPARTMENT:
        return None
    return classify_department_name(declared, ctx)


def from_uploader_department(ctx: ResolutionContext) -> Optional[DepartmentResolution]:
    user, employee = ctx.uploader.user, ctx.uploader.employee
    candidates = (user.department if user else None, employee.department if employee else None)
    name = next((c.strip() for c in candidates if c and c.strip()), None)
    if name is None:
        return None
    return classify_department_name(name, ctx)


def from_document_department_id(ctx: ResolutionContext) -> Optional[DepartmentResolution]:
    return resolve_department_id(ctx.document.department_id, ctx.indices)


def from_employee_department_id(ctx: ResolutionContext) -> Optional[DepartmentResolution]:
    employee = ctx.uploader.employee
    if employee is None:
        return None
    return resolve_department_id(employee.department_id, ctx.indices)


def general_fallback(ctx: ResolutionContext) -> DepartmentResolution:
    return DepartmentResolution(name=GENERAL_DEPARTMENT)


DEPARTMENT_RESOLVERS = (
    from_declared_department,
    from_uploader_department,
    from_document_department_id,
    from_employee_department_id,
    general_fallback,
)


def resolve_department(ctx: ResolutionContext) -> DepartmentResolution:
    return first_success(DEPARTMENT_RESOLVERS, ctx)


# ---------------------------------------------------------------------------
# Category
# ---------------------------------------------------------------------------

def resolve_category(value: Optional[str]) -> DocumentCategory:
    """Unknown or missing categories collapse to OTHER."""
    if not value or not value.strip():
        return DocumentCategory.OTHER
    try:
        return DocumentCategory(value.strip().upper())
    except ValueError:
        return DocumentCategory.OTHER


def category_display(category: DocumentCategory, metadata: Dict[str, Any]) -> str:
    override = metadata.get("categoryDisplay")
    if isinstance(override, str) and override.strip():
        return override
    return CATEGORY_DISPLAY_NAMES[category]


def resolve_document(document: DocumentRef, indices: LookupIndices) -> ResolvedDocument:
    metadata = metadata_as_dict(document.custom_metadata)
    ctx = ResolutionContext(
        document=document,
        indices=indices,
        uploader=identify_uploader(document, indices),
        metadata=metadata,
    )
    department = resolve_department(ctx)
    category = resolve_category(document.category)
    return ResolvedDocument(
        document_id=document.id,
        department=department.name,
        subunit=department.subunit,
        department_id=department.department_id,
        category=category,
        category_display=category_display(category, metadata),
    )
