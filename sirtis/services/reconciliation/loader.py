"""
Reference data for a reconciliation pass.

Everything the resolver needs is read up front with fixed projections, so the
resolution step itself never touches the database.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

from sqlalchemy.orm import Session

from sirtis.models.department import Department
from sirtis.models.document import Document
from sirtis.models.document_audit_log import DocumentAuditLog, CREATION_ACTIONS
from sirtis.models.employee import Employee
from sirtis.models.user import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentRef:
    id: int
    department: Optional[str]
    department_id: Optional[int]
    category: Optional[str]
    folder_path: Optional[str]
    custom_metadata: Any
    uploaded_by: Optional[str]


@dataclass(frozen=True)
class DepartmentRef:
    id: int
    name: str
    parent_id: Optional[int]


@dataclass(frozen=True)
class UserRef:
    id: int
    email: Optional[str]
    first_name: Optional[str]
    last_name: Optional[str]
    department: Optional[str]


@dataclass(frozen=True)
class EmployeeRef:
    user_id: Optional[int]
    email: Optional[str]
    department: Optional[str]
    department_id: Optional[int]
    first_name: Optional[str]
    last_name: Optional[str]


@dataclass(frozen=True)
class AuditEntryRef:
    document_id: int
    user_id: Optional[int]
    action: str


@dataclass
class ReferenceData:
    documents: List[DocumentRef] = field(default_factory=list)
    departments: List[DepartmentRef] = field(default_factory=list)
    users: List[UserRef] = field(default_factory=list)
    employees: List[EmployeeRef] = field(default_factory=list)
    audit_entries: List[AuditEntryRef] = field(default_factory=list)


def load_reference_data(db: Session) -> ReferenceData:
    """
    Read the full corpus needed for resolution. No pagination: this is a
    maintenance operation over every document.

    Database errors propagate to the caller untouched.
    """
    documents = [
        DocumentRef(**row._asdict())
        for row in db.query(
            Document.id,
            Document.department,
            Document.department_id,
            Document.category,
            Document.folder_path,
            Document.custom_metadata,
            Document.uploaded_by,
        ).order_by(Document.id).all()
    ]

    departments = [
        DepartmentRef(**row._asdict())
        for row in db.query(Department.id, Department.name, Department.parent_id).order_by(Department.id).all()
    ]

    users = [
        UserRef(**row._asdict())
        for row in db.query(
            User.id, User.email, User.first_name, User.last_name, User.department
        ).order_by(User.id).all()
    ]

    employees = [
        EmployeeRef(**row._asdict())
        for row in db.query(
            Employee.user_id,
            Employee.email,
            Employee.department,
            Employee.department_id,
            Employee.first_name,
            Employee.last_name,
        ).order_by(Employee.id).all()
    ]

    # Oldest first so "first actor seen" means the original uploader
    audit_entries = [
        AuditEntryRef(**row._asdict())
        for row in db.query(
            DocumentAuditLog.document_id, DocumentAuditLog.user_id, DocumentAuditLog.action
        ).filter(
            DocumentAuditLog.action.in_(CREATION_ACTIONS)
        ).order_by(DocumentAuditLog.timestamp, DocumentAuditLog.id).all()
    ]

    logger.info(
        f"Loaded reconciliation reference data: {len(documents)} documents, "
        f"{len(departments)} departments, {len(users)} users, {len(employees)} employees, "
        f"{len(audit_entries)} creation audit entries"
    )

    return ReferenceData(
        documents=documents,
        departments=departments,
        users=users,
        employees=employees,
        audit_entries=audit_entries,
    )
