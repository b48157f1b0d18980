# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import (
    user, department, employee, document, document_audit_log,
    document_category_folder, audit_log
)

# Explicit class exports for cleaner imports
from .user import User, UserRole
from .department import Department
from .employee import Employee
from .document import Document, DocumentCategory
from .document_audit_log import DocumentAuditLog, DocumentAction
from .document_category_folder import DocumentCategoryFolder
from .audit_log import AuditLog

__all__ = [
    "User",
    "UserRole",
    "Department",
    "Employee",
    "Document",
    "DocumentCategory",
    "DocumentAuditLog",
    "DocumentAction",
    "DocumentCategoryFolder",
    "AuditLog",
]
