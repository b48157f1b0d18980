"""
Canonical folder paths, merged metadata and change detection.
"""
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from sirtis.models.document import DocumentCategory
from sirtis.services.reconciliation.loader import DocumentRef
from sirtis.services.reconciliation.resolver import ResolvedDocument, metadata_as_dict

RECONCILED_AT_KEY = "reconciledAt"


def build_folder_path(department: str, subunit: Optional[str], category_display: str) -> str:
    parts = [department]
    if subunit:
        parts.append(subunit)
    parts.append(category_display)
    return "/".join(parts)


def folder_category_label(subunit: Optional[str], category_display: str) -> str:
    """Label stored on the folder aggregate, e.g. "Payroll / Reports"."""
    return f"{subunit} / {category_display}" if subunit else category_display


def merge_metadata(base: Any, patch: Dict[str, Any]) -> Dict[str, Any]:
    return {**metadata_as_dict(base), **patch}


def canonical_metadata(value: Any) -> str:
    """
    Stable string form used to decide whether metadata changed.
    The reconciliation timestamp is ignored so an unchanged document stays unchanged.
    """
    if isinstance(value, dict):
        value = {k: v for k, v in value.items() if k != RECONCILED_AT_KEY}
    return json.dumps(value, sort_keys=True, default=str)


@dataclass
class ReconcileRecord:
    id: int
    final_department: str
    final_department_id: Optional[int]
    final_subunit: Optional[str]
    final_category_enum: str
    final_category_display: str
    final_folder_path: str
    final_metadata: Dict[str, Any] = field(repr=False)
    changed: bool

    @property
    def folder_category(self) -> str:
        return folder_category_label(self.final_subunit, self.final_category_display)

    def to_example(self) -> Dict[str, Any]:
        """Resolved fields only; the merged metadata carries a per-run timestamp."""
        return {
            "id": self.id,
            "final_department": self.final_department,
            "final_department_id": self.final_department_id,
            "final_subunit": self.final_subunit,
            "final_category_enum": self.final_category_enum,
            "final_category_display": self.final_category_display,
            "final_folder_path": self.final_folder_path,
            "changed": self.changed,
        }


def build_record(document: DocumentRef, resolved: ResolvedDocument, reconciled_at: str) -> ReconcileRecord:
    folder_path = build_folder_path(resolved.department, resolved.subunit, resolved.category_display)
    final_metadata = merge_metadata(document.custom_metadata, {
        RECONCILED_AT_KEY: reconciled_at,
        "department": resolved.department,
        "subunit": resolved.subunit,
        "categoryDisplay": resolved.category_display,
    })
    current_metadata = document.custom_metadata if document.custom_metadata is not None else {}

    changed = (
        resolved.department != document.department
        or resolved.category.value != (document.category or DocumentCategory.OTHER.value)
        or folder_path != (document.folder_path or "")
        or canonical_metadata(final_metadata) != canonical_metadata(current_metadata)
    )

    return ReconcileRecord(
        id=document.id,
        final_department=resolved.department,
        final_department_id=resolved.department_id,
        final_subunit=resolved.subunit,
        final_category_enum=resolved.category.value,
        final_category_display=resolved.category_display,
        final_folder_path=folder_path,
        final_metadata=final_metadata,
        changed=changed,
    )
