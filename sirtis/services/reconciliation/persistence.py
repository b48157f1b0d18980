"""
Write phase and folder-aggregate rebuild.

Each function is one transaction: it commits on success and rolls back and
re-raises on any failure, so a phase is never partially applied.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from sirtis.models.document import Document
from sirtis.models.document_category_folder import DocumentCategoryFolder
from sirtis.services.reconciliation.folders import ReconcileRecord

logger = logging.getLogger(__name__)

# Keeps IN (...) lists under SQLite's bound-parameter limit
UPDATE_BATCH_SIZE = 500


@dataclass
class FolderAggregate:
    department: str
    category: str
    subunit: Optional[str]
    category_display: str
    count: int = 0


def aggregate_folders(records: Sequence[ReconcileRecord]) -> Dict[str, FolderAggregate]:
    """Group every record (changed or not) by its final folder path."""
    aggregates: Dict[str, FolderAggregate] = {}
    for record in records:
        aggregate = aggregates.get(record.final_folder_path)
        if aggregate is None:
            aggregate = FolderAggregate(
                department=record.final_department,
                category=record.folder_category,
                subunit=record.final_subunit,
                category_display=record.final_category_display,
            )
            aggregates[record.final_folder_path] = aggregate
        aggregate.count += 1
    return aggregates


def apply_document_updates(db: Session, records: Sequence[ReconcileRecord]) -> int:
    """Persist every changed record in a single transaction. Returns the number written."""
    pending = {record.id: record for record in records if record.changed}
    if not pending:
        logger.info("No documents need updating; skipping write phase")
        return 0

    ids: List[int] = list(pending)
    try:
        for start in range(0, len(ids), UPDATE_BATCH_SIZE):
            batch = ids[start:start + UPDATE_BATCH_SIZE]
            for document in db.query(Document).filter(Document.id.in_(batch)).all():
                record = pending[document.id]
                document.department = record.final_department
                if record.final_department_id is not None:
                    document.department_id = record.final_department_id
                document.category = record.final_category_enum
                document.folder_path = record.final_folder_path
                document.custom_metadata = record.final_metadata
                # Reconciled documents always live in the shared namespace
                document.is_personal_repo = False
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"Updated {len(pending)} documents")
    return len(pending)


def rebuild_folder_aggregates(db: Session, records: Sequence[ReconcileRecord]) -> int:
    """
    Upsert one DocumentCategoryFolder per distinct folder path.

    Rows for paths that no longer hold any document are zeroed and deactivated,
    so every row's count matches the current documents. Returns the number of
    active folders.
    """
    aggregates = aggregate_folders(records)
    try:
        existing = {folder.path: folder for folder in db.query(DocumentCategoryFolder).all()}

        for path, aggregate in aggregates.items():
            folder = existing.pop(path, None)
            if folder is None:
                folder = DocumentCategoryFolder(path=path)
                db.add(folder)
            folder.department = aggregate.department
            folder.category = aggregate.category
            folder.document_count = aggregate.count
            folder.folder_metadata = {
                "subunit": aggregate.subunit,
                "categoryDisplay": aggregate.category_display,
            }
            folder.is_active = True

        for stale in existing.values():
            if stale.document_count or stale.is_active:
                stale.document_count = 0
                stale.is_active = False

        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"Rebuilt {len(aggregates)} folder aggregates ({len(existing)} retired)")
    return len(aggregates)
