"""
Document Department/Category Reconciliation.

Normalizes the owning department, sub-unit and category of every document and
rebuilds the folder-aggregate index.

Flow:
- load reference data (read only)
- build lookup indices and resolve each document in memory
- dry run: stop here and report
- commit: write changed documents (one transaction), then rebuild folder
  aggregates (a second transaction)

Any database failure is logged with its cause and surfaced as a
ReconciliationError carrying only a generic message.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from sirtis.core.exceptions import ReconciliationError
from sirtis.models.user import User
from sirtis.services.audit import AuditService
from sirtis.services.base import BaseService
from sirtis.services.reconciliation.folders import ReconcileRecord, build_record
from sirtis.services.reconciliation.indices import build_indices
from sirtis.services.reconciliation.loader import ReferenceData, load_reference_data
from sirtis.services.reconciliation.persistence import apply_document_updates, rebuild_folder_aggregates
from sirtis.services.reconciliation.resolver import resolve_document

logger = logging.getLogger(__name__)

EXAMPLE_LIMIT = 5


@dataclass
class ReconciliationResult:
    dry_run: bool
    total_documents: int
    updated_documents: int
    examples: List[ReconcileRecord] = field(default_factory=list)
    folder_count: Optional[int] = None


def resolve_records(reference: ReferenceData, reconciled_at: str) -> List[ReconcileRecord]:
    """Pure resolution step: same reference data in, same records out."""
    indices = build_indices(reference)
    return [
        build_record(document, resolve_document(document, indices), reconciled_at)
        for document in reference.documents
    ]


class DocumentReconciliationService(BaseService):

    def __init__(self, db: Session, example_limit: int = EXAMPLE_LIMIT):
        super().__init__(db)
        self.example_limit = example_limit

    def reconcile(self, dry_run: bool = False, actor: Optional[User] = None) -> ReconciliationResult:
        self.log_info(f"Document reconciliation started (dry_run={dry_run})")

        try:
            reference = load_reference_data(self.db)
        except SQLAlchemyError:
            logger.exception("Document reconciliation failed while loading reference data")
            self.db.rollback()
            raise ReconciliationError("read")

        reconciled_at = datetime.now(timezone.utc).isoformat()
        records = resolve_records(reference, reconciled_at)
        updated = sum(1 for record in records if record.changed)
        self.log_info(f"Resolved {len(records)} documents, {updated} need updating")

        folder_count = None
        if not dry_run:
            try:
                apply_document_updates(self.db, records)
            except SQLAlchemyError:
                logger.exception("Document reconciliation failed while updating documents")
                raise ReconciliationError("write")

            try:
                folder_count = rebuild_folder_aggregates(self.db, records)
            except SQLAlchemyError:
                logger.exception("Document reconciliation failed while rebuilding folder aggregates")
                raise ReconciliationError("aggregate")

        result = ReconciliationResult(
            dry_run=dry_run,
            total_documents=len(records),
            updated_documents=updated,
            examples=records[:self.example_limit],
            folder_count=folder_count,
        )
        self._record_audit(result, actor)
        self.log_info(
            f"Document reconciliation finished: {result.total_documents} examined, "
            f"{result.updated_documents} {'would change' if dry_run else 'updated'}"
        )
        return result

    def _record_audit(self, result: ReconciliationResult, actor: Optional[User]):
        entry = AuditService.log(
            self.db,
            action="reconcile_documents",
            entity_type="document",
            entity_id=None,
            user_id=actor.id if actor else None,
            user_role=actor.role if actor else "system",
            details={
                "dry_run": result.dry_run,
                "total_documents": result.total_documents,
                "updated_documents": result.updated_documents,
                "folder_count": result.folder_count,
            },
        )
        if entry is None:
            return
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            # The pass itself already succeeded; only the audit entry is lost
            logger.error(f"Failed to commit reconciliation audit entry: {e}", exc_info=True)
            self.db.rollback()
