from fastapi import APIRouter, Body, Depends, Query, Request
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from sirtis.core.config import settings
from sirtis.core.limiter import limiter
from sirtis.database import get_db
from sirtis.models.document_category_folder import DocumentCategoryFolder
from sirtis.models.user import User
from sirtis.routers.auth_deps import get_current_user, require_admin
from sirtis.schemas.folder import FolderResponse
from sirtis.schemas.reconciliation import ReconcileExample, ReconcileRequest, ReconcileResponse
from sirtis.services.reconciliation import DocumentReconciliationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["documents"])


@router.post("/reconcile", response_model=ReconcileResponse)
@limiter.limit(settings.reconcile_rate_limit)
def reconcile_documents(
    request: Request,
    payload: Optional[ReconcileRequest] = Body(default=None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin()),
):
    """
    Normalize department, sub-unit and category on every document and rebuild
    the folder aggregates. With dryRun the result is computed but nothing is saved.
    """
    dry_run = payload.dry_run if payload else False
    logger.info(f"Reconciliation requested by {current_user.email} (dry_run={dry_run})")

    result = DocumentReconciliationService(db).reconcile(dry_run=dry_run, actor=current_user)

    return ReconcileResponse(
        success=True,
        dry_run=result.dry_run,
        total_documents=result.total_documents,
        updated_documents=result.updated_documents,
        examples=[ReconcileExample(**record.to_example()) for record in result.examples],
    )


@router.get("/folders", response_model=List[FolderResponse])
def list_folders(
    include_inactive: bool = Query(False, description="Also list folders with no documents left"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    List the folder aggregates built by the last reconciliation.
    """
    query = db.query(DocumentCategoryFolder)
    if not include_inactive:
        query = query.filter(DocumentCategoryFolder.is_active.is_(True))
    return query.order_by(DocumentCategoryFolder.path).all()
