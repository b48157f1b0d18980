from .service import DocumentReconciliationService, ReconciliationResult, resolve_records

__all__ = [
    "DocumentReconciliationService",
    "ReconciliationResult",
    "resolve_records",
]
