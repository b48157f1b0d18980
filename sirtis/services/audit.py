from sirtis.services.base import BaseService
from sirtis.models.audit_log import AuditLog
from sqlalchemy.exc import SQLAlchemyError
from typing import Optional

class AuditService(BaseService):
    def log_action(
        self,
        action: str,
        entity_type: str,
        entity_id: Optional[int],
        user_id: Optional[int],
        user_role: Optional[str],
        details: dict,
    ):
        """
        Create a centralized audit log entry.
        Strictly append-only. Flushes but does not commit, so the entry shares
        the caller's transaction.
        """
        try:
            db_log = AuditLog(
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                user_id=user_id,
                user_role=user_role.value if hasattr(user_role, "value") else user_role,
                details=details,
            )
            self.db.add(db_log)
            self.db.flush()
            return db_log
        except SQLAlchemyError as e:
            # Never break the main flow because of an audit failure
            self._logger.error(f"FAILED TO AUDIT LOG: {e}", exc_info=True)
            self.db.rollback()
            return None

    # Convenience wrapper for callers holding only a session
    @staticmethod
    def log(db, *args, **kwargs):
        service = AuditService(db)
        return service.log_action(*args, **kwargs)
