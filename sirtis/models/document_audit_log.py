from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON
from sqlalchemy.sql import func
from sirtis.database import Base
import enum

class DocumentAction(str, enum.Enum):
    CREATED = "CREATED"
    UPLOADED = "UPLOADED"
    UPDATED = "UPDATED"
    VIEWED = "VIEWED"
    DOWNLOADED = "DOWNLOADED"
    DELETED = "DELETED"

CREATION_ACTIONS = [DocumentAction.CREATED.value, DocumentAction.UPLOADED.value]

class DocumentAuditLog(Base):
    __tablename__ = "document_audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    document_id = Column(Integer, ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    action = Column(String, nullable=False, index=True)
    details = Column(JSON, nullable=True)
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), index=True)
