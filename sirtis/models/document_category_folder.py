from sqlalchemy import Column, Integer, String, DateTime, Boolean, JSON
from sqlalchemy.sql import func
from sirtis.database import Base

class DocumentCategoryFolder(Base):
    """
    Derived folder aggregate: one row per canonical folder path.
    Rebuilt by the reconciliation pass, not edited anywhere else.
    """
    __tablename__ = "document_category_folders"

    id = Column(Integer, primary_key=True, index=True)
    path = Column(String, unique=True, index=True, nullable=False)
    department = Column(String, nullable=False)
    category = Column(String, nullable=False)  # "Sub-unit / Category" when a sub-unit applies
    document_count = Column(Integer, default=0, nullable=False)
    # "metadata" is reserved on declarative classes
    folder_metadata = Column("metadata", JSON, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<DocumentCategoryFolder {self.path} ({self.document_count})>"
