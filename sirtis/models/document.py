from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Boolean, JSON
from sqlalchemy.sql import func
from sirtis.database import Base
import enum

UNKNOWN_DEPARTMENT = "Unknown Department"

class DocumentCategory(str, enum.Enum):
    POLICY = "POLICY"
    PROCEDURE = "PROCEDURE"
    FORM = "FORM"
    REPORT = "REPORT"
    CONTRACT = "CONTRACT"
    INVOICE = "INVOICE"
    PRESENTATION = "PRESENTATION"
    SPREADSHEET = "SPREADSHEET"
    IMAGE = "IMAGE"
    VIDEO = "VIDEO"
    AUDIO = "AUDIO"
    ARCHIVE = "ARCHIVE"
    OTHER = "OTHER"

class Document(Base):
    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, index=True)
    filename = Column(String, index=True)
    file_path = Column(String)
    file_type = Column(String)
    upload_date = Column(DateTime(timezone=True), server_default=func.now())
    # Email, display name or numeric user id, depending on the upload path
    uploaded_by = Column(String, nullable=True)

    department = Column(String, nullable=True)  # may hold the UNKNOWN_DEPARTMENT placeholder
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=True, index=True)
    category = Column(String, nullable=True)  # DocumentCategory value stored as string for SQLite
    folder_path = Column(String, nullable=True, index=True)
    custom_metadata = Column(JSON, nullable=True)
    is_personal_repo = Column(Boolean, default=False, nullable=False)
