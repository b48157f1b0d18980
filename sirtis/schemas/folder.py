from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime


class FolderResponse(BaseModel):
    """A folder aggregate row as exposed to document-library clients."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    path: str
    department: str
    category: str
    document_count: int
    metadata: Optional[dict] = Field(default=None, validation_alias="folder_metadata")
    is_active: bool
    updated_at: Optional[datetime] = None
