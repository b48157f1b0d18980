from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class ReconcileRequest(BaseModel):
    """Body of the reconcile call; an empty body means a committing run."""
    model_config = ConfigDict(populate_by_name=True)

    dry_run: bool = Field(default=False, alias="dryRun")


class ReconcileExample(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    final_department: str = Field(alias="finalDepartment")
    final_department_id: Optional[int] = Field(default=None, alias="finalDepartmentId")
    final_subunit: Optional[str] = Field(default=None, alias="finalSubunit")
    final_category_enum: str = Field(alias="finalCategoryEnum")
    final_category_display: str = Field(alias="finalCategoryDisplay")
    final_folder_path: str = Field(alias="finalFolderPath")
    changed: bool


class ReconcileResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    dry_run: bool = Field(alias="dryRun")
    total_documents: int = Field(alias="totalDocuments")
    updated_documents: int = Field(alias="updatedDocuments")
    examples: List[ReconcileExample] = []
