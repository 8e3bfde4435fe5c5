from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class CompanyDocumentResponse(BaseModel):
    id: UUID
    file_name: str
    file_url: str
    file_type: str | None
    uploaded_by_id: UUID | None
    category: str
    sub_category: str
    uploaded_at: datetime

    model_config = {"from_attributes": True}


class DocumentCategoryUpdate(BaseModel):
    category: str
    sub_category: str
