"""Upload schemas."""
from pydantic import BaseModel

from app.models.equipment import DocumentKind


class UploadResponse(BaseModel):
    """Result of storing an equipment document."""
    equipment_id: int
    kind: DocumentKind
    url: str
    size: int
    content_type: str
