from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class ImageSnapshot(BaseModel):
    """Audit snapshot of an image registry row."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    hash: str
    key: str
    url: str
    content_type: str
    size_bytes: int
    created_at: datetime
    updated_at: datetime
