from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import Field

from taskforge.models.enums import LogType
from taskforge.schemas.base import CamelModel


class LogEntry(CamelModel):
    id: UUID
    type: LogType
    user: str
    user_ip: str
    model: str
    previous_data: dict[str, Any] | None = Field(default=None, description="State before the change")
    current_data: dict[str, Any] | None = Field(default=None, description="State after the change")
    created_at: datetime
