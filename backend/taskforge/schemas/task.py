from datetime import datetime, timezone
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from taskforge.models.enums import TaskPriority
from taskforge.schemas.base import CamelModel


class TaskForm(BaseModel):
    """Task fields as submitted in a multipart POST or PUT request."""

    id: str | None = Field(default=None, description="Task ID (PUT only)")
    name: str = Field(default="", description="Task name")
    description: str = Field(default="", description="Task description")
    start_date: datetime | None = Field(default=None, description="Optional start date")
    end_date: datetime | None = Field(default=None, description="Due date")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="Task priority")
    completed: bool | None = Field(default=None, description="Completion flag")

    @field_validator("start_date", "end_date")
    @classmethod
    def assume_utc(cls, value: datetime | None) -> datetime | None:
        """Dates submitted without an offset are taken as UTC."""
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class TaskSummary(CamelModel):
    id: UUID = Field(description="Task unique identifier")
    created_at: datetime = Field(description="Creation timestamp")
    updated_at: datetime = Field(description="Last update timestamp")
    name: str
    description: str
    priority: TaskPriority
    start_date: datetime | None = None
    end_date: datetime
    completed: bool


class TaskDetail(TaskSummary):
    images: list[str] = Field(default_factory=list, description="Public URLs of the task images")


class TaskCreated(CamelModel):
    id: UUID = Field(description="Created task ID")
    created_at: datetime
    updated_at: datetime
    images: list[str] = Field(default_factory=list, description="Public URLs of the task images")


class TaskUpdated(CamelModel):
    id: UUID
    updated_at: datetime
    images: list[str] = Field(default_factory=list, description="Public URLs of the final image set")


class TaskSnapshot(BaseModel):
    """Audit snapshot of a task row."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    owner: str
    name: str
    description: str
    start_date: datetime | None
    end_date: datetime
    priority: TaskPriority
    completed: bool
    image_ids: list[str]
    created_at: datetime
    updated_at: datetime
