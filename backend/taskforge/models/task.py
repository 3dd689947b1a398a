from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from taskforge.models.base import Base, JSONDocument, TimestampMixin, UUIDMixin
from taskforge.models.enums import TaskPriority


class Task(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "tasks"

    # Subject claim of the identity that created the task
    owner: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    priority: Mapped[TaskPriority] = mapped_column(
        Enum(TaskPriority, name="task_priority", native_enum=False, length=20),
        default=TaskPriority.MEDIUM,
        nullable=False,
    )
    completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Ordered references into the image registry. Images are shared between
    # tasks, so this is a plain id list rather than an owning relationship.
    # Always reassign the whole list; in-place mutation is not tracked.
    image_ids: Mapped[list[str]] = mapped_column(JSONDocument, default=list, nullable=False)
