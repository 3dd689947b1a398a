from typing import Any

from sqlalchemy import Enum, String
from sqlalchemy.orm import Mapped, mapped_column

from taskforge.models.base import Base, JSONDocument, TimestampMixin, UUIDMixin
from taskforge.models.enums import LogType


class Log(Base, UUIDMixin, TimestampMixin):
    """Audit record of a single insert, update or delete. Never modified after insert."""

    __tablename__ = "logs"

    type: Mapped[LogType] = mapped_column(
        Enum(LogType, name="log_type", native_enum=False, length=20), nullable=False
    )
    user: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    user_ip: Mapped[str] = mapped_column(String(64), nullable=False)
    model: Mapped[str] = mapped_column(String(100), nullable=False)
    previous_data: Mapped[dict[str, Any] | None] = mapped_column(JSONDocument, nullable=True)
    current_data: Mapped[dict[str, Any] | None] = mapped_column(JSONDocument, nullable=True)
