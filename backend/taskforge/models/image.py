from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from taskforge.models.base import Base, TimestampMixin, UUIDMixin


class Image(Base, UUIDMixin, TimestampMixin):
    """An uploaded image, deduplicated by the hash of its content."""

    __tablename__ = "images"

    hash: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    key: Mapped[str] = mapped_column(String(255), nullable=False)
    url: Mapped[str] = mapped_column(String(2048), nullable=False)
    content_type: Mapped[str] = mapped_column(String(100), nullable=False)
    size_bytes: Mapped[int] = mapped_column(Integer, nullable=False)
