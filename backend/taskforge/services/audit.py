"""Audit log writer.

Entries are added to the caller's session and committed with the entity they
describe, so a failed commit drops both together.
"""

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from taskforge.models.enums import LogType
from taskforge.models.log import Log

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Actor:
    """Who performed a mutation, and from where."""

    user_id: str
    ip: str


class AuditLog:
    def __init__(self, db: Session, actor: Actor):
        self.db = db
        self.actor = actor

    def register(
        self,
        type: LogType,
        model: str,
        previous: dict[str, Any] | None = None,
        current: dict[str, Any] | None = None,
    ) -> Log:
        entry = Log(
            type=type,
            user=self.actor.user_id,
            user_ip=self.actor.ip,
            model=model,
            previous_data=previous,
            current_data=current,
        )
        self.db.add(entry)
        logger.debug(f"Audit {type.value} {model} by {self.actor.user_id}")
        return entry

    def inserted(self, model: str, current: dict[str, Any]) -> Log:
        return self.register(LogType.INSERT, model, current=current)

    def updated(self, model: str, previous: dict[str, Any], current: dict[str, Any]) -> Log:
        return self.register(LogType.UPDATE, model, previous=previous, current=current)

    def deleted(self, model: str, previous: dict[str, Any]) -> Log:
        return self.register(LogType.DELETE, model, previous=previous)

    def history(self, model: str | None = None, limit: int = 50) -> list[Log]:
        """Return the actor's own entries, newest first."""
        query = select(Log).where(Log.user == self.actor.user_id)
        if model is not None:
            query = query.where(Log.model == model)
        return list(self.db.scalars(query.order_by(Log.created_at.desc()).limit(limit)))
