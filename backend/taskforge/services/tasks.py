"""Task lifecycle: validation, image resolution, persistence and audit.

All writes are staged on the request's session and committed together by the
`get_db` dependency once the workflow returns.
"""

import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from taskforge.errors import DependencyError, NotFoundError, ValidationError
from taskforge.models.base import utcnow
from taskforge.models.image import Image
from taskforge.models.task import Task
from taskforge.schemas.task import TaskForm, TaskSnapshot
from taskforge.services.audit import Actor, AuditLog
from taskforge.services.blob_store import BlobStore
from taskforge.services.images import (
    Attachment,
    ImageRegistry,
    diff_images,
    fingerprint,
    non_empty,
    validate_attachments,
)

logger = logging.getLogger(__name__)

TASK_MODEL = "Task"


def _parse_id(value: str | None) -> UUID | None:
    try:
        return UUID(str(value).strip())
    except (TypeError, ValueError):
        return None


def validate_task_form(
    form: TaskForm,
    attachments: Iterable[Attachment] = (),
    require_id: bool = False,
    today: datetime | None = None,
) -> None:
    """Check field-level rules before anything is written.

    Raises:
        ValidationError: With every failing field and its messages.
    """
    today = (today or datetime.now(timezone.utc)).date()
    errors: dict[str, list[str]] = {}

    if require_id and _parse_id(form.id) is None:
        errors.setdefault("id", []).append("Invalid ID.")
    if not form.name.strip():
        errors.setdefault("name", []).append("Invalid name.")
    if not form.description.strip():
        errors.setdefault("description", []).append("Invalid description.")

    if form.end_date is None:
        errors.setdefault("endDate", []).append("End date is required.")
    else:
        if form.end_date.astimezone(timezone.utc).date() < today:
            errors.setdefault("endDate", []).append(
                "End date must be greater than or equal to today."
            )
        if form.start_date is not None and form.start_date > form.end_date:
            errors.setdefault("startDate", []).append(
                "Start date must be less than or equal to end date."
            )

    image_errors = validate_attachments(attachments)
    if image_errors:
        errors["images"] = image_errors

    if errors:
        raise ValidationError(errors)


def snapshot(task: Task) -> dict:
    return TaskSnapshot.model_validate(task).model_dump(mode="json")


class TaskWorkflow:
    """Create, read, update and delete the tasks owned by one actor."""

    def __init__(self, db: Session, blob_store: BlobStore, actor: Actor):
        self.db = db
        self.actor = actor
        self.audit = AuditLog(db, actor)
        self.images = ImageRegistry(db, blob_store, self.audit)

    def _get_owned(self, task_id: str | UUID | None) -> Task:
        parsed = _parse_id(task_id)
        task = None
        if parsed is not None:
            task = self.db.scalar(
                select(Task).where(Task.id == parsed, Task.owner == self.actor.user_id)
            )
        if task is None:
            raise NotFoundError(TASK_MODEL)
        return task

    def _flush(self) -> None:
        try:
            self.db.flush()
        except SQLAlchemyError as e:
            logger.error(f"Writing task changes for {self.actor.user_id} failed: {e!r}")
            raise DependencyError("database", f"could not write task changes: {e}") from e

    def list_tasks(self, completed: bool | None = None) -> list[Task]:
        query = select(Task).where(Task.owner == self.actor.user_id)
        if completed is not None:
            query = query.where(Task.completed == completed)
        return list(self.db.scalars(query.order_by(Task.created_at.desc())))

    def get(self, task_id: str | UUID) -> tuple[Task, list[Image]]:
        task = self._get_owned(task_id)
        return task, self.images.get_many(task.image_ids)

    async def create(self, form: TaskForm, attachments: list[Attachment]) -> tuple[Task, list[Image]]:
        validate_task_form(form, attachments)

        images = await self.images.resolve(attachments)

        task = Task(
            owner=self.actor.user_id,
            name=form.name,
            description=form.description,
            start_date=form.start_date,
            end_date=form.end_date,
            priority=form.priority,
            completed=bool(form.completed),
            image_ids=[str(image.id) for image in images],
        )
        self.db.add(task)
        self._flush()
        self.audit.inserted(TASK_MODEL, snapshot(task))

        logger.info(f"Created task {task.id} for {self.actor.user_id} with {len(images)} image(s)")
        return task, images

    async def update(self, form: TaskForm, attachments: list[Attachment]) -> tuple[Task, list[Image]]:
        validate_task_form(form, attachments, require_id=True)

        task = self._get_owned(form.id)
        previous = snapshot(task)

        incoming = non_empty(attachments)
        diff = diff_images(
            self.images.get_many(task.image_ids),
            [fingerprint(a.content) for a in incoming],
        )
        to_add = set(diff.to_add_hashes)

        # Upload before deleting so a failed upload never loses stored images
        added = await self.images.resolve(
            a for a in incoming if fingerprint(a.content) in to_add
        )
        for image in diff.to_delete:
            await self.images.delete(image)

        final = diff.retained + added
        task.name = form.name
        task.description = form.description
        task.start_date = form.start_date
        task.end_date = form.end_date
        task.priority = form.priority
        if form.completed is not None:
            task.completed = form.completed
        task.image_ids = [str(image.id) for image in final]
        task.updated_at = utcnow()
        self._flush()
        self.audit.updated(TASK_MODEL, previous, snapshot(task))

        logger.info(
            f"Updated task {task.id}: kept {len(diff.retained)}, added {len(added)}, "
            f"deleted {len(diff.to_delete)} image(s)"
        )
        return task, final

    async def delete(self, task_id: str | UUID) -> None:
        task = self._get_owned(task_id)
        previous = snapshot(task)

        for image in self.images.get_many(task.image_ids):
            await self.images.delete(image)

        self.db.delete(task)
        self.audit.deleted(TASK_MODEL, previous)
        self._flush()

        logger.info(f"Deleted task {task.id} for {self.actor.user_id}")
