from datetime import datetime

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.orm import Session

from taskforge.auth import RequireActor
from taskforge.database import get_db
from taskforge.models.enums import TaskPriority
from taskforge.models.image import Image as ImageModel
from taskforge.models.task import Task as TaskModel
from taskforge.schemas import (
    StandardError,
    TaskCreated,
    TaskDetail,
    TaskForm,
    TaskSummary,
    TaskUpdated,
    ValidationProblem,
)
from taskforge.services.blob_store import BlobStore, get_blob_store
from taskforge.services.images import Attachment
from taskforge.services.tasks import TaskWorkflow

router = APIRouter()


# =============================================================================
# Private Helper Functions
# =============================================================================


def get_workflow(
    actor: RequireActor,
    db: Session = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
) -> TaskWorkflow:
    return TaskWorkflow(db, blob_store, actor)


def task_form(
    id: str | None = Form(default=None, description="Task ID (PUT only)"),
    name: str = Form(default=""),
    description: str = Form(default=""),
    start_date: datetime | None = Form(default=None, alias="startDate"),
    end_date: datetime | None = Form(default=None, alias="endDate"),
    priority: TaskPriority = Form(default=TaskPriority.MEDIUM),
    completed: bool | None = Form(default=None),
) -> TaskForm:
    return TaskForm(
        id=id,
        name=name,
        description=description,
        start_date=start_date,
        end_date=end_date,
        priority=priority,
        completed=completed,
    )


async def read_attachments(
    images: list[UploadFile] | None = File(default=None, description="Image attachments"),
) -> list[Attachment]:
    attachments = []
    for file in images or []:
        attachments.append(
            Attachment(
                filename=file.filename or "unknown",
                content_type=file.content_type or "application/octet-stream",
                content=await file.read(),
            )
        )
    return attachments


def _build_task_detail(task: TaskModel, images: list[ImageModel]) -> TaskDetail:
    return TaskDetail(
        id=task.id,
        created_at=task.created_at,
        updated_at=task.updated_at,
        name=task.name,
        description=task.description,
        priority=task.priority,
        start_date=task.start_date,
        end_date=task.end_date,
        completed=task.completed,
        images=[image.url for image in images],
    )


# =============================================================================
# Task Endpoints
# =============================================================================


@router.get(
    "/task/getAll",
    response_model=list[TaskSummary],
    summary="List tasks",
    description="Retrieve the caller's tasks, newest first.",
    responses={401: {"model": StandardError, "description": "Unauthorized"}},
)
async def get_all_tasks(
    completed: bool | None = Query(default=None, description="Filter by completion"),
    workflow: TaskWorkflow = Depends(get_workflow),
):
    return [TaskSummary.model_validate(task) for task in workflow.list_tasks(completed=completed)]


@router.get(
    "/task/{task_id}",
    response_model=TaskDetail,
    summary="Get task by ID",
    description="Retrieve one of the caller's tasks, including its image URLs.",
    responses={
        401: {"model": StandardError, "description": "Unauthorized"},
        404: {"model": StandardError, "description": "Task not found"},
    },
)
async def get_task(task_id: str, workflow: TaskWorkflow = Depends(get_workflow)):
    task, images = workflow.get(task_id)
    return _build_task_detail(task, images)


@router.post(
    "/task",
    response_model=TaskCreated,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new task",
    description="Create a task from a multipart form. Images are deduplicated by content.",
    responses={
        400: {"model": ValidationProblem, "description": "Validation error"},
        401: {"model": StandardError, "description": "Unauthorized"},
    },
)
async def create_task(
    form: TaskForm = Depends(task_form),
    attachments: list[Attachment] = Depends(read_attachments),
    workflow: TaskWorkflow = Depends(get_workflow),
):
    task, images = await workflow.create(form, attachments)
    return TaskCreated(
        id=task.id,
        created_at=task.created_at,
        updated_at=task.updated_at,
        images=[image.url for image in images],
    )


@router.put(
    "/task",
    response_model=TaskUpdated,
    summary="Update task",
    description=(
        "Replace a task's fields and image set. Images no longer submitted are deleted, "
        "unchanged images are kept without re-uploading."
    ),
    responses={
        400: {"model": ValidationProblem, "description": "Validation error"},
        401: {"model": StandardError, "description": "Unauthorized"},
        404: {"model": StandardError, "description": "Task not found"},
    },
)
async def update_task(
    form: TaskForm = Depends(task_form),
    attachments: list[Attachment] = Depends(read_attachments),
    workflow: TaskWorkflow = Depends(get_workflow),
):
    task, images = await workflow.update(form, attachments)
    return TaskUpdated(
        id=task.id,
        updated_at=task.updated_at,
        images=[image.url for image in images],
    )


@router.delete(
    "/task/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete task",
    description="Delete a task together with its images.",
    responses={
        401: {"model": StandardError, "description": "Unauthorized"},
        404: {"model": StandardError, "description": "Task not found"},
    },
)
async def delete_task(task_id: str, workflow: TaskWorkflow = Depends(get_workflow)):
    await workflow.delete(task_id)
