from taskforge.schemas.base import CamelModel, StandardError, ValidationProblem
from taskforge.schemas.image import ImageSnapshot
from taskforge.schemas.log import LogEntry
from taskforge.schemas.task import (
    TaskCreated,
    TaskDetail,
    TaskForm,
    TaskSnapshot,
    TaskSummary,
    TaskUpdated,
)
from taskforge.schemas.user import PictureUpdated, UserProfile

__all__ = [
    # Base
    "CamelModel",
    "StandardError",
    "ValidationProblem",
    # Task
    "TaskForm",
    "TaskSummary",
    "TaskDetail",
    "TaskCreated",
    "TaskUpdated",
    "TaskSnapshot",
    # Image
    "ImageSnapshot",
    # Log
    "LogEntry",
    # User
    "UserProfile",
    "PictureUpdated",
]
