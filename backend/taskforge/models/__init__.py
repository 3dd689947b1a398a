from taskforge.models.base import Base
from taskforge.models.enums import LogType, TaskPriority
from taskforge.models.image import Image
from taskforge.models.log import Log
from taskforge.models.task import Task

__all__ = [
    # Base
    "Base",
    # Enums
    "LogType",
    "TaskPriority",
    # Models
    "Task",
    "Image",
    "Log",
]
