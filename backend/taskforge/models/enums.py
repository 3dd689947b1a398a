from enum import Enum


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class LogType(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
