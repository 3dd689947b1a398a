from taskforge.routers.logs import router as logs_router
from taskforge.routers.system import router as system_router
from taskforge.routers.tasks import router as tasks_router
from taskforge.routers.users import router as users_router

__all__ = [
    "tasks_router",
    "users_router",
    "logs_router",
    "system_router",
]
