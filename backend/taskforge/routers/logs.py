from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from taskforge.auth import RequireActor
from taskforge.database import get_db
from taskforge.schemas import LogEntry, StandardError
from taskforge.services.audit import AuditLog

router = APIRouter()


@router.get(
    "/log/getAll",
    response_model=list[LogEntry],
    summary="List audit entries",
    description="Retrieve the caller's own audit trail, newest first.",
    responses={401: {"model": StandardError, "description": "Unauthorized"}},
)
async def get_all_logs(
    actor: RequireActor,
    model: str | None = Query(default=None, description="Filter by model name, e.g. Task or Image"),
    limit: int = Query(default=50, ge=1, le=200, description="Maximum number of entries"),
    db: Session = Depends(get_db),
):
    entries = AuditLog(db, actor).history(model=model, limit=limit)
    return [LogEntry.model_validate(entry) for entry in entries]
