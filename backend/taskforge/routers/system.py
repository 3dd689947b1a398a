from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine

from taskforge.config import settings
from taskforge.database import get_engine
from taskforge.services.health import HealthReport, HealthStatus, build_report

router = APIRouter()


@router.get(
    "/status",
    response_model=HealthReport,
    summary="Health report",
    description="Process memory/GC statistics and database connectivity, for liveness probing.",
    responses={503: {"model": HealthReport, "description": "Unhealthy"}},
)
async def get_status(engine: Engine = Depends(get_engine)):
    report = build_report(settings.gc_memory_threshold_bytes, engine)
    status_code = (
        status.HTTP_503_SERVICE_UNAVAILABLE
        if report.status == HealthStatus.UNHEALTHY
        else status.HTTP_200_OK
    )
    return JSONResponse(status_code=status_code, content=report.model_dump(mode="json"))
