"""Recurring order execution API endpoints."""

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel

from recurring_orders.core.errors import ServiceNotStartedError
from recurring_orders.dependencies import RecurringService
from recurring_orders.schemas.execution import ExecutionLogEntry, ManualRunResult, ServiceStats

router = APIRouter()


class ClearLogsResponse(BaseModel):
    """Response model for log cleanup."""

    days_to_keep: int
    retained: int


@router.get("/recurring/stats", response_model=ServiceStats)
async def get_stats(service: RecurringService) -> ServiceStats:
    """
    Get execution statistics.

    Counters are recomputed from the execution log on every call.
    """
    return await service.get_service_stats()


@router.get("/recurring/logs", response_model=list[ExecutionLogEntry])
async def list_logs(
    service: RecurringService,
    limit: int | None = Query(default=None, ge=1, le=1000),
) -> list[ExecutionLogEntry]:
    """List execution log entries, most recent first."""
    return await service.get_execution_logs(limit)


@router.delete("/recurring/logs", response_model=ClearLogsResponse)
async def clear_logs(
    service: RecurringService,
    days_to_keep: int | None = Query(default=None, ge=0),
) -> ClearLogsResponse:
    """Delete log entries older than ``days_to_keep`` days (configured retention if omitted)."""
    if days_to_keep is None:
        days_to_keep = service.retention_days
    retained = await service.clear_old_logs(days_to_keep)
    if retained is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Execution log cleanup failed",
        )
    return ClearLogsResponse(days_to_keep=days_to_keep, retained=retained)


@router.post("/recurring/execute-pending", response_model=ManualRunResult)
async def execute_pending(service: RecurringService) -> ManualRunResult:
    """
    Execute all pending recurring orders now.

    Calling this endpoint is the user's confirmation; the client is expected
    to have asked before sending the request.
    """
    try:
        return await service.execute_all_pending()
    except ServiceNotStartedError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
