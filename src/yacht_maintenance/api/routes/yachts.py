from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from yacht_maintenance.access.policy import Capability
from yacht_maintenance.analytics.metrics import MaintenanceMetrics
from yacht_maintenance.api.dependencies import get_db, require
from yacht_maintenance.models.orm import Yacht, utcnow
from yacht_maintenance.models.schemas import RecordRead, ScheduleRead
from yacht_maintenance.scheduling.schedules import overdue_records, overdue_schedules
from yacht_maintenance.tracking.usage import usage_history

router = APIRouter(prefix="/yachts", tags=["yachts"])

view_maintenance = require(Capability.VIEW_MAINTENANCE)


@router.get("/{yacht_id}/overview")
def get_overview(
    yacht: Yacht = Depends(view_maintenance), session: Session = Depends(get_db)
):
    """Maintenance overview: condition, workload, usage and spend."""
    return MaintenanceMetrics(session).overview(yacht.id).model_dump()


@router.get("/{yacht_id}/condition")
def get_condition(
    yacht: Yacht = Depends(view_maintenance), session: Session = Depends(get_db)
):
    """Overall condition, or an explicit unavailable result."""
    result = MaintenanceMetrics(session).overall_condition(yacht.id, utcnow())
    return {"yacht_id": yacht.id, **result.model_dump()}


@router.get("/{yacht_id}/maintenance-costs")
def get_maintenance_costs(
    yacht: Yacht = Depends(view_maintenance), session: Session = Depends(get_db)
):
    """Completed maintenance spend per month."""
    metrics = MaintenanceMetrics(session)
    series = metrics.monthly_maintenance_costs(yacht.id)
    return {
        "yacht_id": yacht.id,
        "total": round(metrics.maintenance_cost(yacht.id), 2),
        "months": [
            {"month": month.date().isoformat(), "amount": round(float(amount), 2)}
            for month, amount in series.items()
        ],
    }


@router.get("/{yacht_id}/usage-history")
def get_usage_history(
    yacht: Yacht = Depends(view_maintenance), session: Session = Depends(get_db)
):
    """Monthly usage totals per metric type."""
    df = usage_history(session, yacht.id)
    return {
        "yacht_id": yacht.id,
        "months": [
            {
                "month": month.date().isoformat(),
                **{column: round(float(value), 3) for column, value in row.items()},
            }
            for month, row in df.iterrows()
        ],
    }


@router.get("/{yacht_id}/overdue")
def get_overdue(
    yacht: Yacht = Depends(view_maintenance), session: Session = Depends(get_db)
):
    """Overdue schedules and scheduled records that were never started."""
    now = utcnow()
    return {
        "yacht_id": yacht.id,
        "schedules": [
            ScheduleRead.model_validate(s).model_dump()
            for s in overdue_schedules(session, yacht.id, now)
        ],
        "records": [
            RecordRead.model_validate(r).model_dump()
            for r in overdue_records(session, yacht.id, now)
        ],
    }
