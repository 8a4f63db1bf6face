from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from yacht_maintenance.access.policy import Actor, Capability
from yacht_maintenance.api.dependencies import (
    authorize_yacht,
    get_actor,
    get_db,
    require,
)
from yacht_maintenance.models.orm import Yacht
from yacht_maintenance.models.schemas import (
    MetricType,
    UsageMetricCreate,
    UsageMetricRead,
)
from yacht_maintenance.tracking.usage import list_usage_metrics, record_usage_metric

router = APIRouter(tags=["usage-metrics"])


@router.get("/yachts/{yacht_id}/usage-metrics")
def get_usage_metrics(
    component_id: int | None = None,
    metric_type: MetricType | None = None,
    yacht: Yacht = Depends(require(Capability.VIEW_MAINTENANCE)),
    session: Session = Depends(get_db),
):
    return [
        UsageMetricRead.model_validate(m).model_dump()
        for m in list_usage_metrics(session, yacht.id, component_id, metric_type)
    ]


@router.post("/usage-metrics", status_code=201)
def post_usage_metric(
    body: UsageMetricCreate,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_db),
):
    authorize_yacht(session, actor, body.yacht_id, Capability.LOG_TRIPS)
    metric = record_usage_metric(session, body)
    return UsageMetricRead.model_validate(metric).model_dump()
