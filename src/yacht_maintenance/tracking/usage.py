from datetime import datetime

import pandas as pd
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from yacht_maintenance.errors import NotFoundError, ValidationFailedError
from yacht_maintenance.models.orm import TripLog, UsageMetric, to_decimal, utcnow
from yacht_maintenance.models.schemas import MetricType, UsageMetricCreate
from yacht_maintenance.tracking.components import component_for_yacht, get_yacht


def record_usage_metric(session: Session, data: UsageMetricCreate) -> UsageMetric:
    """Store one usage observation for a yacht, optionally tied to a
    component and/or the trip it was measured on."""
    get_yacht(session, data.yacht_id)
    component_for_yacht(session, data.yacht_id, data.component_id)
    if data.trip_log_id is not None:
        trip = session.get(TripLog, data.trip_log_id)
        if trip is None:
            raise NotFoundError("Trip log", data.trip_log_id)
        if trip.yacht_id != data.yacht_id:
            raise ValidationFailedError(
                f"Trip log {data.trip_log_id} does not belong to yacht {data.yacht_id}",
                {"trip_log_id": data.trip_log_id, "yacht_id": data.yacht_id},
            )

    metric = UsageMetric(
        yacht_id=data.yacht_id,
        component_id=data.component_id,
        trip_log_id=data.trip_log_id,
        metric_type=data.metric_type.value,
        metric_value=to_decimal(data.metric_value, 3),
        unit=data.unit,
        recorded_at=data.recorded_at or utcnow(),
        environmental_factors=(
            data.environmental_factors.model_dump(exclude_none=True)
            if data.environmental_factors
            else None
        ),
        notes=data.notes,
    )
    session.add(metric)
    session.flush()
    return metric


def list_usage_metrics(
    session: Session,
    yacht_id: int,
    component_id: int | None = None,
    metric_type: MetricType | str | None = None,
) -> list[UsageMetric]:
    stmt = select(UsageMetric).where(UsageMetric.yacht_id == yacht_id)
    if component_id is not None:
        stmt = stmt.where(UsageMetric.component_id == component_id)
    if metric_type is not None:
        stmt = stmt.where(UsageMetric.metric_type == MetricType(metric_type).value)
    return list(
        session.scalars(
            stmt.order_by(UsageMetric.recorded_at.desc(), UsageMetric.id.desc())
        ).all()
    )


def metric_total(
    session: Session,
    yacht_id: int,
    metric_type: MetricType,
    since: datetime | None = None,
    until: datetime | None = None,
) -> float:
    """Sum of a metric type for a yacht; zero when nothing was recorded."""
    stmt = select(func.coalesce(func.sum(UsageMetric.metric_value), 0)).where(
        UsageMetric.yacht_id == yacht_id,
        UsageMetric.metric_type == metric_type.value,
    )
    if since is not None:
        stmt = stmt.where(UsageMetric.recorded_at >= since)
    if until is not None:
        stmt = stmt.where(UsageMetric.recorded_at <= until)
    return float(session.execute(stmt).scalar() or 0)


def usage_history(session: Session, yacht_id: int) -> pd.DataFrame:
    """Return a month-indexed DataFrame with one column per metric type."""
    rows = session.execute(
        select(
            UsageMetric.recorded_at, UsageMetric.metric_type, UsageMetric.metric_value
        ).where(UsageMetric.yacht_id == yacht_id)
    ).all()

    if not rows:
        return pd.DataFrame()

    df = pd.DataFrame(
        [
            {
                "recorded_at": r.recorded_at,
                "metric_type": r.metric_type,
                "value": float(r.metric_value),
            }
            for r in rows
        ]
    )
    df["month"] = pd.to_datetime(df["recorded_at"]).dt.to_period("M").dt.to_timestamp()
    history = df.pivot_table(
        index="month",
        columns="metric_type",
        values="value",
        aggfunc="sum",
        fill_value=0.0,
    )
    history.columns.name = None
    return history.sort_index()
