from datetime import datetime

import numpy as np
import pandas as pd
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from yacht_maintenance.config.settings import get_settings
from yacht_maintenance.models.orm import (
    ConditionAssessment,
    MaintenanceRecord,
    TripLog,
    YachtComponent,
    utcnow,
)
from yacht_maintenance.models.schemas import (
    ConditionAvailable,
    ConditionUnavailable,
    MaintenanceOverview,
    MetricType,
    RecordStatus,
)
from yacht_maintenance.scheduling.schedules import overdue_tasks, pending_tasks
from yacht_maintenance.tracking.components import get_yacht
from yacht_maintenance.tracking.usage import metric_total


class MaintenanceMetrics:
    """Derives condition, workload, usage and spend figures for a yacht."""

    def __init__(self, session: Session):
        self.session = session
        self.settings = get_settings()

    def overall_condition(
        self, yacht_id: int, now: datetime | None = None
    ) -> ConditionAvailable | ConditionUnavailable:
        """Criticality-weighted mean of component scores.

        Falls back to the latest yacht-level assessment. With neither, the
        result is explicitly unavailable rather than a placeholder value.
        """
        rows = self.session.execute(
            select(YachtComponent.current_condition, YachtComponent.criticality).where(
                YachtComponent.yacht_id == yacht_id,
                YachtComponent.current_condition.is_not(None),
            )
        ).all()

        if rows:
            weights = self.settings.criticality_weights
            scores = np.array([float(r.current_condition) for r in rows])
            w = np.array([weights.get(r.criticality, 1.0) for r in rows])
            return ConditionAvailable(
                value=round(float(np.average(scores, weights=w)), 2),
                method="criticality_weighted_mean",
                sample_size=len(rows),
            )

        stmt = select(ConditionAssessment).where(
            ConditionAssessment.yacht_id == yacht_id,
            ConditionAssessment.component_id.is_(None),
        )
        if now is not None:
            stmt = stmt.where(ConditionAssessment.assessment_date <= now)
        latest = self.session.scalars(
            stmt.order_by(
                ConditionAssessment.assessment_date.desc(),
                ConditionAssessment.id.desc(),
            ).limit(1)
        ).first()
        if latest is not None:
            return ConditionAvailable(
                value=float(latest.overall_score),
                method="latest_yacht_assessment",
                sample_size=1,
            )

        return ConditionUnavailable(
            reason="No component condition scores or yacht assessments recorded"
        )

    def operating_hours(self, yacht_id: int, until: datetime | None = None) -> float:
        return metric_total(
            self.session, yacht_id, MetricType.ENGINE_HOURS, until=until
        )

    def fuel_consumption(self, yacht_id: int, until: datetime | None = None) -> float:
        return metric_total(
            self.session, yacht_id, MetricType.FUEL_CONSUMPTION, until=until
        )

    def maintenance_cost(
        self,
        yacht_id: int,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> float:
        """Actual spend on completed records."""
        stmt = select(func.coalesce(func.sum(MaintenanceRecord.actual_cost), 0)).where(
            MaintenanceRecord.yacht_id == yacht_id,
            MaintenanceRecord.status == RecordStatus.COMPLETED.value,
        )
        if since is not None:
            stmt = stmt.where(MaintenanceRecord.completed_date >= since)
        if until is not None:
            stmt = stmt.where(MaintenanceRecord.completed_date <= until)
        return float(self.session.execute(stmt).scalar() or 0)

    def records_by_status(self, yacht_id: int) -> dict[str, int]:
        rows = self.session.execute(
            select(MaintenanceRecord.status, func.count(MaintenanceRecord.id))
            .where(MaintenanceRecord.yacht_id == yacht_id)
            .group_by(MaintenanceRecord.status)
        ).all()
        counts = {status.value: 0 for status in RecordStatus}
        counts.update({status: count for status, count in rows})
        return counts

    def monthly_maintenance_costs(
        self,
        yacht_id: int,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> pd.Series:
        """Completed spend per calendar month, with empty months as zero."""
        stmt = select(
            MaintenanceRecord.completed_date, MaintenanceRecord.actual_cost
        ).where(
            MaintenanceRecord.yacht_id == yacht_id,
            MaintenanceRecord.status == RecordStatus.COMPLETED.value,
            MaintenanceRecord.completed_date.is_not(None),
        )
        if since is not None:
            stmt = stmt.where(MaintenanceRecord.completed_date >= since)
        if until is not None:
            stmt = stmt.where(MaintenanceRecord.completed_date <= until)
        rows = self.session.execute(stmt).all()

        if not rows:
            return pd.Series(dtype=float, name="maintenance_cost")

        df = pd.DataFrame(
            [
                {"completed": r.completed_date, "cost": float(r.actual_cost or 0)}
                for r in rows
            ]
        )
        months = pd.to_datetime(df["completed"]).dt.to_period("M")
        df["month"] = months.dt.to_timestamp()
        series = df.groupby("month")["cost"].sum()
        series = series.asfreq("MS", fill_value=0.0)
        series.index.name = "month"
        series.name = "maintenance_cost"
        return series

    def overview(
        self, yacht_id: int, now: datetime | None = None
    ) -> MaintenanceOverview:
        now = now or utcnow()
        get_yacht(self.session, yacht_id)

        component_count = (
            self.session.execute(
                select(func.count(YachtComponent.id)).where(
                    YachtComponent.yacht_id == yacht_id
                )
            ).scalar()
            or 0
        )
        trip_count = (
            self.session.execute(
                select(func.count(TripLog.id)).where(TripLog.yacht_id == yacht_id)
            ).scalar()
            or 0
        )
        last_assessment = self.session.execute(
            select(func.max(ConditionAssessment.assessment_date)).where(
                ConditionAssessment.yacht_id == yacht_id
            )
        ).scalar()

        return MaintenanceOverview(
            yacht_id=yacht_id,
            as_of=now,
            overall_condition=self.overall_condition(yacht_id, now),
            pending_tasks=pending_tasks(self.session, yacht_id, now),
            overdue_tasks=overdue_tasks(self.session, yacht_id, now),
            operating_hours=round(self.operating_hours(yacht_id), 2),
            fuel_consumption=round(self.fuel_consumption(yacht_id), 2),
            maintenance_cost=round(self.maintenance_cost(yacht_id), 2),
            records_by_status=self.records_by_status(yacht_id),
            component_count=component_count,
            trip_count=trip_count,
            last_assessment_date=last_assessment,
        )
