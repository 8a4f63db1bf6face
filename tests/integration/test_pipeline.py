from datetime import timedelta

from sqlalchemy import func, select

from yacht_maintenance.analytics.metrics import MaintenanceMetrics
from yacht_maintenance.demo import seed_demo
from yacht_maintenance.financial.valuation import (
    ValuationEngine,
    refresh_expired_valuations,
)
from yacht_maintenance.models.orm import (
    MaintenanceRecord,
    MaintenanceSchedule,
    TripLog,
    UsageMetric,
    Yacht,
    YachtComponent,
)
from yacht_maintenance.scheduling.schedules import overdue_schedules
from yacht_maintenance.tracking.usage import usage_history


def _count(session, model) -> int:
    return session.scalar(select(func.count()).select_from(model))


class TestDemoFleet:
    def test_seed_counts(self, session, now):
        counts = seed_demo(session, now=now)
        assert counts["yachts"] == 3
        assert counts["components"] == 18
        assert counts["schedules"] == 15
        assert _count(session, Yacht) == 3
        assert _count(session, YachtComponent) == 18
        assert _count(session, MaintenanceSchedule) == 15
        assert _count(session, TripLog) == counts["trips"]
        assert counts["records"] > 0

    def test_trips_feed_usage(self, session, now):
        seed_demo(session, now=now)
        assert _count(session, UsageMetric) > 0
        yacht = session.scalars(select(Yacht).order_by(Yacht.id)).first()
        history = usage_history(session, yacht.id)
        assert not history.empty
        assert "engine_hours" in history.columns


class TestFleetAnalytics:
    def test_overview_after_history(self, session, now):
        seed_demo(session, now=now)
        metrics = MaintenanceMetrics(session)
        for yacht in session.scalars(select(Yacht)).all():
            overview = metrics.overview(yacht.id, now)
            assert overview.overall_condition.status == "available"
            assert 0 < overview.overall_condition.value <= 100
            assert overview.operating_hours > 0
            assert overview.maintenance_cost > 0
            assert overview.component_count == 6
            assert overview.records_by_status["completed"] > 0

    def test_old_schedules_are_overdue(self, session, now):
        seed_demo(session, now=now)
        overdue = overdue_schedules(session, now=now)
        assert overdue
        assert all(s.is_active for s in overdue)

    def test_completed_work_has_costs(self, session, now):
        seed_demo(session, now=now)
        completed = session.scalars(
            select(MaintenanceRecord).where(MaintenanceRecord.status == "completed")
        ).all()
        assert completed
        assert all(r.actual_cost is not None for r in completed)
        assert all(r.completed_date <= now for r in completed)


class TestValuationRefresh:
    def test_recalculate_then_refresh(self, session, now):
        seed_demo(session, now=now)
        engine = ValuationEngine(session)
        yachts = session.scalars(select(Yacht)).all()
        for yacht in yachts:
            valuation = engine.recalculate(yacht.id, now)
            assert float(valuation.current_market_value) > 0
            assert valuation.sell_recommendation in ("sell", "hold", "upgrade")

        assert refresh_expired_valuations(session, now) == 0

        later = now + timedelta(days=31)
        assert refresh_expired_valuations(session, later) == len(yachts)
        assert refresh_expired_valuations(session, later) == 0
        for yacht in yachts:
            assert len(engine.history(yacht.id)) == 2
