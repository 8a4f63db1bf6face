import logging
from datetime import datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from yacht_maintenance.config.settings import get_settings
from yacht_maintenance.errors import NotFoundError, ValidationFailedError
from yacht_maintenance.models.orm import (
    MaintenanceRecord,
    MaintenanceSchedule,
    to_decimal,
    utcnow,
)
from yacht_maintenance.models.schemas import (
    Frequency,
    MetricType,
    OverdueTasks,
    PendingTasks,
    RecordStatus,
    ScheduleCreate,
    ScheduleUpdate,
)
from yacht_maintenance.scheduling.intervals import compute_next_due, project_usage_due
from yacht_maintenance.tracking.components import component_for_yacht, get_yacht
from yacht_maintenance.tracking.usage import metric_total

logger = logging.getLogger(__name__)

OPEN_STATUSES = (RecordStatus.SCHEDULED.value, RecordStatus.IN_PROGRESS.value)


def engine_hours_to_date(
    session: Session, yacht_id: int, until: datetime | None = None
) -> float:
    return metric_total(session, yacht_id, MetricType.ENGINE_HOURS, until=until)


def daily_engine_rate(session: Session, yacht_id: int, now: datetime) -> float:
    """Average engine hours per day over the trailing usage window."""
    window = get_settings().usage_rate_window_days
    hours = metric_total(
        session,
        yacht_id,
        MetricType.ENGINE_HOURS,
        since=now - timedelta(days=window),
        until=now,
    )
    return hours / window


def _project_usage_schedule(
    session: Session, schedule: MaintenanceSchedule, hours_at: float, at: datetime
) -> datetime:
    schedule.last_completed_engine_hours = to_decimal(hours_at)
    schedule.next_due_engine_hours = to_decimal(hours_at + schedule.interval_value)
    rate = daily_engine_rate(session, schedule.yacht_id, at)
    return project_usage_due(
        at,
        float(schedule.interval_value),
        rate,
        get_settings().usage_schedule_fallback_days,
    )


def get_schedule(session: Session, schedule_id: int) -> MaintenanceSchedule:
    schedule = session.get(MaintenanceSchedule, schedule_id)
    if schedule is None:
        raise NotFoundError("Schedule", schedule_id)
    return schedule


def list_schedules(
    session: Session, yacht_id: int, active_only: bool = False
) -> list[MaintenanceSchedule]:
    stmt = select(MaintenanceSchedule).where(MaintenanceSchedule.yacht_id == yacht_id)
    if active_only:
        stmt = stmt.where(MaintenanceSchedule.is_active.is_(True))
    return list(session.scalars(stmt.order_by(MaintenanceSchedule.next_due)).all())


def create_schedule(
    session: Session, data: ScheduleCreate, now: datetime | None = None
) -> MaintenanceSchedule:
    """Create a recurring task.

    Without an explicit ``next_due``, calendar schedules are due one interval
    after ``last_completed`` (or now). Engine-hour schedules are due
    ``interval_value`` hours after the hours at last completion, and their
    calendar ``next_due`` is projected from recent usage.
    """
    now = now or utcnow()
    get_yacht(session, data.yacht_id)
    component_for_yacht(session, data.yacht_id, data.component_id)

    schedule = MaintenanceSchedule(
        yacht_id=data.yacht_id,
        component_id=data.component_id,
        task_name=data.task_name,
        task_description=data.task_description,
        frequency=data.frequency.value,
        interval_value=data.interval_value,
        last_completed=data.last_completed,
        priority=data.priority.value,
        estimated_duration_hours=data.estimated_duration_hours,
        estimated_cost=to_decimal(data.estimated_cost),
        assigned_to=data.assigned_to,
        is_active=True,
    )
    anchor = data.last_completed or now

    if data.frequency == Frequency.ENGINE_HOURS:
        hours = data.last_completed_engine_hours
        if hours is None:
            hours = engine_hours_to_date(session, data.yacht_id, until=anchor)
        projected = _project_usage_schedule(session, schedule, hours, anchor)
    else:
        projected = compute_next_due(data.frequency, data.interval_value, anchor)
    schedule.next_due = data.next_due or projected

    if data.last_completed and schedule.next_due < data.last_completed:
        raise ValidationFailedError("next_due must not precede last_completed")

    session.add(schedule)
    session.flush()
    return schedule


def update_schedule(
    session: Session, schedule_id: int, data: ScheduleUpdate
) -> MaintenanceSchedule:
    schedule = get_schedule(session, schedule_id)
    changes = data.model_dump(exclude_unset=True)
    if changes.get("priority") is not None:
        changes["priority"] = data.priority.value
    if "estimated_cost" in changes:
        changes["estimated_cost"] = to_decimal(changes["estimated_cost"])
    for field, value in changes.items():
        setattr(schedule, field, value)
    session.flush()
    return schedule


def complete_schedule(
    session: Session,
    schedule_id: int,
    completed_at: datetime | None = None,
    engine_hours: float | None = None,
) -> MaintenanceSchedule:
    """Mark a recurrence done and advance ``next_due``.

    Completions are chronological: one earlier than ``last_completed`` is
    rejected, and ``next_due`` never moves backwards.
    """
    schedule = get_schedule(session, schedule_id)
    if not schedule.is_active:
        raise ValidationFailedError(
            f"Schedule {schedule_id} is inactive", {"schedule_id": schedule_id}
        )
    completed_at = completed_at or utcnow()
    if schedule.last_completed and completed_at < schedule.last_completed:
        raise ValidationFailedError(
            "Completion precedes the last recorded completion",
            {"last_completed": schedule.last_completed.isoformat()},
        )

    if schedule.frequency == Frequency.ENGINE_HOURS.value:
        hours = engine_hours
        if hours is None:
            hours = engine_hours_to_date(session, schedule.yacht_id, until=completed_at)
        previous_hours = schedule.last_completed_engine_hours
        if previous_hours is not None and hours < float(previous_hours):
            raise ValidationFailedError(
                "Engine hours are lower than at the last completion",
                {"last_completed_engine_hours": float(previous_hours)},
            )
        computed = _project_usage_schedule(session, schedule, hours, completed_at)
    else:
        computed = compute_next_due(
            schedule.frequency, schedule.interval_value, completed_at
        )

    previous_due = schedule.next_due
    schedule.last_completed = completed_at
    schedule.next_due = max(previous_due, computed)
    session.flush()

    logger.info(
        "Schedule %d completed at %s, next due %s",
        schedule.id,
        completed_at.isoformat(),
        schedule.next_due.isoformat(),
    )
    return schedule


def _is_overdue(
    schedule: MaintenanceSchedule, now: datetime, engine_hours: float | None
) -> bool:
    if schedule.next_due < now:
        return True
    return (
        schedule.frequency == Frequency.ENGINE_HOURS.value
        and schedule.next_due_engine_hours is not None
        and engine_hours is not None
        and engine_hours >= float(schedule.next_due_engine_hours)
    )


def overdue_schedules(
    session: Session, yacht_id: int | None = None, now: datetime | None = None
) -> list[MaintenanceSchedule]:
    """Active schedules past their due date or usage threshold."""
    now = now or utcnow()
    stmt = select(MaintenanceSchedule).where(MaintenanceSchedule.is_active.is_(True))
    if yacht_id is not None:
        stmt = stmt.where(MaintenanceSchedule.yacht_id == yacht_id)
    schedules = list(session.scalars(stmt.order_by(MaintenanceSchedule.next_due)).all())

    hours_by_yacht: dict[int, float] = {}
    overdue = []
    for schedule in schedules:
        hours = None
        if schedule.frequency == Frequency.ENGINE_HOURS.value:
            if schedule.yacht_id not in hours_by_yacht:
                hours_by_yacht[schedule.yacht_id] = engine_hours_to_date(
                    session, schedule.yacht_id, until=now
                )
            hours = hours_by_yacht[schedule.yacht_id]
        if _is_overdue(schedule, now, hours):
            overdue.append(schedule)
    return overdue


def overdue_records(
    session: Session, yacht_id: int | None = None, now: datetime | None = None
) -> list[MaintenanceRecord]:
    """Scheduled records whose date has passed without work starting."""
    now = now or utcnow()
    stmt = select(MaintenanceRecord).where(
        MaintenanceRecord.status == RecordStatus.SCHEDULED.value,
        MaintenanceRecord.scheduled_date < now,
    )
    if yacht_id is not None:
        stmt = stmt.where(MaintenanceRecord.yacht_id == yacht_id)
    return list(session.scalars(stmt.order_by(MaintenanceRecord.scheduled_date)).all())


def pending_tasks(
    session: Session, yacht_id: int, now: datetime | None = None
) -> PendingTasks:
    now = now or utcnow()
    lookahead = get_settings().pending_lookahead_days
    horizon = now + timedelta(days=lookahead)

    records = (
        session.execute(
            select(func.count(MaintenanceRecord.id)).where(
                MaintenanceRecord.yacht_id == yacht_id,
                MaintenanceRecord.status.in_(OPEN_STATUSES),
                MaintenanceRecord.scheduled_date <= horizon,
            )
        ).scalar()
        or 0
    )
    schedules = (
        session.execute(
            select(func.count(MaintenanceSchedule.id)).where(
                MaintenanceSchedule.yacht_id == yacht_id,
                MaintenanceSchedule.is_active.is_(True),
                MaintenanceSchedule.next_due <= horizon,
            )
        ).scalar()
        or 0
    )
    return PendingTasks(
        records=records,
        schedules=schedules,
        total=records + schedules,
        lookahead_days=lookahead,
    )


def overdue_tasks(
    session: Session, yacht_id: int, now: datetime | None = None
) -> OverdueTasks:
    now = now or utcnow()
    records = len(overdue_records(session, yacht_id, now))
    schedules = len(overdue_schedules(session, yacht_id, now))
    return OverdueTasks(records=records, schedules=schedules, total=records + schedules)
