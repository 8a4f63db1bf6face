"""Maintenance record lifecycle.

Records move ``scheduled -> in_progress -> completed`` and may be cancelled
from either open state. Completed and cancelled records are final. The
actual cost is captured only when a record completes.
"""

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from yacht_maintenance.config.settings import get_settings
from yacht_maintenance.errors import (
    InvalidTransitionError,
    NotFoundError,
    ValidationFailedError,
)
from yacht_maintenance.models.orm import (
    MaintenanceRecord,
    MaintenanceSchedule,
    TripLog,
    to_decimal,
    utcnow,
)
from yacht_maintenance.models.schemas import (
    AssessmentCreate,
    Priority,
    RecordCompletion,
    RecordCreate,
    RecordStatus,
)
from yacht_maintenance.notifications import notify, recipient_for
from yacht_maintenance.scheduling.schedules import complete_schedule
from yacht_maintenance.tracking.components import (
    apply_maintenance,
    component_for_yacht,
    get_yacht,
)

logger = logging.getLogger(__name__)

TRANSITIONS: dict[RecordStatus, set[RecordStatus]] = {
    RecordStatus.SCHEDULED: {RecordStatus.IN_PROGRESS, RecordStatus.CANCELLED},
    RecordStatus.IN_PROGRESS: {RecordStatus.COMPLETED, RecordStatus.CANCELLED},
    RecordStatus.COMPLETED: set(),
    RecordStatus.CANCELLED: set(),
}

NOTIFY_PRIORITIES = {Priority.HIGH, Priority.CRITICAL}


def can_transition(current: RecordStatus | str, target: RecordStatus | str) -> bool:
    return RecordStatus(target) in TRANSITIONS[RecordStatus(current)]


def _transition(record: MaintenanceRecord, target: RecordStatus) -> None:
    if not can_transition(record.status, target):
        raise InvalidTransitionError(
            f"Maintenance record {record.id}", record.status, target.value
        )
    record.status = target.value


def get_record(session: Session, record_id: int) -> MaintenanceRecord:
    record = session.get(MaintenanceRecord, record_id)
    if record is None:
        raise NotFoundError("Maintenance record", record_id)
    return record


def list_records(
    session: Session,
    yacht_id: int,
    status: RecordStatus | str | None = None,
    component_id: int | None = None,
) -> list[MaintenanceRecord]:
    stmt = select(MaintenanceRecord).where(MaintenanceRecord.yacht_id == yacht_id)
    if status is not None:
        stmt = stmt.where(MaintenanceRecord.status == RecordStatus(status).value)
    if component_id is not None:
        stmt = stmt.where(MaintenanceRecord.component_id == component_id)
    return list(
        session.scalars(stmt.order_by(MaintenanceRecord.scheduled_date.desc())).all()
    )


def _check_owned(session: Session, model, label: str, row_id: int | None, yacht_id):
    if row_id is None:
        return
    row = session.get(model, row_id)
    if row is None:
        raise NotFoundError(label, row_id)
    if row.yacht_id != yacht_id:
        raise ValidationFailedError(
            f"{label} {row_id} does not belong to yacht {yacht_id}",
            {"id": row_id, "yacht_id": yacht_id},
        )


def create_record(
    session: Session, data: RecordCreate, actor_id: int | None = None
) -> MaintenanceRecord:
    """Schedule a unit of maintenance work.

    Referenced components, trips and schedules must belong to the same
    yacht. High and critical work notifies the yacht owner.
    """
    yacht = get_yacht(session, data.yacht_id)
    component_for_yacht(session, yacht.id, data.component_id)
    _check_owned(session, TripLog, "Trip log", data.trip_log_id, yacht.id)
    _check_owned(session, MaintenanceSchedule, "Schedule", data.schedule_id, yacht.id)

    record = MaintenanceRecord(
        yacht_id=yacht.id,
        component_id=data.component_id,
        trip_log_id=data.trip_log_id,
        schedule_id=data.schedule_id,
        task_type=data.task_type,
        category=data.category,
        description=data.description,
        priority=data.priority.value,
        status=RecordStatus.SCHEDULED.value,
        scheduled_date=data.scheduled_date,
        estimated_duration_hours=data.estimated_duration_hours,
        assigned_to=data.assigned_to,
        assigned_by_id=actor_id,
        estimated_cost=to_decimal(data.estimated_cost),
        parts_used=[],
    )
    session.add(record)
    session.flush()

    if data.priority in NOTIFY_PRIORITIES:
        notify(
            session,
            recipient_for(yacht, actor_id),
            "maintenance_scheduled",
            f"{data.priority.value.title()} Priority Maintenance Scheduled",
            f"{data.task_type} maintenance scheduled for {yacht.name}",
            data={"yacht_id": yacht.id, "record_id": record.id},
            priority=data.priority.value,
            action_url=f"/maintenance?yacht={yacht.id}&tab=records",
        )

    logger.info(
        "Maintenance record %d (%s) scheduled for yacht %d",
        record.id,
        record.task_type,
        yacht.id,
    )
    return record


def start_record(
    session: Session, record_id: int, now: datetime | None = None
) -> MaintenanceRecord:
    record = get_record(session, record_id)
    _transition(record, RecordStatus.IN_PROGRESS)
    record.started_date = now or utcnow()
    session.flush()
    logger.info("Maintenance record %d started", record.id)
    return record


def resolve_actual_cost(data: RecordCompletion, required: bool) -> float | None:
    """Actual cost of completed work.

    An explicit ``actual_cost`` wins; otherwise labor and parts are summed
    (parts cost falls back to the itemised parts list). When cost capture is
    required and neither is available, completion is refused.
    """
    if data.actual_cost is not None:
        return data.actual_cost

    parts_cost = data.parts_cost
    if parts_cost is None and data.parts_used:
        parts_cost = sum(p.quantity * p.unit_cost for p in data.parts_used)
    if data.labor_cost is not None and parts_cost is not None:
        return data.labor_cost + parts_cost

    if required:
        raise ValidationFailedError(
            "Completion requires actual_cost, or labor_cost and parts_cost",
            {"fields": ["actual_cost", "labor_cost", "parts_cost"]},
        )
    return None


def complete_record(
    session: Session,
    record_id: int,
    data: RecordCompletion,
    actor_id: int | None = None,
    now: datetime | None = None,
) -> MaintenanceRecord:
    """Finish in-progress work.

    Completion advances the linked schedule, moves the component's
    maintenance dates forward and, when ``condition_after`` is reported,
    files a post-maintenance assessment.
    """
    record = get_record(session, record_id)
    if not can_transition(record.status, RecordStatus.COMPLETED):
        raise InvalidTransitionError(
            f"Maintenance record {record.id}",
            record.status,
            RecordStatus.COMPLETED.value,
        )

    settings = get_settings()
    actual_cost = resolve_actual_cost(data, settings.require_actual_cost_on_completion)
    completed_at = data.completed_date or now or utcnow()
    if record.started_date and completed_at < record.started_date:
        raise ValidationFailedError(
            "completed_date must not precede started_date",
            {"started_date": record.started_date.isoformat()},
        )

    _transition(record, RecordStatus.COMPLETED)
    record.completed_date = completed_at
    record.actual_cost = to_decimal(actual_cost)
    record.labor_cost = to_decimal(data.labor_cost)
    record.parts_cost = to_decimal(data.parts_cost)
    if data.parts_used:
        record.parts_used = [p.model_dump() for p in data.parts_used]
    record.actual_duration_hours = data.actual_duration_hours
    record.completed_by = data.completed_by
    record.work_notes = data.work_notes
    record.quality_check_passed = data.quality_check_passed
    record.condition_after = data.condition_after
    session.flush()

    schedule_due = None
    if record.schedule_id is not None:
        schedule = complete_schedule(
            session, record.schedule_id, completed_at, data.engine_hours
        )
        schedule_due = schedule.next_due

    if record.component is not None:
        apply_maintenance(record.component, completed_at, schedule_due)

    if data.condition_after is not None:
        from yacht_maintenance.tracking.assessments import record_assessment

        record_assessment(
            session,
            AssessmentCreate(
                yacht_id=record.yacht_id,
                component_id=record.component_id,
                assessment_type="post_maintenance",
                overall_score=data.condition_after,
                notes=f"Condition after maintenance record {record.id}",
                assessment_date=completed_at,
            ),
            actor_id=actor_id or record.assigned_by_id,
        )

    session.flush()
    logger.info(
        "Maintenance record %d completed, actual cost %s",
        record.id,
        record.actual_cost,
    )
    return record


def cancel_record(
    session: Session, record_id: int, reason: str | None = None
) -> MaintenanceRecord:
    record = get_record(session, record_id)
    _transition(record, RecordStatus.CANCELLED)
    if reason:
        note = f"Cancelled: {reason}"
        if record.work_notes:
            note = f"{record.work_notes}\n{note}"
        record.work_notes = note
    session.flush()
    logger.info("Maintenance record %d cancelled", record.id)
    return record
