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
    ScheduleCompletion,
    ScheduleCreate,
    ScheduleRead,
    ScheduleUpdate,
)
from yacht_maintenance.scheduling.schedules import (
    complete_schedule,
    create_schedule,
    get_schedule,
    list_schedules,
    update_schedule,
)

router = APIRouter(tags=["schedules"])


def _managed_schedule(session: Session, actor: Actor, schedule_id: int) -> None:
    schedule = get_schedule(session, schedule_id)
    authorize_yacht(session, actor, schedule.yacht_id, Capability.MANAGE_MAINTENANCE)


@router.get("/yachts/{yacht_id}/schedules")
def get_yacht_schedules(
    active_only: bool = False,
    yacht: Yacht = Depends(require(Capability.VIEW_MAINTENANCE)),
    session: Session = Depends(get_db),
):
    return [
        ScheduleRead.model_validate(s).model_dump()
        for s in list_schedules(session, yacht.id, active_only)
    ]


@router.post("/schedules", status_code=201)
def post_schedule(
    body: ScheduleCreate,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_db),
):
    """Create a recurring maintenance task."""
    authorize_yacht(session, actor, body.yacht_id, Capability.MANAGE_MAINTENANCE)
    schedule = create_schedule(session, body)
    return ScheduleRead.model_validate(schedule).model_dump()


@router.patch("/schedules/{schedule_id}")
def patch_schedule(
    schedule_id: int,
    body: ScheduleUpdate,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_db),
):
    _managed_schedule(session, actor, schedule_id)
    schedule = update_schedule(session, schedule_id, body)
    return ScheduleRead.model_validate(schedule).model_dump()


@router.post("/schedules/{schedule_id}/complete")
def post_schedule_complete(
    schedule_id: int,
    body: ScheduleCompletion = ScheduleCompletion(),
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_db),
):
    """Mark a recurrence done and advance its due date."""
    _managed_schedule(session, actor, schedule_id)
    schedule = complete_schedule(
        session, schedule_id, body.completed_at, body.engine_hours
    )
    return ScheduleRead.model_validate(schedule).model_dump()
