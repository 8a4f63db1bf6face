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
from yacht_maintenance.models.schemas import TripCompletion, TripLogRead, TripStart
from yacht_maintenance.tracking.trips import (
    complete_trip,
    get_trip,
    list_trip_logs,
    start_trip,
)

router = APIRouter(tags=["trip-logs"])


@router.get("/yachts/{yacht_id}/trip-logs")
def get_trip_logs(
    yacht: Yacht = Depends(require(Capability.VIEW_MAINTENANCE)),
    session: Session = Depends(get_db),
):
    return [
        TripLogRead.model_validate(t).model_dump()
        for t in list_trip_logs(session, yacht.id)
    ]


@router.post("/trip-logs", status_code=201)
def create_trip_log(
    body: TripStart,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_db),
):
    """Start a trip for a booking."""
    authorize_yacht(session, actor, body.yacht_id, Capability.LOG_TRIPS)
    trip = start_trip(session, body, actor_id=actor.id)
    return TripLogRead.model_validate(trip).model_dump()


@router.patch("/trip-logs/{trip_id}/complete")
def finish_trip_log(
    trip_id: int,
    body: TripCompletion,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_db),
):
    """Complete a trip; usage metrics and follow-up work are derived from it."""
    trip = get_trip(session, trip_id)
    authorize_yacht(session, actor, trip.yacht_id, Capability.LOG_TRIPS)
    trip = complete_trip(session, trip_id, body, actor_id=actor.id)
    return TripLogRead.model_validate(trip).model_dump()
