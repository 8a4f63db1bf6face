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
    RecordCancellation,
    RecordCompletion,
    RecordCreate,
    RecordRead,
    RecordStatus,
)
from yacht_maintenance.scheduling.records import (
    cancel_record,
    complete_record,
    create_record,
    get_record,
    list_records,
    start_record,
)

router = APIRouter(tags=["maintenance-records"])


def _managed_record(session: Session, actor: Actor, record_id: int):
    record = get_record(session, record_id)
    authorize_yacht(session, actor, record.yacht_id, Capability.MANAGE_MAINTENANCE)
    return record


@router.get("/yachts/{yacht_id}/maintenance-records")
def get_yacht_records(
    status: RecordStatus | None = None,
    component_id: int | None = None,
    yacht: Yacht = Depends(require(Capability.VIEW_MAINTENANCE)),
    session: Session = Depends(get_db),
):
    """Maintenance history for a yacht, newest first."""
    return [
        RecordRead.model_validate(r).model_dump()
        for r in list_records(session, yacht.id, status, component_id)
    ]


@router.post("/maintenance-records", status_code=201)
def post_record(
    body: RecordCreate,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_db),
):
    authorize_yacht(session, actor, body.yacht_id, Capability.MANAGE_MAINTENANCE)
    record = create_record(session, body, actor_id=actor.id)
    return RecordRead.model_validate(record).model_dump()


@router.get("/maintenance-records/{record_id}")
def get_record_detail(
    record_id: int,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_db),
):
    record = get_record(session, record_id)
    authorize_yacht(session, actor, record.yacht_id, Capability.VIEW_MAINTENANCE)
    return RecordRead.model_validate(record).model_dump()


@router.post("/maintenance-records/{record_id}/start")
def post_record_start(
    record_id: int,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_db),
):
    _managed_record(session, actor, record_id)
    record = start_record(session, record_id)
    return RecordRead.model_validate(record).model_dump()


@router.post("/maintenance-records/{record_id}/complete")
def post_record_complete(
    record_id: int,
    body: RecordCompletion,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_db),
):
    """Complete in-progress work, capturing its actual cost."""
    _managed_record(session, actor, record_id)
    record = complete_record(session, record_id, body, actor_id=actor.id)
    return RecordRead.model_validate(record).model_dump()


@router.post("/maintenance-records/{record_id}/cancel")
def post_record_cancel(
    record_id: int,
    body: RecordCancellation = RecordCancellation(),
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_db),
):
    _managed_record(session, actor, record_id)
    record = cancel_record(session, record_id, body.reason)
    return RecordRead.model_validate(record).model_dump()
