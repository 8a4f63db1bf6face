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
from yacht_maintenance.models.schemas import AssessmentCreate, AssessmentRead
from yacht_maintenance.tracking.assessments import list_assessments, record_assessment

router = APIRouter(tags=["assessments"])


@router.get("/yachts/{yacht_id}/assessments")
def get_yacht_assessments(
    component_id: int | None = None,
    yacht: Yacht = Depends(require(Capability.VIEW_MAINTENANCE)),
    session: Session = Depends(get_db),
):
    return [
        AssessmentRead.model_validate(a).model_dump()
        for a in list_assessments(session, yacht.id, component_id)
    ]


@router.post("/assessments", status_code=201)
def post_assessment(
    body: AssessmentCreate,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_db),
):
    """Record a condition assessment; low scores schedule corrective work."""
    authorize_yacht(session, actor, body.yacht_id, Capability.MANAGE_MAINTENANCE)
    assessment = record_assessment(session, body, actor_id=actor.id)
    return AssessmentRead.model_validate(assessment).model_dump()
