from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from yacht_maintenance.access.policy import Actor, Capability
from yacht_maintenance.api.dependencies import get_actor, get_db, require
from yacht_maintenance.financial.depreciation import depreciation_schedule
from yacht_maintenance.financial.valuation import ValuationEngine
from yacht_maintenance.models.orm import Yacht
from yacht_maintenance.models.schemas import ValuationRead

router = APIRouter(prefix="/yachts", tags=["valuation"])

view_valuation = require(Capability.VIEW_VALUATION)


@router.get("/{yacht_id}/valuation")
def get_valuation(
    yacht: Yacht = Depends(view_valuation),
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_db),
):
    """Current valuation; recomputed once the stored snapshot expires."""
    valuation = ValuationEngine(session).get_current(yacht.id, actor_id=actor.id)
    return ValuationRead.model_validate(valuation).model_dump()


@router.get("/{yacht_id}/valuations")
def get_valuation_history(
    yacht: Yacht = Depends(view_valuation), session: Session = Depends(get_db)
):
    return [
        ValuationRead.model_validate(v).model_dump()
        for v in ValuationEngine(session).history(yacht.id)
    ]


@router.post("/{yacht_id}/valuation/recalculate")
def post_recalculate(
    yacht: Yacht = Depends(require(Capability.MANAGE_VALUATION)),
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_db),
):
    """Force a fresh valuation snapshot."""
    valuation = ValuationEngine(session).recalculate(yacht.id, actor_id=actor.id)
    return ValuationRead.model_validate(valuation).model_dump()


@router.get("/{yacht_id}/depreciation")
def get_depreciation(
    yacht: Yacht = Depends(view_valuation), session: Session = Depends(get_db)
):
    """Declining-balance depreciation by year."""
    return {
        "yacht_id": yacht.id,
        "schedule": [entry.model_dump() for entry in depreciation_schedule(yacht)],
    }
