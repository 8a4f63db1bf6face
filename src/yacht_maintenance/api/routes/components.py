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
    ComponentCreate,
    ComponentRead,
    ComponentUpdate,
)
from yacht_maintenance.tracking.components import (
    get_component,
    list_components,
    register_component,
    update_component,
)

router = APIRouter(tags=["components"])


@router.get("/yachts/{yacht_id}/components")
def get_yacht_components(
    component_type: str | None = None,
    yacht: Yacht = Depends(require(Capability.VIEW_MAINTENANCE)),
    session: Session = Depends(get_db),
):
    """List a yacht's component inventory."""
    return [
        ComponentRead.model_validate(c).model_dump()
        for c in list_components(session, yacht.id, component_type)
    ]


@router.post("/yachts/{yacht_id}/components", status_code=201)
def create_component(
    body: ComponentCreate,
    yacht: Yacht = Depends(require(Capability.MANAGE_MAINTENANCE)),
    session: Session = Depends(get_db),
):
    """Register a component on a yacht."""
    component = register_component(session, yacht.id, body)
    return ComponentRead.model_validate(component).model_dump()


@router.get("/components/{component_id}")
def get_component_detail(
    component_id: int,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_db),
):
    component = get_component(session, component_id)
    authorize_yacht(session, actor, component.yacht_id, Capability.VIEW_MAINTENANCE)
    return ComponentRead.model_validate(component).model_dump()


@router.patch("/components/{component_id}")
def patch_component(
    component_id: int,
    body: ComponentUpdate,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_db),
):
    """Edit component metadata. Condition changes only through assessments."""
    component = get_component(session, component_id)
    authorize_yacht(
        session, actor, component.yacht_id, Capability.MANAGE_MAINTENANCE
    )
    component = update_component(session, component_id, body)
    return ComponentRead.model_validate(component).model_dump()
