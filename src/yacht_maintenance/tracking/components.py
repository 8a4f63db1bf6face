from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from yacht_maintenance.errors import NotFoundError, ValidationFailedError
from yacht_maintenance.models.orm import Yacht, YachtComponent, to_decimal
from yacht_maintenance.models.schemas import ComponentCreate, ComponentUpdate


def get_yacht(session: Session, yacht_id: int) -> Yacht:
    yacht = session.get(Yacht, yacht_id)
    if yacht is None:
        raise NotFoundError("Yacht", yacht_id)
    return yacht


def get_component(session: Session, component_id: int) -> YachtComponent:
    component = session.get(YachtComponent, component_id)
    if component is None:
        raise NotFoundError("Component", component_id)
    return component


def component_for_yacht(
    session: Session, yacht_id: int, component_id: int | None
) -> YachtComponent | None:
    """Load an optional component reference and check it sits on ``yacht_id``."""
    if component_id is None:
        return None
    component = get_component(session, component_id)
    if component.yacht_id != yacht_id:
        raise ValidationFailedError(
            f"Component {component_id} does not belong to yacht {yacht_id}",
            {"component_id": component_id, "yacht_id": yacht_id},
        )
    return component


def _check_dates(component: YachtComponent) -> None:
    if (
        component.last_inspection_date
        and component.next_maintenance_date
        and component.next_maintenance_date < component.last_inspection_date
    ):
        raise ValidationFailedError(
            "next_maintenance_date must not precede last_inspection_date",
            {"component_id": component.id},
        )


def register_component(
    session: Session, yacht_id: int, data: ComponentCreate
) -> YachtComponent:
    """Add a component to a yacht's inventory.

    When no next maintenance date is given but an interval and an inspection
    date are, the next date is derived from them.
    """
    get_yacht(session, yacht_id)
    values = data.model_dump()
    values["criticality"] = data.criticality.value
    values["current_condition"] = to_decimal(data.current_condition)
    values["replacement_cost"] = to_decimal(data.replacement_cost)

    component = YachtComponent(yacht_id=yacht_id, **values)
    if (
        component.next_maintenance_date is None
        and component.maintenance_interval_days
        and component.last_inspection_date
    ):
        component.next_maintenance_date = component.last_inspection_date + timedelta(
            days=component.maintenance_interval_days
        )
    _check_dates(component)

    session.add(component)
    session.flush()
    return component


def list_components(
    session: Session, yacht_id: int, component_type: str | None = None
) -> list[YachtComponent]:
    stmt = select(YachtComponent).where(YachtComponent.yacht_id == yacht_id)
    if component_type:
        stmt = stmt.where(YachtComponent.component_type == component_type)
    return list(session.scalars(stmt.order_by(YachtComponent.id)).all())


def update_component(
    session: Session, component_id: int, data: ComponentUpdate
) -> YachtComponent:
    component = get_component(session, component_id)
    changes = data.model_dump(exclude_unset=True)
    if "criticality" in changes and changes["criticality"] is not None:
        changes["criticality"] = data.criticality.value
    if "replacement_cost" in changes:
        changes["replacement_cost"] = to_decimal(changes["replacement_cost"])

    for field, value in changes.items():
        setattr(component, field, value)
    _check_dates(component)
    session.flush()
    return component


def apply_inspection(component: YachtComponent, inspected_at: datetime) -> None:
    """Advance the inspection date and keep next maintenance on or after it."""
    if (
        component.last_inspection_date is None
        or inspected_at >= component.last_inspection_date
    ):
        component.last_inspection_date = inspected_at

    if component.maintenance_interval_days:
        component.next_maintenance_date = component.last_inspection_date + timedelta(
            days=component.maintenance_interval_days
        )
    elif (
        component.next_maintenance_date is None
        or component.next_maintenance_date < component.last_inspection_date
    ):
        component.next_maintenance_date = component.last_inspection_date


def apply_maintenance(
    component: YachtComponent,
    completed_at: datetime,
    schedule_next_due: datetime | None = None,
) -> None:
    """Record serviced work on a component."""
    if (
        component.last_maintenance_date is None
        or completed_at >= component.last_maintenance_date
    ):
        component.last_maintenance_date = completed_at

    if component.maintenance_interval_days:
        candidate = completed_at + timedelta(days=component.maintenance_interval_days)
    else:
        candidate = schedule_next_due
    if candidate is not None:
        component.next_maintenance_date = candidate

    if (
        component.last_inspection_date
        and component.next_maintenance_date
        and component.next_maintenance_date < component.last_inspection_date
    ):
        component.next_maintenance_date = component.last_inspection_date
