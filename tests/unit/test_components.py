from datetime import datetime, timedelta

import pytest
from pydantic import ValidationError

from yacht_maintenance.errors import NotFoundError, ValidationFailedError
from yacht_maintenance.models.schemas import (
    ComponentCreate,
    ComponentUpdate,
    Criticality,
)
from yacht_maintenance.tracking.components import (
    apply_inspection,
    apply_maintenance,
    component_for_yacht,
    list_components,
    register_component,
    update_component,
)


class TestRegisterComponent:
    def test_derives_next_maintenance_from_interval(self, session, sample_yacht):
        component = register_component(
            session,
            sample_yacht.id,
            ComponentCreate(
                component_type="generator",
                component_name="Genset",
                criticality=Criticality.HIGH,
                last_inspection_date=datetime(2025, 3, 1),
                maintenance_interval_days=90,
            ),
        )
        assert component.id is not None
        assert component.criticality == "high"
        assert component.next_maintenance_date == datetime(2025, 5, 30)

    def test_rejects_maintenance_before_inspection(self):
        with pytest.raises(ValidationError):
            ComponentCreate(
                component_type="hull",
                component_name="Hull",
                last_inspection_date=datetime(2025, 3, 1),
                next_maintenance_date=datetime(2025, 2, 1),
            )

    def test_condition_out_of_range(self):
        with pytest.raises(ValidationError):
            ComponentCreate(
                component_type="hull", component_name="Hull", current_condition=120
            )

    def test_unknown_yacht(self, session):
        with pytest.raises(NotFoundError):
            register_component(
                session,
                9999,
                ComponentCreate(component_type="hull", component_name="Hull"),
            )


class TestQueries:
    def test_list_filters_by_type(self, session, sample_yacht, sample_components):
        engines = list_components(session, sample_yacht.id, "engine")
        assert [c.component_name for c in engines] == ["Main Engine"]
        assert len(list_components(session, sample_yacht.id)) == 3

    def test_component_on_other_yacht_rejected(
        self, session, other_yacht, sample_components
    ):
        with pytest.raises(ValidationFailedError):
            component_for_yacht(session, other_yacht.id, sample_components["engine"].id)

    def test_no_component_reference(self, session, sample_yacht):
        assert component_for_yacht(session, sample_yacht.id, None) is None


class TestUpdateComponent:
    def test_partial_update(self, session, sample_components):
        engine = sample_components["engine"]
        updated = update_component(
            session,
            engine.id,
            ComponentUpdate(manufacturer="Volvo Penta", criticality=Criticality.HIGH),
        )
        assert updated.manufacturer == "Volvo Penta"
        assert updated.criticality == "high"
        assert float(updated.current_condition) == 80.0

    def test_update_cannot_break_date_order(self, session, sample_components):
        with pytest.raises(ValidationFailedError):
            update_component(
                session,
                sample_components["engine"].id,
                ComponentUpdate(next_maintenance_date=datetime(2024, 12, 1)),
            )


class TestDateMaintenance:
    def test_inspection_recomputes_from_interval(self, sample_components):
        engine = sample_components["engine"]
        apply_inspection(engine, datetime(2025, 6, 1))
        assert engine.last_inspection_date == datetime(2025, 6, 1)
        assert engine.next_maintenance_date == datetime(2025, 6, 1) + timedelta(
            days=180
        )

    def test_older_inspection_does_not_move_date_back(self, sample_components):
        engine = sample_components["engine"]
        apply_inspection(engine, datetime(2024, 11, 1))
        assert engine.last_inspection_date == datetime(2025, 1, 10)

    def test_inspection_clamps_without_interval(self, sample_components):
        interior = sample_components["interior"]
        interior.next_maintenance_date = datetime(2025, 2, 1)
        apply_inspection(interior, datetime(2025, 4, 1))
        assert interior.next_maintenance_date == datetime(2025, 4, 1)

    def test_maintenance_uses_schedule_when_no_interval(self, sample_components):
        interior = sample_components["interior"]
        apply_maintenance(interior, datetime(2025, 5, 1), datetime(2025, 8, 1))
        assert interior.last_maintenance_date == datetime(2025, 5, 1)
        assert interior.next_maintenance_date == datetime(2025, 8, 1)

    def test_maintenance_never_precedes_inspection(self, sample_components):
        engine = sample_components["engine"]
        engine.maintenance_interval_days = None
        apply_maintenance(engine, datetime(2024, 10, 1), datetime(2024, 12, 1))
        assert engine.next_maintenance_date == engine.last_inspection_date
