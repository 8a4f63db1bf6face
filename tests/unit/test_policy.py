import pytest

from yacht_maintenance.access.policy import (
    Actor,
    Capability,
    Resource,
    Role,
    Scope,
    authorize,
    evaluate,
)
from yacht_maintenance.errors import PermissionDeniedError


def _resource(capability=Capability.VIEW_MAINTENANCE, owner_id=1, scope=Scope.MEMBER):
    return Resource(capability, owner_id=owner_id, scope=scope)


class TestEvaluate:
    def test_admin_allowed_everywhere(self):
        for scope in Scope:
            decision = evaluate(
                Role.ADMIN, set(), _resource(Capability.MANAGE_VALUATION, scope=scope)
            )
            assert decision.allowed

    def test_owner_allowed_on_own_yacht(self):
        decision = evaluate(Role.YACHT_OWNER, set(), _resource(owner_id=7), actor_id=7)
        assert decision.allowed

    def test_owner_denied_on_other_yacht(self):
        decision = evaluate(Role.YACHT_OWNER, set(), _resource(owner_id=8), actor_id=7)
        assert not decision.allowed

    def test_owner_denied_on_unowned_yacht(self):
        decision = evaluate(
            Role.YACHT_OWNER, set(), _resource(owner_id=None), actor_id=7
        )
        assert not decision.allowed

    def test_owner_denied_in_staff_scope(self):
        decision = evaluate(
            Role.YACHT_OWNER,
            set(),
            _resource(owner_id=7, scope=Scope.STAFF),
            actor_id=7,
        )
        assert not decision.allowed
        assert "staff" in decision.reason

    @pytest.mark.parametrize(
        "capability, permission",
        [
            (Capability.VIEW_MAINTENANCE, "yachts"),
            (Capability.MANAGE_MAINTENANCE, "maintenance"),
            (Capability.LOG_TRIPS, "trips"),
            (Capability.VIEW_VALUATION, "analytics"),
            (Capability.MANAGE_VALUATION, "analytics"),
        ],
    )
    def test_staff_needs_mapped_permission(self, capability, permission):
        resource = _resource(capability, scope=Scope.STAFF)
        assert evaluate(Role.STAFF, {permission}, resource).allowed
        assert not evaluate(Role.STAFF, set(), resource).allowed

    def test_staff_permission_applies_in_member_scope(self):
        decision = evaluate(Role.STAFF, {"yachts"}, _resource(owner_id=None))
        assert decision.allowed

    def test_member_denied(self):
        decision = evaluate(Role.MEMBER, {"yachts"}, _resource(), actor_id=1)
        assert not decision.allowed

    def test_service_provider_denied(self):
        decision = evaluate(Role.SERVICE_PROVIDER, set(), _resource(), actor_id=1)
        assert not decision.allowed


class TestAuthorize:
    def test_allowed_returns_none(self):
        actor = Actor(id=3, role=Role.YACHT_OWNER)
        assert authorize(actor, _resource(owner_id=3)) is None

    def test_denied_raises(self):
        actor = Actor(id=3, role=Role.STAFF, permissions=frozenset({"yachts"}))
        with pytest.raises(PermissionDeniedError) as exc:
            authorize(actor, _resource(Capability.MANAGE_MAINTENANCE))
        assert exc.value.status_code == 403
        assert exc.value.details["capability"] == "manage_maintenance"
