"""Central access policy for maintenance resources.

All role and permission checks go through :func:`evaluate`; route handlers
only describe the resource they touch.
"""

from dataclasses import dataclass, field
from enum import Enum

from yacht_maintenance.errors import PermissionDeniedError


class Role(str, Enum):
    ADMIN = "admin"
    YACHT_OWNER = "yacht_owner"
    STAFF = "staff"
    MEMBER = "member"
    SERVICE_PROVIDER = "service_provider"


class Capability(str, Enum):
    VIEW_MAINTENANCE = "view_maintenance"
    MANAGE_MAINTENANCE = "manage_maintenance"
    LOG_TRIPS = "log_trips"
    VIEW_VALUATION = "view_valuation"
    MANAGE_VALUATION = "manage_valuation"


class Scope(str, Enum):
    MEMBER = "member"
    STAFF = "staff"


# Staff permission string (as stored in the ``permissions`` JSON column)
# that grants each capability.
STAFF_PERMISSIONS: dict[Capability, str] = {
    Capability.VIEW_MAINTENANCE: "yachts",
    Capability.MANAGE_MAINTENANCE: "maintenance",
    Capability.LOG_TRIPS: "trips",
    Capability.VIEW_VALUATION: "analytics",
    Capability.MANAGE_VALUATION: "analytics",
}


@dataclass(frozen=True)
class Resource:
    capability: Capability
    owner_id: int | None = None
    scope: Scope = Scope.MEMBER


@dataclass(frozen=True)
class Actor:
    id: int
    role: Role
    permissions: frozenset[str] = field(default_factory=frozenset)
    scope: Scope = Scope.MEMBER


@dataclass(frozen=True)
class PolicyDecision:
    allowed: bool
    reason: str


def evaluate(
    role: Role,
    permissions: frozenset[str] | set[str],
    resource: Resource,
    actor_id: int | None = None,
) -> PolicyDecision:
    """Decide whether a caller may use ``resource``.

    Admins may do anything. Staff need the permission mapped to the
    capability, in either scope. Yacht owners are limited to their own
    yachts and never pass through the staff mirror. Everyone else is denied.
    """
    if role == Role.ADMIN:
        return PolicyDecision(True, "admin")

    if role == Role.STAFF:
        required = STAFF_PERMISSIONS[resource.capability]
        if required in permissions:
            return PolicyDecision(True, f"staff permission '{required}'")
        return PolicyDecision(False, f"missing staff permission '{required}'")

    if resource.scope == Scope.STAFF:
        return PolicyDecision(False, "staff access required")

    if role == Role.YACHT_OWNER:
        if resource.owner_id is not None and resource.owner_id == actor_id:
            return PolicyDecision(True, "yacht owner")
        return PolicyDecision(False, "not the owner of this yacht")

    return PolicyDecision(False, f"role '{role.value}' has no maintenance access")


def authorize(actor: Actor, resource: Resource) -> None:
    """Raise PermissionDeniedError unless the policy allows ``actor``."""
    decision = evaluate(actor.role, actor.permissions, resource, actor_id=actor.id)
    if not decision.allowed:
        raise PermissionDeniedError(
            f"Insufficient permissions: {decision.reason}",
            {"capability": resource.capability.value},
        )
