from collections.abc import Generator

from fastapi import Depends, Header, Request
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from yacht_maintenance.access.policy import (
    Actor,
    Capability,
    Resource,
    Role,
    Scope,
    authorize,
)
from yacht_maintenance.errors import AuthenticationRequiredError
from yacht_maintenance.models.database import get_engine, get_session_factory
from yacht_maintenance.models.orm import Yacht
from yacht_maintenance.tracking.components import get_yacht

STAFF_PREFIX = "/api/v1/staff"

_engine: Engine | None = None
_session_factory = None


def _get_factory():
    global _engine, _session_factory
    if _session_factory is None:
        _engine = get_engine()
        _session_factory = get_session_factory(_engine)
    return _session_factory


def reset_factory() -> None:
    """Reset the cached engine/factory (used in tests)."""
    global _engine, _session_factory
    _engine = None
    _session_factory = None


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency that yields a database session."""
    factory = _get_factory()
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_actor(
    request: Request,
    x_actor_id: str | None = Header(None),
    x_actor_role: str | None = Header(None),
    x_actor_permissions: str | None = Header(None),
) -> Actor:
    """Caller identity as forwarded by the upstream auth layer.

    Requests under the staff mirror are evaluated in the staff scope.
    """
    if not x_actor_id or not x_actor_role:
        raise AuthenticationRequiredError("Authentication required")
    try:
        actor_id = int(x_actor_id)
        role = Role(x_actor_role)
    except ValueError:
        raise AuthenticationRequiredError("Invalid actor identity") from None

    permissions = frozenset(
        p.strip() for p in (x_actor_permissions or "").split(",") if p.strip()
    )
    scope = (
        Scope.STAFF if request.url.path.startswith(STAFF_PREFIX) else Scope.MEMBER
    )
    return Actor(id=actor_id, role=role, permissions=permissions, scope=scope)


def authorize_yacht(
    session: Session, actor: Actor, yacht_id: int, capability: Capability
) -> Yacht:
    """Load a yacht and check ``actor`` may use ``capability`` on it."""
    yacht = get_yacht(session, yacht_id)
    authorize(
        actor, Resource(capability, owner_id=yacht.owner_id, scope=actor.scope)
    )
    return yacht


def require(capability: Capability):
    """Dependency for yacht-scoped routes with a ``yacht_id`` path parameter."""

    def dependency(
        yacht_id: int,
        actor: Actor = Depends(get_actor),
        session: Session = Depends(get_db),
    ) -> Yacht:
        return authorize_yacht(session, actor, yacht_id, capability)

    return dependency
