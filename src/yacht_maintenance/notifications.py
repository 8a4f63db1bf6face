import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from yacht_maintenance.errors import NotFoundError
from yacht_maintenance.models.orm import Notification, Yacht

logger = logging.getLogger(__name__)


def recipient_for(yacht: Yacht, actor_id: int | None) -> int | None:
    """The yacht owner receives maintenance notices, else whoever acted."""
    return yacht.owner_id if yacht.owner_id is not None else actor_id


def notify(
    session: Session,
    user_id: int | None,
    type_: str,
    title: str,
    message: str,
    data: dict | None = None,
    priority: str = "medium",
    action_url: str | None = None,
) -> Notification | None:
    if user_id is None:
        logger.debug("Dropping '%s' notification without recipient", type_)
        return None

    notification = Notification(
        user_id=user_id,
        type=type_,
        title=title,
        message=message,
        data=data or {},
        priority=priority,
        action_url=action_url,
    )
    session.add(notification)
    session.flush()
    return notification


def list_notifications(
    session: Session, user_id: int, unread_only: bool = False
) -> list[Notification]:
    stmt = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        stmt = stmt.where(Notification.read.is_(False))
    return list(
        session.scalars(
            stmt.order_by(Notification.created_at.desc(), Notification.id.desc())
        ).all()
    )


def mark_read(session: Session, notification_id: int, user_id: int) -> Notification:
    notification = session.get(Notification, notification_id)
    # Other users' notifications are reported as missing.
    if notification is None or notification.user_id != user_id:
        raise NotFoundError("Notification", notification_id)
    notification.read = True
    session.flush()
    return notification
