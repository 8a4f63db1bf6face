from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from yacht_maintenance.access.policy import Actor
from yacht_maintenance.api.dependencies import get_actor, get_db
from yacht_maintenance.models.schemas import NotificationRead
from yacht_maintenance.notifications import list_notifications, mark_read

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("")
def get_notifications(
    unread_only: bool = False,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_db),
):
    """The caller's notifications, newest first."""
    return [
        NotificationRead.model_validate(n).model_dump()
        for n in list_notifications(session, actor.id, unread_only)
    ]


@router.post("/{notification_id}/read")
def post_mark_read(
    notification_id: int,
    actor: Actor = Depends(get_actor),
    session: Session = Depends(get_db),
):
    notification = mark_read(session, notification_id, actor.id)
    return NotificationRead.model_validate(notification).model_dump()
