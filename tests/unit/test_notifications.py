import pytest

from yacht_maintenance.errors import NotFoundError
from yacht_maintenance.notifications import (
    list_notifications,
    mark_read,
    notify,
    recipient_for,
)


class TestNotifications:
    def test_recipient_prefers_owner(self, sample_yacht, owner, staff_user):
        assert recipient_for(sample_yacht, staff_user.id) == owner.id

    def test_recipient_falls_back_to_actor(self, other_yacht, staff_user):
        assert recipient_for(other_yacht, staff_user.id) == staff_user.id
        assert recipient_for(other_yacht, None) is None

    def test_dropped_without_recipient(self, session):
        assert notify(session, None, "trip_started", "Trip", "No one to tell") is None

    def test_unread_filter_and_mark_read(self, session, owner):
        first = notify(session, owner.id, "trip_started", "Trip", "First")
        notify(session, owner.id, "condition_alert", "Alert", "Second", priority="high")

        assert len(list_notifications(session, owner.id)) == 2
        mark_read(session, first.id, owner.id)
        unread = list_notifications(session, owner.id, unread_only=True)
        assert [n.message for n in unread] == ["Second"]
        assert unread[0].priority == "high"

    def test_other_users_notification_not_found(self, session, owner, staff_user):
        note = notify(session, owner.id, "trip_started", "Trip", "Private")
        with pytest.raises(NotFoundError):
            mark_read(session, note.id, staff_user.id)
        assert note.read is False
