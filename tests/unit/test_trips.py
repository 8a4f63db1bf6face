from datetime import timedelta

import pytest

from yacht_maintenance.errors import NotFoundError, ValidationFailedError
from yacht_maintenance.models.schemas import (
    TripCompletion,
    TripStart,
    WeatherSnapshot,
)
from yacht_maintenance.notifications import list_notifications
from yacht_maintenance.scheduling.records import list_records
from yacht_maintenance.tracking.trips import complete_trip, list_trip_logs, start_trip
from yacht_maintenance.tracking.usage import list_usage_metrics


@pytest.fixture
def trip(session, sample_yacht, sample_booking, staff_user):
    return start_trip(
        session,
        TripStart(
            booking_id=sample_booking.id,
            yacht_id=sample_yacht.id,
            captain_id=staff_user.id,
            start_time=sample_booking.start_time,
            start_location="Marina Bay",
            weather_conditions=WeatherSnapshot(wind_speed=12, wave_height=0.8),
            fuel_level=95,
        ),
        actor_id=staff_user.id,
    )


def _completion(trip, **kwargs):
    data = {
        "end_time": trip.start_time + timedelta(hours=6),
        "end_location": "Cove Island",
        "total_distance": 42,
        "engine_hours": 5.5,
        "fuel_consumed": 160,
    }
    data.update(kwargs)
    return TripCompletion(**data)


class TestStartTrip:
    def test_opens_trip(self, trip, sample_booking):
        assert trip.id is not None
        assert trip.end_time is None
        assert trip.guest_count == sample_booking.guest_count
        assert trip.weather_conditions == {"wind_speed": 12.0, "wave_height": 0.8}
        assert float(trip.fuel_level) == 95.0

    def test_notifies_owner(self, session, trip, owner):
        notes = list_notifications(session, owner.id)
        assert [n.type for n in notes] == ["trip_started"]
        assert notes[0].data["trip_log_id"] == trip.id

    def test_booking_for_other_yacht_rejected(
        self, session, other_yacht, sample_booking
    ):
        with pytest.raises(ValidationFailedError):
            start_trip(
                session,
                TripStart(
                    booking_id=sample_booking.id,
                    yacht_id=other_yacht.id,
                    start_time=sample_booking.start_time,
                    start_location="Harbor Point",
                ),
            )

    def test_unknown_booking(self, session, sample_yacht, now):
        with pytest.raises(NotFoundError):
            start_trip(
                session,
                TripStart(
                    booking_id=9999,
                    yacht_id=sample_yacht.id,
                    start_time=now,
                    start_location="Marina Bay",
                ),
            )


class TestCompleteTrip:
    def test_records_usage_metrics(self, session, trip, sample_yacht):
        complete_trip(session, trip.id, _completion(trip))
        metrics = {
            m.metric_type: (float(m.metric_value), m.unit)
            for m in list_usage_metrics(session, sample_yacht.id)
        }
        assert metrics == {
            "engine_hours": (5.5, "hours"),
            "fuel_consumption": (160.0, "liters"),
            "distance": (42.0, "nautical_miles"),
        }
        assert float(trip.engine_hours) == 5.5
        assert trip.end_location == "Cove Island"

    def test_missing_readings_skipped(self, session, trip, sample_yacht):
        complete_trip(
            session,
            trip.id,
            _completion(trip, total_distance=None, fuel_consumed=None),
        )
        metrics = list_usage_metrics(session, sample_yacht.id)
        assert [m.metric_type for m in metrics] == ["engine_hours"]

    def test_damage_recorded_as_incident(self, session, trip, sample_yacht):
        complete_trip(session, trip.id, _completion(trip, damage_reported=True))
        incidents = list_usage_metrics(
            session, sample_yacht.id, metric_type="damage_incident"
        )
        assert len(incidents) == 1
        assert float(incidents[0].metric_value) == 1.0
        assert incidents[0].trip_log_id == trip.id

    def test_maintenance_required_schedules_post_trip_work(
        self, session, trip, sample_yacht
    ):
        completion = _completion(
            trip, maintenance_required=True, crew_notes="Bilge pump noisy"
        )
        complete_trip(session, trip.id, completion)
        records = list_records(session, sample_yacht.id)
        assert len(records) == 1
        record = records[0]
        assert record.task_type == "post_trip_maintenance"
        assert record.priority == "high"
        assert record.trip_log_id == trip.id
        assert record.description == "Bilge pump noisy"
        assert record.scheduled_date == completion.end_time + timedelta(days=1)
        assert float(record.estimated_cost) == 500.0

    def test_weather_merged(self, session, trip):
        complete_trip(
            session,
            trip.id,
            _completion(trip, weather_conditions=WeatherSnapshot(wind_speed=20)),
        )
        assert trip.weather_conditions == {"wind_speed": 20.0, "wave_height": 0.8}

    def test_double_completion_rejected(self, session, trip):
        complete_trip(session, trip.id, _completion(trip))
        with pytest.raises(ValidationFailedError):
            complete_trip(session, trip.id, _completion(trip))

    def test_end_before_start_rejected(self, session, trip):
        with pytest.raises(ValidationFailedError):
            complete_trip(
                session,
                trip.id,
                _completion(trip, end_time=trip.start_time - timedelta(minutes=1)),
            )

    def test_list_trip_logs(self, session, trip, sample_yacht, other_yacht):
        assert [t.id for t in list_trip_logs(session, sample_yacht.id)] == [trip.id]
        assert list_trip_logs(session, other_yacht.id) == []
