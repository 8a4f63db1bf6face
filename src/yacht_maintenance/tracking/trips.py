import logging
from datetime import timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from yacht_maintenance.config.settings import get_settings
from yacht_maintenance.errors import NotFoundError, ValidationFailedError
from yacht_maintenance.models.orm import Booking, TripLog, to_decimal
from yacht_maintenance.models.schemas import (
    MetricType,
    Priority,
    RecordCreate,
    TripCompletion,
    TripStart,
    UsageMetricCreate,
)
from yacht_maintenance.notifications import notify, recipient_for
from yacht_maintenance.scheduling.records import create_record
from yacht_maintenance.tracking.components import get_yacht
from yacht_maintenance.tracking.usage import record_usage_metric

logger = logging.getLogger(__name__)

# Usage metrics captured from a completed trip: (trip field, metric, unit).
TRIP_METRICS = [
    ("engine_hours", MetricType.ENGINE_HOURS, "hours"),
    ("fuel_consumed", MetricType.FUEL_CONSUMPTION, "liters"),
    ("total_distance", MetricType.DISTANCE, "nautical_miles"),
]

LEVEL_FIELDS = ("fuel_level", "battery_level", "water_level", "waste_level")


def get_trip(session: Session, trip_id: int) -> TripLog:
    trip = session.get(TripLog, trip_id)
    if trip is None:
        raise NotFoundError("Trip log", trip_id)
    return trip


def list_trip_logs(session: Session, yacht_id: int) -> list[TripLog]:
    return list(
        session.scalars(
            select(TripLog)
            .where(TripLog.yacht_id == yacht_id)
            .order_by(TripLog.start_time.desc())
        ).all()
    )


def start_trip(
    session: Session, data: TripStart, actor_id: int | None = None
) -> TripLog:
    """Open a trip log for a booking on the same yacht."""
    yacht = get_yacht(session, data.yacht_id)
    booking = session.get(Booking, data.booking_id)
    if booking is None:
        raise NotFoundError("Booking", data.booking_id)
    if booking.yacht_id != yacht.id:
        raise ValidationFailedError(
            f"Booking {booking.id} is not for yacht {yacht.id}",
            {"booking_id": booking.id, "yacht_id": yacht.id},
        )

    trip = TripLog(
        booking_id=booking.id,
        yacht_id=yacht.id,
        captain_id=data.captain_id,
        start_time=data.start_time,
        start_location=data.start_location,
        guest_count=data.guest_count or booking.guest_count,
        weather_conditions=(
            data.weather_conditions.model_dump(exclude_none=True)
            if data.weather_conditions
            else None
        ),
    )
    for name in LEVEL_FIELDS:
        setattr(trip, name, to_decimal(getattr(data, name)))
    session.add(trip)
    session.flush()

    notify(
        session,
        recipient_for(yacht, actor_id),
        "trip_started",
        "Trip Started",
        f"Trip log {trip.id} started for {yacht.name}",
        data={"yacht_id": yacht.id, "trip_log_id": trip.id},
        action_url=f"/maintenance?yacht={yacht.id}&tab=trips",
    )
    logger.info("Trip %d started for yacht %d", trip.id, yacht.id)
    return trip


def complete_trip(
    session: Session,
    trip_id: int,
    data: TripCompletion,
    actor_id: int | None = None,
) -> TripLog:
    """Close a trip, derive its usage metrics and raise follow-up work.

    Engine hours, fuel and distance become usage metrics; reported damage
    becomes a ``damage_incident`` metric; ``maintenance_required`` schedules
    a high-priority post-trip record for the next day.
    """
    trip = get_trip(session, trip_id)
    if trip.end_time is not None:
        raise ValidationFailedError(
            f"Trip log {trip_id} is already completed", {"trip_log_id": trip_id}
        )
    if data.end_time < trip.start_time:
        raise ValidationFailedError(
            "end_time must not precede start_time",
            {"start_time": trip.start_time.isoformat()},
        )

    trip.end_time = data.end_time
    trip.end_location = data.end_location
    trip.total_distance = to_decimal(data.total_distance)
    trip.max_speed = to_decimal(data.max_speed)
    trip.avg_speed = to_decimal(data.avg_speed)
    trip.engine_hours = to_decimal(data.engine_hours)
    trip.fuel_consumed = to_decimal(data.fuel_consumed)
    trip.crew_notes = data.crew_notes
    trip.damage_reported = data.damage_reported
    trip.maintenance_required = data.maintenance_required
    if data.weather_conditions:
        weather = dict(trip.weather_conditions or {})
        weather.update(data.weather_conditions.model_dump(exclude_none=True))
        trip.weather_conditions = weather
    for name in LEVEL_FIELDS:
        value = getattr(data, name)
        if value is not None:
            setattr(trip, name, to_decimal(value))
    session.flush()

    for field, metric_type, unit in TRIP_METRICS:
        value = getattr(data, field)
        if value is None:
            continue
        record_usage_metric(
            session,
            UsageMetricCreate(
                yacht_id=trip.yacht_id,
                trip_log_id=trip.id,
                metric_type=metric_type,
                metric_value=value,
                unit=unit,
                recorded_at=data.end_time,
            ),
        )

    if data.damage_reported:
        record_usage_metric(
            session,
            UsageMetricCreate(
                yacht_id=trip.yacht_id,
                trip_log_id=trip.id,
                metric_type=MetricType.DAMAGE_INCIDENT,
                metric_value=1,
                unit="count",
                recorded_at=data.end_time,
                notes=f"Damage reported during trip {trip.id}",
            ),
        )

    if data.maintenance_required:
        settings = get_settings()
        create_record(
            session,
            RecordCreate(
                yacht_id=trip.yacht_id,
                trip_log_id=trip.id,
                task_type="post_trip_maintenance",
                category="general",
                description=data.crew_notes or "Post-trip maintenance required",
                priority=Priority.HIGH,
                scheduled_date=data.end_time + timedelta(days=1),
                estimated_cost=settings.default_post_trip_estimate,
            ),
            actor_id=actor_id,
        )

    logger.info("Trip %d completed for yacht %d", trip.id, trip.yacht_id)
    return trip
