"""Demo data for yacht-maintenance.

Builds a small club fleet (three yachts with owners, components, bookings
and 18 months of trips, maintenance and assessments) through the same
service functions the API uses, so every derived effect is present.
"""

import random
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy.orm import Session

from yacht_maintenance.models.orm import Booking, User, Yacht, utcnow
from yacht_maintenance.models.schemas import (
    AssessmentCreate,
    ComponentCreate,
    Criticality,
    Frequency,
    Priority,
    RecordCompletion,
    RecordCreate,
    ScheduleCreate,
    TripCompletion,
    TripStart,
    WeatherSnapshot,
)
from yacht_maintenance.scheduling.records import (
    complete_record,
    create_record,
    start_record,
)
from yacht_maintenance.scheduling.schedules import create_schedule
from yacht_maintenance.tracking.assessments import record_assessment
from yacht_maintenance.tracking.components import register_component
from yacht_maintenance.tracking.trips import complete_trip, start_trip

SEED = 42

# (name, location, size ft, capacity, year made, purchase price, hourly rate)
YACHTS = [
    ("Sea Breeze", "Marina Bay", 42, 10, 2016, 480_000, 450),
    ("Northern Star", "Harbor Point", 55, 14, 2011, 1_150_000, 780),
    ("Blue Horizon", "Marina Bay", 38, 8, 2020, 360_000, 380),
]

# (type, name, criticality, replacement cost, lifespan years, interval days)
COMPONENTS = [
    ("engine", "Main Engine", Criticality.CRITICAL, 85_000, 15, 180),
    ("generator", "Generator", Criticality.HIGH, 18_000, 12, 180),
    ("hull", "Hull", Criticality.CRITICAL, 120_000, 30, 365),
    ("electrical", "Electrical System", Criticality.MEDIUM, 12_000, 15, 365),
    ("navigation", "Navigation Electronics", Criticality.HIGH, 9_500, 8, 365),
    ("interior", "Interior", Criticality.LOW, 25_000, 10, None),
]

# (task, frequency, interval, component type, estimated cost)
SCHEDULES = [
    ("Engine oil and filter change", Frequency.ENGINE_HOURS, 100, "engine", 650),
    ("Generator service", Frequency.SEMI_ANNUAL, 1, "generator", 900),
    ("Hull cleaning and antifouling", Frequency.ANNUAL, 1, "hull", 4_500),
    ("Safety equipment inspection", Frequency.QUARTERLY, 1, None, 350),
    ("Electrical system check", Frequency.MONTHLY, 6, "electrical", 400),
]

LOCATIONS = ["Marina Bay", "Harbor Point", "Cove Island", "Sunset Reef"]


def _users(session: Session) -> tuple[list[User], User]:
    owners = [
        User(
            username=f"owner{i}",
            email=f"owner{i}@example.com",
            full_name=f"Demo Owner {i}",
            role="yacht_owner",
        )
        for i in range(1, 3)
    ]
    staff = User(
        username="staff1",
        email="staff1@example.com",
        full_name="Demo Staff",
        role="staff",
        permissions=["yachts", "maintenance", "trips", "analytics"],
    )
    session.add_all(owners + [staff])
    session.flush()
    return owners, staff


def _trip_history(
    session: Session, yacht: Yacht, staff: User, start: datetime, now: datetime
) -> int:
    trips = 0
    day = start
    while day < now - timedelta(days=2):
        day += timedelta(days=random.randint(4, 12))
        hours = random.choice([4, 6, 8])
        begin = day.replace(hour=9, minute=0, second=0, microsecond=0)
        end = begin + timedelta(hours=hours)
        if end >= now:
            break

        booking = Booking(
            user_id=staff.id,
            yacht_id=yacht.id,
            start_time=begin,
            end_time=end,
            guest_count=random.randint(2, yacht.capacity or 6),
            total_price=yacht.price_per_hour * hours,
            status="completed",
        )
        session.add(booking)
        session.flush()

        trip = start_trip(
            session,
            TripStart(
                booking_id=booking.id,
                yacht_id=yacht.id,
                captain_id=staff.id,
                start_time=begin,
                start_location=yacht.location or LOCATIONS[0],
                guest_count=booking.guest_count,
                weather_conditions=WeatherSnapshot(
                    wind_speed=round(random.uniform(3, 22), 1),
                    wave_height=round(random.uniform(0.2, 1.8), 1),
                ),
                fuel_level=100,
            ),
            actor_id=staff.id,
        )
        engine_hours = round(hours * random.uniform(0.6, 0.9), 1)
        complete_trip(
            session,
            trip.id,
            TripCompletion(
                end_time=end,
                end_location=random.choice(LOCATIONS),
                total_distance=round(engine_hours * random.uniform(7, 12), 1),
                max_speed=round(random.uniform(18, 28), 1),
                avg_speed=round(random.uniform(8, 14), 1),
                engine_hours=engine_hours,
                fuel_consumed=round(engine_hours * random.uniform(25, 45), 1),
                damage_reported=random.random() < 0.03,
                maintenance_required=random.random() < 0.05,
                fuel_level=round(random.uniform(20, 70)),
            ),
            actor_id=staff.id,
        )
        trips += 1
    return trips


def _maintenance_history(
    session: Session, yacht: Yacht, staff: User, start: datetime, now: datetime
) -> int:
    components = {c.component_type: c for c in yacht.components}
    count = 0
    month = start
    while month < now - timedelta(days=30):
        month += timedelta(days=random.randint(25, 45))
        if month >= now - timedelta(days=2):
            break
        component = random.choice(list(components.values()))
        record = create_record(
            session,
            RecordCreate(
                yacht_id=yacht.id,
                component_id=component.id,
                task_type="preventive_maintenance",
                category=component.component_type,
                description=f"Routine service of {component.component_name}",
                priority=Priority.MEDIUM,
                scheduled_date=month,
                estimated_cost=round(random.uniform(300, 3_000), 2),
            ),
            actor_id=staff.id,
        )
        start_record(session, record.id, now=month)
        labor = round(random.uniform(200, 1_500), 2)
        parts = round(random.uniform(100, 2_500), 2)
        complete_record(
            session,
            record.id,
            RecordCompletion(
                completed_date=month + timedelta(hours=random.randint(3, 30)),
                labor_cost=labor,
                parts_cost=parts,
                completed_by="Club Marine Services",
                quality_check_passed=True,
                condition_after=random.randint(55, 95),
            ),
            actor_id=staff.id,
        )
        count += 1
    return count


def seed_demo(session: Session, now: datetime | None = None) -> dict[str, int]:
    """Populate the demo fleet; returns row counts by kind."""
    random.seed(SEED)
    now = now or utcnow()
    history_start = now - timedelta(days=540)
    owners, staff = _users(session)

    counts = {"yachts": 0, "components": 0, "schedules": 0, "trips": 0, "records": 0}
    for i, (name, location, size, capacity, year, price, rate) in enumerate(YACHTS):
        yacht = Yacht(
            name=name,
            location=location,
            size=size,
            capacity=capacity,
            owner_id=owners[i % len(owners)].id,
            year_made=year,
            purchase_price=Decimal(price),
            price_per_hour=Decimal(rate),
        )
        session.add(yacht)
        session.flush()
        counts["yachts"] += 1

        for ctype, cname, criticality, cost, lifespan, interval in COMPONENTS:
            register_component(
                session,
                yacht.id,
                ComponentCreate(
                    component_type=ctype,
                    component_name=cname,
                    installation_date=datetime(year, 1, 1),
                    expected_lifespan_years=lifespan,
                    maintenance_interval_days=interval,
                    replacement_cost=cost,
                    criticality=criticality,
                ),
            )
            counts["components"] += 1
        session.refresh(yacht)

        by_type = {c.component_type: c for c in yacht.components}
        for task, frequency, interval, ctype, cost in SCHEDULES:
            create_schedule(
                session,
                ScheduleCreate(
                    yacht_id=yacht.id,
                    component_id=by_type[ctype].id if ctype else None,
                    task_name=task,
                    frequency=frequency,
                    interval_value=interval,
                    last_completed=history_start,
                    estimated_cost=cost,
                ),
                now=now,
            )
            counts["schedules"] += 1

        counts["trips"] += _trip_history(session, yacht, staff, history_start, now)
        counts["records"] += _maintenance_history(
            session, yacht, staff, history_start, now
        )

        for component in yacht.components:
            # Older hulls and engines wear faster.
            wear = (now.year - year) * random.uniform(1.5, 3.5)
            record_assessment(
                session,
                AssessmentCreate(
                    yacht_id=yacht.id,
                    component_id=component.id,
                    overall_score=max(int(random.uniform(70, 98) - wear), 25),
                    assessment_date=now - timedelta(days=random.randint(1, 20)),
                ),
                actor_id=staff.id,
            )

    session.flush()
    return counts
