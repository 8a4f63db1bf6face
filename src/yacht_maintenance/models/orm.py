from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utcnow() -> datetime:
    """Naive UTC timestamp; all DateTime columns store naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_decimal(value: float | Decimal | None, places: int = 2) -> Decimal | None:
    if value is None:
        return None
    return Decimal(str(round(float(value), places)))


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    email: Mapped[str | None] = mapped_column(String(200), unique=True)
    full_name: Mapped[str | None] = mapped_column(String(200))
    role: Mapped[str] = mapped_column(String(40), nullable=False)
    permissions: Mapped[list | None] = mapped_column(JSON, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class Yacht(Base):
    __tablename__ = "yachts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    location: Mapped[str | None] = mapped_column(String(120))
    size: Mapped[int | None] = mapped_column(Integer)
    capacity: Mapped[int | None] = mapped_column(Integer)
    owner_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("users.id"))
    year_made: Mapped[int | None] = mapped_column(Integer)
    purchase_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    price_per_hour: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    is_available: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    owner: Mapped["User"] = relationship()
    components: Mapped[list["YachtComponent"]] = relationship(back_populates="yacht")
    bookings: Mapped[list["Booking"]] = relationship(back_populates="yacht")
    trip_logs: Mapped[list["TripLog"]] = relationship(back_populates="yacht")
    maintenance_records: Mapped[list["MaintenanceRecord"]] = relationship(
        back_populates="yacht"
    )
    maintenance_schedules: Mapped[list["MaintenanceSchedule"]] = relationship(
        back_populates="yacht"
    )
    valuations: Mapped[list["YachtValuation"]] = relationship(back_populates="yacht")


class Booking(Base):
    __tablename__ = "bookings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("users.id"))
    yacht_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("yachts.id"), nullable=False
    )
    start_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    guest_count: Mapped[int | None] = mapped_column(Integer)
    total_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    status: Mapped[str] = mapped_column(String(20), default="confirmed")

    yacht: Mapped["Yacht"] = relationship(back_populates="bookings")


class YachtComponent(Base):
    __tablename__ = "yacht_components"
    __table_args__ = (
        CheckConstraint(
            "current_condition IS NULL OR "
            "(current_condition >= 0 AND current_condition <= 100)",
            name="ck_component_condition_range",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    yacht_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("yachts.id"), nullable=False, index=True
    )
    component_type: Mapped[str] = mapped_column(String(50), nullable=False)
    component_name: Mapped[str] = mapped_column(String(120), nullable=False)
    manufacturer: Mapped[str | None] = mapped_column(String(100))
    model: Mapped[str | None] = mapped_column(String(100))
    serial_number: Mapped[str | None] = mapped_column(String(100))
    installation_date: Mapped[datetime | None] = mapped_column(DateTime)
    warranty_expiration: Mapped[datetime | None] = mapped_column(DateTime)
    expected_lifespan_years: Mapped[int | None] = mapped_column(Integer)
    current_condition: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    last_inspection_date: Mapped[datetime | None] = mapped_column(DateTime)
    last_maintenance_date: Mapped[datetime | None] = mapped_column(DateTime)
    next_maintenance_date: Mapped[datetime | None] = mapped_column(DateTime)
    maintenance_interval_days: Mapped[int | None] = mapped_column(Integer)
    replacement_cost: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    criticality: Mapped[str] = mapped_column(String(20), default="medium")
    specifications: Mapped[dict | None] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )

    yacht: Mapped["Yacht"] = relationship(back_populates="components")


class TripLog(Base):
    __tablename__ = "trip_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    booking_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("bookings.id"), nullable=False
    )
    yacht_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("yachts.id"), nullable=False, index=True
    )
    captain_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("users.id"))
    start_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end_time: Mapped[datetime | None] = mapped_column(DateTime)
    start_location: Mapped[str] = mapped_column(String(120), nullable=False)
    end_location: Mapped[str | None] = mapped_column(String(120))
    total_distance: Mapped[Decimal | None] = mapped_column(Numeric(8, 2))
    max_speed: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    avg_speed: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    engine_hours: Mapped[Decimal | None] = mapped_column(Numeric(8, 2))
    fuel_consumed: Mapped[Decimal | None] = mapped_column(Numeric(8, 2))
    weather_conditions: Mapped[dict | None] = mapped_column(JSON)
    guest_count: Mapped[int | None] = mapped_column(Integer)
    crew_notes: Mapped[str | None] = mapped_column(Text)
    damage_reported: Mapped[bool] = mapped_column(Boolean, default=False)
    maintenance_required: Mapped[bool] = mapped_column(Boolean, default=False)
    fuel_level: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    battery_level: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    water_level: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    waste_level: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )

    yacht: Mapped["Yacht"] = relationship(back_populates="trip_logs")
    booking: Mapped["Booking"] = relationship()


class MaintenanceSchedule(Base):
    __tablename__ = "maintenance_schedules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    yacht_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("yachts.id"), nullable=False, index=True
    )
    component_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("yacht_components.id")
    )
    task_name: Mapped[str] = mapped_column(String(120), nullable=False)
    task_description: Mapped[str | None] = mapped_column(Text)
    frequency: Mapped[str] = mapped_column(String(20), nullable=False)
    interval_value: Mapped[int] = mapped_column(Integer, default=1)
    last_completed: Mapped[datetime | None] = mapped_column(DateTime)
    next_due: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    last_completed_engine_hours: Mapped[Decimal | None] = mapped_column(
        Numeric(10, 2)
    )
    next_due_engine_hours: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    priority: Mapped[str] = mapped_column(String(20), default="medium")
    estimated_duration_hours: Mapped[int | None] = mapped_column(Integer)
    estimated_cost: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    assigned_to: Mapped[str | None] = mapped_column(String(120))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )

    yacht: Mapped["Yacht"] = relationship(back_populates="maintenance_schedules")
    component: Mapped["YachtComponent"] = relationship()


class MaintenanceRecord(Base):
    __tablename__ = "maintenance_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    yacht_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("yachts.id"), nullable=False, index=True
    )
    component_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("yacht_components.id")
    )
    trip_log_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("trip_logs.id")
    )
    schedule_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("maintenance_schedules.id")
    )
    task_type: Mapped[str] = mapped_column(String(50), nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    priority: Mapped[str] = mapped_column(String(20), default="medium")
    status: Mapped[str] = mapped_column(String(20), default="scheduled")
    scheduled_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    started_date: Mapped[datetime | None] = mapped_column(DateTime)
    completed_date: Mapped[datetime | None] = mapped_column(DateTime)
    estimated_duration_hours: Mapped[int | None] = mapped_column(Integer)
    actual_duration_hours: Mapped[int | None] = mapped_column(Integer)
    assigned_to: Mapped[str | None] = mapped_column(String(120))
    assigned_by_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id")
    )
    completed_by: Mapped[str | None] = mapped_column(String(120))
    estimated_cost: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    actual_cost: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    labor_cost: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    parts_cost: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    parts_used: Mapped[list | None] = mapped_column(JSON, default=list)
    work_notes: Mapped[str | None] = mapped_column(Text)
    quality_check_passed: Mapped[bool | None] = mapped_column(Boolean)
    condition_after: Mapped[int | None] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )

    yacht: Mapped["Yacht"] = relationship(back_populates="maintenance_records")
    component: Mapped["YachtComponent"] = relationship()
    schedule: Mapped["MaintenanceSchedule"] = relationship()


class UsageMetric(Base):
    __tablename__ = "usage_metrics"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    yacht_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("yachts.id"), nullable=False, index=True
    )
    component_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("yacht_components.id")
    )
    trip_log_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("trip_logs.id")
    )
    metric_type: Mapped[str] = mapped_column(String(40), nullable=False)
    metric_value: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False)
    unit: Mapped[str] = mapped_column(String(20), nullable=False)
    recorded_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    environmental_factors: Mapped[dict | None] = mapped_column(JSON)
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class ConditionAssessment(Base):
    __tablename__ = "condition_assessments"
    __table_args__ = (
        CheckConstraint(
            "overall_score >= 0 AND overall_score <= 100",
            name="ck_assessment_score_range",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    yacht_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("yachts.id"), nullable=False, index=True
    )
    component_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("yacht_components.id")
    )
    assessor_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    assessment_type: Mapped[str] = mapped_column(String(30), default="routine")
    overall_score: Mapped[int] = mapped_column(Integer, nullable=False)
    visual_score: Mapped[int | None] = mapped_column(Integer)
    functional_score: Mapped[int | None] = mapped_column(Integer)
    structural_score: Mapped[int | None] = mapped_column(Integer)
    condition: Mapped[str] = mapped_column(String(20), nullable=False)
    priority: Mapped[str] = mapped_column(String(20), default="medium")
    estimated_cost: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    issues_found: Mapped[list | None] = mapped_column(JSON, default=list)
    recommendations: Mapped[list | None] = mapped_column(JSON, default=list)
    notes: Mapped[str | None] = mapped_column(Text)
    assessment_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    next_assessment_date: Mapped[datetime | None] = mapped_column(DateTime)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class YachtValuation(Base):
    __tablename__ = "yacht_valuations"
    __table_args__ = (
        UniqueConstraint(
            "yacht_id", "assessment_date", name="uq_valuation_yacht_assessed"
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    yacht_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("yachts.id"), nullable=False, index=True
    )
    current_market_value: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False
    )
    original_purchase_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    depreciation_rate: Mapped[Decimal | None] = mapped_column(Numeric(5, 4))
    total_maintenance_cost: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=Decimal("0")
    )
    projected_maintenance_cost: Mapped[Decimal | None] = mapped_column(
        Numeric(12, 2)
    )
    maintenance_vs_value_ratio: Mapped[Decimal | None] = mapped_column(
        Numeric(8, 4)
    )
    utilization_rate: Mapped[Decimal | None] = mapped_column(Numeric(5, 4))
    profitability: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    profitability_trend: Mapped[Decimal | None] = mapped_column(Numeric(12, 2))
    condition_trend: Mapped[Decimal | None] = mapped_column(Numeric(8, 3))
    overall_condition: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    sell_recommendation: Mapped[str] = mapped_column(String(10), nullable=False)
    recommendation_reason: Mapped[str | None] = mapped_column(Text)
    sweet_spot_score: Mapped[int | None] = mapped_column(Integer)
    optimal_sell_date: Mapped[datetime | None] = mapped_column(DateTime)
    assessment_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    valid_until: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    yacht: Mapped["Yacht"] = relationship(back_populates="valuations")


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False, index=True
    )
    type: Mapped[str] = mapped_column(String(40), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    data: Mapped[dict | None] = mapped_column(JSON)
    priority: Mapped[str] = mapped_column(String(20), default="medium")
    read: Mapped[bool] = mapped_column(Boolean, default=False)
    action_url: Mapped[str | None] = mapped_column(String(200))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
