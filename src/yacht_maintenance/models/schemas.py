from datetime import date, datetime, timezone
from enum import Enum
from typing import Annotated, Literal

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)

# --- Enumerations ---


class Criticality(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# Priorities share the criticality tiers.
Priority = Criticality


class RecordStatus(str, Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Frequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    SEMI_ANNUAL = "semi_annual"
    ANNUAL = "annual"
    ENGINE_HOURS = "engine_hours"


class MetricType(str, Enum):
    ENGINE_HOURS = "engine_hours"
    FUEL_CONSUMPTION = "fuel_consumption"
    DISTANCE = "distance"
    EXPOSURE = "exposure"
    DAMAGE_INCIDENT = "damage_incident"


class ConditionLabel(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    CRITICAL = "critical"


class Urgency(str, Enum):
    IMMEDIATE = "immediate"
    WITHIN_WEEK = "within_week"
    WITHIN_MONTH = "within_month"
    ROUTINE = "routine"


class SellRecommendation(str, Enum):
    SELL = "sell"
    HOLD = "hold"
    UPGRADE = "upgrade"


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


Score = Annotated[int, Field(ge=0, le=100)]
Money = Annotated[float, Field(ge=0)]


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


# Request timestamps are stored as naive UTC; offsets are normalised on input.
UtcDatetime = Annotated[datetime, AfterValidator(_to_naive_utc)]


# --- Components ---


class ComponentCreate(BaseModel):
    component_type: str
    component_name: str
    manufacturer: str | None = None
    model: str | None = None
    serial_number: str | None = None
    installation_date: UtcDatetime | None = None
    warranty_expiration: UtcDatetime | None = None
    expected_lifespan_years: int | None = Field(None, ge=0)
    current_condition: float | None = Field(None, ge=0, le=100)
    last_inspection_date: UtcDatetime | None = None
    next_maintenance_date: UtcDatetime | None = None
    maintenance_interval_days: int | None = Field(None, gt=0)
    replacement_cost: Money | None = None
    criticality: Criticality = Criticality.MEDIUM
    specifications: dict | None = None

    @model_validator(mode="after")
    def _maintenance_after_inspection(self):
        if (
            self.last_inspection_date
            and self.next_maintenance_date
            and self.next_maintenance_date < self.last_inspection_date
        ):
            raise ValueError(
                "next_maintenance_date must not precede last_inspection_date"
            )
        return self


class ComponentUpdate(BaseModel):
    """Metadata edits. Condition only changes through assessments."""

    component_name: str | None = None
    manufacturer: str | None = None
    model: str | None = None
    serial_number: str | None = None
    warranty_expiration: UtcDatetime | None = None
    expected_lifespan_years: int | None = Field(None, ge=0)
    next_maintenance_date: UtcDatetime | None = None
    maintenance_interval_days: int | None = Field(None, gt=0)
    replacement_cost: Money | None = None
    criticality: Criticality | None = None
    specifications: dict | None = None


class ComponentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    yacht_id: int
    component_type: str
    component_name: str
    manufacturer: str | None
    model: str | None
    serial_number: str | None
    installation_date: datetime | None
    warranty_expiration: datetime | None
    expected_lifespan_years: int | None
    current_condition: float | None
    last_inspection_date: datetime | None
    last_maintenance_date: datetime | None
    next_maintenance_date: datetime | None
    maintenance_interval_days: int | None
    replacement_cost: float | None
    criticality: str
    specifications: dict | None


# --- Trip logs ---


class WeatherSnapshot(BaseModel):
    wind_speed: float | None = None
    wind_direction: str | None = None
    wave_height: float | None = None
    temperature: float | None = None
    visibility: str | None = None
    precipitation: str | None = None


Level = Annotated[float, Field(ge=0, le=100)]


class TripStart(BaseModel):
    booking_id: int
    yacht_id: int
    captain_id: int | None = None
    start_time: UtcDatetime
    start_location: str
    guest_count: int | None = Field(None, ge=0)
    weather_conditions: WeatherSnapshot | None = None
    fuel_level: Level | None = None
    battery_level: Level | None = None
    water_level: Level | None = None
    waste_level: Level | None = None


class TripCompletion(BaseModel):
    end_time: UtcDatetime
    end_location: str | None = None
    total_distance: float | None = Field(None, ge=0)
    max_speed: float | None = Field(None, ge=0)
    avg_speed: float | None = Field(None, ge=0)
    engine_hours: float | None = Field(None, ge=0)
    fuel_consumed: float | None = Field(None, ge=0)
    weather_conditions: WeatherSnapshot | None = None
    crew_notes: str | None = None
    damage_reported: bool = False
    maintenance_required: bool = False
    fuel_level: Level | None = None
    battery_level: Level | None = None
    water_level: Level | None = None
    waste_level: Level | None = None


class TripLogRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    booking_id: int
    yacht_id: int
    captain_id: int | None
    start_time: datetime
    end_time: datetime | None
    start_location: str
    end_location: str | None
    total_distance: float | None
    max_speed: float | None
    avg_speed: float | None
    engine_hours: float | None
    fuel_consumed: float | None
    weather_conditions: dict | None
    guest_count: int | None
    crew_notes: str | None
    damage_reported: bool
    maintenance_required: bool
    fuel_level: float | None
    battery_level: float | None
    water_level: float | None
    waste_level: float | None


# --- Maintenance records ---


class PartUsed(BaseModel):
    part_name: str
    part_number: str | None = None
    quantity: int = Field(1, ge=1)
    unit_cost: Money = 0.0
    supplier: str | None = None


class RecordCreate(BaseModel):
    """New maintenance work. ``actual_cost`` is only captured on completion."""

    model_config = ConfigDict(extra="forbid")

    yacht_id: int
    component_id: int | None = None
    trip_log_id: int | None = None
    schedule_id: int | None = None
    task_type: str
    category: str
    description: str
    priority: Priority = Priority.MEDIUM
    scheduled_date: UtcDatetime
    estimated_duration_hours: int | None = Field(None, ge=0)
    assigned_to: str | None = None
    estimated_cost: Money


class RecordCompletion(BaseModel):
    completed_date: UtcDatetime | None = None
    actual_cost: Money | None = None
    labor_cost: Money | None = None
    parts_cost: Money | None = None
    parts_used: list[PartUsed] = []
    actual_duration_hours: int | None = Field(None, ge=0)
    completed_by: str | None = None
    work_notes: str | None = None
    quality_check_passed: bool | None = None
    condition_after: Score | None = None
    engine_hours: float | None = Field(None, ge=0)


class RecordCancellation(BaseModel):
    reason: str | None = None


class RecordRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    yacht_id: int
    component_id: int | None
    trip_log_id: int | None
    schedule_id: int | None
    task_type: str
    category: str
    description: str
    priority: str
    status: str
    scheduled_date: datetime
    started_date: datetime | None
    completed_date: datetime | None
    estimated_duration_hours: int | None
    actual_duration_hours: int | None
    assigned_to: str | None
    completed_by: str | None
    estimated_cost: float
    actual_cost: float | None
    labor_cost: float | None
    parts_cost: float | None
    parts_used: list | None
    work_notes: str | None
    quality_check_passed: bool | None
    condition_after: int | None


# --- Usage metrics ---


class EnvironmentalFactors(BaseModel):
    salt_water_exposure: float | None = None
    sun_exposure_hours: float | None = None
    rough_sea_exposure: float | None = None
    temperature: float | None = None
    humidity: float | None = None


class UsageMetricCreate(BaseModel):
    yacht_id: int
    component_id: int | None = None
    trip_log_id: int | None = None
    metric_type: MetricType
    metric_value: float = Field(ge=0)
    unit: str
    recorded_at: UtcDatetime | None = None
    environmental_factors: EnvironmentalFactors | None = None
    notes: str | None = None


class UsageMetricRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    yacht_id: int
    component_id: int | None
    trip_log_id: int | None
    metric_type: str
    metric_value: float
    unit: str
    recorded_at: datetime
    environmental_factors: dict | None
    notes: str | None


# --- Condition assessments ---


CONDITION_LABEL_SCORES: dict[ConditionLabel, int] = {
    ConditionLabel.EXCELLENT: 100,
    ConditionLabel.GOOD: 80,
    ConditionLabel.FAIR: 60,
    ConditionLabel.POOR: 40,
    ConditionLabel.CRITICAL: 20,
}


def label_for_score(score: float) -> ConditionLabel:
    if score >= 90:
        return ConditionLabel.EXCELLENT
    if score >= 75:
        return ConditionLabel.GOOD
    if score >= 50:
        return ConditionLabel.FAIR
    if score >= 30:
        return ConditionLabel.POOR
    return ConditionLabel.CRITICAL


class IssueFound(BaseModel):
    issue: str
    severity: Criticality
    urgency: Urgency = Urgency.ROUTINE
    estimated_cost: Money = 0.0


class AssessmentCreate(BaseModel):
    """Either ``overall_score`` or ``condition`` must be supplied."""

    yacht_id: int
    component_id: int | None = None
    assessor_id: int | None = None
    assessment_type: str = "routine"
    overall_score: Score | None = None
    visual_score: Score | None = None
    functional_score: Score | None = None
    structural_score: Score | None = None
    condition: ConditionLabel | None = None
    priority: Priority = Priority.MEDIUM
    estimated_cost: Money | None = None
    issues_found: list[IssueFound] = []
    recommendations: list[str] = []
    notes: str | None = None
    assessment_date: UtcDatetime | None = None
    next_assessment_date: UtcDatetime | None = None

    @model_validator(mode="after")
    def _resolve_score(self):
        if self.overall_score is None and self.condition is None:
            raise ValueError("overall_score or condition is required")
        if self.overall_score is None:
            self.overall_score = CONDITION_LABEL_SCORES[self.condition]
        if self.condition is None:
            self.condition = label_for_score(self.overall_score)
        return self


class AssessmentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    yacht_id: int
    component_id: int | None
    assessor_id: int
    assessment_type: str
    overall_score: int
    visual_score: int | None
    functional_score: int | None
    structural_score: int | None
    condition: str
    priority: str
    estimated_cost: float | None
    issues_found: list | None
    recommendations: list | None
    notes: str | None
    assessment_date: datetime
    next_assessment_date: datetime | None


# --- Maintenance schedules ---


class ScheduleCreate(BaseModel):
    yacht_id: int
    component_id: int | None = None
    task_name: str
    task_description: str | None = None
    frequency: Frequency
    interval_value: int = Field(1, gt=0)
    last_completed: UtcDatetime | None = None
    next_due: UtcDatetime | None = None
    last_completed_engine_hours: float | None = Field(None, ge=0)
    priority: Priority = Priority.MEDIUM
    estimated_duration_hours: int | None = Field(None, ge=0)
    estimated_cost: Money | None = None
    assigned_to: str | None = None


class ScheduleUpdate(BaseModel):
    task_description: str | None = None
    priority: Priority | None = None
    estimated_duration_hours: int | None = Field(None, ge=0)
    estimated_cost: Money | None = None
    assigned_to: str | None = None
    is_active: bool | None = None


class ScheduleCompletion(BaseModel):
    completed_at: UtcDatetime | None = None
    engine_hours: float | None = Field(None, ge=0)


class ScheduleRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    yacht_id: int
    component_id: int | None
    task_name: str
    task_description: str | None
    frequency: str
    interval_value: int
    last_completed: datetime | None
    next_due: datetime
    last_completed_engine_hours: float | None
    next_due_engine_hours: float | None
    priority: str
    estimated_duration_hours: int | None
    estimated_cost: float | None
    assigned_to: str | None
    is_active: bool


# --- Derived metrics ---


class ConditionAvailable(BaseModel):
    status: Literal["available"] = "available"
    value: float
    method: str
    sample_size: int


class ConditionUnavailable(BaseModel):
    status: Literal["unavailable"] = "unavailable"
    reason: str


ConditionResult = Annotated[
    ConditionAvailable | ConditionUnavailable, Field(discriminator="status")
]


class PendingTasks(BaseModel):
    records: int
    schedules: int
    total: int
    lookahead_days: int


class OverdueTasks(BaseModel):
    records: int
    schedules: int
    total: int


class MaintenanceOverview(BaseModel):
    yacht_id: int
    as_of: datetime
    overall_condition: ConditionResult
    pending_tasks: PendingTasks
    overdue_tasks: OverdueTasks
    operating_hours: float
    fuel_consumption: float
    maintenance_cost: float
    records_by_status: dict[str, int]
    component_count: int
    trip_count: int
    last_assessment_date: datetime | None


# --- Valuation ---


class DepreciationYear(BaseModel):
    year: int
    beginning_value: float
    depreciation_expense: float
    ending_value: float
    accumulated_depreciation: float


class ValuationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    yacht_id: int
    current_market_value: float
    original_purchase_price: float | None
    depreciation_rate: float | None
    total_maintenance_cost: float
    projected_maintenance_cost: float | None
    maintenance_vs_value_ratio: float | None
    utilization_rate: float | None
    profitability: float | None
    profitability_trend: float | None
    condition_trend: float | None
    overall_condition: float | None
    sell_recommendation: SellRecommendation
    recommendation_reason: str | None
    sweet_spot_score: int | None
    optimal_sell_date: datetime | None
    assessment_date: datetime
    valid_until: datetime


# --- Notifications ---


class NotificationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    type: str
    title: str
    message: str
    data: dict | None
    priority: str
    read: bool
    action_url: str | None
    created_at: datetime


class MonthlyAmount(BaseModel):
    month: date
    amount: float
