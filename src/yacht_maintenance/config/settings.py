from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    database_url: str = "sqlite:///./data/yacht_maintenance.db"
    app_name: str = "yacht-maintenance"
    debug: bool = False
    log_level: str = "INFO"

    # Derived metrics
    pending_lookahead_days: int = 14
    criticality_weights: dict[str, float] = {
        "low": 1.0,
        "medium": 2.0,
        "high": 3.0,
        "critical": 4.0,
    }

    # Scheduling
    usage_rate_window_days: int = 90
    usage_schedule_fallback_days: int = 90

    # Maintenance records
    require_actual_cost_on_completion: bool = True
    corrective_condition_threshold: int = 40
    default_corrective_estimate: float = 1500.0
    default_post_trip_estimate: float = 500.0

    # Valuation
    valuation_validity_days: int = 30
    valuation_trailing_months: int = 12
    annual_depreciation_rate: float = 0.08
    residual_value_floor: float = 0.10
    discount_rate: float = 0.08
    maintenance_escalation_rate: float = 0.05
    bookable_hours_per_day: float = 10.0
    sell_horizon_months: int = 60
    sell_cost_ratio_threshold: float = 0.25
    upgrade_utilization_threshold: float = 0.60
    condition_decline_threshold: float = 1.0  # score points per 30 days
    sweet_spot_alert_months: int = 6
    min_history_for_smoothing: int = 12

    model_config = {"env_prefix": "YACHTMAINT_", "env_file": ".env"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
