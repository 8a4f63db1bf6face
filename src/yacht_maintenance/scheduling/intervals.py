from datetime import datetime, timedelta

import pandas as pd

from yacht_maintenance.models.schemas import Frequency

# Calendar frequencies as pandas offsets per unit of ``interval_value``.
CALENDAR_OFFSETS: dict[Frequency, dict[str, int]] = {
    Frequency.DAILY: {"days": 1},
    Frequency.WEEKLY: {"weeks": 1},
    Frequency.MONTHLY: {"months": 1},
    Frequency.QUARTERLY: {"months": 3},
    Frequency.SEMI_ANNUAL: {"months": 6},
    Frequency.ANNUAL: {"years": 1},
}


def compute_next_due(
    frequency: Frequency | str, interval_value: int, last_completed: datetime
) -> datetime:
    """Next due date for a calendar schedule.

    Month-based frequencies clamp to the end of shorter months, so
    Jan 31 + 1 month lands on Feb 28 (or 29).
    """
    frequency = Frequency(frequency)
    if frequency == Frequency.ENGINE_HOURS:
        raise ValueError("engine_hours schedules are due by usage, not by date")
    if interval_value < 1:
        raise ValueError(f"interval_value must be positive, got {interval_value}")

    unit = CALENDAR_OFFSETS[frequency]
    offset = pd.DateOffset(**{k: v * interval_value for k, v in unit.items()})
    return (pd.Timestamp(last_completed) + offset).to_pydatetime()


def project_usage_due(
    completed_at: datetime,
    hours_until_due: float,
    daily_rate: float,
    fallback_days: int,
) -> datetime:
    """Project the calendar date an engine-hours threshold will be reached.

    ``daily_rate`` is engine hours per day over the recent window; without
    usage the fallback horizon is used.
    """
    if daily_rate <= 0:
        return completed_at + timedelta(days=fallback_days)
    days = max(hours_until_due, 0.0) / daily_rate
    return completed_at + timedelta(days=days)
