from datetime import datetime

import pytest

from yacht_maintenance.models.schemas import Frequency
from yacht_maintenance.scheduling.intervals import compute_next_due, project_usage_due


class TestComputeNextDue:
    def test_monthly_advances_by_calendar_month(self):
        first = compute_next_due(Frequency.MONTHLY, 1, datetime(2025, 1, 15))
        second = compute_next_due(Frequency.MONTHLY, 1, first)
        assert first == datetime(2025, 2, 15)
        assert second == datetime(2025, 3, 15)

    def test_month_end_clamps(self):
        """Jan 31 + 1 month -> Feb 28."""
        assert compute_next_due("monthly", 1, datetime(2025, 1, 31)) == datetime(
            2025, 2, 28
        )

    def test_leap_day_annual(self):
        assert compute_next_due(Frequency.ANNUAL, 1, datetime(2024, 2, 29)) == datetime(
            2025, 2, 28
        )

    @pytest.mark.parametrize(
        "frequency, interval, expected",
        [
            (Frequency.DAILY, 3, datetime(2025, 1, 18, 9, 30)),
            (Frequency.WEEKLY, 2, datetime(2025, 1, 29, 9, 30)),
            (Frequency.MONTHLY, 6, datetime(2025, 7, 15, 9, 30)),
            (Frequency.QUARTERLY, 1, datetime(2025, 4, 15, 9, 30)),
            (Frequency.SEMI_ANNUAL, 1, datetime(2025, 7, 15, 9, 30)),
            (Frequency.ANNUAL, 2, datetime(2027, 1, 15, 9, 30)),
        ],
    )
    def test_frequencies(self, frequency, interval, expected):
        assert compute_next_due(frequency, interval, datetime(2025, 1, 15, 9, 30)) == (
            expected
        )

    def test_engine_hours_rejected(self):
        with pytest.raises(ValueError):
            compute_next_due(Frequency.ENGINE_HOURS, 100, datetime(2025, 1, 1))

    def test_non_positive_interval_rejected(self):
        with pytest.raises(ValueError):
            compute_next_due(Frequency.MONTHLY, 0, datetime(2025, 1, 1))


class TestProjectUsageDue:
    def test_projects_from_rate(self):
        due = project_usage_due(datetime(2025, 1, 1), 100, 2.0, 90)
        assert due == datetime(2025, 2, 20)

    def test_fallback_without_usage(self):
        due = project_usage_due(datetime(2025, 1, 1), 100, 0.0, 90)
        assert due == datetime(2025, 4, 1)

    def test_already_past_threshold_is_due_now(self):
        due = project_usage_due(datetime(2025, 1, 1), -5, 1.5, 90)
        assert due == datetime(2025, 1, 1)
