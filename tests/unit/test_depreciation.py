from datetime import date, datetime
from decimal import Decimal

import pytest

from yacht_maintenance.errors import ValidationFailedError
from yacht_maintenance.financial.depreciation import (
    age_years,
    declining_balance_schedule,
    declining_balance_value,
    depreciation_schedule,
    purchase_price,
)
from yacht_maintenance.models.orm import Yacht


class TestDecliningBalanceValue:
    def test_one_year_at_ten_percent(self):
        assert declining_balance_value(100_000, 0.10, 1, 0.10) == pytest.approx(90_000)

    def test_fractional_years(self):
        value = declining_balance_value(100_000, 0.08, 2.5, 0.10)
        assert value == pytest.approx(100_000 * 0.92**2.5)

    def test_floor_applies(self):
        """A 50-year-old yacht is worth its residual floor, not less."""
        assert declining_balance_value(100_000, 0.08, 50, 0.10) == 10_000

    def test_new_yacht_full_value(self):
        assert declining_balance_value(250_000, 0.08, 0, 0.10) == 250_000


class TestDecliningBalanceSchedule:
    def test_beginning_value_equals_cost(self):
        schedule = declining_balance_schedule(500_000, 0.08, 0.10, 2015, 10)
        assert schedule[0].beginning_value == 500_000
        assert schedule[0].depreciation_expense == 40_000
        assert schedule[0].year == 2015

    def test_years_chain(self):
        schedule = declining_balance_schedule(500_000, 0.08, 0.10, 2015, 10)
        for prev, cur in zip(schedule, schedule[1:]):
            assert cur.beginning_value == prev.ending_value
            assert cur.year == prev.year + 1

    def test_accumulated_matches_value_lost(self):
        schedule = declining_balance_schedule(300_000, 0.08, 0.10, 2019, 12)
        last = schedule[-1]
        assert last.accumulated_depreciation == pytest.approx(
            300_000 - last.ending_value, abs=0.05
        )

    def test_stops_at_floor(self):
        schedule = declining_balance_schedule(100_000, 0.30, 0.10, 2000, 20)
        assert min(e.ending_value for e in schedule) == pytest.approx(10_000)
        assert schedule[-1].depreciation_expense == 0


class TestYachtDepreciation:
    def test_purchase_price_required(self):
        yacht = Yacht(id=5, name="No Price", year_made=2010)
        with pytest.raises(ValidationFailedError):
            purchase_price(yacht)

    def test_zero_price_rejected(self):
        yacht = Yacht(id=5, name="Free", purchase_price=Decimal("0"))
        with pytest.raises(ValidationFailedError):
            purchase_price(yacht)

    def test_age_from_build_year(self, sample_yacht):
        assert age_years(sample_yacht, date(2025, 1, 1)) == pytest.approx(10, abs=0.01)

    def test_age_never_negative(self, sample_yacht):
        assert age_years(sample_yacht, datetime(2010, 1, 1)) == 0.0

    def test_schedule_spans_build_year_to_projection(self, sample_yacht):
        schedule = depreciation_schedule(
            sample_yacht, as_of=datetime(2025, 6, 1), projection_years=5
        )
        assert schedule[0].year == 2015
        assert schedule[-1].year == 2030
        assert len(schedule) == 16

    def test_rate_from_settings(self, sample_yacht, monkeypatch):
        monkeypatch.setenv("YACHTMAINT_ANNUAL_DEPRECIATION_RATE", "0.10")
        schedule = depreciation_schedule(sample_yacht, as_of=datetime(2025, 6, 1))
        assert schedule[0].depreciation_expense == 50_000
