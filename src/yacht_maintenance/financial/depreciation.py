from datetime import date, datetime

from yacht_maintenance.config.settings import get_settings
from yacht_maintenance.errors import ValidationFailedError
from yacht_maintenance.models.orm import Yacht, utcnow
from yacht_maintenance.models.schemas import DepreciationYear


def _in_service_date(yacht: Yacht) -> date:
    """Yachts are depreciated from Jan 1 of their build year when known."""
    if yacht.year_made:
        return date(yacht.year_made, 1, 1)
    return yacht.created_at.date()


def purchase_price(yacht: Yacht) -> float:
    if yacht.purchase_price is None or float(yacht.purchase_price) <= 0:
        raise ValidationFailedError(
            f"Yacht {yacht.id} has no purchase price and cannot be valued",
            {"yacht_id": yacht.id},
        )
    return float(yacht.purchase_price)


def age_years(yacht: Yacht, as_of: datetime | date) -> float:
    if isinstance(as_of, datetime):
        as_of = as_of.date()
    return max((as_of - _in_service_date(yacht)).days / 365.25, 0.0)


def declining_balance_value(
    cost: float, rate: float, years: float, floor_ratio: float
) -> float:
    """Book value after ``years`` of declining-balance depreciation.

    Args:
        cost: Original purchase price.
        rate: Annual depreciation rate (e.g. 0.08 for 8%).
        years: Age in (fractional) years.
        floor_ratio: Residual value as a share of cost; value never drops below it.
    """
    value = cost * (1 - rate) ** years
    return max(value, cost * floor_ratio)


def declining_balance_schedule(
    cost: float,
    rate: float,
    floor_ratio: float,
    start_year: int,
    years: int,
) -> list[DepreciationYear]:
    """Year-by-year declining-balance table, stopping at the residual floor."""
    schedule = []
    floor = cost * floor_ratio
    book_value = cost
    accumulated = 0.0

    for i in range(years):
        beginning = book_value
        expense = min(beginning * rate, max(beginning - floor, 0.0))
        book_value = beginning - expense
        accumulated += expense

        schedule.append(
            DepreciationYear(
                year=start_year + i,
                beginning_value=round(beginning, 2),
                depreciation_expense=round(expense, 2),
                ending_value=round(book_value, 2),
                accumulated_depreciation=round(accumulated, 2),
            )
        )

    return schedule


def depreciation_schedule(
    yacht: Yacht, as_of: datetime | None = None, projection_years: int = 5
) -> list[DepreciationYear]:
    """Depreciation from the build year through ``projection_years`` ahead."""
    settings = get_settings()
    cost = purchase_price(yacht)
    start = _in_service_date(yacht)
    current_year = (as_of or utcnow()).year
    years = max(current_year - start.year, 0) + 1 + projection_years

    return declining_balance_schedule(
        cost,
        settings.annual_depreciation_rate,
        settings.residual_value_floor,
        start.year,
        years,
    )
