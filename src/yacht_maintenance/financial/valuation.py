import logging
import warnings
from dataclasses import dataclass
from datetime import datetime, timedelta

import numpy as np
import pandas as pd
from scipy import stats
from sqlalchemy import select
from sqlalchemy.orm import Session

from yacht_maintenance.analytics.metrics import MaintenanceMetrics
from yacht_maintenance.config.settings import Settings, get_settings
from yacht_maintenance.financial.depreciation import (
    age_years,
    declining_balance_value,
    purchase_price,
)
from yacht_maintenance.models.orm import (
    Booking,
    ConditionAssessment,
    Yacht,
    YachtValuation,
    to_decimal,
    utcnow,
)
from yacht_maintenance.models.schemas import (
    BookingStatus,
    ConditionAvailable,
    SellRecommendation,
)
from yacht_maintenance.notifications import notify, recipient_for
from yacht_maintenance.tracking.components import get_yacht

logger = logging.getLogger(__name__)

REVENUE_STATUSES = (BookingStatus.CONFIRMED.value, BookingStatus.COMPLETED.value)


def condition_factor(condition: float | None) -> float:
    """Market value multiplier in [0.85, 1.0] for a 0-100 condition score."""
    if condition is None:
        return 1.0
    return 0.85 + 0.15 * condition / 100


def discount(value: float, annual_rate: float, months: float) -> float:
    return value / (1 + annual_rate) ** (months / 12)


def trend_slope(x: np.ndarray, y: np.ndarray) -> float:
    """Least-squares slope, or 0.0 when there are too few distinct points."""
    if len(x) < 2 or np.ptp(x) == 0:
        return 0.0
    return float(stats.linregress(x, y).slope)


def project_annual_maintenance(series: pd.Series, min_history: int) -> float:
    """Next twelve months of maintenance spend.

    Uses Holt's linear exponential smoothing when enough monthly history
    exists, otherwise the annualised mean of the observed months.
    """
    if series.empty:
        return 0.0

    values = series.values.astype(float)
    fallback = float(np.mean(values)) * 12
    if len(values) < min_history:
        return round(fallback, 2)

    from statsmodels.tsa.holtwinters import ExponentialSmoothing

    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            fit = ExponentialSmoothing(
                np.maximum(values, 0.01),
                trend="add",
                seasonal=None,
                initialization_method="estimated",
            ).fit(optimized=True)
            forecast = np.maximum(fit.forecast(steps=12), 0.0)
    except Exception:
        logger.warning("Holt smoothing failed; using mean projection")
        return round(fallback, 2)

    return round(float(np.sum(forecast)), 2)


@dataclass(frozen=True)
class RecommendationPolicy:
    """Thresholds that turn valuation inputs into sell/hold/upgrade."""

    sell_cost_ratio_threshold: float
    upgrade_utilization_threshold: float
    condition_decline_threshold: float

    @classmethod
    def from_settings(cls, settings: Settings) -> "RecommendationPolicy":
        return cls(
            sell_cost_ratio_threshold=settings.sell_cost_ratio_threshold,
            upgrade_utilization_threshold=settings.upgrade_utilization_threshold,
            condition_decline_threshold=settings.condition_decline_threshold,
        )

    def recommend(
        self,
        cost_ratio: float,
        profitability_trend: float,
        utilization: float,
        condition_trend: float,
    ) -> tuple[SellRecommendation, str]:
        if cost_ratio > self.sell_cost_ratio_threshold and profitability_trend < 0:
            return SellRecommendation.SELL, (
                f"Maintenance is {cost_ratio:.0%} of market value "
                f"(threshold {self.sell_cost_ratio_threshold:.0%}) and "
                f"profitability is falling ({profitability_trend:,.2f}/month)"
            )
        if (
            utilization >= self.upgrade_utilization_threshold
            and condition_trend <= -self.condition_decline_threshold
        ):
            return SellRecommendation.UPGRADE, (
                f"Utilization {utilization:.0%} meets the "
                f"{self.upgrade_utilization_threshold:.0%} threshold while condition "
                f"declines {abs(condition_trend):.2f} points per 30 days"
            )
        return SellRecommendation.HOLD, (
            f"Maintenance at {cost_ratio:.0%} of value, utilization "
            f"{utilization:.0%}, profitability trend {profitability_trend:,.2f}/month, "
            f"condition trend {condition_trend:+.2f}/30 days"
        )


@dataclass
class SellTiming:
    months: int
    npv: float
    score: int


def optimal_sell_timing(
    sale_values: list[float],
    monthly_net: float,
    monthly_maintenance: float,
    discount_rate: float,
    escalation_rate: float,
) -> SellTiming:
    """Month that maximises the NPV of holding until then and selling.

    Args:
        sale_values: Expected sale value at month 0..horizon.
        monthly_net: Current monthly net cash flow before maintenance.
        monthly_maintenance: Current monthly maintenance spend; escalates.
        discount_rate: Annual discount rate.
        escalation_rate: Annual maintenance cost escalation.
    """
    horizon = len(sale_values) - 1
    best_month, best_npv = 0, float("-inf")
    holding = 0.0

    for m, sale_value in enumerate(sale_values):
        if m > 0:
            maintenance = monthly_maintenance * (1 + escalation_rate) ** (m / 12)
            holding += discount(monthly_net - maintenance, discount_rate, m)
        npv = holding + discount(sale_value, discount_rate, m)
        if npv > best_npv:
            best_month, best_npv = m, npv

    score = round(100 * (1 - best_month / horizon)) if horizon else 100
    return SellTiming(months=best_month, npv=round(best_npv, 2), score=score)


class ValuationEngine:
    """Computes and stores time-limited valuation snapshots for yachts."""

    def __init__(
        self,
        session: Session,
        settings: Settings | None = None,
        policy: RecommendationPolicy | None = None,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.policy = policy or RecommendationPolicy.from_settings(self.settings)
        self.metrics = MaintenanceMetrics(session)

    def _window(self, now: datetime) -> tuple[datetime, pd.DatetimeIndex]:
        trailing = pd.DateOffset(months=self.settings.valuation_trailing_months)
        start = (pd.Timestamp(now) - trailing).to_pydatetime()
        months = pd.date_range(
            pd.Timestamp(start).to_period("M").to_timestamp(),
            pd.Timestamp(now).to_period("M").to_timestamp(),
            freq="MS",
        )
        return start, months

    def _bookings(
        self, yacht_id: int, start: datetime, now: datetime
    ) -> list[Booking]:
        return list(
            self.session.scalars(
                select(Booking).where(
                    Booking.yacht_id == yacht_id,
                    Booking.status.in_(REVENUE_STATUSES),
                    Booking.start_time < now,
                    Booking.end_time > start,
                )
            ).all()
        )

    def utilization(
        self, bookings: list[Booking], start: datetime, now: datetime
    ) -> float:
        """Booked hours over bookable hours in the window, clamped to [0, 1]."""
        booked = sum(
            (min(b.end_time, now) - max(b.start_time, start)).total_seconds() / 3600
            for b in bookings
        )
        days = (now - start).total_seconds() / 86400
        capacity = days * self.settings.bookable_hours_per_day
        if capacity <= 0:
            return 0.0
        return float(min(max(booked / capacity, 0.0), 1.0))

    def monthly_revenue(
        self, bookings: list[Booking], start: datetime, months: pd.DatetimeIndex
    ) -> pd.Series:
        rows = [
            {"start": b.start_time, "revenue": float(b.total_price or 0)}
            for b in bookings
            if b.start_time >= start
        ]
        if not rows:
            return pd.Series(0.0, index=months)
        df = pd.DataFrame(rows)
        df["month"] = pd.to_datetime(df["start"]).dt.to_period("M").dt.to_timestamp()
        return df.groupby("month")["revenue"].sum().reindex(months, fill_value=0.0)

    def condition_trend(self, yacht_id: int, start: datetime, now: datetime) -> float:
        """Slope of assessment scores in points per 30 days."""
        rows = self.session.execute(
            select(
                ConditionAssessment.assessment_date, ConditionAssessment.overall_score
            ).where(
                ConditionAssessment.yacht_id == yacht_id,
                ConditionAssessment.assessment_date >= start,
                ConditionAssessment.assessment_date <= now,
            )
        ).all()
        if not rows:
            return 0.0
        x = np.array(
            [(r.assessment_date - start).total_seconds() / 86400 / 30 for r in rows]
        )
        y = np.array([float(r.overall_score) for r in rows])
        return trend_slope(x, y)

    def compute(self, yacht: Yacht, now: datetime) -> YachtValuation:
        """Build an unsaved valuation snapshot for ``yacht`` as of ``now``."""
        s = self.settings
        cost = purchase_price(yacht)
        start, months = self._window(now)

        condition = self.metrics.overall_condition(yacht.id, now)
        condition_value = (
            condition.value if isinstance(condition, ConditionAvailable) else None
        )
        factor = condition_factor(condition_value)
        age = age_years(yacht, now)
        market_value = (
            declining_balance_value(
                cost, s.annual_depreciation_rate, age, s.residual_value_floor
            )
            * factor
        )

        bookings = self._bookings(yacht.id, start, now)
        utilization = self.utilization(bookings, start, now)
        revenue = self.monthly_revenue(bookings, start, months)
        spend = self.metrics.monthly_maintenance_costs(
            yacht.id, since=start, until=now
        ).reindex(months, fill_value=0.0)
        net = revenue - spend
        profitability = float(net.sum())
        profit_trend = trend_slope(np.arange(len(net), dtype=float), net.values)
        condition_trend = self.condition_trend(yacht.id, start, now)

        total_maintenance = self.metrics.maintenance_cost(yacht.id, until=now)
        history = self.metrics.monthly_maintenance_costs(yacht.id, until=now)
        projected = project_annual_maintenance(history, s.min_history_for_smoothing)
        cost_ratio = total_maintenance / market_value if market_value else 0.0

        recommendation, reason = self.policy.recommend(
            cost_ratio, profit_trend, utilization, condition_trend
        )

        sale_values = [
            declining_balance_value(
                cost, s.annual_depreciation_rate, age + m / 12, s.residual_value_floor
            )
            * factor
            for m in range(s.sell_horizon_months + 1)
        ]
        n_months = max(len(months), 1)
        timing = optimal_sell_timing(
            sale_values,
            monthly_net=float(revenue.sum()) / n_months,
            monthly_maintenance=projected / 12,
            discount_rate=s.discount_rate,
            escalation_rate=s.maintenance_escalation_rate,
        )
        sell_date = pd.Timestamp(now) + pd.DateOffset(months=timing.months)

        return YachtValuation(
            yacht_id=yacht.id,
            current_market_value=to_decimal(market_value),
            original_purchase_price=to_decimal(cost),
            depreciation_rate=to_decimal(s.annual_depreciation_rate, 4),
            total_maintenance_cost=to_decimal(total_maintenance),
            projected_maintenance_cost=to_decimal(projected),
            maintenance_vs_value_ratio=to_decimal(cost_ratio, 4),
            utilization_rate=to_decimal(utilization, 4),
            profitability=to_decimal(profitability),
            profitability_trend=to_decimal(profit_trend),
            condition_trend=to_decimal(condition_trend, 3),
            overall_condition=to_decimal(condition_value),
            sell_recommendation=recommendation.value,
            recommendation_reason=reason,
            sweet_spot_score=timing.score,
            optimal_sell_date=sell_date.to_pydatetime(),
            assessment_date=now,
            valid_until=now + timedelta(days=s.valuation_validity_days),
        )

    def latest(self, yacht_id: int) -> YachtValuation | None:
        return self.session.scalars(
            select(YachtValuation)
            .where(YachtValuation.yacht_id == yacht_id)
            .order_by(YachtValuation.assessment_date.desc())
            .limit(1)
        ).first()

    def history(self, yacht_id: int) -> list[YachtValuation]:
        return list(
            self.session.scalars(
                select(YachtValuation)
                .where(YachtValuation.yacht_id == yacht_id)
                .order_by(YachtValuation.assessment_date.desc())
            ).all()
        )

    def recalculate(
        self, yacht_id: int, now: datetime | None = None, actor_id: int | None = None
    ) -> YachtValuation:
        """Compute and persist a fresh snapshot.

        Rerunning at the same instant updates that snapshot instead of adding
        a duplicate.
        """
        now = now or utcnow()
        yacht = get_yacht(self.session, yacht_id)
        fresh = self.compute(yacht, now)

        existing = self.session.scalars(
            select(YachtValuation).where(
                YachtValuation.yacht_id == yacht_id,
                YachtValuation.assessment_date == now,
            )
        ).first()
        if existing is not None:
            for column in YachtValuation.__table__.columns.keys():
                if column != "id":
                    setattr(existing, column, getattr(fresh, column))
            valuation = existing
        else:
            self.session.add(fresh)
            valuation = fresh
        self.session.flush()

        months_to_sell = round((valuation.optimal_sell_date - now).days / 30.44)
        if months_to_sell <= self.settings.sweet_spot_alert_months:
            notify(
                self.session,
                recipient_for(yacht, actor_id),
                "sweet_spot_alert",
                "Selling Sweet Spot Approaching",
                f"{yacht.name} reaches its optimal sale point around "
                f"{valuation.optimal_sell_date:%Y-%m-%d}",
                data={
                    "yacht_id": yacht.id,
                    "valuation_id": valuation.id,
                    "sweet_spot_score": valuation.sweet_spot_score,
                },
                priority="high",
                action_url=f"/maintenance?yacht={yacht.id}&tab=valuation",
            )

        logger.info(
            "Valuation recalculated for yacht %d: value %s, recommendation %s",
            yacht.id,
            valuation.current_market_value,
            valuation.sell_recommendation,
        )
        return valuation

    def get_current(
        self, yacht_id: int, now: datetime | None = None, actor_id: int | None = None
    ) -> YachtValuation:
        """Latest snapshot while it is valid, otherwise a fresh one."""
        now = now or utcnow()
        get_yacht(self.session, yacht_id)
        latest = self.latest(yacht_id)
        if latest is not None and now < latest.valid_until:
            return latest
        return self.recalculate(yacht_id, now, actor_id)

    def refresh_expired(self, now: datetime | None = None) -> int:
        """Recompute snapshots that are missing or expired.

        Only yachts with a purchase price are considered. Safe to rerun: fresh
        snapshots are left alone, and the (yacht, assessment_date) unique key
        rejects a concurrent duplicate.
        """
        now = now or utcnow()
        yacht_ids = self.session.scalars(
            select(Yacht.id).where(Yacht.purchase_price > 0).order_by(Yacht.id)
        ).all()

        refreshed = 0
        for yacht_id in yacht_ids:
            latest = self.latest(yacht_id)
            if latest is not None and now < latest.valid_until:
                continue
            self.recalculate(yacht_id, now)
            refreshed += 1

        logger.info("Refreshed %d expired valuations", refreshed)
        return refreshed


def get_current_valuation(
    session: Session, yacht_id: int, now: datetime | None = None, actor_id=None
) -> YachtValuation:
    return ValuationEngine(session).get_current(yacht_id, now, actor_id)


def recalculate_valuation(
    session: Session, yacht_id: int, now: datetime | None = None, actor_id=None
) -> YachtValuation:
    return ValuationEngine(session).recalculate(yacht_id, now, actor_id)


def refresh_expired_valuations(session: Session, now: datetime | None = None) -> int:
    return ValuationEngine(session).refresh_expired(now)


def list_valuations(session: Session, yacht_id: int) -> list[YachtValuation]:
    return ValuationEngine(session).history(yacht_id)
