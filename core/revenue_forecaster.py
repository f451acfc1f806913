"""
revenue_forecaster.py
----------------------
One-year-ahead revenue forecast, split into returning and new subscribers.

For each recurring cadence type the forecaster looks at the last three years
of the window and continues the recent trend for one more year:

    Returning subscribers
        a = subscriptions whose last transaction was in end_year - 2
        b = subscriptions whose last transaction was in end_year - 1
        If churn is falling (b - a < 0) the active set shrinks by the same
        amount next year; otherwise the active set is carried forward as is.
        Which subscribers leave cannot be predicted, so they are dropped from
        the front of the active list (ascending subscription id).

    New subscribers
        a = subscriptions that started in end_year - 1
        b = subscriptions that started in end_year
        Next year's count is b + (b - a), floored at zero. Their price is
        unknown, so the average unit price of the cadence type is used.

Revenue per subscriber per year = unit price x transactions per year
(365 daily, 12 monthly, 1 yearly, from config.yaml).
"""

import logging
from dataclasses import dataclass, field
from typing import List, Mapping, Sequence

from config.config_loader import get_forecasting_config, get_transactions_per_year
from core.errors import InvalidArgumentError
from core.models import CadenceForecast, CadenceType, ProcessingError
from core.record_store import RecordStore

logger = logging.getLogger(__name__)


@dataclass
class ForecastResult:
    """All per-cadence forecasts of one run and their combined total."""
    forecast_year: int
    forecasts: List[CadenceForecast] = field(default_factory=list)
    errors: List[ProcessingError] = field(default_factory=list)

    @property
    def returning_revenue(self) -> float:
        return sum(f.returning_revenue for f in self.forecasts)

    @property
    def new_revenue(self) -> float:
        return sum(f.new_revenue for f in self.forecasts)

    @property
    def total(self) -> float:
        return self.returning_revenue + self.new_revenue


class RevenueForecaster:
    """
    Forecasts next year's revenue per cadence type.

    Usage:
        forecaster = RevenueForecaster()
        result = forecaster.forecast(groups, store, end_year=2014)
        result.total
    """

    def __init__(self):
        self.config = get_forecasting_config()
        self.cadence_order = [CadenceType(name) for name in self.config["cadence_order"]]

    # -------------------------------------------------------------------------
    # PUBLIC INTERFACE
    # -------------------------------------------------------------------------

    def forecast(
        self, groups: Mapping[CadenceType, Sequence[int]], store: RecordStore, end_year: int
    ) -> ForecastResult:
        """
        Forecast every recurring cadence type in the configured order.

        A cadence type that cannot be forecast (e.g. it has no subscriptions)
        is reported as a ProcessingError and contributes nothing; the other
        types are still forecast.

        Args:
            groups: Cadence type -> subscription ids, as built by
                cadence_classifier.group_by_cadence.
            store: Record store the ids refer to.
            end_year: Last year of observed data. The forecast is for end_year + 1.
        """
        result = ForecastResult(forecast_year=end_year + 1)

        for cadence in self.cadence_order:
            try:
                result.forecasts.append(
                    self.forecast_cadence(cadence, groups.get(cadence, ()), store, end_year)
                )
            except InvalidArgumentError as exc:
                logger.warning(f"No forecast for {cadence.value} subscriptions: {exc}")
                result.errors.append(ProcessingError(
                    stage="forecast",
                    entity_id=cadence.value,
                    error_type=type(exc).__name__,
                    message=str(exc),
                ))

        logger.info(
            f"Forecast for {result.forecast_year}: "
            f"returning={result.returning_revenue:,.2f}, new={result.new_revenue:,.2f}."
        )
        return result

    def forecast_cadence(
        self,
        cadence: CadenceType,
        subscription_ids: Sequence[int],
        store: RecordStore,
        end_year: int,
    ) -> CadenceForecast:
        """
        Forecast a single cadence type.

        Raises:
            InvalidArgumentError: If the cadence is one-off or has no subscriptions.
        """
        if cadence == CadenceType.ONE_OFF:
            raise InvalidArgumentError("One-off subscriptions do not recur and cannot be forecast")
        if not subscription_ids:
            raise InvalidArgumentError(
                f"Cannot average unit price: no {cadence.value} subscriptions"
            )

        transactions_per_year = get_transactions_per_year(cadence.value)

        new_last_year = new_this_year = 0
        churned_two_years_ago = churned_last_year = 0
        active: List[int] = []
        total_unit_price = 0.0

        for subscription_id in subscription_ids:
            subscription = store.subscription(subscription_id)

            first_year = subscription.first_date.year
            if first_year == end_year - 1:
                new_last_year += 1
            elif first_year == end_year:
                new_this_year += 1

            last_year = subscription.last_date.year
            if last_year == end_year - 2:
                churned_two_years_ago += 1
            elif last_year == end_year - 1:
                churned_last_year += 1
            elif last_year == end_year:
                active.append(subscription_id)

            total_unit_price += subscription.unit_price

        # --- Returning subscribers ---
        predicted_returning = self._predict_returning(
            len(active), churned_two_years_ago, churned_last_year
        )
        retained = active[len(active) - predicted_returning:] if predicted_returning else []
        returning_revenue = sum(
            store.unit_price(sid) * transactions_per_year for sid in retained
        )

        # --- New subscribers ---
        predicted_new = self._predict_new(new_last_year, new_this_year)
        average_unit_price = total_unit_price / len(subscription_ids)
        new_revenue = average_unit_price * transactions_per_year * predicted_new

        logger.info(
            f"{cadence.value}: {len(subscription_ids):,} subscriptions, {len(active):,} active, "
            f"{predicted_returning:,} returning, {predicted_new:,} new expected."
        )

        return CadenceForecast(
            cadence_type=cadence,
            transactions_per_year=transactions_per_year,
            subscription_count=len(subscription_ids),
            churned_two_years_ago=churned_two_years_ago,
            churned_last_year=churned_last_year,
            new_last_year=new_last_year,
            new_this_year=new_this_year,
            active_count=len(active),
            average_unit_price=average_unit_price,
            predicted_returning=predicted_returning,
            predicted_new=predicted_new,
            returning_revenue=returning_revenue,
            new_revenue=new_revenue,
            retained_subscription_ids=retained,
        )

    # -------------------------------------------------------------------------
    # INTERNAL: TREND CONTINUATION
    # -------------------------------------------------------------------------

    @staticmethod
    def _predict_returning(active_count: int, churned_two_years_ago: int, churned_last_year: int) -> int:
        """
        Only a falling churn count is projected forward. A flat or rising one
        leaves the active count unchanged. Never below zero.
        """
        delta = churned_last_year - churned_two_years_ago
        predicted = active_count + delta if delta < 0 else active_count
        return max(predicted, 0)

    @staticmethod
    def _predict_new(new_last_year: int, new_this_year: int) -> int:
        delta = new_this_year - new_last_year
        return max(new_this_year + delta, 0)
