"""
models.py
----------
Core domain models. These are the typed contracts between engine layers.

- Transaction: One parsed ledger row. Immutable.

- Subscription: A subscription id with its ordered transaction dates and
  unit price. Built by the record store, read-only afterwards.

- ClassificationResult: Output of the cadence classifier. One per
  subscription.

- CadenceForecast: Output of the forecaster for a single cadence type.

- ProcessingError: A localized failure (one transaction, subscription or
  cadence type) reported alongside successful results.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum


class CadenceType(str, Enum):
    """Billing cadence of a subscription. Values match the config keys."""

    ONE_OFF = "one_off"
    DAILY = "daily"
    MONTHLY = "monthly"
    YEARLY = "yearly"


# Cadences that recur and therefore carry forecasting signal, in the fixed
# order used for grouping and forecasting.
RECURRING_CADENCES = (CadenceType.DAILY, CadenceType.MONTHLY, CadenceType.YEARLY)


@dataclass(frozen=True)
class Transaction:
    transaction_id: int
    subscription_id: int
    amount: float
    transaction_date: date


@dataclass(frozen=True)
class Subscription:
    """
    A subscription assembled from the ledger.

    The dates keep file order, which the ledger guarantees to be ascending
    per subscription. unit_price is the first observed amount.
    """

    subscription_id: int
    dates: tuple[date, ...]
    unit_price: float

    @property
    def first_date(self) -> date:
        return self.dates[0]

    @property
    def last_date(self) -> date:
        return self.dates[-1]

    @property
    def transaction_count(self) -> int:
        return len(self.dates)


@dataclass(frozen=True)
class ClassificationResult:
    """Cadence type and human-readable duration for one subscription."""

    subscription_id: int
    cadence_type: CadenceType
    duration: str                    # e.g. "1 year and 2 months, or 14 months"


@dataclass
class CadenceForecast:
    """
    Next-year forecast for one cadence type.

    Counts describe the last two years of the window (end_year - 1 and
    end_year); predictions describe end_year + 1.
    """

    cadence_type: CadenceType
    transactions_per_year: int
    subscription_count: int

    # Churn: subscriptions whose last transaction fell in end_year - 2 / end_year - 1
    churned_two_years_ago: int
    churned_last_year: int

    # New: subscriptions whose first transaction fell in end_year - 1 / end_year
    new_last_year: int
    new_this_year: int

    active_count: int
    average_unit_price: float

    predicted_returning: int
    predicted_new: int
    returning_revenue: float
    new_revenue: float

    retained_subscription_ids: list[int] = field(default_factory=list)

    @property
    def total_revenue(self) -> float:
        return self.returning_revenue + self.new_revenue


@dataclass(frozen=True)
class ProcessingError:
    """A non-fatal failure tied to one entity. The run continues without it."""

    stage: str                       # "classification" | "aggregation" | "forecast"
    entity_id: str                   # transaction id, subscription id or cadence name
    error_type: str                  # exception class name
    message: str
