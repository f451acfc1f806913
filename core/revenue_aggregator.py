"""
revenue_aggregator.py
----------------------
Yearly revenue buckets and year-over-year deltas.

Every transaction amount is added into the bucket for its calendar year.
Buckets hold whole currency units: each addition truncates the running
total toward zero, so fractional cents are dropped per transaction rather
than once at the end.

A transaction outside [start_year, end_year] never touches a bucket. It is
reported as a ProcessingError and the remaining transactions are still
aggregated.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List

import pandas as pd

from core.errors import InvalidArgumentError, OutOfRangeError
from core.models import ProcessingError, Transaction

logger = logging.getLogger(__name__)


@dataclass
class RevenueAggregation:
    """Buckets indexed by year plus any transactions rejected from them."""
    buckets: pd.Series
    errors: List[ProcessingError] = field(default_factory=list)


def empty_buckets(start_year: int, end_year: int) -> pd.Series:
    """A zeroed bucket per year in [start_year, end_year]."""
    if start_year > end_year:
        raise InvalidArgumentError(f"start_year {start_year} is after end_year {end_year}")
    years = pd.RangeIndex(start_year, end_year + 1, name="year")
    return pd.Series(0, index=years, dtype="int64", name="revenue")


def add_to_bucket(buckets: pd.Series, transaction: Transaction) -> None:
    """
    Add one transaction into its year's bucket in place.

    Raises:
        OutOfRangeError: If the transaction's year has no bucket.
    """
    year = transaction.transaction_date.year
    start_year, end_year = int(buckets.index[0]), int(buckets.index[-1])
    if not start_year <= year <= end_year:
        raise OutOfRangeError(year, start_year, end_year)
    buckets.at[year] = int(buckets.at[year] + transaction.amount)


def aggregate(transactions: Iterable[Transaction], start_year: int, end_year: int) -> RevenueAggregation:
    """
    Sum transaction amounts into one integer bucket per calendar year.

    Args:
        transactions: Transactions in ledger order.
        start_year: First year of the window (inclusive).
        end_year: Last year of the window (inclusive).

    Returns:
        RevenueAggregation with a Series indexed by every year in the window
        and one ProcessingError per out-of-range transaction.
    """
    buckets = empty_buckets(start_year, end_year)
    errors: List[ProcessingError] = []

    for txn in transactions:
        try:
            add_to_bucket(buckets, txn)
        except OutOfRangeError as exc:
            errors.append(ProcessingError(
                stage="aggregation",
                entity_id=str(txn.transaction_id),
                error_type=type(exc).__name__,
                message=f"Transaction {txn.transaction_id} (subscription {txn.subscription_id}): {exc}",
            ))

    if errors:
        logger.warning(f"{len(errors):,} transactions fell outside {start_year}-{end_year} and were not counted.")

    return RevenueAggregation(buckets=buckets, errors=errors)


def deltas(buckets: pd.Series) -> pd.Series:
    """
    Year-over-year change in revenue.

    The year before the first bucket counts as zero, so the first delta equals
    the first bucket.
    """
    result = buckets.diff().fillna(buckets).astype("int64")
    result.name = "delta"
    return result
