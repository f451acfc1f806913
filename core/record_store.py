"""
record_store.py
----------------
In-memory store of every subscription seen in the ledger.

Built once from the transactions DataFrame produced by the ingestion
layer. For each subscription id it holds the ordered list of transaction
dates and the per-transaction price. Read-only once built.

Design decisions:
    - Row order is trusted, never re-sorted. The ledger is sorted by date per
      subscription, so file order is date order.
    - The unit price is the first observed amount. Every transaction of a
      subscription is expected to share it; later amounts are not checked.
"""

import logging
from typing import Dict, Iterator, List

import pandas as pd

from core.errors import ParseError
from core.models import Subscription, Transaction

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ["transaction_id", "subscription_id", "amount", "transaction_date"]


class RecordStore:
    """
    Subscription lookup built from a ledger.

    Usage:
        store = ingest(transactions_df)
        store.subscription(42).dates
    """

    def __init__(self, transactions: pd.DataFrame, subscriptions: Dict[int, Subscription]):
        self._transactions = transactions
        self._subscriptions = subscriptions

    def iter_transactions(self) -> Iterator[Transaction]:
        for row in self._transactions.itertuples(index=False):
            yield Transaction(
                transaction_id=row.transaction_id,
                subscription_id=row.subscription_id,
                amount=row.amount,
                transaction_date=row.transaction_date,
            )

    def subscription(self, subscription_id: int) -> Subscription:
        """
        Raises:
            KeyError: If the id never appeared in the ledger.
        """
        return self._subscriptions[subscription_id]

    def subscription_ids(self) -> List[int]:
        """All subscription ids, ascending."""
        return sorted(self._subscriptions)

    def subscriptions(self) -> List[Subscription]:
        return [self._subscriptions[sid] for sid in self.subscription_ids()]

    def unit_price(self, subscription_id: int) -> float:
        return self._subscriptions[subscription_id].unit_price

    def __contains__(self, subscription_id: int) -> bool:
        return subscription_id in self._subscriptions

    def __len__(self) -> int:
        return len(self._subscriptions)

    def __repr__(self) -> str:
        return f"RecordStore(subscriptions={len(self)}, transactions={len(self._transactions)})"


def ingest(transactions: pd.DataFrame) -> RecordStore:
    """
    Build a RecordStore from a transactions DataFrame.

    Args:
        transactions: DataFrame with columns transaction_id, subscription_id,
            amount, transaction_date. Dates may be datetime64 or date objects.

    Returns:
        RecordStore with one Subscription per distinct subscription_id.

    Raises:
        ParseError: If a column is missing or a value cannot be converted.
    """
    df = _normalize(transactions)

    dates: Dict[int, List] = {}
    prices: Dict[int, float] = {}
    for row in df.itertuples(index=False):
        dates.setdefault(row.subscription_id, []).append(row.transaction_date)
        prices.setdefault(row.subscription_id, row.amount)

    subscriptions = {
        sid: Subscription(subscription_id=sid, dates=tuple(sub_dates), unit_price=prices[sid])
        for sid, sub_dates in dates.items()
    }

    logger.info(f"Ingested {len(df):,} transactions across {len(subscriptions):,} subscriptions.")
    return RecordStore(df, subscriptions)


def _normalize(transactions: pd.DataFrame) -> pd.DataFrame:
    """Validates columns and coerces each one to its domain type."""
    missing = [c for c in REQUIRED_COLUMNS if c not in transactions.columns]
    if missing:
        raise ParseError(f"Missing required columns: {missing}")

    df = transactions[REQUIRED_COLUMNS].copy().reset_index(drop=True)
    if df.empty:
        return df

    for col in ["transaction_id", "subscription_id"]:
        values = pd.to_numeric(df[col], errors="coerce")
        bad = values.isna() | (values % 1 != 0)
        if bad.any():
            raise ParseError(
                f"Non-integral {col} in ledger rows: {df.index[bad].tolist()[:10]}"
            )
        df[col] = values.astype("int64")

    amounts = pd.to_numeric(df["amount"], errors="coerce")
    if amounts.isna().any():
        raise ParseError(
            f"Non-numeric amount in ledger rows: {df.index[amounts.isna()].tolist()[:10]}"
        )
    df["amount"] = amounts.astype(float)

    try:
        df["transaction_date"] = pd.to_datetime(df["transaction_date"]).dt.date
    except (TypeError, ValueError) as exc:
        raise ParseError(f"Unparsable transaction_date in ledger: {exc}") from exc

    if df[REQUIRED_COLUMNS].isna().any().any():
        bad_rows = df.index[df[REQUIRED_COLUMNS].isna().any(axis=1)].tolist()
        raise ParseError(f"Missing values in ledger rows: {bad_rows[:10]}")

    # itertuples hands back numpy scalars; store plain Python ints/floats
    df = df.astype(object)
    df["transaction_id"] = df["transaction_id"].map(int)
    df["subscription_id"] = df["subscription_id"].map(int)
    df["amount"] = df["amount"].map(float)
    return df
