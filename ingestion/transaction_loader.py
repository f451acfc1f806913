"""
transaction_loader.py
----------------------
Reads the raw transactions CSV into the DataFrame the engine consumes.

Input format (one row per transaction, header included):

    Id,SubscriptionId,Amount,Date
    1,17,9.99,1/31/1998

Dates are month/day/4-digit-year. Rows are kept in file order: the ledger is
sorted by date per subscription and the record store relies on that order.

Malformed rows are not repaired. Any unparsable id, amount or date raises
ParseError naming the offending CSV line, and nothing is loaded.
"""

import logging
import os

import pandas as pd

from config.config_loader import get_ingestion_config
from core.errors import ParseError

logger = logging.getLogger(__name__)


def load_transactions(input_path: str) -> pd.DataFrame:
    """
    Load and type the transactions CSV.

    Args:
        input_path: Path to the ledger CSV.

    Returns:
        DataFrame with columns transaction_id, subscription_id, amount,
        transaction_date (datetime64), in file order.

    Raises:
        FileNotFoundError: If the file does not exist.
        ParseError: If a column is missing or a value is malformed.
    """
    if not os.path.exists(input_path):
        raise FileNotFoundError(f"Input file not found: {input_path}")

    # Keep blank lines as empty rows so the index still maps to file lines
    raw = pd.read_csv(input_path, dtype=str, skipinitialspace=True, skip_blank_lines=False)
    raw = raw.dropna(how="all")
    df = parse_transactions(raw)
    logger.info(f"Loaded {len(df):,} transactions from {input_path}.")
    return df


def parse_transactions(raw: pd.DataFrame) -> pd.DataFrame:
    """
    Rename raw CSV headers and convert every field to its type.

    Raises:
        ParseError: If a column is missing or a value is malformed.
    """
    config = get_ingestion_config()
    column_map = config["column_map"]

    missing = [c for c in column_map if c not in raw.columns]
    if missing:
        raise ParseError(f"Missing required columns: {missing}")

    df = raw[list(column_map)].rename(columns=column_map).copy()

    for col in ["transaction_id", "subscription_id"]:
        values = pd.to_numeric(df[col], errors="coerce")
        _raise_on_bad_rows(values.isna() | (values % 1 != 0), df[col], col)
        df[col] = values.astype("int64")

    amounts = pd.to_numeric(df["amount"], errors="coerce")
    _raise_on_bad_rows(amounts.isna(), df["amount"], "amount")
    df["amount"] = amounts.astype(float)

    dates = pd.to_datetime(df["transaction_date"], format=config["date_format"], errors="coerce")
    _raise_on_bad_rows(dates.isna(), df["transaction_date"], "transaction_date")
    df["transaction_date"] = dates

    return df.reset_index(drop=True)


def _raise_on_bad_rows(mask: pd.Series, raw_values: pd.Series, column: str) -> None:
    if not mask.any():
        return
    # +2: one for the header line, one for 1-based line numbers
    first = mask.idxmax()
    raise ParseError(
        f"Malformed {column} {raw_values.loc[first]!r} on line {first + 2} "
        f"({int(mask.sum())} bad value(s) in column)"
    )
