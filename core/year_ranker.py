"""
year_ranker.py
---------------
Top-K growth and loss years.

Selection is k rounds of a linear scan rather than a sort. Each round walks
the years in ascending order and keeps the strictly best delta among years
not already picked, so ties go to the earliest year.

Only strictly positive deltas count as growth and strictly negative deltas
as loss. When a round finds no qualifying year, selection stops and fewer
than k years are returned.
"""

from typing import Callable, List

import pandas as pd

from core.errors import InvalidArgumentError


def top_growth(deltas: pd.Series, k: int) -> List[int]:
    """The k years with the largest positive delta, best first."""
    return _select(deltas, k, lambda value, best: value > best)


def top_loss(deltas: pd.Series, k: int) -> List[int]:
    """The k years with the most negative delta, worst first."""
    return _select(deltas, k, lambda value, best: value < best)


def _select(deltas: pd.Series, k: int, beats: Callable[[int, int], bool]) -> List[int]:
    _validate_k(deltas, k)

    picked: List[int] = []
    while len(picked) < k:
        best_value = 0
        best_year = None
        for year, value in deltas.items():
            if beats(value, best_value) and year not in picked:
                best_value = value
                best_year = int(year)
        if best_year is None:
            break
        picked.append(best_year)

    return picked


def _validate_k(deltas: pd.Series, k: int) -> None:
    if k < 0:
        raise InvalidArgumentError(f"k must be non-negative, got {k}")
    if k > len(deltas):
        raise InvalidArgumentError(f"k={k} exceeds the {len(deltas)} years in range")
