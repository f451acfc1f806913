"""
errors.py
----------
Exception taxonomy for the forecasting engine.

All errors subclass ValueError: every one of them describes input the engine
cannot use, and existing callers that catch ValueError keep working.
"""


class ParseError(ValueError):
    """A ledger record is malformed or a required column is missing."""


class OutOfRangeError(ValueError):
    """A transaction's year falls outside the configured year window."""

    def __init__(self, year: int, start_year: int, end_year: int):
        self.year = year
        self.start_year = start_year
        self.end_year = end_year
        super().__init__(f"Year {year} outside configured range [{start_year}, {end_year}]")


class InvalidArgumentError(ValueError):
    """An argument is outside the domain an operation accepts."""


class UndefinedCadenceError(ValueError):
    """The first two transaction dates are identical, so no cadence can be inferred."""
