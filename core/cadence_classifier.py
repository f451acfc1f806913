"""
cadence_classifier.py
----------------------
Billing cadence classification.

Answers one question per subscription:

    "Does this subscription bill once, daily, monthly or yearly, and for how long?"

The cadence is inferred from the spacing of the first two transaction dates
only. Each subscription bills on a single fixed cadence for its whole
lifetime, so the first gap identifies it:

    - day-of-month differs   -> daily
    - month differs          -> monthly
    - year differs           -> yearly

classify() is pure. Grouping subscriptions by cadence is a separate fold
over the results (group_by_cadence), so nothing is mutated while
classifying.
"""

import logging
from datetime import date
from types import MappingProxyType
from typing import Dict, List, Mapping, Sequence, Tuple

from core.errors import InvalidArgumentError, UndefinedCadenceError
from core.models import (
    CadenceType,
    ClassificationResult,
    ProcessingError,
    RECURRING_CADENCES,
)
from core.record_store import RecordStore

logger = logging.getLogger(__name__)


def classify(dates: Sequence[date], subscription_id: int = 0) -> ClassificationResult:
    """
    Classify a subscription from its ordered transaction dates.

    Args:
        dates: Non-empty, ascending transaction dates.
        subscription_id: Carried through to the result.

    Returns:
        ClassificationResult with cadence type and duration description.

    Raises:
        InvalidArgumentError: If dates is empty.
        UndefinedCadenceError: If the first two dates are the same day.
    """
    count = len(dates)
    if count == 0:
        raise InvalidArgumentError(f"Subscription {subscription_id} has no transaction dates")

    if count == 1:
        return ClassificationResult(subscription_id, CadenceType.ONE_OFF, "1 day")

    first, second = dates[0], dates[1]

    if second.day != first.day:
        return ClassificationResult(subscription_id, CadenceType.DAILY, f"{count} days")
    if second.month != first.month:
        return ClassificationResult(subscription_id, CadenceType.MONTHLY, _describe_months(count))
    if second.year != first.year:
        return ClassificationResult(subscription_id, CadenceType.YEARLY, f"{count} years")

    raise UndefinedCadenceError(
        f"Subscription {subscription_id}: first two transactions share the date {first.isoformat()}"
    )


def _describe_months(count: int) -> str:
    """
    Express a month count as years plus months.

        2  -> "2 months"
        14 -> "1 year and 2 months, or 14 months"
        24 -> "2 years, or 24 months"
    """
    years, months = divmod(count, 12)
    duration = ""
    if years:
        duration = f"{years} year{'' if years == 1 else 's'}"
    if months:
        duration += f"{' and ' if years else ''}{months} month{'' if months == 1 else 's'}"
    if years:
        # Give the total as well once it has been split into years
        duration += f", or {count} months"
    return duration


def classify_all(store: RecordStore) -> Tuple[List[ClassificationResult], List[ProcessingError]]:
    """
    Classify every subscription in the store, in ascending id order.

    A subscription whose cadence cannot be determined is reported as a
    ProcessingError and skipped; the rest are still classified.
    """
    results: List[ClassificationResult] = []
    errors: List[ProcessingError] = []

    for subscription in store.subscriptions():
        try:
            results.append(classify(subscription.dates, subscription.subscription_id))
        except (UndefinedCadenceError, InvalidArgumentError) as exc:
            logger.warning(f"Skipping subscription {subscription.subscription_id}: {exc}")
            errors.append(ProcessingError(
                stage="classification",
                entity_id=str(subscription.subscription_id),
                error_type=type(exc).__name__,
                message=str(exc),
            ))

    return results, errors


def group_by_cadence(results: Sequence[ClassificationResult]) -> Mapping[CadenceType, Tuple[int, ...]]:
    """
    Fold classification results into a read-only mapping of cadence -> ids.

    Only recurring cadences are keyed; one-off subscriptions carry no
    forecasting signal and are left out. Ids keep the order of `results`.
    """
    groups: Dict[CadenceType, List[int]] = {cadence: [] for cadence in RECURRING_CADENCES}
    for result in results:
        if result.cadence_type in groups:
            groups[result.cadence_type].append(result.subscription_id)
    return MappingProxyType({cadence: tuple(ids) for cadence, ids in groups.items()})
