"""Retention policy evaluation - effective window, cutoff and review partition"""

import logging
import math
from datetime import datetime
from typing import Iterable, List

from subsgrow_core.domain.exceptions import ConfigError
from subsgrow_core.domain.models import RetentionReview, SaleRecord
from subsgrow_core.utils.date_utils import add_days_ms, start_of_day, subtract_months, to_epoch_ms

logger = logging.getLogger(__name__)


def parse_retention_months(value: object) -> int:
    """
    Strictly parse a retention month count.

    Accepts ints, floats and numeric strings; fractions truncate toward zero.

    Raises:
        ConfigError: On missing, non-numeric, non-finite or negative input
    """
    if value is None or isinstance(value, bool):
        raise ConfigError(f"Retention months must be numeric, got {value!r}")

    try:
        number = float(value.strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Retention months must be numeric, got {value!r}") from e

    if not math.isfinite(number):
        raise ConfigError(f"Retention months must be finite, got {value!r}")
    if number < 0:
        raise ConfigError(f"Retention months must not be negative, got {value!r}")

    return int(number)


def coerce_retention_months(value: object) -> int:
    """Lenient form of parse_retention_months: anything unusable becomes 0"""
    if value is None:
        return 0
    try:
        return parse_retention_months(value)
    except ConfigError as e:
        logger.debug("Coercing retention setting to 0", extra={"reason": str(e)})
        return 0


def effective_retention_months(entitlement_months: object) -> int:
    """
    Resolve the window to enforce from the plan entitlement.

    Zero is the "do not enforce" sentinel, so anything that is not a positive
    month count resolves to 0.
    """
    months = coerce_retention_months(entitlement_months)
    return months if months > 0 else 0


def retention_cutoff(now: datetime, months: int) -> int:
    """Earliest creation time (epoch ms) still inside the retention window"""
    return to_epoch_ms(subtract_months(now, months))


def records_past_cutoff(sales: Iterable[SaleRecord], cutoff: int) -> List[SaleRecord]:
    """Identified records created strictly before the cutoff"""
    return [sale for sale in sales if sale.id and (sale.created_at or 0) < cutoff]


def build_review(
    sales: Iterable[SaleRecord],
    now: datetime,
    months: int,
    near_days: int = 3,
) -> RetentionReview:
    """
    Partition records for an owner retention review.

    The review cutoff is local midnight of the date `months` calendar months
    before `now`.
    - old: created before the cutoff, newest first
    - near: created within `near_days` after the cutoff (inclusive), oldest first

    A zero month count means nothing is reviewable.
    """
    if months <= 0:
        return RetentionReview(cutoff=0, old=(), near=())

    cutoff = to_epoch_ms(start_of_day(subtract_months(now, months)))
    horizon = add_days_ms(cutoff, near_days)

    sales = list(sales)
    old = [s for s in sales if (s.created_at or 0) < cutoff]
    near = [s for s in sales if cutoff <= (s.created_at or 0) <= horizon]

    return RetentionReview(
        cutoff=cutoff,
        old=tuple(sorted(old, key=lambda s: s.created_at, reverse=True)),
        near=tuple(sorted(near, key=lambda s: s.created_at)),
    )
