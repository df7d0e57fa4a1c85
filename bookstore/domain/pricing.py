"""Pricing rule and money helpers.

All stored amounts are integer pence.  Arithmetic that needs fractions goes
through :class:`~decimal.Decimal` so identical inputs always give identical
prices.
"""

import math
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Sequence, Union

from bookstore.core.errors import ValidationError
from bookstore.domain.entities import BookCondition

BASE_MARKUP = Decimal("3.0")

CONDITION_MULTIPLIERS: dict[BookCondition, Decimal] = {
    BookCondition.LIKE_NEW: Decimal("1.2"),
    BookCondition.VERY_GOOD: Decimal("1.1"),
    BookCondition.GOOD: Decimal("1.0"),
    BookCondition.ACCEPTABLE: Decimal("0.8"),
}


def suggest_price(
    cost_price: int,
    condition: Union[BookCondition, str],
    market_prices: Optional[Sequence[int]] = None,
) -> int:
    """Suggested sell price in pence for a book bought at *cost_price* pence.

    cost x 3.0 x condition multiplier, rounded up to the next whole pound,
    minus a penny, so every price ends in .99.  *market_prices* is accepted
    but not used by the current rule.
    """
    if cost_price <= 0:
        raise ValidationError("Cost price must be greater than 0")
    multiplier = CONDITION_MULTIPLIERS.get(BookCondition(condition), Decimal("1.0"))
    cost_pounds = Decimal(cost_price) / 100
    calculated = cost_pounds * BASE_MARKUP * multiplier
    rounded = Decimal(math.ceil(calculated)) - Decimal("0.01")
    return int((rounded * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def pounds_to_pence(pounds: Union[float, int, str, Decimal]) -> int:
    amount = Decimal(str(pounds)) * 100
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def pence_to_pounds(pence: int) -> float:
    return pence / 100


def format_price(pence: int) -> str:
    return f"£{pence / 100:.2f}"


def month_batch(moment: datetime) -> str:
    """Donation batch key (``YYYY-MM``) for a timestamp."""
    return moment.strftime("%Y-%m")
