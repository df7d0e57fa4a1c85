"""
Tests for the pricing rule and money helpers.
"""

from datetime import datetime, timezone

import pytest

from bookstore.core.errors import ValidationError
from bookstore.domain.entities import BookCondition
from bookstore.domain.pricing import (
    format_price,
    month_batch,
    pence_to_pounds,
    pounds_to_pence,
    suggest_price,
)


class TestSuggestPrice:

    def test_very_good_example(self):
        """500p x 3.0 x 1.1 = £16.50 -> £17 -> £16.99."""
        assert suggest_price(500, BookCondition.VERY_GOOD) == 1699

    @pytest.mark.parametrize(
        "condition,expected",
        [
            (BookCondition.LIKE_NEW, 1799),    # 18.00 -> 18 -> 17.99
            (BookCondition.VERY_GOOD, 1699),   # 16.50
            (BookCondition.GOOD, 1499),        # 15.00 -> 15 -> 14.99
            (BookCondition.ACCEPTABLE, 1199),  # 12.00
        ],
    )
    def test_condition_multipliers(self, condition, expected):
        assert suggest_price(500, condition) == expected

    def test_every_price_ends_in_99(self):
        for cost in (1, 99, 250, 333, 1234, 9999):
            for condition in BookCondition:
                assert suggest_price(cost, condition) % 100 == 99

    def test_accepts_string_condition(self):
        assert suggest_price(500, "very_good") == 1699

    @pytest.mark.parametrize("cost", [0, -100])
    def test_non_positive_cost_rejected(self, cost):
        with pytest.raises(ValidationError):
            suggest_price(cost, BookCondition.GOOD)

    def test_market_prices_are_ignored(self):
        assert suggest_price(500, BookCondition.GOOD, market_prices=[100, 5000]) == 1499

    def test_is_deterministic(self):
        results = {suggest_price(777, BookCondition.LIKE_NEW) for _ in range(20)}
        assert len(results) == 1

    def test_no_float_drift(self):
        """110p x 3.0 x 1.0 = £3.30 exactly, not 3.3000000000000003."""
        assert suggest_price(110, BookCondition.GOOD) == 399


class TestMoneyHelpers:

    def test_pounds_to_pence(self):
        assert pounds_to_pence(5) == 500
        assert pounds_to_pence(12.99) == 1299
        assert pounds_to_pence("0.10") == 10

    def test_pounds_to_pence_rounds_half_up(self):
        assert pounds_to_pence(1.005) == 101

    def test_pence_to_pounds(self):
        assert pence_to_pounds(1699) == 16.99

    def test_format_price(self):
        assert format_price(1699) == "£16.99"
        assert format_price(5) == "£0.05"

    def test_month_batch(self):
        assert month_batch(datetime(2024, 3, 9, tzinfo=timezone.utc)) == "2024-03"
