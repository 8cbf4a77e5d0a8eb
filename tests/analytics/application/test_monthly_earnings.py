"""Tests for monthly earnings and analytics time windows."""

from datetime import UTC, datetime

import pytest
from protean.exceptions import ValidationError

from pharmacy.analytics.engine import AnalyticsEngine, TimeWindow


def _line(product_id="med-a", quantity=1, unit_price=10.0):
    return [{"product_id": product_id, "quantity": quantity, "unit_price": unit_price}]


class TestTimeWindow:
    def test_year_window(self):
        window = TimeWindow.for_year(2024)
        assert window.start == datetime(2024, 1, 1, tzinfo=UTC)
        assert window.end == datetime(2025, 1, 1, tzinfo=UTC)

    def test_december_rolls_into_next_year(self):
        window = TimeWindow.for_month(2024, 12)
        assert window.end == datetime(2025, 1, 1, tzinfo=UTC)

    def test_end_is_exclusive(self):
        window = TimeWindow.for_month(2024, 3)
        assert window.contains(datetime(2024, 3, 31, 23, 59, tzinfo=UTC)) is True
        assert window.contains(datetime(2024, 4, 1, tzinfo=UTC)) is False

    @pytest.mark.parametrize("month", [0, 13])
    def test_invalid_month(self, month):
        with pytest.raises(ValidationError):
            TimeWindow.for_month(2024, month)

    def test_invalid_year(self):
        with pytest.raises(ValidationError):
            TimeWindow.for_year(0)

    def test_end_must_follow_start(self):
        moment = datetime(2024, 1, 1, tzinfo=UTC)
        with pytest.raises(ValidationError):
            TimeWindow(moment, moment)


class TestMonthlyEarnings:
    def test_twelve_buckets(self, store_order):
        store_order(datetime(2024, 1, 15, tzinfo=UTC), _line(unit_price=10.0))
        store_order(datetime(2024, 1, 20, tzinfo=UTC), _line(unit_price=5.5))
        store_order(datetime(2024, 3, 2, tzinfo=UTC), _line(quantity=2, unit_price=7.25))

        earnings = AnalyticsEngine().monthly_earnings(2024)

        assert len(earnings.months) == 12
        assert earnings.months[0] == 15.5
        assert earnings.months[1] == 0.0
        assert earnings.months[2] == 14.5
        assert earnings.total == 30.0

    def test_months_sum_to_total(self, store_order):
        for month in range(1, 13):
            store_order(datetime(2024, month, 1, tzinfo=UTC), _line(unit_price=0.1 * month))

        earnings = AnalyticsEngine().monthly_earnings(2024)

        assert round(sum(earnings.months), 2) == earnings.total

    def test_other_years_excluded(self, store_order):
        store_order(datetime(2023, 12, 31, 23, 59, tzinfo=UTC), _line(unit_price=100.0))
        store_order(datetime(2025, 1, 1, tzinfo=UTC), _line(unit_price=100.0))

        assert AnalyticsEngine().monthly_earnings(2024).total == 0.0

    def test_cancelled_orders_are_counted(self, store_order):
        store_order(datetime(2024, 6, 1, tzinfo=UTC), _line(unit_price=20.0), status="cancelled")
        assert AnalyticsEngine().monthly_earnings(2024).months[5] == 20.0

    def test_serialized_shape(self):
        data = AnalyticsEngine().monthly_earnings(2024).to_dict()
        assert data == {"year": 2024, "monthly_totals": [0.0] * 12, "total": 0.0}
