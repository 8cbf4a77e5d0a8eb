"""Analytics engine — revenue, rankings and dashboard counters from the order ledger.

Every computation is read-only and scoped by an explicit ``[start, end)``
window in UTC. Results are computed on demand and never stored. They
reflect whatever the ledger holds at read time and are not coordinated with
concurrent order writes.

Sums are accumulated as ``Decimal`` and rounded to cents only when a value
is returned. Monthly figures are rounded individually and the yearly total
is the sum of the rounded months, so the reported months always add up to
the reported total.
"""

from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import UTC, datetime

import structlog
from protean.exceptions import ValidationError

from pharmacy.catalogue.medicine import Medicine
from pharmacy.identity.customer import Customer
from pharmacy.ordering.order import Order, OrderStatus
from pharmacy.shared.money import ZERO, line_total, round_money, to_decimal, total_of
from pharmacy.shared.query import fetch_all, query_for

logger = structlog.get_logger(__name__)

DEFAULT_TOP_LIMIT = 10
UNKNOWN_BUCKET = "Unknown"


# ---------------------------------------------------------------------------
# Windows
# ---------------------------------------------------------------------------
def _validate_year(year) -> int:
    if isinstance(year, bool) or not isinstance(year, int) or not 1 <= year <= 9998:
        raise ValidationError({"year": [f"Invalid year: {year}"]})
    return year


def _validate_month(month) -> int:
    if isinstance(month, bool) or not isinstance(month, int) or not 1 <= month <= 12:
        raise ValidationError({"month": [f"Month must be between 1 and 12, got {month}"]})
    return month


@dataclass(frozen=True)
class TimeWindow:
    """Half-open UTC interval ``[start, end)``."""

    start: datetime
    end: datetime

    def __post_init__(self):
        if self.end <= self.start:
            raise ValidationError({"window": ["Window end must be after its start"]})

    @classmethod
    def for_year(cls, year: int) -> "TimeWindow":
        year = _validate_year(year)
        return cls(datetime(year, 1, 1, tzinfo=UTC), datetime(year + 1, 1, 1, tzinfo=UTC))

    @classmethod
    def for_month(cls, year: int, month: int) -> "TimeWindow":
        year = _validate_year(year)
        month = _validate_month(month)
        end = datetime(year + 1, 1, 1, tzinfo=UTC) if month == 12 else datetime(year, month + 1, 1, tzinfo=UTC)
        return cls(datetime(year, month, 1, tzinfo=UTC), end)

    def contains(self, moment: datetime) -> bool:
        if moment is None:
            return False
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=UTC)
        return self.start <= moment < self.end

    def to_dict(self) -> dict:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class MonthlyEarnings:
    year: int
    months: tuple[float, ...]
    total: float

    def to_dict(self) -> dict:
        return {"year": self.year, "monthly_totals": list(self.months), "total": self.total}


@dataclass(frozen=True)
class RankedTotal:
    name: str
    total: float

    def to_dict(self) -> dict:
        return {"name": self.name, "total": self.total}


@dataclass(frozen=True)
class DashboardStats:
    users: int
    total_orders: int
    orders_by_status: dict[str, int]
    total_amount: float
    mean_order_amount: float

    def to_dict(self) -> dict:
        return {
            "users": self.users,
            "total_orders": self.total_orders,
            "orders_by_status": dict(self.orders_by_status),
            "total_amount": self.total_amount,
            "mean_order_amount": self.mean_order_amount,
        }


@dataclass(frozen=True)
class AnalyticsSnapshot:
    """Everything the back office shows for one window, computed in one pass."""

    window: TimeWindow
    order_count: int
    revenue: float
    mean_order_value: float
    orders_by_status: dict[str, int] = field(default_factory=dict)
    monthly_revenue: dict[str, float] = field(default_factory=dict)
    top_manufacturers: tuple[RankedTotal, ...] = ()
    top_medicines: tuple[RankedTotal, ...] = ()

    def to_dict(self) -> dict:
        return {
            "window": self.window.to_dict(),
            "order_count": self.order_count,
            "revenue": self.revenue,
            "mean_order_value": self.mean_order_value,
            "orders_by_status": dict(self.orders_by_status),
            "monthly_revenue": dict(self.monthly_revenue),
            "top_manufacturers": [r.to_dict() for r in self.top_manufacturers],
            "top_medicines": [r.to_dict() for r in self.top_medicines],
        }


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------
def _rank(totals: dict, limit: int) -> list[RankedTotal]:
    # Highest total first; ties broken by name so results are reproducible
    ranked = sorted(totals.items(), key=lambda kv: (-kv[1], kv[0]))
    return [RankedTotal(name=name, total=round_money(total)) for name, total in ranked[:limit]]


def _mean(total, count) -> float:
    return round_money(to_decimal(total) / count) if count else 0.0


def _as_utc(moment: datetime) -> datetime:
    return moment.replace(tzinfo=UTC) if moment.tzinfo is None else moment.astimezone(UTC)


class AnalyticsEngine:
    def orders_in(self, window: TimeWindow) -> list[Order]:
        queryset = query_for(Order).filter(created_at__gte=window.start, created_at__lt=window.end)
        return fetch_all(queryset)

    def monthly_earnings(self, year: int) -> MonthlyEarnings:
        """Twelve monthly revenue buckets for `year`; empty months report 0.0."""
        window = TimeWindow.for_year(year)
        buckets = [ZERO] * 12
        for order in self.orders_in(window):
            month = _as_utc(order.created_at).month
            buckets[month - 1] += to_decimal(order.total_amount)

        months = tuple(round_money(bucket) for bucket in buckets)
        return MonthlyEarnings(year=year, months=months, total=round_money(total_of(months)))

    def top_manufacturers(self, year: int, month: int, limit: int = DEFAULT_TOP_LIMIT) -> list[RankedTotal]:
        return self._top_by(TimeWindow.for_month(year, month), lambda m: m.manufacturer, limit)

    def top_medicines(self, year: int, month: int, limit: int = DEFAULT_TOP_LIMIT) -> list[RankedTotal]:
        return self._top_by(TimeWindow.for_month(year, month), lambda m: m.name, limit)

    def dashboard_stats(self) -> DashboardStats:
        orders = fetch_all(query_for(Order))
        users = query_for(Customer).all().total

        by_status = Counter(order.status for order in orders)
        total = total_of(order.total_amount for order in orders)

        return DashboardStats(
            users=users,
            total_orders=len(orders),
            orders_by_status={status.value: by_status.get(status.value, 0) for status in OrderStatus},
            total_amount=round_money(total),
            mean_order_amount=_mean(total, len(orders)),
        )

    def snapshot(self, window: TimeWindow, limit: int = DEFAULT_TOP_LIMIT) -> AnalyticsSnapshot:
        orders = self.orders_in(window)
        total = total_of(order.total_amount for order in orders)

        monthly = defaultdict(lambda: ZERO)
        for order in orders:
            moment = _as_utc(order.created_at)
            monthly[f"{moment.year:04d}-{moment.month:02d}"] += to_decimal(order.total_amount)

        by_status = Counter(order.status for order in orders)
        medicines = self._medicines_for(orders)

        logger.debug(
            "Analytics snapshot computed",
            start=window.start.isoformat(),
            end=window.end.isoformat(),
            order_count=len(orders),
        )
        return AnalyticsSnapshot(
            window=window,
            order_count=len(orders),
            revenue=round_money(total),
            mean_order_value=_mean(total, len(orders)),
            orders_by_status={status.value: by_status.get(status.value, 0) for status in OrderStatus},
            monthly_revenue={key: round_money(value) for key, value in sorted(monthly.items())},
            top_manufacturers=tuple(self._rank_items(orders, medicines, lambda m: m.manufacturer, limit)),
            top_medicines=tuple(self._rank_items(orders, medicines, lambda m: m.name, limit)),
        )

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _top_by(self, window, key_of, limit) -> list[RankedTotal]:
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise ValidationError({"limit": ["Limit must be a positive integer"]})
        orders = self.orders_in(window)
        return self._rank_items(orders, self._medicines_for(orders), key_of, limit)

    def _medicines_for(self, orders) -> dict[str, Medicine]:
        """Live medicine records for every product referenced by `orders`."""
        product_ids = {str(item.product_id) for order in orders for item in order.items}
        if not product_ids:
            return {}
        queryset = query_for(Medicine).filter(id__in=list(product_ids))
        return {str(medicine.id): medicine for medicine in fetch_all(queryset)}

    @staticmethod
    def _rank_items(orders, medicines, key_of, limit) -> list[RankedTotal]:
        totals = defaultdict(lambda: ZERO)
        for order in orders:
            for item in order.items:
                medicine = medicines.get(str(item.product_id))
                key = (key_of(medicine) if medicine else None) or UNKNOWN_BUCKET
                totals[key] += line_total(item.unit_price, item.quantity)
        return _rank(totals, limit)
