"""Listing query builder — paged, sorted, filtered reads for storefront and admin lists.

Requests are normalized before they reach a repository: page and limit are
clamped, sort keys come from a closed enum per entity with a fixed fallback,
and search terms shorter than the entity's minimum length are dropped.

Plain listings push ordering, offset and limit down to the store. A search
spans several fields (and, for orders and reviews, related customers and
medicines), so it narrows rows with store filters first and then matches,
sorts and slices the remainder in memory.
"""

import math
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum

from protean.exceptions import ValidationError

from pharmacy.catalogue.medicine import Medicine
from pharmacy.identity.customer import Customer
from pharmacy.ordering.order import Order, parse_status
from pharmacy.reviews.review import Review, validate_rating
from pharmacy.shared.money import round_money, total_of
from pharmacy.shared.query import fetch_all, fetch_page, query_for

DEFAULT_LIMIT = 20
MAX_LIMIT = 200

MIN_SEARCH_LENGTH = 3
MIN_REVIEW_SEARCH_LENGTH = 2
MIN_FILTER_LENGTH = 3


# ---------------------------------------------------------------------------
# Sort keys
# ---------------------------------------------------------------------------
class SortDirection(Enum):
    ASC = "asc"
    DESC = "desc"


class OrderSortKey(Enum):
    CREATED_AT = "createdAt"
    AMOUNT = "amount"


class ReviewSortKey(Enum):
    CREATED_AT = "createdAt"
    RATING = "rating"


class MedicineSortKey(Enum):
    NAME = "name"
    PRICE = "price"


class CustomerSortKey(Enum):
    NAME = "name"
    TOTAL_SPEND = "totalSpend"


# Sort key -> attribute it orders by
_SORT_ATTRIBUTES = {
    OrderSortKey.CREATED_AT: "created_at",
    OrderSortKey.AMOUNT: "total_amount",
    ReviewSortKey.CREATED_AT: "created_at",
    ReviewSortKey.RATING: "rating",
    MedicineSortKey.NAME: "name",
    MedicineSortKey.PRICE: "price",
    CustomerSortKey.NAME: "name",
    CustomerSortKey.TOTAL_SPEND: "total_spend",
}

# Text attributes are sorted case-insensitively in memory
_TEXT_SORT_ATTRIBUTES = {"name"}


def resolve_sort(key_cls: type[Enum], raw, default: Enum) -> Enum:
    """Map a raw sort parameter onto `key_cls`, falling back to `default`."""
    try:
        return key_cls(raw)
    except ValueError:
        return default


def resolve_direction(raw, default: SortDirection) -> SortDirection:
    try:
        return SortDirection(str(raw).lower()) if raw else default
    except ValueError:
        return default


def total_pages(total_items: int, limit: int) -> int:
    return max(1, math.ceil(total_items / limit))


# ---------------------------------------------------------------------------
# Request / response envelopes
# ---------------------------------------------------------------------------
def _clamp_int(value, default: int, low: int, high: int | None = None) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        number = default
    number = max(low, number)
    return min(high, number) if high is not None else number


@dataclass(frozen=True)
class ListingRequest:
    """A normalized listing request. Build instances with `ListingRequest.create`."""

    page: int = 1
    limit: int = DEFAULT_LIMIT
    search: str | None = None
    status: str | None = None
    sort: str | None = None
    direction: str | None = None
    filters: dict = field(default_factory=dict)

    @classmethod
    def create(cls, page=1, limit=DEFAULT_LIMIT, search=None, status=None, sort=None, direction=None, **filters):
        return cls(
            page=_clamp_int(page, 1, 1),
            limit=_clamp_int(limit, DEFAULT_LIMIT, 1, MAX_LIMIT),
            search=search.strip() if isinstance(search, str) else None,
            status=status.strip() if isinstance(status, str) and status.strip() else None,
            sort=sort,
            direction=direction,
            filters={k: v for k, v in filters.items() if v is not None},
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def search_term(self, min_length: int = MIN_SEARCH_LENGTH) -> str | None:
        """The lower-cased search term, or None when it is too short to use."""
        if self.search and len(self.search) >= min_length:
            return self.search.lower()
        return None

    def filter_term(self, name: str) -> str | None:
        value = self.filters.get(name)
        if isinstance(value, str) and len(value.strip()) >= MIN_FILTER_LENGTH:
            return value.strip()
        return None


@dataclass(frozen=True)
class Page:
    items: list
    page: int
    total_pages: int
    total_items: int

    @classmethod
    def build(cls, items, request: ListingRequest, total_items: int) -> "Page":
        return cls(
            items=list(items),
            page=request.page,
            total_pages=total_pages(total_items, request.limit),
            total_items=total_items,
        )

    def to_dict(self, serialize=None) -> dict:
        serialize = serialize or (lambda item: item)
        return {
            "items": [serialize(item) for item in self.items],
            "page": self.page,
            "totalPages": self.total_pages,
            "totalItems": self.total_items,
        }


@dataclass(frozen=True)
class CustomerRow:
    """A customer with ledger-derived spend figures."""

    customer: Customer
    orders_count: int
    total_spend: float

    @property
    def name(self):
        return self.customer.name


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _contains(term: str, *values) -> bool:
    return any(term in str(value).lower() for value in values if value)


def _sort_value(row, attribute):
    value = getattr(row, attribute, None)
    if isinstance(value, str):
        value = value.lower()
    # None sorts before every concrete value without being compared to one
    return (value is not None, value)


def _sorted_slice(rows, request, attribute, descending) -> Page:
    rows = sorted(rows, key=lambda row: _sort_value(row, attribute), reverse=descending)
    return Page.build(rows[request.offset : request.offset + request.limit], request, len(rows))


def _store_page(queryset, request, attribute, descending) -> Page:
    if attribute in _TEXT_SORT_ATTRIBUTES:
        return _sorted_slice(fetch_all(queryset), request, attribute, descending)
    ordered = queryset.order_by([f"-{attribute}" if descending else attribute, "id"])
    items, total = fetch_page(ordered, request.offset, request.limit)
    return Page.build(items, request, total)


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------
class ListingQueryBuilder:
    """Runs listing requests against the active domain's repositories."""

    def orders(self, request: ListingRequest) -> Page:
        """Orders, optionally by status; search matches order id, customer name or email."""
        key = resolve_sort(OrderSortKey, request.sort, OrderSortKey.CREATED_AT)
        descending = resolve_direction(request.direction, SortDirection.DESC) == SortDirection.DESC
        attribute = _SORT_ATTRIBUTES[key]

        queryset = query_for(Order)
        if request.status:
            queryset = queryset.filter(status=parse_status(request.status).value)
        user_id = request.filters.get("user_id")
        if user_id:
            queryset = queryset.filter(user_id=str(user_id))

        term = request.search_term(MIN_SEARCH_LENGTH)
        if term is None:
            return _store_page(queryset, request, attribute, descending)

        matching_customers = {
            str(customer.id)
            for customer in fetch_all(query_for(Customer))
            if _contains(term, customer.name, customer.email)
        }
        rows = [
            order
            for order in fetch_all(queryset)
            if term in str(order.id).lower() or str(order.user_id) in matching_customers
        ]
        return _sorted_slice(rows, request, attribute, descending)

    def reviews(self, request: ListingRequest) -> Page:
        """Active reviews; search (2+ chars) matches comment, author name/email, or medicine name."""
        key = resolve_sort(ReviewSortKey, request.sort, ReviewSortKey.CREATED_AT)
        descending = resolve_direction(request.direction, SortDirection.DESC) == SortDirection.DESC
        attribute = _SORT_ATTRIBUTES[key]

        queryset = query_for(Review).filter(is_active=True)
        rating = request.filters.get("rating")
        if rating is not None:
            queryset = queryset.filter(rating=validate_rating(_as_int(rating, "rating")))
        product_id = request.filters.get("product_id")
        if product_id:
            queryset = queryset.filter(product_id=str(product_id))

        term = request.search_term(MIN_REVIEW_SEARCH_LENGTH)
        if term is None:
            return _store_page(queryset, request, attribute, descending)

        customers = {str(c.id): c for c in fetch_all(query_for(Customer))}
        medicines = {str(m.id): m for m in fetch_all(query_for(Medicine))}

        def matches(review):
            author = customers.get(str(review.user_id))
            medicine = medicines.get(str(review.product_id))
            return _contains(
                term,
                review.comment,
                author.name if author else None,
                author.email if author else None,
                medicine.name if medicine else None,
            )

        rows = [review for review in fetch_all(queryset) if matches(review)]
        return _sorted_slice(rows, request, attribute, descending)

    def medicines(self, request: ListingRequest) -> Page:
        """Catalogue listing; retired medicines are hidden unless ``include_retired`` is set."""
        key = resolve_sort(MedicineSortKey, request.sort, MedicineSortKey.NAME)
        descending = resolve_direction(request.direction, SortDirection.ASC) == SortDirection.DESC
        attribute = _SORT_ATTRIBUTES[key]

        queryset = query_for(Medicine)
        if not request.filters.get("include_retired"):
            queryset = queryset.filter(is_deleted=False)
        manufacturer = request.filter_term("manufacturer")
        if manufacturer:
            queryset = queryset.filter(manufacturer__icontains=manufacturer)
        category = request.filter_term("category")
        if category:
            queryset = queryset.filter(category__icontains=category)

        term = request.search_term(MIN_SEARCH_LENGTH)
        if term is None:
            return _store_page(queryset, request, attribute, descending)

        rows = [m for m in fetch_all(queryset) if _contains(term, m.name, m.manufacturer)]
        return _sorted_slice(rows, request, attribute, descending)

    def customers(self, request: ListingRequest) -> Page:
        """Customers with order count and total spend; search matches name, email or address."""
        key = resolve_sort(CustomerSortKey, request.sort, CustomerSortKey.NAME)
        descending = resolve_direction(request.direction, SortDirection.ASC) == SortDirection.DESC
        attribute = _SORT_ATTRIBUTES[key]

        totals = defaultdict(list)
        for order in fetch_all(query_for(Order)):
            totals[str(order.user_id)].append(order.total_amount)

        term = request.search_term(MIN_SEARCH_LENGTH)
        rows = []
        for customer in fetch_all(query_for(Customer)):
            if term is not None:
                address = customer.address
                if not _contains(
                    term,
                    customer.name,
                    customer.email,
                    address.line1 if address else None,
                    address.city if address else None,
                    address.zip if address else None,
                ):
                    continue
            amounts = totals.get(str(customer.id), [])
            rows.append(
                CustomerRow(
                    customer=customer,
                    orders_count=len(amounts),
                    total_spend=round_money(total_of(amounts)),
                )
            )

        return _sorted_slice(rows, request, attribute, descending)


def _as_int(value, field_name) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError({field_name: [f"{field_name} must be an integer"]})
