"""Back-office routes. Every endpoint requires a staff identity."""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Query

from pharmacy.analytics.engine import DEFAULT_TOP_LIMIT, AnalyticsEngine, TimeWindow
from pharmacy.api.deps import (
    get_analytics,
    get_ledger,
    get_listings,
    get_review_service,
    listing_request,
    require_staff,
)
from pharmacy.api.schemas import (
    AnalyticsSnapshotResponse,
    CustomerResponse,
    DashboardStatsResponse,
    DeactivateReviewRequest,
    MedicineResponse,
    MonthlyEarningsResponse,
    OrderResponse,
    PageResponse,
    RankedTotalResponse,
    ReviewResponse,
    UpdateOrderStatusRequest,
)
from pharmacy.listing.query import ListingQueryBuilder, ListingRequest
from pharmacy.ordering.ledger import OrderLedger
from pharmacy.reviews.service import ReviewService

admin_router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_staff)])


def _year_or_current(year: int | None) -> int:
    return datetime.now(UTC).year if year is None else year


def _month_or_current(month: int | None) -> int:
    return datetime.now(UTC).month if month is None else month


# ---------------------------------------------------------------------------
# Dashboard & analytics
# ---------------------------------------------------------------------------
@admin_router.get("/stats", response_model=DashboardStatsResponse)
async def dashboard_stats(analytics: AnalyticsEngine = Depends(get_analytics)):
    return analytics.dashboard_stats().to_dict()


@admin_router.get("/analytics/earnings", response_model=MonthlyEarningsResponse)
async def monthly_earnings(
    year: int | None = Query(None),
    analytics: AnalyticsEngine = Depends(get_analytics),
):
    return analytics.monthly_earnings(_year_or_current(year)).to_dict()


@admin_router.get("/analytics/top-manufacturers", response_model=list[RankedTotalResponse])
async def top_manufacturers(
    year: int | None = Query(None),
    month: int | None = Query(None),
    limit: int = Query(DEFAULT_TOP_LIMIT),
    analytics: AnalyticsEngine = Depends(get_analytics),
):
    ranked = analytics.top_manufacturers(_year_or_current(year), _month_or_current(month), limit=limit)
    return [r.to_dict() for r in ranked]


@admin_router.get("/analytics/top-medicines", response_model=list[RankedTotalResponse])
async def top_medicines(
    year: int | None = Query(None),
    month: int | None = Query(None),
    limit: int = Query(DEFAULT_TOP_LIMIT),
    analytics: AnalyticsEngine = Depends(get_analytics),
):
    ranked = analytics.top_medicines(_year_or_current(year), _month_or_current(month), limit=limit)
    return [r.to_dict() for r in ranked]


@admin_router.get("/analytics/snapshot", response_model=AnalyticsSnapshotResponse)
async def analytics_snapshot(
    year: int | None = Query(None),
    month: int | None = Query(None),
    analytics: AnalyticsEngine = Depends(get_analytics),
):
    """Snapshot for a calendar month, or the whole year when no month is given."""
    year = _year_or_current(year)
    window = TimeWindow.for_month(year, month) if month is not None else TimeWindow.for_year(year)
    return analytics.snapshot(window).to_dict()


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
@admin_router.get("/orders", response_model=PageResponse[OrderResponse])
async def list_orders(
    request: ListingRequest = Depends(listing_request),
    listings: ListingQueryBuilder = Depends(get_listings),
):
    return PageResponse[OrderResponse].from_page(listings.orders(request), OrderResponse.from_order)


@admin_router.get("/orders/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, ledger: OrderLedger = Depends(get_ledger)) -> OrderResponse:
    return OrderResponse.from_order(ledger.get(order_id))


@admin_router.put("/orders/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    body: UpdateOrderStatusRequest,
    ledger: OrderLedger = Depends(get_ledger),
) -> OrderResponse:
    order = ledger.update_status(order_id, status=body.status, delivery_status=body.delivery_status)
    return OrderResponse.from_order(order)


@admin_router.put("/orders/{order_id}/deliver", response_model=OrderResponse)
async def mark_order_delivered(order_id: str, ledger: OrderLedger = Depends(get_ledger)) -> OrderResponse:
    return OrderResponse.from_order(ledger.mark_delivered(order_id))


# ---------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------
@admin_router.get("/reviews", response_model=PageResponse[ReviewResponse])
async def list_reviews(
    rating: int | None = Query(None),
    request: ListingRequest = Depends(listing_request),
    listings: ListingQueryBuilder = Depends(get_listings),
):
    scoped = ListingRequest.create(
        page=request.page,
        limit=request.limit,
        search=request.search,
        sort=request.sort,
        direction=request.direction,
        rating=rating,
    )
    return PageResponse[ReviewResponse].from_page(listings.reviews(scoped), ReviewResponse.from_review)


@admin_router.put("/reviews/{review_id}/deactivate", response_model=ReviewResponse)
async def deactivate_review(
    review_id: str,
    body: DeactivateReviewRequest | None = None,
    service: ReviewService = Depends(get_review_service),
) -> ReviewResponse:
    review = service.deactivate(review_id, reason=body.reason if body else None)
    return ReviewResponse.from_review(review)


# ---------------------------------------------------------------------------
# Catalogue & customers
# ---------------------------------------------------------------------------
@admin_router.get("/medicines", response_model=PageResponse[MedicineResponse])
async def list_medicines(
    manufacturer: str | None = Query(None),
    category: str | None = Query(None),
    include_retired: bool = Query(False, alias="includeRetired"),
    request: ListingRequest = Depends(listing_request),
    listings: ListingQueryBuilder = Depends(get_listings),
):
    scoped = ListingRequest.create(
        page=request.page,
        limit=request.limit,
        search=request.search,
        sort=request.sort,
        direction=request.direction,
        manufacturer=manufacturer,
        category=category,
        include_retired=include_retired,
    )
    return PageResponse[MedicineResponse].from_page(listings.medicines(scoped), MedicineResponse.from_medicine)


@admin_router.get("/users", response_model=PageResponse[CustomerResponse])
async def list_users(
    request: ListingRequest = Depends(listing_request),
    listings: ListingQueryBuilder = Depends(get_listings),
):
    return PageResponse[CustomerResponse].from_page(listings.customers(request), CustomerResponse.from_row)
