"""FastAPI dependency providers.

Services are assembled per request from their collaborators. The only
long-lived object is the notification dispatcher and its thread pool.
"""

from functools import lru_cache

from fastapi import Depends, Header, HTTPException, Query

from pharmacy.analytics.engine import AnalyticsEngine
from pharmacy.catalogue.snapshot import RepositoryCatalogReader
from pharmacy.identity.provider import Identity, IdentityProvider, RepositoryIdentityProvider
from pharmacy.listing.query import DEFAULT_LIMIT, ListingQueryBuilder, ListingRequest
from pharmacy.notifications.dispatcher import build_dispatcher
from pharmacy.notifications.notification import NotificationDispatcher
from pharmacy.ordering.ledger import OrderLedger
from pharmacy.reviews.rating import RatingAggregator
from pharmacy.reviews.service import ReviewService
from pharmacy.shared.errors import Forbidden, NotFound


@lru_cache(maxsize=1)
def get_dispatcher() -> NotificationDispatcher:
    return build_dispatcher()


def get_identity_provider() -> IdentityProvider:
    return RepositoryIdentityProvider()


def current_identity(
    x_user_id: str | None = Header(default=None),
    identities: IdentityProvider = Depends(get_identity_provider),
) -> Identity:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    try:
        return identities.resolve(x_user_id)
    except NotFound:
        raise HTTPException(status_code=401, detail="Unknown user")


def require_staff(identity: Identity = Depends(current_identity)) -> Identity:
    if not identity.is_staff:
        raise Forbidden({"user": ["Staff role required"]})
    return identity


def get_ledger(
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    identities: IdentityProvider = Depends(get_identity_provider),
) -> OrderLedger:
    return OrderLedger(
        catalog=RepositoryCatalogReader(),
        dispatcher=dispatcher,
        identities=identities,
    )


def get_listings() -> ListingQueryBuilder:
    return ListingQueryBuilder()


def get_review_service(listings: ListingQueryBuilder = Depends(get_listings)) -> ReviewService:
    return ReviewService(aggregator=RatingAggregator(), listings=listings)


def get_analytics() -> AnalyticsEngine:
    return AnalyticsEngine()


def listing_request(
    page: int = Query(1),
    limit: int = Query(DEFAULT_LIMIT),
    search: str | None = Query(None),
    status: str | None = Query(None),
    sort_by: str | None = Query(None, alias="sortBy"),
    sort_dir: str | None = Query(None, alias="sortDir"),
) -> ListingRequest:
    return ListingRequest.create(
        page=page,
        limit=limit,
        search=search,
        status=status,
        sort=sort_by,
        direction=sort_dir,
    )
