"""Storefront order routes — place, list, view and cancel the caller's orders."""

from fastapi import APIRouter, Depends

from pharmacy.api.deps import current_identity, get_ledger, get_listings, listing_request
from pharmacy.api.schemas import OrderResponse, PageResponse, PlaceOrderRequest
from pharmacy.identity.provider import Identity
from pharmacy.listing.query import ListingQueryBuilder, ListingRequest
from pharmacy.ordering.ledger import OrderLedger

order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderResponse)
async def place_order(
    body: PlaceOrderRequest,
    identity: Identity = Depends(current_identity),
    ledger: OrderLedger = Depends(get_ledger),
) -> OrderResponse:
    order = ledger.place(identity, [item.model_dump() for item in body.items])
    return OrderResponse.from_order(order)


@order_router.get("", response_model=PageResponse[OrderResponse])
async def list_my_orders(
    identity: Identity = Depends(current_identity),
    request: ListingRequest = Depends(listing_request),
    listings: ListingQueryBuilder = Depends(get_listings),
):
    scoped = ListingRequest.create(
        page=request.page,
        limit=request.limit,
        status=request.status,
        sort=request.sort,
        direction=request.direction,
        user_id=identity.user_id,
    )
    return PageResponse[OrderResponse].from_page(listings.orders(scoped), OrderResponse.from_order)


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_my_order(
    order_id: str,
    identity: Identity = Depends(current_identity),
    ledger: OrderLedger = Depends(get_ledger),
) -> OrderResponse:
    return OrderResponse.from_order(ledger.get_for_customer(order_id, identity))


@order_router.put("/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: str,
    identity: Identity = Depends(current_identity),
    ledger: OrderLedger = Depends(get_ledger),
) -> OrderResponse:
    return OrderResponse.from_order(ledger.cancel(order_id, identity))
