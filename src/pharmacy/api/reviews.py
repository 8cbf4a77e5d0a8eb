"""Storefront review routes and the per-medicine review/rating views."""

from fastapi import APIRouter, Depends

from pharmacy.api.deps import current_identity, get_review_service, listing_request
from pharmacy.api.schemas import (
    EditReviewRequest,
    ProductReviewsResponse,
    RatingResponse,
    ReviewResponse,
    SubmitReviewRequest,
)
from pharmacy.identity.provider import Identity
from pharmacy.listing.query import ListingRequest
from pharmacy.reviews.review import UNSET
from pharmacy.reviews.service import ReviewService

review_router = APIRouter(prefix="/reviews", tags=["reviews"])
medicine_router = APIRouter(prefix="/medicines", tags=["medicines"])


@review_router.post("", status_code=201, response_model=ReviewResponse)
async def submit_review(
    body: SubmitReviewRequest,
    identity: Identity = Depends(current_identity),
    service: ReviewService = Depends(get_review_service),
) -> ReviewResponse:
    review = service.submit(
        identity,
        order_id=body.order_id,
        product_id=body.product_id,
        rating=body.rating,
        comment=body.comment,
    )
    return ReviewResponse.from_review(review)


@review_router.put("/{review_id}", response_model=ReviewResponse)
async def edit_review(
    review_id: str,
    body: EditReviewRequest,
    identity: Identity = Depends(current_identity),
    service: ReviewService = Depends(get_review_service),
) -> ReviewResponse:
    provided = body.model_dump(exclude_unset=True)
    review = service.edit(
        review_id,
        identity,
        rating=provided.get("rating", UNSET),
        comment=provided.get("comment", UNSET),
    )
    return ReviewResponse.from_review(review)


@review_router.get("/{review_id}", response_model=ReviewResponse)
async def get_review(
    review_id: str,
    service: ReviewService = Depends(get_review_service),
) -> ReviewResponse:
    return ReviewResponse.from_review(service.get(review_id))


@medicine_router.get("/{medicine_id}/reviews", response_model=ProductReviewsResponse)
async def list_medicine_reviews(
    medicine_id: str,
    request: ListingRequest = Depends(listing_request),
    service: ReviewService = Depends(get_review_service),
) -> ProductReviewsResponse:
    result = service.product_reviews(medicine_id, request)
    return ProductReviewsResponse(
        **result["page"].to_dict(ReviewResponse.from_review),
        meta=result["meta"],
    )


@medicine_router.get("/{medicine_id}/rating", response_model=RatingResponse)
async def get_medicine_rating(
    medicine_id: str,
    service: ReviewService = Depends(get_review_service),
) -> RatingResponse:
    aggregate = service.aggregator.stored(medicine_id)
    return RatingResponse(**aggregate.to_dict())
