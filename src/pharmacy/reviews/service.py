"""Review service — submit, edit and deactivate reviews, then refresh the rating.

The review write is the primary operation. The rating recompute that
follows it is a side effect: a failure there is logged and the review
stays persisted.
"""

import structlog
from protean.exceptions import ObjectNotFoundError, TransactionError, ValidationError
from protean.utils.globals import current_domain
from sqlalchemy.exc import IntegrityError

from pharmacy.identity.provider import Identity
from pharmacy.listing.query import ListingQueryBuilder, ListingRequest
from pharmacy.ordering.order import Order
from pharmacy.reviews.rating import RatingAggregator
from pharmacy.reviews.review import UNSET, Review, active_review_key, validate_rating
from pharmacy.shared.errors import (
    Conflict,
    Forbidden,
    InvalidReference,
    InvalidState,
    NotFound,
)
from pharmacy.shared.query import query_for

logger = structlog.get_logger(__name__)

_DUPLICATE_REVIEW = {"review": ["You have already reviewed this product for this order"]}


def _is_duplicate_review(exc) -> bool:
    if isinstance(exc, IntegrityError):
        return True
    if isinstance(exc, TransactionError):
        return (exc.extra_info or {}).get("original_exception") == "IntegrityError"
    return "active_key" in (exc.messages or {})


class ReviewService:
    def __init__(self, aggregator: RatingAggregator, listings: ListingQueryBuilder):
        self.aggregator = aggregator
        self.listings = listings

    @property
    def repository(self):
        return current_domain.repository_for(Review)

    def submit(self, identity: Identity, order_id, product_id, rating, comment=None) -> Review:
        """Review a product from one of the caller's delivered or completed orders.

        Raises:
            ValidationError: rating outside 1-5.
            NotFound: the order does not exist or belongs to someone else.
            InvalidState: the order has not been delivered or completed.
            InvalidReference: the product is not one of the order's line items.
            Conflict: an active review already exists for this order and product.
        """
        validate_rating(rating)

        try:
            order = current_domain.repository_for(Order).get(str(order_id))
        except ObjectNotFoundError:
            order = None
        if order is None or not order.is_owned_by(identity.user_id):
            raise NotFound({"order": [f"Order {order_id} not found"]})

        if not order.is_reviewable:
            raise InvalidState({"order": ["Only delivered or completed orders can be reviewed"]})
        if not order.contains_product(product_id):
            raise InvalidReference({"product_id": [f"Product {product_id} is not part of order {order_id}"]})

        if self._active_review_exists(identity.user_id, order_id, product_id):
            raise Conflict(_DUPLICATE_REVIEW)

        review = Review.submit(
            product_id=product_id,
            user_id=identity.user_id,
            order_id=order_id,
            rating=rating,
            comment=comment,
        )
        try:
            self.repository.add(review)
        except (ValidationError, IntegrityError, TransactionError) as exc:
            # A concurrent submit won the race to the unique active_key index
            if not _is_duplicate_review(exc):
                raise
            raise Conflict(_DUPLICATE_REVIEW) from exc

        logger.info(
            "Review submitted",
            review_id=str(review.id),
            product_id=str(product_id),
            order_id=str(order_id),
            rating=rating,
        )
        self._refresh_rating(review.product_id)
        return review

    def edit(self, review_id, identity: Identity, rating=UNSET, comment=UNSET) -> Review:
        review = self._load(review_id)
        if not review.is_authored_by(identity.user_id):
            raise Forbidden({"review": ["Only the author can edit this review"]})

        review.edit(rating=rating, comment=comment)
        self.repository.add(review)

        logger.info("Review edited", review_id=str(review.id), rating=review.rating)
        self._refresh_rating(review.product_id)
        return review

    def deactivate(self, review_id, reason=None) -> Review:
        """Staff moderation: hide the review and drop it from the rating."""
        review = self._load(review_id)
        review.deactivate(reason=reason)
        self.repository.add(review)

        logger.info("Review deactivated", review_id=str(review.id), product_id=str(review.product_id))
        self._refresh_rating(review.product_id)
        return review

    def get(self, review_id) -> Review:
        return self._load(review_id)

    def product_reviews(self, product_id, request: ListingRequest) -> dict:
        """Active reviews for a product, newest first, plus rating summary."""
        scoped = ListingRequest.create(
            page=request.page,
            limit=request.limit,
            sort=request.sort,
            direction=request.direction,
            product_id=str(product_id),
        )
        page = self.listings.reviews(scoped)
        aggregate = self.aggregator.compute(product_id)
        return {
            "page": page,
            "meta": {
                "average": aggregate.average,
                "count": aggregate.count,
                "distribution": self.aggregator.distribution(product_id),
            },
        }

    def _active_review_exists(self, user_id, order_id, product_id) -> bool:
        existing = query_for(Review).filter(active_key=active_review_key(user_id, order_id, product_id)).all()
        return bool(existing.items)

    def _load(self, review_id) -> Review:
        try:
            return self.repository.get(str(review_id))
        except ObjectNotFoundError:
            raise NotFound({"review": [f"Review {review_id} not found"]})

    def _refresh_rating(self, product_id) -> None:
        try:
            self.aggregator.recompute(product_id)
        except Exception as exc:
            logger.error("Rating recompute failed", product_id=str(product_id), error=str(exc))
