"""Review aggregate (CQRS) — one rating and comment per (author, order, product).

Reviews are never hard-deleted. Deactivating one removes it from the
product's rating aggregate and from the storefront, and frees the
(author, order, product) slot for a new review. The slot is held by
``active_key``, which carries a unique index in the store.
"""

from datetime import UTC, datetime

from protean import Index, atomic_change
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, String, Text

from pharmacy.domain import pharmacy
from pharmacy.reviews.events import ReviewDeactivated, ReviewEdited, ReviewSubmitted
from pharmacy.shared.errors import InvalidState

# Sentinel for distinguishing "not provided" from None in partial updates
UNSET = object()

MIN_RATING = 1
MAX_RATING = 5


def active_review_key(user_id, order_id, product_id) -> str:
    """Natural key held by the one active review of a product in an order."""
    return f"{user_id}:{order_id}:{product_id}"


def validate_rating(rating) -> int:
    if isinstance(rating, bool) or not isinstance(rating, int) or not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError({"rating": [f"Rating must be a whole number between {MIN_RATING} and {MAX_RATING}"]})
    return rating


@pharmacy.aggregate(indexes=[Index("active_key", unique=True, name="ux_review_active_key")])
class Review:
    product_id = Identifier(required=True)
    user_id = Identifier(required=True)
    order_id = Identifier(required=True)
    rating = Integer(required=True, min_value=MIN_RATING, max_value=MAX_RATING)
    comment = Text()
    is_active = Boolean(default=True)
    deactivation_reason = String(max_length=500)
    # Set only while the review is active
    active_key = String(max_length=255)

    created_at = DateTime()
    updated_at = DateTime()
    deactivated_at = DateTime()

    @classmethod
    def submit(cls, product_id, user_id, order_id, rating, comment=None):
        now = datetime.now(UTC)
        review = cls(
            product_id=str(product_id),
            user_id=str(user_id),
            order_id=str(order_id),
            rating=validate_rating(rating),
            comment=(comment or "").strip() or None,
            is_active=True,
            active_key=active_review_key(user_id, order_id, product_id),
            created_at=now,
            updated_at=now,
        )
        review.raise_(
            ReviewSubmitted(
                review_id=str(review.id),
                product_id=str(product_id),
                user_id=str(user_id),
                order_id=str(order_id),
                rating=rating,
                comment=review.comment,
                submitted_at=now,
            )
        )
        return review

    def is_authored_by(self, user_id) -> bool:
        return str(self.user_id) == str(user_id)

    def edit(self, rating=UNSET, comment=UNSET):
        """Change rating and/or comment. Omitted arguments keep their current value."""
        if not self.is_active:
            raise InvalidState({"review": ["An inactive review cannot be edited"]})
        if rating is UNSET and comment is UNSET:
            raise ValidationError({"review": ["Provide a rating or a comment to edit"]})

        now = datetime.now(UTC)
        previous_rating = self.rating

        with atomic_change(self):
            if rating is not UNSET:
                self.rating = validate_rating(rating)
            if comment is not UNSET:
                self.comment = (comment or "").strip() or None
            self.updated_at = now

        self.raise_(
            ReviewEdited(
                review_id=str(self.id),
                product_id=str(self.product_id),
                previous_rating=previous_rating,
                rating=self.rating,
                comment=self.comment,
                edited_at=now,
            )
        )

    def deactivate(self, reason=None):
        if not self.is_active:
            raise InvalidState({"review": ["Review is already inactive"]})

        now = datetime.now(UTC)
        with atomic_change(self):
            self.is_active = False
            self.active_key = None
            self.deactivation_reason = reason
            self.deactivated_at = now
            self.updated_at = now

        self.raise_(
            ReviewDeactivated(
                review_id=str(self.id),
                product_id=str(self.product_id),
                reason=reason,
                deactivated_at=now,
            )
        )
