"""Domain events for the Review aggregate."""

from protean.fields import DateTime, Identifier, Integer, String, Text

from pharmacy.domain import pharmacy


@pharmacy.event(part_of="Review")
class ReviewSubmitted:
    """A customer rated a product from one of their delivered orders."""

    __version__ = 1

    review_id = Identifier(required=True)
    product_id = Identifier(required=True)
    user_id = Identifier(required=True)
    order_id = Identifier(required=True)
    rating = Integer(required=True)
    comment = Text()
    submitted_at = DateTime(required=True)


@pharmacy.event(part_of="Review")
class ReviewEdited:
    """The author changed the rating and/or comment."""

    __version__ = 1

    review_id = Identifier(required=True)
    product_id = Identifier(required=True)
    previous_rating = Integer()
    rating = Integer(required=True)
    comment = Text()
    edited_at = DateTime(required=True)


@pharmacy.event(part_of="Review")
class ReviewDeactivated:
    __version__ = 1

    review_id = Identifier(required=True)
    product_id = Identifier(required=True)
    reason = String(max_length=500)
    deactivated_at = DateTime(required=True)
