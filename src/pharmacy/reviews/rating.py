"""Rating aggregator — derived average/count per product.

The aggregate is always recomputed from the full set of active reviews and
written onto the medicine record. It is never patched incrementally. When
two recomputes race, the loser reloads the medicine and recomputes, so the
stored value reflects every review committed before the last write.
"""

from collections import Counter
from dataclasses import dataclass

import structlog
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError
from protean.utils.globals import current_domain

from pharmacy.catalogue.medicine import Medicine
from pharmacy.reviews.review import MAX_RATING, MIN_RATING, Review
from pharmacy.shared.errors import NotFound
from pharmacy.shared.money import mean_of
from pharmacy.shared.query import fetch_all, query_for

logger = structlog.get_logger(__name__)

# Saves attempted before a version conflict is left to the caller
MAX_RECOMPUTE_ATTEMPTS = 5


@dataclass(frozen=True)
class RatingAggregate:
    product_id: str
    average: float
    count: int

    def to_dict(self) -> dict:
        return {"product_id": self.product_id, "average": self.average, "count": self.count}


class RatingAggregator:
    def __init__(self, max_attempts: int = MAX_RECOMPUTE_ATTEMPTS):
        self.max_attempts = max_attempts

    def active_ratings(self, product_id) -> list[int]:
        queryset = query_for(Review).filter(product_id=str(product_id), is_active=True)
        return [review.rating for review in fetch_all(queryset)]

    def compute(self, product_id) -> RatingAggregate:
        """Average (2 decimals) and count over active reviews; 0 and 0 when there are none."""
        ratings = self.active_ratings(product_id)
        return RatingAggregate(product_id=str(product_id), average=mean_of(ratings), count=len(ratings))

    def distribution(self, product_id) -> dict[int, int]:
        counts = Counter(self.active_ratings(product_id))
        return {star: counts.get(star, 0) for star in range(MIN_RATING, MAX_RATING + 1)}

    def recompute(self, product_id) -> RatingAggregate:
        """Recompute and store the aggregate on the medicine record.

        A concurrent write to the same medicine makes the save fail its
        expected-version check. The medicine is then reloaded and the aggregate
        recomputed from the reviews as they stand, so the last writer stores a
        value that includes every review committed before it.
        """
        for attempt in range(1, self.max_attempts + 1):
            aggregate = self.compute(product_id)
            medicine = self._load_medicine(product_id)
            medicine.apply_rating(aggregate.average, aggregate.count)
            try:
                current_domain.repository_for(Medicine).add(medicine)
            except ExpectedVersionError:
                if attempt == self.max_attempts:
                    raise
                logger.info(
                    "Rating recompute raced another write, retrying",
                    product_id=str(product_id),
                    attempt=attempt,
                )
                continue

            logger.debug(
                "Rating recomputed",
                product_id=str(product_id),
                average=aggregate.average,
                count=aggregate.count,
            )
            return aggregate

    def stored(self, product_id) -> RatingAggregate:
        """The aggregate as last written to the medicine record."""
        medicine = self._load_medicine(product_id)
        return RatingAggregate(
            product_id=str(product_id),
            average=medicine.rating or 0.0,
            count=medicine.reviews_count or 0,
        )

    def _load_medicine(self, product_id) -> Medicine:
        try:
            return current_domain.repository_for(Medicine).get(str(product_id))
        except ObjectNotFoundError:
            raise NotFound({"medicine": [f"Medicine {product_id} not found"]})
