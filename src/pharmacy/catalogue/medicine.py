"""Medicine aggregate — the catalogue record the order core reads from.

Catalogue field maintenance is handled elsewhere; this aggregate only models
what the order lifecycle depends on: the live price, the soft-delete flag,
the naming used by analytics, and the rating aggregate that the review
subsystem recomputes and stores on the product record.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String

from pharmacy.catalogue.events import (
    MedicineRatingRecalculated,
    MedicineRegistered,
    MedicineRepriced,
    MedicineRetired,
)
from pharmacy.domain import pharmacy


@pharmacy.aggregate
class Medicine:
    name = String(required=True, max_length=255)
    manufacturer = String(max_length=255)
    category = String(max_length=100)
    price = Float(required=True, min_value=0.0, default=0.0)

    # Rating aggregate, owned by the review subsystem
    rating = Float(default=0.0)
    reviews_count = Integer(default=0)

    is_deleted = Boolean(default=False)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def register(cls, name, price, manufacturer=None, category=None):
        now = datetime.now(UTC)
        medicine = cls(
            name=name,
            manufacturer=manufacturer,
            category=category,
            price=price,
            rating=0.0,
            reviews_count=0,
            is_deleted=False,
            created_at=now,
            updated_at=now,
        )
        medicine.raise_(
            MedicineRegistered(
                medicine_id=str(medicine.id),
                name=name,
                manufacturer=manufacturer,
                price=price,
                registered_at=now,
            )
        )
        return medicine

    def reprice(self, new_price):
        if new_price is None or new_price < 0:
            raise ValidationError({"price": ["Price cannot be negative"]})

        now = datetime.now(UTC)
        previous = self.price
        self.price = new_price
        self.updated_at = now

        self.raise_(
            MedicineRepriced(
                medicine_id=str(self.id),
                previous_price=previous,
                new_price=new_price,
                repriced_at=now,
            )
        )

    def retire(self):
        """Soft-delete the medicine. Retiring twice is a no-op."""
        if self.is_deleted:
            return

        now = datetime.now(UTC)
        self.is_deleted = True
        self.updated_at = now

        self.raise_(MedicineRetired(medicine_id=str(self.id), retired_at=now))

    def apply_rating(self, average_rating, reviews_count):
        """Overwrite the stored rating aggregate with a freshly computed one."""
        now = datetime.now(UTC)
        self.rating = average_rating
        self.reviews_count = reviews_count
        self.updated_at = now

        self.raise_(
            MedicineRatingRecalculated(
                medicine_id=str(self.id),
                average_rating=average_rating,
                reviews_count=reviews_count,
                recalculated_at=now,
            )
        )
