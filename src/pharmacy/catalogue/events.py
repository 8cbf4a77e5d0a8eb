"""Domain events for the Medicine aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from pharmacy.domain import pharmacy


@pharmacy.event(part_of="Medicine")
class MedicineRegistered:
    """A medicine was added to the catalogue."""

    __version__ = 1

    medicine_id = Identifier(required=True)
    name = String(required=True)
    manufacturer = String()
    price = Float(required=True)
    registered_at = DateTime(required=True)


@pharmacy.event(part_of="Medicine")
class MedicineRepriced:
    """The live catalogue price changed. Existing orders keep their captured price."""

    __version__ = 1

    medicine_id = Identifier(required=True)
    previous_price = Float(required=True)
    new_price = Float(required=True)
    repriced_at = DateTime(required=True)


@pharmacy.event(part_of="Medicine")
class MedicineRetired:
    """The medicine was soft-deleted and can no longer be ordered."""

    __version__ = 1

    medicine_id = Identifier(required=True)
    retired_at = DateTime(required=True)


@pharmacy.event(part_of="Medicine")
class MedicineRatingRecalculated:
    """The rating aggregate stored on the medicine was recomputed from active reviews."""

    __version__ = 1

    medicine_id = Identifier(required=True)
    average_rating = Float(required=True)
    reviews_count = Integer(required=True)
    recalculated_at = DateTime(required=True)
