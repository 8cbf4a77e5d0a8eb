"""Domain events for the Customer aggregate."""

from protean.fields import DateTime, Identifier, String

from pharmacy.domain import pharmacy


@pharmacy.event(part_of="Customer")
class CustomerRegistered:
    __version__ = 1

    customer_id = Identifier(required=True)
    name = String(required=True)
    email = String(required=True)
    registered_at = DateTime(required=True)


@pharmacy.event(part_of="Customer")
class AddressUpdated:
    """The customer's delivery address on file changed."""

    __version__ = 1

    customer_id = Identifier(required=True)
    city = String()
    updated_at = DateTime(required=True)


@pharmacy.event(part_of="Customer")
class PaymentMethodUpdated:
    """A new masked card was put on file."""

    __version__ = 1

    customer_id = Identifier(required=True)
    masked_card_number = String(required=True)
    updated_at = DateTime(required=True)


@pharmacy.event(part_of="Customer")
class DeviceTokenRegistered:
    __version__ = 1

    customer_id = Identifier(required=True)
    token = String(required=True)
