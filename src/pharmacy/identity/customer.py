"""Customer aggregate — the identity record order placement reads from.

Registration, credentials and profile editing belong to the authentication
service. Only the parts the order lifecycle depends on are modelled here:
the address and masked payment method on file, the role used to recognise
staff, and the device tokens that receive push notifications.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, String, Text, ValueObject

from pharmacy.domain import pharmacy
from pharmacy.identity.events import (
    AddressUpdated,
    CustomerRegistered,
    DeviceTokenRegistered,
    PaymentMethodUpdated,
)


class CustomerRole(Enum):
    USER = "user"
    ADMIN = "admin"


def mask_card_number(card_number: str) -> str:
    """Keep only the last four digits: ``"4242424242424242"`` -> ``"**** **** **** 4242"``."""
    digits = "".join(ch for ch in str(card_number or "") if ch.isdigit())
    if len(digits) < 4:
        raise ValidationError({"card_number": ["Card number must contain at least 4 digits"]})
    return f"**** **** **** {digits[-4:]}"


@pharmacy.value_object(part_of="Customer")
class DeliveryAddress:
    """The customer's current delivery address."""

    full_name = String(max_length=255)
    phone = String(max_length=30)
    line1 = String(max_length=255)
    line2 = String(max_length=255)
    city = String(max_length=100)
    zip = String(max_length=20)


@pharmacy.value_object(part_of="Customer")
class PaymentMethod:
    """A card on file. Only the masked number is ever stored."""

    card_holder_name = String(max_length=255)
    masked_card_number = String(max_length=30)
    brand = String(max_length=30)
    expiry = String(max_length=7)


@pharmacy.aggregate
class Customer:
    name = String(required=True, max_length=255)
    email = String(required=True, max_length=255)
    role = String(choices=CustomerRole, default=CustomerRole.USER.value)
    address = ValueObject(DeliveryAddress)
    payment_method = ValueObject(PaymentMethod)
    device_tokens = Text()  # JSON array of push tokens
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def register(cls, name, email, role=CustomerRole.USER.value):
        now = datetime.now(UTC)
        customer = cls(
            name=name,
            email=email.strip().lower(),
            role=role,
            device_tokens=json.dumps([]),
            created_at=now,
            updated_at=now,
        )
        customer.raise_(
            CustomerRegistered(
                customer_id=str(customer.id),
                name=name,
                email=customer.email,
                registered_at=now,
            )
        )
        return customer

    @property
    def is_staff(self) -> bool:
        return self.role == CustomerRole.ADMIN.value

    @property
    def has_complete_address(self) -> bool:
        return bool(self.address and self.address.line1)

    @property
    def has_payment_method(self) -> bool:
        return bool(self.payment_method and self.payment_method.masked_card_number)

    @property
    def active_device_tokens(self) -> list[str]:
        return json.loads(self.device_tokens) if self.device_tokens else []

    def update_address(self, full_name, line1, city, zip, phone=None, line2=None):
        now = datetime.now(UTC)
        self.address = DeliveryAddress(
            full_name=full_name,
            phone=phone,
            line1=line1,
            line2=line2,
            city=city,
            zip=zip,
        )
        self.updated_at = now

        self.raise_(AddressUpdated(customer_id=str(self.id), city=city, updated_at=now))

    def update_payment_method(self, card_holder_name, card_number, brand=None, expiry=None):
        """Record a card on file, masking the number before it touches the aggregate."""
        now = datetime.now(UTC)
        self.payment_method = PaymentMethod(
            card_holder_name=card_holder_name,
            masked_card_number=mask_card_number(card_number),
            brand=brand,
            expiry=expiry,
        )
        self.updated_at = now

        self.raise_(
            PaymentMethodUpdated(
                customer_id=str(self.id),
                masked_card_number=self.payment_method.masked_card_number,
                updated_at=now,
            )
        )

    def register_device_token(self, token):
        tokens = self.active_device_tokens
        if token in tokens:
            return

        tokens.append(token)
        self.device_tokens = json.dumps(tokens)
        self.updated_at = datetime.now(UTC)

        self.raise_(DeviceTokenRegistered(customer_id=str(self.id), token=token))
