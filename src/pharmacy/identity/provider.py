"""Identity provider — resolves the authenticated caller into an `Identity`.

Credentials are verified upstream; the core trusts whatever identity it is
handed. `Identity` is a frozen snapshot so services never mutate the
customer record they were given.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from pharmacy.identity.customer import Customer, CustomerRole
from pharmacy.shared.errors import NotFound


@dataclass(frozen=True)
class Identity:
    user_id: str
    name: str = ""
    email: str = ""
    role: str = CustomerRole.USER.value
    address: dict | None = None
    payment_method: dict | None = None
    device_tokens: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_staff(self) -> bool:
        return self.role == CustomerRole.ADMIN.value

    @property
    def has_complete_address(self) -> bool:
        return bool(self.address and self.address.get("line1"))

    @property
    def has_payment_method(self) -> bool:
        return bool(self.payment_method and self.payment_method.get("masked_card_number"))

    @classmethod
    def from_customer(cls, customer: Customer) -> "Identity":
        return cls(
            user_id=str(customer.id),
            name=customer.name or "",
            email=customer.email or "",
            role=customer.role or CustomerRole.USER.value,
            address=customer.address.to_dict() if customer.address else None,
            payment_method=customer.payment_method.to_dict() if customer.payment_method else None,
            device_tokens=tuple(customer.active_device_tokens),
        )


class IdentityProvider(ABC):
    """Port for looking up the identity behind a user id."""

    @abstractmethod
    def resolve(self, user_id: str) -> Identity:
        """Return the identity for `user_id`, raising `NotFound` when unknown."""
        ...

    def find(self, user_id: str) -> Identity | None:
        try:
            return self.resolve(user_id)
        except NotFound:
            return None


class RepositoryIdentityProvider(IdentityProvider):
    """Builds identities from Customer aggregates in the active domain."""

    def resolve(self, user_id):
        try:
            customer = current_domain.repository_for(Customer).get(str(user_id))
        except ObjectNotFoundError:
            raise NotFound({"user": [f"User {user_id} not found"]})
        return Identity.from_customer(customer)
