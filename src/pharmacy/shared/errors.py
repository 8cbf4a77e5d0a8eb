"""Failure taxonomy for the order lifecycle and review subsystem.

Every failure is a distinct exception type so the API layer can render a
precise response. They extend Protean's exceptions and therefore carry a
``messages`` dict shaped like ``{"field": ["message", ...]}``.

Input-shape problems (missing fields, bad enum values, out-of-range numbers)
keep using plain ``protean.exceptions.ValidationError``.
"""

from protean.exceptions import ObjectNotFoundError, ValidationError


class PreconditionFailed(ValidationError):
    """The acting user is missing data required before the operation (address, payment method)."""

    code = "precondition_failed"


class InvalidReference(ValidationError):
    """A referenced product is unknown, retired, or not part of the order."""

    code = "invalid_reference"


class InvalidPrice(ValidationError):
    """A resolved catalogue price is zero or negative."""

    code = "invalid_price"


class Forbidden(ValidationError):
    """The actor does not own the resource, or lacks the staff role."""

    code = "forbidden"


class InvalidState(ValidationError):
    """The operation is not legal in the resource's current lifecycle state."""

    code = "invalid_state"


class InvalidTransition(InvalidState):
    """The requested order status transition is not allowed."""

    code = "invalid_transition"


class AlreadyDelivered(InvalidTransition):
    code = "already_delivered"


class Conflict(ValidationError):
    """An active record already exists for the same natural key."""

    code = "conflict"


class NotFound(ObjectNotFoundError):
    """The resource does not exist or is hidden from the actor."""

    code = "not_found"

    def __init__(self, messages, **kwargs):
        self.messages = messages
        super().__init__(messages, **kwargs)
