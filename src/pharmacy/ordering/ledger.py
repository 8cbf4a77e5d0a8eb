"""Order ledger — placement, cancellation and staff transitions.

`OrderLedger` is the only writer of Order aggregates. Each operation loads
the order, lets the aggregate enforce its transition guard, persists it,
and only then emits a notification. Notification failures are logged and
never undo the write.

Status changes are read-then-write without a version check: an owner
cancel racing a staff delivery on the same order resolves as last writer
wins.
"""

from collections import Counter

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from pharmacy.catalogue.snapshot import CatalogSnapshotReader
from pharmacy.identity.provider import Identity, IdentityProvider
from pharmacy.notifications.notification import (
    NotificationDispatcher,
    NotificationKind,
    OrderNotification,
    default_currency,
)
from pharmacy.ordering.order import Order
from pharmacy.shared.errors import (
    Forbidden,
    InvalidPrice,
    InvalidReference,
    NotFound,
    PreconditionFailed,
)
from pharmacy.shared.query import fetch_all, query_for

logger = structlog.get_logger(__name__)


class OrderLedger:
    def __init__(
        self,
        catalog: CatalogSnapshotReader,
        dispatcher: NotificationDispatcher,
        identities: IdentityProvider,
    ):
        self.catalog = catalog
        self.dispatcher = dispatcher
        self.identities = identities

    @property
    def repository(self):
        return current_domain.repository_for(Order)

    # -------------------------------------------------------------------
    # Owner operations
    # -------------------------------------------------------------------
    def place(self, identity: Identity, line_items) -> Order:
        """Place an order for `identity`.

        Args:
            identity: The authenticated customer, with address and payment on file.
            line_items: Iterable of dicts with ``product_id`` and ``quantity``.

        Raises:
            ValidationError: malformed line items.
            PreconditionFailed: no delivery address or payment method on file.
            InvalidReference: unknown or retired product.
            InvalidPrice: a resolved price is zero or negative.
        """
        lines = _normalize_lines(line_items)

        if not identity.has_complete_address:
            raise PreconditionFailed({"address": ["A delivery address is required before placing an order"]})
        if not identity.has_payment_method:
            raise PreconditionFailed({"payment_method": ["A payment method is required before placing an order"]})

        product_ids = [line["product_id"] for line in lines]
        prices = self.catalog.get_prices(product_ids)

        unavailable = [pid for pid in product_ids if pid not in prices or self.catalog.is_retired(pid)]
        if unavailable:
            raise InvalidReference({"items": [f"Product {pid} is not available" for pid in unavailable]})

        unpriced = [pid for pid in product_ids if prices[pid] is None or prices[pid] <= 0]
        if unpriced:
            raise InvalidPrice({"items": [f"Product {pid} has no valid price" for pid in unpriced]})

        names = self.catalog.get_names(product_ids)
        for line in lines:
            line["unit_price"] = prices[line["product_id"]]
            line["name"] = names.get(line["product_id"])

        order = Order.place(
            user_id=identity.user_id,
            lines=lines,
            address=identity.address,
            payment=identity.payment_method,
            currency=default_currency(),
        )
        self.repository.add(order)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            user_id=identity.user_id,
            item_count=len(lines),
            total_amount=order.total_amount,
        )
        self._notify(NotificationKind.ORDER_PLACED, order, identity)
        return order

    def cancel(self, order_id, identity: Identity) -> Order:
        order = self._load(order_id)
        if not order.is_owned_by(identity.user_id):
            raise Forbidden({"order": ["Only the customer who placed the order can cancel it"]})

        order.cancel()
        self.repository.add(order)

        logger.info("Order cancelled", order_id=str(order.id), user_id=identity.user_id)
        self._notify(NotificationKind.ORDER_CANCELLED, order, identity)
        return order

    def get_for_customer(self, order_id, identity: Identity) -> Order:
        """Owner detail view. Another customer's order is reported as missing."""
        order = self._load(order_id)
        if not order.is_owned_by(identity.user_id):
            raise NotFound({"order": [f"Order {order_id} not found"]})
        return order

    def history(self, identity: Identity) -> list[Order]:
        """All of the customer's orders, newest first."""
        queryset = query_for(Order).filter(user_id=identity.user_id).order_by("-created_at")
        return fetch_all(queryset)

    # -------------------------------------------------------------------
    # Staff operations
    # -------------------------------------------------------------------
    def get(self, order_id) -> Order:
        return self._load(order_id)

    def update_status(self, order_id, status=None, delivery_status=None) -> Order:
        order = self._load(order_id)
        order.update_status(status=status, delivery_status=delivery_status)
        self.repository.add(order)

        logger.info(
            "Order status updated",
            order_id=str(order.id),
            status=order.status,
            delivery_status=order.delivery_status,
        )
        return order

    def mark_delivered(self, order_id) -> Order:
        order = self._load(order_id)
        order.mark_delivered()
        self.repository.add(order)

        logger.info("Order delivered", order_id=str(order.id), user_id=str(order.user_id))

        owner = self.identities.find(str(order.user_id))
        if owner is None:
            logger.warning(
                "Order owner not found, delivery notification skipped",
                order_id=str(order.id),
                user_id=str(order.user_id),
            )
        else:
            self._notify(NotificationKind.ORDER_DELIVERED, order, owner)
        return order

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _load(self, order_id) -> Order:
        try:
            return self.repository.get(str(order_id))
        except ObjectNotFoundError:
            raise NotFound({"order": [f"Order {order_id} not found"]})

    def _notify(self, kind: NotificationKind, order: Order, identity: Identity) -> None:
        try:
            self.dispatcher.dispatch(OrderNotification.for_order(kind, order, identity))
        except Exception as exc:
            logger.warning(
                "Order notification dispatch failed",
                order_id=str(order.id),
                kind=kind.value,
                error=str(exc),
            )


def _normalize_lines(line_items) -> list[dict]:
    """Validate the shape of requested line items before any lookup."""
    if not line_items:
        raise ValidationError({"items": ["An order must contain at least one item"]})

    lines = []
    for index, raw in enumerate(line_items):
        product_id = raw.get("product_id") if isinstance(raw, dict) else getattr(raw, "product_id", None)
        quantity = raw.get("quantity") if isinstance(raw, dict) else getattr(raw, "quantity", None)

        if not product_id or not str(product_id).strip():
            raise ValidationError({"items": [f"Item {index} is missing a product id"]})
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise ValidationError({"items": [f"Item {index} must have a quantity of at least 1"]})

        lines.append({"product_id": str(product_id).strip(), "quantity": quantity})

    duplicates = [pid for pid, count in Counter(line["product_id"] for line in lines).items() if count > 1]
    if duplicates:
        raise ValidationError({"items": [f"Product {pid} appears more than once" for pid in duplicates]})

    return lines
