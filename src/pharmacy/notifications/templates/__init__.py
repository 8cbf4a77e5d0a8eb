"""Template registry — maps NotificationKind to template classes.

Each template lists the channels it is sent on and renders subject/body
text from an `OrderNotification` context.
"""

from pharmacy.notifications.notification import NotificationKind
from pharmacy.notifications.templates.order_cancelled import OrderCancelledTemplate
from pharmacy.notifications.templates.order_delivered import OrderDeliveredTemplate
from pharmacy.notifications.templates.order_placed import OrderPlacedTemplate

TEMPLATE_REGISTRY: dict[str, type] = {
    NotificationKind.ORDER_PLACED.value: OrderPlacedTemplate,
    NotificationKind.ORDER_DELIVERED.value: OrderDeliveredTemplate,
    NotificationKind.ORDER_CANCELLED.value: OrderCancelledTemplate,
}


def get_template(kind: str):
    template_cls = TEMPLATE_REGISTRY.get(kind)
    if template_cls is None:
        raise ValueError(f"No template registered for notification kind: {kind}")
    return template_cls
