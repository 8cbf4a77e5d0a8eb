"""Order placed template — sent once an order is recorded as paid."""

from pharmacy.notifications.notification import NotificationChannel, NotificationKind
from pharmacy.notifications.templates.summary import format_items


class OrderPlacedTemplate:
    kind = NotificationKind.ORDER_PLACED.value
    channels = [NotificationChannel.EMAIL.value]

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        name = context.get("recipient_name") or "there"
        return {
            "subject": f"Order #{order_id} received",
            "body": (
                f"Hi {name},\n\n"
                f"We have received your order #{order_id}.\n\n"
                f"{format_items(context.get('items', []))}\n\n"
                f"Order total: {context.get('currency', 'USD')} {context.get('amount', '0.00')}\n\n"
                "We'll let you know as soon as it is delivered."
            ),
        }
