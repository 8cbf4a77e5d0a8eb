"""Order cancelled template."""

from pharmacy.notifications.notification import NotificationChannel, NotificationKind


class OrderCancelledTemplate:
    kind = NotificationKind.ORDER_CANCELLED.value
    channels = [NotificationChannel.EMAIL.value]

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        return {
            "subject": f"Order #{order_id} cancelled",
            "body": (
                f"Your order #{order_id} has been cancelled.\n\n"
                f"Amount: {context.get('currency', 'USD')} {context.get('amount', '0.00')}\n\n"
                "If you did not request this, please contact our support team."
            ),
        }
