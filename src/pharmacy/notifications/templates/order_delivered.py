"""Order delivered template — mailed and pushed to the owner's devices."""

from pharmacy.notifications.notification import NotificationChannel, NotificationKind


class OrderDeliveredTemplate:
    kind = NotificationKind.ORDER_DELIVERED.value
    channels = [NotificationChannel.EMAIL.value, NotificationChannel.PUSH.value]

    @staticmethod
    def render(context: dict) -> dict:
        order_id = context.get("order_id", "N/A")
        return {
            "subject": "Your order has been delivered",
            "body": (
                f"Your order #{order_id} has been delivered.\n\n"
                "You can now rate the medicines you received from your order history."
            ),
            "push_title": "Order delivered",
            "push_body": f"Order #{order_id} has arrived.",
        }
