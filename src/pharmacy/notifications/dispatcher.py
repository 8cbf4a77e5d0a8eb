"""Notification dispatchers.

`ChannelDispatcher` renders a notification with its template and sends it on
every channel the template lists. `BackgroundDispatcher` wraps another
dispatcher and runs it on a thread pool so the lifecycle operation that
triggered the notification never waits on a mail or push provider.
"""

import os
from concurrent.futures import Executor, Future, ThreadPoolExecutor

import structlog

from pharmacy.notifications.channel import get_channel
from pharmacy.notifications.notification import (
    NotificationChannel,
    NotificationDispatcher,
    OrderNotification,
)
from pharmacy.notifications.templates import get_template

logger = structlog.get_logger(__name__)

DEFAULT_WORKERS = 4


class ChannelDispatcher(NotificationDispatcher):
    """Sends a notification synchronously through the email and push ports."""

    def __init__(self, email_port, push_port):
        self.email_port = email_port
        self.push_port = push_port

    def dispatch(self, notification: OrderNotification) -> None:
        self.deliver(notification)

    def deliver(self, notification: OrderNotification) -> list[dict]:
        """Send on each channel and return one result dict per attempted message.

        A failing channel is logged and skipped; the remaining channels still
        receive the message.
        """
        template = get_template(notification.kind.value)
        content = template.render(notification.context())
        results = []

        for channel in template.channels:
            if channel == NotificationChannel.EMAIL.value:
                if not notification.email:
                    logger.info(
                        "No email on file, skipping email notification",
                        order_id=notification.order_id,
                        kind=notification.kind.value,
                    )
                    continue
                results.append(
                    self._send(
                        notification,
                        channel,
                        lambda: self.email_port.send(
                            to=notification.email,
                            subject=content["subject"],
                            body=content["body"],
                        ),
                    )
                )
            elif channel == NotificationChannel.PUSH.value:
                for token in notification.device_tokens:
                    results.append(
                        self._send(
                            notification,
                            channel,
                            lambda token=token: self.push_port.send(
                                device_token=token,
                                title=content.get("push_title", content["subject"]),
                                body=content.get("push_body", content["body"]),
                                data={"order_id": notification.order_id},
                            ),
                        )
                    )

        return results

    def _send(self, notification, channel, send) -> dict:
        try:
            result = send()
        except Exception as exc:
            logger.warning(
                "Notification send raised",
                order_id=notification.order_id,
                kind=notification.kind.value,
                channel=channel,
                error=str(exc),
            )
            return {"channel": channel, "status": "failed", "error": str(exc)}

        if result.get("status") != "sent":
            logger.warning(
                "Notification send failed",
                order_id=notification.order_id,
                kind=notification.kind.value,
                channel=channel,
                error=result.get("error"),
            )
        else:
            logger.debug(
                "Notification sent",
                order_id=notification.order_id,
                kind=notification.kind.value,
                channel=channel,
                message_id=result.get("message_id"),
            )
        return {"channel": channel, **result}


class BackgroundDispatcher(NotificationDispatcher):
    """Hands notifications to an executor and returns immediately."""

    def __init__(self, inner: NotificationDispatcher, executor: Executor | None = None, max_workers=None):
        self.inner = inner
        self.executor = executor or ThreadPoolExecutor(
            max_workers=max_workers or DEFAULT_WORKERS,
            thread_name_prefix="notifications",
        )

    def dispatch(self, notification: OrderNotification) -> Future:
        future = self.executor.submit(self.inner.dispatch, notification)
        future.add_done_callback(lambda f: self._log_failure(f, notification))
        return future

    @staticmethod
    def _log_failure(future: Future, notification: OrderNotification) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.warning(
                "Background notification dispatch failed",
                order_id=notification.order_id,
                kind=notification.kind.value,
                error=str(exc),
            )

    def shutdown(self, wait: bool = True) -> None:
        self.executor.shutdown(wait=wait)


def build_dispatcher() -> BackgroundDispatcher:
    """Dispatcher wired to the registered channel adapters.

    Pool size comes from ``NOTIFICATION_WORKERS``.
    """
    workers = int(os.getenv("NOTIFICATION_WORKERS", str(DEFAULT_WORKERS)))
    channels = ChannelDispatcher(
        email_port=get_channel(NotificationChannel.EMAIL.value),
        push_port=get_channel(NotificationChannel.PUSH.value),
    )
    return BackgroundDispatcher(channels, max_workers=workers)
