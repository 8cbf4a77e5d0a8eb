"""Push channel port — used for delivery notices sent to registered devices."""

from abc import ABC, abstractmethod


class PushPort(ABC):
    @abstractmethod
    def send(self, device_token: str, title: str, body: str, data: dict | None = None) -> dict:
        """Push one message to a single device token.

        Returns ``{"message_id": ..., "status": "sent" | "failed"}``; a failed
        push to one device does not affect the others.
        """
        ...
