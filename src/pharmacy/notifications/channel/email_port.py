"""Email channel port — every order notification kind is mailed to the owner."""

from abc import ABC, abstractmethod


class EmailPort(ABC):
    @abstractmethod
    def send(self, to: str, subject: str, body: str) -> dict:
        """Mail a rendered order summary.

        Returns ``{"message_id": ..., "status": "sent" | "failed"}``, plus
        ``"error"`` when the provider rejected the message.
        """
        ...
