"""In-memory email adapter used by tests and local runs."""

from uuid import uuid4

from pharmacy.notifications.channel.email_port import EmailPort


class FakeEmailAdapter(EmailPort):
    """Records every mail instead of sending it."""

    def __init__(self):
        self.outbox: list[dict] = []
        self.should_succeed = True
        self.raise_on_send: Exception | None = None

    def fail_with(self, error: Exception | None = None):
        """Make subsequent sends fail: report ``failed``, or raise `error` when given."""
        self.should_succeed = False
        self.raise_on_send = error

    def send(self, to, subject, body):
        if self.raise_on_send is not None:
            raise self.raise_on_send
        if not self.should_succeed:
            return {"message_id": None, "status": "failed", "error": "Mailbox unavailable"}

        message_id = f"mail-{uuid4().hex[:12]}"
        self.outbox.append({"message_id": message_id, "to": to, "subject": subject, "body": body})
        return {"message_id": message_id, "status": "sent"}

    def reset(self):
        self.outbox.clear()
        self.should_succeed = True
        self.raise_on_send = None
