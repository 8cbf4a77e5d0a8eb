"""In-memory push adapter used by tests and local runs."""

from uuid import uuid4

from pharmacy.notifications.channel.push_port import PushPort


class FakePushAdapter(PushPort):
    def __init__(self):
        self.pushed: list[dict] = []
        self.should_succeed = True

    def send(self, device_token, title, body, data=None):
        if not self.should_succeed:
            return {"message_id": None, "status": "failed", "error": "Device unreachable"}

        message_id = f"push-{uuid4().hex[:12]}"
        self.pushed.append(
            {
                "message_id": message_id,
                "device_token": device_token,
                "title": title,
                "body": body,
                "data": data or {},
            }
        )
        return {"message_id": message_id, "status": "sent"}

    def reset(self):
        self.pushed.clear()
        self.should_succeed = True
