"""Fake live channel adapter — records published events for testing."""

from notifications.channel.live_port import LiveChannelPort


class FakeLiveChannel(LiveChannelPort):
    """Live channel that records events in memory for test assertions."""

    def __init__(self):
        self.published: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Live channel not available"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Live channel not available"):
        """Configure the fake adapter behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def publish(self, user_id: str, event: str, payload: dict) -> int:
        if not self.should_succeed:
            raise ConnectionError(self.failure_reason)

        self.published.append({"user_id": str(user_id), "event": event, "payload": payload})
        return 1

    def events_for(self, user_id: str) -> list[dict]:
        return [record for record in self.published if record["user_id"] == str(user_id)]

    def reset(self):
        """Clear published events (useful between tests)."""
        self.published.clear()
        self.should_succeed = True
        self.failure_reason = "Live channel not available"
