"""Live channel registry — pluggable real-time dispatch.

Provides singleton access to the live channel adapter. Uses the WebSocket
hub by default so connected clients receive cart and order updates; tests
swap in the recording fake.
"""

from notifications.channel.live_port import LiveChannelPort

_live_channel: LiveChannelPort | None = None


def get_live_channel() -> LiveChannelPort:
    """Return the configured live channel adapter (singleton)."""
    global _live_channel
    if _live_channel is None:
        from notifications.channel.websocket_hub import WebSocketHub

        _live_channel = WebSocketHub()
    return _live_channel


def set_live_channel(channel: LiveChannelPort) -> None:
    """Override the live channel adapter (useful for tests)."""
    global _live_channel
    _live_channel = channel


def reset_channels():
    """Reset the channel singleton (useful for testing)."""
    global _live_channel
    _live_channel = None
