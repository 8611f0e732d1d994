"""Best-effort notification fan-out to the owning user's live connections.

A failure to notify never fails or rolls back the mutation that triggered it:
errors are logged and swallowed here, at the boundary.
"""

import structlog

from notifications.channel import get_live_channel

logger = structlog.get_logger(__name__)


def notify_owner(user_id, event: str, payload: dict) -> bool:
    """Push ``event`` to ``user_id``'s live connections.

    Returns:
        True when the channel accepted the event, False when it failed.
    """
    try:
        delivered = get_live_channel().publish(str(user_id), event, payload)
    except Exception as exc:
        logger.warning(
            "Live notification failed, continuing without real-time update",
            user_id=str(user_id),
            notification_event=event,
            error=str(exc),
        )
        return False

    logger.debug("Live notification sent", user_id=str(user_id), notification_event=event, delivered=delivered)
    return True
