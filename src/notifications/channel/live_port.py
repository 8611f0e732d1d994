"""Live channel port — abstract interface for pushing events to a user's connections."""

from abc import ABC, abstractmethod


class LiveChannelPort(ABC):
    """Abstract interface for real-time push adapters."""

    @abstractmethod
    def publish(self, user_id: str, event: str, payload: dict) -> int:
        """Push ``event`` with ``payload`` to every live connection of ``user_id``.

        Returns:
            Number of connections the event was delivered to.
        """
        ...
