"""Firmware status message link.

The firmware reports human-readable status through the comm link; the
controller drains them on request.
"""

import logging
from collections import deque

logger = logging.getLogger(__name__)


class CommLink:
    """Bounded queue of firmware status messages."""

    def __init__(self, max_messages: int = 256) -> None:
        self._messages: deque[str] = deque(maxlen=max_messages)

    def send_status(self, message: str) -> None:
        """Queue a status message; the oldest is dropped when full."""
        logger.debug("Firmware status: %s", message)
        self._messages.append(message)

    def get_status_messages(self) -> list[str]:
        """Return and clear all pending messages, oldest first."""
        messages = list(self._messages)
        self._messages.clear()
        return messages

    def __len__(self) -> int:
        return len(self._messages)
