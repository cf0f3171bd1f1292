"""
Synchronous publish/subscribe channel for clock notifications.

Every notification is the tuple (position, action, metadata). Delivery is
synchronous and in subscription order: when publish() returns, every
subscriber has already run. Plain clock ticks carry action None.
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class Action(str, Enum):
    """Tag describing why a notification was published."""
    PLAY = "play"
    PAUSE = "pause"
    RATE = "rate"
    SEEK = "seek"
    UPDATE = "update"    # Structural change (markers, mode, loop, keyframes flag)
    # Live marker drag. Metadata: stream_id, step (the clamped step actually applied,
    # not the requested one) and keyframe_id when the drag came from move_keyframe
    PREVIEW = "preview"


Subscriber = Callable[[float, Optional[Action], Optional[Dict[str, Any]]], None]


class NotificationBus:
    """
    Ordered list of subscribers with synchronous delivery.

    Exceptions raised by a subscriber propagate to the publisher.
    """

    def __init__(self):
        self._subscribers: List[Subscriber] = []

    def subscribe(self, callback: Subscriber, position: float) -> Callable[[], None]:
        """
        Add a subscriber and deliver the current position to it right away.

        Args:
            callback: Called as callback(position, action, metadata)
            position: Current clock position for the initial delivery

        Returns:
            Function that removes this subscription (safe to call twice)
        """
        self._subscribers.append(callback)
        callback(position, None, None)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, position: float, action: Optional[Action] = None,
                metadata: Optional[Dict[str, Any]] = None):
        """Deliver one notification to every subscriber."""
        # Snapshot so subscribers may unsubscribe while being notified
        for callback in list(self._subscribers):
            callback(position, action, metadata)

    def clear(self):
        self._subscribers.clear()

    def __len__(self) -> int:
        return len(self._subscribers)
