"""
StreamAdapter: applies clock notifications to one stream's media handle.

One adapter is attached per compared stream. It subscribes to the
ComparisonTimeline and, for every notification, asks the timeline where and
how fast its stream should be, then instructs the media handle accordingly.
It never waits for the media backend to complete an instruction.
"""

import logging
from typing import Any, Dict, Optional, Protocol

from core.timeline import Action, ComparisonTimeline
from core.timeline.keyframes import validate_stream_id

logger = logging.getLogger(__name__)


class MediaHandle(Protocol):
    """Opaque playable media as seen by the synchronization engine."""

    @property
    def duration(self) -> Optional[float]: ...

    @property
    def position(self) -> float: ...

    @property
    def rate(self) -> float: ...

    @rate.setter
    def rate(self, value: float) -> None: ...

    def play(self) -> None: ...

    def pause(self) -> None: ...

    def seek(self, seconds: float) -> None: ...


class StreamAdapter:
    """
    Keeps a media handle in step with the master clock.

    Playback ticks only reposition the handle when it drifted further than
    drift_tolerance; explicit seeks always reposition.
    """

    def __init__(self, timeline: ComparisonTimeline, stream_id: str, handle: MediaHandle,
                 drift_tolerance: Optional[float] = None):
        """
        Attach to a timeline.

        Args:
            timeline: Synchronization engine for the session
            stream_id: "A" or "B"
            handle: Media handle of that stream
            drift_tolerance: Seconds of drift tolerated during playback
                             (default: timeline.config.drift_tolerance)
        """
        self.timeline = timeline
        self.stream_id = validate_stream_id(stream_id)
        self.handle = handle
        self.drift_tolerance = (timeline.config.drift_tolerance
                                if drift_tolerance is None else drift_tolerance)
        self.previewing = False
        self._applied_rate: Optional[float] = None
        self._unsubscribe = timeline.subscribe(self._on_notification)

    def detach(self):
        """Stop following the timeline."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    @property
    def target_rate(self) -> float:
        """User playback rate combined with this stream's instantaneous rate."""
        return self.timeline.playback_rate * self.timeline.instantaneous_rate(self.stream_id)

    # ==================== NOTIFICATION HANDLING ====================

    def _on_notification(self, position: float, action: Optional[Action],
                         metadata: Optional[Dict[str, Any]]):
        if action == Action.PREVIEW:
            self._show_preview(metadata or {})
            return

        # Any other notification ends a live preview
        self.previewing = False

        if action == Action.PLAY:
            self._reposition(position, force=True)
            self._apply_rate(force=True)
            self.handle.play()
        elif action == Action.PAUSE:
            self.handle.pause()
            self._reposition(position, force=True)
        elif action == Action.SEEK:
            self._reposition(position, force=True)
            self._apply_rate()
        elif action == Action.RATE:
            self._apply_rate()
        elif action == Action.UPDATE:
            self._apply_rate()
            self._reposition(position)
        else:
            self._apply_rate()
            self._reposition(position)

    def _show_preview(self, metadata: Dict[str, Any]):
        if metadata.get('stream_id') != self.stream_id:
            return
        self.previewing = True
        self.handle.pause()
        self.handle.seek(metadata['step'] / self.timeline.master_fps)

    def _reposition(self, position: float, force: bool = False):
        target = self.timeline.position_for(self.stream_id, position)
        if force or abs(self.handle.position - target) > self.drift_tolerance:
            self.handle.seek(target)

    def _apply_rate(self, force: bool = False):
        rate = self.target_rate
        if force or self._applied_rate is None or abs(rate - self._applied_rate) > 1e-9:
            self.handle.rate = rate
            self._applied_rate = rate
