"""
ComparisonTimeline: the synchronization engine for one comparison session.

Ties together the keyframe stores of streams A and B, the warp map, the
position mapper, the rate calculator and the master clock behind a single
object. The surrounding UI creates one instance per session and passes it to
every consumer that needs positions or rates (typically one StreamAdapter per
stream).

Example Usage:
    from core.timeline import ComparisonTimeline, STREAM_A, STREAM_B

    timeline = ComparisonTimeline()
    timeline.register_stream_duration(STREAM_A, 10.0)
    timeline.register_stream_duration(STREAM_B, 5.0)

    timeline.toggle_addressing_mode()   # SYNCED
    timeline.add_event("Impact")
    timeline.seek(500)
    print(timeline.position_for(STREAM_B), timeline.instantaneous_rate(STREAM_B))
"""

import logging
from typing import Callable, List, Optional, Tuple

import pyglet

from config.comparison import ComparisonConfig
from .analysis import SegmentTempo, analyze_segments
from .keyframes import (
    ANCHOR_LABELS, Keyframe, KeyframeStore, STREAM_A, STREAM_B, STREAM_IDS,
    TrimWindow, validate_stream_id,
)
from .mapping import PositionMapper, RateCalculator
from .notifications import NotificationBus, Subscriber
from .scheduler import MasterClock
from .state import AddressingMode
from .warp import SyncPoint, WarpMap

logger = logging.getLogger(__name__)


class ComparisonTimeline:
    """
    Synchronization engine holding all clock and keyframe state for a session.

    All mutation goes through the methods below so that the warp map cache
    and the notifications stay consistent with the state.
    """

    def __init__(self, config: Optional[ComparisonConfig] = None,
                 clock: Optional[pyglet.clock.Clock] = None):
        """
        Initialize an empty session.

        Args:
            config: Session configuration (default: ComparisonConfig())
            clock: pyglet clock that drives playback ticks (default: global clock)
        """
        self.config = config or ComparisonConfig()
        errors = self.config.validate()
        if errors:
            raise ValueError(f"Invalid comparison configuration: {'; '.join(errors)}")

        self._stores = {sid: KeyframeStore(sid, self.config) for sid in STREAM_IDS}
        self._bus = NotificationBus()
        self._warp = WarpMap(self._stores[STREAM_A], self._stores[STREAM_B], self.config)
        self._clock = MasterClock(self._stores, self._bus, self.config, clock)
        self._mapper = PositionMapper(self._stores, self._warp, self._clock.state, self.config)
        self._rates = RateCalculator(self._stores, self._warp, self._clock.state, self.config)

    # ==================== QUERIES ====================

    @property
    def position(self) -> float:
        return self._clock.state.position

    @property
    def total_range(self) -> float:
        return self._clock.state.total_range

    @property
    def is_playing(self) -> bool:
        return self._clock.state.playing

    @property
    def is_looping(self) -> bool:
        return self._clock.state.loop

    @property
    def mode(self) -> AddressingMode:
        return self._clock.state.mode

    @property
    def keyframes_enabled(self) -> bool:
        return self._clock.state.keyframes_enabled

    @property
    def playback_rate(self) -> float:
        return self._clock.state.rate

    @property
    def master_fps(self) -> int:
        return self.config.master_fps

    def keyframes(self, stream_id: str) -> Tuple[Keyframe, ...]:
        """Read-only snapshot of a stream's keyframes in step order."""
        return self._stores[validate_stream_id(stream_id)].keyframes

    def trim_window(self, stream_id: str) -> TrimWindow:
        return self._stores[validate_stream_id(stream_id)].trim

    def native_steps(self, stream_id: str) -> int:
        return self._stores[validate_stream_id(stream_id)].native_steps

    def sync_points(self) -> Tuple[SyncPoint, ...]:
        return self._warp.build_sync_points()

    def position_for(self, stream_id: str, position: Optional[float] = None) -> float:
        """Native position in seconds of a stream (default: at the current clock position)."""
        return self._mapper.position_for(stream_id, position)

    def instantaneous_rate(self, stream_id: str, position: Optional[float] = None) -> float:
        """Rate multiplier of a stream, to be applied on top of playback_rate."""
        return self._rates.instantaneous_rate(stream_id, position)

    def segment_analysis(self) -> List[SegmentTempo]:
        """Relative tempo of stream B against stream A for each event segment."""
        return analyze_segments(self._stores[STREAM_A], self._stores[STREAM_B])

    # ==================== SUBSCRIPTION ====================

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Subscribe to clock notifications.

        The callback is invoked immediately with the current position, then for
        every notification as callback(position, action, metadata).

        Returns:
            Unsubscribe function
        """
        return self._clock.subscribe(callback)

    # ==================== STREAMS ====================

    def register_stream_duration(self, stream_id: str, duration_seconds: float):
        """
        Record a stream's media duration once its metadata is available.

        Re-registering with a new duration re-runs the anchor and trim window
        updates.

        Args:
            stream_id: "A" or "B"
            duration_seconds: Media duration in seconds
        """
        store = self._stores[validate_stream_id(stream_id)]
        steps = store.register_duration(duration_seconds)
        self._warp.invalidate()
        self._clock.recompute_total_range()
        logger.info(f"ComparisonTimeline: stream {stream_id} duration {duration_seconds:.3f}s "
                    f"({steps} steps), total range {self.total_range:.1f}")
        self._clock.structure_changed()

    # ==================== TRANSPORT ====================

    def play(self):
        self._clock.play()

    def pause(self):
        self._clock.pause()

    def toggle_play(self):
        self._clock.toggle_play()

    def seek(self, position: float):
        self._clock.seek(position)

    def step_frames(self, frames: int):
        self._clock.step_frames(frames)

    def set_playback_rate(self, rate: float):
        self._clock.set_playback_rate(rate)

    def set_loop(self, enabled: bool):
        self._clock.set_loop(enabled)

    def toggle_addressing_mode(self):
        self._warp.invalidate()
        self._clock.toggle_addressing_mode()

    def set_keyframes_enabled(self, enabled: bool):
        self._warp.invalidate()
        self._clock.set_keyframes_enabled(enabled)

    # ==================== MARKERS ====================

    def add_event(self, label: str) -> bool:
        """
        Add an event marker with the same label to both streams.

        Args:
            label: Event label (e.g. "Top", "Impact")

        Returns:
            True if added, False if the label is an anchor, already exists, or
            either stream has no free step for it
        """
        if label in ANCHOR_LABELS or any(label in store for store in self._stores.values()):
            logger.debug(f"ComparisonTimeline: add_event({label!r}) rejected")
            return False

        if any(store.insertion_step(label) is None for store in self._stores.values()):
            logger.debug(f"ComparisonTimeline: add_event({label!r}) rejected, no room between neighbors")
            return False

        for store in self._stores.values():
            store.insert_event(label)
        self._warp.invalidate()
        self._clock.structure_changed()
        return True

    def delete_event(self, label: str) -> bool:
        """
        Remove an event marker from both streams.

        Returns:
            True if removed, False for the Start/End anchors or unknown labels
        """
        if label in ANCHOR_LABELS:
            logger.debug(f"ComparisonTimeline: delete_event({label!r}) rejected, anchors are permanent")
            return False

        removed = [store.remove_event(label) for store in self._stores.values()]
        if not any(removed):
            logger.debug(f"ComparisonTimeline: delete_event({label!r}) rejected, no such event")
            return False

        self._warp.invalidate()
        self._clock.structure_changed()
        return True

    def move_keyframe(self, stream_id: str, keyframe_id: str, proposed_step: float) -> Optional[int]:
        """
        Drag a keyframe to a new step, clamped strictly between its neighbors.

        Publishes a preview notification so the dragged stream shows the exact
        frame under the marker. Call reset_after_drag() when the drag ends.

        Args:
            stream_id: "A" or "B"
            keyframe_id: Id of the keyframe being dragged
            proposed_step: Requested native step

        Returns:
            The applied step, or None if nothing moved
        """
        step = self._stores[validate_stream_id(stream_id)].move(keyframe_id, proposed_step)
        if step is None:
            logger.debug(f"ComparisonTimeline: move_keyframe({stream_id}, {keyframe_id!r}) ignored")
            return None

        self._warp.invalidate()
        self._clock.preview(stream_id, step, keyframe_id=keyframe_id)
        return step

    def reset_after_drag(self):
        """Re-assert the current position so consumers leave preview precisely."""
        self._clock.reset_after_drag()

    def close(self):
        """Tear down: cancel pending ticks and drop all subscribers."""
        self._clock.close()
