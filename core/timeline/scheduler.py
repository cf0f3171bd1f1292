"""
Master clock and tick scheduler.

The master clock advances a virtual position in real time on a pyglet clock.
Each tick is a one-shot pyglet callback that reschedules itself for the next
frame while playing; pause() and close() unschedule the pending callback so a
stale tick can never run after playback stopped.

Everything runs on the pyglet event loop thread. Notifications are published
synchronously before the triggering call returns.
"""

import logging
from typing import Any, Callable, Dict, Optional

import pyglet

from config.comparison import ComparisonConfig
from .keyframes import KeyframeStore, STREAM_A, STREAM_B, validate_stream_id
from .notifications import Action, NotificationBus, Subscriber
from .state import AddressingMode, ClockState

logger = logging.getLogger(__name__)


class MasterClock:
    """
    Owns the clock state and the tick loop.

    States: Stopped (initial) and Playing. The clock reads stream lengths and
    trim windows from the keyframe stores but never mutates them.
    """

    def __init__(self, stores: Dict[str, KeyframeStore], bus: NotificationBus,
                 config: Optional[ComparisonConfig] = None,
                 clock: Optional[pyglet.clock.Clock] = None):
        """
        Initialize a stopped clock at position 0.

        Args:
            stores: Keyframe stores keyed by stream id
            bus: Notification bus to publish on
            config: Session configuration
            clock: pyglet clock to schedule ticks on (default: pyglet's global clock)
        """
        self.stores = stores
        self.bus = bus
        self.config = config or ComparisonConfig()
        self.clock = clock or pyglet.clock.get_default()
        self.state = ClockState(rate=self.config.default_rate, loop=self.config.loop)
        self._last_tick_time: Optional[float] = None
        self._tick_scheduled = False

    # ==================== DERIVED VALUES ====================

    @property
    def frame_interval(self) -> float:
        """Seconds between ticks."""
        return 1.0 / self.config.master_fps

    def recompute_total_range(self) -> float:
        """
        Recompute total_range for the current mode and clamp the position into it.

        Returns:
            New total range
        """
        if self.state.synced:
            total = float(self.config.virtual_span)
        else:
            total = float(max(self.stores[STREAM_A].native_steps,
                              self.stores[STREAM_B].native_steps))
        self.state.total_range = total
        self.state.position = min(max(self.state.position, 0.0), total)
        return total

    def steps_per_second(self) -> float:
        """
        Virtual position advance per real second at rate 1.

        UNSYNCED runs at the master frame rate. SYNCED covers the virtual span
        in the time stream A's trim window takes to play.
        """
        if self.state.synced:
            trim_steps = self.stores[STREAM_A].trim.length
            if trim_steps > 0:
                trim_seconds = trim_steps / self.config.master_fps
                return self.config.virtual_span / trim_seconds
        return float(self.config.master_fps)

    def frame_step(self) -> float:
        """Virtual distance that corresponds to one native frame of stream A."""
        if self.state.synced:
            trim_steps = self.stores[STREAM_A].trim.length
            if trim_steps > 0:
                return self.config.virtual_span / trim_steps
        return 1.0

    # ==================== SUBSCRIPTION ====================

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Subscribe to notifications; callback receives the current position immediately."""
        return self.bus.subscribe(callback, self.state.position)

    def _emit(self, action: Optional[Action] = None, metadata: Optional[Dict[str, Any]] = None):
        self.bus.publish(self.state.position, action, metadata)

    # ==================== TRANSPORT ====================

    def play(self):
        """Start the tick loop (no-op if already playing)."""
        if self.state.playing:
            return

        self.state.playing = True
        self._last_tick_time = None  # first tick measures zero elapsed time
        self._emit(Action.PLAY)

        # A subscriber may have paused during the play notification
        if self.state.playing:
            self._schedule_tick()

    def pause(self):
        """Stop the tick loop and cancel the pending tick (no-op if already stopped)."""
        if not self.state.playing:
            return
        self._cancel_tick()
        self.state.playing = False
        self._emit(Action.PAUSE)

    def toggle_play(self):
        if self.state.playing:
            self.pause()
        else:
            self.play()

    def seek(self, position: float):
        """Move to position, clamped to [0, total_range]; consumers must reposition exactly."""
        self.state.position = min(max(float(position), 0.0), self.state.total_range)
        self._emit(Action.SEEK)

    def step_frames(self, frames: int):
        """Seek by a number of frames (native frames of stream A in SYNCED mode)."""
        self.seek(self.state.position + frames * self.frame_step())

    def set_playback_rate(self, rate: float):
        """
        Set the user playback rate multiplier.

        Args:
            rate: Positive multiplier; non-positive values are ignored
        """
        if rate <= 0:
            logger.warning(f"MasterClock: ignoring non-positive playback rate {rate}")
            return
        self.state.rate = float(rate)
        self._emit(Action.RATE)

    # ==================== STRUCTURE ====================

    def set_loop(self, enabled: bool):
        self.state.loop = bool(enabled)
        self._emit(Action.UPDATE)

    def set_keyframes_enabled(self, enabled: bool):
        self.state.keyframes_enabled = bool(enabled)
        self._emit(Action.UPDATE)

    def toggle_addressing_mode(self):
        """
        Switch between UNSYNCED and SYNCED addressing and reset to position 0.

        Positions are not carried across coordinate systems.
        """
        if self.state.synced:
            self.state.mode = AddressingMode.UNSYNCED
        else:
            self.state.mode = AddressingMode.SYNCED
        self.recompute_total_range()
        logger.info(f"MasterClock: addressing mode -> {self.state.mode.value} "
                    f"(total range {self.state.total_range:.1f})")
        self._emit(Action.UPDATE)
        self.seek(0.0)

    def structure_changed(self):
        """Publish an update notification after a keyframe or duration change."""
        self._emit(Action.UPDATE)

    def preview(self, stream_id: str, step: int, **extra: Any):
        """
        Publish a live-drag preview of one stream at an exact native step.

        Consumers show that stream at step / fps and pause it, bypassing the
        virtual mapping.
        """
        metadata = {'stream_id': validate_stream_id(stream_id), 'step': step}
        metadata.update(extra)
        self._emit(Action.PREVIEW, metadata)

    def reset_after_drag(self):
        """Re-assert the current position with a seek once a drag ends."""
        self._emit(Action.SEEK)

    def close(self):
        """Cancel any pending tick and drop all subscribers."""
        self._cancel_tick()
        self.state.playing = False
        self.bus.clear()

    # ==================== TICK LOOP ====================

    def _schedule_tick(self):
        self.clock.schedule_once(self._tick, self.frame_interval)
        self._tick_scheduled = True

    def _cancel_tick(self):
        if self._tick_scheduled:
            self.clock.unschedule(self._tick)
            self._tick_scheduled = False

    def _tick(self, dt: float):
        """
        Advance the clock by the real time elapsed since the previous tick.

        Args:
            dt: Delta time from the pyglet clock (unused; elapsed time is
                measured against the clock's own time function)
        """
        self._tick_scheduled = False
        if not self.state.playing:
            return

        now = self.clock.time()
        elapsed = 0.0 if self._last_tick_time is None else max(0.0, now - self._last_tick_time)
        self._last_tick_time = now

        advance = elapsed * self.steps_per_second() * self.state.rate
        new_position = self.state.position + advance

        if new_position >= self.state.total_range:
            if self.state.loop:
                self.state.position = 0.0
            else:
                self.state.position = self.state.total_range
                self.state.playing = False
                self._emit(Action.PAUSE)
                return
        else:
            self.state.position = new_position

        self._emit()

        if self.state.playing and not self._tick_scheduled:
            self._schedule_tick()
