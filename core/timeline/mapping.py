"""
Position mapping and playback-rate calculation.

Given the master clock state, these classes answer two questions for each
stream: where it should be (native seconds) and how fast its native clock must
run so that it keeps pace with the master clock.

Addressing modes:
- UNSYNCED: the virtual position is a native step count shared by both
  streams; each stream plays at normal speed until its own end.
- SYNCED, keyframes off: each stream's trim window is stretched linearly over
  the virtual span.
- SYNCED, keyframes on: the warp map aligns every common event label; each
  inter-label segment is stretched independently.
"""

import logging
from typing import Dict, Optional

from config.comparison import ComparisonConfig
from .keyframes import KeyframeStore, STREAM_A, validate_stream_id
from .state import ClockState
from .warp import WarpMap

logger = logging.getLogger(__name__)

# Lowest rate handed to a media backend; a flat warp segment would otherwise yield 0
MIN_RATE = 0.01


class PositionMapper:
    """Maps a virtual clock position to each stream's native position."""

    def __init__(self, stores: Dict[str, KeyframeStore], warp_map: WarpMap,
                 state: ClockState, config: Optional[ComparisonConfig] = None):
        self.stores = stores
        self.warp_map = warp_map
        self.state = state
        self.config = config or ComparisonConfig()

    def position_for(self, stream_id: str, virtual_position: Optional[float] = None) -> float:
        """
        Native position of a stream for a virtual position.

        Args:
            stream_id: "A" or "B"
            virtual_position: Virtual position (defaults to the current clock position)

        Returns:
            Native position in seconds, within [0, native duration]
        """
        return self.step_for(stream_id, virtual_position) / self.config.master_fps

    def step_for(self, stream_id: str, virtual_position: Optional[float] = None) -> float:
        """Same as position_for() but in fractional native steps."""
        store = self.stores[validate_stream_id(stream_id)]
        v = self.state.position if virtual_position is None else virtual_position

        if not self.state.synced:
            step = min(max(v, 0.0), float(store.native_steps))
        elif self.state.warped and self.warp_map.is_defined:
            step = self.warp_map.local_step(stream_id, v)
        else:
            step = self._linear_step(store, v)

        # Anchors dragged on a not-yet-registered stream can sit past native_steps
        return min(max(step, 0.0), float(store.native_steps))

    def _linear_step(self, store: KeyframeStore, virtual_position: float) -> float:
        progress = min(max(virtual_position / self.config.virtual_span, 0.0), 1.0)
        trim = store.trim
        return trim.start + progress * (trim.end - trim.start)


class RateCalculator:
    """
    Instantaneous native playback-rate multiplier for each stream.

    Stream A is the rate reference: in SYNCED mode the virtual clock advances
    so that A's trim window plays at its natural speed, and every rate is
    expressed relative to that.
    """

    def __init__(self, stores: Dict[str, KeyframeStore], warp_map: WarpMap,
                 state: ClockState, config: Optional[ComparisonConfig] = None):
        self.stores = stores
        self.warp_map = warp_map
        self.state = state
        self.config = config or ComparisonConfig()

    def instantaneous_rate(self, stream_id: str, virtual_position: Optional[float] = None) -> float:
        """
        Rate multiplier applied on top of the user playback rate.

        Args:
            stream_id: "A" or "B"
            virtual_position: Virtual position (defaults to the current clock position)

        Returns:
            Positive rate multiplier
        """
        validate_stream_id(stream_id)
        if not self.state.synced:
            return 1.0

        reference = self.stores[STREAM_A].trim.length
        if reference <= 0:
            return 1.0

        v = self.state.position if virtual_position is None else virtual_position
        if self.state.warped:
            segment = self.warp_map.segment_at(v)
            if segment is not None:
                start, end = segment
                span = end.virtual_position - start.virtual_position
                if span <= 0:
                    return 1.0
                slope = (end.step_for(stream_id) - start.step_for(stream_id)) / span
                return max(slope * self.config.virtual_span / reference, MIN_RATE)

        return max(self.stores[stream_id].trim.length / reference, MIN_RATE)
