"""
Warp map between the virtual axis and each stream's native axis.

Every label present on both streams becomes a sync point. Sync points are
spaced evenly across the virtual span in canonical label order, so that, for
example, "Top" lands at the same virtual position for both swings no matter
when each swing actually reaches it. Between sync points the mapping is
linear.

The sync point list is cached and tagged with the keyframe store versions it
was built from; any store mutation makes the cache stale and the next query
rebuilds it.
"""

import bisect
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from config.comparison import ComparisonConfig
from .keyframes import KeyframeStore, STREAM_A, validate_stream_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncPoint:
    """Correspondence of one common label across both streams."""
    label: str
    virtual_position: float
    step_a: int
    step_b: int

    def step_for(self, stream_id: str) -> int:
        return self.step_a if stream_id == STREAM_A else self.step_b


class WarpMap:
    """
    Lazily built, versioned list of sync points for a pair of keyframe stores.
    """

    def __init__(self, store_a: KeyframeStore, store_b: KeyframeStore,
                 config: Optional[ComparisonConfig] = None):
        self.store_a = store_a
        self.store_b = store_b
        self.config = config or ComparisonConfig()
        self._points: Tuple[SyncPoint, ...] = ()
        self._positions: Tuple[float, ...] = ()
        self._built_version: Optional[Tuple[int, int]] = None

    @property
    def source_version(self) -> Tuple[int, int]:
        return (self.store_a.version, self.store_b.version)

    @property
    def is_stale(self) -> bool:
        return self._built_version != self.source_version

    def invalidate(self):
        """Drop the cached sync points; the next query rebuilds them."""
        self._built_version = None

    def build_sync_points(self) -> Tuple[SyncPoint, ...]:
        """
        Sync points for the current keyframe state.

        Returns:
            Tuple of SyncPoint ordered by virtual position, or an empty tuple
            when fewer than two labels are common to both streams
        """
        if self.is_stale:
            self._rebuild()
        return self._points

    @property
    def is_defined(self) -> bool:
        """True when at least two sync points exist."""
        return len(self.build_sync_points()) >= 2

    def segment_at(self, virtual_position: float) -> Optional[Tuple[SyncPoint, SyncPoint]]:
        """
        Bracketing sync point pair for a virtual position.

        The position is clamped to [0, virtual_span]. The pair satisfies
        start.virtual_position <= position < end.virtual_position, except at or
        past the final point where the last pair is returned.

        Returns:
            (start, end) pair, or None if the warp is undefined
        """
        points = self.build_sync_points()
        if len(points) < 2:
            return None

        v = min(max(virtual_position, 0.0), self.config.virtual_span)
        index = bisect.bisect_right(self._positions, v) - 1
        index = min(max(index, 0), len(points) - 2)
        return points[index], points[index + 1]

    def local_step(self, stream_id: str, virtual_position: float) -> Optional[float]:
        """
        Interpolated native step of a stream at a virtual position.

        Returns:
            Fractional step, or None if the warp is undefined
        """
        validate_stream_id(stream_id)
        segment = self.segment_at(virtual_position)
        if segment is None:
            return None

        start, end = segment
        span = end.virtual_position - start.virtual_position
        if span <= 0:
            return float(start.step_for(stream_id))

        v = min(max(virtual_position, 0.0), self.config.virtual_span)
        progress = (v - start.virtual_position) / span
        progress = min(max(progress, 0.0), 1.0)
        start_step = start.step_for(stream_id)
        return start_step + progress * (end.step_for(stream_id) - start_step)

    def _rebuild(self):
        labels_b = set(self.store_b.labels)
        common = [label for label in self.store_a.labels if label in labels_b]
        common.sort(key=lambda label: (self.config.label_rank(label), label))

        points = []
        if len(common) >= 2:
            span = self.config.virtual_span
            last = len(common) - 1
            for i, label in enumerate(common):
                points.append(SyncPoint(
                    label=label,
                    virtual_position=i / last * span,
                    step_a=self.store_a.find(label).step,
                    step_b=self.store_b.find(label).step,
                ))

        self._points = tuple(points)
        self._positions = tuple(p.virtual_position for p in points)
        self._built_version = self.source_version
        logger.debug(f"WarpMap: rebuilt {len(points)} sync points "
                     f"(versions A={self._built_version[0]}, B={self._built_version[1]})")
