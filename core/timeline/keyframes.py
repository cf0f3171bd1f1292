"""
Keyframe storage for one compared stream.

Each stream carries an ordered list of labeled event markers on its own native
frame axis. Two anchors, "Start" and "End", bound the playable trim window and
always exist once the stream's duration is known. Interior markers (swing
phases such as "Top" or "Impact") are kept in step order matching the
canonical label order from the configuration.

The store is only mutated through its methods so that its version counter
tracks every change; the warp map compares versions to decide when to rebuild.
"""

import logging
import math
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

from config.comparison import ComparisonConfig, START_LABEL, END_LABEL

logger = logging.getLogger(__name__)


STREAM_A = "A"
STREAM_B = "B"
STREAM_IDS = (STREAM_A, STREAM_B)

ANCHOR_LABELS = (START_LABEL, END_LABEL)


def validate_stream_id(stream_id: str) -> str:
    """Return stream_id unchanged, raising ValueError if it is not A or B."""
    if stream_id not in STREAM_IDS:
        raise ValueError(f"Unknown stream id: {stream_id!r} (expected one of {STREAM_IDS})")
    return stream_id


@dataclass(frozen=True)
class Keyframe:
    """A labeled marker at an integer step on a stream's native frame axis."""
    id: str
    label: str
    step: int
    color: str

    @property
    def is_anchor(self) -> bool:
        return self.label in ANCHOR_LABELS


@dataclass(frozen=True)
class TrimWindow:
    """Playable sub-range of a stream, in native steps."""
    start: int = 0
    end: int = 0

    @property
    def length(self) -> int:
        return max(0, self.end - self.start)


class KeyframeStore:
    """
    Ordered keyframes, trim window and native length of a single stream.

    Before register_duration() is called the stream has no native steps and a
    [0, 0] trim window; operations still run against those defaults.
    """

    def __init__(self, stream_id: str, config: Optional[ComparisonConfig] = None):
        """
        Initialize an empty store.

        Args:
            stream_id: "A" or "B"
            config: Session configuration (frame rate, label ordering, colors)
        """
        self.stream_id = validate_stream_id(stream_id)
        self.config = config or ComparisonConfig()
        self.native_steps: int = 0
        self.version: int = 0
        self._keyframes: List[Keyframe] = []
        self._next_id = 0

    # ==================== QUERIES ====================

    @property
    def keyframes(self) -> Tuple[Keyframe, ...]:
        """Read-only snapshot of the keyframes in step order."""
        return tuple(self._keyframes)

    @property
    def labels(self) -> List[str]:
        return [kf.label for kf in self._keyframes]

    @property
    def trim(self) -> TrimWindow:
        """Trim window derived from the Start/End anchors."""
        start = self.find(START_LABEL)
        end = self.find(END_LABEL)
        return TrimWindow(
            start=start.step if start else 0,
            end=end.step if end else 0,
        )

    def find(self, label: str) -> Optional[Keyframe]:
        """Keyframe with the given label, or None."""
        for kf in self._keyframes:
            if kf.label == label:
                return kf
        return None

    def get(self, keyframe_id: str) -> Optional[Keyframe]:
        """Keyframe with the given id, or None."""
        for kf in self._keyframes:
            if kf.id == keyframe_id:
                return kf
        return None

    def __contains__(self, label: str) -> bool:
        return self.find(label) is not None

    def __len__(self) -> int:
        return len(self._keyframes)

    # ==================== MUTATIONS ====================

    def register_duration(self, duration_seconds: float) -> int:
        """
        Set the stream's native length from its media duration.

        Moves the End anchor to the new last step, creating Start/End when they
        are missing, then re-spaces interior markers so each one sits strictly
        inside (Start, End) in its current order. Markers added before the
        first registration are placed this way too. Safe to call again with a
        new duration.

        Args:
            duration_seconds: Media duration in seconds (negative values clamp to 0)

        Returns:
            Native step count
        """
        steps = int(math.ceil(max(0.0, duration_seconds) * self.config.master_fps))
        self.native_steps = steps

        if self.find(START_LABEL) is None:
            self._keyframes.append(self._create(START_LABEL, 0))

        end = self.find(END_LABEL)
        if end is None:
            self._keyframes.append(self._create(END_LABEL, steps))
        else:
            self._replace(end, steps)

        start = self.find(START_LABEL)
        if start.step >= steps:
            self._replace(start, max(steps - 1, 0))

        self._fit_interior()
        self._sort()
        self.version += 1

        logger.debug(f"Stream {self.stream_id}: {duration_seconds:.3f}s -> {steps} steps, "
                     f"trim {self.trim.start}..{self.trim.end}")
        return steps

    def insertion_step(self, label: str) -> Optional[int]:
        """
        Step at which insert_event() would place label.

        The step is the midpoint of the markers that bracket label in the
        canonical label order; the trim window bounds stand in when one side
        has none. Once the anchors exist the step must be free and strictly
        between the bracketing markers.

        Returns:
            The step, or None if label exists or there is no room for it
        """
        if label in self:
            return None

        rank = self.config.label_rank(label)
        trim = self.trim
        left_step = trim.start
        right_step = trim.end
        left_rank = None
        right_rank = None

        for kf in self._keyframes:
            kf_rank = self.config.label_rank(kf.label)
            if kf_rank < rank and (left_rank is None or kf_rank > left_rank):
                left_rank, left_step = kf_rank, kf.step
            elif kf_rank > rank and (right_rank is None or kf_rank < right_rank):
                right_rank, right_step = kf_rank, kf.step

        step = (left_step + right_step) // 2

        # Before registration the anchors are missing and placement is deferred
        if START_LABEL in self:
            occupied = any(kf.step == step for kf in self._keyframes)
            if right_step - left_step < 2 or occupied:
                return None
        return step

    def insert_event(self, label: str) -> Optional[Keyframe]:
        """
        Insert a marker for label at insertion_step().

        Args:
            label: Event label to insert

        Returns:
            The new Keyframe, or None if the label exists or there is no room
        """
        step = self.insertion_step(label)
        if step is None:
            return None

        keyframe = self._create(label, step)
        self._keyframes.append(keyframe)
        self._sort()
        self.version += 1
        return keyframe

    def remove_event(self, label: str) -> bool:
        """
        Remove the marker for label.

        Returns:
            True if removed, False for anchors or unknown labels
        """
        if label in ANCHOR_LABELS:
            return False
        kf = self.find(label)
        if kf is None:
            return False
        self._keyframes.remove(kf)
        self.version += 1
        return True

    def move(self, keyframe_id: str, proposed_step: float) -> Optional[int]:
        """
        Move a keyframe, clamped strictly between its neighbors.

        The allowed range is [left + 1, right - 1]; a missing left neighbor
        allows 0 and a missing right neighbor allows the native step count.
        Moving Start or End changes the trim window accordingly.

        Args:
            keyframe_id: Id of the keyframe to move
            proposed_step: Requested step (any real number)

        Returns:
            The step actually applied, or None if the id is unknown or the
            keyframe is boxed in by adjacent neighbors
        """
        kf = self.get(keyframe_id)
        if kf is None:
            return None

        index = self._keyframes.index(kf)
        low = self._keyframes[index - 1].step + 1 if index > 0 else 0
        high = (self._keyframes[index + 1].step - 1
                if index < len(self._keyframes) - 1 else self.native_steps)
        if low > high:
            return None

        step = int(round(min(max(proposed_step, low), high)))
        if step != kf.step:
            self._replace(kf, step)
        self.version += 1
        return step

    # ==================== INTERNALS ====================

    def _create(self, label: str, step: int) -> Keyframe:
        keyframe_id = f"{self.stream_id.lower()}-{self._next_id}"
        self._next_id += 1
        return Keyframe(id=keyframe_id, label=label, step=step,
                        color=self.config.color_for(label))

    def _replace(self, kf: Keyframe, step: int):
        index = self._keyframes.index(kf)
        self._keyframes[index] = replace(kf, step=step)

    def _sort_key(self, kf: Keyframe):
        # Equal steps fall back to canonical order so Start stays first and End last
        return kf.step, self.config.label_rank(kf.label)

    def _sort(self):
        self._keyframes.sort(key=self._sort_key)

    def _fit_interior(self):
        """
        Re-space interior markers strictly inside (Start, End), keeping their order.

        Markers already in place keep their steps; the others move to the
        nearest steps that keep the order strict. In a window too short for
        all of them the overflow shares Start's step.
        """
        interior = sorted((kf for kf in self._keyframes if not kf.is_anchor), key=self._sort_key)
        if not interior:
            return

        low = self.find(START_LABEL).step
        high = self.find(END_LABEL).step
        if high - low - 1 < len(interior):
            logger.warning(f"Stream {self.stream_id}: trim window {low}..{high} is too short "
                           f"for {len(interior)} markers; some markers share a step")

        steps = []
        previous = low
        for kf in interior:
            previous = max(kf.step, previous + 1)
            steps.append(previous)

        following = high
        for index in range(len(steps) - 1, -1, -1):
            following = min(steps[index], following - 1)
            steps[index] = following

        for kf, step in zip(interior, steps):
            step = min(max(step, low), high)
            if step != kf.step:
                self._replace(kf, step)
