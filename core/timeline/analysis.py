"""
Per-segment tempo comparison between the two streams.

For each pair of consecutive event labels present on both streams, compares
how many native frames stream B spends in that phase relative to stream A.
"""

from dataclasses import dataclass, asdict
from typing import List

from .keyframes import KeyframeStore

SLOWER_THRESHOLD = 90   # percent
FASTER_THRESHOLD = 110  # percent


@dataclass(frozen=True)
class SegmentTempo:
    """Relative duration of one swing phase, B against A."""
    start_label: str
    end_label: str
    frames_a: int
    frames_b: int
    ratio: float
    percentage: int
    category: str  # 'slower', 'matched' or 'faster'

    def to_dict(self) -> dict:
        return asdict(self)


def categorize(percentage: int) -> str:
    if percentage < SLOWER_THRESHOLD:
        return 'slower'
    if percentage > FASTER_THRESHOLD:
        return 'faster'
    return 'matched'


def analyze_segments(store_a: KeyframeStore, store_b: KeyframeStore) -> List[SegmentTempo]:
    """
    Compare segment lengths between consecutive common labels.

    Labels are taken in stream A's step order. Segments of zero length on
    stream A are skipped.

    Args:
        store_a: Keyframes of the reference stream
        store_b: Keyframes of the compared stream

    Returns:
        List of SegmentTempo, empty when fewer than two labels are common
    """
    labels = [kf.label for kf in store_a.keyframes if kf.label in store_b]
    segments = []

    for label, next_label in zip(labels, labels[1:]):
        frames_a = store_a.find(next_label).step - store_a.find(label).step
        frames_b = store_b.find(next_label).step - store_b.find(label).step
        if frames_a == 0:
            continue
        ratio = frames_b / frames_a
        percentage = int(round(ratio * 100))
        segments.append(SegmentTempo(
            start_label=label,
            end_label=next_label,
            frames_a=frames_a,
            frames_b=frames_b,
            ratio=ratio,
            percentage=percentage,
            category=categorize(percentage),
        ))

    return segments
