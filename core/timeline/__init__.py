"""
Synchronization engine for side-by-side stream comparison.

This package provides:
- Per-stream keyframe stores with Start/End anchors and event markers
- A versioned warp map aligning common event labels across both streams
- Position mapping and instantaneous rate calculation per addressing mode
- A pyglet-driven master clock with synchronous notifications
"""

from .analysis import SegmentTempo, analyze_segments
from .engine import ComparisonTimeline
from .keyframes import Keyframe, KeyframeStore, TrimWindow, STREAM_A, STREAM_B, STREAM_IDS
from .mapping import PositionMapper, RateCalculator
from .notifications import Action, NotificationBus
from .scheduler import MasterClock
from .state import AddressingMode, ClockState
from .warp import SyncPoint, WarpMap

__all__ = [
    'ComparisonTimeline',
    'Keyframe',
    'KeyframeStore',
    'TrimWindow',
    'SyncPoint',
    'WarpMap',
    'PositionMapper',
    'RateCalculator',
    'MasterClock',
    'NotificationBus',
    'Action',
    'AddressingMode',
    'ClockState',
    'SegmentTempo',
    'analyze_segments',
    'STREAM_A',
    'STREAM_B',
    'STREAM_IDS',
]
