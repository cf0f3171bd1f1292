"""
Clock state shared by the scheduler and the mappers.
"""

from dataclasses import dataclass
from enum import Enum


class AddressingMode(Enum):
    """How a virtual clock position is addressed onto each stream."""
    UNSYNCED = "unsynced"  # Both streams run on native time, independently
    SYNCED = "synced"      # Both streams are normalized onto the virtual span


@dataclass
class ClockState:
    """
    Mutable state of the master clock.

    Owned and mutated by MasterClock; the position mapper and rate calculator
    only read it.

    Attributes:
        position: Current virtual position (native steps in UNSYNCED mode,
                  virtual units in SYNCED mode)
        total_range: Upper bound of position
        playing: True while the tick loop runs
        rate: User-selected playback rate multiplier
        loop: Wrap to 0 instead of stopping at the end
        mode: Addressing mode
        keyframes_enabled: Use the warp map (instead of a linear stretch) in SYNCED mode
    """
    position: float = 0.0
    total_range: float = 0.0
    playing: bool = False
    rate: float = 1.0
    loop: bool = False
    mode: AddressingMode = AddressingMode.UNSYNCED
    keyframes_enabled: bool = True

    @property
    def synced(self) -> bool:
        return self.mode is AddressingMode.SYNCED

    @property
    def warped(self) -> bool:
        return self.synced and self.keyframes_enabled
