"""
Comparison session configuration for SwingSync.

Holds the constants that shape the synchronization engine (master frame rate,
virtual axis span, canonical event ordering) plus playback defaults, and the
JSON helpers used to save and load them.
"""

import json
import logging
import os
from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional, Any

logger = logging.getLogger(__name__)


START_LABEL = "Start"
END_LABEL = "End"

# Golf swing phases offered by the marker editor, in swing order
SWING_STAGES = ["Address", "Top", "Downswing", "Impact", "Finish"]

DEFAULT_LABEL_COLORS = {
    "Start": "#22c55e",
    "Address": "#3b82f6",
    "Top": "#8b5cf6",
    "Downswing": "#f97316",
    "Impact": "#ef4444",
    "Finish": "#eab308",
    "End": "#22c55e",
}

FALLBACK_COLORS = ["#06b6d4", "#ec4899", "#84cc16", "#a855f7", "#f43f5e", "#14b8a6"]


@dataclass
class ComparisonConfig:
    """
    Configuration for one side-by-side comparison session.

    Attributes:
        master_fps: Steps per second of the native frame axis shared by both streams
        virtual_span: Length of the normalized virtual axis used in synced mode
        label_order: Canonical ordering of event labels (anchors included)
        label_colors: Display color per label (non-functional)
        speed_options: Playback rates offered to the user
        drift_tolerance: Seconds a playing stream may drift before it is repositioned
        default_rate: Initial user playback rate
        loop: Whether playback wraps to the start when it reaches the end
    """
    master_fps: int = 60
    virtual_span: float = 1000.0
    label_order: List[str] = field(
        default_factory=lambda: [START_LABEL] + list(SWING_STAGES) + [END_LABEL]
    )
    label_colors: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_LABEL_COLORS))
    speed_options: List[float] = field(default_factory=lambda: [0.1, 0.25, 0.5, 1.0, 2.0, 4.0, 8.0])
    drift_tolerance: float = 0.03  # seconds
    default_rate: float = 1.0
    loop: bool = False

    def color_for(self, label: str) -> str:
        """
        Deterministic display color for a label.

        Known labels use the configured palette; anything else is assigned a
        fallback color from a stable hash of its characters.
        """
        if label in self.label_colors:
            return self.label_colors[label]
        index = sum(ord(c) for c in label) % len(FALLBACK_COLORS)
        return FALLBACK_COLORS[index]

    def label_rank(self, label: str) -> float:
        """
        Position of a label in the canonical ordering.

        Labels missing from label_order rank just before the End anchor so
        they always fall inside the trim window.
        """
        if label in self.label_order:
            return float(self.label_order.index(label))
        if END_LABEL in self.label_order:
            return self.label_order.index(END_LABEL) - 0.5
        return float(len(self.label_order))

    def validate(self) -> List[str]:
        """
        Validate configuration values.

        Returns:
            List of error messages (empty if valid)
        """
        errors = []

        if self.master_fps <= 0:
            errors.append("master_fps must be positive")
        if self.virtual_span <= 0:
            errors.append("virtual_span must be positive")
        if self.drift_tolerance < 0:
            errors.append("drift_tolerance must be non-negative")
        if self.default_rate <= 0:
            errors.append("default_rate must be positive")
        if any(rate <= 0 for rate in self.speed_options):
            errors.append("speed_options must all be positive")

        if START_LABEL not in self.label_order or END_LABEL not in self.label_order:
            errors.append("label_order must contain 'Start' and 'End'")
        else:
            if self.label_order[0] != START_LABEL:
                errors.append("'Start' must be first in label_order")
            if self.label_order[-1] != END_LABEL:
                errors.append("'End' must be last in label_order")
        if len(set(self.label_order)) != len(self.label_order):
            errors.append("label_order contains duplicate labels")

        return errors

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ComparisonConfig':
        """
        Create from dictionary, ignoring unknown keys.

        Args:
            data: Dictionary representation

        Returns:
            ComparisonConfig instance
        """
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)


def save_config(config: ComparisonConfig, filepath: str) -> bool:
    """
    Save comparison configuration to JSON file.

    Args:
        config: ComparisonConfig object to save
        filepath: Path where JSON file should be saved

    Returns:
        True if successful, False otherwise
    """
    try:
        directory = os.path.dirname(filepath)
        if directory and not os.path.exists(directory):
            os.makedirs(directory)

        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(config.to_dict(), f, indent=2, ensure_ascii=False)

        logger.info(f"Configuration saved to {filepath}")
        return True

    except (OSError, TypeError) as e:
        logger.error(f"Error saving configuration to {filepath}: {e}")
        return False


def load_config(filepath: str) -> Optional[ComparisonConfig]:
    """
    Load comparison configuration from JSON file.

    Args:
        filepath: Path to JSON configuration file

    Returns:
        ComparisonConfig object or None if loading fails
    """
    if not os.path.exists(filepath):
        logger.error(f"Configuration file not found: {filepath}")
        return None

    try:
        with open(filepath, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Error loading configuration from {filepath}: {e}")
        return None

    if not isinstance(data, dict):
        logger.error(f"Configuration file {filepath} does not contain an object")
        return None

    config = ComparisonConfig.from_dict(data)
    errors = config.validate()
    if errors:
        for error in errors:
            logger.warning(f"Configuration {filepath}: {error}")

    logger.info(f"Configuration loaded from {filepath}")
    return config
