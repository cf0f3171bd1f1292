"""
Configuration structures for SwingSync.

This module contains the comparison session configuration and the FFprobe
lookup used by the media backend.
"""

from .comparison import ComparisonConfig, load_config, save_config, START_LABEL, END_LABEL, SWING_STAGES

__all__ = ['ComparisonConfig', 'load_config', 'save_config', 'START_LABEL', 'END_LABEL', 'SWING_STAGES']
