"""
Playback module for SwingSync.

Contains the stream adapter that follows the synchronization engine and the
pyglet media backend it drives.
"""

from .stream_adapter import MediaHandle, StreamAdapter
from .media import PygletMediaHandle, attach_stream, load_stream, probe_duration

__all__ = [
    'MediaHandle',
    'StreamAdapter',
    'PygletMediaHandle',
    'attach_stream',
    'load_stream',
    'probe_duration',
]
