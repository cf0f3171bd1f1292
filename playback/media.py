"""
pyglet media backend for compared streams.

Wraps pyglet.media.Player in the MediaHandle interface the StreamAdapter
drives, loads video files and registers their durations with a
ComparisonTimeline. Durations come from pyglet's decoder when it reports one
and from FFprobe otherwise.

Example Usage:
    timeline = ComparisonTimeline()
    adapter_a = attach_stream(timeline, STREAM_A, "reference.mp4")
    adapter_b = attach_stream(timeline, STREAM_B, "student.mp4")
    timeline.play()
    pyglet.app.run()
"""

import logging
import os
from functools import lru_cache
from typing import Optional, Tuple

import ffmpeg
import pyglet

from config.ffmpeg_config import get_ffprobe_cmd
from core.timeline import ComparisonTimeline
from .stream_adapter import StreamAdapter

logger = logging.getLogger(__name__)


class PygletMediaHandle:
    """
    MediaHandle over a pyglet media player.

    The playback rate maps onto the player's pitch, which pyglet uses to
    speed up or slow down playback.
    """

    def __init__(self, player: 'pyglet.media.Player', duration: Optional[float] = None):
        self.player = player
        self._duration = duration

    @property
    def duration(self) -> Optional[float]:
        if self._duration is not None:
            return self._duration
        source = self.player.source
        return source.duration if source is not None else None

    @property
    def position(self) -> float:
        return self.player.time

    @property
    def rate(self) -> float:
        return self.player.pitch

    @rate.setter
    def rate(self, value: float):
        self.player.pitch = value

    def play(self):
        self.player.play()

    def pause(self):
        self.player.pause()

    def seek(self, seconds: float):
        self.player.seek(seconds)


@lru_cache(maxsize=128)
def probe_duration(video_path: str) -> Optional[float]:
    """
    Get video duration in seconds using FFprobe.

    Cached to avoid repeated probes of the same file.

    Args:
        video_path: Path to video file

    Returns:
        Duration in seconds, or None if unable to read
    """
    if not os.path.exists(video_path):
        logger.error(f"probe_duration: file not found: {video_path}")
        return None

    try:
        probe = ffmpeg.probe(video_path, cmd=get_ffprobe_cmd())
    except ffmpeg.Error as e:
        error_msg = e.stderr.decode('utf-8', errors='replace') if e.stderr else str(e)
        logger.error(f"probe_duration: FFprobe error for {video_path}: {error_msg}")
        return None

    duration_str = probe.get('format', {}).get('duration')
    if duration_str is None:
        logger.error(f"probe_duration: no duration metadata in {video_path}")
        return None

    try:
        return float(duration_str)
    except (TypeError, ValueError) as e:
        logger.error(f"probe_duration: invalid duration {duration_str!r} in {video_path}: {e}")
        return None


def load_stream(video_path: str) -> Tuple[PygletMediaHandle, float]:
    """
    Load a video file into a paused, muted pyglet player.

    Args:
        video_path: Path to video file

    Returns:
        (handle, duration_seconds)

    Raises:
        FileNotFoundError: If the file does not exist
        RuntimeError: If no duration can be determined
    """
    if not os.path.exists(video_path):
        raise FileNotFoundError(f"Video file not found: {video_path}")

    source = pyglet.media.load(video_path)
    duration = source.duration
    if not duration:
        logger.info(f"load_stream: pyglet reported no duration for {video_path}, probing")
        duration = probe_duration(video_path)
    if not duration:
        raise RuntimeError(f"Could not determine duration of {video_path}")

    player = pyglet.media.Player()
    player.queue(source)
    player.volume = 0  # comparison is visual; both streams are muted

    logger.info(f"load_stream: {os.path.basename(video_path)} ({duration:.2f}s)")
    return PygletMediaHandle(player, duration), duration


def attach_stream(timeline: ComparisonTimeline, stream_id: str, video_path: str) -> StreamAdapter:
    """
    Load a video, register its duration and attach an adapter for it.

    Args:
        timeline: Synchronization engine for the session
        stream_id: "A" or "B"
        video_path: Path to video file

    Returns:
        StreamAdapter following the timeline
    """
    handle, duration = load_stream(video_path)
    timeline.register_stream_duration(stream_id, duration)
    return StreamAdapter(timeline, stream_id, handle)
