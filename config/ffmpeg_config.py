"""
FFprobe location for SwingSync.

FFprobe is only needed when a media backend cannot report a stream's
duration itself. Lookup order: local installation (ffmpeg/bin/) → system PATH
→ FFmpegNotFoundError.

Usage:
    from config.ffmpeg_config import get_ffprobe_cmd

    probe = ffmpeg.probe(video, cmd=get_ffprobe_cmd())
"""

import logging
import subprocess
import sys
from functools import lru_cache
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class FFmpegNotFoundError(Exception):
    """Raised when the FFprobe executable cannot be found."""
    pass


def _get_project_root() -> Path:
    return Path(__file__).resolve().parent.parent


def _find_local_ffprobe() -> Optional[str]:
    """
    Check for FFprobe in the project's ffmpeg/bin directory.

    Returns:
        Path to the executable, or None if not present
    """
    name = 'ffprobe.exe' if sys.platform == 'win32' else 'ffprobe'
    ffprobe_path = _get_project_root() / 'ffmpeg' / 'bin' / name
    if ffprobe_path.exists():
        return str(ffprobe_path)
    return None


def _find_system_ffprobe() -> Optional[str]:
    """
    Check whether ffprobe runs from the system PATH.

    Returns:
        'ffprobe' if available, None otherwise
    """
    try:
        result = subprocess.run(['ffprobe', '-version'], capture_output=True, timeout=5)
        if result.returncode == 0:
            return 'ffprobe'
    except (subprocess.TimeoutExpired, FileNotFoundError, OSError):
        pass
    return None


@lru_cache(maxsize=1)
def get_ffprobe_cmd() -> str:
    """
    Get the FFprobe executable path or command.

    Returns:
        Path to ffprobe executable or command name

    Raises:
        FFmpegNotFoundError: If FFprobe cannot be found
    """
    local = _find_local_ffprobe()
    if local:
        logger.debug(f"Using local ffprobe: {local}")
        return local

    system = _find_system_ffprobe()
    if system:
        logger.debug("Using ffprobe from system PATH")
        return system

    raise FFmpegNotFoundError(
        "FFprobe not found. Install FFmpeg system-wide (so 'ffprobe' is on PATH) "
        f"or place it at {_get_project_root() / 'ffmpeg' / 'bin'}"
    )
