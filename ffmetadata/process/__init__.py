"""External ffmpeg process execution."""

from .runner import ProcessRunner

__all__ = ["ProcessRunner"]
