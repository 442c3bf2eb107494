"""Adaptive local-video playback core for the floating-window player."""

__version__ = "0.1.0"
