"""Real-time sitting posture classification from a video stream."""

__version__ = "0.1.0"
