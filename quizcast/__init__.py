"""Real-time quiz/poll broadcast service."""

__version__ = "0.1.0"
