"""Scheduled alert evaluation and real-time notification delivery."""

__version__ = "0.1.0"
