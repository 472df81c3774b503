"""Sentiflow: feedback sentiment, emotion and theme analysis backend."""

__version__ = "0.1.0"
