"""Microlearning platform: quiz grading and learning analytics."""

__version__ = "0.1.0"
