"""
MindCare Levels - Adaptive task-level detection from daily mood history.

This package analyzes the last week of self-reported mood, recommends a task
difficulty level and records accepted suggestions in the user's settings.
"""

__version__ = "0.1.0"
