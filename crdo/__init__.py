"""
Workout tracking engine.

This package turns raw location fixes into workout distance, pace and
calories, classifies completed runs, and keeps streak and daily goal
bookkeeping for the CRDO fitness app.
"""

__version__ = "0.1.0"
