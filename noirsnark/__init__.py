"""Noir proof orchestration for the Dark Forest contract test harness."""

__version__ = "0.1.0"
