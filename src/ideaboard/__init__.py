"""Ideaboard: shared idea portfolio with buffered scoring and ranking."""

__version__ = "0.1.0"
