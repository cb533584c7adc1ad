"""Flashcard-style phrase learning sessions."""

__version__ = "0.1.0"
