"""Spaced-repetition vocabulary review for the Latin of Macrobius."""

__version__ = "0.1.0"
