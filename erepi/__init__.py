"""Eリピ: listen-and-repeat English pronunciation practice."""

__version__ = "0.1.0"
