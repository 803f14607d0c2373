"""Personalized spending recommendations with batch orchestration."""

__version__ = "0.1.0"
