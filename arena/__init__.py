"""Autonomous gladiator arena simulation."""

__version__ = "0.1.0"
