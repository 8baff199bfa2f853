"""Repodeck - multi-repository Git dashboard engine."""

__version__ = "0.1.0"
