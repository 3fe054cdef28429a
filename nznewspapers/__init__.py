"""Reconciliation tools for the New Zealand newspapers dataset."""

__version__ = "0.3.0"
