"""Reconcile time-tracking entries and push them to an invoicing target."""

__version__ = "0.1.0"
