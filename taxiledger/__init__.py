"""Taxi Ledger - trip, expense and shift bookkeeping for taxi drivers."""

__version__ = "1.0.0"
