"""Incremental duplicate-customer matching for customer-creation forms."""

__version__ = "0.1.0"
