"""Bulk product import: parse -> normalize -> validate -> gated apply."""

__version__ = "0.1.0"
