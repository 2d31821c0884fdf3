"""Catalog persistence collaborators (PostgreSQL and in-memory)."""
