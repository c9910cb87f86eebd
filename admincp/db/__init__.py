"""Data access layer for the admin console.

This sub-package maps the typed ``Group``/``User`` models onto attribute bags
and runs CRUD statements against whichever SQL backend is configured, so the
business logic above it stays storage-agnostic.
"""
