"""Visibility-aware faceted search over explore listings."""
