"""Shared helpers for waste_classifier."""
