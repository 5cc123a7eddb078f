"""Availability tracking, fallback routing and retry policy."""
