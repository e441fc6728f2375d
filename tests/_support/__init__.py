"""Shared test helpers (fakes, builders)."""
