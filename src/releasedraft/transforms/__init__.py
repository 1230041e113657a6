"""Deterministic text transforms applied to change fields."""
