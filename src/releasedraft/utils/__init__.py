"""Shared helpers for releasedraft."""
