"""Release and change domain objects."""

from __future__ import annotations

from .change import Change
from .loader import load_release
from .release import Release

__all__ = ["Change", "Release", "load_release"]
