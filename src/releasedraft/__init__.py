"""releasedraft: map tracker payloads into release and change records."""

from __future__ import annotations

__version__ = "0.4.0"

from .errors import ReleaseDraftError  # noqa: E402
from .model import Change, Release  # noqa: E402

__all__ = ["Change", "Release", "ReleaseDraftError", "__version__"]
