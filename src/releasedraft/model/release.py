"""The Release aggregate that owns an ordered list of changes."""

from __future__ import annotations

from collections import Counter
from typing import Any, Iterable, Iterator, Mapping

from ..errors import MalformedChangeError
from ..logging_config import get_logger
from .change import Change

LOGGER = get_logger(__name__)


class Release:
    """Release metadata plus its changes, in input order.

    Mappings passed as changes are converted with :meth:`Change.from_mapping`;
    malformed ones are logged and dropped so ``changes`` never holds gaps.
    """

    def __init__(
        self,
        code: str,
        *,
        date: Any = None,
        commit: str | None = None,
        memo: str | None = None,
        changes: Iterable[Change | Mapping[str, Any] | None] = (),
    ) -> None:
        self.code = code
        self.date = date
        self.commit = commit
        self.memo = memo
        self._changes: list[Change] = []
        for candidate in changes or ():
            change = self._coerce(candidate)
            if change is not None:
                self.add_change(change)

    def _coerce(self, candidate: Any) -> Change | None:
        if candidate is None:
            return None
        if isinstance(candidate, Change):
            return candidate
        if isinstance(candidate, Mapping):
            try:
                return Change.from_mapping(candidate)
            except MalformedChangeError as exc:
                LOGGER.warning(
                    "Skipping malformed change",
                    extra={"release": self.code, "reason": str(exc), **exc.context},
                )
                return None
        LOGGER.warning(
            "Skipping change of unsupported type",
            extra={"release": self.code, "type": type(candidate).__name__},
        )
        return None

    @property
    def changes(self) -> tuple[Change, ...]:
        return tuple(self._changes)

    def __iter__(self) -> Iterator[Change]:
        return iter(self._changes)

    def __len__(self) -> int:
        return len(self._changes)

    def add_change(self, change: Change) -> Change:
        change.attach(self)
        self._changes.append(change)
        return change

    @property
    def change_count(self) -> int:
        return len(self._changes)

    @property
    def contributors(self) -> list[str]:
        return list(dict.fromkeys(change.lead for change in self._changes if change.lead))

    @property
    def tag_stats(self) -> dict[str, int]:
        return dict(Counter(tag for change in self._changes for tag in change.tags))

    def to_dict(self) -> dict[str, Any]:
        payload = {
            "code": self.code,
            "version": self.code,
            "date": self.date,
            "commit": self.commit,
            "memo": self.memo,
            "change_count": self.change_count,
            "tag_stats": self.tag_stats,
            "contributors": self.contributors,
        }
        return {key: value for key, value in payload.items() if value is not None}

    def changes_as_dicts(self) -> list[dict[str, Any]]:
        return [change.to_dict() for change in self._changes]

    def __repr__(self) -> str:
        return f"Release(code={self.code!r}, changes={self.change_count})"


__all__ = ["Release"]
