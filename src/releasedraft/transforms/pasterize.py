"""Convert imperative verbs ("Fix", "add") to past tense ("Fixed", "added")."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
import re
from typing import Any, Mapping

import yaml

from ..paths import VERB_PAST_TENSES_PATH

_WORD = re.compile(r"\b(\w+)\b")


@lru_cache(maxsize=None)
def verb_past_tenses(path: Path = VERB_PAST_TENSES_PATH) -> Mapping[str, str]:
    """Return the lowercase present-to-past verb table."""

    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    return {str(key).lower(): str(value) for key, value in data.items()}


def _match_case(word: str, replacement: str) -> str:
    if word.isupper() and len(word) > 1:
        return replacement.upper()
    if word == word.capitalize():
        return replacement.capitalize()
    return replacement


def pasterize(text: Any, table: Mapping[str, str] | None = None) -> Any:
    """Rewrite every known verb in ``text`` to past tense, keeping its casing.

    Non-string and empty input is returned unchanged.
    """

    if not isinstance(text, str) or not text:
        return text
    verbs = table if table is not None else verb_past_tenses()

    def _replace(match: re.Match[str]) -> str:
        word = match.group(1)
        replacement = verbs.get(word.lower())
        if replacement is None:
            return word
        return _match_case(word, replacement)

    return _WORD.sub(_replace, text)


__all__ = ["pasterize", "verb_past_tenses"]
