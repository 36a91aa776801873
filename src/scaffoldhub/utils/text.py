"""Text helpers for matching titles and rendering placeholder values."""

from __future__ import annotations

import re
from typing import Callable, Dict, Set

_WORD_SPLIT = re.compile(r"[^0-9a-zA-Z]+")
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def split_words(text: str) -> list[str]:
    """Split text into lowercase words on punctuation, whitespace and camelCase."""
    if not text:
        return []
    spaced = _CAMEL_BOUNDARY.sub(" ", text)
    return [word.lower() for word in _WORD_SPLIT.split(spaced) if word]


def title_words(title: str) -> Set[str]:
    """Return the set of lowercase words making up a title."""
    return {word for word in _WORD_SPLIT.split(title.lower()) if word}


def to_snake_case(text: str) -> str:
    return "_".join(split_words(text))


def to_kebab_case(text: str) -> str:
    return "-".join(split_words(text))


def to_pascal_case(text: str) -> str:
    return "".join(word.capitalize() for word in split_words(text))


FILTERS: Dict[str, Callable[[str], str]] = {
    "snake_case": to_snake_case,
    "kebab_case": to_kebab_case,
    "pascal_case": to_pascal_case,
    "lower": str.lower,
    "upper": str.upper,
}
