"""Core scaffoldhub data models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Set, Tuple

from scaffoldhub.utils.text import title_words, to_kebab_case


class Category(str, Enum):
    """Kind of artifact listed in the hub index."""

    TEMPLATE = "template"
    PLUGIN = "plugin"
    SAMPLE = "sample"
    LIBRARY = "library"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Any) -> "Category":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return cls.OTHER


def _first(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = raw.get(key)
        if value not in (None, ""):
            return value
    return None


@dataclass(frozen=True, slots=True)
class IndexEntry:
    """One artifact advertised by the hub index."""

    title: str
    author: str
    summary: str
    tags: Tuple[str, ...]
    url: str
    id: str
    category: Category = Category.TEMPLATE

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "IndexEntry":
        """Build an entry from one object of the index document.

        Raises:
            ValueError: if the object has no title or no repository URL.
        """
        title = _first(raw, "title", "name")
        if not title:
            raise ValueError("Index entry has no title")
        url = _first(raw, "url", "repo", "repository")
        if not url:
            raise ValueError(f"Index entry '{title}' has no repository url")

        tags = raw.get("tags") or ()
        if isinstance(tags, str):
            tags = [tags]
        elif not isinstance(tags, (list, tuple)):
            raise ValueError(f"Index entry '{title}' has malformed tags")

        template_id = _first(raw, "id", "template_id", "templateId") or to_kebab_case(str(title))
        return cls(
            title=str(title),
            author=str(_first(raw, "author") or "unknown"),
            summary=str(_first(raw, "summary", "description") or ""),
            tags=tuple(str(tag).strip().lower() for tag in tags if str(tag).strip()),
            url=str(url),
            id=str(template_id),
            category=Category.parse(raw.get("category") or Category.TEMPLATE),
        )

    def title_words(self) -> Set[str]:
        return title_words(self.title)


@dataclass(slots=True)
class InstalledTemplate:
    """Row of the local template store."""

    id: str
    source: str
    path: Path
    content_sha256: str
    description: str = ""
    installed_at: str | None = None
