"""Tag and title filtering over the hub index."""

from __future__ import annotations

from typing import Iterable, List, Sequence

from scaffoldhub.models import Category, IndexEntry


def is_terms_match(entry: IndexEntry, terms: Sequence[str]) -> bool:
    """Every term must be one of the entry's tags or one of its title words."""
    tags = set(entry.tags)
    words = entry.title_words()
    for term in terms:
        needle = term.lower()
        if needle not in tags and needle not in words:
            return False
    return True


def is_category_match(entry: IndexEntry, category: Category = Category.TEMPLATE) -> bool:
    return entry.category == category


def find_matches(
    entries: Iterable[IndexEntry],
    terms: Sequence[str],
    *,
    templates_only: bool = True,
) -> List[IndexEntry]:
    """Return matching entries sorted by title."""
    matches = [
        entry
        for entry in entries
        if is_terms_match(entry, terms) and (not templates_only or is_category_match(entry))
    ]
    return sorted(matches, key=lambda entry: entry.title)
