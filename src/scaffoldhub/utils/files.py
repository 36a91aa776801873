"""Utility helpers for working with template files."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Iterator

IGNORED_NAMES = {".git", ".DS_Store", "__pycache__"}


def iter_template_files(root: Path) -> Iterator[Path]:
    """Yield files under root in a stable order, skipping VCS and cache entries."""
    for item in sorted(root.rglob("*")):
        relative = item.relative_to(root)
        if any(part in IGNORED_NAMES for part in relative.parts):
            continue
        if item.is_file():
            yield item


def compute_sha256(path: Path) -> str:
    """Compute SHA256 hash for a file."""
    sha = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(1 << 20), b""):
            sha.update(chunk)
    return sha.hexdigest()


def compute_tree_sha256(root: Path) -> str:
    """Hash relative paths and contents of every file under root."""
    sha = hashlib.sha256()
    for path in iter_template_files(root):
        sha.update(path.relative_to(root).as_posix().encode("utf-8"))
        sha.update(b"\0")
        sha.update(compute_sha256(path).encode("ascii"))
        sha.update(b"\n")
    return sha.hexdigest()


def is_empty_dir(path: Path) -> bool:
    return path.is_dir() and not any(path.iterdir())
