"""Application configuration defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

FALLBACK_VERSION = "0.1.0"
DEFAULT_INDEX_URL = "https://hub.scaffoldhub.dev/api/index.json"
INDEX_URL_ENV = "SCAFFOLDHUB_INDEX_URL"
HOME_ENV = "SCAFFOLDHUB_HOME"


def tool_version() -> str:
    """Installed scaffoldhub version, used to pick compatible template tags."""
    try:
        return version("scaffoldhub")
    except PackageNotFoundError:
        return FALLBACK_VERSION


def _get_default_index_url() -> str:
    return os.environ.get(INDEX_URL_ENV) or DEFAULT_INDEX_URL


def _get_default_home() -> Path:
    """Get the directory holding installed templates and the template store."""
    override = os.environ.get(HOME_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".scaffoldhub"


@dataclass(slots=True)
class AppConfig:
    index_url: str = field(default_factory=_get_default_index_url)
    home: Path | None = None
    timeout: int = 15
    max_retries: int = 3

    def __post_init__(self) -> None:
        if self.home is None:
            self.home = _get_default_home()

    def resolve_home(self, base_dir: Path | None = None) -> Path:
        if self.home is None:
            self.home = _get_default_home()
        if Path(self.home).is_absolute() or base_dir is None:
            return Path(self.home)
        return base_dir / self.home

    @property
    def templates_dir(self) -> Path:
        return self.resolve_home(Path.cwd()) / "templates"

    @property
    def registry_path(self) -> Path:
        return self.resolve_home(Path.cwd()) / "templates.db"
