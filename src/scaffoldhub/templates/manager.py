"""Installing templates from a source and looking them up locally."""

from __future__ import annotations

import logging
import re
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Protocol

from scaffoldhub.config import AppConfig
from scaffoldhub.models import InstalledTemplate
from scaffoldhub.templates.manifest import ManifestError, load_manifest
from scaffoldhub.templates.registry import SQLiteTemplateRegistry
from scaffoldhub.templates.run import Template, TemplateError
from scaffoldhub.templates.source import TemplateSource
from scaffoldhub.utils.files import compute_tree_sha256

LOGGER = logging.getLogger(__name__)

MANIFEST_PATH = Path("metadata") / "template.toml"
TEMPLATE_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


class ProgressReporter(Protocol):
    def report(self, message: str) -> None:
        ...


class DiscardingProgressReporter:
    def report(self, message: str) -> None:
        pass


@dataclass(slots=True)
class InstallOptions:
    update: bool = False


@dataclass(slots=True)
class InstallStats:
    installed: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0
    template_ids: list[str] = field(default_factory=list)

    def increment(self, status: str, template_id: str) -> None:
        if status == "installed":
            self.installed += 1
        elif status == "updated":
            self.updated += 1
        elif status == "skipped":
            self.skipped += 1
        else:
            self.failed += 1
        self.template_ids.append(template_id)


class TemplateManager:
    """Coordinates template installation and the local template store."""

    def __init__(self, templates_dir: Path, registry: SQLiteTemplateRegistry) -> None:
        self.templates_dir = Path(templates_dir)
        self.registry = registry

    @classmethod
    def from_config(cls, config: AppConfig | None = None) -> "TemplateManager":
        config = config or AppConfig()
        home = config.resolve_home(Path.cwd())
        home.mkdir(parents=True, exist_ok=True)
        registry = SQLiteTemplateRegistry(config.registry_path)
        return cls(config.templates_dir, registry)

    def close(self) -> None:
        self.registry.close()

    def install(
        self,
        source: TemplateSource,
        options: InstallOptions | None = None,
        reporter: ProgressReporter | None = None,
    ) -> InstallStats:
        """Install every template found under ``templates/`` in the source."""
        options = options or InstallOptions()
        reporter = reporter or DiscardingProgressReporter()
        self.templates_dir.mkdir(parents=True, exist_ok=True)

        stats = InstallStats()
        with tempfile.TemporaryDirectory(prefix="scaffoldhub-") as tmp:
            reporter.report(f"Fetching templates from {source}")
            root = source.fetch(Path(tmp))
            templates_root = root / "templates"
            if not templates_root.is_dir():
                raise TemplateError(f"No templates directory found in {source}")

            for template_dir in sorted(p for p in templates_root.iterdir() if p.is_dir()):
                try:
                    status, template_id = self._install_single(template_dir, source, options)
                except (ManifestError, TemplateError) as exc:
                    LOGGER.error("Failed to install %s: %s", template_dir.name, exc)
                    reporter.report(f"Failed to install {template_dir.name}: {exc}")
                    stats.increment("failed", template_dir.name)
                    continue
                reporter.report(f"{status.capitalize()} template {template_id}")
                stats.increment(status, template_id)

        LOGGER.info(
            "Installed %d, updated %d, skipped %d, failed %d template(s) from %s",
            stats.installed,
            stats.updated,
            stats.skipped,
            stats.failed,
            source,
        )
        return stats

    def _install_single(
        self, template_dir: Path, source: TemplateSource, options: InstallOptions
    ) -> tuple[str, str]:
        manifest = load_manifest(template_dir / MANIFEST_PATH)
        if not TEMPLATE_ID_PATTERN.match(manifest.id):
            raise TemplateError(f"Invalid template id '{manifest.id}'")

        sha256 = compute_tree_sha256(template_dir)
        dest = self.templates_dir / manifest.id
        existing = self.registry.get(manifest.id)
        force = options.update or not dest.is_dir()
        if existing is not None and existing.content_sha256 == sha256 and not force:
            return "skipped", manifest.id

        if dest.exists():
            shutil.rmtree(dest)
        shutil.copytree(template_dir, dest, ignore=shutil.ignore_patterns(".git"))

        status = self.registry.upsert(
            InstalledTemplate(
                id=manifest.id,
                source=str(source),
                path=dest,
                content_sha256=sha256,
                description=manifest.description,
            ),
            force=force,
        )
        return ("installed" if status == "inserted" else status), manifest.id

    def get(self, template_id: str) -> Template | None:
        record = self.registry.get(template_id)
        if record is None:
            return None
        if not record.path.is_dir():
            LOGGER.warning("Template %s is registered but %s is missing", template_id, record.path)
            return None
        return Template(record.path, load_manifest(record.path / MANIFEST_PATH))

    def list(self) -> List[InstalledTemplate]:
        return self.registry.list()

    def prune(self) -> int:
        """Remove templates whose directories no longer exist."""
        return self.registry.remove_missing()
