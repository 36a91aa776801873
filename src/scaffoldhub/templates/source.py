"""Where templates come from: a git repository or a local directory."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

from scaffoldhub.config import tool_version as _tool_version

LOGGER = logging.getLogger(__name__)

GIT_TIMEOUT = 300
TAG_PREFIX = "scaffoldhub/templates/v"


class SourceError(RuntimeError):
    """Raised when a template source cannot be fetched."""


def _run_git(args: Sequence[str], *, timeout: int = GIT_TIMEOUT) -> str:
    cmd: List[str] = ["git", *args]
    LOGGER.debug("Running %s", " ".join(cmd))
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    except FileNotFoundError as exc:
        raise SourceError("git is not installed or not on PATH") from exc
    except subprocess.TimeoutExpired as exc:
        raise SourceError(f"git {args[0]} timed out after {timeout}s") from exc
    if result.returncode != 0:
        detail = (result.stderr or result.stdout).strip()
        raise SourceError(f"git {args[0]} failed: {detail}")
    return result.stdout


def compatible_tag(version: str) -> str:
    """Tag a template repository uses to mark templates for a tool release."""
    parts = version.split(".")
    major_minor = ".".join(parts[:2]) if len(parts) >= 2 else version
    return f"{TAG_PREFIX}{major_minor}"


def list_remote_tags(url: str) -> List[str]:
    output = _run_git(["ls-remote", "--tags", url], timeout=60)
    tags = []
    for line in output.splitlines():
        _, _, ref = line.partition("\t")
        if not ref.startswith("refs/tags/") or ref.endswith("^{}"):
            continue
        tags.append(ref[len("refs/tags/") :])
    return tags


@dataclass(slots=True)
class TemplateSource:
    """A git repository (optionally pinned to a branch or tag) or a local directory."""

    location: str
    branch: str | None = None
    tool_version: str | None = None
    is_git: bool = True

    @classmethod
    def from_git(
        cls, url: str, branch: str | None = None, tool_version: str | None = None
    ) -> "TemplateSource":
        if not url:
            raise SourceError("Template repository url is empty")
        return cls(
            location=url,
            branch=branch,
            tool_version=tool_version if tool_version is not None else _tool_version(),
            is_git=True,
        )

    @classmethod
    def from_dir(cls, path: Path) -> "TemplateSource":
        return cls(location=str(Path(path).resolve()), is_git=False)

    def __str__(self) -> str:
        if self.branch:
            return f"{self.location}@{self.branch}"
        return self.location

    def resolve_branch(self) -> str | None:
        """Explicit branch, else the tag matching the tool version when the remote has one."""
        if self.branch or not self.tool_version:
            return self.branch
        wanted = compatible_tag(self.tool_version)
        try:
            tags = list_remote_tags(self.location)
        except SourceError as exc:
            LOGGER.debug("Could not list tags of %s: %s", self.location, exc)
            return None
        if wanted in tags:
            LOGGER.info("Using templates tagged %s", wanted)
            return wanted
        return None

    def fetch(self, dest: Path) -> Path:
        """Make the source available on disk and return its root directory."""
        if not self.is_git:
            root = Path(self.location)
            if not root.is_dir():
                raise SourceError(f"Template directory not found: {root}")
            return root

        checkout = Path(dest) / "repo"
        cmd = ["clone", "--depth", "1"]
        branch = self.resolve_branch()
        if branch:
            cmd += ["--branch", branch]
        cmd += [self.location, str(checkout)]
        _run_git(cmd)
        return checkout
