"""Shared fixtures: a small on-disk template repository."""

from __future__ import annotations

from pathlib import Path

import pytest

HTTP_PY_MANIFEST = """\
manifest_version = "1"
id = "http-py"
description = "HTTP handler written in Python"
tags = ["http", "python"]

[parameters]
project-description = { type = "string", prompt = "Description", default = "A web app" }
http-path = { type = "string", prompt = "HTTP path", default = "/...", pattern = "^/\\\\S*$" }
"""

STATIC_MANIFEST = """\
manifest_version = "1"
id = "static-site"
description = "Static file server"

[parameters]
enable-cache = { type = "bool", prompt = "Enable caching?", default = true }
"""


def write_template(root: Path, directory: str, manifest: str, files: dict[str, bytes | str]) -> Path:
    template_dir = root / "templates" / directory
    (template_dir / "metadata").mkdir(parents=True)
    (template_dir / "metadata" / "template.toml").write_text(manifest, encoding="utf-8")
    for relative, content in files.items():
        target = template_dir / "content" / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            target.write_bytes(content)
        else:
            target.write_text(content, encoding="utf-8")
    return template_dir


@pytest.fixture
def template_repo(tmp_path: Path) -> Path:
    """Directory laid out like a template git repository."""
    repo = tmp_path / "repo"
    write_template(
        repo,
        "http-py",
        HTTP_PY_MANIFEST,
        {
            "README.md": "# {{ project-name }}\n\n{{ project-description }}\n",
            "src/{{project-name | snake_case}}/app.py": (
                'ROUTE = "{{ http-path }}"\n'
                "class {{ project-name | pascal_case }}Handler:\n    pass\n"
            ),
            "assets/logo.bin": b"\xff\xfe{{ project-name }}\x00",
        },
    )
    write_template(
        repo,
        "static",
        STATIC_MANIFEST,
        {"config.toml": "name = \"{{ project-name | kebab_case }}\"\ncache = {{ enable-cache }}\n"},
    )
    return repo


@pytest.fixture
def scaffoldhub_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    home = tmp_path / "home"
    monkeypatch.setenv("SCAFFOLDHUB_HOME", str(home))
    return home
