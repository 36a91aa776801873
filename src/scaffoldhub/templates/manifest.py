"""Template manifest (``metadata/template.toml``) parsing and parameter validation."""

from __future__ import annotations

import re
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Tuple

PROJECT_NAME = "project-name"
SUPPORTED_MANIFEST_VERSIONS = {"1"}
PARAMETER_TYPES = {"string", "bool"}

_TRUE = {"true", "yes", "y", "1", "on"}
_FALSE = {"false", "no", "n", "0", "off"}


class ManifestError(ValueError):
    """Raised for invalid manifests or parameter values."""


@dataclass(slots=True)
class TemplateParameter:
    name: str
    type: str = "string"
    prompt: str = ""
    default: str | None = None
    pattern: str | None = None
    allowed_values: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, name: str, raw: Mapping[str, Any]) -> "TemplateParameter":
        kind = str(raw.get("type", "string"))
        if kind not in PARAMETER_TYPES:
            raise ManifestError(f"Parameter '{name}' has unsupported type '{kind}'")
        default = raw.get("default")
        if isinstance(default, bool):
            default = "true" if default else "false"
        pattern = raw.get("pattern")
        if pattern is not None:
            try:
                re.compile(pattern)
            except re.error as exc:
                raise ManifestError(f"Parameter '{name}' has an invalid pattern: {exc}") from exc
        return cls(
            name=name,
            type=kind,
            prompt=str(raw.get("prompt") or name),
            default=None if default is None else str(default),
            pattern=pattern,
            allowed_values=tuple(str(value) for value in raw.get("allowed_values", ())),
        )

    def validate(self, value: str) -> str:
        """Return the normalized value or raise ManifestError."""
        if self.type == "bool":
            lowered = value.strip().lower()
            if lowered in _TRUE:
                return "true"
            if lowered in _FALSE:
                return "false"
            raise ManifestError(f"{self.name}: '{value}' is not a yes/no value")

        if self.allowed_values and value not in self.allowed_values:
            choices = ", ".join(self.allowed_values)
            raise ManifestError(f"{self.name}: '{value}' is not one of {choices}")
        if self.pattern and not re.fullmatch(self.pattern, value):
            raise ManifestError(f"{self.name}: '{value}' does not match {self.pattern}")
        return value


@dataclass(slots=True)
class TemplateManifest:
    id: str
    description: str = ""
    tags: List[str] = field(default_factory=list)
    parameters: Dict[str, TemplateParameter] = field(default_factory=dict)


def parse_manifest(raw: Mapping[str, Any], *, source: str = "<manifest>") -> TemplateManifest:
    version = str(raw.get("manifest_version", "1"))
    if version not in SUPPORTED_MANIFEST_VERSIONS:
        raise ManifestError(f"{source}: unsupported manifest_version {version}")

    template_id = raw.get("id")
    if not template_id or not isinstance(template_id, str):
        raise ManifestError(f"{source}: missing template id")

    raw_parameters = raw.get("parameters") or {}
    if not isinstance(raw_parameters, dict):
        raise ManifestError(f"{source}: [parameters] must be a table")

    parameters: Dict[str, TemplateParameter] = {}
    for name, spec in raw_parameters.items():
        if name == PROJECT_NAME:
            raise ManifestError(f"{source}: '{PROJECT_NAME}' is built in and cannot be redefined")
        if not isinstance(spec, dict):
            raise ManifestError(f"{source}: parameter '{name}' must be a table")
        parameters[name] = TemplateParameter.from_dict(name, spec)

    return TemplateManifest(
        id=template_id,
        description=str(raw.get("description", "")),
        tags=[str(tag) for tag in raw.get("tags", [])],
        parameters=parameters,
    )


def load_manifest(path: Path) -> TemplateManifest:
    try:
        with path.open("rb") as handle:
            raw = tomllib.load(handle)
    except FileNotFoundError as exc:
        raise ManifestError(f"Manifest not found: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ManifestError(f"{path}: {exc}") from exc
    return parse_manifest(raw, source=str(path))
