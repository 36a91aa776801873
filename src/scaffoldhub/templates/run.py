"""Rendering an installed template into a new application directory."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Mapping, Protocol, Tuple

from scaffoldhub.templates.manifest import PROJECT_NAME, TemplateManifest, TemplateParameter
from scaffoldhub.utils.files import is_empty_dir, iter_template_files
from scaffoldhub.utils.text import FILTERS

LOGGER = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(
    r"\{\{\s*([A-Za-z0-9_-]+)\s*(?:\|\s*([A-Za-z_]+)\s*)?\}\}"
)


class TemplateError(RuntimeError):
    """Raised when a template cannot be installed, found or rendered."""


class TemplateVariant(str, Enum):
    NEW_APPLICATION = "new-application"


class Prompter(Protocol):
    def ask(self, parameter: TemplateParameter) -> str:
        ...


@dataclass(slots=True)
class RunOptions:
    variant: TemplateVariant
    name: str
    output_path: Path
    values: Dict[str, str] = field(default_factory=dict)
    accept_defaults: bool = False


@dataclass(slots=True)
class RunResult:
    output_path: Path
    files: List[Path] = field(default_factory=list)


def render_text(text: str, values: Mapping[str, str], *, source: str = "<template>") -> str:
    """Substitute ``{{ name }}`` and ``{{ name | filter }}`` placeholders."""

    def _replace(match: re.Match[str]) -> str:
        name, filter_name = match.group(1), match.group(2)
        if name not in values:
            raise TemplateError(f"{source}: unknown placeholder '{name}'")
        value = values[name]
        if filter_name:
            try:
                value = FILTERS[filter_name](value)
            except KeyError as exc:
                raise TemplateError(f"{source}: unknown filter '{filter_name}'") from exc
        return value

    return PLACEHOLDER_PATTERN.sub(_replace, text)


class Template:
    """An installed template: its manifest plus the ``content/`` tree to render."""

    def __init__(self, root: Path, manifest: TemplateManifest) -> None:
        self.root = Path(root)
        self.manifest = manifest

    @property
    def id(self) -> str:
        return self.manifest.id

    @property
    def description(self) -> str:
        return self.manifest.description

    @property
    def content_dir(self) -> Path:
        return self.root / "content"

    def resolve_values(
        self, options: RunOptions, prompter: Prompter | None = None
    ) -> Dict[str, str]:
        values: Dict[str, str] = {PROJECT_NAME: options.name}
        parameters = self.manifest.parameters

        for name in sorted(set(options.values) - set(parameters) - {PROJECT_NAME}):
            LOGGER.warning("Ignoring value for unknown parameter '%s'", name)

        for name, parameter in parameters.items():
            if name in options.values:
                values[name] = parameter.validate(options.values[name])
            elif options.accept_defaults and parameter.default is not None:
                values[name] = parameter.validate(parameter.default)
            elif prompter is not None:
                values[name] = prompter.ask(parameter)
            elif parameter.default is not None:
                values[name] = parameter.validate(parameter.default)
            else:
                raise TemplateError(f"No value provided for parameter '{name}'")
        return values

    def _render_files(self, values: Mapping[str, str]) -> List[Tuple[str, bytes]]:
        content = self.content_dir
        if not content.is_dir():
            raise TemplateError(f"Template '{self.id}' has no content directory")

        rendered: List[Tuple[str, bytes]] = []
        for path in iter_template_files(content):
            relative = path.relative_to(content).as_posix()
            target = render_text(relative, values, source=relative)
            data = path.read_bytes()
            try:
                text = data.decode("utf-8")
            except UnicodeDecodeError:
                rendered.append((target, data))
                continue
            rendered.append((target, render_text(text, values, source=relative).encode("utf-8")))
        return rendered

    def run(self, options: RunOptions, prompter: Prompter | None = None) -> RunResult:
        """Render the template into ``options.output_path``.

        Every file is rendered and checked before anything is written.
        """
        if options.variant is not TemplateVariant.NEW_APPLICATION:
            raise TemplateError(f"Unsupported template variant: {options.variant}")

        output = Path(options.output_path)
        if output.exists() and not is_empty_dir(output):
            raise TemplateError(f"Directory {output} already exists and is not empty")

        values = self.resolve_values(options, prompter)
        rendered = self._render_files(values)

        base = output.resolve()
        targets = []
        for relative, data in rendered:
            target = (base / relative).resolve()
            if not target.is_relative_to(base):
                raise TemplateError(f"Rendered path escapes the output directory: {relative}")
            targets.append((target, data))

        output.mkdir(parents=True, exist_ok=True)
        result = RunResult(output_path=output)
        for target, data in targets:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
            result.files.append(target)
            LOGGER.debug("Wrote %s", target)
        return result
