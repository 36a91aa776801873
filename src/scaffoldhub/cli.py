"""Command line interface for scaffoldhub."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from scaffoldhub.config import AppConfig
from scaffoldhub.hub.api import HubError, fetch_index
from scaffoldhub.hub.search import find_matches
from scaffoldhub.models import IndexEntry
from scaffoldhub.prompts import ConsolePrompter, select_entry
from scaffoldhub.templates.manager import (
    DiscardingProgressReporter,
    InstallOptions,
    TemplateManager,
)
from scaffoldhub.templates.manifest import ManifestError
from scaffoldhub.templates.run import RunOptions, TemplateError, TemplateVariant
from scaffoldhub.templates.source import SourceError, TemplateSource

NO_MATCHES = "No templates match your search terms"

console = Console()
app = typer.Typer(help="scaffoldhub - create applications from templates on the hub")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _fail(exc: Exception) -> None:
    console.print(f"[red]Error: {escape(str(exc))}[/red]")
    raise typer.Exit(code=1)


def _parse_values(pairs: List[str]) -> Dict[str, str]:
    values: Dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"Expected KEY=VALUE, got '{pair}'", param_hint="--value")
        values[key.strip()] = value
    return values


def _list_templates(config: AppConfig, terms: List[str]) -> None:
    matches = find_matches(fetch_index(config), terms, templates_only=False)
    if not matches:
        console.print(NO_MATCHES)
        return

    for entry in matches:
        console.print(f"Template: {escape(entry.title)}\nDescription: {escape(entry.summary)}\n")


def _resolve_selection(config: AppConfig, terms: List[str]) -> IndexEntry | None:
    matches = find_matches(fetch_index(config), terms, templates_only=True)
    if not matches:
        console.print(NO_MATCHES)
        return None
    if len(matches) == 1:
        return matches[0]
    return select_entry(matches, console)


def _run_template(
    config: AppConfig,
    entry: IndexEntry,
    name: str,
    output: Path,
    values: Dict[str, str],
    accept_defaults: bool,
) -> Path:
    manager = TemplateManager.from_config(config)
    try:
        source = TemplateSource.from_git(entry.url)
        manager.install(source, InstallOptions(), DiscardingProgressReporter())

        template = manager.get(entry.id)
        if template is None:
            raise TemplateError(f"Template '{entry.id}' was not found in {entry.url}")

        options = RunOptions(
            variant=TemplateVariant.NEW_APPLICATION,
            name=name,
            output_path=output,
            values=values,
            accept_defaults=accept_defaults,
        )
        result = template.run(options, ConsolePrompter(console))
        return result.output_path
    finally:
        manager.close()


@app.command()
def new(
    name: Optional[str] = typer.Argument(
        None, help="Name of the application to create from the template"
    ),
    terms: Optional[List[str]] = typer.Option(
        None, "-t", "--tag", help="Tag or title word to search for (repeatable)"
    ),
    list_: bool = typer.Option(False, "--list", "-l", help="List matching templates and exit"),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Directory to create (defaults to NAME)"
    ),
    value: Optional[List[str]] = typer.Option(
        None, "--value", help="Parameter value as KEY=VALUE (repeatable)"
    ),
    accept_defaults: bool = typer.Option(
        False, "--accept-defaults", help="Use parameter defaults instead of prompting"
    ),
    index_url: Optional[str] = typer.Option(None, "--index-url", help="Hub index URL"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Create an application from a template on the hub."""
    _setup_logging(verbose)
    config = AppConfig()
    if index_url:
        config.index_url = index_url
    terms = terms or []

    if list_:
        try:
            _list_templates(config, terms)
        except HubError as exc:
            _fail(exc)
        return

    if not name:
        raise typer.BadParameter(
            "Please provide a name for the application you want to create, or use --list.",
            param_hint="NAME",
        )
    values = _parse_values(value or [])

    try:
        entry = _resolve_selection(config, terms)
        if entry is None:
            return

        console.print(f"Template {escape(entry.title)} by {escape(entry.author)}")
        console.print(escape(entry.summary))

        created = _run_template(
            config, entry, name, output or Path(name), values, accept_defaults
        )
    except (HubError, SourceError, TemplateError, ManifestError) as exc:
        _fail(exc)
        return

    console.print(f"Created [bold]{escape(name)}[/bold] in {escape(str(created))}")


@app.command()
def templates(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Show templates installed locally."""
    _setup_logging(verbose)
    manager = TemplateManager.from_config(AppConfig())
    try:
        installed = manager.list()
    finally:
        manager.close()

    if not installed:
        console.print("[yellow]No templates installed.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Template")
    table.add_column("Description")
    table.add_column("Source")
    for record in installed:
        table.add_row(escape(record.id), escape(record.description), escape(record.source))
    console.print(table)


@app.command()
def prune() -> None:
    """Forget installed templates whose directories no longer exist."""
    manager = TemplateManager.from_config(AppConfig())
    try:
        removed = manager.prune()
    finally:
        manager.close()
    console.print(f"Removed {removed} missing templates.")
