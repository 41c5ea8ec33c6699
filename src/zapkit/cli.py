"""
zapkit.cli - Command Line Interface
===================================

This module provides the command-line interface for zapkit using Typer.

Architecture
------------
The CLI is structured around Typer's app pattern:

    app (main entry point)
    ├── new                 - Create a new Zap.ts project
    ├── create procedure    - Add an RPC procedure to a project
    ├── generate env        - Write an environment file
    └── debug plugins       - Report how plugins import each other

Commands are both interactive (with prompts) and scriptable (with flags).
The --yes flag of ``new`` skips all prompts for CI usage.

Inner modules raise :class:`~zapkit.exceptions.ZapkitError` subclasses and
never exit; this module turns them into a red ``Error:`` line on stderr and
exit code 1. Cancelled prompts abort.

Usage Examples
--------------
Interactive mode:
    $ zapkit new my-app

Non-interactive mode:
    $ zapkit new my-app --plugins blog,ai --package-manager pnpm --yes

Inside a project:
    $ zapkit create procedure getUserStats
    $ zapkit generate env
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Annotated, Literal

import typer
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from zapkit import __version__
from zapkit.analysis import PluginSummary, format_summary_markdown, summarize_plugins
from zapkit.envfile import generate_env, installed_plugins
from zapkit.exceptions import ProcedureConflictError, PromptCancelledError, ZapkitError
from zapkit.generator import create_project
from zapkit.models import IDE, PackageManager, ProjectConfig
from zapkit.procedure import create_procedure
from zapkit.prompts import (
    confirm,
    prompt_ide,
    prompt_package_manager,
    prompt_plugins,
    prompt_project_name,
)
from zapkit.registry import validate_registry
from zapkit.settings import Settings


# =============================================================================
# CLI Application Setup
# =============================================================================

app = typer.Typer(
    name="zapkit",
    help="Scaffold Zap.ts applications and extend them with new procedures.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=True,
)

create_app = typer.Typer(
    help="Create new elements in an existing project.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
generate_app = typer.Typer(
    help="Generate files for an existing project.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
debug_app = typer.Typer(
    help="Inspect an existing project.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.add_typer(create_app, name="create")
app.add_typer(generate_app, name="generate")
app.add_typer(debug_app, name="debug")

console = Console()
err_console = Console(stderr=True)

DEFAULT_PROJECT_NAME = "my-zap-app"


def _fail(error: object) -> typer.Exit:
    """Print an error on stderr and return the exit to raise."""
    err_console.print(f"[red]Error:[/] {escape(str(error))}")
    return typer.Exit(1)


def _load_settings(directory: Path | None = None) -> Settings:
    try:
        return Settings.load(directory)
    except (tomllib.TOMLDecodeError, PydanticValidationError) as e:
        raise _fail(f"Invalid zapkit configuration: {e}") from e


# =============================================================================
# Version Callback
# =============================================================================

def version_callback(value: bool) -> None:
    """
    Display version information and exit.

    Parameters
    ----------
    value : bool
        True if --version was passed.
    """
    if value:
        console.print(Panel(
            f"[bold green]zapkit[/] version [cyan]{__version__}[/]\n\n"
            f"[dim]Zap.ts project generator[/]",
            border_style="green",
        ))
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """
    [bold]zapkit[/] - Zap.ts project generator.

    [bold]Quick Start:[/]

        zapkit new my-app

    [bold]Inside a project:[/]

        zapkit create procedure getUserStats
    """


# =============================================================================
# Option Parsing
# =============================================================================

def parse_package_manager(value: str) -> PackageManager:
    """
    Parse a ``--package-manager`` value.

    Raises
    ------
    ValueError
        If the value is not a supported package manager.
    """
    try:
        return PackageManager(value.lower())
    except ValueError:
        valid = ", ".join(pm.value for pm in PackageManager)
        msg = f"Invalid package manager '{value}'. Valid: {valid}"
        raise ValueError(msg) from None


def parse_ide(value: str) -> IDE | Literal["all"] | None:
    """Parse an ``--ide`` value: an IDE name, ``all`` or ``none``."""
    value = value.lower()
    if value == "all":
        return "all"
    if value == "none":
        return None
    try:
        return IDE(value)
    except ValueError:
        valid = ", ".join([*(ide.value for ide in IDE), "all", "none"])
        msg = f"Invalid IDE '{value}'. Valid: {valid}"
        raise ValueError(msg) from None


def parse_plugins(value: str) -> list[str]:
    """Split a comma-separated ``--plugins`` value."""
    return [p.strip() for p in value.split(",") if p.strip()]


# =============================================================================
# New Command
# =============================================================================

@app.command()
def new(
    name: Annotated[
        str | None,
        typer.Argument(help="Name of the project to create"),
    ] = None,
    directory: Annotated[
        Path | None,
        typer.Option(
            "--directory",
            "-d",
            help="Directory to create the project in (default: current directory)",
        ),
    ] = None,
    package_manager: Annotated[
        str | None,
        typer.Option(
            "--package-manager",
            "-p",
            help="Package manager: npm, yarn, pnpm, bun",
        ),
    ] = None,
    ide: Annotated[
        str | None,
        typer.Option(
            "--ide",
            help="Editor configuration to keep: vscode, cursor, windsurf, zed, all, none",
        ),
    ] = None,
    plugins: Annotated[
        str | None,
        typer.Option(
            "--plugins",
            help="Comma-separated optional plugins, e.g. blog,ai",
        ),
    ] = None,
    template: Annotated[
        Path | None,
        typer.Option(
            "--template",
            "-t",
            help="Template directory or .tar.gz archive (default: download the latest Zap.ts)",
        ),
    ] = None,
    yes: Annotated[
        bool,
        typer.Option(
            "--yes",
            "-y",
            help="Skip all prompts, use defaults",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="List every removed package and file",
        ),
    ] = False,
) -> None:
    """
    Create a new Zap.ts project.

    Copies the template, keeps the plugins you select (plus the plugins
    they require), removes the rest, and installs dependencies.

    [bold]Examples:[/]

        # Interactive mode
        zapkit new my-app

        # Everything on the command line
        zapkit new my-app --plugins blog,waitlist --ide vscode -p pnpm --yes
    """
    settings = _load_settings()

    try:
        validate_registry()
    except ZapkitError as e:
        raise _fail(e) from e

    should_prompt = not yes

    # Flags are validated before any prompt is shown
    try:
        flag_pm = parse_package_manager(package_manager) if package_manager else None
        flag_ide = parse_ide(ide) if ide else None
    except ValueError as e:
        raise _fail(e) from e

    try:
        resolved_name: str
        if name:
            resolved_name = name
        elif should_prompt:
            resolved_name = prompt_project_name(DEFAULT_PROJECT_NAME)
        else:
            resolved_name = DEFAULT_PROJECT_NAME

        resolved_pm: PackageManager
        if flag_pm is not None:
            resolved_pm = flag_pm
        elif settings.package_manager is not None:
            resolved_pm = settings.package_manager
        elif should_prompt:
            resolved_pm = prompt_package_manager()
        else:
            resolved_pm = PackageManager.NPM

        resolved_ide: IDE | Literal["all"] | None
        if ide:
            resolved_ide = flag_ide
        elif should_prompt:
            resolved_ide = prompt_ide()
        else:
            resolved_ide = "all"

        resolved_plugins: list[str]
        if plugins is not None:
            resolved_plugins = parse_plugins(plugins)
        elif should_prompt:
            resolved_plugins = prompt_plugins()
        else:
            resolved_plugins = []
    except PromptCancelledError:
        raise typer.Abort()

    try:
        config = ProjectConfig(
            name=resolved_name,
            output_dir=directory or Path.cwd(),
            package_manager=resolved_pm,
            ide=resolved_ide,
            plugins=resolved_plugins,
            template=template,
            verbose=verbose,
        )
    except ValueError as e:
        raise _fail(e) from e

    if should_prompt:
        if config.ide is None:
            ide_label = "none"
        elif config.ide == "all":
            ide_label = "all"
        else:
            ide_label = config.ide.value

        console.print()
        table = Table(title="Project Configuration", show_header=False)
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="green")

        table.add_row("Name", config.name)
        table.add_row("Location", str(config.project_dir))
        table.add_row("Package manager", config.package_manager.value)
        table.add_row("IDE", ide_label)
        table.add_row("Plugins", ", ".join(config.plugins) or "none")

        console.print(table)
        console.print()

        try:
            if not confirm("Create project with these settings?"):
                raise typer.Abort()
        except PromptCancelledError:
            raise typer.Abort()

    try:
        create_project(config, settings)
    except (PromptCancelledError, KeyboardInterrupt):
        raise typer.Abort()
    except ZapkitError as e:
        raise _fail(e) from e


# =============================================================================
# Create Procedure Command
# =============================================================================

@create_app.command("procedure")
def create_procedure_command(
    name: Annotated[
        str,
        typer.Argument(help="Procedure name in camelCase, e.g. getUserStats"),
    ],
    path: Annotated[
        Path,
        typer.Option(
            "--path",
            help="Project directory",
            exists=True,
            file_okay=False,
            dir_okay=True,
        ),
    ] = Path("."),
) -> None:
    """
    Create an RPC procedure, its client hook, and its router entry.

    [bold]Example:[/]

        zapkit create procedure getUserStats
    """
    settings = _load_settings(path)

    try:
        with console.status(f"Creating procedure {name}...", spinner="dots"):
            result = create_procedure(path, name, settings)
    except ProcedureConflictError as e:
        err_console.print(f"[yellow]{escape(str(e))}[/]")
        err_console.print("[yellow]Skipping creation to avoid conflicts.[/]")
        raise typer.Exit(1)
    except ZapkitError as e:
        raise _fail(e) from e

    console.print(f"[green]✓[/] Procedure [bold]{result.name.value}[/] created")
    for created in result.files_created:
        console.print(f"  Created {created}")
    console.print(f"  Updated {result.router_path}")
    for warning in result.warnings:
        console.print(f"  [yellow]⚠[/] {escape(warning)}")


# =============================================================================
# Generate Env Command
# =============================================================================

@generate_app.command("env")
def generate_env_command(
    filename: Annotated[
        str,
        typer.Argument(help="File to write"),
    ] = ".env.template",
    path: Annotated[
        Path,
        typer.Option(
            "--path",
            help="Project directory",
            exists=True,
            file_okay=False,
            dir_okay=True,
        ),
    ] = Path("."),
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite an existing file",
        ),
    ] = False,
) -> None:
    """
    Write an environment file for the project's installed plugins.

    Secrets are generated; other values are placeholders to fill in.

    [bold]Example:[/]

        zapkit generate env .env
    """
    plugins = installed_plugins(path)
    try:
        written = generate_env(path, filename, plugins, overwrite=force)
    except ZapkitError as e:
        raise _fail(e) from e

    console.print(f"[green]✓[/] Generated {written}")
    console.print("[dim]Replace the placeholder values before running the app.[/]")


# =============================================================================
# Debug Plugins Command
# =============================================================================

def print_plugin_summary(summary: PluginSummary) -> None:
    """Render a plugin summary as rich tables."""
    src_table = Table(title="Plugins used in src/", show_header=True)
    src_table.add_column("Plugin", style="cyan")
    src_table.add_column("Kind")
    src_table.add_column("File", style="dim")
    for entry in summary.src_imports:
        src_table.add_row(entry.plugin, entry.kind, entry.path)
    console.print(src_table)
    console.print()

    deps_table = Table(title="Plugin dependencies", show_header=True)
    deps_table.add_column("Plugin", style="cyan")
    deps_table.add_column("Imports")
    for importer, imported in summary.plugin_imports.items():
        deps_table.add_row(importer, ", ".join(imported))
    console.print(deps_table)
    console.print()

    if summary.core_to_optional:
        console.print("[bold yellow]Core plugins importing optional plugins:[/]")
        for entry in summary.core_to_optional:
            console.print(f"  [yellow]⚠[/] {entry.importer} imports {entry.plugin} in {entry.path}")
        console.print()

    if summary.undeclared:
        console.print("[bold yellow]Undeclared plugin requirements:[/]")
        for importer, missing in summary.undeclared.items():
            console.print(f"  [yellow]⚠[/] {importer} imports {', '.join(missing)}")
        console.print()

    if not summary.core_to_optional and not summary.undeclared:
        console.print("[green]✓[/] Plugin imports match the registry")


@debug_app.command("plugins")
def debug_plugins_command(
    path: Annotated[
        Path,
        typer.Option(
            "--path",
            help="Project directory",
            exists=True,
            file_okay=False,
            dir_okay=True,
        ),
    ] = Path("."),
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Write the report as Markdown to this file",
        ),
    ] = None,
) -> None:
    """
    Report which plugins import which, and flag imports the registry
    does not account for.

    [bold]Example:[/]

        zapkit debug plugins --output plugins.md
    """
    try:
        summary = summarize_plugins(path)
    except ZapkitError as e:
        raise _fail(e) from e

    if output is None:
        print_plugin_summary(summary)
        return

    try:
        output.write_text(format_summary_markdown(summary), encoding="utf-8")
    except OSError as e:
        raise _fail(e) from e
    console.print(f"[green]✓[/] Plugin summary written to {output}")


if __name__ == "__main__":
    app()
