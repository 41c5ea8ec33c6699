"""
zapkit.generator - Project Generation Pipeline
==============================================

This module runs ``zapkit new``: it turns a :class:`ProjectConfig` into a
ready-to-run Zap.ts project.

Architecture
------------
The generator follows a pipeline pattern:

    1. Validate the plugin registry
    2. Resolve the plugin selection (selected + transitively required)
    3. Copy (or download) the template and clean it up
    4. Prune unused plugins (files, packages, scripts)
    5. Prune editor configuration for IDEs that were not chosen
    6. Install dependencies (bounded retry with package manager fallback)
    7. Update dependencies and format the project
    8. Generate the ``.env`` file

Steps 1-6 are fatal on error; the partially created project directory is
removed and the error is re-raised. Pruning problems for individual files
and the cosmetic steps 7-8 only produce warnings.

Usage Example
-------------
>>> from pathlib import Path
>>> from zapkit.generator import create_project
>>> from zapkit.models import ProjectConfig
>>>
>>> config = ProjectConfig(
...     name="my-app",
...     plugins=["blog"],
...     template=Path("~/zap-template"),
... )
>>> result = create_project(config)  # doctest: +SKIP
>>> sorted(result.selection.effective)  # doctest: +SKIP
['blog', 'markdown']

See Also
--------
- resolver.py: Plugin selection
- pruner.py: File and package removal
- installer.py: Installation with fallback
"""

from __future__ import annotations

import shutil
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from rich.console import Console
from rich.panel import Panel

from zapkit.envfile import generate_env
from zapkit.exceptions import FileSystemError
from zapkit.installer import (
    CommandRunner,
    FallbackChooser,
    install_dependencies,
    prompt_chooser,
    run_command,
)
from zapkit.manifest import FILE_MANIFEST
from zapkit.models import FileEntry, PackageManager, Plugin, ProjectConfig
from zapkit.postinstall import run_formatting, update_dependencies
from zapkit.pruner import PruneResult, prune, prune_ide_files
from zapkit.registry import PLUGINS, validate_registry
from zapkit.resolver import SelectionResult, resolve
from zapkit.settings import Settings
from zapkit.template import is_url, prepare_template


# =============================================================================
# Module-Level Configuration
# =============================================================================

console = Console()

ENV_FILENAME = ".env"


# =============================================================================
# Result Data Classes
# =============================================================================

@dataclass
class GenerationResult:
    """
    Result of a project generation.

    Attributes
    ----------
    success : bool
        Whether the project was created.

    project_path : Path
        Directory of the project.

    selection : SelectionResult | None
        Resolved plugin sets. None if resolution never ran.

    package_manager : PackageManager | None
        Package manager that installed the dependencies. It differs from
        the configured one after a fallback.

    pruned : PruneResult
        Everything removed from the template.

    warnings : list[str]
        Non-fatal problems.

    errors : list[str]
        The fatal error, if any.
    """

    success: bool
    project_path: Path
    selection: SelectionResult | None = None
    package_manager: PackageManager | None = None
    pruned: PruneResult = field(default_factory=PruneResult)
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


# =============================================================================
# Helpers
# =============================================================================

def template_source(config: ProjectConfig, settings: Settings) -> Path | str:
    """
    Template to copy: the config's, else the configured default, else the
    configured download URL.

    Returns
    -------
    Path | str
        A local template path, or an archive URL to download.
    """
    source = config.template or settings.template
    if source is None:
        return settings.template_url
    return source.expanduser()


def _print_list(title: str, items: Iterable[str]) -> None:
    items = list(items)
    if not items:
        return
    console.print(f"  [dim]{title}:[/]")
    for item in items:
        console.print(f"    - {item}")


def _warn(result: GenerationResult, message: str | None, verbose: bool) -> None:
    if message is None:
        return
    result.warnings.append(message)
    if verbose:
        console.print(f"  [yellow]⚠[/] {message}")


# =============================================================================
# Pipeline
# =============================================================================

def create_project(
    config: ProjectConfig,
    settings: Settings | None = None,
    *,
    verbose: bool = True,
    run: CommandRunner = run_command,
    choose: FallbackChooser = prompt_chooser,
    registry: Mapping[str, Plugin] = PLUGINS,
    manifest: Iterable[FileEntry] = FILE_MANIFEST,
) -> GenerationResult:
    """
    Create a new Zap.ts project from the given configuration.

    Parameters
    ----------
    config : ProjectConfig
        Project name, location, plugins, IDE and package manager.

    settings : Settings | None
        Template default and install retry limit.

    verbose : bool, default=True
        Print progress to the console. ``config.verbose`` additionally
        lists every pruned package and file.

    run : CommandRunner
        Runs install, update and format commands.

    choose : FallbackChooser
        Picks a package manager after a failed install.

    registry : Mapping[str, Plugin]
        Plugin table.

    manifest : Iterable[FileEntry]
        Template file manifest.

    Returns
    -------
    GenerationResult
        Resolved plugins, pruned content and warnings.

    Raises
    ------
    RegistryError
        If the registry is inconsistent.
    TemplateError
        If the template cannot be downloaded or copied.
    InstallError
        If every install attempt failed.
    PromptCancelledError
        If the user cancelled the fallback prompt.

    Notes
    -----
    If a fatal error occurs after the project directory was created, the
    directory is removed. A directory that existed before is never removed.
    """
    settings = settings or Settings()
    manifest = list(manifest)
    project_dir = config.project_dir
    result = GenerationResult(success=False, project_path=project_dir)
    existed = project_dir.exists()

    try:
        if verbose:
            console.print()
            console.print(
                Panel(
                    f"[bold blue]Creating project:[/] [green]{config.name}[/]\n"
                    f"[dim]Package manager: {config.package_manager.value} | "
                    f"Plugins: {', '.join(config.plugins) or 'none'}[/]",
                    title="[bold]zapkit[/]",
                    border_style="blue",
                )
            )
            console.print()

        # Step 1: Registry and selection
        validate_registry(registry)
        selection = resolve(config.plugins, registry)
        result.selection = selection

        if verbose:
            console.print("[bold]🧩 Resolving plugins...[/]")
            for pid in sorted(selection.resolved_required):
                console.print(f"  [cyan]+[/] {pid} [dim](required by selection)[/]")
            console.print(f"  [green]✓[/] {len(selection.effective)} optional plugin(s) selected")

        # Step 2: Template
        source = template_source(config, settings)
        if verbose:
            console.print()
            action = "Downloading" if is_url(source) else "Copying"
            console.print(f"[bold]📦 {action} template...[/]")
        prepare_template(source, project_dir, config.name)
        if verbose:
            console.print(f"  [green]✓[/] Template ready from {source}")

        # Step 3: Pruning
        if verbose:
            console.print()
            console.print("[bold]✂️  Removing unused plugins...[/]")

        pruned = prune(project_dir, selection.unused, registry, manifest)
        pruned.merge(prune_ide_files(project_dir, config.ide, manifest))
        result.pruned = pruned

        if verbose:
            console.print(
                f"  [green]✓[/] Removed {len(pruned.removed_files)} path(s) and "
                f"{len(pruned.removed_packages)} package(s)"
            )
            if config.verbose:
                _print_list("Packages", pruned.removed_packages)
                _print_list("Scripts", pruned.removed_scripts)
                _print_list("Files", pruned.removed_files)
        for error in pruned.errors:
            _warn(result, error, verbose)

        # Step 4: Install
        if verbose:
            console.print()
            console.print(f"[bold]📥 Installing dependencies with {config.package_manager.value}...[/]")

        installed = install_dependencies(
            config.package_manager,
            project_dir,
            max_retries=settings.max_install_retries,
            run=run,
            choose=choose,
        )
        result.package_manager = installed.package_manager

        if verbose:
            console.print(
                f"  [green]✓[/] Installed with {installed.package_manager.value} "
                f"(attempt {installed.attempts})"
            )
            if config.verbose:
                for failure in installed.failures:
                    console.print(
                        f"  [dim]{failure.package_manager.value} exited with "
                        f"{failure.returncode}: {failure.stderr.strip()}[/]"
                    )

        # Step 5: Cosmetic steps
        if verbose:
            console.print()
            console.print("[bold]🔧 Finishing up...[/]")

        with console.status("Updating dependencies...", spinner="dots"):
            update_warning = update_dependencies(installed.package_manager, project_dir, run)
        _warn(result, update_warning, verbose)

        with console.status("Formatting project...", spinner="dots"):
            format_warning = run_formatting(installed.package_manager, project_dir, run)
        _warn(result, format_warning, verbose)

        try:
            generate_env(project_dir, ENV_FILENAME, selection.effective)
        except FileSystemError as e:
            _warn(result, f"{e}. Run 'zapkit generate env' in the project.", verbose)
        else:
            if verbose:
                console.print(f"  [green]✓[/] Generated {ENV_FILENAME}")

        result.success = True

        if verbose:
            console.print()
            console.print(
                Panel(
                    f"[bold green]✨ Project created successfully![/]\n\n"
                    f"[dim]Location:[/] {project_dir}\n\n"
                    f"[bold]Next steps:[/]\n"
                    f"  cd {config.name}\n"
                    f"  {' '.join(installed.package_manager.run_command('dev'))}",
                    title="[bold green]Success[/]",
                    border_style="green",
                )
            )

    except Exception as e:
        result.errors.append(str(e))

        if not existed and project_dir.exists():
            shutil.rmtree(project_dir, ignore_errors=True)
            result.warnings.append("Partial project directory was cleaned up")
            if verbose:
                console.print("[dim]Partial project directory was removed.[/]")

        raise

    return result
