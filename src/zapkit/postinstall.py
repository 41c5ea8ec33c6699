"""
zapkit.postinstall - Cosmetic Post-Install Steps
================================================

Steps that run after a successful install: updating dependencies and
formatting the project. They are cosmetic, so a failure becomes a warning
string for the caller to display instead of an exception.
"""

from __future__ import annotations

from pathlib import Path

from zapkit.installer import CommandRunner, run_command
from zapkit.models import PackageManager


def _describe_failure(action: str, command: list[str], stderr: str | None) -> str:
    detail = (stderr or "").strip().splitlines()
    suffix = f": {detail[-1]}" if detail else ""
    return f"Failed to {action} (`{' '.join(command)}`){suffix}"


def update_dependencies(
    package_manager: PackageManager,
    project_dir: Path,
    run: CommandRunner = run_command,
) -> str | None:
    """
    Update installed dependencies.

    Returns
    -------
    str | None
        A warning if the update failed, else None.
    """
    command = package_manager.update_command
    completed = run(command, project_dir)
    if completed.returncode != 0:
        return _describe_failure("update dependencies", command, completed.stderr)
    return None


def run_formatting(
    package_manager: PackageManager,
    project_dir: Path,
    run: CommandRunner = run_command,
) -> str | None:
    """
    Run the project's ``format`` script.

    Returns
    -------
    str | None
        A warning if formatting failed, else None.
    """
    command = package_manager.run_command("format")
    completed = run(command, project_dir)
    if completed.returncode != 0:
        return _describe_failure("format the project", command, completed.stderr)
    return None


def detect_package_manager(project_dir: Path) -> PackageManager:
    """
    Guess which package manager a project uses from its lockfile.

    Falls back to npm when no known lockfile is present.
    """
    for pm in (PackageManager.BUN, PackageManager.PNPM, PackageManager.YARN, PackageManager.NPM):
        if (project_dir / pm.lockfile).exists():
            return pm
    if (project_dir / "bun.lockb").exists():
        return PackageManager.BUN
    return PackageManager.NPM
