"""
zapkit.installer - Dependency Installation
==========================================

Runs the chosen package manager's install command in the new project. When
it fails, the user picks a different package manager and the install is
retried. The attempt counter only ever goes up:

    attempt 1            install with the preferred package manager
    attempt 2..max+1     install with a fallback picked by the user
    after attempt max+1  InstallError, the user installs manually

So there are never more than ``max_retries + 1`` installs. Cancelling the
fallback prompt stops immediately with :class:`PromptCancelledError`.

The command runner and the fallback chooser are parameters, so tests can
drive every transition without spawning processes or prompting.

Usage Example
-------------
>>> from pathlib import Path
>>> from zapkit.installer import install_dependencies
>>> from zapkit.models import PackageManager
>>> result = install_dependencies(PackageManager.PNPM, Path("my-app"))  # doctest: +SKIP
>>> result.package_manager
<PackageManager.PNPM: 'pnpm'>
"""

from __future__ import annotations

import subprocess
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from zapkit.exceptions import InstallError, PromptCancelledError
from zapkit.models import PackageManager


CommandRunner = Callable[[list[str], Path], "subprocess.CompletedProcess[str]"]
FallbackChooser = Callable[[PackageManager, list[PackageManager]], "PackageManager | None"]

DEFAULT_MAX_RETRIES = 3


# =============================================================================
# Process Execution
# =============================================================================

def run_command(command: list[str], cwd: Path) -> subprocess.CompletedProcess[str]:
    """
    Run an external command and capture its output.

    A missing executable is reported as exit code 127 instead of raising,
    so callers only have to look at ``returncode``. There is no timeout.

    Parameters
    ----------
    command : list[str]
        Argument vector.

    cwd : Path
        Working directory.

    Returns
    -------
    subprocess.CompletedProcess[str]
        Finished process with captured stdout and stderr.
    """
    try:
        return subprocess.run(
            command,
            cwd=cwd,
            check=False,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError as e:
        return subprocess.CompletedProcess(command, 127, stdout="", stderr=str(e))


# =============================================================================
# Installation State Machine
# =============================================================================

@dataclass
class InstallAttempt:
    """One failed install: which package manager, and what it printed."""

    package_manager: PackageManager
    returncode: int
    stderr: str = ""


@dataclass
class InstallResult:
    """
    Outcome of a successful installation.

    Attributes
    ----------
    package_manager : PackageManager
        The package manager that succeeded. It differs from the preferred
        one when a fallback was used.

    attempts : int
        Number of installs run, the successful one included.

    failures : list[InstallAttempt]
        Failed installs before the successful one.
    """

    package_manager: PackageManager
    attempts: int
    failures: list[InstallAttempt] = field(default_factory=list)


def fallback_choices(failed: PackageManager) -> list[PackageManager]:
    """Every package manager except the one that just failed."""
    return [pm for pm in PackageManager if pm != failed]


def prompt_chooser(failed: PackageManager, choices: list[PackageManager]) -> PackageManager | None:
    from zapkit.prompts import prompt_fallback_package_manager

    return prompt_fallback_package_manager(failed, choices)


def install_dependencies(
    package_manager: PackageManager,
    project_dir: Path,
    *,
    max_retries: int = DEFAULT_MAX_RETRIES,
    run: CommandRunner = run_command,
    choose: FallbackChooser = prompt_chooser,
) -> InstallResult:
    """
    Install a project's dependencies with bounded fallback.

    Parameters
    ----------
    package_manager : PackageManager
        Preferred package manager for the first attempt.

    project_dir : Path
        Directory containing package.json.

    max_retries : int
        Fallback attempts allowed after the first failure.

    run : CommandRunner
        Executes a command in a directory.

    choose : FallbackChooser
        Picks the next package manager given the one that failed and the
        remaining choices. Returning None counts as cancellation.

    Returns
    -------
    InstallResult
        The package manager that succeeded and the attempt count.

    Raises
    ------
    InstallError
        After ``max_retries + 1`` failed installs.
    PromptCancelledError
        If the user cancels the fallback prompt.
    """
    current = package_manager
    attempt = 0
    failures: list[InstallAttempt] = []

    while True:
        attempt += 1
        completed = run(current.install_command, project_dir)
        if completed.returncode == 0:
            return InstallResult(current, attempt, failures)

        failures.append(InstallAttempt(current, completed.returncode, completed.stderr or ""))
        if attempt > max_retries:
            raise InstallError(attempt)

        chosen = choose(current, fallback_choices(current))
        if chosen is None:
            msg = "Package manager selection was cancelled"
            raise PromptCancelledError(msg)
        current = chosen
