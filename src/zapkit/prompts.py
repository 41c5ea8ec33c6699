"""
zapkit.prompts - Interactive Prompts
====================================

questionary prompts shared by the CLI and the installer. Each prompt
raises :class:`~zapkit.exceptions.PromptCancelledError` when the user
cancels it (questionary returns None on Ctrl+C); nothing here retries or
exits the process.
"""

from __future__ import annotations

from typing import Literal

import questionary

from zapkit.exceptions import PromptCancelledError
from zapkit.models import IDE, PackageManager
from zapkit.registry import PLUGINS, optional_plugin_ids


def _answer(result):
    if result is None:
        msg = "Prompt cancelled"
        raise PromptCancelledError(msg)
    return result


def prompt_project_name(default: str = "my-zap-app") -> str:
    """
    Ask for the project name.

    Returns
    -------
    str
        The entered name, stripped.
    """
    result = questionary.text(
        "What is the name of your project?",
        default=default,
    ).ask()
    return _answer(result).strip()


def prompt_package_manager(default: PackageManager = PackageManager.NPM) -> PackageManager:
    """
    Ask which package manager to install with.

    Returns
    -------
    PackageManager
        The selected package manager.
    """
    choices = [questionary.Choice(title=pm.value, value=pm) for pm in PackageManager]
    result = questionary.select(
        "Which package manager do you want to use?",
        choices=choices,
        default=default,
    ).ask()
    return _answer(result)


def prompt_fallback_package_manager(
    failed: PackageManager,
    choices: list[PackageManager],
) -> PackageManager:
    """
    Ask for another package manager after an install failed.

    Parameters
    ----------
    failed : PackageManager
        The package manager whose install just failed.

    choices : list[PackageManager]
        Package managers to offer.

    Returns
    -------
    PackageManager
        The selected package manager.
    """
    result = questionary.select(
        f"Installing with {failed.value} failed. Which package manager do you want to try instead?",
        choices=[questionary.Choice(title=pm.value, value=pm) for pm in choices],
    ).ask()
    return _answer(result)


def prompt_ide() -> IDE | Literal["all"] | None:
    """
    Ask which editor's configuration to keep.

    Returns
    -------
    IDE | "all" | None
        A single IDE, ``"all"``, or None for no editor files.
    """
    choices = [
        questionary.Choice(title="All IDEs", value="all"),
        *(questionary.Choice(title=ide.description, value=ide) for ide in IDE),
        questionary.Choice(title="None", value="none"),
    ]
    result = _answer(questionary.select(
        "Which IDE do you want to use?",
        choices=choices,
        default="all",
    ).ask())
    return None if result == "none" else result


def prompt_plugins() -> list[str]:
    """
    Ask which optional plugins to include.

    Returns
    -------
    list[str]
        Selected plugin ids, possibly empty.
    """
    choices = [
        questionary.Choice(
            title=f"{PLUGINS[pid].label:<20} - {PLUGINS[pid].description}",
            value=pid,
        )
        for pid in sorted(optional_plugin_ids())
    ]
    result = questionary.checkbox(
        "Which plugins do you want to use?",
        choices=choices,
    ).ask()
    return list(_answer(result))


def confirm(message: str, default: bool = True) -> bool:
    """Yes/no question."""
    return bool(_answer(questionary.confirm(message, default=default).ask()))
