"""
zapkit.pruner - Removal of Unused Plugins
=========================================

After the template is copied, everything that belongs only to unused
plugins is removed. This happens in two passes that never depend on each
other:

1. **Dependencies**: npm packages (and package.json scripts) declared by
   unused plugins are deleted from ``package.json``. A package that some
   kept plugin also declares stays.
2. **Files**: manifest entries owned exclusively by unused plugins are
   deleted, then each unused plugin's ``zap/<id>/`` folder.

Each pass collects its own errors. A broken ``package.json`` does not stop
file removal, and one undeletable file does not stop the others. Paths that
are already gone are not errors, so pruning twice is a no-op the second
time.

Usage Example
-------------
>>> from pathlib import Path
>>> from zapkit.pruner import prune
>>> from zapkit.resolver import resolve
>>> selection = resolve({"blog"})
>>> result = prune(Path("my-app"), selection.unused)  # doctest: +SKIP
>>> result.errors
[]
"""

from __future__ import annotations

import shutil
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from zapkit.manifest import FILE_MANIFEST
from zapkit.models import IDE, FileEntry, Plugin
from zapkit.package_json import read_package_json, remove_keys, write_package_json
from zapkit.registry import PLUGINS


# Each plugin's own code lives under this folder at the project root.
PLUGIN_ROOT = "zap"


@dataclass
class PruneResult:
    """
    What a pruning pass removed and what went wrong.

    Attributes
    ----------
    removed_files : list[str]
        Project-relative paths deleted (folders end with ``/``).

    removed_packages : list[str]
        npm packages deleted from ``dependencies`` or ``devDependencies``.

    removed_scripts : list[str]
        package.json scripts deleted.

    errors : list[str]
        One message per failed operation.
    """

    removed_files: list[str] = field(default_factory=list)
    removed_packages: list[str] = field(default_factory=list)
    removed_scripts: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def merge(self, other: PruneResult) -> PruneResult:
        """Append another result's lists to this one and return self."""
        self.removed_files.extend(other.removed_files)
        self.removed_packages.extend(other.removed_packages)
        self.removed_scripts.extend(other.removed_scripts)
        self.errors.extend(other.errors)
        return self


# =============================================================================
# Planning
# =============================================================================

def packages_to_remove(
    unused: Iterable[str],
    registry: Mapping[str, Plugin] = PLUGINS,
) -> tuple[frozenset[str], frozenset[str]]:
    """
    Packages declared by unused plugins and by no kept plugin.

    Parameters
    ----------
    unused : Iterable[str]
        Plugins being pruned.

    registry : Mapping[str, Plugin]
        Plugin table.

    Returns
    -------
    tuple[frozenset[str], frozenset[str]]
        ``(dependencies, dev_dependencies)`` to delete.
    """
    unused_ids = set(unused)
    kept = frozenset().union(
        *(plugin.all_packages for pid, plugin in registry.items() if pid not in unused_ids)
    )

    deps: set[str] = set()
    dev_deps: set[str] = set()
    for pid in unused_ids:
        plugin = registry.get(pid)
        if plugin is None:
            continue
        deps |= plugin.dependencies
        dev_deps |= plugin.dev_dependencies

    return frozenset(deps - kept), frozenset(dev_deps - kept)


def scripts_to_remove(
    unused: Iterable[str],
    registry: Mapping[str, Plugin] = PLUGINS,
) -> frozenset[str]:
    """package.json scripts declared by unused plugins."""
    scripts: set[str] = set()
    for pid in set(unused):
        plugin = registry.get(pid)
        if plugin is not None:
            scripts |= plugin.package_json_scripts
    return frozenset(scripts)


def plan_file_removals(
    unused: Iterable[str],
    manifest: Iterable[FileEntry] = FILE_MANIFEST,
) -> list[FileEntry]:
    """
    Manifest entries that belong only to unused plugins.

    An entry qualifies when it has at least one owner and every owner is
    unused. Required entries never have owners, so they never qualify.

    Returns
    -------
    list[FileEntry]
        Candidates in manifest order.
    """
    unused_ids = frozenset(unused)
    return [
        entry for entry in manifest
        if not entry.required and entry.plugins and entry.plugins <= unused_ids
    ]


# =============================================================================
# Filesystem Helpers
# =============================================================================

def _remove_path(root: Path, relative: str) -> bool:
    """
    Delete a file, symlink or directory tree below ``root``.

    Returns
    -------
    bool
        True if something was deleted, False if the path did not exist.

    Raises
    ------
    ValueError
        If the path resolves outside ``root``.
    OSError
        If deletion fails.
    """
    target = root / relative.rstrip("/")
    if not target.parent.resolve().is_relative_to(root.resolve()):
        msg = f"Refusing to remove '{relative}': outside {root}"
        raise ValueError(msg)

    if target.is_symlink() or target.is_file():
        target.unlink()
        return True
    if target.is_dir():
        shutil.rmtree(target)
        return True
    return False


def protected_paths(unused: Iterable[str], manifest: Iterable[FileEntry] = FILE_MANIFEST) -> list[str]:
    """
    Manifest paths that must survive pruning: required entries and entries
    with at least one owner outside ``unused``.
    """
    unused_ids = frozenset(unused)
    return [
        entry.path.rstrip("/") for entry in manifest
        if entry.required or (entry.plugins and not entry.plugins <= unused_ids)
    ]


def plan_folder_removal(root: Path, folder: str, protected: Iterable[str]) -> list[str]:
    """
    Paths to delete so that ``folder`` disappears except for protected
    entries below it.

    Without protected entries inside, this is the folder itself. Otherwise
    the folder is walked and only unprotected children are returned.
    Directories end with ``/``.
    """
    inside = {p for p in protected if p == folder or p.startswith(f"{folder}/")}
    if not inside:
        return [f"{folder}/"]
    if folder in inside:
        return []

    directory = root / folder
    if directory.is_symlink() or not directory.is_dir():
        return []

    paths: list[str] = []
    for child in sorted(directory.iterdir()):
        relative = f"{folder}/{child.name}"
        if child.is_dir() and not child.is_symlink():
            paths += plan_folder_removal(root, relative, inside)
        elif relative not in inside:
            paths.append(relative)
    return paths


def _remove_all(root: Path, paths: Iterable[str], result: PruneResult) -> None:
    for relative in paths:
        try:
            if _remove_path(root, relative):
                result.removed_files.append(relative)
        except (OSError, ValueError) as e:
            result.errors.append(f"Failed to remove {relative}: {e}")


# =============================================================================
# Pruning Passes
# =============================================================================

def prune_dependencies(
    output_dir: Path,
    unused: Iterable[str],
    registry: Mapping[str, Plugin] = PLUGINS,
) -> PruneResult:
    """
    Remove unused plugins' packages and scripts from package.json.

    An unreadable or invalid package.json is recorded as an error and the
    pass is skipped.

    Parameters
    ----------
    output_dir : Path
        Project root.

    unused : Iterable[str]
        Plugins being pruned.

    registry : Mapping[str, Plugin]
        Plugin table.

    Returns
    -------
    PruneResult
        Removed packages and scripts, or a single error.
    """
    unused_ids = frozenset(unused)
    result = PruneResult()
    deps, dev_deps = packages_to_remove(unused_ids, registry)
    scripts = scripts_to_remove(unused_ids, registry)

    if not (deps or dev_deps or scripts):
        return result

    path = output_dir / "package.json"
    try:
        data = read_package_json(path)
    except (OSError, ValueError) as e:
        result.errors.append(f"Failed to read {path.name}: {e}")
        return result

    removed = remove_keys(data, "dependencies", deps)
    removed += remove_keys(data, "devDependencies", dev_deps)
    removed_scripts = remove_keys(data, "scripts", scripts)

    if not (removed or removed_scripts):
        return result

    try:
        write_package_json(path, data)
    except OSError as e:
        result.errors.append(f"Failed to write {path.name}: {e}")
        return result

    result.removed_packages = sorted(removed)
    result.removed_scripts = removed_scripts
    return result


def prune_files(
    output_dir: Path,
    unused: Iterable[str],
    manifest: Iterable[FileEntry] = FILE_MANIFEST,
) -> PruneResult:
    """
    Delete files owned only by unused plugins, then their ``zap/<id>/``
    folders.

    Every deletion is attempted independently. Missing paths are skipped
    silently. Inside a plugin folder, entries that a kept plugin co-owns
    are left in place.

    Returns
    -------
    PruneResult
        Removed paths and per-path errors.
    """
    unused_ids = sorted(set(unused))
    manifest = list(manifest)
    protected = protected_paths(unused_ids, manifest)
    result = PruneResult()

    _remove_all(output_dir, (entry.path for entry in plan_file_removals(unused_ids, manifest)), result)
    for pid in unused_ids:
        folder = f"{PLUGIN_ROOT}/{pid}"
        _remove_all(output_dir, plan_folder_removal(output_dir, folder, protected), result)

    return result


def prune(
    output_dir: Path,
    unused: Iterable[str],
    registry: Mapping[str, Plugin] = PLUGINS,
    manifest: Iterable[FileEntry] = FILE_MANIFEST,
) -> PruneResult:
    """
    Run both pruning passes for a set of unused plugins.

    Parameters
    ----------
    output_dir : Path
        Root of the freshly copied project.

    unused : Iterable[str]
        Plugins outside the effective set (``SelectionResult.unused``).

    registry : Mapping[str, Plugin]
        Plugin table.

    manifest : Iterable[FileEntry]
        Template file manifest.

    Returns
    -------
    PruneResult
        Combined result of both passes.
    """
    unused_ids = frozenset(unused)
    manifest = list(manifest)
    result = prune_dependencies(output_dir, unused_ids, registry)
    return result.merge(prune_files(output_dir, unused_ids, manifest))


def prune_ide_files(
    output_dir: Path,
    ide: IDE | Literal["all"] | None,
    manifest: Iterable[FileEntry] = FILE_MANIFEST,
) -> PruneResult:
    """
    Delete editor configuration for editors the user did not pick.

    Parameters
    ----------
    output_dir : Path
        Project root.

    ide : IDE | "all" | None
        ``"all"`` keeps every editor's files, None removes them all.

    manifest : Iterable[FileEntry]
        Template file manifest.

    Returns
    -------
    PruneResult
        Removed paths and per-path errors.
    """
    result = PruneResult()
    if ide == "all":
        return result

    paths = [
        entry.path for entry in manifest
        if entry.ide is not None and entry.ide != ide
    ]
    _remove_all(output_dir, paths, result)
    return result
