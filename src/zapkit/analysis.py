"""
zapkit.analysis - Plugin Import Analysis
========================================

Backs ``zapkit debug plugins``: scans a generated project for imports of
``@/zap/<plugin>`` and reports how plugins actually depend on each other,
so the static registry can be checked against the code.

The report has four parts:

1. Plugins imported by application code under ``src/``
2. For every plugin folder ``zap/<id>/``, the other plugins it imports
3. Core plugin files that import optional plugins (these break when the
   optional plugin is pruned)
4. Optional plugins importing optional plugins they do not declare in
   ``required_plugins`` (pruning may leave dangling imports)

File reads are independent and side-effect free, so they run on a thread
pool.

Usage Example
-------------
>>> from pathlib import Path
>>> from zapkit.analysis import summarize_plugins, format_summary_markdown
>>> summary = summarize_plugins(Path("my-app"))  # doctest: +SKIP
>>> print(format_summary_markdown(summary))  # doctest: +SKIP
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from zapkit.exceptions import FileSystemError, ValidationError
from zapkit.models import Plugin
from zapkit.registry import PLUGINS
from zapkit.resolver import required_closure


PluginKind = Literal["core", "optional", "unknown"]

ZAP_IMPORT_PATTERN = re.compile(r"""(?:import|require)[^'"]+['"]@/zap/([^/'"]+)""")

SOURCE_SUFFIXES = frozenset({".ts", ".tsx", ".js", ".jsx", ".mjs", ".mdx"})

_KIND_ORDER = {"core": 0, "optional": 1, "unknown": 2}


@dataclass(frozen=True, order=True)
class PluginImport:
    """
    One ``@/zap/<plugin>`` import found in a file.

    Attributes
    ----------
    plugin : str
        Imported plugin id.

    path : str
        Project-relative path of the importing file.

    kind : PluginKind
        Classification of the imported plugin.

    importer : str | None
        Plugin that owns the importing file (``zap/<importer>/...``), or
        None for files outside ``zap/``.
    """

    plugin: str
    path: str
    kind: PluginKind
    importer: str | None = None


@dataclass
class PluginSummary:
    """Result of :func:`summarize_plugins`."""

    src_imports: list[PluginImport] = field(default_factory=list)
    plugin_imports: dict[str, list[str]] = field(default_factory=dict)
    core_to_optional: list[PluginImport] = field(default_factory=list)
    undeclared: dict[str, list[str]] = field(default_factory=dict)


# =============================================================================
# Scanning
# =============================================================================

def classify_plugin(plugin_id: str, registry: Mapping[str, Plugin] = PLUGINS) -> PluginKind:
    """Whether a plugin id is core, optional, or not in the registry."""
    plugin = registry.get(plugin_id)
    if plugin is None:
        return "unknown"
    return "core" if plugin.core else "optional"


def collect_source_files(directory: Path) -> list[Path]:
    """Source files below ``directory``, sorted, skipping dependency folders."""
    if not directory.is_dir():
        return []
    return sorted(
        path for path in directory.rglob("*")
        if path.suffix in SOURCE_SUFFIXES
        and path.is_file()
        and "node_modules" not in path.parts
    )


def _owning_plugin(relative: Path) -> str | None:
    parts = relative.parts
    if len(parts) >= 2 and parts[0] == "zap":
        return parts[1]
    return None


def find_zap_imports(
    path: Path,
    project_dir: Path,
    registry: Mapping[str, Plugin] = PLUGINS,
) -> list[PluginImport]:
    """
    Plugin imports in one file.

    Imports of a plugin from its own folder are not reported.

    Raises
    ------
    FileSystemError
        If the file cannot be read.
    """
    try:
        content = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        msg = f"Failed to read {path}: {e}"
        raise FileSystemError(msg) from e

    relative = path.relative_to(project_dir)
    importer = _owning_plugin(relative)
    found = {
        PluginImport(
            plugin=plugin_id,
            path=relative.as_posix(),
            kind=classify_plugin(plugin_id, registry),
            importer=importer,
        )
        for plugin_id in ZAP_IMPORT_PATTERN.findall(content)
        if plugin_id != importer
    }
    return sorted(found)


def scan_imports(
    project_dir: Path,
    directory: Path,
    registry: Mapping[str, Plugin] = PLUGINS,
    max_workers: int | None = None,
) -> list[PluginImport]:
    """
    Plugin imports in every source file below ``directory``.

    Returns
    -------
    list[PluginImport]
        Unique imports sorted by kind, plugin, then path.
    """
    files = collect_source_files(directory)
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        per_file = executor.map(lambda p: find_zap_imports(p, project_dir, registry), files)
        imports = {entry for entries in per_file for entry in entries}
    return sorted(imports, key=lambda e: (_KIND_ORDER[e.kind], e.plugin, e.path))


# =============================================================================
# Summary
# =============================================================================

def summarize_plugins(
    project_dir: Path,
    registry: Mapping[str, Plugin] = PLUGINS,
) -> PluginSummary:
    """
    Analyze how the plugins of a project import each other.

    Parameters
    ----------
    project_dir : Path
        Root of a generated project (must contain ``zap/``).

    registry : Mapping[str, Plugin]
        Plugin table to classify and compare against.

    Returns
    -------
    PluginSummary
        The four report sections.

    Raises
    ------
    ValidationError
        If the directory has no ``zap/`` folder.
    """
    zap_dir = project_dir / "zap"
    if not zap_dir.is_dir():
        msg = f"No zap/ directory found in {project_dir}"
        raise ValidationError(msg)

    summary = PluginSummary(src_imports=scan_imports(project_dir, project_dir / "src", registry))

    imports_by_plugin: dict[str, set[str]] = {}
    for entry in scan_imports(project_dir, zap_dir, registry):
        if entry.importer is None:
            continue
        imports_by_plugin.setdefault(entry.importer, set()).add(entry.plugin)
        if classify_plugin(entry.importer, registry) == "core" and entry.kind == "optional":
            summary.core_to_optional.append(entry)

    summary.plugin_imports = {
        importer: sorted(imported) for importer, imported in sorted(imports_by_plugin.items())
    }

    for importer, imported in summary.plugin_imports.items():
        if classify_plugin(importer, registry) != "optional":
            continue
        allowed = required_closure({importer}, registry)
        missing = [
            pid for pid in imported
            if classify_plugin(pid, registry) == "optional" and pid not in allowed
        ]
        if missing:
            summary.undeclared[importer] = missing

    summary.core_to_optional.sort(key=lambda e: (e.importer or "", e.plugin, e.path))
    return summary


def format_summary_markdown(summary: PluginSummary) -> str:
    """Render a summary as Markdown, for ``--output``."""
    lines = ["# Plugin summary", "", "## Plugins used in src/", ""]
    if summary.src_imports:
        lines += [f"- `{e.plugin}` ({e.kind}) in `{e.path}`" for e in summary.src_imports]
    else:
        lines.append("_None_")

    lines += ["", "## Plugin dependencies", ""]
    if summary.plugin_imports:
        lines += [
            f"- `{importer}` -> {', '.join(f'`{p}`' for p in imported)}"
            for importer, imported in summary.plugin_imports.items()
        ]
    else:
        lines.append("_None_")

    lines += ["", "## Core plugins importing optional plugins", ""]
    if summary.core_to_optional:
        lines += [
            f"- `{e.importer}` imports `{e.plugin}` in `{e.path}`"
            for e in summary.core_to_optional
        ]
    else:
        lines.append("_None_")

    lines += ["", "## Undeclared plugin requirements", ""]
    if summary.undeclared:
        lines += [
            f"- `{importer}` imports {', '.join(f'`{p}`' for p in missing)}"
            for importer, missing in summary.undeclared.items()
        ]
    else:
        lines.append("_None_")

    return "\n".join(lines) + "\n"
