"""
zapkit.resolver - Plugin Requirement Resolution
===============================================

Computes which plugins end up in a project given the user's selection.

The resolver walks ``required_plugins`` edges depth-first from every
selected plugin, keeping an explicit visited set. A visited plugin is never
expanded twice, so resolution terminates even if the registry contains a
cycle, and ids missing from the registry are simply not expanded.

Resolution is a pure function of set contents: no ordering of the input or
of the registry affects the result.

Usage Example
-------------
>>> from zapkit.resolver import resolve
>>> result = resolve({"blog"})
>>> sorted(result.resolved_required)
['markdown']
>>> "blog" in result.unused
False
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from zapkit.models import Plugin
from zapkit.registry import PLUGINS


@dataclass(frozen=True)
class SelectionResult:
    """
    Outcome of resolving a plugin selection.

    Attributes
    ----------
    selected : frozenset[str]
        Plugins the user asked for.

    resolved_required : frozenset[str]
        Plugins pulled in transitively that were not selected.

    effective : frozenset[str]
        ``selected | resolved_required``.

    unused : frozenset[str]
        Optional plugins outside ``effective``. These are pruned.
    """

    selected: frozenset[str]
    resolved_required: frozenset[str]
    effective: frozenset[str]
    unused: frozenset[str]


def required_closure(
    selected: Iterable[str],
    registry: Mapping[str, Plugin] = PLUGINS,
) -> frozenset[str]:
    """
    Every plugin reachable from ``selected`` over requirement edges,
    ``selected`` included.

    Parameters
    ----------
    selected : Iterable[str]
        Starting plugin ids.

    registry : Mapping[str, Plugin]
        Plugin table. Unknown ids are kept in the result when selected
        but never expanded.

    Returns
    -------
    frozenset[str]
        The visited set.
    """
    visited: set[str] = set()
    stack = sorted(set(selected), reverse=True)

    while stack:
        plugin_id = stack.pop()
        if plugin_id in visited:
            continue
        visited.add(plugin_id)

        plugin = registry.get(plugin_id)
        if plugin is None:
            continue
        stack.extend(
            req for req in sorted(plugin.required_plugins, reverse=True)
            if req not in visited
        )

    return frozenset(visited)


def resolve(
    selected: Iterable[str],
    registry: Mapping[str, Plugin] = PLUGINS,
) -> SelectionResult:
    """
    Resolve a plugin selection against a registry.

    Parameters
    ----------
    selected : Iterable[str]
        Plugin ids chosen by the user. Ids absent from the registry are
        dropped.

    registry : Mapping[str, Plugin]
        Plugin table.

    Returns
    -------
    SelectionResult
        Selected, transitively required, effective and unused plugin sets.

    Examples
    --------
    >>> from zapkit.models import Plugin
    >>> registry = {
    ...     "a": Plugin(id="a", label="A", required_plugins=frozenset({"b"})),
    ...     "b": Plugin(id="b", label="B", required_plugins=frozenset({"a"})),
    ...     "c": Plugin(id="c", label="C"),
    ... }
    >>> result = resolve({"a"}, registry)
    >>> sorted(result.effective), sorted(result.unused)
    (['a', 'b'], ['c'])
    """
    chosen = frozenset(pid for pid in selected if pid in registry)
    visited = required_closure(chosen, registry)

    resolved_required = frozenset(pid for pid in visited - chosen if pid in registry)
    effective = chosen | resolved_required
    optional = frozenset(pid for pid, plugin in registry.items() if not plugin.core)

    return SelectionResult(
        selected=chosen,
        resolved_required=resolved_required,
        effective=effective,
        unused=optional - effective,
    )
