"""
Tests for zapkit.registry and zapkit.manifest
=============================================

Test Organization
-----------------
- TestBuiltinRegistry: Consistency of the shipped plugin table
- TestFindCycle: Cycle detection on requirement edges
- TestValidateRegistry: Registry validation errors
- TestManifest: Manifest queries
"""

from __future__ import annotations

import pytest

from zapkit.exceptions import RegistryError
from zapkit.manifest import FILE_MANIFEST, files_for_plugin, files_for_plugins, ide_files
from zapkit.models import Plugin
from zapkit.registry import (
    PLUGINS,
    core_plugin_ids,
    find_cycle,
    get_plugin,
    optional_plugin_ids,
    validate_registry,
)


def _registry(*plugins: Plugin) -> dict[str, Plugin]:
    return {plugin.id: plugin for plugin in plugins}


# =============================================================================
# Built-in Registry Tests
# =============================================================================

class TestBuiltinRegistry:
    """Tests for the plugin table that ships with zapkit."""

    def test_registry_is_valid(self) -> None:
        """The shipped registry passes validation."""
        validate_registry(PLUGINS)

    def test_core_and_optional_partition(self) -> None:
        """Every plugin is either core or optional."""
        core, optional = core_plugin_ids(), optional_plugin_ids()

        assert core.isdisjoint(optional)
        assert core | optional == set(PLUGINS)
        assert {"auth", "api", "db"} <= core
        assert {"blog", "ai", "waitlist"} <= optional

    def test_known_requirements(self) -> None:
        """Requirement edges of the shipped plugins."""
        assert get_plugin("blog").required_plugins == {"markdown"}
        assert get_plugin("waitlist").required_plugins == {"mails"}
        assert get_plugin("flags").required_plugins == {"analytics"}

    def test_unknown_plugin_lookup(self) -> None:
        """Looking up an unknown id raises KeyError."""
        with pytest.raises(KeyError):
            get_plugin("does-not-exist")

    def test_manifest_owners_exist(self) -> None:
        """Every manifest owner is a registered plugin."""
        owners = {pid for entry in FILE_MANIFEST for pid in entry.plugins}
        assert owners <= set(PLUGINS)


# =============================================================================
# Cycle Detection Tests
# =============================================================================

class TestFindCycle:
    """Tests for find_cycle."""

    def test_acyclic(self, small_registry: dict[str, Plugin]) -> None:
        """A chain has no cycle."""
        assert find_cycle(small_registry) is None

    def test_two_node_cycle(self) -> None:
        """a -> b -> a is reported as a closed path."""
        registry = _registry(
            Plugin(id="a", label="A", required_plugins=frozenset({"b"})),
            Plugin(id="b", label="B", required_plugins=frozenset({"a"})),
        )
        assert find_cycle(registry) == ["a", "b", "a"]

    def test_self_loop(self) -> None:
        """A plugin requiring itself is a cycle."""
        registry = _registry(Plugin(id="a", label="A", required_plugins=frozenset({"a"})))
        assert find_cycle(registry) == ["a", "a"]

    def test_diamond_is_not_a_cycle(self) -> None:
        """Two paths to the same plugin are fine."""
        registry = _registry(
            Plugin(id="a", label="A", required_plugins=frozenset({"b", "c"})),
            Plugin(id="b", label="B", required_plugins=frozenset({"d"})),
            Plugin(id="c", label="C", required_plugins=frozenset({"d"})),
            Plugin(id="d", label="D"),
        )
        assert find_cycle(registry) is None

    def test_dangling_edges_ignored(self) -> None:
        """Unknown requirements do not count as cycles."""
        registry = _registry(Plugin(id="a", label="A", required_plugins=frozenset({"ghost"})))
        assert find_cycle(registry) is None


# =============================================================================
# Validation Tests
# =============================================================================

class TestValidateRegistry:
    """Tests for validate_registry."""

    def test_key_mismatch(self) -> None:
        """Keys must equal plugin ids."""
        with pytest.raises(RegistryError, match="do not match"):
            validate_registry({"x": Plugin(id="y", label="Y")})

    def test_dangling_reference(self) -> None:
        """Requirements must point at registered plugins."""
        registry = _registry(Plugin(id="a", label="A", required_plugins=frozenset({"ghost"})))
        with pytest.raises(RegistryError, match="a -> ghost"):
            validate_registry(registry)

    def test_cycle(self) -> None:
        """Cycles are rejected with the cycle path."""
        registry = _registry(
            Plugin(id="a", label="A", required_plugins=frozenset({"b"})),
            Plugin(id="b", label="B", required_plugins=frozenset({"a"})),
        )
        with pytest.raises(RegistryError, match="a -> b -> a"):
            validate_registry(registry)


# =============================================================================
# Manifest Tests
# =============================================================================

class TestManifest:
    """Tests for manifest queries."""

    def test_files_for_plugin(self) -> None:
        """Entries owned by one plugin."""
        assert [e.path for e in files_for_plugin("legal")] == ["src/app/(public)/(legal)/"]

    def test_jointly_owned_entry(self) -> None:
        """A jointly owned entry is listed for each owner."""
        assert "zap/blog/content/" in [e.path for e in files_for_plugin("blog")]
        assert "zap/blog/content/" in [e.path for e in files_for_plugin("markdown")]

    def test_files_for_plugins_has_no_duplicates(self) -> None:
        """Entries owned by several requested plugins appear once."""
        paths = [e.path for e in files_for_plugins(["blog", "markdown"])]
        assert paths.count("zap/blog/content/") == 1

    def test_ide_files(self) -> None:
        """Every IDE entry is in the IDE category and unowned."""
        entries = ide_files()
        assert {".vscode/", ".cursor/", ".zed/", ".windsurf/"} <= {e.path for e in entries}
        assert all(not e.plugins and not e.required for e in entries)

    def test_required_entries_are_unowned(self) -> None:
        """No required entry has an owner."""
        assert all(not e.plugins for e in FILE_MANIFEST if e.required)
