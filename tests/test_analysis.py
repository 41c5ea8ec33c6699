"""
Tests for zapkit.analysis
=========================

Test Organization
-----------------
- TestFindZapImports: Per-file import extraction
- TestSummarizePlugins: The four report sections
- TestFormatSummaryMarkdown: Markdown rendering
"""

from __future__ import annotations

from pathlib import Path

import pytest

from zapkit.analysis import (
    PluginImport,
    PluginSummary,
    classify_plugin,
    collect_source_files,
    find_zap_imports,
    format_summary_markdown,
    summarize_plugins,
)
from zapkit.exceptions import ValidationError


# =============================================================================
# Scanning Tests
# =============================================================================

class TestFindZapImports:
    """Tests for single-file scanning."""

    def test_classify(self) -> None:
        """Registry membership decides the kind."""
        assert classify_plugin("auth") == "core"
        assert classify_plugin("blog") == "optional"
        assert classify_plugin("nope") == "unknown"

    def test_import_forms(self, tmp_path: Path) -> None:
        """Static, type, side-effect and require imports are all found."""
        path = tmp_path / "src/page.tsx"
        path.parent.mkdir()
        path.write_text(
            'import { a } from "@/zap/ai/hooks";\n'
            "import type { B } from '@/zap/blog';\n"
            'import "@/zap/pwa/register";\n'
            'const m = require("@/zap/mails/send");\n'
        )

        found = find_zap_imports(path, tmp_path)

        assert [entry.plugin for entry in found] == ["ai", "blog", "mails", "pwa"]
        assert all(entry.importer is None for entry in found)
        assert found[0].path == "src/page.tsx"

    def test_self_imports_skipped(self, tmp_path: Path) -> None:
        """A plugin importing its own modules is not reported."""
        path = tmp_path / "zap/blog/index.ts"
        path.parent.mkdir(parents=True)
        path.write_text('import { x } from "@/zap/blog/utils";\nimport { y } from "@/zap/markdown";\n')

        found = find_zap_imports(path, tmp_path)

        assert found == [PluginImport("markdown", "zap/blog/index.ts", "optional", "blog")]

    def test_collect_skips_node_modules(self, tmp_path: Path) -> None:
        """Dependency folders are not scanned."""
        (tmp_path / "node_modules/pkg").mkdir(parents=True)
        (tmp_path / "node_modules/pkg/index.ts").write_text("")
        (tmp_path / "index.ts").write_text("")
        (tmp_path / "notes.txt").write_text("")

        assert collect_source_files(tmp_path) == [tmp_path / "index.ts"]


# =============================================================================
# Summary Tests
# =============================================================================

class TestSummarizePlugins:
    """Tests for summarize_plugins."""

    def test_missing_zap_dir(self, tmp_path: Path) -> None:
        """A directory without zap/ is not a Zap.ts project."""
        with pytest.raises(ValidationError, match="No zap/ directory"):
            summarize_plugins(tmp_path)

    def test_plugin_imports(self, project_dir: Path) -> None:
        """Cross-plugin imports are grouped by importer."""
        summary = summarize_plugins(project_dir)

        assert summary.plugin_imports == {"auth": ["payments"], "blog": ["markdown"]}

    def test_core_to_optional(self, project_dir: Path) -> None:
        """Core plugins importing optional plugins are flagged."""
        summary = summarize_plugins(project_dir)

        assert [(e.importer, e.plugin) for e in summary.core_to_optional] == [("auth", "payments")]

    def test_declared_requirements_not_flagged(self, project_dir: Path) -> None:
        """blog requires markdown, so the import is fine."""
        assert summarize_plugins(project_dir).undeclared == {}

    def test_undeclared(self, project_dir: Path) -> None:
        """Optional-to-optional imports outside the requirement closure are flagged."""
        (project_dir / "zap/blog/ai.ts").write_text('import { ai } from "@/zap/ai";\n')

        summary = summarize_plugins(project_dir)

        assert summary.undeclared == {"blog": ["ai"]}

    def test_src_imports(self, project_dir: Path) -> None:
        """Application imports are listed core first."""
        (project_dir / "src/app/layout.tsx").write_text(
            'import { Blog } from "@/zap/blog";\nimport { auth } from "@/zap/auth";\n'
        )

        summary = summarize_plugins(project_dir)

        assert [(e.plugin, e.kind) for e in summary.src_imports] == [
            ("auth", "core"),
            ("blog", "optional"),
        ]


# =============================================================================
# Rendering Tests
# =============================================================================

class TestFormatSummaryMarkdown:
    """Tests for format_summary_markdown."""

    def test_empty(self) -> None:
        """Every empty section says so."""
        text = format_summary_markdown(PluginSummary())

        assert text.startswith("# Plugin summary\n")
        assert text.count("_None_") == 4

    def test_sections(self, project_dir: Path) -> None:
        """Findings are rendered as list items."""
        text = format_summary_markdown(summarize_plugins(project_dir))

        assert "- `auth` -> `payments`" in text
        assert "- `auth` imports `payments` in `zap/auth/index.ts`" in text
