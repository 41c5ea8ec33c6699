"""
Tests for zapkit.generator
==========================

This module contains end-to-end tests for project generation. They run the
real pipeline against the miniature template from conftest with a scripted
command runner, so no package manager is ever executed.

Test Organization
-----------------
- TestTemplateSource: Template resolution
- TestCreateProject: Successful generation
- TestCreateProjectFailures: Fatal errors and cleanup
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from zapkit.exceptions import InstallError, PromptCancelledError, RegistryError, TemplateError
from zapkit.generator import GenerationResult, create_project, template_source
from zapkit.models import IDE, PackageManager, Plugin, ProjectConfig
from zapkit.registry import PLUGINS
from zapkit.settings import Settings
from zapkit.template import DEFAULT_TEMPLATE_URL


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    """Directory the generated project is created in."""
    path = tmp_path / "projects"
    path.mkdir()
    return path


@pytest.fixture
def blog_config(output_dir: Path, template_dir: Path) -> ProjectConfig:
    """A project with the blog plugin, VS Code and pnpm."""
    return ProjectConfig(
        name="my-blog",
        output_dir=output_dir,
        package_manager=PackageManager.PNPM,
        ide=IDE.VSCODE,
        plugins=["blog"],
        template=template_dir,
    )


def _never_called(failed: PackageManager, choices: list[PackageManager]) -> PackageManager | None:
    raise AssertionError("fallback prompt must not be shown")


# =============================================================================
# Template Source Tests
# =============================================================================

class TestTemplateSource:
    """Tests for template_source."""

    def test_config_wins(self, tmp_path: Path) -> None:
        """An explicit template overrides the settings."""
        config = ProjectConfig(name="x", template=tmp_path / "a")
        settings = Settings(template=tmp_path / "b")

        assert template_source(config, settings) == tmp_path / "a"

    def test_settings_fallback(self, tmp_path: Path) -> None:
        """The configured default is used when the config has none."""
        config = ProjectConfig(name="x")

        assert template_source(config, Settings(template=tmp_path / "b")) == tmp_path / "b"

    def test_default_download_url(self) -> None:
        """Without any template path the configured URL is downloaded."""
        assert template_source(ProjectConfig(name="x"), Settings()) == DEFAULT_TEMPLATE_URL

    def test_custom_download_url(self) -> None:
        """The download URL is configurable."""
        settings = Settings(template_url="https://example.com/zap.tar.gz")
        assert template_source(ProjectConfig(name="x"), settings) == "https://example.com/zap.tar.gz"


# =============================================================================
# Generation Tests
# =============================================================================

class TestCreateProject:
    """End-to-end tests for a successful create_project."""

    @pytest.fixture
    def generated(self, blog_config: ProjectConfig, fake_runner) -> tuple[GenerationResult, object]:
        runner = fake_runner()
        result = create_project(blog_config, verbose=False, run=runner, choose=_never_called)
        return result, runner

    def test_result(self, generated, blog_config: ProjectConfig) -> None:
        """The result describes the generated project."""
        result, _ = generated

        assert result.success
        assert result.project_path == blog_config.project_dir
        assert result.package_manager == PackageManager.PNPM
        assert sorted(result.selection.effective) == ["blog", "markdown"]
        assert result.errors == []

    def test_commands(self, generated) -> None:
        """Install, update and format run in order with the chosen package manager."""
        _, runner = generated

        assert runner.calls == [
            ["pnpm", "install"],
            ["pnpm", "update"],
            ["pnpm", "run", "format"],
        ]

    def test_plugin_folders(self, generated, blog_config: ProjectConfig) -> None:
        """Selected, required and core plugins stay; the rest go."""
        zap = blog_config.project_dir / "zap"

        assert sorted(p.name for p in zap.iterdir()) == ["auth", "blog", "markdown"]

    def test_plugin_files(self, generated, blog_config: ProjectConfig) -> None:
        """Files owned by unused plugins are removed."""
        project = blog_config.project_dir

        assert (project / "src/app/(public)/blog/page.tsx").exists()
        assert (project / "zap/blog/content/hello.mdx").exists()
        assert not (project / "emails").exists()
        assert not (project / "public/sw.js").exists()
        assert not (project / "src/app/(public)/(legal)").exists()

    def test_ide_files(self, generated, blog_config: ProjectConfig) -> None:
        """Only the chosen editor's configuration remains."""
        project = blog_config.project_dir

        assert (project / ".vscode").exists()
        assert not (project / ".cursor").exists()
        assert not (project / ".zed").exists()

    def test_package_json(self, generated, blog_config: ProjectConfig) -> None:
        """Unused packages and scripts are removed, shared ones stay."""
        data = json.loads((blog_config.project_dir / "package.json").read_text())

        assert data["name"] == "my-blog"
        assert "packageManager" not in data
        assert "gray-matter" in data["dependencies"]
        assert "react-syntax-highlighter" in data["dependencies"]
        assert "resend" not in data["dependencies"]
        assert "ai" not in data["dependencies"]
        assert "@react-email/preview-server" not in data["devDependencies"]
        assert "email:dev" not in data["scripts"]
        assert "next" in data["dependencies"]

    def test_default_template_download(
        self, output_dir: Path, fake_runner, fake_download: list[str]
    ) -> None:
        """Without a template path the latest Zap.ts snapshot is downloaded."""
        config = ProjectConfig(name="fresh", output_dir=output_dir, plugins=["blog"])

        result = create_project(config, Settings(), verbose=False, run=fake_runner(), choose=_never_called)

        assert result.success
        assert fake_download == [DEFAULT_TEMPLATE_URL]
        assert (output_dir / "fresh/zap/blog/index.ts").exists()
        assert json.loads((output_dir / "fresh/package.json").read_text())["name"] == "fresh"

    def test_lockfile_removed(self, generated, blog_config: ProjectConfig) -> None:
        """The template lockfile is not carried over."""
        assert not (blog_config.project_dir / "pnpm-lock.yaml").exists()

    def test_env_file(self, generated, blog_config: ProjectConfig) -> None:
        """A .env file with core keys is generated."""
        content = (blog_config.project_dir / ".env").read_text()

        assert content.startswith('BETTER_AUTH_SECRET="')
        assert "RESEND_API_KEY" not in content

    def test_cosmetic_failures_are_warnings(self, blog_config: ProjectConfig, fake_runner) -> None:
        """Failed update and format do not fail generation."""
        runner = fake_runner([0, 1, 1])

        result = create_project(blog_config, verbose=False, run=runner, choose=_never_called)

        assert result.success
        assert len(result.warnings) == 2
        assert blog_config.project_dir.exists()

    def test_fallback_package_manager_reported(self, blog_config: ProjectConfig, fake_runner) -> None:
        """After a fallback the package manager that worked is used from then on."""
        runner = fake_runner([1, 0])

        result = create_project(
            blog_config,
            verbose=False,
            run=runner,
            choose=lambda failed, choices: PackageManager.BUN,
        )

        assert result.package_manager == PackageManager.BUN
        assert runner.calls[1:] == [["bun", "install"], ["bun", "update"], ["bun", "run", "format"]]

    def test_verbose_output(self, blog_config: ProjectConfig, fake_runner, capsys) -> None:
        """Verbose mode prints progress and the pruned items."""
        config = blog_config.model_copy(update={"verbose": True})

        create_project(config, verbose=True, run=fake_runner(), choose=_never_called)

        out = capsys.readouterr().out
        assert "Project created successfully" in out
        assert "resend" in out


# =============================================================================
# Failure Tests
# =============================================================================

class TestCreateProjectFailures:
    """Fatal errors re-raise and clean up."""

    def test_install_failure_removes_project(self, blog_config: ProjectConfig, fake_runner) -> None:
        """A failed install leaves no partial project behind."""
        with pytest.raises(InstallError):
            create_project(
                blog_config,
                Settings(max_install_retries=0),
                verbose=False,
                run=fake_runner(default=1),
                choose=_never_called,
            )

        assert not blog_config.project_dir.exists()

    def test_cancelled_fallback_removes_project(self, blog_config: ProjectConfig, fake_runner) -> None:
        """Cancelling the fallback prompt also cleans up."""
        with pytest.raises(PromptCancelledError):
            create_project(
                blog_config,
                verbose=False,
                run=fake_runner(default=1),
                choose=lambda failed, choices: None,
            )

        assert not blog_config.project_dir.exists()

    def test_existing_directory_is_kept(self, blog_config: ProjectConfig, fake_runner) -> None:
        """A directory that existed before the run is never deleted."""
        blog_config.project_dir.mkdir()

        with pytest.raises(InstallError):
            create_project(
                blog_config,
                Settings(max_install_retries=0),
                verbose=False,
                run=fake_runner(default=1),
                choose=_never_called,
            )

        assert blog_config.project_dir.exists()

    def test_failed_download(
        self, output_dir: Path, fake_runner, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A failed default download creates nothing."""
        def failing_download(url, destination, client=None):
            raise TemplateError(f"Failed to download template from {url}: offline")

        monkeypatch.setattr("zapkit.template.download_template", failing_download)
        config = ProjectConfig(name="x", output_dir=output_dir)

        with pytest.raises(TemplateError, match="Failed to download template"):
            create_project(config, Settings(), verbose=False, run=fake_runner())

        assert not (output_dir / "x").exists()

    def test_invalid_registry(self, blog_config: ProjectConfig, fake_runner) -> None:
        """A broken registry stops generation before any copy."""
        registry = {
            **PLUGINS,
            "blog": Plugin(id="blog", label="Blog", required_plugins=frozenset({"ghost"})),
        }

        with pytest.raises(RegistryError):
            create_project(blog_config, verbose=False, run=fake_runner(), registry=registry)

        assert not blog_config.project_dir.exists()
