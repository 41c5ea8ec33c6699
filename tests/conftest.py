"""
pytest configuration and shared fixtures for zapkit tests.

This module provides fixtures and configuration used across all test modules.
Fixtures defined here are automatically available to all tests.

Fixtures
--------
router_ts : str
    A router file with two registered procedures.

template_dir : Path
    A miniature Zap.ts template tree on disk.

project_dir : Path
    A generated project (template copy) with a router file.

fake_download : list[str]
    Replaces the template download with an archive of ``template_dir``.

fake_runner : type[FakeRunner]
    Factory for scripted command runners.

small_registry : dict[str, Plugin]
    A hand-built plugin table independent of the real registry.
"""

from __future__ import annotations

import json
import shutil
import subprocess
import tarfile
from pathlib import Path

import pytest

from zapkit.models import Plugin


ROUTER_TS = '''import { example } from "./procedures/example.rpc";
import { getUser } from "./procedures/get-user.rpc";

export const router = {
  example,
  getUser,
};
'''

TEMPLATE_PACKAGE_JSON = {
    "name": "zap-ts",
    "version": "1.0.0",
    "packageManager": "pnpm@9.0.0",
    "description": "Zap.ts starter kit",
    "author": "Zap.ts",
    "license": "MIT",
    "repository": {"type": "git", "url": "https://github.com/alexandretrotel/zap.ts"},
    "keywords": ["nextjs", "starter"],
    "scripts": {
        "dev": "next dev",
        "format": "biome format --write .",
        "email:dev": "email dev --dir emails",
    },
    "dependencies": {
        "next": "15.0.0",
        "ai": "4.0.0",
        "@ai-sdk/openai": "1.0.0",
        "better-auth": "1.0.0",
        "@polar-sh/sdk": "0.30.0",
        "@polar-sh/better-auth": "0.1.0",
        "gray-matter": "4.0.3",
        "next-mdx-remote": "5.0.0",
        "react-syntax-highlighter": "15.0.0",
        "resend": "4.0.0",
    },
    "devDependencies": {
        "@react-email/preview-server": "4.0.0",
        "drizzle-kit": "0.30.0",
        "typescript": "5.6.0",
    },
}

TEMPLATE_FILES = {
    "pnpm-lock.yaml": "lockfileVersion: '9.0'\n",
    "src/app/layout.tsx": "export default function Layout() {}\n",
    "src/app/(public)/(legal)/privacy/page.tsx": "export default function Privacy() {}\n",
    "src/app/(public)/blog/page.tsx": "export default function Blog() {}\n",
    "src/rpc/procedures/ai.rpc.ts": "export const ai = {};\n",
    "src/rpc/procedures/example.rpc.ts": "export const example = {};\n",
    "src/rpc/procedures/get-user.rpc.ts": "export const getUser = {};\n",
    "emails/welcome.tsx": "export default function Welcome() {}\n",
    "public/sw.js": "self.addEventListener('push', () => {});\n",
    "zap/ai/index.ts": "export const ai = 1;\n",
    "zap/auth/index.ts": 'import { polar } from "@/zap/payments/polar";\n',
    "zap/blog/content/hello.mdx": "# Hello\n",
    "zap/blog/index.ts": 'import { render } from "@/zap/markdown/render";\n',
    "zap/markdown/render.ts": "export const render = () => null;\n",
    "zap/mails/index.ts": "export const send = () => null;\n",
    ".vscode/settings.json": "{}\n",
    ".cursor/rules.md": "rules\n",
    ".zed/settings.json": "{}\n",
}


class FakeRunner:
    """
    Scripted stand-in for :func:`zapkit.installer.run_command`.

    Return codes are consumed in order; once exhausted, ``default`` is
    returned for every further call.
    """

    def __init__(self, returncodes: list[int] | None = None, default: int = 0) -> None:
        self.returncodes = list(returncodes or [])
        self.default = default
        self.calls: list[list[str]] = []

    def __call__(self, command: list[str], cwd: Path) -> subprocess.CompletedProcess[str]:
        self.calls.append(list(command))
        code = self.returncodes.pop(0) if self.returncodes else self.default
        stderr = "" if code == 0 else f"{command[0]} failed"
        return subprocess.CompletedProcess(command, code, stdout="", stderr=stderr)


def write_tree(root: Path, files: dict[str, str]) -> None:
    """Create every file of a ``path -> content`` mapping below ``root``."""
    for relative, content in files.items():
        target = root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")


@pytest.fixture
def router_ts() -> str:
    """Router source with ``example`` and ``getUser`` registered."""
    return ROUTER_TS


@pytest.fixture
def template_dir(tmp_path: Path) -> Path:
    """
    Create a miniature template tree.

    It contains files for a handful of core and optional plugins, IDE
    folders, a lockfile and a package.json that declares plugin packages.

    Returns
    -------
    Path
        The template root.
    """
    root = tmp_path / "template"
    write_tree(root, TEMPLATE_FILES)
    write_tree(root, {"src/rpc/router.ts": ROUTER_TS})
    (root / "package.json").write_text(json.dumps(TEMPLATE_PACKAGE_JSON, indent=2) + "\n")
    return root


@pytest.fixture
def project_dir(tmp_path: Path, template_dir: Path) -> Path:
    """A project directory holding a plain copy of the template."""
    target = tmp_path / "my-app"
    shutil.copytree(template_dir, target)
    return target


@pytest.fixture
def fake_download(template_dir: Path, monkeypatch: pytest.MonkeyPatch) -> list[str]:
    """
    Serve the template fixture as a GitHub-style archive instead of
    downloading.

    Returns
    -------
    list[str]
        URLs that were requested.
    """
    urls: list[str] = []

    def download(url: str, destination: Path, client=None) -> Path:
        urls.append(url)
        with tarfile.open(destination, "w:gz") as tar:
            tar.add(template_dir, arcname="zap.ts-main")
        return destination

    monkeypatch.setattr("zapkit.template.download_template", download)
    return urls


@pytest.fixture
def fake_runner() -> type[FakeRunner]:
    """Factory for scripted command runners."""
    return FakeRunner


@pytest.fixture
def small_registry() -> dict[str, Plugin]:
    """
    A plugin table with one core plugin and a short requirement chain.

    ``c -> b -> a`` plus an unrelated ``d``; ``core`` is always kept.
    """
    plugins = [
        Plugin(id="core", label="Core", core=True, dependencies=frozenset({"shared"})),
        Plugin(id="a", label="A", dependencies=frozenset({"pkg-a", "shared"})),
        Plugin(id="b", label="B", required_plugins=frozenset({"a"}), dependencies=frozenset({"pkg-b"})),
        Plugin(id="c", label="C", required_plugins=frozenset({"b"})),
        Plugin(id="d", label="D", dev_dependencies=frozenset({"pkg-d"}), package_json_scripts=frozenset({"d:dev"})),
    ]
    return {plugin.id: plugin for plugin in plugins}


# =============================================================================
# pytest Configuration
# =============================================================================

def pytest_configure(config: pytest.Config) -> None:
    """
    Configure pytest with custom markers.

    This function is called by pytest during startup to register
    custom markers used in our test suite.
    """
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests requiring external resources"
    )
