"""
Tests for zapkit.postinstall
============================
"""

from __future__ import annotations

from pathlib import Path

import pytest

from zapkit.models import PackageManager
from zapkit.postinstall import detect_package_manager, run_formatting, update_dependencies


class TestCosmeticSteps:
    """Update and format failures become warnings."""

    def test_update_success(self, tmp_path: Path, fake_runner) -> None:
        """A successful update returns no warning."""
        runner = fake_runner()

        assert update_dependencies(PackageManager.BUN, tmp_path, runner) is None
        assert runner.calls == [["bun", "update"]]

    def test_update_failure(self, tmp_path: Path, fake_runner) -> None:
        """A failed update is described with its command and stderr."""
        warning = update_dependencies(PackageManager.NPM, tmp_path, fake_runner(default=1))

        assert warning == "Failed to update dependencies (`npm update`): npm failed"

    def test_format_failure(self, tmp_path: Path, fake_runner) -> None:
        """A failed format run is a warning."""
        warning = run_formatting(PackageManager.PNPM, tmp_path, fake_runner(default=2))

        assert warning is not None
        assert "`pnpm run format`" in warning


class TestDetectPackageManager:
    """Tests for lockfile-based detection."""

    @pytest.mark.parametrize(
        ("lockfile", "expected"),
        [
            ("package-lock.json", PackageManager.NPM),
            ("yarn.lock", PackageManager.YARN),
            ("pnpm-lock.yaml", PackageManager.PNPM),
            ("bun.lock", PackageManager.BUN),
            ("bun.lockb", PackageManager.BUN),
        ],
    )
    def test_lockfiles(self, tmp_path: Path, lockfile: str, expected: PackageManager) -> None:
        """Each lockfile maps to its package manager."""
        (tmp_path / lockfile).write_text("")
        assert detect_package_manager(tmp_path) == expected

    def test_default_is_npm(self, tmp_path: Path) -> None:
        """Without a lockfile npm is assumed."""
        assert detect_package_manager(tmp_path) == PackageManager.NPM
