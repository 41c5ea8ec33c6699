"""
zapkit.settings - User Configuration
====================================

Defaults for the CLI, read from (lowest to highest precedence):

1. Built-in defaults on :class:`Settings`
2. ``[tool.zapkit]`` in ``pyproject.toml`` of the working directory
3. ``zapkit.toml`` in the working directory
4. ``ZAPKIT_TEMPLATE`` / ``ZAPKIT_TEMPLATE_URL`` / ``ZAPKIT_PACKAGE_MANAGER``
   environment variables

Command line flags override all of these.

Example ``zapkit.toml``::

    template = "~/templates/zap-core"
    package_manager = "pnpm"
    max_install_retries = 3
    router_path = "src/rpc/router.ts"
"""

from __future__ import annotations

import os
import posixpath
import tomllib
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from zapkit.models import PackageManager, ProcedureName
from zapkit.template import DEFAULT_TEMPLATE_URL


CONFIG_FILENAME = "zapkit.toml"


class Settings(BaseModel):
    """
    Configuration shared by all commands.

    Attributes
    ----------
    template : Path | None
        Default template directory or ``.tar.gz`` archive for ``new``.

    template_url : str
        Archive downloaded when no template path is configured.

    package_manager : PackageManager | None
        Preferred package manager. Prompted for when None.

    max_install_retries : int
        Fallback attempts after the first failed install.

    router_path : str
        Project-relative path of the RPC router.

    registry_binding : str
        Name of the router variable procedures are added to.

    procedures_dir : str
        Project-relative folder of generated procedures.

    hooks_dir : str
        Project-relative folder of generated client hooks.
    """

    template: Path | None = None
    template_url: str = Field(default=DEFAULT_TEMPLATE_URL, pattern=r"^https?://\S+$")
    package_manager: PackageManager | None = None
    max_install_retries: int = Field(default=3, ge=0, le=10)
    router_path: str = "src/rpc/router.ts"
    registry_binding: str = Field(default="router", pattern=r"^[A-Za-z_$][A-Za-z0-9_$]*$")
    procedures_dir: str = "src/rpc/procedures"
    hooks_dir: str = "src/hooks/rpc"

    @field_validator("template")
    @classmethod
    def expand_template(cls, v: Path | None) -> Path | None:
        """Expand ``~`` in the template path."""
        return v.expanduser() if v is not None else None

    def procedure_name(self, value: str) -> ProcedureName:
        """
        Validate a procedure name against the configured layout.

        Raises
        ------
        pydantic.ValidationError
            If the name is not a valid identifier.
        """
        return ProcedureName(
            value=value,
            procedures_dir=self.procedures_dir,
            hooks_dir=self.hooks_dir,
            router_dir=posixpath.dirname(self.router_path),
        )

    @classmethod
    def load(cls, directory: Path | None = None) -> Settings:
        """
        Build settings for a working directory.

        Parameters
        ----------
        directory : Path | None
            Directory to look for configuration files in. Defaults to the
            current directory.

        Returns
        -------
        Settings
            Merged settings.

        Raises
        ------
        tomllib.TOMLDecodeError
            If a configuration file is not valid TOML.
        pydantic.ValidationError
            If a configured value is invalid.
        """
        directory = directory or Path.cwd()
        data: dict = {}

        pyproject = directory / "pyproject.toml"
        if pyproject.is_file():
            with pyproject.open("rb") as f:
                data.update(tomllib.load(f).get("tool", {}).get("zapkit", {}))

        config_file = directory / CONFIG_FILENAME
        if config_file.is_file():
            with config_file.open("rb") as f:
                data.update(tomllib.load(f))

        if template := os.environ.get("ZAPKIT_TEMPLATE"):
            data["template"] = template
        if template_url := os.environ.get("ZAPKIT_TEMPLATE_URL"):
            data["template_url"] = template_url
        if package_manager := os.environ.get("ZAPKIT_PACKAGE_MANAGER"):
            data["package_manager"] = package_manager

        return cls(**data)
