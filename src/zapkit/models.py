"""
zapkit.models - Pydantic Models for Plugins, Files and Projects
================================================================

This module defines the data models used throughout zapkit. Pydantic gives
us validation of user input with clear error messages, and immutable records
for the static plugin registry and file manifest.

Architecture Notes
------------------
The models are organized as follows:

    Plugin            (one feature module of the template)
    FileEntry         (one path of the template tree)
    ├── FileStatus    (enum)
    ├── FileCategory  (enum)
    └── IDE           (enum, IDE-specific entries only)
    ProjectConfig     (everything ``zapkit new`` needs)
    ├── PackageManager (enum)
    └── IDE            (enum)
    ProcedureName     (validated procedure identifier and derived paths)

Plugins and file entries are plain records. There is no inheritance between
plugin kinds: a plugin is either core (always kept) or optional.

Usage Example
-------------
>>> from zapkit.models import ProcedureName
>>> name = ProcedureName(value="getUserStats")
>>> name.kebab_case
'get-user-stats'
>>> name.procedure_path
'src/rpc/procedures/get-user-stats.rpc.ts'
"""

from __future__ import annotations

import posixpath
import re
from enum import Enum
from pathlib import Path
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# Procedure names become TypeScript identifiers and file names.
PROCEDURE_NAME_PATTERN = re.compile(r"[a-zA-Z][a-zA-Z0-9]*")

# Project names become directory names and the package.json "name".
PROJECT_NAME_PATTERN = re.compile(r"[a-zA-Z0-9_-]+")


# =============================================================================
# Enumerations
# =============================================================================

class PackageManager(str, Enum):
    """
    Supported JavaScript package managers (installer backends).

    The CLI presents these as interactive choices and falls back between
    them when an install fails.

    Examples
    --------
    >>> PackageManager.NPM.install_command
    ['npm', 'install', '--legacy-peer-deps']
    >>> PackageManager.PNPM.run_command("format")
    ['pnpm', 'run', 'format']
    """

    NPM = "npm"
    YARN = "yarn"
    PNPM = "pnpm"
    BUN = "bun"

    @property
    def install_command(self) -> list[str]:
        """
        Command that installs the dependencies declared in package.json.

        npm needs ``--legacy-peer-deps`` because several template packages
        declare peer ranges that npm's resolver rejects.
        """
        commands = {
            PackageManager.NPM: ["npm", "install", "--legacy-peer-deps"],
            PackageManager.YARN: ["yarn"],
            PackageManager.PNPM: ["pnpm", "install"],
            PackageManager.BUN: ["bun", "install"],
        }
        return commands[self]

    @property
    def update_command(self) -> list[str]:
        """Command that updates installed dependencies to their latest allowed versions."""
        return [self.value, "update"]

    def run_command(self, script: str) -> list[str]:
        """
        Command that runs a package.json script.

        Parameters
        ----------
        script : str
            Name of the script in the ``scripts`` map.

        Returns
        -------
        list[str]
            Argument vector for ``subprocess.run``.
        """
        return [self.value, "run", script]

    @property
    def lockfile(self) -> str:
        """Lockfile name written by this package manager."""
        lockfiles = {
            PackageManager.NPM: "package-lock.json",
            PackageManager.YARN: "yarn.lock",
            PackageManager.PNPM: "pnpm-lock.yaml",
            PackageManager.BUN: "bun.lock",
        }
        return lockfiles[self]


class IDE(str, Enum):
    """
    Editors whose configuration files ship with the template.

    Files tagged with an IDE are removed unless the user picked that IDE
    (or all of them).
    """

    VSCODE = "vscode"
    CURSOR = "cursor"
    WINDSURF = "windsurf"
    ZED = "zed"

    @property
    def description(self) -> str:
        """Human-readable label for CLI prompts."""
        descriptions = {
            IDE.VSCODE: "VS Code (with GitHub Copilot)",
            IDE.CURSOR: "Cursor",
            IDE.WINDSURF: "Windsurf",
            IDE.ZED: "Zed",
        }
        return descriptions[self]


class FileStatus(str, Enum):
    """
    Lifecycle status of a template path relative to the upstream framework
    starter.

    Attributes
    ----------
    ADDED : str
        The file does not exist in a fresh framework starter.
    MODIFIED : str
        The file exists upstream but the template changes it.
    DELETED : str
        The upstream file is removed by the template.
    """

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"


class FileCategory(str, Enum):
    """Coarse grouping of manifest entries, used for listings only."""

    CONFIG = "config"
    IDE = "ide"
    PUBLIC = "public"
    APP = "app"
    API = "api"
    RPC = "rpc"
    HOOKS = "hooks"
    EMAILS = "emails"
    ZAP = "zap"
    DATABASE = "database"


# =============================================================================
# Registry Records
# =============================================================================

class Plugin(BaseModel):
    """
    Static metadata for one feature module of the template.

    Attributes
    ----------
    id : str
        Unique, stable key (also the name of its ``zap/<id>/`` folder).

    label : str
        Human-readable name shown in prompts.

    description : str
        One-line description shown in prompts.

    core : bool
        Core plugins are always part of a project and never pruned.

    dependencies : frozenset[str]
        npm packages listed under ``dependencies``.

    dev_dependencies : frozenset[str]
        npm packages listed under ``devDependencies``.

    required_plugins : frozenset[str]
        Plugins that must be present whenever this one is.

    package_json_scripts : frozenset[str]
        ``scripts`` entries that only make sense with this plugin.

    env : tuple[str, ...]
        Environment variable keys this plugin reads.
    """

    model_config = ConfigDict(frozen=True)

    id: Annotated[str, Field(min_length=1, pattern=r"^[a-z][a-z0-9-]*$")]
    label: str
    description: str = ""
    core: bool = False
    dependencies: frozenset[str] = frozenset()
    dev_dependencies: frozenset[str] = frozenset()
    required_plugins: frozenset[str] = frozenset()
    package_json_scripts: frozenset[str] = frozenset()
    env: tuple[str, ...] = ()

    @property
    def all_packages(self) -> frozenset[str]:
        """Every npm package this plugin declares, runtime and dev."""
        return self.dependencies | self.dev_dependencies


class FileEntry(BaseModel):
    """
    One path of the template tree.

    Attributes
    ----------
    path : str
        Relative POSIX path. Folders end with ``/``.

    status : FileStatus
        Lifecycle status relative to the upstream starter.

    required : bool
        Required entries are never pruned and cannot be owned by a plugin.

    plugins : frozenset[str]
        Owning plugins. Empty means core (never pruned by plugin selection).

    ide : IDE | None
        Set for editor configuration entries.

    category : FileCategory
        Listing group.

    Examples
    --------
    >>> FileEntry(path="public/sw.js", plugins=frozenset({"pwa"})).is_folder
    False
    >>> FileEntry(path="zap/pwa/", plugins=frozenset({"pwa"})).is_folder
    True
    """

    model_config = ConfigDict(frozen=True)

    path: Annotated[str, Field(min_length=1)]
    status: FileStatus = FileStatus.ADDED
    required: bool = False
    plugins: frozenset[str] = frozenset()
    ide: IDE | None = None
    category: FileCategory = FileCategory.APP

    @field_validator("path")
    @classmethod
    def validate_relative_path(cls, v: str) -> str:
        """Reject absolute paths and parent-directory segments."""
        if v.startswith("/") or re.match(r"^[a-zA-Z]:", v):
            msg = f"Manifest path must be relative: {v}"
            raise ValueError(msg)
        if ".." in v.split("/"):
            msg = f"Manifest path must not contain '..': {v}"
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def validate_required_is_unowned(self) -> FileEntry:
        """A required entry can never belong to a plugin."""
        if self.required and self.plugins:
            msg = (
                f"Required entry '{self.path}' cannot be owned by plugins "
                f"{sorted(self.plugins)}"
            )
            raise ValueError(msg)
        return self

    @property
    def is_folder(self) -> bool:
        """Whether this entry names a whole directory."""
        return self.path.endswith("/")


# =============================================================================
# Project Configuration
# =============================================================================

class ProjectConfig(BaseModel):
    """
    Complete configuration for ``zapkit new``.

    Attributes
    ----------
    name : str
        Project name. Used as the directory name and package.json name.

    output_dir : Path
        Directory the project directory is created in.

    package_manager : PackageManager
        Preferred installer backend. The one actually used may differ
        after a fallback.

    ide : IDE | "all" | None
        Editor configuration to keep. ``"all"`` keeps everything,
        ``None`` removes every editor file.

    plugins : list[str]
        Optional plugins selected by the user. Required plugins are added
        by the resolver, not here.

    template : Path | None
        Local template directory or ``.tar.gz`` archive.

    verbose : bool
        List pruned packages and files.

    Examples
    --------
    >>> config = ProjectConfig(name="my-app", plugins=["blog"])
    >>> config.project_dir.name
    'my-app'
    """

    name: Annotated[str, Field(
        description="Project name (directory and package.json name)",
        min_length=1,
        max_length=214,
    )]
    output_dir: Path = Field(
        default_factory=Path.cwd,
        description="Directory where the project will be created",
    )
    package_manager: PackageManager = Field(
        default=PackageManager.NPM,
        description="Preferred package manager",
    )
    ide: IDE | Literal["all"] | None = Field(
        default="all",
        description="Editor configuration to keep",
    )
    plugins: list[str] = Field(
        default_factory=list,
        description="Selected optional plugins",
    )
    template: Path | None = Field(
        default=None,
        description="Template directory or archive",
    )
    verbose: bool = False

    @field_validator("name")
    @classmethod
    def validate_project_name(cls, v: str) -> str:
        """
        Validate the project name.

        Raises
        ------
        ValueError
            If the name contains anything but letters, digits, hyphens
            and underscores.
        """
        v = v.strip()
        if not PROJECT_NAME_PATTERN.fullmatch(v):
            msg = (
                f"Invalid project name '{v}'. Names may only contain letters, "
                "numbers, hyphens, and underscores."
            )
            raise ValueError(msg)
        return v

    @field_validator("plugins")
    @classmethod
    def validate_plugins(cls, v: list[str]) -> list[str]:
        """Keep only known optional plugin ids, deduplicated, in order."""
        from zapkit.registry import optional_plugin_ids

        known = optional_plugin_ids()
        unknown = [p for p in v if p not in known]
        if unknown:
            msg = (
                f"Unknown plugin(s): {', '.join(unknown)}. "
                f"Valid: {', '.join(sorted(known))}"
            )
            raise ValueError(msg)
        return list(dict.fromkeys(v))

    @property
    def project_dir(self) -> Path:
        """
        Full path to the project directory.

        Returns
        -------
        Path
            output_dir / name
        """
        return self.output_dir / self.name


# =============================================================================
# Procedure Naming
# =============================================================================

class ProcedureName(BaseModel):
    """
    A validated procedure identifier and every name derived from it.

    The user-supplied value is the canonical name: it is the exported
    binding, the import name and the router key. The kebab-case stem is used
    for file names.

    Examples
    --------
    >>> name = ProcedureName(value="getUser")
    >>> name.pascal_case
    'GetUser'
    >>> name.hook_path
    'src/hooks/rpc/use-get-user.ts'
    >>> name.import_specifier
    './procedures/get-user.rpc'
    """

    model_config = ConfigDict(frozen=True)

    value: str
    procedures_dir: str = "src/rpc/procedures"
    hooks_dir: str = "src/hooks/rpc"
    router_dir: str = "src/rpc"

    @field_validator("value")
    @classmethod
    def validate_identifier(cls, v: str) -> str:
        """Names must start with a letter and contain only letters and digits."""
        if not PROCEDURE_NAME_PATTERN.fullmatch(v):
            msg = (
                f"Invalid procedure name '{v}'. Names must start with a letter "
                "and contain only letters and numbers."
            )
            raise ValueError(msg)
        return v

    @property
    def kebab_case(self) -> str:
        """File stem: ``getUserStats`` -> ``get-user-stats``."""
        return to_kebab_case(self.value)

    @property
    def pascal_case(self) -> str:
        """Hook suffix: ``getUserStats`` -> ``GetUserStats``."""
        return self.value[0].upper() + self.value[1:]

    @property
    def procedure_path(self) -> str:
        """Project-relative path of the procedure module."""
        return f"{self.procedures_dir}/{self.kebab_case}.rpc.ts"

    @property
    def hook_path(self) -> str:
        """Project-relative path of the client hook."""
        return f"{self.hooks_dir}/use-{self.kebab_case}.ts"

    @property
    def import_specifier(self) -> str:
        """
        Module specifier the router uses to import the procedure.

        Relative to ``router_dir``, so a custom procedures folder still
        resolves: ``src/server/procs`` seen from ``src/rpc`` becomes
        ``../server/procs/<stem>.rpc``.
        """
        relative = posixpath.relpath(self.procedures_dir, self.router_dir or ".")
        if relative == ".":
            return f"./{self.kebab_case}.rpc"
        if not relative.startswith(".."):
            relative = f"./{relative}"
        return f"{relative}/{self.kebab_case}.rpc"


def to_kebab_case(value: str) -> str:
    """
    Convert a camelCase identifier to kebab-case.

    Examples
    --------
    >>> to_kebab_case("getUserStats")
    'get-user-stats'
    >>> to_kebab_case("ping")
    'ping'
    """
    value = re.sub(r"([a-z])([A-Z])", r"\1-\2", value)
    value = re.sub(r"\s+", "-", value)
    return value.lower()
