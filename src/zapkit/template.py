"""
zapkit.template - Template Acquisition
======================================

Puts a pristine copy of the Zap.ts template into the new project
directory. The template can be:

- a directory (copied as is, minus VCS and dependency folders),
- a ``.tar.gz`` / ``.tgz`` archive such as a GitHub source snapshot.
  A single top-level folder is stripped. When the snapshot is the whole
  monorepo, its ``core/`` folder is used as the template, or
- an ``http(s)`` URL of such an archive, downloaded with httpx. Without
  any configured template the latest Zap.ts snapshot
  (:data:`DEFAULT_TEMPLATE_URL`) is used.

After copying, lockfiles are removed (the chosen package manager writes a
fresh one) and template-only package.json metadata is cleaned up.
"""

from __future__ import annotations

import shutil
import tarfile
import tempfile
from pathlib import Path

import httpx

from zapkit.exceptions import TemplateError
from zapkit.package_json import read_package_json, write_package_json


LOCKFILES: tuple[str, ...] = (
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "bun.lock",
    "bun.lockb",
)

# Never copied from a template directory.
IGNORED_NAMES = (".git", "node_modules", ".next", ".turbo")

# Source snapshot of the Zap.ts repository.
DEFAULT_TEMPLATE_URL = "https://api.github.com/repos/alexandretrotel/zap.ts/tarball/main"

DOWNLOAD_TIMEOUT = 60.0

# package.json fields that describe the template repository, not the project.
TEMPLATE_METADATA_KEYS: tuple[str, ...] = (
    "packageManager",
    "description",
    "author",
    "license",
    "repository",
    "homepage",
    "bugs",
    "keywords",
)

# Inside a monorepo snapshot, the application template lives here.
MONOREPO_TEMPLATE_DIR = "core"


def _is_archive(path: Path) -> bool:
    return path.name.endswith((".tar.gz", ".tgz"))


def _template_root(extracted: Path) -> Path:
    """Strip a lone top-level folder and descend into ``core/`` if present."""
    root = extracted
    entries = list(root.iterdir())
    if len(entries) == 1 and entries[0].is_dir():
        root = entries[0]
    if not (root / "package.json").exists() and (root / MONOREPO_TEMPLATE_DIR / "package.json").exists():
        root = root / MONOREPO_TEMPLATE_DIR
    return root


def _extract_archive(archive: Path, destination: Path) -> None:
    with tempfile.TemporaryDirectory(prefix="zapkit-") as tmp:
        with tarfile.open(archive, "r:gz") as tar:
            tar.extractall(tmp, filter="data")
        shutil.copytree(
            _template_root(Path(tmp)),
            destination,
            dirs_exist_ok=True,
            ignore=shutil.ignore_patterns(*IGNORED_NAMES),
        )


def copy_template(source: Path, output_dir: Path) -> None:
    """
    Copy a template directory or archive into ``output_dir``.

    Parameters
    ----------
    source : Path
        Template directory or ``.tar.gz`` archive.

    output_dir : Path
        Destination. Must not exist or be empty.

    Raises
    ------
    TemplateError
        If the source is missing, the destination is not empty, or copying
        fails.
    """
    if not source.exists():
        msg = f"Template not found: {source}"
        raise TemplateError(msg)

    if output_dir.exists() and any(output_dir.iterdir()):
        msg = (
            f"Directory '{output_dir}' already exists and is not empty. "
            "Use a different name or remove the existing directory."
        )
        raise TemplateError(msg)

    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        if source.is_dir():
            root = source if (source / "package.json").exists() else _template_root(source)
            shutil.copytree(
                root,
                output_dir,
                dirs_exist_ok=True,
                ignore=shutil.ignore_patterns(*IGNORED_NAMES),
            )
        elif _is_archive(source):
            _extract_archive(source, output_dir)
        else:
            msg = f"Unsupported template '{source}': expected a directory or a .tar.gz archive"
            raise TemplateError(msg)
    except (OSError, tarfile.TarError) as e:
        msg = f"Failed to copy template from {source}: {e}"
        raise TemplateError(msg) from e

    if not (output_dir / "package.json").exists():
        msg = f"Template {source} has no package.json"
        raise TemplateError(msg)


def remove_lockfiles(output_dir: Path) -> list[str]:
    """
    Delete every known lockfile from the project root.

    Returns
    -------
    list[str]
        Names of the lockfiles that were removed.

    Raises
    ------
    TemplateError
        If a lockfile cannot be removed.
    """
    removed: list[str] = []
    for name in LOCKFILES:
        path = output_dir / name
        if not path.exists():
            continue
        try:
            path.unlink()
        except OSError as e:
            msg = f"Failed to remove lock files: {e}"
            raise TemplateError(msg) from e
        removed.append(name)
    return removed


def cleanup_package_json(output_dir: Path, project_name: str) -> None:
    """
    Strip template metadata from package.json.

    Repository metadata (:data:`TEMPLATE_METADATA_KEYS`) is removed,
    including the ``packageManager`` pin so any package manager can
    install, and ``name`` becomes the project name.

    Raises
    ------
    TemplateError
        If package.json cannot be read or written.
    """
    path = output_dir / "package.json"
    if not path.exists():
        return

    try:
        data = read_package_json(path)
        for key in TEMPLATE_METADATA_KEYS:
            data.pop(key, None)
        data["name"] = project_name
        write_package_json(path, data)
    except (OSError, ValueError) as e:
        msg = f"Failed to cleanup package.json: {e}"
        raise TemplateError(msg) from e


def is_url(source: Path | str) -> bool:
    """Whether a template source is a remote archive rather than a local path."""
    return isinstance(source, str) and source.startswith(("http://", "https://"))


def download_template(url: str, destination: Path, client: httpx.Client | None = None) -> Path:
    """
    Download a template archive to ``destination``.

    The response is streamed to disk. Redirects are followed, since GitHub
    answers tarball requests with a redirect to its archive host.

    Parameters
    ----------
    url : str
        Archive URL, e.g. :data:`DEFAULT_TEMPLATE_URL`.

    destination : Path
        File to write the archive to.

    client : httpx.Client | None
        Client to use. A new one with :data:`DOWNLOAD_TIMEOUT` is created
        when omitted.

    Returns
    -------
    Path
        ``destination``.

    Raises
    ------
    TemplateError
        If the request fails, the server answers with an error status, or
        the file cannot be written.
    """
    owned = client is None
    client = client or httpx.Client(timeout=DOWNLOAD_TIMEOUT, follow_redirects=True)
    try:
        with client.stream("GET", url) as response:
            response.raise_for_status()
            with destination.open("wb") as f:
                for chunk in response.iter_bytes():
                    f.write(chunk)
    except httpx.HTTPError as e:
        msg = f"Failed to download template from {url}: {e}"
        raise TemplateError(msg) from e
    except OSError as e:
        msg = f"Failed to save template archive {destination}: {e}"
        raise TemplateError(msg) from e
    finally:
        if owned:
            client.close()
    return destination


def prepare_template(
    source: Path | str,
    output_dir: Path,
    project_name: str,
    client: httpx.Client | None = None,
) -> None:
    """
    Copy the template, then remove lockfiles and clean package.json.

    A URL source is downloaded to a temporary archive first.
    """
    if is_url(source):
        with tempfile.TemporaryDirectory(prefix="zapkit-") as tmp:
            archive = download_template(source, Path(tmp) / "zap.ts.tar.gz", client)
            copy_template(archive, output_dir)
    else:
        copy_template(Path(source), output_dir)
    remove_lockfiles(output_dir)
    cleanup_package_json(output_dir, project_name)
