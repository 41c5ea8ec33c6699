"""
zapkit.package_json - package.json Editing
==========================================

Small helpers to read, edit and write a project's ``package.json``. Only
keys are added or removed; version ranges are never interpreted.

Writes go through a temporary file in the same directory followed by
``os.replace`` so a crash never leaves a half-written manifest behind.
"""

from __future__ import annotations

import json
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path
from typing import Any


PackageJson = dict[str, Any]


def read_package_json(path: Path) -> PackageJson:
    """
    Load a package.json file.

    Raises
    ------
    OSError
        If the file cannot be read.
    ValueError
        If the file is not a JSON object.
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        msg = f"{path} does not contain a JSON object"
        raise ValueError(msg)
    return data


def write_text_atomic(path: Path, content: str) -> None:
    """
    Replace ``path`` with ``content`` in one step.

    The content is written to a sibling temporary file which is then moved
    over the target. On failure the temporary file is removed and the
    original is left untouched.

    Raises
    ------
    OSError
        If the temporary file cannot be written or moved.
    """
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
        if path.exists():
            os.chmod(tmp_name, path.stat().st_mode & 0o777)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def write_package_json(path: Path, data: PackageJson) -> None:
    """Write package.json with two-space indentation and a trailing newline."""
    write_text_atomic(path, json.dumps(data, indent=2, ensure_ascii=False) + "\n")


def remove_keys(data: PackageJson, section: str, names: Iterable[str]) -> list[str]:
    """
    Delete entries from one map of a package.json document in place.

    Parameters
    ----------
    data : PackageJson
        Parsed package.json.

    section : str
        ``"dependencies"``, ``"devDependencies"`` or ``"scripts"``.

    names : Iterable[str]
        Keys to delete. Keys that are not present are ignored.

    Returns
    -------
    list[str]
        The keys actually removed, sorted.
    """
    mapping = data.get(section)
    if not isinstance(mapping, dict):
        return []

    removed = sorted(name for name in set(names) if name in mapping)
    for name in removed:
        del mapping[name]
    return removed
