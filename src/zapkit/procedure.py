"""
zapkit.procedure - Procedure Scaffolding
========================================

Creates a new oRPC procedure inside an existing generated project.

Architecture
------------
The pipeline runs strictly in order and stops at the first error:

    1. Validate the name (ProcedureName)
    2. Check for conflicts (existence.check_exists)
    3. Prepare the router edit in memory, then write the procedure and
       hook files (Jinja2)
    4. Save the router with the new registration
    5. Run the project's formatter (failure is only a warning)

If any conflict is found in step 2 nothing is written, and every conflict
is reported at once. A router that cannot take the registration is also
rejected before anything is written; if writing fails halfway, the files
created so far are removed again.

Usage Example
-------------
>>> from pathlib import Path
>>> from zapkit.procedure import create_procedure
>>> result = create_procedure(Path("my-app"), "getUserStats")  # doctest: +SKIP
>>> [str(p) for p in result.files_created]
['src/rpc/procedures/get-user-stats.rpc.ts', 'src/hooks/rpc/use-get-user-stats.ts']
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from jinja2 import Environment, PackageLoader
from pydantic import ValidationError as PydanticValidationError

from zapkit.exceptions import FileSystemError, ProcedureConflictError, ValidationError
from zapkit.existence import check_exists
from zapkit.installer import CommandRunner, run_command
from zapkit.models import ProcedureName
from zapkit.postinstall import detect_package_manager, run_formatting
from zapkit.router import prepare_registry_edit
from zapkit.settings import Settings


@dataclass
class ProcedureResult:
    """
    Outcome of creating a procedure.

    Attributes
    ----------
    name : ProcedureName
        The procedure that was created.

    files_created : list[Path]
        Project-relative paths of the new files.

    router_path : Path
        Project-relative path of the router that was edited.

    warnings : list[str]
        Non-fatal problems (formatting).
    """

    name: ProcedureName
    files_created: list[Path] = field(default_factory=list)
    router_path: Path = Path("src/rpc/router.ts")
    warnings: list[str] = field(default_factory=list)


# =============================================================================
# Template Rendering
# =============================================================================

def create_jinja_env() -> Environment:
    """
    Create the Jinja2 environment for procedure templates.

    Autoescaping is disabled because the output is TypeScript, not HTML.
    """
    return Environment(
        loader=PackageLoader("zapkit", "templates"),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


def render_procedure_files(name: ProcedureName, env: Environment | None = None) -> dict[str, str]:
    """
    Render the procedure module and its client hook.

    Returns
    -------
    dict[str, str]
        Project-relative path -> file content.
    """
    env = env or create_jinja_env()
    return {
        name.procedure_path: env.get_template("procedure.rpc.ts.j2").render(name=name),
        name.hook_path: env.get_template("hook.ts.j2").render(name=name),
    }


def validate_procedure_name(value: str, settings: Settings | None = None) -> ProcedureName:
    """
    Turn user input into a :class:`ProcedureName`.

    Raises
    ------
    ValidationError
        If the value is not a valid procedure identifier.
    """
    settings = settings or Settings()
    try:
        return settings.procedure_name(value)
    except PydanticValidationError as e:
        msg = e.errors()[0]["msg"].removeprefix("Value error, ")
        raise ValidationError(msg) from e


# =============================================================================
# Pipeline
# =============================================================================

def _remove_created(project_dir: Path, files: list[Path]) -> None:
    for relative in files:
        (project_dir / relative).unlink(missing_ok=True)


def create_procedure(
    project_dir: Path,
    value: str,
    settings: Settings | None = None,
    *,
    format_files: bool = True,
    run: CommandRunner = run_command,
) -> ProcedureResult:
    """
    Create a procedure, its hook, and its router registration.

    Parameters
    ----------
    project_dir : Path
        Root of the generated project.

    value : str
        Procedure name as typed by the user, e.g. ``getUserStats``.

    settings : Settings | None
        Project layout. Defaults apply when omitted.

    format_files : bool
        Run the project's ``format`` script afterwards.

    run : CommandRunner
        Command runner for the formatter.

    Returns
    -------
    ProcedureResult
        Created files and warnings.

    Raises
    ------
    ValidationError
        If the name is invalid or the router is malformed.
    ProcedureConflictError
        If the procedure file, hook, or router registration already exists.
    FileSystemError
        If a file cannot be written or the router cannot be loaded/saved.
    """
    settings = settings or Settings()
    name = validate_procedure_name(value, settings)

    existence = check_exists(project_dir, name, settings)
    message = existence.conflict_message()
    if message is not None:
        raise ProcedureConflictError(message, existence)

    # The router edit is validated in memory before any file is written
    router = prepare_registry_edit(
        project_dir / settings.router_path,
        name.value,
        name.import_specifier,
        settings.registry_binding,
    )

    result = ProcedureResult(name=name, router_path=Path(settings.router_path))

    try:
        for relative, content in render_procedure_files(name).items():
            target = project_dir / relative
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_text(content, encoding="utf-8")
            except OSError as e:
                msg = f"Failed to write {relative}: {e}"
                raise FileSystemError(msg) from e
            result.files_created.append(Path(relative))

        router.save()
    except FileSystemError:
        _remove_created(project_dir, result.files_created)
        raise

    if format_files:
        warning = run_formatting(detect_package_manager(project_dir), project_dir, run)
        if warning:
            result.warnings.append(warning)

    return result
