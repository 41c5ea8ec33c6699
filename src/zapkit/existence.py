"""
zapkit.existence - Procedure Conflict Detection
===============================================

Before a procedure is generated, three independent checks make sure nothing
with the same name is already there:

- the procedure file ``src/rpc/procedures/<stem>.rpc.ts``
- the client hook ``src/hooks/rpc/use-<stem>.ts``
- a registration in ``src/rpc/router.ts`` (see :func:`zapkit.router.router_contains`)

A project without a router file simply has no registrations. A router file
that does not parse is a validation error: editing it afterwards could
corrupt it.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from zapkit.exceptions import RouterLoadError, RouterParseError, ValidationError
from zapkit.models import ProcedureName
from zapkit.router import RouterSource, router_contains
from zapkit.settings import Settings


@dataclass(frozen=True)
class ExistenceCheckResult:
    """
    Outcome of the three existence checks for one procedure name.

    Attributes
    ----------
    name : ProcedureName
        The name that was checked.

    procedure_file_exists : bool
        The procedure module is already on disk.

    hook_file_exists : bool
        The client hook is already on disk.

    is_in_router : bool
        The router already imports or lists the name.
    """

    name: ProcedureName
    procedure_file_exists: bool
    hook_file_exists: bool
    is_in_router: bool

    @property
    def has_conflict(self) -> bool:
        """True if any check found an existing artifact."""
        return self.procedure_file_exists or self.hook_file_exists or self.is_in_router

    @property
    def reasons(self) -> list[str]:
        """One line per conflict, in check order."""
        reasons: list[str] = []
        if self.procedure_file_exists:
            reasons.append(f"Procedure file '{self.name.procedure_path}' already exists")
        if self.hook_file_exists:
            reasons.append(f"Hook file '{self.name.hook_path}' already exists")
        if self.is_in_router:
            reasons.append(f"Procedure '{self.name.value}' is already registered in the router")
        return reasons

    def conflict_message(self) -> str | None:
        """
        Human-readable conflict report, or None when there is no conflict.

        Examples
        --------
        >>> result = ExistenceCheckResult(ProcedureName(value="ping"), True, False, True)
        >>> print(result.conflict_message())
        Procedure 'ping' already exists:
        • Procedure file 'src/rpc/procedures/ping.rpc.ts' already exists
        • Procedure 'ping' is already registered in the router
        """
        if not self.has_conflict:
            return None
        lines = "\n".join(f"• {reason}" for reason in self.reasons)
        return f"Procedure '{self.name.value}' already exists:\n{lines}"


def is_in_router(router_path: Path, name: str, binding: str = "router") -> bool:
    """
    Whether the router file already registers ``name``.

    Returns False when the router file does not exist.

    Raises
    ------
    ValidationError
        If the router file exists but cannot be read or parsed.
    """
    if not router_path.exists():
        return False

    try:
        source = RouterSource.load(router_path)
    except (RouterLoadError, RouterParseError) as e:
        msg = f"Failed to check router for procedure '{name}': {e}"
        raise ValidationError(msg) from e

    return router_contains(source, name, binding)


def check_exists(
    project_dir: Path,
    name: ProcedureName,
    settings: Settings | None = None,
) -> ExistenceCheckResult:
    """
    Run all existence checks for a procedure name.

    Parameters
    ----------
    project_dir : Path
        Root of the generated project.

    name : ProcedureName
        Validated procedure name. Its canonical form is used for the
        router check, its kebab-case stem for the file checks.

    settings : Settings | None
        Router path and binding name. Defaults apply when omitted.

    Returns
    -------
    ExistenceCheckResult
        All three check results.

    Raises
    ------
    ValidationError
        If the router file exists but is malformed.
    """
    settings = settings or Settings()
    return ExistenceCheckResult(
        name=name,
        procedure_file_exists=(project_dir / name.procedure_path).exists(),
        hook_file_exists=(project_dir / name.hook_path).exists(),
        is_in_router=is_in_router(
            project_dir / settings.router_path,
            name.value,
            settings.registry_binding,
        ),
    )
