"""
zapkit.exceptions - Error Taxonomy
==================================

Every failure zapkit can report falls into one of four families. Inner
modules raise these; only ``zapkit.cli`` turns them into exit codes and
final messages.

    ZapkitError
    ├── ValidationError        - bad input or unexpected project shape
    ├── FileSystemError        - read/write failure for a single operation
    ├── ProcessError           - an external command failed for good
    └── UserInteractionError   - the user aborted a prompt
"""

from __future__ import annotations

from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from zapkit.existence import ExistenceCheckResult


class ZapkitError(Exception):
    """Base exception for zapkit."""


# =============================================================================
# Validation Errors
# =============================================================================

class ValidationError(ZapkitError):
    """Input or project shape is invalid. Never retried."""


class RegistryError(ValidationError):
    """The plugin registry references unknown plugins or contains a cycle."""


class RouterParseError(ValidationError):
    """The router file could not be parsed without syntax errors."""


class RegistryBindingNotFoundError(ValidationError):
    """The router file has no top-level declaration with the registry binding name."""

    def __init__(self, binding: str, path: object) -> None:
        self.binding = binding
        super().__init__(f"Could not find '{binding}' variable in {path}")


class RegistryShapeError(ValidationError):
    """The registry binding is not initialized with an object literal."""

    def __init__(self, binding: str, found: str | None) -> None:
        self.binding = binding
        self.found = found
        what = f"a '{found}' expression" if found else "no initializer"
        super().__init__(
            f"'{binding}' must be initialized with an object literal, found {what}"
        )


class ProcedureConflictError(ValidationError):
    """A procedure with the requested name already exists in the project."""

    def __init__(self, message: str, result: ExistenceCheckResult) -> None:
        self.result = result
        super().__init__(message)


# =============================================================================
# Filesystem Errors
# =============================================================================

class FileSystemError(ZapkitError):
    """A filesystem operation failed."""


class RouterLoadError(FileSystemError):
    """The router file could not be read."""


class RouterSaveError(FileSystemError):
    """The router file could not be written back. The original is untouched."""


class TemplateError(FileSystemError):
    """The project template could not be copied or extracted."""


# =============================================================================
# Process Errors
# =============================================================================

class ProcessError(ZapkitError):
    """An external command failed and will not be retried."""


class InstallError(ProcessError):
    """Dependency installation failed after every allowed attempt."""

    def __init__(self, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(
            f"Failed to install dependencies after {attempts} attempts. "
            "Please try installing manually."
        )


# =============================================================================
# User Interaction Errors
# =============================================================================

class UserInteractionError(ZapkitError):
    """The user interrupted an interactive step."""


class PromptCancelledError(UserInteractionError):
    """A prompt was cancelled (Ctrl+C or Escape)."""
