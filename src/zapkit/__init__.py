"""
zapkit - Zap.ts Project Generator
=================================

A CLI tool that scaffolds Zap.ts web applications from a template tree,
keeps only the feature plugins you ask for, and later wires new RPC
procedures into the generated project.

Features
--------
- **Plugin Composition**: Transitive resolution of plugin requirements
- **Pruning**: Unused plugin files and npm packages are removed after copy
- **Procedure Scaffolding**: New procedures are registered in the router
  through a syntax-tree edit, never a blind text append
- **Resilient Installs**: Bounded retry with interactive package manager fallback

Quick Start
-----------
```bash
# Install zapkit
pip install zapkit

# Create a new project interactively
zapkit new my-app --template ./zap-template

# Add a procedure to an existing project
cd my-app
zapkit create procedure getUserStats
```

Architecture
------------
The package is organized into these main modules:

- ``cli``: Typer-based command line interface
- ``generator``: The ``new`` pipeline (copy, prune, install, post-process)
- ``registry``: Static plugin metadata
- ``manifest``: Categorized file entries of the template tree
- ``resolver``: Transitive plugin requirement resolution
- ``pruner``: Removal of unused plugin files and packages
- ``router``: Syntax-tree edits of the RPC router file
- ``existence``: Conflict detection before a procedure is created
- ``procedure``: Procedure naming, rendering and orchestration
- ``installer``: Dependency installation with bounded retry
- ``envfile``: ``.env`` generation
- ``analysis``: Plugin import analysis for ``debug plugins``
- ``models``: Pydantic models for configuration

License
-------
MIT License - see LICENSE file for details.
"""

# =============================================================================
# Package Metadata
# =============================================================================
__version__ = "0.1.0"
__author__ = "Technical-1"
__license__ = "MIT"

# =============================================================================
# Public API Exports
# =============================================================================
# These are the main functions/classes users should interact with when using
# zapkit as a library (as opposed to the CLI)

from zapkit.generator import create_project
from zapkit.models import PackageManager, ProjectConfig
from zapkit.procedure import create_procedure
from zapkit.resolver import resolve


__all__ = [
    "PackageManager",
    # Configuration models
    "ProjectConfig",
    "__author__",
    # Version info
    "__version__",
    # Core functions
    "create_procedure",
    "create_project",
    "resolve",
]
