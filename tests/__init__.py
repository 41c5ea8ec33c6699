"""
zapkit test suite
=================

This package contains the tests for zapkit.

Test Modules
------------
- test_models.py: Pydantic models and enums
- test_registry.py: Plugin registry queries and validation
- test_resolver.py: Plugin selection resolution
- test_pruner.py: Removal of unused plugin files and packages
- test_router.py: Syntax-tree edits of the RPC router
- test_existence.py: Procedure conflict detection
- test_procedure.py: Procedure creation pipeline
- test_installer.py: Installation with bounded fallback
- test_postinstall.py: Update and formatting steps
- test_envfile.py: Environment file generation
- test_template.py: Template copying and cleanup
- test_analysis.py: Plugin import analysis
- test_settings.py: Configuration loading
- test_generator.py: The ``new`` pipeline
- test_cli.py: Command-line interface

Running Tests
-------------
    # Run all tests
    pytest

    # Run specific module
    pytest tests/test_router.py

    # Run specific test class
    pytest tests/test_resolver.py::TestResolve
"""
