"""
zapkit.templates - Jinja2 Template Files
========================================

Jinja2 templates for the files ``zapkit create procedure`` writes into an
existing project. Templates use the ``.j2`` extension and are rendered by
:mod:`zapkit.procedure`.

Available Templates
-------------------
- procedure.rpc.ts.j2: oRPC procedure module (``src/rpc/procedures/<stem>.rpc.ts``)
- hook.ts.j2: Client hook querying the procedure (``src/hooks/rpc/use-<stem>.ts``)

Template Context
----------------
All templates receive:

    name : ProcedureName
        Validated procedure name with its derived forms
        (``value``, ``pascal_case``, ``kebab_case``).

See Also
--------
- procedure.py: Module that renders these templates
- models.py: ProcedureName model passed to templates
"""

# Templates are loaded dynamically by Jinja2's PackageLoader.
