"""
zapkit.router - RPC Router Source Editing
=========================================

The generated project aggregates its procedures in ``src/rpc/router.ts``::

    import { example } from "./procedures/example.rpc";

    export const router = {
      example,
    };

Registering a new procedure means adding one named import and one shorthand
property. This module does exactly that on a tree-sitter TypeScript syntax
tree, as a short sequence of narrow operations that each fail with their
own error:

    RouterSource.load()            -> RouterLoadError, RouterParseError
    add_named_import()             -> (pure insertion)
    find_registry_declaration()    -> RegistryBindingNotFoundError
    require_object_literal()       -> RegistryShapeError
    add_shorthand_property()       -> (pure insertion)
    save()                         -> RouterSaveError

Edits are text insertions at node byte offsets, so comments and formatting
elsewhere in the file are preserved byte for byte. The tree is re-parsed
after every insertion; node handles obtained before an edit must not be
reused after it.

The engine does not guard against registering the same name twice. Callers
run :func:`zapkit.existence.check_exists` first.

See Also
--------
- existence.py: Router membership check
- procedure.py: Procedure creation pipeline
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING

from tree_sitter import Language, Parser

from zapkit.exceptions import (
    RegistryBindingNotFoundError,
    RegistryShapeError,
    RouterLoadError,
    RouterParseError,
    RouterSaveError,
)
from zapkit.package_json import write_text_atomic


if TYPE_CHECKING:
    from tree_sitter import Node as TSNode


# Expression wrappers that leave the underlying value unchanged.
_TRANSPARENT_WRAPPERS = frozenset({
    "parenthesized_expression",
    "as_expression",
    "satisfies_expression",
    "non_null_expression",
})

_DECLARATION_TYPES = frozenset({"lexical_declaration", "variable_declaration"})


@lru_cache(maxsize=1)
def _parser() -> Parser:
    import tree_sitter_typescript as tstypescript

    return Parser(Language(tstypescript.language_typescript()))


def parse_typescript(source: bytes):
    """Parse TypeScript source into a tree-sitter tree."""
    return _parser().parse(source)


# =============================================================================
# Router Source
# =============================================================================

class RouterSource:
    """
    An editable TypeScript source file backed by a tree-sitter tree.

    Parameters
    ----------
    path : Path
        File the source was read from and will be saved to.

    source : bytes
        UTF-8 file content.

    Raises
    ------
    RouterParseError
        If the content has syntax errors.

    Examples
    --------
    >>> src = RouterSource(Path("router.ts"), b"const router = { a };\\n")
    >>> src.add_named_import("b", "./procedures/b.rpc")
    >>> obj = src.require_object_literal(src.find_registry_declaration("router"))
    >>> src.add_shorthand_property(obj, "b")
    >>> print(src.text, end="")
    import { b } from "./procedures/b.rpc";
    const router = { a, b };
    """

    def __init__(self, path: Path, source: bytes) -> None:
        self.path = path
        self._source = source
        self._tree = parse_typescript(source)
        if self._tree.root_node.has_error:
            msg = f"Failed to parse {path}: the file contains syntax errors"
            raise RouterParseError(msg)

    @classmethod
    def load(cls, path: Path) -> RouterSource:
        """
        Read and parse a file.

        Raises
        ------
        RouterLoadError
            If the file cannot be read.
        RouterParseError
            If the file has syntax errors.
        """
        try:
            source = path.read_bytes()
        except OSError as e:
            msg = f"Failed to load source file {path}: {e}"
            raise RouterLoadError(msg) from e
        return cls(path, source)

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def root(self) -> TSNode:
        """Root ``program`` node of the current tree."""
        return self._tree.root_node

    @property
    def text(self) -> str:
        """Current source text."""
        return self._source.decode("utf-8")

    def node_text(self, node: TSNode) -> str:
        """Source text covered by a node."""
        return self._source[node.start_byte:node.end_byte].decode("utf-8")

    def import_statements(self) -> list[TSNode]:
        """Top-level import statements in source order."""
        return [child for child in self.root.children if child.type == "import_statement"]

    def imported_names(self) -> set[str]:
        """
        Local and exported names of every binding imported at top level.

        For ``import { a as b } from "x"`` both ``a`` and ``b`` are returned.
        Default and namespace imports contribute their local name.
        """
        names: set[str] = set()
        for statement in self.import_statements():
            for clause in statement.named_children:
                if clause.type != "import_clause":
                    continue
                for part in clause.named_children:
                    if part.type == "identifier":
                        names.add(self.node_text(part))
                    elif part.type == "namespace_import":
                        names.update(
                            self.node_text(n) for n in part.named_children
                            if n.type == "identifier"
                        )
                    elif part.type == "named_imports":
                        for spec in part.named_children:
                            if spec.type != "import_specifier":
                                continue
                            for field_name in ("name", "alias"):
                                node = spec.child_by_field_name(field_name)
                                if node is not None:
                                    names.add(self.node_text(node))
        return names

    # -------------------------------------------------------------------------
    # Edits
    # -------------------------------------------------------------------------

    def _insert(self, offset: int, text: str) -> None:
        self._source = self._source[:offset] + text.encode("utf-8") + self._source[offset:]
        self._tree = parse_typescript(self._source)

    def add_named_import(self, name: str, specifier: str) -> None:
        """
        Add ``import { name } from "specifier";`` after the last top-level
        import, or at the top of the file if there is none.

        The quote style and trailing semicolon follow the last existing
        import.
        """
        imports = self.import_statements()
        quote, semicolon = '"', ";"

        if imports:
            last = imports[-1]
            source_node = last.child_by_field_name("source")
            if source_node is not None and self.node_text(source_node)[:1] == "'":
                quote = "'"
            if not self.node_text(last).rstrip().endswith(";"):
                semicolon = ""
            statement = f"import {{ {name} }} from {quote}{specifier}{quote}{semicolon}"
            self._insert(last.end_byte, "\n" + statement)
        else:
            statement = f"import {{ {name} }} from {quote}{specifier}{quote}{semicolon}"
            self._insert(0, statement + "\n")

    def find_registry_declaration(self, binding: str) -> TSNode:
        """
        Locate the top-level ``variable_declarator`` named ``binding``.

        ``const``, ``let`` and ``var`` declarations are searched, exported
        or not.

        Raises
        ------
        RegistryBindingNotFoundError
            If no such declaration exists.
        """
        for child in self.root.children:
            declaration = child
            if child.type == "export_statement":
                declaration = child.child_by_field_name("declaration")
                if declaration is None:
                    continue
            if declaration.type not in _DECLARATION_TYPES:
                continue

            for declarator in declaration.named_children:
                if declarator.type != "variable_declarator":
                    continue
                name = declarator.child_by_field_name("name")
                if name is not None and self.node_text(name) == binding:
                    return declarator

        raise RegistryBindingNotFoundError(binding, self.path)

    def require_object_literal(self, declarator: TSNode) -> TSNode:
        """
        Return the object literal a declarator is initialized with.

        Parentheses and ``as``/``satisfies``/``!`` wrappers are looked
        through.

        Raises
        ------
        RegistryShapeError
            If there is no initializer or it is not an object literal.
        """
        name_node = declarator.child_by_field_name("name")
        binding = self.node_text(name_node) if name_node is not None else "?"

        value = declarator.child_by_field_name("value")
        while value is not None and value.type in _TRANSPARENT_WRAPPERS:
            inner = [n for n in value.named_children if n.type != "comment"]
            value = inner[0] if inner else None

        if value is None:
            raise RegistryShapeError(binding, None)
        if value.type != "object":
            raise RegistryShapeError(binding, value.type)
        return value

    def add_shorthand_property(self, obj: TSNode, name: str) -> None:
        """
        Append ``name`` as a shorthand property of an object literal.

        Single-line literals stay single-line (``{ a }`` becomes
        ``{ a, b }``). In multi-line literals the new member goes on its own
        line with the indentation of the last member. A trailing comma, if
        present, is kept after the new member too.
        """
        members = [n for n in obj.named_children if n.type != "comment"]
        opening, closing = obj.children[0], obj.children[-1]
        multiline = opening.start_point[0] != closing.start_point[0]

        if not members:
            if multiline:
                indent = self._leading_whitespace(opening.start_byte) + "  "
                self._insert(opening.end_byte, f"\n{indent}{name},")
            else:
                inner_start, inner_end = opening.end_byte, closing.start_byte
                self._source = self._source[:inner_start] + self._source[inner_end:]
                self._insert(inner_start, f" {name} ")
            return

        last = members[-1]
        comma = last.next_sibling
        has_trailing_comma = comma is not None and comma.type == ","

        if not multiline:
            if has_trailing_comma:
                self._insert(comma.end_byte, f" {name},")
            else:
                self._insert(last.end_byte, f", {name}")
            return

        indent = self._line_indent(last.start_byte)
        if has_trailing_comma:
            line_end = self._source.find(b"\n", comma.end_byte, closing.start_byte)
            offset = line_end if line_end != -1 else comma.end_byte
            self._insert(offset, f"\n{indent}{name},")
        else:
            self._insert(last.end_byte, f",\n{indent}{name}")

    def _line_prefix(self, offset: int) -> str:
        line_start = self._source.rfind(b"\n", 0, offset) + 1
        return self._source[line_start:offset].decode("utf-8")

    def _leading_whitespace(self, offset: int) -> str:
        prefix = self._line_prefix(offset)
        return prefix[:len(prefix) - len(prefix.lstrip())]

    def _line_indent(self, offset: int) -> str:
        """Indentation for a new member aligned with the member at ``offset``."""
        prefix = self._line_prefix(offset)
        if not prefix.strip():
            return prefix
        return self._leading_whitespace(offset) + "  "

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def save(self, path: Path | None = None) -> None:
        """
        Write the current source back, atomically.

        Raises
        ------
        RouterSaveError
            If the file cannot be written. The original stays untouched.
        """
        target = path or self.path
        try:
            write_text_atomic(target, self.text)
        except OSError as e:
            msg = f"Failed to save router file {target}: {e}"
            raise RouterSaveError(msg) from e


# =============================================================================
# Operations
# =============================================================================

def prepare_registry_edit(
    router_path: Path,
    name: str,
    specifier: str,
    binding: str = "router",
) -> RouterSource:
    """
    Load the router and apply the registration in memory, without saving.

    Every check that can fail, apart from writing, happens here, so callers
    can validate the router before touching any other file.

    Raises
    ------
    RouterLoadError, RouterParseError, RegistryBindingNotFoundError, RegistryShapeError
        As for :func:`wire_into_registry`.
    """
    source = RouterSource.load(router_path)
    source.add_named_import(name, specifier)
    declarator = source.find_registry_declaration(binding)
    obj = source.require_object_literal(declarator)
    source.add_shorthand_property(obj, name)
    return source


def wire_into_registry(
    router_path: Path,
    name: str,
    specifier: str,
    binding: str = "router",
) -> None:
    """
    Import ``name`` from ``specifier`` and register it in the router object.

    Parameters
    ----------
    router_path : Path
        The router source file.

    name : str
        Canonical procedure name (import binding and router key).

    specifier : str
        Module specifier to import from, e.g. ``./procedures/get-user.rpc``.

    binding : str
        Name of the registry variable.

    Raises
    ------
    RouterLoadError, RouterParseError
        If the file cannot be read or parsed.
    RegistryBindingNotFoundError
        If the file declares no ``binding`` variable.
    RegistryShapeError
        If ``binding`` is not initialized with an object literal.
    RouterSaveError
        If the edited file cannot be written.
    """
    prepare_registry_edit(router_path, name, specifier, binding).save()


def router_contains(source: RouterSource, name: str, binding: str = "router") -> bool:
    """
    Whether a procedure name already appears in the router.

    True if any top-level import binds ``name``, or if the text of the
    ``binding`` initializer contains ``name`` anywhere. The substring test
    can match unrelated identifiers that merely contain ``name``; such a
    match is reported as a conflict.
    """
    if name in source.imported_names():
        return True

    try:
        declarator = source.find_registry_declaration(binding)
    except RegistryBindingNotFoundError:
        return False

    value = declarator.child_by_field_name("value")
    if value is None:
        return False
    return name in source.node_text(value)
