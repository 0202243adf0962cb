"""cpp_frontend.py - Collect comments and marker call sites from C++ via tree-sitter.

This is a convenience traversal for the extraction engine: it reports every
comment node and every call expression whose callee resolves in the marker
table, together with the enclosing class / namespace scope used as the
structural context of ``tr()``.  A qualified callee such as ``Dialog::tr``
also reports its qualifier, which takes precedence over the enclosing scope.

tree-sitter and the C++ grammar are optional; without them nothing is
collected.
"""

from __future__ import annotations

import logging

from annotext.literals import join_adjacent_literals
from annotext.location import Comment, SourceLocation
from annotext.markers import MarkerTable
from annotext.record import CandidateSite, SiteKind

logger = logging.getLogger(__name__)

_SCOPE_NODES = ("class_specifier", "struct_specifier", "union_specifier", "namespace_definition")
_STRING_NODES = ("string_literal", "raw_string_literal")


def collect_cpp(
    source: bytes, file: str, markers: MarkerTable | None = None
) -> tuple[list[Comment], list[CandidateSite]]:
    """Parse *source* and return ``(comments, sites)`` in source order."""
    try:
        import tree_sitter_cpp
        from tree_sitter import Language, Parser
    except ImportError:
        logger.warning("%s: tree-sitter-cpp is not installed, nothing collected", file)
        return [], []

    CPP_LANGUAGE = Language(tree_sitter_cpp.language())
    parser = Parser(CPP_LANGUAGE)
    tree = parser.parse(source)
    markers = markers if markers is not None else MarkerTable()

    comments: list[Comment] = []
    sites: list[CandidateSite] = []

    def text_of(node) -> str:
        return source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")

    def callee_name(node) -> str:
        if node.type == "field_expression":
            field = node.child_by_field_name("field")
            return text_of(field) if field is not None else ""
        if node.type == "template_function":
            name = node.child_by_field_name("name")
            return text_of(name) if name is not None else ""
        return text_of(node)

    def callee_qualifier(node) -> str:
        """``Dialog`` for ``Dialog::tr``; empty for unqualified callees."""
        if node.type != "qualified_identifier":
            return ""
        head, sep, _ = text_of(node).rpartition("::")
        return head.strip().removeprefix("::") if sep else ""

    def argument_text(node) -> str:
        if node.type == "concatenated_string":
            joined = join_adjacent_literals(
                text_of(child) for child in node.named_children if child.type in _STRING_NODES
            )
            return f'"{joined}"'
        return text_of(node)

    def function_scope(node) -> str:
        """``Foo::Bar`` for the definition ``void Foo::Bar::run() { ... }``."""
        declarator = node.child_by_field_name("declarator")
        while declarator is not None and declarator.type != "function_declarator":
            declarator = declarator.child_by_field_name("declarator")
        if declarator is None:
            return ""
        name = declarator.child_by_field_name("declarator")
        if name is None or name.type != "qualified_identifier":
            return ""
        qualified = text_of(name)
        head, sep, _ = qualified.rpartition("::")
        return head if sep else ""

    def walk(node, scope: list[str]) -> None:
        if node.type == "comment":
            comments.append(
                Comment(start=node.start_byte, end=node.end_byte, file=file, text=text_of(node))
            )
            return

        if node.type == "call_expression":
            function = node.child_by_field_name("function")
            arguments = node.child_by_field_name("arguments")
            if function is not None and arguments is not None:
                name = callee_name(function)
                if markers.lookup(name) is not None:
                    row, column = node.start_point
                    sites.append(
                        CandidateSite(
                            location=SourceLocation(
                                file=file, offset=node.start_byte, line=row + 1, column=column
                            ),
                            kind=SiteKind.CALL_SITE,
                            name_hint=name,
                            raw_arguments=tuple(
                                argument_text(arg)
                                for arg in arguments.named_children
                                if arg.type != "comment"
                            ),
                            scope_context="::".join(scope),
                            explicit_context=callee_qualifier(function),
                        )
                    )

        inner = scope
        if node.type in _SCOPE_NODES:
            name = node.child_by_field_name("name")
            if name is not None:
                inner = [*scope, text_of(name)]
        elif node.type == "function_definition":
            qualifier = function_scope(node)
            if qualifier:
                inner = [*scope, qualifier]

        for child in node.children:
            walk(child, inner)

    walk(tree.root_node, [])
    comments.sort(key=lambda c: c.start)
    sites.sort(key=lambda s: s.location.offset)
    return comments, sites
