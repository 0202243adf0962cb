"""qmldoc.py - Attach ``/*! ... */`` documentation comments to QML declarations.

An external QML traversal drives a :class:`QmlDocBuilder` through its
``visit_*`` / ``end_*`` callbacks.  For every public declaration (nesting
level 1) the builder looks for the nearest unused doc comment above it,
parses its ``\\command`` lines and records the result on a :class:`DocNode`
tree::

    /*!
        \\qmltype Button
        \\inqmlmodule QtQuick.Controls
        \\since 5.7
        A push button.
    */
    Item {
        /*! \\qmlproperty string Button::text  The label. */
        property string text
    }

Only block comments opening with ``/*!`` or ``/**`` count as documentation;
a comment that starts at or before the end of the previously visited
structure is never considered, so documentation cannot leak across
declarations.

:class:`DocCommentFinder` is separate from :class:`annotext.finder.CommentFinder`
and does not go through ``DECLARATION`` candidate sites; those are meant for
other external traversals that feed :func:`annotext.record.build_record`.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import PurePath

from annotext.errors import SignatureParseError
from annotext.location import Comment, SourceBuffer, SourceLocation
from annotext.signature import Parameter, parse_signature

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Command vocabulary
# ---------------------------------------------------------------------------

TOPIC_COMMANDS = frozenset(
    {
        "qmltype",
        "qmlproperty",
        "qmlattachedproperty",
        "qmlmethod",
        "qmlattachedmethod",
        "qmlsignal",
        "qmlattachedsignal",
        "jstype",
        "jsproperty",
        "jsattachedproperty",
        "jsmethod",
        "jsattachedmethod",
    }
)

# Metacommands with a meaning for QML declarations.
QML_METACOMMANDS = frozenset(
    {
        "abstract",
        "qmlabstract",
        "deprecated",
        "obsolete",
        "internal",
        "preliminary",
        "since",
        "inqmlmodule",
        "injsmodule",
        "qmlinherits",
        "default",
        "readonly",
        "ingroup",
        "wrapper",
        "pagekeywords",
    }
)

# Recognised as metacommands, but meaningless in a QML file.
OTHER_METACOMMANDS = frozenset(
    {
        "inmodule",
        "inheaderfile",
        "instantiates",
        "nonreentrant",
        "overload",
        "reentrant",
        "reimp",
        "relates",
        "threadsafe",
        "title",
    }
)

DOC_OPENERS = ("/*!", "/**")


def is_doc_comment(comment: Comment) -> bool:
    return comment.text.startswith(DOC_OPENERS) and comment.text.endswith("*/")


# ---------------------------------------------------------------------------
# Parsed documentation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Topic:
    command: str
    args: str


@dataclass
class Doc:
    """Topics, metacommands and body text of one doc comment."""

    topics: list[Topic] = field(default_factory=list)
    # command -> argument of each occurrence, in first-seen order
    metacommands: dict[str, list[str]] = field(default_factory=dict)
    body: str = ""
    location: SourceLocation | None = None

    def is_empty(self) -> bool:
        return not (self.topics or self.metacommands or self.body)


def _strip_delimiters(text: str) -> str:
    if text.startswith(DOC_OPENERS):
        text = text[3:]
    if text.endswith("*/"):
        text = text[:-2]
    return text


def parse_doc(text: str, location: SourceLocation | None = None) -> Doc:
    """Split a doc comment into topics, metacommands and body.

    A command is recognised only at the start of a line (after optional
    whitespace and a javadoc-style ``*``).  Anything else is body text;
    inline markup such as ``\\c`` or ``\\l`` stays in the body untouched.
    """
    doc = Doc(location=location)
    body: list[str] = []
    for raw in _strip_delimiters(text).split("\n"):
        line = raw.strip()
        if line.startswith("*") and not line.startswith("*/"):
            line = line[1:].lstrip()
        if line.startswith("\\"):
            command, _, args = line[1:].partition(" ")
            args = args.strip()
            if command in TOPIC_COMMANDS:
                doc.topics.append(Topic(command, args))
                continue
            if command in QML_METACOMMANDS or command in OTHER_METACOMMANDS:
                doc.metacommands.setdefault(command, []).append(args)
                continue
        body.append(line)
    doc.body = "\n".join(body).strip()
    return doc


@dataclass(frozen=True)
class PropertyArgs:
    type: str
    module: str
    component: str
    name: str


def split_property_arg(arg: str, location: SourceLocation | None = None) -> PropertyArgs | None:
    """Split ``<type> [<module>::][<component>::]<name>``.

    Returns ``None`` (and logs a warning) when the type is missing or the
    name has more than three ``::`` parts.
    """
    blank_split = arg.split(" ")
    where = f"{location}: " if location is not None else ""
    if len(blank_split) < 2:
        logger.warning("%sMissing property type for %s", where, arg)
        return None

    parts = blank_split[1].split("::")
    if len(parts) == 3:
        return PropertyArgs(blank_split[0], parts[0], parts[1], parts[2])
    if len(parts) == 2:
        return PropertyArgs(blank_split[0], "", parts[0], parts[1])
    if len(parts) == 1:
        return PropertyArgs(blank_split[0], "", "", parts[0])
    logger.warning("%sUnrecognizable QML module/component qualifier for %s", where, arg)
    return None


# ---------------------------------------------------------------------------
# Documentation tree
# ---------------------------------------------------------------------------


class NodeKind(enum.Enum):
    QML_TYPE = "qmltype"
    JS_TYPE = "jstype"
    QML_PROPERTY = "qmlproperty"
    JS_PROPERTY = "jsproperty"
    QML_METHOD = "qmlmethod"
    JS_METHOD = "jsmethod"
    QML_SIGNAL = "qmlsignal"
    JS_SIGNAL = "jssignal"


_TYPE_KINDS = (NodeKind.QML_TYPE, NodeKind.JS_TYPE)
_PROPERTY_KINDS = (NodeKind.QML_PROPERTY, NodeKind.JS_PROPERTY)
_FUNCTION_KINDS = (NodeKind.QML_METHOD, NodeKind.JS_METHOD, NodeKind.QML_SIGNAL, NodeKind.JS_SIGNAL)


class NodeStatus(enum.Enum):
    ACTIVE = "active"
    OBSOLETE = "obsolete"
    INTERNAL = "internal"
    PRELIMINARY = "preliminary"


@dataclass(frozen=True)
class ImportRec:
    name: str
    version: str = ""
    import_id: str = ""
    uri: str = ""


@dataclass(eq=False)
class DocNode:
    """A documented QML/JS type or one of its members."""

    kind: NodeKind
    name: str
    parent: DocNode | None = field(default=None, repr=False)
    children: list[DocNode] = field(default_factory=list, repr=False)
    location: SourceLocation | None = None
    doc: Doc | None = field(default=None, repr=False)
    status: NodeStatus = NodeStatus.ACTIVE

    # types
    base_name: str = ""
    abstract: bool = False
    wrapper: bool = False
    imports: list[ImportRec] = field(default_factory=list, repr=False)

    # properties
    data_type: str = ""
    attached: bool = False
    read_only: bool = False
    is_default: bool = False
    is_alias: bool = False

    # methods and signals
    return_type: str = ""
    parameters: list[Parameter] = field(default_factory=list)

    since: str = ""
    module: str = ""
    groups: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.parent is not None:
            self.parent.children.append(self)

    @property
    def is_type(self) -> bool:
        return self.kind in _TYPE_KINDS

    @property
    def is_property(self) -> bool:
        return self.kind in _PROPERTY_KINDS

    @property
    def is_function(self) -> bool:
        return self.kind in _FUNCTION_KINDS

    def change_kind(self, old: NodeKind, new: NodeKind) -> None:
        if self.kind is old:
            self.kind = new

    def find_property(self, name: str, attached: bool = False) -> DocNode | None:
        for child in self.children:
            if child.is_property and child.name == name and child.attached == attached:
                return child
        return None


# ---------------------------------------------------------------------------
# Comment lookup
# ---------------------------------------------------------------------------


class DocCommentFinder:
    """Nearest unused doc comment above an offset, bounded by the last structure."""

    def __init__(self, comments: Iterable[Comment]) -> None:
        self.comments = sorted(comments, key=lambda c: c.start)
        # End offset of the most recently finished structure; -1 before any.
        self.last_end_offset = -1
        self.used: set[int] = set()

    def preceding(self, offset: int) -> Comment | None:
        for comment in reversed(self.comments):
            if comment.start <= self.last_end_offset:
                break
            if comment.start in self.used:
                break
            if comment.end <= offset and is_doc_comment(comment):
                return comment
        return None

    def mark_used(self, comment: Comment) -> None:
        self.used.add(comment.start)


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


class QmlDocBuilder:
    """Builds the documentation tree of one QML file from traversal callbacks.

    The type documented by the file is named after the file itself
    (``Button.qml`` documents ``Button``).
    """

    def __init__(self, buffer: SourceBuffer, comments: Iterable[Comment]) -> None:
        self.buffer = buffer
        self.name = PurePath(buffer.file).stem
        self.finder = DocCommentFinder(comments)
        self.nesting_level = 0
        self.types: list[DocNode] = []
        self.current: DocNode | None = None
        self.imports: list[ImportRec] = []
        self.diagnostics: list[str] = []

    def _warn(self, location: SourceLocation | None, message: str) -> None:
        where = location if location is not None else self.buffer.file
        logger.warning("%s: %s", where, message)
        self.diagnostics.append(message)

    # --- traversal callbacks -------------------------------------------

    def visit_import(
        self,
        name: str,
        version: str = "",
        import_id: str = "",
        uri: str = "",
        end_offset: int | None = None,
    ) -> None:
        if name.startswith('"'):
            name = name[1:-1]
        self.imports.append(ImportRec(name, version, import_id, uri))
        if end_offset is not None:
            self.finder.last_end_offset = end_offset

    def visit_object_definition(self, location: SourceLocation, type_name: str) -> DocNode | None:
        """Enter an object definition; the outermost one becomes the file's type."""
        self.nesting_level += 1
        if self.current is not None:
            return None

        component = next((t for t in self.types if t.name == self.name), None)
        if component is None:
            component = DocNode(NodeKind.QML_TYPE, self.name)
            self.types.append(component)
        component.imports = list(self.imports)
        self.imports.clear()
        # An explicit \qmlinherits takes precedence over the root object type.
        if self.apply_documentation(location, component) and not component.base_name:
            component.base_name = type_name
        self.current = component
        return component

    def end_object_definition(self, end_offset: int) -> None:
        if self.nesting_level > 0:
            self.nesting_level -= 1
        self.finder.last_end_offset = end_offset

    def visit_object_binding(self) -> None:
        self.nesting_level += 1

    def end_object_binding(self) -> None:
        self.nesting_level -= 1

    def visit_property(
        self,
        location: SourceLocation,
        name: str,
        type_name: str,
        *,
        read_only: bool = False,
        is_default: bool = False,
        is_alias: bool = False,
    ) -> DocNode | None:
        if self.nesting_level > 1 or self.current is None or not self.current.is_type:
            return None
        prop = self.current.find_property(name)
        if prop is None:
            prop = DocNode(NodeKind.QML_PROPERTY, name, parent=self.current, data_type=type_name)
        prop.read_only = read_only
        prop.is_alias = is_alias
        if is_default:
            prop.is_default = True
        self.apply_documentation(location, prop)
        return prop

    def visit_signal(
        self, location: SourceLocation, name: str, parameters: Iterable[tuple[str, str]] = ()
    ) -> DocNode | None:
        """*parameters* are ``(type, name)`` pairs; untyped ones are dropped."""
        if self.nesting_level > 1 or self.current is None or not self.current.is_type:
            return None
        kind = NodeKind.JS_SIGNAL if self.current.kind is NodeKind.JS_TYPE else NodeKind.QML_SIGNAL
        signal = DocNode(kind, name, parent=self.current)
        signal.parameters = [Parameter(type=t, name=n) for t, n in parameters if t and n]
        self.apply_documentation(location, signal)
        return signal

    def visit_function(
        self, location: SourceLocation, name: str, parameter_names: Iterable[str] = ()
    ) -> DocNode | None:
        if self.nesting_level > 1 or self.current is None or not self.current.is_type:
            return None
        kind = NodeKind.JS_METHOD if self.current.kind is NodeKind.JS_TYPE else NodeKind.QML_METHOD
        method = DocNode(kind, name, parent=self.current)
        method.parameters = [Parameter(type="", name=n) for n in parameter_names]
        self.apply_documentation(location, method)
        return method

    def end_member(self, end_offset: int) -> None:
        """Leave a property, signal, function or script binding."""
        self.finder.last_end_offset = end_offset

    # --- documentation -------------------------------------------------

    def apply_documentation(self, location: SourceLocation, node: DocNode) -> bool:
        """Attach the nearest unused doc comment above *location* to *node*.

        Returns True when a comment with any content was found.
        """
        comment = self.finder.preceding(location.offset)
        if comment is None:
            node.location = location
            return False

        doc_location = self.buffer.location(comment.start)
        doc = parse_doc(comment.text, doc_location)
        node.doc = doc
        node.location = doc_location
        nodes = [node]
        for topic in doc.topics:
            extra = self._apply_topic(topic, node, doc)
            if extra is not None:
                nodes.append(extra)
        for target in nodes:
            self._apply_metacommands(target, doc)
        self.finder.mark_used(comment)
        return not doc.is_empty()

    def _apply_topic(self, topic: Topic, node: DocNode, doc: Doc) -> DocNode | None:
        command, args = topic.command, topic.args
        if command == "jstype":
            node.change_kind(NodeKind.QML_TYPE, NodeKind.JS_TYPE)
            return None

        if command.endswith("property"):
            qpa = split_property_arg(args, doc.location)
            if qpa is None:
                self.diagnostics.append(f"cannot parse property topic: {args}")
                return None
            if qpa.name == node.name:
                if node.is_alias:
                    node.data_type = qpa.type
                return None
            # A property documented from another declaration's comment.
            parent = node.parent if node.parent is not None else node
            attached = "attached" in command
            prop = parent.find_property(qpa.name, attached)
            if prop is None:
                prop = DocNode(
                    NodeKind.QML_PROPERTY,
                    qpa.name,
                    parent=parent,
                    data_type=qpa.type,
                    attached=attached,
                )
            prop.location = doc.location
            prop.doc = doc
            prop.read_only = node.read_only and not attached
            if node.is_default:
                prop.is_default = True
            if command in ("jsproperty", "jsattachedproperty"):
                prop.change_kind(NodeKind.QML_PROPERTY, NodeKind.JS_PROPERTY)
            return prop

        if command.endswith(("method", "signal")) and node.is_function:
            try:
                sig = parse_signature(args)
            except SignatureParseError as exc:
                self._warn(doc.location, str(exc))
                return None
            node.return_type = sig.return_type
            if sig.parameters:
                node.parameters = list(sig.parameters)
            if command in ("jsmethod", "jsattachedmethod"):
                node.change_kind(NodeKind.QML_METHOD, NodeKind.JS_METHOD)
        return None

    def _apply_metacommands(self, node: DocNode, doc: Doc) -> None:
        for command, args in doc.metacommands.items():
            first = args[0] if args else ""
            if command in ("qmlabstract", "abstract"):
                if node.is_type:
                    node.abstract = True
            elif command in ("deprecated", "obsolete"):
                node.status = NodeStatus.OBSOLETE
            elif command in ("inqmlmodule", "injsmodule"):
                node.module = first
            elif command == "qmlinherits":
                if node.name == first:
                    self._warn(doc.location, f"{first} tries to inherit itself")
                elif node.is_type:
                    node.base_name = first
            elif command == "default":
                node.is_default = True
            elif command == "readonly":
                node.read_only = True
            elif command == "ingroup":
                node.groups.extend(a for a in args if a)
            elif command == "internal":
                node.status = NodeStatus.INTERNAL
            elif command == "preliminary":
                node.status = NodeStatus.PRELIMINARY
            elif command == "since":
                node.since = first
            elif command == "wrapper":
                node.wrapper = True
            elif command == "pagekeywords":
                pass
            else:
                self._warn(doc.location, f"The \\{command} command is ignored in QML files")
