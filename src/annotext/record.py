"""record.py - Candidate sites and the annotation records built from them.

A :class:`CandidateSite` is what an external traversal reports: where a
marker call or declaration sits, what it is called, and its raw argument
text.  :func:`build_record` combines a site with the tag fields folded from
its comments and returns an :class:`AnnotationRecord`, or ``None`` when the
site cannot produce one (missing context, unquoted source argument, invalid
location).

Argument layouts per marker family::

    tr / QT_TR_NOOP            source [, comment [, plural]]
    translate / QT_TRANSLATE_* context, source [, comment [, plural]]
    qtTrId / QT_TRID_*         id [, plural]

``DECLARATION`` sites are never produced by the bundled C++ adapter; they
exist for external traversals that document declarations by name.  The
documentation front-end in :mod:`annotext.qmldoc` has its own finder.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field

from annotext.literals import has_quote, literal_from_source
from annotext.location import SourceLocation
from annotext.markers import ArgLayout, MarkerFunction, MarkerTable
from annotext.tagparser import TagFields

logger = logging.getLogger(__name__)


class SiteKind(enum.Enum):
    CALL_SITE = "call"
    DECLARATION = "declaration"


@dataclass(frozen=True)
class CandidateSite:
    """A construct that may carry documentation, as reported by a traversal."""

    location: SourceLocation
    kind: SiteKind
    name_hint: str
    raw_arguments: tuple[str, ...] = ()
    # Context derived from the enclosing scope (class or namespace name).
    scope_context: str = ""
    # Class qualifier written on the call itself, e.g. "Dialog" in Dialog::tr().
    explicit_context: str = ""


@dataclass
class AnnotationRecord:
    """Structured output for one attributed candidate site.

    Supports dict-like access (``rec["extra_comment"]``) like a plain mapping.
    """

    context: str = ""
    source_text: str = ""
    source_text_when_id: str = ""
    comment: str = ""
    extra_comment: str = ""
    id_metadata: str = ""
    magic_metadata: dict[str, str] = field(default_factory=dict)
    plural_arg_text: str = ""
    id: str = ""
    location_file: str = ""
    location_line: int = -1
    location_column: int = -1
    plural: bool = False
    site: CandidateSite | None = field(default=None, repr=False, compare=False)

    def __getitem__(self, key: str) -> object:
        if key == "site" or not hasattr(self, key):
            raise KeyError(key)
        return getattr(self, key)

    def __contains__(self, key: str) -> bool:
        return key != "site" and hasattr(self, key)

    def get(self, key: str, default: object = None) -> object:
        """Return the value for *key*, or *default* if not present."""
        try:
            return self[key]
        except KeyError:
            return default

    def is_valid(self) -> bool:
        return bool(self.location_file) and self.location_line >= 0 and self.location_column >= 0

    def to_dict(self) -> dict[str, object]:
        """Serialize to a plain dict (for JSON output)."""
        d: dict[str, object] = {
            "context": self.context,
            "source": self.source_text,
            "comment": self.comment,
            "extra_comment": self.extra_comment,
            "id": self.id,
            "file": self.location_file,
            "line": self.location_line,
            "column": self.location_column,
            "plural": self.plural,
        }
        if self.source_text_when_id:
            d["source_when_id"] = self.source_text_when_id
        if self.id_metadata:
            d["id_metadata"] = self.id_metadata
        if self.magic_metadata:
            d["extras"] = dict(self.magic_metadata)
        if self.plural_arg_text:
            d["plural_arg"] = self.plural_arg_text
        if self.site is not None:
            d["function"] = self.site.name_hint
        return d

    def sort_key(self) -> tuple[str, int, int]:
        return (self.location_file, self.location_line, self.location_column)


def _arg(args: tuple[str, ...], index: int) -> str:
    return args[index] if index < len(args) else ""


def resolve_context(explicit: str, structural: str) -> str:
    """An explicit context argument always wins over the enclosing scope."""
    return explicit if explicit else structural


def _comment_arg(token: str) -> str:
    # Only a string literal disambiguates; nullptr, 0 or a variable means none.
    return literal_from_source(token) if has_quote(token) else ""


def _base_record(site: CandidateSite, tags: TagFields) -> AnnotationRecord:
    loc = site.location
    return AnnotationRecord(
        extra_comment=tags.extra_comment,
        id_metadata=tags.id_metadata,
        magic_metadata=dict(tags.magic_metadata),
        location_file=loc.file,
        location_line=loc.line,
        location_column=loc.column,
        site=site,
    )


def _build_tr(
    site: CandidateSite, tags: TagFields, func: MarkerFunction, require_context: bool
) -> AnnotationRecord | None:
    args = site.raw_arguments
    if not args:
        return None
    if not func.is_macro and not has_quote(args[0]):
        return None
    if tags.source_text_when_id:
        logger.debug("%s: //%% is ignored when using %s", site.location, func.value)
    context = resolve_context(site.explicit_context, site.scope_context)
    if not context and require_context:
        logger.debug("%s: %s() cannot be used without context", site.location, func.value)
        return None

    rec = _base_record(site, tags)
    rec.context = context
    rec.source_text = literal_from_source(args[0])
    rec.comment = _comment_arg(_arg(args, 1))
    rec.plural_arg_text = _arg(args, 2).strip()
    rec.id = tags.id_metadata
    rec.plural = func.force_plural or bool(rec.plural_arg_text)
    return rec


def _build_translate(
    site: CandidateSite, tags: TagFields, func: MarkerFunction
) -> AnnotationRecord | None:
    args = site.raw_arguments
    if len(args) < 2:
        return None
    if not func.is_macro and not (has_quote(args[0]) and has_quote(args[1])):
        return None
    if tags.source_text_when_id:
        logger.debug("%s: //%% is ignored when using %s", site.location, func.value)

    rec = _base_record(site, tags)
    rec.context = resolve_context(literal_from_source(args[0]), site.scope_context)
    rec.source_text = literal_from_source(args[1])
    rec.comment = _comment_arg(_arg(args, 2))
    rec.plural_arg_text = _arg(args, 3).strip()
    rec.id = tags.id_metadata
    rec.plural = func.force_plural or bool(rec.plural_arg_text)
    return rec


def _build_trid(site: CandidateSite, tags: TagFields, func: MarkerFunction) -> AnnotationRecord | None:
    args = site.raw_arguments
    if not args:
        return None
    if not func.is_macro and not has_quote(args[0]):
        return None
    if tags.id_metadata:
        logger.debug("%s: //= is ignored when using %s", site.location, func.value)

    rec = _base_record(site, tags)
    rec.source_text = tags.source_text_when_id
    rec.source_text_when_id = tags.source_text_when_id
    rec.id = literal_from_source(args[0])
    rec.plural_arg_text = _arg(args, 1).strip()
    rec.plural = func.force_plural or bool(rec.plural_arg_text)
    return rec


def _build_declaration(site: CandidateSite, tags: TagFields) -> AnnotationRecord:
    rec = _base_record(site, tags)
    rec.context = site.scope_context
    rec.source_text = site.name_hint
    rec.source_text_when_id = tags.source_text_when_id
    rec.id = tags.id_metadata
    return rec


def build_record(
    site: CandidateSite,
    tags: TagFields,
    markers: MarkerTable,
    require_context: bool = True,
) -> AnnotationRecord | None:
    """Assemble and validate the record for *site*; ``None`` means no record.

    With *require_context* off, tr()-style sites outside any class or
    namespace still produce a record with an empty context.
    """
    if site.kind is SiteKind.DECLARATION:
        rec: AnnotationRecord | None = _build_declaration(site, tags)
    else:
        func = markers.lookup(site.name_hint)
        if func is None:
            logger.debug("%s: %r is not a marker function", site.location, site.name_hint)
            return None
        layout = func.layout
        if layout is ArgLayout.TR:
            rec = _build_tr(site, tags, func, require_context)
        elif layout is ArgLayout.TRANSLATE:
            rec = _build_translate(site, tags, func)
        elif layout is ArgLayout.TRID:
            rec = _build_trid(site, tags, func)
        else:
            rec = None

    if rec is None:
        return None
    if not rec.is_valid():
        logger.debug("%s: dropping record without a valid location", site.location)
        return None
    return rec
