"""tagparser.py - Translator tag extraction from raw comment text.

Recognised forms (the marker must be followed by whitespace)::

    //: extra comment for translators
    /*= message-id-metadata */
    /*~ magic-key magic value
        continued on the next line */
    //% "source text used with qtTrId()"

The scanner is a two-mode state machine over the trimmed physical lines of a
comment.  In single-line mode each line is matched against the line-comment,
closed block and block-opener shapes; a block opener without its closer
switches to continuation mode, which gathers lines until the closer.

Contributions are yielded as :class:`TagLine` values and folded into a
:class:`TagFields` accumulator.  Malformed lines contribute nothing.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from annotext.literals import QuoteCompulsory, clean_quote
from annotext.markers import TagMarker

LINE_OPENER = "//"
BLOCK_OPENER = "/*"
BLOCK_CLOSER = "*/"


class _Mode(enum.Enum):
    SINGLE = "single"
    CONTINUATION = "continuation"


@dataclass(frozen=True)
class TagLine:
    """One completed contribution; ``marker`` is None for untagged text."""

    marker: TagMarker | None
    text: str


@dataclass
class TagFields:
    """Accumulated tag values for one candidate site."""

    extra_comment: str = ""
    id_metadata: str = ""
    magic_metadata: dict[str, str] = field(default_factory=dict)
    source_text_when_id: str = ""

    def fold(self, line: TagLine) -> None:
        text = line.text
        if not text:
            return
        if line.marker is TagMarker.EXTRA_COMMENT:
            self.extra_comment = f"{self.extra_comment} {text}" if self.extra_comment else text
        elif line.marker is TagMarker.ID_METADATA:
            # Only the last one is kept.
            self.id_metadata = text
        elif line.marker is TagMarker.MAGIC_METADATA:
            key, _, rest = _split_ws(text)
            value = rest.strip()
            if value:
                self.magic_metadata[key] = value
        elif line.marker is TagMarker.SOURCE_WHEN_ID:
            self.source_text_when_id += text

    def fold_all(self, lines: Iterable[TagLine]) -> TagFields:
        for line in lines:
            self.fold(line)
        return self


def _split_ws(text: str) -> tuple[str, str, str]:
    """Split on the first whitespace run of any kind (tabs included)."""
    for i, ch in enumerate(text):
        if ch.isspace():
            return text[:i], ch, text[i + 1 :]
    return text, "", ""


def _marker_and_text(rest: str) -> tuple[TagMarker | None, str | None]:
    """Split ``rest`` (text after a comment opener) into marker and payload.

    Returns ``(marker, None)`` when the marker is not followed by whitespace,
    and ``(None, None)`` when there is no marker at all.
    """
    if not rest:
        return None, None
    marker = TagMarker.from_char(rest[0])
    if marker is None:
        return None, None
    after = rest[1:]
    if not after:
        return marker, ""
    if not after[0].isspace():
        return marker, None
    return marker, after.strip()


def _payload(marker: TagMarker, text: str) -> str:
    if marker is TagMarker.SOURCE_WHEN_ID:
        return clean_quote(text, QuoteCompulsory.LEFT)
    return text


def scan_comment(raw: str) -> Iterator[TagLine]:
    """Yield every tag contribution found in one raw comment."""
    mode = _Mode.SINGLE
    marker: TagMarker | None = None
    parts: list[str] = []

    for physical in raw.split("\n"):
        line = physical.strip()
        if not line:
            continue

        if mode is _Mode.SINGLE:
            if line.startswith(LINE_OPENER):
                found, text = _marker_and_text(line[2:])
                if found is not None and text:
                    text = _payload(found, text)
                    if text:
                        yield TagLine(found, text)
            elif line.startswith(BLOCK_OPENER) and line.endswith(BLOCK_CLOSER) and len(line) >= 4:
                found, text = _marker_and_text(line[2:-2].rstrip())
                if found is not None and text:
                    text = _payload(found, text)
                    if text:
                        yield TagLine(found, text)
            elif line.startswith(BLOCK_OPENER):
                mode = _Mode.CONTINUATION
                marker, text = _marker_and_text(line[2:])
                if marker is not None and text is None:
                    # "/*:text" without a separator: the whole block is inert.
                    marker = None
                parts = []
                if marker is not None and text:
                    first = _payload(marker, text)
                    if first:
                        parts.append(first)
            continue

        if line.endswith(BLOCK_CLOSER):
            mode = _Mode.SINGLE
            line = line.replace(BLOCK_CLOSER, "").strip()
        if marker is TagMarker.SOURCE_WHEN_ID:
            line = clean_quote(line, QuoteCompulsory.LEFT)
        if line:
            parts.append(line)

        if mode is _Mode.SINGLE:
            separator = "" if marker is TagMarker.SOURCE_WHEN_ID else " "
            text = separator.join(parts)
            if marker is not None and text:
                yield TagLine(marker, text)
            marker = None
            parts = []


def parse_comments(comments: Iterable[str], fields: TagFields | None = None) -> TagFields:
    """Fold the tags of several raw comments, in order, into one accumulator."""
    fields = fields if fields is not None else TagFields()
    for raw in comments:
        fields.fold_all(scan_comment(raw))
    return fields
