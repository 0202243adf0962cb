"""finder.py - Nearest-preceding-comment search for a candidate site.

Given a site location, the finder lower-bounds into the file's comment
registry and walks backward, asking the adjacency validator about each
comment.  The accepted comments form one contiguous block, returned in source
order and marked consumed so no later site can claim them.

Two examples of what gets attributed to ``tr("x")``::

    //: first          <- attributed (with the next line)
    //: second
    label->setText(tr("x"));

    int n = 0;         <- ';' stops the walk here
    //: only this
    tr("x");
"""

from __future__ import annotations

import logging

from annotext.adjacency import AdjacencyValidator, Verdict
from annotext.location import Comment, SourceBuffer, SourceLocation
from annotext.markers import MarkerTable
from annotext.registry import CommentRegistry

logger = logging.getLogger(__name__)


class CommentFinder:
    """Locates the comment block documenting a location in one file."""

    def __init__(
        self,
        registry: CommentRegistry,
        buffer: SourceBuffer,
        markers: MarkerTable,
        *,
        trailing: bool = True,
    ) -> None:
        self.registry = registry
        self.buffer = buffer
        self.markers = markers
        self.validator = AdjacencyValidator(buffer, markers)
        self.trailing = trailing

    def find(self, location: SourceLocation) -> list[Comment]:
        """Return the comments attributed to *location*, in source order."""
        if not len(self.registry):
            return []

        first_after = self.registry.lower_bound(location.offset)
        accepted = self._walk_back(location, first_after)
        if not accepted and self.trailing:
            accepted = self._trailing(location, first_after)

        for index in accepted:
            self.registry.consume(index)
        return [self.registry[i] for i in accepted]

    def _walk_back(self, location: SourceLocation, first_after: int) -> list[int]:
        if first_after == 0:
            # Nothing precedes the site in this file.
            return []

        accepted: list[int] = []
        boundary = location.offset
        index = first_after
        while index > 0:
            index -= 1
            comment = self.registry[index]
            if self.registry.is_consumed(index):
                logger.debug("%s: comment %r already used, stopping", location, comment.text)
                break

            unscanned = self.buffer.text(comment.end, boundary)
            verdict = self.validator.check(comment, location, unscanned)
            if verdict is Verdict.STOP:
                break
            if verdict is Verdict.SKIP:
                continue

            accepted.insert(0, index)
            boundary = comment.start
        return accepted

    def _trailing(self, location: SourceLocation, first_after: int) -> list[int]:
        """Comments following the site on its own line, e.g. ``tr("a"); //: note``.

        The site's own call is skipped by starting the scan after its first
        opening parenthesis; any further marker call before the comment means
        the comment belongs to that call instead.

        This only runs when the backward walk found nothing, so ownership of a
        trailing comment depends on the site's own documentation::

            tr("a"); //: c        <- tr("a") takes "c"
            tr("b");

            //: doc a
            tr("a"); //: c        <- tr("a") keeps "doc a"; tr("b") takes "c"
            tr("b");
        """
        site_line = self.buffer.line_of(location.offset)
        head = self.buffer.text(location.offset, self._line_end(location.offset))
        paren = head.find("(")
        scan_from = location.offset + (len(head[: paren + 1].encode("utf-8")) if paren != -1 else 0)

        accepted: list[int] = []
        index = first_after
        while index < len(self.registry):
            comment = self.registry[index]
            if comment.file != location.file or self.buffer.line_of(comment.start) != site_line:
                break
            if self.registry.is_consumed(index):
                break
            if self.markers.call_present(self.buffer.text(scan_from, comment.start)):
                break
            accepted.append(index)
            scan_from = comment.end
            index += 1
        return accepted

    def _line_end(self, offset: int) -> int:
        end = self.buffer.data.find(b"\n", offset)
        return len(self.buffer) if end == -1 else end
