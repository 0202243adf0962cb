"""adjacency.py - Accept/skip/stop rules applied while walking back from a site.

Rules are checked in a fixed order for each candidate comment:

1. cross-file    -> STOP
2. same-line     -> SKIP (keep walking)
3. intervening ``; } # @`` in the unscanned text -> STOP
4. intervening marker call in the unscanned text -> STOP

A comment passing all four is accepted.
"""

from __future__ import annotations

import enum
import logging

from annotext.location import Comment, SourceBuffer, SourceLocation
from annotext.markers import MarkerTable

logger = logging.getLogger(__name__)

# Any of these between comment and construct means another statement, scope
# end, preprocessor directive or annotation sits in between.
STRUCTURE_TERMINATORS = frozenset(";}#@")


class Verdict(enum.Enum):
    ACCEPT = "accept"
    SKIP = "skip"
    STOP = "stop"


def has_structure_terminator(text: str) -> bool:
    return any(ch in STRUCTURE_TERMINATORS for ch in text)


class AdjacencyValidator:
    """Decides whether one comment may be attributed to a target location."""

    def __init__(self, buffer: SourceBuffer, markers: MarkerTable) -> None:
        self.buffer = buffer
        self.markers = markers

    def check(self, comment: Comment, target: SourceLocation, unscanned: str) -> Verdict:
        if comment.file != target.file:
            logger.debug(
                "%s: comment %r is in %s, stopping", target, comment.text, comment.file
            )
            return Verdict.STOP

        if self.buffer.line_of(comment.end) == self.buffer.line_of(target.offset):
            logger.debug("%s: comment %r ends on the same line, skipped", target, comment.text)
            return Verdict.SKIP

        if has_structure_terminator(unscanned):
            logger.debug(
                "%s: declaration or directive between comment %r and site, stopping",
                target,
                comment.text,
            )
            return Verdict.STOP

        if self.markers.call_present(unscanned):
            logger.debug(
                "%s: another marker call between comment %r and site, stopping",
                target,
                comment.text,
            )
            return Verdict.STOP

        return Verdict.ACCEPT
