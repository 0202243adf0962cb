"""location.py - Source positions, comments and raw source buffers.

All offsets are byte offsets into the UTF-8 encoded file, the same unit the
tree-sitter collector and most lexers report.  Lines are 1-based, columns are
0-based byte columns.
"""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass, field


@dataclass(frozen=True, order=True)
class SourceLocation:
    """A point in a source file, ordered by ``(file, offset)``."""

    file: str
    offset: int
    line: int = field(default=0, compare=False)
    column: int = field(default=0, compare=False)

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}"


@dataclass(frozen=True)
class Comment:
    """A single lexical comment.  ``end`` is exclusive."""

    start: int
    end: int
    file: str
    text: str

    @property
    def is_block(self) -> bool:
        return self.text.startswith("/*")


class SourceBuffer:
    """Random access to a file's raw bytes plus a newline index."""

    def __init__(self, file: str, data: bytes) -> None:
        self.file = file
        self.data = data
        # Offsets of every '\n' in the buffer, ascending.
        self._newlines: list[int] = []
        pos = data.find(b"\n")
        while pos != -1:
            self._newlines.append(pos)
            pos = data.find(b"\n", pos + 1)

    @classmethod
    def from_text(cls, file: str, text: str) -> SourceBuffer:
        return cls(file, text.encode("utf-8"))

    def __len__(self) -> int:
        return len(self.data)

    def line_of(self, offset: int) -> int:
        """Return the 1-based line containing *offset*.

        A newline character belongs to the line it terminates, so the
        exclusive end of a ``//`` comment stays on the comment's own line.
        """
        return bisect_right(self._newlines, offset - 1) + 1

    def column_of(self, offset: int) -> int:
        line = self.line_of(offset)
        if line == 1:
            return offset
        return offset - self._newlines[line - 2] - 1

    def location(self, offset: int) -> SourceLocation:
        return SourceLocation(
            file=self.file,
            offset=offset,
            line=self.line_of(offset),
            column=self.column_of(offset),
        )

    def text(self, start: int, end: int) -> str:
        """Decode the bytes in ``[start, end)``; out-of-range bounds are clamped."""
        start = max(0, start)
        end = min(len(self.data), end)
        if end <= start:
            return ""
        return self.data[start:end].decode("utf-8", errors="replace")

    def comment(self, start: int, end: int) -> Comment:
        """Build a :class:`Comment` for the byte range ``[start, end)``."""
        return Comment(start=start, end=end, file=self.file, text=self.text(start, end))
