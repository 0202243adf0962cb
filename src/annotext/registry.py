"""registry.py - Per-file, position-ordered comment arena.

The comment sequence is fixed at construction.  Attribution state lives in a
parallel consumed bitset indexed the same way, so a comment handed to one
candidate site is never handed to a later one.
"""

from __future__ import annotations

from bisect import bisect_left
from collections.abc import Iterable, Iterator

from annotext.location import Comment


class CommentRegistry:
    """Comments of one file ordered by start offset.

    The sort is stable: comments sharing a range keep their input order.
    """

    def __init__(self, comments: Iterable[Comment]) -> None:
        self._comments: tuple[Comment, ...] = tuple(sorted(comments, key=lambda c: c.start))
        self._starts: list[int] = [c.start for c in self._comments]
        self._consumed = bytearray(len(self._comments))

    def __len__(self) -> int:
        return len(self._comments)

    def __getitem__(self, index: int) -> Comment:
        return self._comments[index]

    def __iter__(self) -> Iterator[Comment]:
        return iter(self._comments)

    def lower_bound(self, offset: int) -> int:
        """Index of the first comment whose start is not before *offset*."""
        return bisect_left(self._starts, offset)

    def is_consumed(self, index: int) -> bool:
        return bool(self._consumed[index])

    def consume(self, index: int) -> None:
        self._consumed[index] = 1

    def consumed_offsets(self) -> set[int]:
        """Start offsets of every comment already attributed."""
        return {c.start for c, used in zip(self._comments, self._consumed) if used}

    def reset(self) -> None:
        """Forget all attributions (the comment sequence itself is untouched)."""
        self._consumed = bytearray(len(self._comments))
