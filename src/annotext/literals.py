"""literals.py - Recover the text value of string literals sliced from source.

Two independent paths exist:

* :func:`clean_quote` trims the quotes around translator-comment payloads
  (``//% "text"``).  Which quotes are mandatory depends on the caller: a
  continuation line of a ``/*% ... */`` block must open with a quote but may
  leave it unclosed, so that a literal split over several lines still
  reassembles.
* :func:`literal_from_source` handles call arguments taken verbatim from the
  source: it drops an encoding prefix (``u8``, ``L``, ``u``, ``U``) and unwraps
  raw literals ``R"delim(...)delim"``.  Escape sequences inside ordinary
  literals are kept as written.

Neither path ever raises: input without a quote comes back trimmed.
"""

from __future__ import annotations

import enum
import re
from collections.abc import Iterable


class QuoteCompulsory(enum.Flag):
    NONE = 0
    LEFT = 1
    RIGHT = 2
    LEFT_AND_RIGHT = 3


# R"delim( ... )delim" with an optional encoding prefix.  The delimiter is at
# most 16 characters and may not contain parentheses, backslash or space.
RAW_LITERAL_RE = re.compile(
    r"(?:\bu8|\b[LuU])??R\"(?P<delim>[^()\\ ]{0,16})\((?P<characters>.*)\)(?P=delim)\"",
    re.DOTALL,
)

# Prefixed ordinary literal; the body may contain escaped quotes.
PREFIXED_LITERAL_RE = re.compile(
    r"(?:\bu8|\b[LuU])+?\"(?P<characters>[^\"\\]*(?:\\.[^\"\\]*)*)\""
)


def clean_quote(text: str, quote: QuoteCompulsory = QuoteCompulsory.NONE) -> str:
    """Strip one leading and one trailing double quote from *text*.

    Returns ``""`` when a quote required by *quote* is missing.
    """
    if not text:
        return ""
    s = text.strip()
    if s.startswith('"'):
        s = s[1:]
    elif quote & QuoteCompulsory.LEFT:
        return ""
    if s.endswith('"'):
        s = s[:-1]
    elif quote & QuoteCompulsory.RIGHT:
        return ""
    return s


def has_quote(text: str) -> bool:
    return '"' in text


def literal_from_source(token: str) -> str:
    """Return the characters of the string literal spelled by *token*."""
    if not token:
        return ""
    s = token.strip()
    index = s.find('"')
    if index == -1:
        return s
    if index == 0:
        return clean_quote(s, QuoteCompulsory.LEFT_AND_RIGHT)

    if s[index - 1] == "R":
        m = RAW_LITERAL_RE.search(s)
    else:
        m = PREFIXED_LITERAL_RE.search(s)
    if m:
        return m.group("characters")
    return s


def join_adjacent_literals(tokens: Iterable[str]) -> str:
    """Concatenate adjacent literals the way the compiler would (``"a" "b"``)."""
    return "".join(literal_from_source(t) for t in tokens)
