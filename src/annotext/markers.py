"""markers.py - Closed vocabularies: translation marker functions and tag markers.

The marker functions are a fixed enumeration built from a static table.
Project-specific aliases (``myTr`` behaving like ``tr``) are resolved through
an explicit :class:`MarkerTable` instance handed to the engine, never through
process-wide state.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping

from annotext.errors import ConfigError


class ArgLayout(enum.Enum):
    """How a marker call's raw arguments map onto record fields."""

    TR = "tr"  # source [, comment [, plural]]
    TRANSLATE = "translate"  # context, source [, comment [, plural]]
    TRID = "trid"  # id [, plural]
    DECLARE = "declare"  # context only, never yields a record


class MarkerFunction(enum.Enum):
    """Every recognised translation marker function or macro."""

    TR = "tr"
    TR_UTF8 = "trUtf8"
    TRANSLATE = "translate"
    FIND_MESSAGE = "findMessage"
    QT_TR_ID = "qtTrId"
    QT_TR_NOOP = "QT_TR_NOOP"
    QT_TR_NOOP_UTF8 = "QT_TR_NOOP_UTF8"
    QT_TR_N_NOOP = "QT_TR_N_NOOP"
    QT_TRANSLATE_NOOP = "QT_TRANSLATE_NOOP"
    QT_TRANSLATE_NOOP_UTF8 = "QT_TRANSLATE_NOOP_UTF8"
    QT_TRANSLATE_NOOP3 = "QT_TRANSLATE_NOOP3"
    QT_TRANSLATE_NOOP3_UTF8 = "QT_TRANSLATE_NOOP3_UTF8"
    QT_TRANSLATE_N_NOOP = "QT_TRANSLATE_N_NOOP"
    QT_TRANSLATE_N_NOOP3 = "QT_TRANSLATE_N_NOOP3"
    QT_TRID_NOOP = "QT_TRID_NOOP"
    QT_TRID_N_NOOP = "QT_TRID_N_NOOP"
    Q_DECLARE_TR_FUNCTIONS = "Q_DECLARE_TR_FUNCTIONS"

    @property
    def layout(self) -> ArgLayout:
        return _LAYOUTS[self]

    @property
    def force_plural(self) -> bool:
        return self in _FORCED_PLURAL

    @property
    def is_macro(self) -> bool:
        return self.value.startswith("Q")


_LAYOUTS: dict[MarkerFunction, ArgLayout] = {
    MarkerFunction.TR: ArgLayout.TR,
    MarkerFunction.TR_UTF8: ArgLayout.TR,
    MarkerFunction.QT_TR_NOOP: ArgLayout.TR,
    MarkerFunction.QT_TR_NOOP_UTF8: ArgLayout.TR,
    MarkerFunction.QT_TR_N_NOOP: ArgLayout.TR,
    MarkerFunction.TRANSLATE: ArgLayout.TRANSLATE,
    MarkerFunction.FIND_MESSAGE: ArgLayout.TRANSLATE,
    MarkerFunction.QT_TRANSLATE_NOOP: ArgLayout.TRANSLATE,
    MarkerFunction.QT_TRANSLATE_NOOP_UTF8: ArgLayout.TRANSLATE,
    MarkerFunction.QT_TRANSLATE_NOOP3: ArgLayout.TRANSLATE,
    MarkerFunction.QT_TRANSLATE_NOOP3_UTF8: ArgLayout.TRANSLATE,
    MarkerFunction.QT_TRANSLATE_N_NOOP: ArgLayout.TRANSLATE,
    MarkerFunction.QT_TRANSLATE_N_NOOP3: ArgLayout.TRANSLATE,
    MarkerFunction.QT_TR_ID: ArgLayout.TRID,
    MarkerFunction.QT_TRID_NOOP: ArgLayout.TRID,
    MarkerFunction.QT_TRID_N_NOOP: ArgLayout.TRID,
    MarkerFunction.Q_DECLARE_TR_FUNCTIONS: ArgLayout.DECLARE,
}

_FORCED_PLURAL = frozenset(
    {
        MarkerFunction.QT_TR_N_NOOP,
        MarkerFunction.QT_TRANSLATE_N_NOOP,
        MarkerFunction.QT_TRANSLATE_N_NOOP3,
        MarkerFunction.QT_TRID_N_NOOP,
    }
)


class TagMarker(enum.Enum):
    """The character following a comment opener that gives a line its role."""

    EXTRA_COMMENT = ":"
    ID_METADATA = "="
    MAGIC_METADATA = "~"
    SOURCE_WHEN_ID = "%"

    @classmethod
    def from_char(cls, ch: str) -> TagMarker | None:
        return _TAG_BY_CHAR.get(ch)


_TAG_BY_CHAR = {m.value: m for m in TagMarker}


def _is_ident_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


class MarkerTable:
    """Name lookup over :class:`MarkerFunction`, optionally extended by aliases."""

    def __init__(self, aliases: Mapping[str, str] | None = None) -> None:
        self._by_name: dict[str, MarkerFunction] = {m.value: m for m in MarkerFunction}
        for alias, target in (aliases or {}).items():
            try:
                self._by_name[alias] = MarkerFunction(target)
            except ValueError:
                raise ConfigError(
                    f"alias {alias!r} targets unknown marker function {target!r}"
                ) from None
        # Longest first so that QT_TR_NOOP_UTF8 is tried before QT_TR_NOOP.
        self._call_needles = sorted((name + "(" for name in self._by_name), key=len, reverse=True)

    def lookup(self, name: str) -> MarkerFunction | None:
        """Resolve a callee or macro name; qualified names use their last segment."""
        return self._by_name.get(name.rsplit("::", 1)[-1].rsplit(".", 1)[-1])

    def names(self) -> list[str]:
        return sorted(self._by_name)

    def call_present(self, text: str) -> bool:
        """True if *text* contains ``name(`` for any known marker name.

        The name must start at an identifier boundary, so ``str(`` does not
        count as a call to ``tr``.
        """
        for needle in self._call_needles:
            pos = text.find(needle)
            while pos != -1:
                if pos == 0 or not _is_ident_char(text[pos - 1]):
                    return True
                pos = text.find(needle, pos + 1)
        return False
