"""Tests for annotext.finder and annotext.adjacency - which comments reach a site."""

from annotext.adjacency import AdjacencyValidator, Verdict, has_structure_terminator
from annotext.finder import CommentFinder
from annotext.location import Comment, SourceBuffer, SourceLocation
from annotext.markers import MarkerTable
from annotext.registry import CommentRegistry
from annotext.tagparser import parse_comments

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _lex(text: str, file: str = "a.cpp") -> tuple[SourceBuffer, list[Comment]]:
    """Tiny comment lexer for test inputs (skips string literals)."""
    buf = SourceBuffer.from_text(file, text)
    data = buf.data
    comments: list[Comment] = []
    i = 0
    while i < len(data):
        if data.startswith(b"//", i):
            end = data.find(b"\n", i)
            end = len(data) if end == -1 else end
        elif data.startswith(b"/*", i):
            end = data.find(b"*/", i + 2) + 2
        elif data[i : i + 1] == b'"':
            i += 1
            while i < len(data) and data[i : i + 1] != b'"':
                i += 2 if data[i : i + 1] == b"\\" else 1
            i += 1
            continue
        else:
            i += 1
            continue
        comments.append(buf.comment(i, end))
        i = end
    return buf, comments


def _finder(text: str, **kwargs) -> tuple[CommentFinder, SourceBuffer]:
    buf, comments = _lex(text)
    return CommentFinder(CommentRegistry(comments), buf, MarkerTable(), **kwargs), buf


def _at(buf: SourceBuffer, needle: str, nth: int = 0) -> SourceLocation:
    pos = -1
    for _ in range(nth + 1):
        pos = buf.data.index(needle.encode("utf-8"), pos + 1)
    return buf.location(pos)


def _texts(found: list[Comment]) -> list[str]:
    return [c.text for c in found]


# ---------------------------------------------------------------------------
# Adjacency rules
# ---------------------------------------------------------------------------


class TestAdjacencyValidator:
    def test_structure_terminators(self) -> None:
        for ch in ";}#@":
            assert has_structure_terminator(f"a {ch} b")
        assert not has_structure_terminator("foo(bar,\n baz")

    def test_cross_file_stops(self) -> None:
        buf = SourceBuffer.from_text("a.cpp", "\n\ntr(x)")
        validator = AdjacencyValidator(buf, MarkerTable())
        other = Comment(start=0, end=1, file="b.cpp", text="//")
        assert validator.check(other, buf.location(2), "") is Verdict.STOP

    def test_same_line_skips(self) -> None:
        buf, comments = _lex("/*: x */ tr(y)")
        validator = AdjacencyValidator(buf, MarkerTable())
        assert validator.check(comments[0], _at(buf, "tr("), " ") is Verdict.SKIP

    def test_marker_call_stops(self) -> None:
        buf, comments = _lex("//: x\nf(tr(a),\n  tr(b))")
        validator = AdjacencyValidator(buf, MarkerTable())
        site = _at(buf, "tr(", 1)
        unscanned = buf.text(comments[0].end, site.offset)
        assert validator.check(comments[0], site, unscanned) is Verdict.STOP

    def test_accept(self) -> None:
        buf, comments = _lex("//: x\ntr(a)")
        validator = AdjacencyValidator(buf, MarkerTable())
        assert validator.check(comments[0], _at(buf, "tr("), "\n") is Verdict.ACCEPT


# ---------------------------------------------------------------------------
# Finder
# ---------------------------------------------------------------------------


class TestCommentFinder:
    def test_no_comments(self) -> None:
        finder, buf = _finder('tr("x");')
        assert finder.find(_at(buf, "tr(")) == []

    def test_nothing_precedes(self) -> None:
        finder, buf = _finder('tr("x");\n//: after\n')
        assert finder.find(_at(buf, "tr(")) == []

    def test_contiguous_block_in_source_order(self) -> None:
        finder, buf = _finder('//: first\n//: second\ntr("x");\n')
        found = finder.find(_at(buf, "tr("))
        assert _texts(found) == ["//: first", "//: second"]

    def test_semicolon_barrier(self) -> None:
        finder, buf = _finder('//: stale\nint n = 0;\ntr("x");\n')
        assert finder.find(_at(buf, "tr(")) == []

    def test_semicolon_barrier_keeps_closer_comments(self) -> None:
        finder, buf = _finder('//: stale\nint n = 0;\n//: fresh\ntr("x");\n')
        assert _texts(finder.find(_at(buf, "tr("))) == ["//: fresh"]

    def test_brace_hash_and_at_barriers(self) -> None:
        for between in ("}", "#define X 1", "@property"):
            finder, buf = _finder(f'//: stale\n{between}\ntr("x")\n')
            assert finder.find(_at(buf, "tr(")) == [], between

    def test_call_arguments_do_not_stop_the_walk(self) -> None:
        finder, buf = _finder('//: label\nlabel->setText(\n    tr("x"));\n')
        assert _texts(finder.find(_at(buf, "tr("))) == ["//: label"]

    def test_intervening_marker_call_stops(self) -> None:
        finder, buf = _finder('//: for a\nf(tr("a"),\n  tr("b"));\n')
        assert finder.find(_at(buf, "tr(", 1)) == []

    def test_non_marker_call_does_not_stop(self) -> None:
        finder, buf = _finder('//: note\nf(str(x),\n  tr("b"));\n')
        assert _texts(finder.find(_at(buf, "tr(", 1))) == ["//: note"]

    def test_same_line_comment_is_skipped_and_walk_continues(self) -> None:
        # The inline comment ends on the site's line; the walk goes on and
        # attributes the earlier comment instead.
        finder, buf = _finder('//: earlier\n/*: inline */ tr("y");\n')
        assert _texts(finder.find(_at(buf, "tr("))) == ["//: earlier"]

    def test_no_double_use(self) -> None:
        finder, buf = _finder('//: once\ntr("x");\n')
        loc = _at(buf, "tr(")
        assert _texts(finder.find(loc)) == ["//: once"]
        assert finder.find(loc) == []
        assert finder.registry.consumed_offsets() == {0}

    def test_idempotent_after_reset(self) -> None:
        finder, buf = _finder('//: a\n//: b\ntr("x");\n')
        loc = _at(buf, "tr(")
        first = finder.find(loc)
        finder.registry.reset()
        assert finder.find(loc) == first

    def test_trailing_comment(self) -> None:
        finder, buf = _finder('tr("test"); //: comment\n')
        assert _texts(finder.find(_at(buf, "tr("))) == ["//: comment"]

    def test_trailing_comment_belongs_to_the_last_call(self) -> None:
        finder, buf = _finder('tr("a"); tr("b"); //: for b\n')
        assert finder.find(_at(buf, "tr(")) == []
        assert _texts(finder.find(_at(buf, "tr(", 1))) == ["//: for b"]

    def test_trailing_ignored_when_block_precedes(self) -> None:
        finder, buf = _finder('//: above\ntr("a"); //: beside\n')
        assert _texts(finder.find(_at(buf, "tr("))) == ["//: above"]

    def test_trailing_owner_depends_on_preceding_block(self) -> None:
        finder, buf = _finder('tr("a"); //: c\ntr("b");\n')
        assert _texts(finder.find(_at(buf, "tr("))) == ["//: c"]
        assert finder.find(_at(buf, "tr(", 1)) == []

        finder, buf = _finder('//: doc a\ntr("a"); //: c\ntr("b");\n')
        assert _texts(finder.find(_at(buf, "tr("))) == ["//: doc a"]
        assert _texts(finder.find(_at(buf, "tr(", 1))) == ["//: c"]

    def test_trailing_disabled(self) -> None:
        finder, buf = _finder('tr("test"); //: comment\n', trailing=False)
        assert finder.find(_at(buf, "tr(")) == []


# ---------------------------------------------------------------------------
# End-to-end attribution scenarios
# ---------------------------------------------------------------------------


class TestScenarios:
    def test_trailing_extra_comment(self) -> None:
        finder, buf = _finder("foo(); //: Explains foo\n")
        fields = parse_comments(c.text for c in finder.find(_at(buf, "foo(")))
        assert fields.extra_comment == "Explains foo"

    def test_block_comment_continuation(self) -> None:
        finder, buf = _finder("/*: first part\n   second part */\nbar();\n")
        fields = parse_comments(c.text for c in finder.find(_at(buf, "bar(")))
        assert fields.extra_comment == "first part second part"

    def test_comment_after_call_belongs_to_next_call(self) -> None:
        finder, buf = _finder("baz(); // unrelated\n//: real comment\nqux();")
        baz = parse_comments(c.text for c in finder.find(_at(buf, "baz(")))
        qux = parse_comments(c.text for c in finder.find(_at(buf, "qux(")))
        assert baz.extra_comment == ""
        assert qux.extra_comment == "real comment"

    def test_magic_metadata_last_wins(self) -> None:
        finder, buf = _finder("//~ key1 value one\n//~ key1 value two\nfn();")
        fields = parse_comments(c.text for c in finder.find(_at(buf, "fn(")))
        assert fields.magic_metadata["key1"] == "value two"
