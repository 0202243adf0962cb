"""Tests for annotext.record - assembling AnnotationRecords from sites and tags."""

import pytest

from annotext.location import SourceLocation
from annotext.markers import MarkerTable
from annotext.record import (
    AnnotationRecord,
    CandidateSite,
    SiteKind,
    build_record,
    resolve_context,
)
from annotext.tagparser import TagFields

MARKERS = MarkerTable()


def _site(
    name: str, *args: str, scope: str = "", qualifier: str = "", line: int = 3, kind=SiteKind.CALL_SITE
):
    return CandidateSite(
        location=SourceLocation("w.cpp", 40, line=line, column=4),
        kind=kind,
        name_hint=name,
        raw_arguments=args,
        scope_context=scope,
        explicit_context=qualifier,
    )


class TestTrLayout:
    def test_basic(self) -> None:
        rec = build_record(_site("tr", '"Hello"', scope="Widget"), TagFields(), MARKERS)
        assert rec is not None
        assert rec.context == "Widget"
        assert rec.source_text == "Hello"
        assert (rec.location_file, rec.location_line, rec.location_column) == ("w.cpp", 3, 4)
        assert rec.plural is False

    def test_comment_and_plural_arguments(self) -> None:
        site = _site("tr", '"%n files"', '"disambig"', "count", scope="Widget")
        rec = build_record(site, TagFields(), MARKERS)
        assert rec.comment == "disambig"
        assert rec.plural_arg_text == "count"
        assert rec.plural is True

    def test_tags_are_copied(self) -> None:
        tags = TagFields(extra_comment="note", id_metadata="msg.id", magic_metadata={"k": "v"})
        rec = build_record(_site("tr", '"x"', scope="W"), tags, MARKERS)
        assert rec.extra_comment == "note"
        assert rec.id == "msg.id"
        assert rec.id_metadata == "msg.id"
        assert rec.magic_metadata == {"k": "v"}

    def test_source_when_id_is_ignored(self) -> None:
        tags = TagFields(source_text_when_id="ignored")
        rec = build_record(_site("tr", '"x"', scope="W"), tags, MARKERS)
        assert rec.source_text == "x"
        assert rec.source_text_when_id == ""

    def test_needs_context(self) -> None:
        assert build_record(_site("tr", '"x"'), TagFields(), MARKERS) is None

    def test_context_optional(self) -> None:
        rec = build_record(_site("tr", '"x"'), TagFields(), MARKERS, require_context=False)
        assert rec is not None
        assert rec.context == ""

    def test_unquoted_argument(self) -> None:
        assert build_record(_site("tr", "variable", scope="W"), TagFields(), MARKERS) is None

    def test_macro_accepts_unquoted_argument(self) -> None:
        rec = build_record(_site("QT_TR_NOOP", "TEXT", scope="W"), TagFields(), MARKERS)
        assert rec is not None
        assert rec.source_text == "TEXT"

    def test_forced_plural(self) -> None:
        rec = build_record(_site("QT_TR_N_NOOP", '"%n items"', scope="W"), TagFields(), MARKERS)
        assert rec.plural is True

    def test_no_arguments(self) -> None:
        assert build_record(_site("tr", scope="W"), TagFields(), MARKERS) is None

    def test_call_qualifier_beats_scope(self) -> None:
        site = _site("Dialog::tr", '"Hello"', scope="Other", qualifier="Dialog")
        rec = build_record(site, TagFields(), MARKERS)
        assert rec.context == "Dialog"

    def test_call_qualifier_outside_class(self) -> None:
        site = _site("QObject::tr", '"Hello"', qualifier="QObject")
        rec = build_record(site, TagFields(), MARKERS)
        assert rec is not None
        assert rec.context == "QObject"

    @pytest.mark.parametrize("token", ["nullptr", "0", "disambiguation", "NULL"])
    def test_non_literal_comment_is_empty(self, token: str) -> None:
        site = _site("tr", '"%n files"', token, "n", scope="W")
        rec = build_record(site, TagFields(), MARKERS)
        assert rec.comment == ""
        assert rec.plural_arg_text == "n"
        assert rec.plural is True


class TestTranslateLayout:
    def test_explicit_context_wins(self) -> None:
        site = _site("QCoreApplication::translate", '"Dialog"', '"Open"', scope="Widget")
        rec = build_record(site, TagFields(), MARKERS)
        assert rec.context == "Dialog"
        assert rec.source_text == "Open"

    def test_falls_back_to_scope(self) -> None:
        site = _site("QT_TRANSLATE_NOOP", "", '"Open"', scope="Widget")
        rec = build_record(site, TagFields(), MARKERS)
        assert rec.context == "Widget"

    def test_non_literal_comment_is_empty(self) -> None:
        site = _site("translate", '"Ctx"', '"Open"', "nullptr")
        rec = build_record(site, TagFields(), MARKERS)
        assert rec.comment == ""

    def test_too_few_arguments(self) -> None:
        assert build_record(_site("translate", '"Ctx"'), TagFields(), MARKERS) is None

    def test_plural_argument(self) -> None:
        site = _site("translate", '"Ctx"', '"%n"', '"c"', "n")
        rec = build_record(site, TagFields(), MARKERS)
        assert rec.comment == "c"
        assert rec.plural is True


class TestTrIdLayout:
    def test_source_from_percent_tag(self) -> None:
        tags = TagFields(source_text_when_id="Hello", id_metadata="ignored")
        rec = build_record(_site("qtTrId", '"greeting.id"'), tags, MARKERS)
        assert rec.id == "greeting.id"
        assert rec.source_text == "Hello"
        assert rec.source_text_when_id == "Hello"
        assert rec.context == ""

    def test_forced_plural(self) -> None:
        rec = build_record(_site("QT_TRID_N_NOOP", '"files.id"'), TagFields(), MARKERS)
        assert rec.plural is True

    def test_plural_argument(self) -> None:
        rec = build_record(_site("qtTrId", '"files.id"', "n"), TagFields(), MARKERS)
        assert rec.plural_arg_text == "n"
        assert rec.plural is True


class TestOtherSites:
    def test_declare_tr_functions_never_yields(self) -> None:
        site = _site("Q_DECLARE_TR_FUNCTIONS", "Widget", scope="Widget")
        assert build_record(site, TagFields(extra_comment="x"), MARKERS) is None

    def test_unknown_function(self) -> None:
        assert build_record(_site("setText", '"x"', scope="W"), TagFields(), MARKERS) is None

    def test_alias(self) -> None:
        rec = build_record(_site("myTr", '"x"', scope="W"), TagFields(), MarkerTable({"myTr": "tr"}))
        assert rec is not None

    def test_declaration(self) -> None:
        site = _site("okButton", kind=SiteKind.DECLARATION, scope="Dialog")
        rec = build_record(site, TagFields(extra_comment="the OK button"), MARKERS)
        assert rec.context == "Dialog"
        assert rec.source_text == "okButton"
        assert rec.extra_comment == "the OK button"

    def test_invalid_location_dropped(self) -> None:
        site = _site("tr", '"x"', scope="W", line=-1)
        assert build_record(site, TagFields(), MARKERS) is None


class TestAnnotationRecord:
    def test_dict_access(self) -> None:
        rec = AnnotationRecord(context="C", source_text="S")
        assert rec["context"] == "C"
        assert "source_text" in rec
        assert rec.get("missing", "dflt") == "dflt"
        with pytest.raises(KeyError):
            rec["site"]

    def test_to_dict_minimal(self) -> None:
        rec = AnnotationRecord(context="C", source_text="S", location_file="a.cpp", location_line=1, location_column=0)
        assert rec.to_dict() == {
            "context": "C",
            "source": "S",
            "comment": "",
            "extra_comment": "",
            "id": "",
            "file": "a.cpp",
            "line": 1,
            "column": 0,
            "plural": False,
        }

    def test_to_dict_optional_keys(self) -> None:
        rec = build_record(
            _site("tr", '"x"', "", "n", scope="W"),
            TagFields(id_metadata="i", magic_metadata={"k": "v"}),
            MARKERS,
        )
        d = rec.to_dict()
        assert d["extras"] == {"k": "v"}
        assert d["id_metadata"] == "i"
        assert d["plural_arg"] == "n"
        assert d["function"] == "tr"

    def test_is_valid(self) -> None:
        assert not AnnotationRecord().is_valid()
        assert AnnotationRecord(location_file="a", location_line=0, location_column=0).is_valid()

    def test_resolve_context(self) -> None:
        assert resolve_context("Explicit", "Scope") == "Explicit"
        assert resolve_context("", "Scope") == "Scope"
