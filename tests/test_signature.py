"""Tests for annotext.signature - the documentation signature mini-parser."""

import pytest

from annotext.errors import SignatureParseError
from annotext.signature import Parameter, Tok, parse_signature, tokenize


class TestTokenize:
    def test_kinds(self) -> None:
        kinds = [t.kind for t in tokenize("const int Foo::bar(x = 1, ...)")]
        assert kinds == [
            Tok.CONST,
            Tok.INT,
            Tok.IDENT,
            Tok.SCOPE,
            Tok.IDENT,
            Tok.LPAREN,
            Tok.IDENT,
            Tok.EQUAL,
            Tok.NUMBER,
            Tok.COMMA,
            Tok.ELLIPSIS,
            Tok.RPAREN,
            Tok.EOI,
        ]

    def test_string_token(self) -> None:
        tokens = list(tokenize('f(s = "a, (b")'))
        strings = [t.lexeme for t in tokens if t.kind is Tok.STRING]
        assert strings == ['"a, (b"']

    def test_empty_input(self) -> None:
        assert [t.kind for t in tokenize("")] == [Tok.EOI]


class TestParseSignature:
    def test_nested_default_value(self) -> None:
        sig = parse_signature("void foo(int a = (1,2), QString b)")
        assert sig.name == "foo"
        assert sig.return_type == "void"
        assert sig.parameters == [
            Parameter(type="int", name="a", default="(1,2)"),
            Parameter(type="QString", name="b", default=""),
        ]

    def test_qualified_name_without_return_type(self) -> None:
        sig = parse_signature("Item::grabToImage(callback, size targetSize = undefined)")
        assert sig.return_type == ""
        assert sig.qualifiers == ["Item"]
        assert sig.qualified_name == "Item::grabToImage"
        assert sig.parameters == [
            Parameter(type="", name="callback"),
            Parameter(type="size", name="targetSize", default="undefined"),
        ]

    def test_qualified_name_with_return_type(self) -> None:
        sig = parse_signature("bool QtQuick::Item::contains(point p)")
        assert sig.return_type == "bool"
        assert sig.qualifiers == ["QtQuick", "Item"]
        assert sig.name == "contains"

    def test_multi_word_builtin_and_reference(self) -> None:
        sig = parse_signature("unsigned long long count(const QString &s)")
        assert sig.return_type == "unsigned long long"
        assert sig.parameters == [Parameter(type="const QString &", name="s")]

    def test_pointer_return_type(self) -> None:
        sig = parse_signature("QObject *find(string name)")
        assert sig.return_type == "QObject *"
        assert sig.name == "find"

    def test_array_parameter(self) -> None:
        sig = parse_signature("void fill(int values[4])")
        assert sig.parameters == [Parameter(type="int[4]", name="values")]

    def test_no_parameters_and_trailing_const(self) -> None:
        sig = parse_signature("int size() const")
        assert sig.name == "size"
        assert sig.parameters == []

    def test_string_default(self) -> None:
        sig = parse_signature('void log(string msg = "a, b")')
        assert sig.parameters[0].default == '"a, b"'

    def test_surrounding_whitespace(self) -> None:
        assert parse_signature("   clear()  ").name == "clear"

    @pytest.mark.parametrize("sep", ["\t", "\n", "  \t"])
    def test_return_type_after_any_whitespace(self, sep: str) -> None:
        sig = parse_signature(f"void{sep}foo(int a)")
        assert sig.return_type == "void"
        assert sig.name == "foo"
        assert sig.parameters == [Parameter(type="int", name="a")]

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "   ",
            "foo",
            "void foo(int a",
            "void foo() extra",
            "void (int)",
            "void foo(int a,)",
        ],
    )
    def test_malformed(self, text: str) -> None:
        with pytest.raises(SignatureParseError):
            parse_signature(text)

    def test_error_is_a_value_error(self) -> None:
        with pytest.raises(ValueError, match="cannot parse signature"):
            parse_signature("void foo(")
