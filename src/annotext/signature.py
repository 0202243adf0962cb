"""signature.py - Parse the short signatures written in documentation topics.

Documentation for declarative methods and signals supplies a signature as
plain text, e.g.::

    \\qmlmethod void Item::grabToImage(callback, size targetSize = undefined)

:func:`parse_signature` splits such a fragment into return type, qualifiers,
name and parameters.  It is a small recursive-descent parser over a
tokenizer that only knows identifiers, builtin type words and punctuation;
it is not a general C++ or QML parser.  Default values are kept verbatim.

Anything it cannot make sense of raises :class:`SignatureParseError`.
"""

from __future__ import annotations

import enum
from collections.abc import Iterator
from dataclasses import dataclass, field

from annotext.errors import SignatureParseError


class Tok(enum.Enum):
    IDENT = "ident"
    VOID = "void"
    INT = "int"
    CHAR = "char"
    DOUBLE = "double"
    FLOAT = "float"
    BOOL = "bool"
    SIGNED = "signed"
    UNSIGNED = "unsigned"
    SHORT = "short"
    LONG = "long"
    INT64 = "__int64"
    CONST = "const"
    SCOPE = "::"
    LPAREN = "("
    RPAREN = ")"
    LBRACKET = "["
    RBRACKET = "]"
    COMMA = ","
    EQUAL = "="
    AMP = "&"
    STAR = "*"
    CARET = "^"
    ELLIPSIS = "..."
    NUMBER = "number"
    STRING = "string"
    OTHER = "other"
    EOI = "eoi"


_KEYWORDS = {
    t.value: t
    for t in (
        Tok.VOID,
        Tok.INT,
        Tok.CHAR,
        Tok.DOUBLE,
        Tok.FLOAT,
        Tok.BOOL,
        Tok.SIGNED,
        Tok.UNSIGNED,
        Tok.SHORT,
        Tok.LONG,
        Tok.INT64,
        Tok.CONST,
    )
}

_PUNCT = {
    t.value: t
    for t in (
        Tok.LPAREN,
        Tok.RPAREN,
        Tok.LBRACKET,
        Tok.RBRACKET,
        Tok.COMMA,
        Tok.EQUAL,
        Tok.AMP,
        Tok.STAR,
        Tok.CARET,
    )
}

_SIZE_WORDS = (Tok.SIGNED, Tok.UNSIGNED, Tok.SHORT, Tok.LONG, Tok.INT64)
_BASE_WORDS = (Tok.VOID, Tok.INT, Tok.CHAR, Tok.DOUBLE, Tok.FLOAT, Tok.BOOL, Tok.ELLIPSIS)
_SIZED_BASE_WORDS = (Tok.INT, Tok.CHAR, Tok.DOUBLE)
_DECORATORS = (Tok.AMP, Tok.STAR, Tok.CONST, Tok.CARET)


@dataclass(frozen=True)
class Token:
    kind: Tok
    lexeme: str
    start: int
    end: int


def tokenize(text: str) -> Iterator[Token]:
    """Yield tokens of *text*, ending with a single EOI token."""
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch.isspace():
            i += 1
            continue
        start = i
        if ch.isalpha() or ch == "_":
            while i < n and (text[i].isalnum() or text[i] == "_"):
                i += 1
            word = text[start:i]
            yield Token(_KEYWORDS.get(word, Tok.IDENT), word, start, i)
        elif ch.isdigit():
            while i < n and (text[i].isalnum() or text[i] in "._'"):
                i += 1
            yield Token(Tok.NUMBER, text[start:i], start, i)
        elif ch in "\"'":
            i += 1
            while i < n and text[i] != ch:
                i += 2 if text[i] == "\\" else 1
            i = min(i + 1, n)
            yield Token(Tok.STRING, text[start:i], start, i)
        elif text.startswith("::", i):
            i += 2
            yield Token(Tok.SCOPE, "::", start, i)
        elif text.startswith("...", i):
            i += 3
            yield Token(Tok.ELLIPSIS, "...", start, i)
        else:
            i += 1
            yield Token(_PUNCT.get(ch, Tok.OTHER), ch, start, i)
    yield Token(Tok.EOI, "", n, n)


@dataclass(frozen=True)
class Parameter:
    type: str
    name: str
    default: str = ""


@dataclass
class Signature:
    name: str
    return_type: str = ""
    qualifiers: list[str] = field(default_factory=list)
    parameters: list[Parameter] = field(default_factory=list)

    @property
    def qualified_name(self) -> str:
        return "::".join([*self.qualifiers, self.name])


def _join_type(parts: list[str]) -> str:
    out = ""
    for part in parts:
        if out and (out[-1].isalnum() or out[-1] == "_"):
            if part[0].isalnum() or part[0] == "_" or part in ("&", "*", "^"):
                out += " "
        out += part
    return out


class _Parser:
    def __init__(self, text: str) -> None:
        self.text = text
        self.tokens = list(tokenize(text))
        self.pos = 0

    @property
    def tok(self) -> Token:
        return self.tokens[self.pos]

    def advance(self) -> Token:
        token = self.tokens[self.pos]
        if token.kind is not Tok.EOI:
            self.pos += 1
        return token

    def match(self, *kinds: Tok) -> Token | None:
        """Consume and return the current token if it is one of *kinds*."""
        if self.tok.kind in kinds:
            return self.advance()
        return None

    def fail(self, reason: str) -> SignatureParseError:
        return SignatureParseError(self.text, f"{reason} at offset {self.tok.start}")

    def take(self, parts: list[str], *kinds: Tok) -> bool:
        """Like :meth:`match`, appending the consumed lexeme to *parts*."""
        token = self.match(*kinds)
        if token is None:
            return False
        parts.append(token.lexeme)
        return True

    def type_and_name(self, want_name: bool) -> tuple[str, str]:
        parts: list[str] = []
        while self.take(parts, Tok.CONST):
            pass

        # Alpha::Beta::...::Omega, each segment possibly a multi-word builtin.
        while True:
            virgin = True
            if self.tok.kind is not Tok.IDENT:
                while self.take(parts, *_SIZE_WORDS):
                    virgin = False
            if virgin:
                if not self.take(parts, Tok.IDENT, *_BASE_WORDS):
                    found = self.tok.lexeme or "end of input"
                    raise self.fail(f"expected a type, found {found!r}")
            else:
                self.take(parts, *_SIZED_BASE_WORDS)

            if not self.take(parts, Tok.SCOPE):
                break

        while self.take(parts, *_DECORATORS):
            pass

        name = ""
        if want_name and self.tok.kind is Tok.IDENT:
            name = self.advance().lexeme

        if self.tok.kind is Tok.LBRACKET:
            depth = 0
            while self.tok.kind is not Tok.EOI:
                token = self.advance()
                parts.append(token.lexeme)
                if token.kind is Tok.LBRACKET:
                    depth += 1
                elif token.kind is Tok.RBRACKET:
                    depth -= 1
                    if depth == 0 and self.tok.kind is not Tok.LBRACKET:
                        break
        return _join_type(parts), name

    def parameter(self) -> Parameter:
        type_text, name = self.type_and_name(want_name=True)
        if not name:
            # A lone word is a parameter name without a type.
            name, type_text = type_text, ""

        default = ""
        if self.match(Tok.EQUAL):
            depth = 0
            start = end = self.tok.start
            while self.tok.kind is not Tok.EOI:
                kind = self.tok.kind
                if kind is Tok.COMMA and depth == 0:
                    break
                if kind is Tok.RPAREN:
                    if depth == 0:
                        break
                    depth -= 1
                elif kind is Tok.LPAREN:
                    depth += 1
                end = self.advance().end
            default = self.text[start:end].strip()
        return Parameter(type=type_text, name=name, default=default)

    def function_decl(self) -> Signature:
        return_type = ""
        first_blank = next((i for i, ch in enumerate(self.text) if ch.isspace()), -1)
        left_paren = self.text.find("(")
        if first_blank > 0 and left_paren - first_blank > 1:
            return_type, _ = self.type_and_name(want_name=False)

        names: list[str] = []
        func_name = ""
        while self.tok.kind is Tok.IDENT:
            names.append(self.advance().lexeme)
            if not self.match(Tok.SCOPE):
                func_name = names.pop()
                break
        if not func_name:
            raise self.fail("expected a function name")
        if not self.match(Tok.LPAREN):
            raise self.fail("expected '('")

        parameters: list[Parameter] = []
        if self.tok.kind is not Tok.RPAREN:
            parameters.append(self.parameter())
            while self.match(Tok.COMMA):
                parameters.append(self.parameter())
        if not self.match(Tok.RPAREN):
            raise self.fail("expected ')'")
        self.match(Tok.CONST)
        if self.tok.kind is not Tok.EOI:
            raise self.fail(f"unexpected {self.tok.lexeme!r} after parameter list")

        return Signature(
            name=func_name,
            return_type=return_type,
            qualifiers=names,
            parameters=parameters,
        )


def parse_signature(text: str) -> Signature:
    """Parse ``[returnType] [qualifier::]*name(params)``.

    Raises:
        SignatureParseError: the text is not a well-formed signature.
    """
    text = text.strip()
    if not text:
        raise SignatureParseError(text, "empty signature")
    return _Parser(text).function_decl()
