"""Pull-based tokenizer for Turtle and Notation3 text.

The lexer reads its input through :class:`CharStream`, which pulls chunks
from a string, a byte string, a file-like object or any iterable of text
chunks and keeps only the unconsumed part of the input in memory.  The
parser asks for one token at a time and may peek at most one token ahead.
"""

from __future__ import annotations

import codecs
from dataclasses import dataclass
from typing import Iterable, Iterator, Union

from .errors import LexError
from .iri import (
    IRI_FORBIDDEN,
    PN_LOCAL_ESCAPABLE,
    is_digit,
    is_hex,
    is_pn_chars,
    is_pn_chars_base,
    is_pn_chars_u,
    is_space,
)

EOF = "EOF"
IRIREF = "IRIREF"
PNAME = "PNAME"
BLANK_NODE_LABEL = "BLANK_NODE_LABEL"
STRING = "STRING"
LANGTAG = "LANGTAG"
INTEGER = "INTEGER"
DECIMAL = "DECIMAL"
DOUBLE = "DOUBLE"
VARIABLE = "VARIABLE"
AT_KEYWORD = "AT_KEYWORD"
NAME = "NAME"
PUNCT = "PUNCT"

SINGLE_PUNCTUATION = ".;,[](){}!"

ECHAR_MAP = {
    "t": "\t",
    "b": "\b",
    "n": "\n",
    "r": "\r",
    "f": "\f",
    '"': '"',
    "'": "'",
    "\\": "\\",
}

Source = Union[str, bytes, Iterable[str], Iterable[bytes]]

DEFAULT_CHUNK_SIZE = 1 << 16


@dataclass(frozen=True)
class Token:
    """One lexical token with its source location."""
    kind: str
    text: str
    value: object
    offset: int
    line: int
    column: int

    def describe(self) -> str:
        """Return a short human readable rendering for error messages."""
        if self.kind == EOF:
            return "end of input"
        text = self.text if len(self.text) <= 40 else self.text[:37] + "..."
        return f"{self.kind.lower()} {text!r}"


def _read_chunks(reader, chunk_size: int) -> Iterator:
    """Yield successive `read()` results until the reader is exhausted."""
    while True:
        chunk = reader.read(chunk_size)
        if not chunk:
            return
        yield chunk


def _iter_text_chunks(source: Source, chunk_size: int) -> Iterator[str]:
    """Yield text chunks from any supported source, decoding bytes as UTF-8."""
    if isinstance(source, str):
        yield source
        return
    if isinstance(source, (bytes, bytearray, memoryview)):
        chunks: Iterable = (bytes(source),)
    elif hasattr(source, "read"):
        chunks = _read_chunks(source, chunk_size)
    else:
        chunks = source

    decoder = None
    for chunk in chunks:
        if not chunk:
            continue
        if isinstance(chunk, str):
            yield chunk
            continue
        if decoder is None:
            decoder = codecs.getincrementaldecoder("utf-8-sig")()
        text = decoder.decode(bytes(chunk))
        if text:
            yield text
    if decoder is not None:
        tail = decoder.decode(b"", final=True)
        if tail:
            yield tail


class CharStream:
    """Stateful character scanner with line and column tracking."""

    def __init__(
        self,
        source: Source,
        source_name: str = "<string>",
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        """Initialize scanner state for the provided source."""
        self.source_name = source_name
        self._chunks = _iter_text_chunks(source, chunk_size)
        self._buf = ""
        self._i = 0
        self._exhausted = False
        self._capture: list[str] | None = None
        self.offset = 0
        self.line = 1
        self.col = 1

    def _fill(self, n: int) -> bool:
        """Make at least `n` unconsumed characters available if the input has them."""
        while len(self._buf) - self._i < n and not self._exhausted:
            try:
                chunk = next(self._chunks, None)
            except UnicodeDecodeError as exc:
                self._exhausted = True
                self.error(f"input is not valid UTF-8: {exc.reason}", "InvalidEncoding")
            if chunk is None:
                self._exhausted = True
                break
            if self._i:
                self._buf = self._buf[self._i :]
                self._i = 0
            self._buf += chunk
        return len(self._buf) - self._i >= n

    def eof(self) -> bool:
        """Return `True` when the scanner reached the end of input."""
        return not self._fill(1)

    def peek(self, offset: int = 0) -> str:
        """Return the character at the current position plus an optional offset."""
        if not self._fill(offset + 1):
            return ""
        return self._buf[self._i + offset]

    def startswith(self, token: str) -> bool:
        """Return `True` if the remaining input starts with `token`."""
        self._fill(len(token))
        return self._buf.startswith(token, self._i)

    def advance(self) -> str:
        """Consume and return one character while updating line/column counters."""
        ch = self.peek()
        if not ch:
            self.error("unexpected end of input", "UnexpectedCharacter")
        self._i += 1
        self.offset += 1
        if ch == "\n":
            self.line += 1
            self.col = 1
        else:
            self.col += 1
        if self._capture is not None:
            self._capture.append(ch)
        return ch

    def consume(self, token: str) -> bool:
        """Consume `token` if present and return whether it matched."""
        if not self.startswith(token):
            return False
        for _ in token:
            self.advance()
        return True

    def begin_capture(self) -> None:
        """Start recording consumed characters."""
        self._capture = []

    def end_capture(self) -> str:
        """Stop recording and return the characters consumed since `begin_capture`."""
        text = "".join(self._capture or ())
        self._capture = None
        return text

    def error(self, message: str, kind: str, line: int | None = None,
              column: int | None = None, offset: int | None = None) -> None:
        """Raise `LexError` at the current (or the given) position."""
        raise LexError(
            self.source_name,
            self.line if line is None else line,
            self.col if column is None else column,
            message,
            offset=self.offset if offset is None else offset,
            kind=kind,
        )


class Lexer:
    """Converts a character stream into Turtle/N3 tokens on demand."""

    def __init__(self, source: Source, source_name: str = "<string>"):
        """Initialize the lexer over `source`."""
        self.stream = CharStream(source, source_name)
        self._peeked: Token | None = None
        self._last_kind: str | None = None
        self._last_end = -1

    @property
    def source_name(self) -> str:
        return self.stream.source_name

    def peek(self) -> Token:
        """Return the next token without consuming it."""
        if self._peeked is None:
            self._peeked = self._scan()
        return self._peeked

    def next_token(self) -> Token:
        """Consume and return the next token."""
        token = self.peek()
        self._peeked = None
        return token

    def __iter__(self) -> Iterator[Token]:
        while True:
            token = self.next_token()
            yield token
            if token.kind == EOF:
                return

    def _skip_ws_comments(self) -> None:
        """Skip whitespace and `#` comments."""
        s = self.stream
        while True:
            ch = s.peek()
            if is_space(ch):
                s.advance()
                continue
            if ch == "#":
                while s.peek() not in ("", "\n", "\r"):
                    s.advance()
                continue
            return

    def _scan(self) -> Token:
        """Read the next token from the stream."""
        self._skip_ws_comments()
        s = self.stream
        start = (s.offset, s.line, s.col)
        adjacent = start[0] == self._last_end
        ch = s.peek()
        if not ch:
            return self._finish(EOF, "", None, start)

        s.begin_capture()
        try:
            kind, value = self._scan_kind(ch, adjacent)
        finally:
            text = s.end_capture()
        return self._finish(kind, text, value, start)

    def _finish(self, kind: str, text: str, value: object, start: tuple[int, int, int]) -> Token:
        token = Token(kind, text, value, start[0], start[1], start[2])
        self._last_kind = kind
        self._last_end = self.stream.offset
        return token

    def _scan_kind(self, ch: str, adjacent: bool) -> tuple[str, object]:
        """Dispatch on the first character of a token."""
        s = self.stream
        if ch == "<":
            if s.peek(1) == "=" and (is_space(s.peek(2)) or s.peek(2) in ("", "{")):
                s.advance()
                s.advance()
                return PUNCT, "<="
            return IRIREF, self._read_iriref()
        if ch in "\"'":
            return STRING, self._read_string(ch)
        if ch == "@":
            if adjacent and self._last_kind == STRING:
                return LANGTAG, self._read_langtag()
            return AT_KEYWORD, self._read_at_keyword()
        if ch == "_" and s.peek(1) == ":":
            return BLANK_NODE_LABEL, self._read_blank_node_label()
        if ch == "?":
            return VARIABLE, self._read_variable()
        if is_digit(ch) or (ch in "+-" and (is_digit(s.peek(1)) or (s.peek(1) == "." and is_digit(s.peek(2))))):
            return self._read_number()
        if ch == "." and is_digit(s.peek(1)):
            return self._read_number()
        if ch == "^":
            s.advance()
            if s.consume("^"):
                return PUNCT, "^^"
            return PUNCT, "^"
        if ch == "=":
            s.advance()
            if s.consume(">"):
                return PUNCT, "=>"
            return PUNCT, "="
        if ch in SINGLE_PUNCTUATION:
            s.advance()
            return PUNCT, ch
        if ch == ":" or is_pn_chars_base(ch):
            return self._read_name_or_pname()
        s.error(f"unexpected character {ch!r}", "UnexpectedCharacter")
        raise AssertionError("unreachable")

    def _read_uchar(self) -> str:
        """Decode a `\\uXXXX` or `\\UXXXXXXXX` escape; the backslash is next."""
        s = self.stream

        def read_hex(count: int) -> int:
            digits = []
            for _ in range(count):
                if not is_hex(s.peek()):
                    s.error("invalid numeric escape", "IllegalEscape")
                digits.append(s.advance())
            return int("".join(digits), 16)

        if s.consume("\\u"):
            codepoint = read_hex(4)
            if 0xD800 <= codepoint <= 0xDBFF:
                # A high surrogate must be completed by an escaped low surrogate.
                if not s.consume("\\u"):
                    s.error("high surrogate must be followed by low surrogate", "IllegalEscape")
                low = read_hex(4)
                if not 0xDC00 <= low <= 0xDFFF:
                    s.error("invalid low surrogate in pair", "IllegalEscape")
                return chr(0x10000 + ((codepoint - 0xD800) << 10) + (low - 0xDC00))
            if 0xDC00 <= codepoint <= 0xDFFF:
                s.error("lone low surrogate is not allowed", "IllegalEscape")
            return chr(codepoint)
        if s.consume("\\U"):
            codepoint = read_hex(8)
            if codepoint > 0x10FFFF or 0xD800 <= codepoint <= 0xDFFF:
                s.error("code point out of range", "IllegalEscape")
            return chr(codepoint)
        s.error("expected unicode escape", "IllegalEscape")
        raise AssertionError("unreachable")

    def _read_iriref(self) -> str:
        """Read `<...>` and return the unescaped, unresolved IRI reference."""
        s = self.stream
        line, col, offset = s.line, s.col, s.offset
        s.advance()
        chars: list[str] = []
        while True:
            ch = s.peek()
            if not ch:
                s.error("unterminated IRI", "UnterminatedIri", line, col, offset)
            if ch == ">":
                s.advance()
                return "".join(chars)
            if ch == "\\":
                if s.peek(1) not in ("u", "U"):
                    s.error("only \\u and \\U escapes are allowed in IRIs", "IllegalEscape")
                uch = self._read_uchar()
                if uch in IRI_FORBIDDEN or ord(uch) <= 0x20:
                    s.error("invalid escaped character in IRI", "IllegalIriCharacter")
                chars.append(uch)
                continue
            if ch in "\n\r":
                s.error("unterminated IRI", "UnterminatedIri", line, col, offset)
            if ch in IRI_FORBIDDEN or ord(ch) <= 0x20:
                s.error(f"invalid character {ch!r} in IRI", "IllegalIriCharacter")
            chars.append(s.advance())

    def _read_escape(self) -> str:
        """Decode ECHAR or UCHAR escapes inside a string literal."""
        s = self.stream
        nxt = s.peek(1)
        if nxt in ("u", "U"):
            return self._read_uchar()
        if nxt not in ECHAR_MAP:
            s.error("invalid escape sequence", "IllegalEscape")
        s.advance()
        s.advance()
        return ECHAR_MAP[nxt]

    def _read_string(self, quote: str) -> str:
        """Read a short or long quoted string and return its decoded value."""
        s = self.stream
        line, col, offset = s.line, s.col, s.offset
        delim = quote * 3
        long_form = s.startswith(delim)
        s.consume(delim if long_form else quote)
        out: list[str] = []
        while True:
            ch = s.peek()
            if not ch:
                s.error("unterminated string", "UnterminatedString", line, col, offset)
            if long_form:
                if s.consume(delim):
                    return "".join(out)
            elif ch == quote:
                s.advance()
                return "".join(out)
            elif ch in "\n\r":
                s.error("newline in short string literal", "UnterminatedString", line, col, offset)
            if ch == "\\":
                out.append(self._read_escape())
                continue
            out.append(s.advance())

    def _read_langtag(self) -> str:
        """Read `@lang-subtag` following a string."""
        s = self.stream
        s.advance()
        primary = []
        while s.peek().isascii() and s.peek().isalpha():
            primary.append(s.advance())
        if not primary:
            s.error("invalid language tag", "InvalidLanguageTag")
        parts = ["".join(primary)]
        while s.peek() == "-":
            s.advance()
            segment = []
            while s.peek().isascii() and s.peek().isalnum():
                segment.append(s.advance())
            if not segment:
                s.error("empty language subtag", "InvalidLanguageTag")
            parts.append("".join(segment))
        return "-".join(parts)

    def _read_at_keyword(self) -> str:
        """Read `@word` and return the word."""
        s = self.stream
        s.advance()
        letters = []
        while s.peek().isascii() and s.peek().isalpha():
            letters.append(s.advance())
        if not letters:
            s.error("expected keyword after '@'", "UnexpectedCharacter")
        return "".join(letters)

    def _dots_continue(self, start: int, accept) -> bool:
        """Return whether the run of dots at `start` is followed by an accepted char."""
        s = self.stream
        k = start
        while s.peek(k) == ".":
            k += 1
        nxt = s.peek(k)
        return nxt != "" and accept(nxt)

    def _read_blank_node_label(self) -> str:
        """Read `_:label` and return the label."""
        s = self.stream
        s.advance()
        s.advance()
        first = s.peek()
        if not (is_pn_chars_u(first) or is_digit(first)):
            s.error("invalid blank node label", "InvalidBlankNodeLabel")
        chars = [s.advance()]
        while True:
            ch = s.peek()
            if is_pn_chars(ch):
                chars.append(s.advance())
            elif ch == "." and self._dots_continue(0, is_pn_chars):
                while s.peek() == ".":
                    chars.append(s.advance())
            else:
                return "".join(chars)

    def _read_variable(self) -> str:
        """Read `?name` and return the name."""
        s = self.stream
        s.advance()
        first = s.peek()
        if not (is_pn_chars_u(first) or is_digit(first)):
            s.error("invalid variable name", "InvalidVariable")
        chars = [s.advance()]
        while True:
            ch = s.peek()
            if is_pn_chars(ch) and ch != "-":
                chars.append(s.advance())
            else:
                return "".join(chars)

    def _read_number(self) -> tuple[str, str]:
        """Read an integer, decimal or double literal and return (kind, lexical)."""
        s = self.stream
        chars: list[str] = []
        if s.peek() in "+-":
            chars.append(s.advance())

        def read_digits() -> int:
            count = 0
            while is_digit(s.peek()):
                chars.append(s.advance())
                count += 1
            return count

        def exponent_at(k: int) -> bool:
            if s.peek(k) not in ("e", "E"):
                return False
            if s.peek(k + 1) in ("+", "-"):
                k += 1
            return is_digit(s.peek(k + 1))

        kind = INTEGER
        int_digits = read_digits()
        if s.peek() == "." and is_digit(s.peek(1)):
            chars.append(s.advance())
            read_digits()
            kind = DECIMAL
        elif s.peek() == "." and int_digits and exponent_at(1):
            chars.append(s.advance())
            kind = DECIMAL
        if s.peek() in ("e", "E"):
            if not exponent_at(0):
                s.error("malformed exponent in numeric literal", "MalformedNumber")
            chars.append(s.advance())
            if s.peek() in "+-":
                chars.append(s.advance())
            read_digits()
            kind = DOUBLE
        nxt = s.peek()
        if nxt and (is_pn_chars_u(nxt) or nxt in "\\%:"):
            s.error(f"malformed numeric literal {''.join(chars) + nxt!r}", "MalformedNumber")
        return kind, "".join(chars)

    def _read_name_or_pname(self) -> tuple[str, object]:
        """Read a bare word or a prefixed name."""
        s = self.stream
        k = 0
        while is_pn_chars(s.peek(k)) or s.peek(k) == ".":
            k += 1
        run_has_colon = s.peek(k) == ":"
        if not run_has_colon:
            # Bare word: trailing dots belong to the statement terminator.
            while k > 0 and s.peek(k - 1) == ".":
                k -= 1
            return NAME, "".join(s.advance() for _ in range(k))
        prefix = "".join(s.advance() for _ in range(k))
        if prefix and (prefix.endswith(".") or not is_pn_chars_base(prefix[0])):
            s.error(f"invalid prefix name {prefix!r}", "InvalidPrefixedName")
        s.advance()
        return PNAME, (prefix, self._read_pn_local())

    def _read_pn_local(self) -> str:
        """Read PN_LOCAL text and return it with backslash escapes removed."""
        s = self.stream

        def continues(ch: str) -> bool:
            return ch == ":" or ch in "%\\" or is_pn_chars(ch)

        first = s.peek()
        if not (first in ":%\\" or is_digit(first) or is_pn_chars_u(first)):
            return ""
        parts: list[str] = []
        while True:
            ch = s.peek()
            if ch == "%":
                s.advance()
                a, b = s.peek(), s.peek(1)
                if not (is_hex(a) and is_hex(b)):
                    s.error("invalid percent escape", "InvalidPrefixedName")
                parts.append("%" + s.advance() + s.advance())
            elif ch == "\\":
                s.advance()
                esc = s.peek()
                if esc == "" or esc not in PN_LOCAL_ESCAPABLE:
                    s.error("invalid PN_LOCAL escape", "IllegalEscape")
                parts.append(s.advance())
            elif ch == ":" or (parts and is_pn_chars(ch)) or (not parts and (is_digit(ch) or is_pn_chars_u(ch))):
                parts.append(s.advance())
            elif ch == "." and parts and self._dots_continue(0, continues):
                while s.peek() == ".":
                    parts.append(s.advance())
            else:
                return "".join(parts)
