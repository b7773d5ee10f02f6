"""Finite-state scanner turning C source text into classified tokens.

The scanner never fails: malformed input produces anomalies, and every
character of the input ends up in exactly one token.
"""
import re
from enum import Enum
from typing import Callable

from epicstyle.types import Anomaly, SourceFile, Token, TokenKind


class ScanState(Enum):
    """Scanner states."""

    CODE = "code"
    LINE_COMMENT = "line-comment"
    BLOCK_COMMENT = "block-comment"
    STRING = "string"
    CHAR_LITERAL = "char-literal"
    PREPROCESSOR = "preprocessor"


# Lexemes that leave CODE, longest first.
OPENERS: tuple[tuple[str, ScanState], ...] = (
    ("//", ScanState.LINE_COMMENT),
    ("/*", ScanState.BLOCK_COMMENT),
    ('"', ScanState.STRING),
    ("'", ScanState.CHAR_LITERAL),
)

STATE_TOKEN_KINDS: dict[ScanState, TokenKind] = {
    ScanState.LINE_COMMENT: TokenKind.LINE_COMMENT,
    ScanState.BLOCK_COMMENT: TokenKind.BLOCK_COMMENT,
    ScanState.STRING: TokenKind.STRING,
    ScanState.CHAR_LITERAL: TokenKind.CHAR,
    ScanState.PREPROCESSOR: TokenKind.PREPROCESSOR,
}

LITERAL_QUOTES: dict[ScanState, str] = {
    ScanState.STRING: '"',
    ScanState.CHAR_LITERAL: "'",
}

UNTERMINATED_KINDS: dict[ScanState, str] = {
    ScanState.BLOCK_COMMENT: "unterminated-comment",
    ScanState.STRING: "unterminated-string",
    ScanState.CHAR_LITERAL: "unterminated-char",
}

C_KEYWORDS = frozenset(
    """
    auto break case char const continue default do double else enum extern
    float for goto if inline int long register restrict return short signed
    sizeof static struct switch typedef union unsigned void volatile while
    _Alignas _Alignof _Atomic _Bool _Complex _Generic _Imaginary _Noreturn
    _Static_assert _Thread_local
    """.split()
)

_WHITESPACE_RE = re.compile(r"[ \t\r\f\v]+")
_IDENTIFIER_RE = re.compile(r"[A-Za-z_]\w*")
_NUMBER_RE = re.compile(r"\.?\d(?:[eEpP][+-]|[\w.])*")
_INCLUDE_RE = re.compile(r"#[ \t]*(?:include|include_next|import)\b")


class Scanner:
    """Single-pass scanner over one file's text."""

    def __init__(self, text: str, path: str = "<string>") -> None:
        self._text = text
        self._path = path
        self._pos = 0
        self._line = 1
        self._column = 1
        self._at_line_start = True
        self._resume_state = ScanState.CODE
        self.tokens: list[Token] = []
        self.anomalies: list[Anomaly] = []
        self._handlers: dict[ScanState, Callable[[ScanState], ScanState]] = {
            ScanState.CODE: self._scan_code,
            ScanState.LINE_COMMENT: self._scan_line_comment,
            ScanState.BLOCK_COMMENT: self._scan_block_comment,
            ScanState.STRING: self._scan_literal,
            ScanState.CHAR_LITERAL: self._scan_literal,
            ScanState.PREPROCESSOR: self._scan_directive,
        }

    def scan(self) -> tuple[list[Token], list[Anomaly]]:
        """Scan the whole text.

        Returns:
            Tuple of (tokens, anomalies)
        """
        state = ScanState.CODE
        while self._pos < len(self._text):
            state = self._handlers[state](state)
        return self.tokens, self.anomalies

    def _emit(self, kind: TokenKind, end: int) -> None:
        text = self._text[self._pos : end]
        self.tokens.append(Token(kind, text, self._path, self._line, self._column))

        newlines = text.count("\n")
        if newlines:
            self._line += newlines
            self._column = len(text) - text.rfind("\n")
        else:
            self._column += len(text)
        self._pos = end

        if kind is TokenKind.NEWLINE:
            self._at_line_start = True
        elif kind is not TokenKind.WHITESPACE:
            self._at_line_start = False

    def _report(self, state: ScanState, line: int, column: int) -> None:
        kind = UNTERMINATED_KINDS[state]
        what = kind.replace("unterminated-", "")
        self.anomalies.append(
            Anomaly(kind=kind, line=line, column=column, message=f"unterminated {what}")
        )

    def _scan_code(self, state: ScanState) -> ScanState:
        text, pos = self._text, self._pos
        ch = text[pos]

        if ch == "\n":
            self._emit(TokenKind.NEWLINE, pos + 1)
            return ScanState.CODE

        match = _WHITESPACE_RE.match(text, pos)
        if match:
            self._emit(TokenKind.WHITESPACE, match.end())
            return ScanState.CODE

        if ch == "#" and self._at_line_start:
            return ScanState.PREPROCESSOR

        for opener, next_state in OPENERS:
            if text.startswith(opener, pos):
                return next_state

        match = _IDENTIFIER_RE.match(text, pos)
        if match:
            kind = TokenKind.KEYWORD if match.group() in C_KEYWORDS else TokenKind.IDENTIFIER
            self._emit(kind, match.end())
            return ScanState.CODE

        match = _NUMBER_RE.match(text, pos)
        if match:
            self._emit(TokenKind.NUMBER, match.end())
            return ScanState.CODE

        self._emit(TokenKind.PUNCTUATION, pos + 1)
        return ScanState.CODE

    def _scan_line_comment(self, state: ScanState) -> ScanState:
        end = self._text.find("\n", self._pos)
        if end == -1:
            end = len(self._text)
        self._emit(TokenKind.LINE_COMMENT, end)
        return ScanState.CODE

    def _scan_block_comment(self, state: ScanState) -> ScanState:
        end = self._text.find("*/", self._pos + 2)
        if end == -1:
            self._report(state, self._line, self._column)
            end = len(self._text)
        else:
            end += 2
        self._emit(TokenKind.BLOCK_COMMENT, end)

        next_state, self._resume_state = self._resume_state, ScanState.CODE
        if next_state is ScanState.PREPROCESSOR and self._text.startswith("\n", self._pos):
            return ScanState.CODE
        return next_state

    def _scan_literal(self, state: ScanState) -> ScanState:
        text = self._text
        quote = LITERAL_QUOTES[state]
        i = self._pos + 1
        closed = False

        while i < len(text):
            ch = text[i]
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                i += 1
                closed = True
                break
            if ch == "\n":
                break
            i += 1

        if not closed:
            self._report(state, self._line, self._column)
        self._emit(STATE_TOKEN_KINDS[state], min(i, len(text)))
        return ScanState.CODE

    def _scan_directive(self, state: ScanState) -> ScanState:
        text = self._text
        i = self._pos
        next_state = ScanState.CODE
        include = _INCLUDE_RE.match(text, i)
        header_start = include.end() if include else None

        while i < len(text):
            ch = text[i]
            if ch == "\\":
                i += 3 if text.startswith("\r\n", i + 1) else 2
                continue
            if ch == "\n":
                break
            if ch in "\"'":
                i = _skip_quoted(text, i)
                continue
            if ch == "<" and header_start is not None and not text[header_start:i].strip():
                i = _skip_header_name(text, i)
                continue
            if text.startswith("//", i):
                next_state = ScanState.LINE_COMMENT
                break
            if text.startswith("/*", i):
                next_state = ScanState.BLOCK_COMMENT
                self._resume_state = ScanState.PREPROCESSOR
                break
            i += 1

        i = min(i, len(text))
        if i > self._pos:
            self._emit(TokenKind.PREPROCESSOR, i)
        return next_state


def _skip_quoted(text: str, start: int) -> int:
    """Skip a quoted run inside a directive, stopping at end of line."""
    quote = text[start]
    i = start + 1
    while i < len(text) and text[i] not in (quote, "\n"):
        i += 2 if text[i] == "\\" else 1
    if i < len(text) and text[i] == quote:
        return i + 1
    return i


def _skip_header_name(text: str, start: int) -> int:
    """Skip an `<...>` header name, stopping at end of line."""
    end = text.find(">", start)
    newline = text.find("\n", start)
    if end == -1 or (newline != -1 and newline < end):
        return start + 1
    return end + 1


def split_lines(text: str) -> tuple[str, ...]:
    """Split text into physical lines without line terminators.

    A final newline does not start an extra line.
    """
    if not text:
        return ()
    lines = text.split("\n")
    if text.endswith("\n"):
        lines.pop()
    return tuple(line[:-1] if line.endswith("\r") else line for line in lines)


def tokenize(text: str, path: str = "<string>") -> tuple[list[Token], list[Anomaly]]:
    """Tokenize C source text.

    Args:
        text: File content
        path: Path recorded on every token

    Returns:
        Tuple of (tokens, lexical anomalies)
    """
    return Scanner(text, path).scan()


def scan_source(text: str, path: str = "<string>") -> SourceFile:
    """Build a SourceFile from raw text."""
    tokens, anomalies = tokenize(text, path)
    return SourceFile(
        path=path,
        text=text,
        lines=split_lines(text),
        tokens=tuple(tokens),
        anomalies=tuple(anomalies),
    )
