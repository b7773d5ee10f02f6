"""Type definitions for epicstyle."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class TokenKind(str, Enum):
    """Lexical class of a token."""

    IDENTIFIER = "identifier"
    KEYWORD = "keyword"
    NUMBER = "number"
    PUNCTUATION = "punctuation"
    PREPROCESSOR = "preprocessor"
    LINE_COMMENT = "line-comment"
    BLOCK_COMMENT = "block-comment"
    STRING = "string-literal"
    CHAR = "char-literal"
    WHITESPACE = "whitespace"
    NEWLINE = "newline"


TRIVIA_KINDS = frozenset({TokenKind.WHITESPACE, TokenKind.NEWLINE})
COMMENT_KINDS = frozenset({TokenKind.LINE_COMMENT, TokenKind.BLOCK_COMMENT})


class Severity(str, Enum):
    """Violation severity. Major violations fail a run."""

    MAJOR = "major"
    MINOR = "minor"


class Scope(str, Enum):
    """Where a declaration lives."""

    FILE = "file"
    FUNCTION = "function"


@dataclass(frozen=True)
class Token:
    """Single lexeme with its source location."""

    kind: TokenKind
    text: str
    file: str
    line: int
    column: int

    @property
    def end_line(self) -> int:
        """Line on which the lexeme ends."""
        return self.line + self.text.count("\n")


@dataclass(frozen=True)
class Anomaly:
    """Lexical or structural defect found while scanning or indexing."""

    kind: str
    line: int
    column: int
    message: str


@dataclass(frozen=True)
class SourceFile:
    """A scanned file: raw text, physical lines and tokens."""

    path: str
    text: str
    lines: tuple[str, ...]
    tokens: tuple[Token, ...]
    anomalies: tuple[Anomaly, ...] = ()

    @property
    def line_count(self) -> int:
        return len(self.lines)


@dataclass(frozen=True)
class MacroDef:
    """A #define directive."""

    name: str
    line: int
    replacement: str
    is_function_like: bool = False


@dataclass(frozen=True)
class Declaration:
    """A declaration statement, possibly naming several identifiers."""

    name: str
    type_text: str
    line: int
    scope: Scope
    names: tuple[str, ...] = ()
    is_const: bool = False
    is_typedef: bool = False
    is_extern: bool = False
    is_late: bool = False
    body_offset: int | None = None

    @property
    def is_global(self) -> bool:
        return self.scope is Scope.FILE

    @property
    def has_multiple_identifiers(self) -> bool:
        return len(self.names) > 1


@dataclass(frozen=True)
class CommentBlock:
    """A comment token and the function it documents, if any."""

    style: str
    start_line: int
    end_line: int
    target: str | None = None


@dataclass(frozen=True)
class Parameter:
    """One entry of a function parameter list."""

    text: str


@dataclass(frozen=True)
class FunctionDef:
    """A function definition recovered from the token stream."""

    name: str
    line: int
    parameters: tuple[Parameter, ...]
    open_brace_line: int
    close_brace_line: int
    declarations: tuple[Declaration, ...] = ()
    first_statement_line: int | None = None
    loop_declarations: tuple[Declaration, ...] = ()
    doc_comment: CommentBlock | None = None
    is_closed: bool = True

    @property
    def param_count(self) -> int:
        return len(self.parameters)

    @property
    def body_line_count(self) -> int:
        """Lines strictly between the opening and closing braces."""
        return max(0, self.close_brace_line - self.open_brace_line - 1)

    @property
    def late_declarations(self) -> tuple[Declaration, ...]:
        return tuple(decl for decl in self.declarations if decl.is_late)


@dataclass(frozen=True)
class StructuralModel:
    """Read-only structural view of one file."""

    macros: tuple[MacroDef, ...] = ()
    declarations: tuple[Declaration, ...] = ()
    functions: tuple[FunctionDef, ...] = ()
    comments: tuple[CommentBlock, ...] = ()
    anomalies: tuple[Anomaly, ...] = ()


@dataclass(frozen=True)
class Violation:
    """Single reported non-conformance.

    Two violations are duplicates when rule id, file and line match.
    """

    rule_id: str
    severity: Severity
    path: str
    line: int
    message: str

    @property
    def key(self) -> tuple[str, str, int]:
        return (self.rule_id, self.path, self.line)

    @property
    def sort_key(self) -> tuple[str, int, str, str]:
        return (self.path, self.line, self.rule_id, self.message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "rule": self.rule_id,
            "severity": self.severity.value,
            "file": self.path,
            "line": self.line,
            "message": self.message,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Violation":
        return cls(
            rule_id=data["rule"],
            severity=Severity(data["severity"]),
            path=data["file"],
            line=data["line"],
            message=data["message"],
        )


@dataclass(frozen=True)
class FileError:
    """A file that could not be analyzed."""

    path: str
    message: str


@dataclass(frozen=True)
class FileAnalysis:
    """Result of analyzing one file."""

    path: str
    line_count: int = 0
    violations: tuple[Violation, ...] = ()
    error: str | None = None


@dataclass(frozen=True)
class FileSummary:
    """Per-file counts and score."""

    path: str
    line_count: int
    major: int
    minor: int
    score: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "file": self.path,
            "line_count": self.line_count,
            "major": self.major,
            "minor": self.minor,
            "score": self.score,
        }


@dataclass(frozen=True)
class Report:
    """Merged, sorted result of a run."""

    violations: tuple[Violation, ...] = ()
    errors: tuple[FileError, ...] = ()
    files: tuple[FileSummary, ...] = field(default_factory=tuple)

    @property
    def major_count(self) -> int:
        return sum(1 for v in self.violations if v.severity is Severity.MAJOR)

    @property
    def minor_count(self) -> int:
        return sum(1 for v in self.violations if v.severity is Severity.MINOR)

    @property
    def total(self) -> int:
        return len(self.violations)

    @property
    def score(self) -> float:
        """Average file score, 100 when nothing was analyzed."""
        if not self.files:
            return 100.0
        return round(sum(f.score for f in self.files) / len(self.files), 1)
