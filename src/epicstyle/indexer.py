"""Structural indexer: recovers macros, declarations and functions from tokens.

This is not a C parser. It tracks brace depth over the token stream and
classifies each statement by its shape, which is enough for the style rules.
Constructs it cannot classify are left out of the model.
"""
import re
from dataclasses import dataclass, field, replace

from epicstyle.logging_config import get_logger
from epicstyle.types import (
    COMMENT_KINDS,
    TRIVIA_KINDS,
    Anomaly,
    CommentBlock,
    Declaration,
    FunctionDef,
    MacroDef,
    Parameter,
    Scope,
    SourceFile,
    StructuralModel,
    Token,
    TokenKind,
)

logger = get_logger(__name__)

_DEFINE_RE = re.compile(r"#\s*define\s+([A-Za-z_]\w*)(\()?(.*)", re.DOTALL)

TYPE_KEYWORDS = frozenset(
    "void char short int long float double signed unsigned _Bool _Complex".split()
)
TAG_KEYWORDS = frozenset({"struct", "union", "enum"})
QUALIFIERS = frozenset(
    "const volatile restrict static extern register auto inline _Atomic _Thread_local".split()
)
STATEMENT_KEYWORDS = frozenset(
    "return if else for while do switch case default goto break continue sizeof".split()
)

ATTRIBUTE_KEYWORDS = frozenset({"__attribute__", "__attribute", "__declspec"})

BRACE_GROUP = "{}"


def _placeholder(token: Token) -> Token:
    """Stand-in for a skipped brace group inside a statement."""
    return Token(TokenKind.PUNCTUATION, BRACE_GROUP, token.file, token.line, token.column)


_NON_CODE_KINDS = TRIVIA_KINDS | COMMENT_KINDS | {TokenKind.PREPROCESSOR}


def _is_code(token: Token) -> bool:
    return token.kind not in _NON_CODE_KINDS


def _split_top_level(tokens: list[Token], separator: str) -> list[list[Token]]:
    """Split tokens at separators outside parentheses and brackets."""
    parts: list[list[Token]] = [[]]
    depth = 0
    for token in tokens:
        if token.text in "([":
            depth += 1
        elif token.text in ")]":
            depth = max(0, depth - 1)
        elif token.text == separator and depth == 0:
            parts.append([])
            continue
        parts[-1].append(token)
    return parts


def _cut_at_assignment(tokens: list[Token]) -> list[Token]:
    return _split_top_level(tokens, "=")[0]


def _strip_array_suffix(tokens: list[Token]) -> list[Token]:
    """Drop trailing `[...]` groups."""
    tokens = list(tokens)
    while tokens and tokens[-1].text == "]":
        depth = 0
        for index in range(len(tokens) - 1, -1, -1):
            if tokens[index].text == "]":
                depth += 1
            elif tokens[index].text == "[":
                depth -= 1
                if depth == 0:
                    tokens = tokens[:index]
                    break
        else:
            return []
    return tokens


def _declarator_name(tokens: list[Token]) -> tuple[list[Token], Token] | None:
    """Find the declared identifier of one declarator segment.

    Returns:
        Tuple of (tokens before the name, name token), or None
    """
    tokens = _strip_array_suffix(_cut_at_assignment(tokens))
    if not tokens:
        return None

    texts = [t.text for t in tokens]
    if "(" in texts:
        # Function pointer: type ( * name ) ( params )
        start = texts.index("(")
        if start + 2 < len(tokens) and texts[start + 1] == "*":
            inner = start + 1
            while inner < len(tokens) and texts[inner] == "*":
                inner += 1
            if inner < len(tokens) and tokens[inner].kind is TokenKind.IDENTIFIER:
                return tokens[:start] + [tokens[start + 1]], tokens[inner]
        return None

    name = tokens[-1]
    if name.kind is not TokenKind.IDENTIFIER:
        return None
    return tokens[:-1], name


def _is_type_token(token: Token) -> bool:
    if token.text in ("*", BRACE_GROUP):
        return True
    if token.kind is TokenKind.IDENTIFIER:
        return True
    return token.kind is TokenKind.KEYWORD and (
        token.text in TYPE_KEYWORDS or token.text in TAG_KEYWORDS or token.text in QUALIFIERS
    )


def _object_is_const(prefix: list[Token]) -> bool:
    """Whether the declared object itself is const-qualified."""
    texts = [t.text for t in prefix]
    if "*" in texts:
        last_star = len(texts) - 1 - texts[::-1].index("*")
        return "const" in texts[last_star + 1 :]
    return "const" in texts


def parse_declaration(
    tokens: list[Token], scope: Scope, body_open_line: int | None = None
) -> Declaration | None:
    """Classify a statement as a declaration.

    Args:
        tokens: Significant tokens of the statement, without the final `;`
        scope: Scope the statement appears in
        body_open_line: Opening brace line of the enclosing function body

    Returns:
        Declaration, or None if the statement is not a declaration
    """
    if not tokens or tokens[0].text in STATEMENT_KEYWORDS:
        return None

    is_typedef = tokens[0].text == "typedef"
    if is_typedef:
        tokens = tokens[1:]

    segments = _split_top_level(tokens, ",")
    first = _declarator_name(segments[0])
    if first is None:
        return None
    prefix, name = first

    if not prefix or not all(_is_type_token(t) for t in prefix):
        return None
    if prefix[-1].text in TAG_KEYWORDS:
        return None
    if all(t.text == "*" for t in prefix):
        return None

    names = [name.text]
    for segment in segments[1:]:
        extra = _declarator_name(segment)
        if extra is None or any(t.text != "*" and t.text not in QUALIFIERS for t in extra[0]):
            return None
        names.append(extra[1].text)

    prefix_texts = [t.text for t in prefix]
    type_text = " ".join(prefix_texts)
    offset = None if body_open_line is None else tokens[0].line - body_open_line

    return Declaration(
        name=name.text,
        type_text=type_text,
        line=tokens[0].line,
        scope=scope,
        names=tuple(names),
        is_const=_object_is_const(prefix),
        is_typedef=is_typedef,
        is_extern="extern" in prefix_texts,
        body_offset=offset,
    )


def parse_macro(token: Token) -> MacroDef | None:
    """Build a MacroDef from a `#define` directive token."""
    match = _DEFINE_RE.match(token.text)
    if not match:
        return None
    replacement = match.group(3).replace("\\\r\n", " ").replace("\\\n", " ").strip()
    return MacroDef(
        name=match.group(1),
        line=token.line,
        replacement=replacement,
        is_function_like=match.group(2) is not None,
    )


@dataclass
class _BodyScan:
    """Accumulated facts about one function body."""

    declarations: list[Declaration] = field(default_factory=list)
    loop_declarations: list[Declaration] = field(default_factory=list)
    first_statement_line: int | None = None


class _Indexer:
    def __init__(self, source: SourceFile) -> None:
        self.source = source
        self.tokens = source.tokens
        self.macros: list[MacroDef] = []
        self.declarations: list[Declaration] = []
        self.functions: list[FunctionDef] = []
        self.anomalies: list[Anomaly] = []
        self._targets: dict[int, str] = {}
        # Statement entries are (token index, token); placeholders reuse the `{` index.
        self._statement: list[tuple[int, Token]] = []
        self._doc_candidate: int | None = None
        self._statement_doc: int | None = None
        self._last_code_line = 0

    def run(self) -> StructuralModel:
        index = 0
        while index < len(self.tokens):
            token = self.tokens[index]
            kind = token.kind

            if kind in TRIVIA_KINDS:
                index += 1
            elif kind in COMMENT_KINDS:
                standalone = token.line > self._last_code_line
                self._doc_candidate = index if standalone else None
                index += 1
            elif kind is TokenKind.PREPROCESSOR:
                self._directive(token)
                index += 1
            elif token.text == "{":
                index = self._open_brace(index)
            elif token.text == "}":
                self._anomaly("unmatched-brace", token, "closing brace without matching '{'")
                self._mark_code(token)
                index += 1
            elif token.text == ";":
                self._finish_global_statement()
                self._mark_code(token)
                index += 1
            else:
                if not self._statement:
                    self._statement_doc = self._adjacent_doc(token)
                self._statement.append((index, token))
                self._mark_code(token)
                index += 1

        return StructuralModel(
            macros=tuple(self.macros),
            declarations=tuple(self.declarations),
            functions=tuple(self.functions),
            comments=tuple(self._comment_blocks()),
            anomalies=tuple(self.anomalies),
        )

    def _mark_code(self, token: Token) -> None:
        self._last_code_line = token.end_line
        self._doc_candidate = None

    def _anomaly(self, kind: str, token: Token, message: str) -> None:
        self.anomalies.append(
            Anomaly(kind=kind, line=token.line, column=token.column, message=message)
        )

    def _directive(self, token: Token) -> None:
        if token.text.startswith("#"):
            macro = parse_macro(token)
            if macro is not None:
                self.macros.append(macro)
        self._mark_code(token)

    def _adjacent_doc(self, token: Token) -> int | None:
        """Index of the comment that ends right above `token`, if any."""
        if self._doc_candidate is None:
            return None
        comment = self.tokens[self._doc_candidate]
        if comment.end_line >= token.line - 1:
            return self._doc_candidate
        return None

    def _match_brace(self, open_index: int) -> int | None:
        depth = 0
        for index in range(open_index, len(self.tokens)):
            token = self.tokens[index]
            if token.kind is not TokenKind.PUNCTUATION:
                continue
            if token.text == "{":
                depth += 1
            elif token.text == "}":
                depth -= 1
                if depth == 0:
                    return index
        return None

    def _matching_lparen(self, rparen_position: int) -> int | None:
        depth = 0
        for position in range(rparen_position, -1, -1):
            text = self._statement[position][1].text
            if text == ")":
                depth += 1
            elif text == "(":
                depth -= 1
                if depth == 0:
                    return position
        return None

    def _function_header(self) -> tuple[int, int, int] | None:
        """Locate `name ( ... )` in the pending statement if it is a function header.

        Trailing attribute groups such as `__attribute__((unused))` are skipped.

        Returns:
            Tuple of statement positions of the name, `(` and `)`
        """
        entries = self._statement
        if entries and entries[0][1].text == "typedef":
            return None

        rparen_position = len(entries) - 1
        while True:
            if rparen_position < 3 or entries[rparen_position][1].text != ")":
                return None
            position = self._matching_lparen(rparen_position)
            if position is None:
                return None
            if position > 0 and entries[position - 1][1].text in ATTRIBUTE_KEYWORDS:
                rparen_position = position - 2
                continue
            break

        name_position = position - 1
        if name_position < 1:
            return None
        if entries[name_position][1].kind is not TokenKind.IDENTIFIER:
            return None
        if entries[name_position][1].text in ATTRIBUTE_KEYWORDS:
            return None
        if any(t.text in ("=", BRACE_GROUP) for _, t in entries[:name_position]):
            return None
        return name_position, position, rparen_position

    def _open_brace(self, open_index: int) -> int:
        open_token = self.tokens[open_index]
        header = self._function_header()
        close_index = self._match_brace(open_index)

        if header is not None:
            self._function(header, open_index, close_index)
            self._statement = []
            self._statement_doc = None
        elif close_index is not None:
            self._statement.append((open_index, _placeholder(open_token)))
        else:
            self._anomaly("unclosed-brace", open_token, "opening brace is never closed")

        if close_index is None:
            return len(self.tokens)
        self._mark_code(self.tokens[close_index])
        return close_index + 1

    def _function(
        self, header: tuple[int, int, int], open_index: int, close_index: int | None
    ) -> None:
        name_position, lparen_position, rparen_position = header
        name_token = self._statement[name_position][1]
        open_token = self.tokens[open_index]

        lparen_index = self._statement[lparen_position][0]
        rparen_index = self._statement[rparen_position][0]
        parameters = self._parameters(lparen_index, rparen_index)

        if close_index is None:
            self._anomaly(
                "unclosed-brace",
                open_token,
                f"body of function '{name_token.text}' is never closed",
            )
            close_line = max(self.source.line_count, open_token.line)
            end_index = len(self.tokens)
        else:
            close_line = self.tokens[close_index].line
            end_index = close_index

        body = self._scan_body(open_index, end_index)

        doc = None
        if self._statement_doc is not None:
            comment = self.tokens[self._statement_doc]
            self._targets[self._statement_doc] = name_token.text
            doc = _comment_block(comment, name_token.text)

        self.functions.append(
            FunctionDef(
                name=name_token.text,
                line=name_token.line,
                parameters=parameters,
                open_brace_line=open_token.line,
                close_brace_line=close_line,
                declarations=tuple(body.declarations),
                first_statement_line=body.first_statement_line,
                loop_declarations=tuple(body.loop_declarations),
                doc_comment=doc,
                is_closed=close_index is not None,
            )
        )
        logger.debug(f"{self.source.path}: function {name_token.text} at line {name_token.line}")

    def _parameters(self, lparen_index: int, rparen_index: int) -> tuple[Parameter, ...]:
        parts: list[list[Token]] = [[]]
        depth = 0
        for token in self.tokens[lparen_index + 1 : rparen_index]:
            if token.kind in COMMENT_KINDS:
                continue
            if token.text in "([":
                depth += 1
            elif token.text in ")]":
                depth -= 1
            elif token.text == "," and depth == 0:
                parts.append([])
                continue
            parts[-1].append(token)

        texts = [" ".join("".join(t.text for t in part).split()) for part in parts]
        if len(texts) == 1 and texts[0] in ("", "void"):
            return ()
        return tuple(Parameter(text=text) for text in texts)

    def _scan_body(self, open_index: int, end_index: int) -> _BodyScan:
        body = _BodyScan()
        open_line = self.tokens[open_index].line
        statement: list[Token] = []
        paren_depth = 0
        index = open_index + 1

        while index < end_index:
            token = self.tokens[index]
            if not _is_code(token):
                index += 1
                continue
            text = token.text

            if text == "(":
                paren_depth += 1
            elif text == ")":
                paren_depth = max(0, paren_depth - 1)

            if paren_depth == 0 and text == "{":
                if statement and _keeps_braces(statement):
                    close = self._match_brace(index)
                    if close is None or close > end_index:
                        break
                    statement.append(_placeholder(token))
                    index = close + 1
                    continue
                self._classify(statement, body, open_line)
                statement = []
            elif paren_depth == 0 and text in (";", "}"):
                self._classify(statement, body, open_line)
                statement = []
            else:
                statement.append(token)
            index += 1

        self._classify(statement, body, open_line)
        return body

    def _classify(self, statement: list[Token], body: _BodyScan, open_line: int) -> None:
        if not statement:
            return
        decl = parse_declaration(statement, Scope.FUNCTION, open_line)
        if decl is not None:
            if body.first_statement_line is not None:
                decl = replace(decl, is_late=True)
            body.declarations.append(decl)
            return

        if body.first_statement_line is None:
            body.first_statement_line = statement[0].line

        if len(statement) > 2 and statement[0].text == "for" and statement[1].text == "(":
            initializer = _split_top_level(statement[2:], ";")[0]
            loop_decl = parse_declaration(initializer, Scope.FUNCTION, open_line)
            if loop_decl is not None:
                body.loop_declarations.append(loop_decl)

    def _finish_global_statement(self) -> None:
        tokens = [token for _, token in self._statement]
        self._statement = []
        self._statement_doc = None
        decl = parse_declaration(tokens, Scope.FILE)
        if decl is not None:
            self.declarations.append(decl)

    def _comment_blocks(self) -> list[CommentBlock]:
        return [
            _comment_block(token, self._targets.get(index))
            for index, token in enumerate(self.tokens)
            if token.kind in COMMENT_KINDS
        ]


def _keeps_braces(statement: list[Token]) -> bool:
    """Whether a `{` belongs to the statement (initializer or type body)."""
    first = statement[0].text
    if first in TAG_KEYWORDS or first == "typedef":
        return True
    if first in STATEMENT_KEYWORDS:
        return False
    return len(_split_top_level(statement, "=")) > 1


def _comment_block(token: Token, target: str | None) -> CommentBlock:
    style = "line" if token.kind is TokenKind.LINE_COMMENT else "block"
    return CommentBlock(style=style, start_line=token.line, end_line=token.end_line, target=target)


def index_source(source: SourceFile) -> StructuralModel:
    """Recover the structural model of a scanned file.

    Args:
        source: Scanned source file

    Returns:
        StructuralModel with macros, globals, functions, comments and anomalies
    """
    return _Indexer(source).run()
