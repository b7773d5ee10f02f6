"""Style rule catalog.

Importing this module registers every rule into the default registry.
"""
import re
from pathlib import PurePath
from typing import Iterator

from epicstyle.config import Config
from epicstyle.registry import Finding, register_rule
from epicstyle.types import Severity, SourceFile, StructuralModel, TokenKind

SNAKE_CASE_RE = re.compile(r"^[a-z0-9]+(?:_[a-z0-9]+)*$")
SCREAMING_SNAKE_CASE_RE = re.compile(r"^[A-Z0-9]+(?:_[A-Z0-9]+)*$")

NAMING_CONVENTIONS: dict[str, re.Pattern[str]] = {
    "snake_case": SNAKE_CASE_RE,
    "camel_case": re.compile(r"^[a-z][a-zA-Z0-9]*$"),
    "pascal_case": re.compile(r"^[A-Z][a-zA-Z0-9]*$"),
}

INDENT_CHARACTERS = {"tab": "\t", "space": " "}


@register_rule("LINE_LENGTH", Severity.MINOR, "Line exceeds the column limit")
def check_line_length(
    source: SourceFile, model: StructuralModel, config: Config
) -> Iterator[Finding]:
    for number, line in enumerate(source.lines, start=1):
        width = len(line.expandtabs(config.tab_width))
        if width > config.max_line_length:
            yield number, f"line is {width} columns wide (max {config.max_line_length})"


@register_rule("COMMENT_STYLE", Severity.MAJOR, "Only /* */ comments are allowed", level=2)
def check_comment_style(
    source: SourceFile, model: StructuralModel, config: Config
) -> Iterator[Finding]:
    if config.allow_line_comments:
        return
    for token in source.tokens:
        if token.kind is TokenKind.LINE_COMMENT:
            yield token.line, "'//' comment is forbidden, use /* */"


@register_rule(
    "FUNC_HEADER_COMMENT",
    Severity.MINOR,
    "Functions need a comment right above them",
    level=2,
)
def check_function_header_comment(
    source: SourceFile, model: StructuralModel, config: Config
) -> Iterator[Finding]:
    for function in model.functions:
        if function.name == "main" and not config.require_main_comment:
            continue
        if function.doc_comment is None:
            yield function.line, f"function '{function.name}' has no header comment"


@register_rule("FUNC_TOO_LONG", Severity.MAJOR, "Function body exceeds the line limit")
def check_function_length(
    source: SourceFile, model: StructuralModel, config: Config
) -> Iterator[Finding]:
    for function in model.functions:
        if function.body_line_count > config.max_function_lines:
            yield function.line, (
                f"function '{function.name}' has {function.body_line_count} lines "
                f"(max {config.max_function_lines})"
            )


@register_rule(
    "FUNC_TOO_MANY_PARAMS", Severity.MAJOR, "Function has too many parameters", level=2
)
def check_function_parameters(
    source: SourceFile, model: StructuralModel, config: Config
) -> Iterator[Finding]:
    for function in model.functions:
        if function.param_count > config.max_params:
            yield function.line, (
                f"function '{function.name}' has {function.param_count} parameters "
                f"(max {config.max_params})"
            )


@register_rule("FUNC_NAMING", Severity.MINOR, "Function name breaks the naming convention")
def check_function_naming(
    source: SourceFile, model: StructuralModel, config: Config
) -> Iterator[Finding]:
    pattern = NAMING_CONVENTIONS[config.function_case]
    for function in model.functions:
        if function.name != "main" and not pattern.match(function.name):
            yield function.line, f"function '{function.name}' is not {config.function_case}"


@register_rule("MULTI_DECL_LINE", Severity.MINOR, "One declaration per statement")
def check_multiple_declarations(
    source: SourceFile, model: StructuralModel, config: Config
) -> Iterator[Finding]:
    declarations = list(model.declarations)
    for function in model.functions:
        declarations.extend(function.declarations)
    for decl in declarations:
        if decl.has_multiple_identifiers:
            yield decl.line, f"several identifiers declared together: {', '.join(decl.names)}"


@register_rule("LATE_DECLARATION", Severity.MAJOR, "Declarations must open the function body")
def check_late_declarations(
    source: SourceFile, model: StructuralModel, config: Config
) -> Iterator[Finding]:
    for function in model.functions:
        for decl in function.late_declarations:
            yield decl.line, (
                f"'{decl.name}' declared after a statement in '{function.name}' "
                f"(first statement at line {function.first_statement_line})"
            )


@register_rule("GLOBAL_MUTABLE", Severity.MAJOR, "Global variables must be const", level=2)
def check_global_mutable(
    source: SourceFile, model: StructuralModel, config: Config
) -> Iterator[Finding]:
    for decl in model.declarations:
        if decl.is_const or decl.is_typedef or decl.is_extern:
            continue
        yield decl.line, f"global '{decl.name}' is not const"


@register_rule("MACRO_NAMING", Severity.MINOR, "Macro names are SCREAMING_SNAKE_CASE")
def check_macro_naming(
    source: SourceFile, model: StructuralModel, config: Config
) -> Iterator[Finding]:
    for macro in model.macros:
        if not SCREAMING_SNAKE_CASE_RE.match(macro.name):
            yield macro.line, f"macro '{macro.name}' is not SCREAMING_SNAKE_CASE"


@register_rule("TOO_MANY_FUNCS_PER_FILE", Severity.MAJOR, "File defines too many functions")
def check_function_count(
    source: SourceFile, model: StructuralModel, config: Config
) -> Iterator[Finding]:
    limit = config.max_functions_per_file
    if len(model.functions) > limit:
        first_extra = model.functions[limit]
        yield first_extra.line, f"file defines {len(model.functions)} functions (max {limit})"


@register_rule("INDENT_STYLE", Severity.MINOR, "Indentation uses the wrong character")
def check_indent_style(
    source: SourceFile, model: StructuralModel, config: Config
) -> Iterator[Finding]:
    forbidden = INDENT_CHARACTERS["space" if config.indent_char == "tab" else "tab"]
    tokens = source.tokens
    for index, token in enumerate(tokens):
        if token.kind is not TokenKind.WHITESPACE or token.column != 1:
            continue
        following = tokens[index + 1] if index + 1 < len(tokens) else None
        if following is None or following.kind is TokenKind.NEWLINE:
            continue
        if forbidden in token.text:
            yield token.line, f"indentation must use {config.indent_char}s only"


@register_rule("EMPTY_LINES", Severity.MINOR, "No blank line at file edges or repeated")
def check_empty_lines(
    source: SourceFile, model: StructuralModel, config: Config
) -> Iterator[Finding]:
    lines = source.lines
    if not lines:
        return
    blank = [not line.strip() for line in lines]
    if blank[0]:
        yield 1, "file starts with an empty line"
    for number in range(2, len(lines) + 1):
        if blank[number - 1] and blank[number - 2]:
            yield number, "consecutive empty lines"
    if len(lines) > 1 and blank[-1] and not blank[-2]:
        yield len(lines), "file ends with an empty line"


@register_rule("FILE_NAMING", Severity.MINOR, "File names are snake_case")
def check_file_naming(
    source: SourceFile, model: StructuralModel, config: Config
) -> Iterator[Finding]:
    stem = PurePath(source.path).stem
    if not SNAKE_CASE_RE.match(stem):
        yield 1, f"file name '{PurePath(source.path).name}' is not snake_case"


@register_rule(
    "FOR_LOOP_DECLARATION", Severity.MAJOR, "No declaration in a for initializer", level=2
)
def check_for_loop_declarations(
    source: SourceFile, model: StructuralModel, config: Config
) -> Iterator[Finding]:
    for function in model.functions:
        for decl in function.loop_declarations:
            yield decl.line, f"'{decl.name}' declared in a for loop initializer"


@register_rule("UNTERMINATED_COMMENT", Severity.MAJOR, "Block comment never closed")
def check_unterminated_comment(
    source: SourceFile, model: StructuralModel, config: Config
) -> Iterator[Finding]:
    for anomaly in source.anomalies:
        if anomaly.kind == "unterminated-comment":
            yield anomaly.line, "block comment is never closed"


@register_rule("UNTERMINATED_LITERAL", Severity.MAJOR, "String or char literal never closed")
def check_unterminated_literal(
    source: SourceFile, model: StructuralModel, config: Config
) -> Iterator[Finding]:
    for anomaly in source.anomalies:
        if anomaly.kind in ("unterminated-string", "unterminated-char"):
            yield anomaly.line, anomaly.message


@register_rule("UNMATCHED_BRACE", Severity.MAJOR, "Braces do not balance")
def check_unmatched_brace(
    source: SourceFile, model: StructuralModel, config: Config
) -> Iterator[Finding]:
    for anomaly in model.anomalies:
        yield anomaly.line, anomaly.message
