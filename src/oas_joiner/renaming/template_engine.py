"""Rename template parsing and evaluation service.

A template is literal text with `{expression}` placeholders; `{{` and `}}`
stand for literal braces. An expression is a field name, a quoted string,
an integer, a call `fn(arg, ...)`, or a pipeline `expr | fn(args)` where the
piped value becomes the first argument of `fn`.
"""

from __future__ import annotations

import re
from collections.abc import Collection, Mapping
from dataclasses import dataclass
from typing import Any

from .template_functions import TEMPLATE_FUNCTIONS, render_value

TEMPLATE_FIELDS = (
    "Name",
    "Source",
    "Index",
    "Path",
    "Method",
    "OperationID",
    "Tags",
    "UsageType",
    "StatusCode",
    "ParamName",
    "MediaType",
    "PrimaryResource",
    "AllPaths",
    "AllMethods",
    "AllOperationIDs",
    "AllTags",
    "RefCount",
    "IsShared",
)

_TOKEN_PATTERN = re.compile(
    r"""
    (?P<space>\s+)
    |(?P<string>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')
    |(?P<integer>-?\d+)
    |(?P<name>[A-Za-z_][A-Za-z0-9_]*)
    |(?P<punct>[(),|])
    """,
    re.VERBOSE,
)
_ESCAPE_PATTERN = re.compile(r"\\(.)")


class TemplateError(Exception):
    """Raised when a rename template cannot be parsed or evaluated."""

    def __init__(self, template: str, detail: str) -> None:
        super().__init__(f"rename template {template!r}: {detail}")
        self.template = template
        self.detail = detail


@dataclass(frozen=True)
class FieldRef:
    """Reference to a context field."""

    name: str


@dataclass(frozen=True)
class Literal:
    """String or integer literal."""

    value: str | int


@dataclass(frozen=True)
class Call:
    """Function call; pipelines are stored as calls with the piped value first."""

    function: str
    arguments: tuple[Expression, ...]


Expression = FieldRef | Literal | Call


@dataclass(frozen=True)
class Template:
    """Parsed rename template."""

    text: str
    parts: tuple[str | Expression, ...]


def parse_template(text: str, *, fields: Collection[str] = TEMPLATE_FIELDS) -> Template:
    """Parse and validate a template against the known fields and functions."""
    parts: list[str | Expression] = []
    literal: list[str] = []
    position = 0
    while position < len(text):
        character = text[position]
        if text.startswith("{{", position) or text.startswith("}}", position):
            literal.append(character)
            position += 2
        elif character == "}":
            raise TemplateError(text, f"unmatched '}}' at position {position}")
        elif character == "{":
            end = _placeholder_end(text, position + 1)
            if literal:
                parts.append("".join(literal))
                literal = []
            parts.append(_ExpressionParser(text, text[position + 1 : end], fields).parse())
            position = end + 1
        else:
            literal.append(character)
            position += 1
    if literal:
        parts.append("".join(literal))
    return Template(text=text, parts=tuple(parts))


def render_template(template: Template, values: Mapping[str, Any]) -> str:
    """Evaluate a parsed template; an empty result is an error."""
    rendered = "".join(
        part if isinstance(part, str) else render_value(_evaluate(template.text, part, values))
        for part in template.parts
    )
    if not rendered.strip():
        raise TemplateError(template.text, "template produced an empty name")
    return rendered


def _placeholder_end(text: str, start: int) -> int:
    quote: str | None = None
    position = start
    while position < len(text):
        character = text[position]
        if quote is not None:
            if character == "\\":
                position += 1
            elif character == quote:
                quote = None
        elif character in {"'", '"'}:
            quote = character
        elif character == "}":
            return position
        elif character == "{":
            raise TemplateError(text, f"nested '{{' at position {position}")
        position += 1
    raise TemplateError(text, f"unclosed '{{' at position {start - 1}")


def _evaluate(template_text: str, expression: Expression, values: Mapping[str, Any]) -> Any:
    if isinstance(expression, Literal):
        return expression.value
    if isinstance(expression, FieldRef):
        if expression.name not in values:
            raise TemplateError(template_text, f"undefined field '{expression.name}'")
        return values[expression.name]
    arguments = [_evaluate(template_text, argument, values) for argument in expression.arguments]
    function = TEMPLATE_FUNCTIONS[expression.function]
    try:
        return function.implementation(*arguments)
    except (TypeError, ValueError) as exc:
        raise TemplateError(template_text, f"{expression.function}: {exc}") from exc


class _ExpressionParser:
    """Recursive-descent parser for one placeholder body."""

    def __init__(self, template: str, source: str, fields: Collection[str]) -> None:
        self._template = template
        self._fields = fields
        self._tokens = self._tokenize(source)
        self._position = 0

    def _tokenize(self, source: str) -> list[tuple[str, str]]:
        tokens: list[tuple[str, str]] = []
        position = 0
        while position < len(source):
            match = _TOKEN_PATTERN.match(source, position)
            if match is None:
                raise TemplateError(
                    self._template, f"unexpected character {source[position]!r} in {{{source}}}"
                )
            kind = match.lastgroup or ""
            if kind != "space":
                tokens.append((kind, match.group()))
            position = match.end()
        if not tokens:
            raise TemplateError(self._template, "empty placeholder '{}'")
        return tokens

    def _peek(self) -> tuple[str, str] | None:
        if self._position < len(self._tokens):
            return self._tokens[self._position]
        return None

    def _next(self, expected: str) -> tuple[str, str]:
        token = self._peek()
        if token is None:
            raise TemplateError(self._template, f"expected {expected}, got end of placeholder")
        self._position += 1
        return token

    def _expect_punct(self, value: str) -> None:
        kind, text = self._next(f"'{value}'")
        if kind != "punct" or text != value:
            raise TemplateError(self._template, f"expected '{value}', got {text!r}")

    def parse(self) -> Expression:
        expression = self._pipeline()
        token = self._peek()
        if token is not None:
            raise TemplateError(self._template, f"unexpected {token[1]!r}")
        return expression

    def _pipeline(self) -> Expression:
        expression = self._term()
        while self._peek() == ("punct", "|"):
            self._position += 1
            kind, name = self._next("a function name after '|'")
            if kind != "name":
                raise TemplateError(self._template, f"expected a function name, got {name!r}")
            arguments = self._arguments() if self._peek() == ("punct", "(") else []
            expression = self._call(name, [expression, *arguments])
        return expression

    def _term(self) -> Expression:
        kind, text = self._next("an expression")
        if kind == "string":
            return Literal(_ESCAPE_PATTERN.sub(r"\1", text[1:-1]))
        if kind == "integer":
            return Literal(int(text))
        if kind == "name":
            if self._peek() == ("punct", "("):
                return self._call(text, self._arguments())
            if text not in self._fields:
                raise TemplateError(self._template, f"undefined field '{text}'")
            return FieldRef(text)
        raise TemplateError(self._template, f"unexpected {text!r}")

    def _arguments(self) -> list[Expression]:
        self._expect_punct("(")
        arguments: list[Expression] = []
        if self._peek() == ("punct", ")"):
            self._position += 1
            return arguments
        while True:
            arguments.append(self._pipeline())
            kind, text = self._next("',' or ')'")
            if (kind, text) == ("punct", ")"):
                return arguments
            if (kind, text) != ("punct", ","):
                raise TemplateError(self._template, f"expected ',' or ')', got {text!r}")

    def _call(self, name: str, arguments: list[Expression]) -> Call:
        function = TEMPLATE_FUNCTIONS.get(name)
        if function is None:
            raise TemplateError(self._template, f"undefined function '{name}'")
        if not function.accepts(len(arguments)):
            raise TemplateError(
                self._template,
                f"{name} takes {function.describe_arity()} argument(s), got {len(arguments)}",
            )
        return Call(name, tuple(arguments))
