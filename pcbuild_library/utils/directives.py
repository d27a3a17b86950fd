"""Conditional-compilation directive evaluation.

Directives are line comments understood by the engine sources:

    // #ifdef DEBUG
    console.log("only in debug builds");
    // #else
    console.log("everywhere else");
    // #endif

Supported: #ifdef NAME, #ifndef NAME, #if EXPR, #elif EXPR, #else, #endif.
EXPR combines switch names, true/false, !, &&, || and parentheses. Switches
are tested for truthiness and unknown names are false. Directive lines are
always dropped from the output; other lines are kept only when every
enclosing guard is active.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass

from ..errors import DirectiveError

_DIRECTIVE = re.compile(r"^\s*//\s*#(ifdef|ifndef|if|elif|else|endif)\b(.*)$")
_NAME = re.compile(r"^[A-Za-z_]\w*$")
_TOKEN = re.compile(r"\s*(&&|\|\||!|\(|\)|[A-Za-z_]\w*)")


@dataclass
class _Block:
    line: int
    parent_active: bool
    taken: bool
    active: bool
    seen_else: bool = False


def evaluate_expression(expression: str, defines: Mapping[str, object]) -> bool:
    """Evaluate a directive expression against the active switches.

    Example:
        >>> evaluate_expression("DEBUG || !PROFILER", {"DEBUG": False, "PROFILER": True})
        False

    Raises:
        DirectiveError: If the expression cannot be parsed
    """
    tokens = _tokenize(expression)
    if not tokens:
        raise DirectiveError("empty expression")
    parser = _ExpressionParser(tokens, defines)
    value = parser.parse_or()
    if parser.pos != len(tokens):
        raise DirectiveError(f"unexpected {tokens[parser.pos]!r} in expression {expression!r}")
    return value


def _tokenize(expression: str) -> list[str]:
    tokens = []
    pos = 0
    expression = expression.rstrip()
    while pos < len(expression):
        match = _TOKEN.match(expression, pos)
        if not match:
            raise DirectiveError(f"invalid expression {expression!r}")
        tokens.append(match.group(1))
        pos = match.end()
    return tokens


class _ExpressionParser:
    """Recursive descent: or := and ('||' and)*, and := unary ('&&' unary)*."""

    def __init__(self, tokens: list[str], defines: Mapping[str, object]):
        self.tokens = tokens
        self.defines = defines
        self.pos = 0

    def _peek(self) -> str | None:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _next(self) -> str:
        token = self._peek()
        if token is None:
            raise DirectiveError("unexpected end of expression")
        self.pos += 1
        return token

    def parse_or(self) -> bool:
        value = self.parse_and()
        while self._peek() == "||":
            self.pos += 1
            rhs = self.parse_and()
            value = value or rhs
        return value

    def parse_and(self) -> bool:
        value = self.parse_unary()
        while self._peek() == "&&":
            self.pos += 1
            rhs = self.parse_unary()
            value = value and rhs
        return value

    def parse_unary(self) -> bool:
        if self._peek() == "!":
            self.pos += 1
            return not self.parse_unary()
        return self.parse_primary()

    def parse_primary(self) -> bool:
        token = self._next()
        if token == "(":
            value = self.parse_or()
            if self._next() != ")":
                raise DirectiveError("missing ')' in expression")
            return value
        if token == "true":
            return True
        if token == "false":
            return False
        if _NAME.match(token):
            return bool(self.defines.get(token))
        raise DirectiveError(f"unexpected {token!r} in expression")


def preprocess(text: str, defines: Mapping[str, object]) -> str:
    """Apply conditional-compilation directives to source text.

    Args:
        text: Source text
        defines: Switch values, e.g. {"DEBUG": False, "PROFILER": True}

    Returns:
        Text with inactive regions and all directive lines removed

    Raises:
        DirectiveError: If directives are unbalanced or an expression is invalid
    """
    output: list[str] = []
    stack: list[_Block] = []

    for lineno, line in enumerate(text.splitlines(keepends=True), start=1):
        match = _DIRECTIVE.match(line.rstrip("\r\n"))
        active = stack[-1].active if stack else True

        if not match:
            if active:
                output.append(line)
            continue

        kind, argument = match.group(1), match.group(2).strip()
        try:
            if kind in ("ifdef", "ifndef"):
                if not _NAME.match(argument):
                    raise DirectiveError(f"#{kind} expects a single name, got {argument!r}")
                condition = bool(defines.get(argument))
                if kind == "ifndef":
                    condition = not condition
                stack.append(_Block(lineno, active, condition, active and condition))

            elif kind == "if":
                condition = evaluate_expression(argument, defines)
                stack.append(_Block(lineno, active, condition, active and condition))

            elif kind == "elif":
                block = _current(stack, kind)
                condition = evaluate_expression(argument, defines)
                block.active = block.parent_active and not block.taken and condition
                block.taken = block.taken or condition

            elif kind == "else":
                block = _current(stack, kind)
                block.active = block.parent_active and not block.taken
                block.taken = True
                block.seen_else = True

            else:
                if not stack:
                    raise DirectiveError("#endif without matching #if")
                stack.pop()
        except DirectiveError as e:
            if e.line is not None:
                raise
            raise DirectiveError(str(e), line=lineno) from e

    if stack:
        raise DirectiveError(f"unterminated #if opened at line {stack[-1].line}")

    return "".join(output)


def _current(stack: list[_Block], kind: str) -> _Block:
    if not stack:
        raise DirectiveError(f"#{kind} without matching #if")
    block = stack[-1]
    if block.seen_else:
        raise DirectiveError(f"#{kind} after #else")
    return block
