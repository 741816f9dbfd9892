"""
Assembly Expression Evaluator
=============================

This module holds the numeric model of the assembler and the evaluator
for arithmetic expressions over 16-bit unsigned values and variables.

Numeric Values
--------------
Every number carries a declared width (8 or 16 bits) next to its value.
The width decides between zero-page and absolute addressing, so it is
fixed at canonicalization time from the literal's written form:

| Literal | Rule                                  | Example          |
|---------|---------------------------------------|------------------|
| $hex    | 16-bit if more than 2 digits          | $a: 8, $00aa: 16 |
| decimal | 16-bit if above 255 or over 3 digits  | 255: 8, 0255: 16 |
| %binary | 16-bit if more than 8 digits          | %1: 8            |
| 'c'     | always 8-bit                          | 'A': 8           |

A width only grows. Promotion raises it to match a required slot and
never changes the value.

Expression Grammar
------------------
The parser builds expression trees with this right-recursive grammar
(lowest precedence first):

    expr   := term (('+' | '-') expr)?
    term   := factor (('*' | '/') term)?
    factor := '(' expr ')' | number | variable

Right recursion makes "10 - 4 - 2" evaluate as 10 - (4 - 2) = 8. That
grouping is part of the language and must be preserved.

Evaluation
----------
Arithmetic is checked: a result outside 0..$FFFF raises ExpressionError
instead of wrapping. The width of a result is the larger operand width,
whatever its value, so "$f0 + $20" is an 8-bit result of $110. Whoever
places a value in a byte or word slot checks that it fits (see fits()).

Parsing and evaluation recurse on the tree; an expression nested too
deeply for the interpreter stack is an ExpressionError.

Example Usage
-------------
>>> from asm6502.assembler.expressions import ExpressionEvaluator, ExprNode, NumericValue
>>> evaluator = ExpressionEvaluator()
>>> evaluator.define_variable("speed", ExprNode.number(NumericValue(3, 8)))
>>> evaluator.evaluate(ExprNode.binary("*", ExprNode.placeholder("speed"),
...                                    ExprNode.number(NumericValue(2, 8))))
NumericValue(value=6, size=8)
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from asm6502.assembler.lexer import Token, TokenType
from asm6502.errors import (
    AssemblySyntaxError,
    ExpressionError,
    RecursiveDefinitionError,
    SourceLocation,
    UndefinedSymbolError,
)


# =============================================================================
# Numeric Values
# =============================================================================

@dataclass(frozen=True)
class NumericValue:
    """
    A 16-bit unsigned value with its declared width in bits.

    Attributes:
        value: Integer value (0..$FFFF)
        size: Declared width, 8 or 16
    """
    value: int
    size: int

    @property
    def byte_count(self) -> int:
        return self.size // 8

    def fits(self, size: int) -> bool:
        """True if both the declared width and the value fit in size bits."""
        return self.size <= size and self.value < (1 << size)

    def promote(self, size: int) -> "NumericValue":
        """Raise the width to at least size bits."""
        if size <= self.size:
            return self
        return NumericValue(self.value, size)

    def to_bytes(self) -> bytes:
        """Little-endian encoding using the declared width."""
        return self.value.to_bytes(self.byte_count, "little")

    def __str__(self) -> str:
        if self.size == 16:
            return f"${self.value:04x}"
        return f"${self.value:02x}"


def canonicalize_number(token: Token) -> NumericValue:
    """
    Convert a numeric literal token to a NumericValue.

    Raises:
        AssemblySyntaxError: If the token is not a number or does not
            fit in 16 bits
    """
    text = token.value or ""

    if token.type == TokenType.HEX:
        value = int(text, 16)
        size = 16 if len(text) > 2 else 8
    elif token.type == TokenType.DEC:
        value = int(text, 10)
        size = 16 if value > 0xFF or len(text) > 3 else 8
    elif token.type == TokenType.BIN:
        value = int(text, 2)
        size = 16 if len(text) > 8 else 8
    elif token.type == TokenType.CHAR:
        value = ord(text)
        if value > 0xFF:
            raise AssemblySyntaxError(
                f"character {text!r} is not an 8-bit character", token.location
            )
        size = 8
    else:
        raise AssemblySyntaxError(
            f"expected a number, found {_describe(token)}", token.location
        )

    if value > 0xFFFF:
        raise AssemblySyntaxError(
            f"number {text} does not fit in 16 bits", token.location
        )
    return NumericValue(value, size)


def _describe(token: Token) -> str:
    if token.type == TokenType.EOF:
        return "end of file"
    if token.type == TokenType.NEWLINE:
        return "end of line"
    if token.value is None:
        return token.type.name
    return f"{token.type.name} {token.value!r}"


# =============================================================================
# Expression Tree
# =============================================================================

class ExprNodeType(Enum):
    """Types of expression tree nodes."""
    NUMBER = auto()       # Literal NumericValue
    PLACEHOLDER = auto()  # Variable reference
    BINARY_OP = auto()    # + - * /


@dataclass(frozen=True)
class ExprNode:
    """
    Expression tree node.

    Sub-expressions are owned by their parent; a tree is built once per
    occurrence in the source and never shared or mutated.
    """
    node_type: ExprNodeType
    value: Optional[NumericValue] = None   # NUMBER
    name: Optional[str] = None             # PLACEHOLDER
    operator: Optional[str] = None         # BINARY_OP
    left: Optional["ExprNode"] = None
    right: Optional["ExprNode"] = None
    location: Optional[SourceLocation] = None

    @classmethod
    def number(cls, value: NumericValue, location: Optional[SourceLocation] = None) -> "ExprNode":
        return cls(ExprNodeType.NUMBER, value=value, location=location)

    @classmethod
    def placeholder(cls, name: str, location: Optional[SourceLocation] = None) -> "ExprNode":
        return cls(ExprNodeType.PLACEHOLDER, name=name, location=location)

    @classmethod
    def binary(
        cls,
        operator: str,
        left: "ExprNode",
        right: "ExprNode",
        location: Optional[SourceLocation] = None,
    ) -> "ExprNode":
        return cls(ExprNodeType.BINARY_OP, operator=operator, left=left, right=right,
                   location=location or left.location)

    def placeholders(self) -> list[str]:
        """Variable names referenced directly by this tree, left to right."""
        names = []
        stack = [self]
        while stack:
            node = stack.pop()
            if node.node_type == ExprNodeType.PLACEHOLDER:
                names.append(node.name)
            elif node.node_type == ExprNodeType.BINARY_OP:
                stack.append(node.right)
                stack.append(node.left)
        return names

    def __str__(self) -> str:
        if self.node_type == ExprNodeType.NUMBER:
            return str(self.value)
        if self.node_type == ExprNodeType.PLACEHOLDER:
            return self.name
        return f"({self.left} {self.operator} {self.right})"


# =============================================================================
# Expression Evaluator
# =============================================================================

class ExpressionEvaluator:
    """
    Evaluates expression trees against a variable table.

    Variables map a name to its defining expression. Definitions are
    recorded in source order and a later definition replaces an earlier
    one. Only variables that are already bound can be referenced, which
    keeps variables strictly backward-referencing (labels, which may be
    referenced forward, live in the code generator instead).

    Every definition is validated before it is stored, so the table never
    contains a cycle and evaluation always terminates.
    """

    def __init__(self):
        self._variables: dict[str, ExprNode] = {}

    # =========================================================================
    # Variable Table
    # =========================================================================

    def define_variable(
        self,
        name: str,
        expr: ExprNode,
        location: Optional[SourceLocation] = None,
    ) -> None:
        """
        Bind name to expr after validating it.

        Raises:
            RecursiveDefinitionError: If expr reaches name
            UndefinedSymbolError: If expr references an unbound variable
        """
        self.validate_assignment(name, expr, location)
        self._variables[name] = expr

    def has_variable(self, name: str) -> bool:
        return name in self._variables

    def get_variable(self, name: str) -> Optional[ExprNode]:
        return self._variables.get(name)

    @property
    def variables(self) -> dict[str, ExprNode]:
        """Copy of the variable table."""
        return dict(self._variables)

    def validate_assignment(
        self,
        name: str,
        expr: ExprNode,
        location: Optional[SourceLocation] = None,
    ) -> None:
        """
        Check that expr may be assigned to name.

        The walk follows variables transitively, so both "x = x + 1" and
        "x = y" with "y = x + 1" already bound are rejected.
        """
        visited: set[str] = set()
        pending = [(ref, expr) for ref in expr.placeholders()]

        while pending:
            ref, owner = pending.pop()
            if ref == name:
                raise RecursiveDefinitionError(name, location or owner.location)
            if ref not in self._variables:
                raise self._undefined(ref, location or owner.location)
            if ref in visited:
                continue
            visited.add(ref)
            nested = self._variables[ref]
            pending.extend((inner, nested) for inner in nested.placeholders())

    # =========================================================================
    # Evaluation
    # =========================================================================

    def evaluate(self, node: ExprNode) -> NumericValue:
        """
        Evaluate an expression tree.

        Raises:
            ExpressionError: On overflow, underflow, division by zero or
                nesting too deep to evaluate
            UndefinedSymbolError: On a reference to an unbound variable
        """
        try:
            return self._evaluate(node)
        except RecursionError:
            raise ExpressionError("expression is too deeply nested", node.location) from None

    def _evaluate(self, node: ExprNode) -> NumericValue:
        if node.node_type == ExprNodeType.NUMBER:
            return node.value

        if node.node_type == ExprNodeType.PLACEHOLDER:
            nested = self._variables.get(node.name)
            if nested is None:
                raise self._undefined(node.name, node.location)
            return self._evaluate(nested)

        left = self._evaluate(node.left)
        right = self._evaluate(node.right)
        value = self._apply(node.operator, left.value, right.value, node.location)

        return NumericValue(value, max(left.size, right.size))

    def _apply(
        self,
        operator: str,
        left: int,
        right: int,
        location: Optional[SourceLocation],
    ) -> int:
        if operator == "+":
            result = left + right
            if result > 0xFFFF:
                raise ExpressionError(f"add overflow: left {left}, right {right}", location)
        elif operator == "-":
            result = left - right
            if result < 0:
                raise ExpressionError(f"subtraction underflow: left {left}, right {right}", location)
        elif operator == "*":
            result = left * right
            if result > 0xFFFF:
                raise ExpressionError(f"multiplication overflow: left {left}, right {right}", location)
        elif operator == "/":
            if right == 0:
                raise ExpressionError(f"cannot divide {left} by zero", location)
            result = left // right
        else:
            raise ExpressionError(f"unknown operator '{operator}'", location)
        return result

    # =========================================================================
    # Diagnostics
    # =========================================================================

    def _undefined(self, name: str, location: Optional[SourceLocation]) -> UndefinedSymbolError:
        return UndefinedSymbolError(
            name,
            kind="variable",
            location=location,
            similar_symbols=find_similar_names(name, self._variables),
        )


def find_similar_names(name: str, candidates) -> list[str]:
    """
    Names close to name, for "did you mean" hints.

    Uses a simple edit distance heuristic and returns at most 3 names.
    """
    name_lower = name.lower()
    similar = []

    for candidate in candidates:
        candidate_lower = candidate.lower()
        if (
            candidate_lower == name_lower or
            abs(len(candidate) - len(name)) <= 1 and
            _edit_distance(name_lower, candidate_lower) <= 2
        ):
            similar.append(candidate)

    return similar[:3]


def _edit_distance(s1: str, s2: str) -> int:
    """Levenshtein edit distance between two strings."""
    if len(s1) < len(s2):
        s1, s2 = s2, s1

    distances = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1):
        new_distances = [i + 1]
        for j, c2 in enumerate(s2):
            if c1 == c2:
                new_distances.append(distances[j])
            else:
                new_distances.append(1 + min(
                    distances[j],
                    distances[j + 1],
                    new_distances[-1],
                ))
        distances = new_distances

    return distances[-1]
