"""
6502 Assembly Language Parser
=============================

This module converts the token stream from the lexer into an ordered list
of statements that the code generator can process.

Statement Types
---------------
1. **Assignment**: variable bound to an expression
   ```asm
   speed = 2 * %010
   ```

2. **LabelDef**: label declaration
   ```asm
   loop:
   ```

3. **Directive**: data and layout directives
   ```asm
   .byte "HELLO", $0a
   .dword $c000, "LLHH"
   .segment "CODE"
   .proc main
   .endproc
   .res 16
   ```

4. **Instruction**: mnemonic with a resolved addressing mode
   ```asm
   LDA #$41         ; IMM
   LDA ($20),y      ; INDY
   ASL $aa + 2, x   ; ZPX
   BNE loop         ; REL
   ```

Addressing Mode Resolution
--------------------------
Operand expressions are evaluated while parsing, using the variables
bound so far. The width of the result, not its spelling, picks between
zero-page and absolute modes: an 8-bit value is always zero page and a
16-bit value is always absolute.

Parentheses are only indirect addressing when the surrounding pattern
says so:

| Operand          | Mode                                      |
|------------------|-------------------------------------------|
| (expr,x)         | INDX                                      |
| (expr),y         | INDY                                      |
| (expr)           | IND if 16-bit, otherwise ZP               |
| (expr) + 1, x    | grouped arithmetic, then ZPX or ABSX      |

An identifier that is not a bound variable is a label reference and is
resolved by the code generator once all label addresses are known.
Branch operands are a single number or label and never go through the
arithmetic grammar.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional, Union

from asm6502.assembler.expressions import (
    ExpressionEvaluator,
    ExprNode,
    NumericValue,
    canonicalize_number,
)
from asm6502.assembler.lexer import NUMBER_TYPES, Lexer, Token, TokenType
from asm6502.assembler.opcodes import (
    AddressingMode,
    BRANCH_INSTRUCTIONS,
    is_valid_instruction,
)
from asm6502.errors import (
    AssemblySyntaxError,
    DirectiveError,
    ExpressionError,
    SourceLocation,
)


# =============================================================================
# Statement Data Classes
# =============================================================================

@dataclass
class Statement:
    """
    Base class for all parsed statements.

    Every statement has a source location for error reporting.
    """
    location: SourceLocation


@dataclass
class Assignment(Statement):
    """Variable assignment. Emits nothing."""
    name: str
    expression: ExprNode

    def __str__(self) -> str:
        return f"ASSIGN {self.name} = {self.expression}"


@dataclass
class LabelDef(Statement):
    """Label declaration, bound to the address of the next emitted byte."""
    name: str

    def __str__(self) -> str:
        return f"LABEL {self.name}"


class DirectiveKind(Enum):
    """Directives understood by the assembler."""
    ENDPROC = auto()
    PROC = auto()
    SEGMENT = auto()
    BYTE = auto()
    DWORD = auto()
    RESERVE = auto()


@dataclass
class Directive(Statement):
    """
    Assembler directive statement.

    Attributes:
        kind: Which directive
        name: Segment or procedure name (SEGMENT, PROC)
        values: Data values, already promoted to the element width
            (BYTE, DWORD)
        count: Number of zero bytes to reserve (RESERVE)
    """
    kind: DirectiveKind
    name: Optional[str] = None
    values: list[NumericValue] = field(default_factory=list)
    count: int = 0

    def __str__(self) -> str:
        if self.kind in (DirectiveKind.BYTE, DirectiveKind.DWORD):
            return f"{self.kind.name} [{', '.join(str(v) for v in self.values)}]"
        if self.kind == DirectiveKind.SEGMENT:
            return f'SEGMENT "{self.name}"'
        if self.kind == DirectiveKind.PROC:
            return f"PROC {self.name}"
        if self.kind == DirectiveKind.RESERVE:
            return f"RESERVE {self.count}"
        return self.kind.name


@dataclass(frozen=True)
class LabelRef:
    """Reference to a label, resolved in the second pass."""
    name: str

    def __str__(self) -> str:
        return self.name


Operand = Union[LabelRef, NumericValue, None]


@dataclass
class Instruction(Statement):
    """
    Machine instruction statement.

    Attributes:
        mnemonic: The instruction mnemonic (uppercase, as written)
        mode: Resolved addressing mode
        operand: None for IMPL, a LabelRef, or a NumericValue
    """
    mnemonic: str
    mode: AddressingMode
    operand: Operand = None

    def __str__(self) -> str:
        if self.operand is None:
            return f"INSTR {self.mnemonic} {self.mode}"
        return f"INSTR {self.mnemonic} {self.mode} {self.operand}"


# =============================================================================
# Directive Names
# =============================================================================

DIRECTIVE_NAMES = {
    "byte": DirectiveKind.BYTE,
    "db": DirectiveKind.BYTE,
    "dword": DirectiveKind.DWORD,
    "dw": DirectiveKind.DWORD,
    "segment": DirectiveKind.SEGMENT,
    "proc": DirectiveKind.PROC,
    "endproc": DirectiveKind.ENDPROC,
    "res": DirectiveKind.RESERVE,
}

# Recognised by the grammar but not implemented
UNSUPPORTED_DIRECTIVES = frozenset({"macro", "endmacro", "include", "export"})


# =============================================================================
# Parser
# =============================================================================

class Parser:
    """
    Parses 6502 assembly tokens into statements.

    The parser makes a single forward pass with one token of look-ahead.
    It owns the variable table: assignments are validated and recorded as
    they are parsed, and every later expression is evaluated against the
    variables bound at that point.

    Usage:
        tokens = list(Lexer(source, filename).tokenize())
        parser = Parser(tokens, source=source)
        statements = parser.parse()
    """

    def __init__(
        self,
        tokens: list[Token],
        evaluator: Optional[ExpressionEvaluator] = None,
        source: Optional[str] = None,
    ):
        """
        Initialize the parser.

        Args:
            tokens: Tokens from the lexer, ending with EOF
            evaluator: Variable table to extend (a fresh one by default)
            source: Source text, used to quote the offending line in errors
        """
        self._tokens = tokens
        self._pos = 0
        self.evaluator = evaluator or ExpressionEvaluator()
        self._lines = source.splitlines() if source is not None else None

    def parse(self) -> list[Statement]:
        """
        Parse all tokens into statements.

        Raises:
            AssemblerError: On the first syntax, expression or symbol error
        """
        statements: list[Statement] = []

        while not self._at_end():
            if self._check(TokenType.NEWLINE, TokenType.COMMENT):
                self._advance()
                continue
            start = self._current()
            try:
                statements.append(self._parse_statement())
            except RecursionError:
                raise ExpressionError(
                    "expression is too deeply nested",
                    start.location,
                    source_line=self._source_line(start),
                ) from None

        return statements

    # =========================================================================
    # Token Navigation
    # =========================================================================

    def _at_end(self) -> bool:
        return self._current().type == TokenType.EOF

    def _current(self) -> Token:
        if self._pos >= len(self._tokens):
            last = self._tokens[-1] if self._tokens else None
            return Token(
                TokenType.EOF, None,
                last.line if last else 1,
                last.column if last else 1,
                last.filename if last else "<input>",
            )
        return self._tokens[self._pos]

    def _peek(self, offset: int = 1) -> Token:
        pos = self._pos + offset
        if pos >= len(self._tokens):
            return self._tokens[-1] if self._tokens else self._current()
        return self._tokens[pos]

    def _advance(self) -> Token:
        token = self._current()
        self._pos += 1
        return token

    def _check(self, *types: TokenType) -> bool:
        return self._current().type in types

    def _match(self, *types: TokenType) -> Optional[Token]:
        if self._check(*types):
            return self._advance()
        return None

    def _expect(self, token_type: TokenType, message: str) -> Token:
        if not self._check(token_type):
            raise self._error(f"{message}, found {self._describe(self._current())}")
        return self._advance()

    def _at_terminator(self) -> bool:
        return self._current().is_terminator

    def _expect_end_of_statement(self) -> None:
        """Require a newline, comment or end of file."""
        if not self._at_terminator():
            raise self._error(f"unexpected {self._describe(self._current())} after statement")
        self._match(TokenType.NEWLINE)

    def _error(self, message: str, token: Optional[Token] = None) -> AssemblySyntaxError:
        token = token or self._current()
        return AssemblySyntaxError(message, token.location, source_line=self._source_line(token))

    def _source_line(self, token: Token) -> Optional[str]:
        if self._lines is not None and 0 < token.line <= len(self._lines):
            return self._lines[token.line - 1]
        return None

    @staticmethod
    def _describe(token: Token) -> str:
        if token.type == TokenType.EOF:
            return "end of file"
        if token.type == TokenType.NEWLINE:
            return "end of line"
        if token.type == TokenType.COMMENT:
            return "comment"
        if token.type == TokenType.DIRECTIVE:
            return f"'.{token.value}'"
        return f"'{token.value}'"

    # =========================================================================
    # Statements
    # =========================================================================

    def _parse_statement(self) -> Statement:
        token = self._current()

        if token.type == TokenType.DIRECTIVE:
            return self._parse_directive()

        if token.type == TokenType.LITERAL:
            following = self._peek().type
            if following == TokenType.EQUALS:
                return self._parse_assignment()
            if following == TokenType.COLON:
                return self._parse_label()
            return self._parse_instruction()

        raise self._error(f"unexpected {self._describe(token)} at start of statement")

    def _parse_assignment(self) -> Assignment:
        name_token = self._advance()
        self._advance()  # '='

        expression = self._parse_expr()
        self.evaluator.define_variable(name_token.value, expression, name_token.location)
        self._expect_end_of_statement()

        return Assignment(name_token.location, name_token.value, expression)

    def _parse_label(self) -> LabelDef:
        # A label may share its line with the statement that follows it
        name_token = self._advance()
        self._advance()  # ':'
        return LabelDef(name_token.location, name_token.value)

    # =========================================================================
    # Instructions and Addressing Modes
    # =========================================================================

    def _parse_instruction(self) -> Instruction:
        mnemonic_token = self._advance()
        mnemonic = mnemonic_token.value.upper()
        location = mnemonic_token.location

        if not is_valid_instruction(mnemonic):
            raise self._error(f"unknown instruction '{mnemonic_token.value}'", mnemonic_token)

        mode, operand = self._parse_operand(mnemonic)
        self._expect_end_of_statement()

        return Instruction(location, mnemonic, mode, operand)

    def _parse_operand(self, mnemonic: str) -> tuple[AddressingMode, Operand]:
        """Resolve the addressing mode and operand following a mnemonic."""
        if self._at_terminator():
            return AddressingMode.IMPL, None

        if mnemonic in BRANCH_INSTRUCTIONS:
            return AddressingMode.REL, self._parse_branch_target()

        if self._match(TokenType.HASH):
            return AddressingMode.IMM, self._evaluate(self._parse_expr())

        if self._match(TokenType.LPAREN):
            return self._parse_parenthesized_operand()

        label = self._try_label_operand()
        if label is not None:
            return self._absolute_mode(self._parse_index_suffix()), label

        value = self._evaluate(self._parse_expr())
        return self._direct_mode(value, self._parse_index_suffix()), value

    def _parse_branch_target(self) -> Union[LabelRef, NumericValue]:
        token = self._current()
        if token.type in NUMBER_TYPES:
            self._advance()
            return canonicalize_number(token)
        if token.type == TokenType.LITERAL:
            self._advance()
            return LabelRef(token.value)
        raise self._error(f"expected branch target, found {self._describe(token)}")

    def _parse_parenthesized_operand(self) -> tuple[AddressingMode, Operand]:
        """
        Resolve an operand that starts with '(' (already consumed).

        (label), (label,x) and (label),y take a label reference. Anything
        else is evaluated; the tokens after it decide between indirect
        addressing and grouped arithmetic.
        """
        label = self._try_label_operand(TokenType.RPAREN)
        if label is not None:
            if self._match(TokenType.COMMA):
                self._expect_register("X")
                self._expect(TokenType.RPAREN, "expected ')' after ',x'")
                return AddressingMode.INDX, label
            self._expect(TokenType.RPAREN, "expected ')'")
            if self._check(TokenType.COMMA):
                self._advance()
                self._expect_register("Y")
                return AddressingMode.INDY, label
            return AddressingMode.IND, label

        group = self._parse_expr()

        if self._match(TokenType.COMMA):
            self._expect_register("X")
            self._expect(TokenType.RPAREN, "expected ')' after ',x'")
            return AddressingMode.INDX, self._evaluate(group)

        self._expect(TokenType.RPAREN, "expected ')'")

        if self._check(TokenType.COMMA) and self._is_register(self._peek(), "Y"):
            self._advance()
            self._advance()
            return AddressingMode.INDY, self._evaluate(group)

        if self._at_terminator():
            value = self._evaluate(group)
            if value.size > 8:
                return AddressingMode.IND, value
            return AddressingMode.ZP, value

        # Grouped arithmetic: the parenthesized expression is the first factor
        value = self._evaluate(self._parse_expr(first=group))
        return self._direct_mode(value, self._parse_index_suffix()), value

    def _try_label_operand(self, *extra_enders: TokenType) -> Optional[LabelRef]:
        """
        Consume a bare identifier that is not a bound variable.

        Only matches when the identifier stands alone, followed by an
        index suffix, a statement terminator or one of extra_enders.
        """
        token = self._current()
        if token.type != TokenType.LITERAL or self.evaluator.has_variable(token.value):
            return None

        following = self._peek()
        if following.is_terminator or following.type in (TokenType.COMMA, *extra_enders):
            self._advance()
            return LabelRef(token.value)
        return None

    def _parse_index_suffix(self) -> Optional[str]:
        """Parse an optional ',x' or ',y'; returns "X", "Y" or None."""
        if not self._match(TokenType.COMMA):
            return None
        token = self._current()
        if self._is_register(token, "X") or self._is_register(token, "Y"):
            self._advance()
            return token.value.upper()
        raise self._error(f"expected index register 'x' or 'y', found {self._describe(token)}")

    def _expect_register(self, register: str) -> None:
        token = self._current()
        if not self._is_register(token, register):
            raise self._error(
                f"expected register '{register.lower()}', found {self._describe(token)}"
            )
        self._advance()

    @staticmethod
    def _is_register(token: Token, register: str) -> bool:
        return token.type == TokenType.LITERAL and token.value.upper() == register

    @staticmethod
    def _direct_mode(value: NumericValue, index: Optional[str]) -> AddressingMode:
        """Zero-page for 8-bit values, absolute for 16-bit values."""
        if value.size > 8:
            return Parser._absolute_mode(index)
        if index == "X":
            return AddressingMode.ZPX
        if index == "Y":
            return AddressingMode.ZPY
        return AddressingMode.ZP

    @staticmethod
    def _absolute_mode(index: Optional[str]) -> AddressingMode:
        if index == "X":
            return AddressingMode.ABSX
        if index == "Y":
            return AddressingMode.ABSY
        return AddressingMode.ABS

    # =========================================================================
    # Arithmetic Expressions
    # =========================================================================
    # expr   := term (('+' | '-') expr)?
    # term   := factor (('*' | '/') term)?
    # factor := '(' expr ')' | number | variable
    #
    # first is an already-parsed leading factor, used when a parenthesized
    # operand turns out to be grouped arithmetic.
    # =========================================================================

    def _parse_expr(self, first: Optional[ExprNode] = None) -> ExprNode:
        left = self._parse_term(first)
        operator = self._match(TokenType.PLUS, TokenType.MINUS)
        if operator is None:
            return left
        right = self._parse_expr()
        return ExprNode.binary(operator.value, left, right, operator.location)

    def _parse_term(self, first: Optional[ExprNode] = None) -> ExprNode:
        left = first if first is not None else self._parse_factor()
        operator = self._match(TokenType.STAR, TokenType.SLASH)
        if operator is None:
            return left
        right = self._parse_term()
        return ExprNode.binary(operator.value, left, right, operator.location)

    def _parse_factor(self) -> ExprNode:
        token = self._current()

        if token.type == TokenType.LPAREN:
            self._advance()
            expr = self._parse_expr()
            self._expect(TokenType.RPAREN, "expected ')'")
            return expr

        if token.type in NUMBER_TYPES:
            self._advance()
            return ExprNode.number(canonicalize_number(token), token.location)

        if token.type == TokenType.LITERAL:
            self._advance()
            return ExprNode.placeholder(token.value, token.location)

        raise self._error(f"expected number, variable or '(', found {self._describe(token)}")

    def _evaluate(self, expr: ExprNode) -> NumericValue:
        return self.evaluator.evaluate(expr)

    # =========================================================================
    # Directives
    # =========================================================================

    def _parse_directive(self) -> Directive:
        token = self._advance()
        name = token.value.lower()
        location = token.location

        if name in UNSUPPORTED_DIRECTIVES:
            raise DirectiveError(f"directive '.{name}' is not supported", location)
        if name not in DIRECTIVE_NAMES:
            raise DirectiveError(f"unknown directive '.{token.value}'", location)

        kind = DIRECTIVE_NAMES[name]

        if kind == DirectiveKind.BYTE:
            directive = Directive(location, kind, values=self._parse_sequence(8))
        elif kind == DirectiveKind.DWORD:
            directive = Directive(location, kind, values=self._parse_sequence(16))
        elif kind == DirectiveKind.SEGMENT:
            segment = self._expect(TokenType.STRING, "expected segment name string")
            directive = Directive(location, kind, name=segment.value)
        elif kind == DirectiveKind.PROC:
            proc = self._expect(TokenType.LITERAL, "expected procedure name")
            directive = Directive(location, kind, name=proc.value)
        elif kind == DirectiveKind.RESERVE:
            count = self._expect(TokenType.DEC, "expected decimal byte count")
            directive = Directive(location, kind, count=int(count.value))
        else:
            directive = Directive(location, kind)

        self._expect_end_of_statement()
        return directive

    def _parse_sequence(self, width: int) -> list[NumericValue]:
        """
        Parse a list of strings and expressions up to the end of the line.

        Separating commas are optional, so an empty list and a trailing
        comma are accepted. Strings give one value per character for
        bytes, or one value per two characters (big-endian) for words.
        Expressions that do not fit width are rejected; narrower ones are
        promoted.
        """
        values: list[NumericValue] = []

        while not self._at_terminator():
            token = self._current()
            if token.type == TokenType.STRING:
                self._advance()
                values.extend(self._expand_string(token, width))
            else:
                value = self._evaluate(self._parse_expr())
                if value.size > width:
                    raise DirectiveError(
                        f"value {len(values) + 1} is {value.byte_count} bytes, "
                        f"{width // 8} was expected",
                        token.location,
                    )
                if not value.fits(width):
                    raise DirectiveError(
                        f"value {len(values) + 1} ({value.value}) does not fit in "
                        f"{width // 8} byte(s)",
                        token.location,
                    )
                values.append(value.promote(width))

            self._match(TokenType.COMMA)

        return values

    def _expand_string(self, token: Token, width: int) -> list[NumericValue]:
        codes = [ord(char) for char in token.value]
        if any(code > 0xFF for code in codes):
            raise DirectiveError(f'string "{token.value}" has non 8-bit characters', token.location)

        if width == 8:
            return [NumericValue(code, 8) for code in codes]

        if len(codes) % 2:
            raise DirectiveError(
                f'string "{token.value}" has odd length, cannot pack into words',
                token.location,
            )
        return [
            NumericValue((codes[i] << 8) | codes[i + 1], 16)
            for i in range(0, len(codes), 2)
        ]


# =============================================================================
# Convenience Functions
# =============================================================================

def parse_source(
    source: str,
    filename: str = "<input>",
    evaluator: Optional[ExpressionEvaluator] = None,
) -> list[Statement]:
    """
    Tokenize and parse source text.

    Args:
        source: Assembly source code
        filename: Filename for error messages
        evaluator: Variable table to use (a fresh one by default)

    Returns:
        List of parsed statements
    """
    tokens = list(Lexer(source, filename).tokenize())
    return Parser(tokens, evaluator, source=source).parse()


def format_statements(statements: list[Statement]) -> str:
    """Render statements one per line, for debugging."""
    return "\n".join(str(statement) for statement in statements)
