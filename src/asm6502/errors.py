"""
6502 Assembler Error Hierarchy
==============================

This module defines the exception hierarchy for the assembler. All
exceptions inherit from Asm6502Error, so callers can catch every
assembler failure with a single except clause.

Exception Hierarchy
-------------------
Asm6502Error (base)
└── AssemblerError (source-level errors)
    ├── AssemblySyntaxError - lexical or syntactic errors
    ├── ExpressionError - overflow, underflow, division by zero, width
    ├── UndefinedSymbolError - reference to undefined variable or label
    ├── RecursiveDefinitionError - variable defined in terms of itself
    ├── DuplicateSymbolError - label declared twice
    ├── AddressingModeError - no opcode for (mnemonic, mode)
    ├── BranchRangeError - branch target too far
    ├── DirectiveError - error in an assembler directive
    └── IllegalOpcodeError - unofficial opcode not permitted

Error messages follow this format:
    filename:line:column: error: description
        source_line_text
        ^
    hint: suggestion for fixing (when available)

The pipeline is fail-fast: the first error raised stops assembly and is
propagated unchanged to the caller.
"""

from dataclasses import dataclass
from typing import Optional

# Source text is quoted under the error line with this indent
_INDENT = "    "


# =============================================================================
# Base Exception Class
# =============================================================================

class Asm6502Error(Exception):
    """
    Base exception for all assembler errors.

        try:
            assemble_file("game.s")
        except Asm6502Error as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    A position in source code, used for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.column}"


# =============================================================================
# Assembler Exceptions
# =============================================================================

class AssemblerError(Asm6502Error):
    """
    Base exception for errors tied to assembly source.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
        source_line: The source text at the error location (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Render the diagnostic, e.g.:

            game.s:4:5: error: variable "spd" is undefined
                LDA spd
                    ^
            hint: did you mean 'speed'?
        """
        prefix = f"{self.location}: " if self.location else ""
        lines = [f"{prefix}error: {self.message}"]

        if self.location is not None and self.source_line is not None:
            lines.append(_INDENT + self.source_line)
            if self.location.column >= 1:
                lines.append(_INDENT + " " * (self.location.column - 1) + "^")

        if self.hint:
            lines.append(f"hint: {self.hint}")

        return "\n".join(lines)


class AssemblySyntaxError(AssemblerError):
    """
    Syntax error in assembly source.

    Examples:
        - Unexpected character or token
        - Unterminated string literal
        - Missing closing parenthesis
        - Trailing tokens after a complete instruction
    """
    pass


class ExpressionError(AssemblerError):
    """
    Error while evaluating an arithmetic expression or fitting its result.

    Covers 16-bit overflow and underflow, division by zero, and operand
    values too wide for the slot they are placed in.
    """
    pass


class UndefinedSymbolError(AssemblerError):
    """
    Reference to an undefined variable or label.

    Variables must be assigned before use. Labels may be referenced
    before their declaration but must be declared somewhere in the
    program. Similar names are offered as a hint to catch typos.
    """

    def __init__(
        self,
        symbol: str,
        kind: str = "symbol",
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
        similar_symbols: Optional[list[str]] = None,
    ):
        self.symbol = symbol
        self.kind = kind
        self.similar_symbols = similar_symbols or []

        if not hint and self.similar_symbols:
            suggestions = ", ".join(f"'{s}'" for s in self.similar_symbols[:3])
            hint = f"did you mean {suggestions}?"

        super().__init__(
            f'{kind} "{symbol}" is undefined',
            location=location,
            hint=hint,
            source_line=source_line,
        )


class RecursiveDefinitionError(AssemblerError):
    """Variable whose definition refers back to itself, directly or not."""

    def __init__(
        self,
        symbol: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.symbol = symbol
        super().__init__(
            f'variable "{symbol}" has recursive definition',
            location=location,
            source_line=source_line,
        )


class DuplicateSymbolError(AssemblerError):
    """
    Label declared more than once.

    Includes the location of the first declaration as a hint when known.
    """

    def __init__(
        self,
        symbol: str,
        location: Optional[SourceLocation] = None,
        original_location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.symbol = symbol
        self.original_location = original_location

        hint = None
        if original_location:
            hint = f"'{symbol}' was first defined at {original_location}"

        super().__init__(
            f"duplicate label '{symbol}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class AddressingModeError(AssemblerError):
    """
    No opcode exists for a mnemonic in the requested addressing mode.

    This is how syntactically valid but hardware-invalid operands are
    rejected, for example ASL with indirect-Y addressing.
    """

    def __init__(
        self,
        mnemonic: str,
        mode: str,
        location: Optional[SourceLocation] = None,
        valid_modes: Optional[list[str]] = None,
        source_line: Optional[str] = None,
    ):
        self.mnemonic = mnemonic
        self.mode = mode
        self.valid_modes = valid_modes or []

        hint = None
        if self.valid_modes:
            hint = f"{mnemonic} supports: {', '.join(self.valid_modes)}"

        super().__init__(
            f"instruction ({mnemonic}, {mode}) does not exist",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class BranchRangeError(AssemblerError):
    """
    Branch target is out of range.

    6502 conditional branches carry a signed 8-bit displacement, so the
    target must lie within -128..+127 bytes of the following instruction.
    Invert the condition and branch over a JMP to reach further.
    """

    def __init__(
        self,
        target: str,
        offset: int,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.target = target
        self.offset = offset

        direction = "forward" if offset > 0 else "backward"
        hint = (
            f"branch offset is {offset}, but range is -128 to +127; "
            f"target is {abs(offset)} bytes {direction}"
        )

        super().__init__(
            f"branch target '{target}' out of range",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class DirectiveError(AssemblerError):
    """
    Error in an assembler directive.

    Examples:
        - Odd-length string in a .dword sequence
        - Value wider than the directive's element width
        - NES layout directive used with NES support disabled
        - Directive recognised but not supported (.macro, .include)
    """
    pass


class IllegalOpcodeError(AssemblerError):
    """
    Unofficial opcode rejected by the compiler configuration.

    Unofficial opcodes are only emitted when illegal opcodes are enabled
    and the specific opcode byte is on the allow list.
    """

    def __init__(
        self,
        mnemonic: str,
        mode: str,
        opcode: int,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.mnemonic = mnemonic
        self.mode = mode
        self.opcode = opcode
        super().__init__(
            f"illegal opcode ${opcode:02X} ({mnemonic}, {mode}) is not allowed",
            location=location,
            hint=f"enable illegal opcodes and allow ${opcode:02X}",
            source_line=source_line,
        )
