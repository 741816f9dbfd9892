"""
asm6502 - Assembler for the MOS 6502
====================================

This package assembles 6502 source code into raw machine-code images,
targeting the 6502 family including NES-style dialect extensions and
the unofficial opcodes implemented by the NMOS chip.

Main Components
---------------
- **assembler**: Lexer, parser, expression evaluator, opcode registry
    and two-pass code generator
- **config**: CompilerConfig (NES directives, illegal opcode policy)
- **cli**: The asm6502 command-line tool

Quick Start
-----------
    >>> from asm6502 import Assembler
    >>> asm = Assembler()
    >>> code = asm.assemble_file("game.s")
    >>> asm.write_binary("game.bin")

Or use the command-line tool:
    $ asm6502 game.s game.bin
    $ asm6502 game.s hex
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from asm6502.assembler import Assembler, assemble, assemble_file
from asm6502.config import CompilerConfig
from asm6502.errors import (
    Asm6502Error,
    AssemblerError,
    AssemblySyntaxError,
    ExpressionError,
    UndefinedSymbolError,
    RecursiveDefinitionError,
    DuplicateSymbolError,
    AddressingModeError,
    BranchRangeError,
    DirectiveError,
    IllegalOpcodeError,
    SourceLocation,
)

__all__ = [
    "__version__",
    "Assembler",
    "assemble",
    "assemble_file",
    "CompilerConfig",
    "Asm6502Error",
    "AssemblerError",
    "AssemblySyntaxError",
    "ExpressionError",
    "UndefinedSymbolError",
    "RecursiveDefinitionError",
    "DuplicateSymbolError",
    "AddressingModeError",
    "BranchRangeError",
    "DirectiveError",
    "IllegalOpcodeError",
    "SourceLocation",
]
