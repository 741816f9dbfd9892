"""
6502 Assembler
==============

This package turns 6502 assembly source into a byte-exact machine-code
image, with support for NES/ca65 style layout directives and for the
unofficial opcodes of the NMOS 6502.

Main Components
---------------
- **Assembler**: Orchestrates the pipeline and exposes the outputs
- **Lexer**: Tokenizes source text
- **Parser**: Builds statements and resolves addressing modes
- **ExpressionEvaluator**: Checked 16-bit arithmetic over variables
- **CodeGenerator**: Two-pass label resolution and byte emission

Assembly Process
----------------
1. **Parsing (Lexer + Parser)**:
   - Tokenize source
   - Record variable assignments in declaration order
   - Evaluate operands and pick addressing modes by operand width

2. **Code Generation (CodeGenerator)** (two-pass):
   - Pass 1: Assign addresses to labels
   - Pass 2: Substitute labels, compute branch displacements, select
     opcodes and emit little-endian bytes

Example Usage
-------------
>>> from asm6502.assembler import Assembler
>>> from asm6502.config import CompilerConfig
>>> asm = Assembler(CompilerConfig(allow_illegal=True, allow_list={0xAB}))
>>> asm.assemble_string("LAX #$0a")
b'\\xab\\n'
"""

from asm6502.assembler.assembler import Assembler, assemble, assemble_file, to_hex_string
from asm6502.assembler.codegen import CodeGenerator
from asm6502.assembler.expressions import (
    ExpressionEvaluator,
    ExprNode,
    ExprNodeType,
    NumericValue,
    canonicalize_number,
)
from asm6502.assembler.lexer import Lexer, Token, TokenType, tokenize
from asm6502.assembler.opcodes import AddressingMode, InstructionInfo
from asm6502.assembler.parser import (
    Assignment,
    Directive,
    DirectiveKind,
    Instruction,
    LabelDef,
    LabelRef,
    Parser,
    Statement,
    format_statements,
    parse_source,
)

__all__ = [
    "Assembler",
    "assemble",
    "assemble_file",
    "to_hex_string",
    "CodeGenerator",
    "ExpressionEvaluator",
    "ExprNode",
    "ExprNodeType",
    "NumericValue",
    "canonicalize_number",
    "Lexer",
    "Token",
    "TokenType",
    "tokenize",
    "AddressingMode",
    "InstructionInfo",
    "Assignment",
    "Directive",
    "DirectiveKind",
    "Instruction",
    "LabelDef",
    "LabelRef",
    "Parser",
    "Statement",
    "format_statements",
    "parse_source",
]
