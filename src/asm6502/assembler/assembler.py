"""
6502 Assembler - Main Interface
===============================

This module provides the Assembler class, the primary interface for
turning 6502 source into a machine-code image. It coordinates the
lexer, parser and code generator.

Example Usage
-------------
>>> from asm6502.assembler import Assembler
>>> asm = Assembler()
>>> asm.assemble_string('''
... start:
...     LDA #$41
...     BNE start
... ''')
b'\\xa9A\\xd0\\x03'
>>> asm.to_hex_string()
'a9 41 d0 03'
>>> asm.write_binary("a.bin")

Command-Line Usage
------------------
    $ asm6502 game.s game.bin
    $ asm6502 game.s hex
    $ asm6502 game.s parse
"""

import logging
from pathlib import Path
from typing import Optional

from asm6502.assembler.codegen import CodeGenerator
from asm6502.assembler.expressions import ExpressionEvaluator, NumericValue
from asm6502.assembler.parser import Statement, format_statements, parse_source
from asm6502.config import CompilerConfig

logger = logging.getLogger(__name__)


class Assembler:
    """
    6502 assembler.

    Each instance owns its configuration, so several assemblers with
    different illegal-opcode policies can coexist.

    Attributes:
        config: Compiler configuration used for code generation
    """

    def __init__(self, config: Optional[CompilerConfig] = None, verbose: bool = False):
        """
        Initialize the assembler.

        Args:
            config: Compiler configuration (defaults: NES directives on,
                illegal opcodes off)
            verbose: Log progress messages at INFO level
        """
        self.config = config or CompilerConfig()
        self._verbose = verbose
        self._codegen = CodeGenerator(self.config)
        self._evaluator = ExpressionEvaluator()
        self._statements: list[Statement] = []
        self._symbols: dict[str, int] = {}
        self._code = b""

    def assemble_string(self, source: str, filename: str = "<input>") -> bytes:
        """
        Assemble source code from a string.

        Args:
            source: Assembly source code
            filename: Virtual filename for error messages

        Returns:
            Generated machine code

        Raises:
            AssemblerError: If assembly fails; no code is kept
        """
        self._evaluator = ExpressionEvaluator()
        self._statements = []
        self._symbols = {}
        self._code = b""

        statements = parse_source(source, filename, self._evaluator)
        self._log(f"Parsed {len(statements)} statements")

        code = self._codegen.generate(statements)
        self._log(f"Generated {len(code)} bytes of code")

        self._statements = statements
        self._symbols = self._codegen.get_symbols()
        self._code = code
        return code

    def assemble_file(self, filepath: str | Path) -> bytes:
        """
        Assemble source code from a file.

        Raises:
            AssemblerError: If assembly fails
            FileNotFoundError: If the source file does not exist
        """
        filepath = Path(filepath)
        self._log(f"Assembling {filepath}...")
        return self.assemble_string(filepath.read_text(), str(filepath))

    # =========================================================================
    # Output Methods
    # =========================================================================

    def get_code(self) -> bytes:
        return self._code

    def get_statements(self) -> list[Statement]:
        return list(self._statements)

    def get_symbols(self) -> dict[str, int]:
        """Label name to address."""
        return dict(self._symbols)

    def get_variables(self) -> dict[str, NumericValue]:
        """
        Variable name to value, using the final definition of each.

        Raises:
            ExpressionError: If a variable that was never used overflows
        """
        return {
            name: self._evaluator.evaluate(expr)
            for name, expr in self._evaluator.variables.items()
        }

    def to_hex_string(self) -> str:
        """Lowercase, space separated rendering of the code, e.g. "a9 41"."""
        return to_hex_string(self._code)

    def get_parse_string(self) -> str:
        """One line per parsed statement."""
        return format_statements(self._statements)

    def write_binary(self, filepath: str | Path) -> None:
        """Write the raw machine code to filepath."""
        Path(filepath).write_bytes(self._code)
        self._log(f"Wrote {len(self._code)} bytes to {filepath}")

    def _log(self, message: str) -> None:
        if self._verbose:
            logger.info(message)
        else:
            logger.debug(message)


def to_hex_string(code: bytes) -> str:
    return " ".join(f"{byte:02x}" for byte in code)


# =============================================================================
# Convenience Functions
# =============================================================================

def assemble(
    source: str,
    config: Optional[CompilerConfig] = None,
    filename: str = "<input>",
) -> bytes:
    """
    Assemble source code with a throwaway Assembler.

    Raises:
        AssemblerError: If assembly fails
    """
    return Assembler(config).assemble_string(source, filename)


def assemble_file(filepath: str | Path, config: Optional[CompilerConfig] = None) -> bytes:
    """
    Assemble a file with a throwaway Assembler.

    Raises:
        AssemblerError: If assembly fails
    """
    return Assembler(config).assemble_file(filepath)
