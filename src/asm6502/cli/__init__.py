"""
asm6502 Command-Line Interface
==============================

- **asm6502**: assemble a source file to a binary, hex dump or parse
  listing

The tool is a Click application with unified error reporting and exit
codes (see asm6502.cli.errors).
"""

__all__ = ["asm6502"]
