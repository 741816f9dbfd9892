"""
CLI Error Reporting
===================

Maps exceptions raised while assembling to a message on stderr and a
process exit code.
"""

import sys
import traceback
from enum import IntEnum
from typing import NoReturn

import click

from asm6502.errors import Asm6502Error


class ExitCode(IntEnum):
    """Process exit codes of the asm6502 command."""
    SUCCESS = 0
    BUILD_ERROR = 1      # Parse, resolution or legality error
    INVALID_ARGS = 2     # Bad option value, unreadable input, unwritable output
    INTERNAL_ERROR = 3   # Bug in the assembler


def _describe_os_error(error: OSError) -> str:
    if error.filename is not None and error.strerror:
        return f"{error.strerror}: {error.filename}"
    return str(error)


def handle_cli_exception(
    error: Exception,
    verbose: bool = False,
    error_type: str | None = None
) -> NoReturn:
    """
    Report an exception on stderr and exit.

    Args:
        error: The exception that was raised
        verbose: Print the traceback of internal errors
        error_type: Prefix for assembler errors, e.g. "Assembly"

    Raises:
        SystemExit: Always
    """
    if isinstance(error, Asm6502Error):
        # Already carries "file:line:col: error:" and the source context
        label = f"{error_type} error" if error_type else "Error"
        click.echo(f"{label}: {error}", err=True)
        sys.exit(ExitCode.BUILD_ERROR)

    if isinstance(error, click.BadParameter):
        click.echo(f"Error: {error}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    if isinstance(error, OSError):
        click.echo(f"Error: {_describe_os_error(error)}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    click.echo(f"Internal error: {error}", err=True)
    if verbose:
        traceback.print_exc()
    sys.exit(ExitCode.INTERNAL_ERROR)
