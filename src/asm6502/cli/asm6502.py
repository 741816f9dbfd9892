"""
asm6502 - 6502 Assembler Command-Line Interface
===============================================

Usage Examples
--------------
Assemble to ./a.bin:
    $ asm6502 game.s

Choose the output file:
    $ asm6502 game.s game.bin

Print the machine code as hex, or the parsed statements:
    $ asm6502 game.s hex
    $ asm6502 game.s parse

Allow specific unofficial opcodes:
    $ asm6502 --allow-illegal --allow '$AB' --allow '$DA' game.s hex
"""

import logging
from pathlib import Path
from typing import Optional

import click

from asm6502 import __version__
from asm6502.assembler import Assembler
from asm6502.cli.errors import handle_cli_exception
from asm6502.config import CompilerConfig, parse_opcode

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT = Path("a.bin")
MODES = ("hex", "parse")


def _parse_allow_list(ctx: click.Context, param: click.Parameter, values: tuple[str, ...]) -> tuple[int, ...]:
    opcodes = []
    for value in values:
        try:
            opcodes.append(parse_opcode(value))
        except ValueError:
            raise click.BadParameter(f"{value!r} is not an opcode byte (use $DA, 0xDA or DA)")
    return tuple(opcodes)


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.argument("output", required=False)
@click.argument(
    "mode",
    required=False,
    type=click.Choice(MODES, case_sensitive=False),
)
@click.option(
    "--allow-illegal",
    is_flag=True,
    help="Permit unofficial opcodes that are on the allow list",
)
@click.option(
    "--allow",
    "allow_list",
    multiple=True,
    callback=_parse_allow_list,
    metavar="OPCODE",
    help="Add an unofficial opcode byte to the allow list (can be repeated)",
)
@click.option(
    "--no-nes",
    is_flag=True,
    help="Reject the .segment, .proc and .endproc directives",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="asm6502")
def main(
    input_file: Path,
    output: Optional[str],
    mode: Optional[str],
    allow_illegal: bool,
    allow_list: tuple[int, ...],
    no_nes: bool,
    verbose: bool,
) -> None:
    """
    Assemble 6502 source code.

    INPUT_FILE is the assembly source. OUTPUT is the binary to write
    (default ./a.bin). MODE "hex" prints the machine code as hex and
    "parse" prints the parsed statements instead of writing a file; it
    may also be given in place of OUTPUT.

    \b
    Examples:
        asm6502 game.s              # Writes ./a.bin
        asm6502 game.s game.bin     # Writes game.bin
        asm6502 game.s hex          # Prints "a9 41 ..."
    """
    setup_logging(verbose)

    if mode is None and output is not None and output.lower() in MODES:
        mode, output = output.lower(), None

    try:
        config = CompilerConfig.from_env()
    except ValueError as e:
        raise click.UsageError(f"invalid ASM6502_ALLOW_LIST: {e}")

    if allow_illegal:
        config.allow_illegal = True
    config.allow(*allow_list)
    if no_nes:
        config.enable_nes = False

    asm = Assembler(config, verbose=verbose)

    try:
        asm.assemble_file(input_file)

        if mode == "hex":
            click.echo(asm.to_hex_string())
        elif mode == "parse":
            click.echo(asm.get_parse_string())
        else:
            output_file = Path(output) if output else DEFAULT_OUTPUT
            asm.write_binary(output_file)
            click.echo(f"Binary generated at {output_file}")

        logger.debug(f"{len(asm.get_code())} bytes, {len(asm.get_symbols())} labels")

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Assembly")


if __name__ == "__main__":
    main()
