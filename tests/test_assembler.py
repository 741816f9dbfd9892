# =============================================================================
# test_assembler.py - End-to-End Assembler Tests
# =============================================================================
# Full source-to-bytes tests through the Assembler interface.
#
# Test coverage includes:
#   - Complete programs with data, labels and branches
#   - Width-driven mode selection inside arithmetic operands
#   - Unofficial opcodes enabled through the configuration
#   - Output helpers: hex string, parse listing, binary file
#   - Error reporting format and state after a failed assembly
# =============================================================================

import pytest
from asm6502 import (
    AddressingModeError,
    Assembler,
    AssemblerError,
    CompilerConfig,
    assemble,
    assemble_file,
)
from asm6502.assembler.assembler import to_hex_string
from asm6502.assembler.expressions import NumericValue
from asm6502.errors import AssemblySyntaxError, IllegalOpcodeError


# =============================================================================
# Test Programs
# =============================================================================

HELLO_PROGRAM = """
    ; should be ignored
    ignored = 1 + %101 * ($ff - 3)      ; also ignored
    .byte "HELLO WORLD"
    also_ignored:                       ; offset = 11 = $0b
    .dword "LLHH", $00ff
    LDA ($ff), y
    NOP
    BNE also_ignored
"""

ILLEGAL_PROGRAM = """
    x = %010
    LAX #$a                             ; unofficial
    LDA ($f0 + (x * 8 - $1)), y
    NOP                                 ; emitted as $DA when allowed
"""

MODES_PROGRAM = """
    ; zp => 06 ae
    ASL $aa + 2 * %010

    ; impl => 0a
    ASL

    ; abs => 0e aa bb
    ASL $bbaa + 2 * %010 - %100

    ; zpx => 16 ae
    ASL $aa + 2 * %010, x

    ; absx => 1e ae 00
    ASL $00aa + 2 * %010, x
"""


def hex_of(source: str, config: CompilerConfig = None) -> str:
    asm = Assembler(config)
    asm.assemble_string(source)
    return asm.to_hex_string()


# =============================================================================
# Complete Programs
# =============================================================================

class TestPrograms:

    def test_hello_program(self):
        assert hex_of(HELLO_PROGRAM) == (
            "48 45 4c 4c 4f 20 57 4f 52 4c 44 4c 4c 48 48 ff 00 b1 ff ea d0 0a"
        )

    def test_hello_program_bytes(self):
        code = assemble(HELLO_PROGRAM)
        assert list(code) == [
            72, 69, 76, 76, 79, 32, 87, 79, 82, 76, 68,
            76, 76, 72, 72, 255, 0, 177, 255, 234, 208, 10,
        ]

    def test_illegal_program(self):
        config = CompilerConfig(allow_illegal=True, allow_list={0xAB, 0xDA})
        assert hex_of(ILLEGAL_PROGRAM, config) == "ab 0a b1 ff da"

    def test_output_is_deterministic(self):
        asm = Assembler()
        first = asm.assemble_string(HELLO_PROGRAM)
        second = asm.assemble_string(HELLO_PROGRAM)
        fresh = Assembler().assemble_string(HELLO_PROGRAM)
        assert first == second == fresh

    def test_assemble_with_config(self):
        config = CompilerConfig(allow_illegal=True, allow_list={0xAB})
        assert assemble("LAX #1", config) == b"\xab\x01"

    def test_illegal_program_rejected_without_config(self):
        with pytest.raises(IllegalOpcodeError):
            assemble(ILLEGAL_PROGRAM)

    def test_mode_selection_through_arithmetic(self):
        assert hex_of(MODES_PROGRAM) == "06 ae 0a 0e aa bb 16 ae 1e ae 00"

    def test_grouped_arithmetic_with_y_suffix_is_indirect(self):
        with pytest.raises(AddressingModeError) as excinfo:
            assemble("ASL ($aa + 2 * %010), y")
        assert excinfo.value.message == "instruction (ASL, INDY) does not exist"

    def test_grouped_arithmetic_without_suffix_is_zero_page(self):
        assert assemble("ASL ($aa + 2 * %010)") == bytes([0x06, 0xAE])

    def test_reset_vector_table(self):
        source = (
            "reset: SEI\n"
            "  JMP reset\n"
            "vectors: .dword $0000, $0000, $8000\n"
        )
        assert hex_of(source) == "78 4c 00 00 00 00 00 00 00 80"


# =============================================================================
# Assembler State
# =============================================================================

class TestAssemblerState:

    def test_symbols_and_variables(self):
        asm = Assembler()
        asm.assemble_string(HELLO_PROGRAM)
        assert asm.get_symbols() == {"also_ignored": 11}
        assert asm.get_variables() == {"ignored": NumericValue(1261, 8)}

    def test_statements(self):
        asm = Assembler()
        asm.assemble_string("start: NOP")
        assert [str(s) for s in asm.get_statements()] == ["LABEL start", "INSTR NOP IMPL"]

    def test_parse_string(self):
        asm = Assembler()
        asm.assemble_string('.segment "CODE"\n.res 2\nLDA #1')
        assert asm.get_parse_string() == 'SEGMENT "CODE"\nRESERVE 2\nINSTR LDA IMM $01'

    def test_failed_assembly_keeps_nothing(self):
        asm = Assembler()
        asm.assemble_string("NOP")
        with pytest.raises(AssemblerError):
            asm.assemble_string("NOP\nJMP missing")
        assert asm.get_code() == b""
        assert asm.get_symbols() == {}
        assert asm.get_statements() == []

    def test_variables_do_not_leak_between_runs(self):
        asm = Assembler()
        asm.assemble_string("x = 1")
        with pytest.raises(AssemblerError, match='variable "x" is undefined'):
            asm.assemble_string("LDA #x")

    def test_instances_have_separate_configs(self):
        permissive = Assembler(CompilerConfig(allow_illegal=True, allow_list={0x1A}))
        strict = Assembler()
        assert permissive.assemble_string("NOP") == b"\x1a"
        assert strict.assemble_string("NOP") == b"\xea"

    def test_to_hex_string(self):
        assert to_hex_string(b"\xa9\x41\x00") == "a9 41 00"
        assert to_hex_string(b"") == ""


# =============================================================================
# Files
# =============================================================================

class TestFiles:

    def test_assemble_file(self, tmp_path):
        source = tmp_path / "prog.s"
        source.write_text("LDA #$41\nRTS\n")
        assert assemble_file(source) == b"\xa9\x41\x60"

    def test_write_binary(self, tmp_path):
        asm = Assembler()
        asm.assemble_string("LDA #$41\nRTS")
        output = tmp_path / "out.bin"
        asm.write_binary(output)
        assert output.read_bytes() == b"\xa9\x41\x60"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            assemble_file(tmp_path / "missing.s")

    def test_error_names_file_and_line(self, tmp_path):
        source = tmp_path / "prog.s"
        source.write_text("NOP\nFOO\n")
        with pytest.raises(AssemblySyntaxError) as excinfo:
            assemble_file(source)
        lines = str(excinfo.value).splitlines()
        assert lines[0] == f"{source}:2:1: error: unknown instruction 'FOO'"
        assert lines[1] == "    FOO"
        assert lines[2] == "    ^"


# =============================================================================
# Error Messages
# =============================================================================

class TestErrorMessages:

    def test_undefined_variable_hint(self):
        with pytest.raises(AssemblerError) as excinfo:
            assemble("speed = 3\nLDA #sped + 1")
        assert "did you mean 'speed'?" in str(excinfo.value)

    def test_deep_expression_is_an_assembler_error(self):
        with pytest.raises(AssemblerError, match="too deeply nested"):
            assemble("LDA " + " + ".join(["0"] * 5000))

    @pytest.mark.parametrize("source,message", [
        (".dword $ffff + 1", "add overflow: left 65535, right 1"),
        ("LDA #1 - 2", "subtraction underflow: left 1, right 2"),
        (".dword $100 * $100", "multiplication overflow: left 256, right 256"),
        ("LDA #4 / 0", "cannot divide 4 by zero"),
    ])
    def test_arithmetic_errors(self, source, message):
        with pytest.raises(AssemblerError) as excinfo:
            assemble(source)
        assert excinfo.value.message == message
