# =============================================================================
# test_opcodes.py - Instruction Set Table Tests
# =============================================================================
# Tests for the 6502 opcode table and lookup helpers.
# =============================================================================

import pytest
from asm6502.assembler.opcodes import (
    AddressingMode,
    BRANCH_INSTRUCTIONS,
    OPCODE_TABLE,
    OPCODES_BY_BYTE,
    canonical_mnemonic,
    get_candidates,
    get_instruction_info,
    get_valid_modes,
    is_branch_instruction,
    is_official_opcode,
    is_valid_instruction,
)


class TestLookup:
    """Single encoding lookups."""

    @pytest.mark.parametrize("mnemonic,mode,opcode", [
        ("LDA", AddressingMode.IMM, 0xA9),
        ("LDA", AddressingMode.INDY, 0xB1),
        ("STA", AddressingMode.ABSY, 0x99),
        ("LDX", AddressingMode.ZPY, 0xB6),
        ("ASL", AddressingMode.IMPL, 0x0A),
        ("ASL", AddressingMode.ZPX, 0x16),
        ("JMP", AddressingMode.IND, 0x6C),
        ("BNE", AddressingMode.REL, 0xD0),
        ("BRK", AddressingMode.IMPL, 0x00),
    ])
    def test_official_opcodes(self, mnemonic, mode, opcode):
        info = get_instruction_info(mnemonic, mode)
        assert info.opcode == opcode
        assert info.official

    def test_lowercase_mnemonic(self):
        assert get_instruction_info("lda", AddressingMode.IMM).opcode == 0xA9

    def test_missing_combination(self):
        assert get_instruction_info("ASL", AddressingMode.INDY) is None
        assert get_candidates("ASL", AddressingMode.INDY) == ()

    def test_instruction_sizes(self):
        assert get_instruction_info("NOP", AddressingMode.IMPL).size == 1
        assert get_instruction_info("LDA", AddressingMode.ZP).size == 2
        assert get_instruction_info("JMP", AddressingMode.ABS).size == 3

    def test_valid_modes_in_table_order(self):
        assert get_valid_modes("JMP") == [AddressingMode.ABS, AddressingMode.IND]


class TestCandidates:
    """Pairs with more than one encoding."""

    def test_nop_official_first(self):
        opcodes = [info.opcode for info in get_candidates("NOP", AddressingMode.IMPL)]
        assert opcodes[0] == 0xEA
        assert set(opcodes[1:]) == {0x1A, 0x3A, 0x5A, 0x7A, 0xDA, 0xFA}

    def test_sbc_immediate(self):
        candidates = get_candidates("SBC", AddressingMode.IMM)
        assert [(c.opcode, c.official) for c in candidates] == [(0xE9, True), (0xEB, False)]

    def test_unofficial_only(self):
        candidates = get_candidates("LAX", AddressingMode.IMM)
        assert [c.opcode for c in candidates] == [0xAB]
        assert not candidates[0].official

    def test_alias(self):
        assert canonical_mnemonic("isb") == "ISC"
        assert get_instruction_info("ISB", AddressingMode.ABS).opcode == 0xEF
        assert is_valid_instruction("ISB")


class TestClassification:

    def test_branches(self):
        assert len(BRANCH_INSTRUCTIONS) == 8
        assert is_branch_instruction("bne")
        assert not is_branch_instruction("JMP")

    def test_valid_instruction(self):
        assert is_valid_instruction("lda")
        assert is_valid_instruction("KIL")
        assert not is_valid_instruction("FOO")

    def test_official_opcode(self):
        assert is_official_opcode(0xA9)
        assert not is_official_opcode(0xAB)


class TestTableCoverage:

    def test_official_count(self):
        official = [
            info for candidates in OPCODE_TABLE.values()
            for info in candidates if info.official
        ]
        assert len(official) == 151

    def test_every_byte_is_assigned_once(self):
        encodings = [info.opcode for candidates in OPCODE_TABLE.values() for info in candidates]
        assert len(encodings) == len(set(encodings)) == 256
        assert set(OPCODES_BY_BYTE) == set(range(256))

    def test_official_entries_come_first(self):
        for candidates in OPCODE_TABLE.values():
            flags = [info.official for info in candidates]
            assert flags == sorted(flags, reverse=True)
