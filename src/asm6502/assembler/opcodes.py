"""
6502 Instruction Set Definition
===============================

This module defines the NMOS 6502 instruction set: every documented
opcode plus the stable unofficial ("illegal") opcodes implemented by the
physical chip, as used by NES and C64 software.

The 6502 is little-endian: 16-bit operands are stored low byte first.

Addressing Modes
----------------

| Mode | Syntax     | Operand bytes | Example            |
|------|------------|---------------|--------------------|
| IMPL | (none)     | 0             | NOP, ASL (A)       |
| REL  | label      | 1             | BNE loop           |
| IMM  | #value     | 1             | LDA #$41           |
| IND  | (addr)     | 2             | JMP ($fffc)        |
| INDX | (zp,x)     | 1             | LDA ($20,x)        |
| INDY | (zp),y     | 1             | LDA ($20),y        |
| ABS  | addr       | 2             | LDA $0200          |
| ABSX | addr,x     | 2             | LDA $0200,x        |
| ABSY | addr,y     | 2             | LDA $0200,y        |
| ZP   | zp         | 1             | LDA $20            |
| ZPX  | zp,x       | 1             | LDA $20,x          |
| ZPY  | zp,y       | 1             | LDX $20,y          |

Accumulator forms (ASL, LSR, ROL, ROR without operand) are encoded as
IMPL.

Unofficial Opcodes
------------------
Some (mnemonic, mode) pairs have several encodings. NOP implied is $EA
officially but $1A, $3A, $5A, $7A, $DA and $FA behave the same; SBC
immediate is $E9 officially and $EB unofficially. The code generator
picks among the candidates according to the compiler configuration.

Reference
---------
- MOS MCS6500 Microcomputer Family Programming Manual
- NESdev wiki, "CPU unofficial opcodes"
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


# =============================================================================
# Addressing Mode Enumeration
# =============================================================================

class AddressingMode(Enum):
    """6502 addressing modes."""
    IMPL = auto()   # Implied / accumulator
    REL = auto()    # Branch displacement (signed 8-bit)
    IMM = auto()    # #value
    IND = auto()    # (addr)
    INDX = auto()   # (zp,x)
    INDY = auto()   # (zp),y
    ABS = auto()    # addr
    ABSX = auto()   # addr,x
    ABSY = auto()   # addr,y
    ZP = auto()     # zp
    ZPX = auto()    # zp,x
    ZPY = auto()    # zp,y

    def __str__(self) -> str:
        return self.name

    @property
    def operand_size(self) -> int:
        """Operand size in bytes (0, 1 or 2)."""
        return _OPERAND_SIZES[self]


_OPERAND_SIZES = {
    AddressingMode.IMPL: 0,
    AddressingMode.REL: 1,
    AddressingMode.IMM: 1,
    AddressingMode.IND: 2,
    AddressingMode.INDX: 1,
    AddressingMode.INDY: 1,
    AddressingMode.ABS: 2,
    AddressingMode.ABSX: 2,
    AddressingMode.ABSY: 2,
    AddressingMode.ZP: 1,
    AddressingMode.ZPX: 1,
    AddressingMode.ZPY: 1,
}


# =============================================================================
# Instruction Information
# =============================================================================

@dataclass(frozen=True)
class InstructionInfo:
    """
    A single opcode encoding.

    Attributes:
        mnemonic: Canonical mnemonic (e.g. "ISC", never the alias "ISB")
        mode: Addressing mode
        opcode: Opcode byte
        official: False for unofficial opcodes
    """
    mnemonic: str
    mode: AddressingMode
    opcode: int
    official: bool = True

    @property
    def operand_size(self) -> int:
        return self.mode.operand_size

    @property
    def size(self) -> int:
        """Total instruction size in bytes."""
        return 1 + self.mode.operand_size

    def __repr__(self) -> str:
        kind = "official" if self.official else "unofficial"
        return f"InstructionInfo({self.mnemonic}, {self.mode}, ${self.opcode:02X}, {kind})"


# =============================================================================
# Opcode Table
# =============================================================================
# Rows list the opcode for each supported mode of a mnemonic. Unofficial
# rows may repeat a mode with several opcodes.
# =============================================================================

IMPL = AddressingMode.IMPL
REL = AddressingMode.REL
IMM = AddressingMode.IMM
IND = AddressingMode.IND
INDX = AddressingMode.INDX
INDY = AddressingMode.INDY
ABS = AddressingMode.ABS
ABSX = AddressingMode.ABSX
ABSY = AddressingMode.ABSY
ZP = AddressingMode.ZP
ZPX = AddressingMode.ZPX
ZPY = AddressingMode.ZPY

_OFFICIAL: dict[str, dict[AddressingMode, int]] = {
    # Load / store
    "LDA": {IMM: 0xA9, ZP: 0xA5, ZPX: 0xB5, ABS: 0xAD, ABSX: 0xBD, ABSY: 0xB9, INDX: 0xA1, INDY: 0xB1},
    "LDX": {IMM: 0xA2, ZP: 0xA6, ZPY: 0xB6, ABS: 0xAE, ABSY: 0xBE},
    "LDY": {IMM: 0xA0, ZP: 0xA4, ZPX: 0xB4, ABS: 0xAC, ABSX: 0xBC},
    "STA": {ZP: 0x85, ZPX: 0x95, ABS: 0x8D, ABSX: 0x9D, ABSY: 0x99, INDX: 0x81, INDY: 0x91},
    "STX": {ZP: 0x86, ZPY: 0x96, ABS: 0x8E},
    "STY": {ZP: 0x84, ZPX: 0x94, ABS: 0x8C},

    # Arithmetic / logic
    "ADC": {IMM: 0x69, ZP: 0x65, ZPX: 0x75, ABS: 0x6D, ABSX: 0x7D, ABSY: 0x79, INDX: 0x61, INDY: 0x71},
    "SBC": {IMM: 0xE9, ZP: 0xE5, ZPX: 0xF5, ABS: 0xED, ABSX: 0xFD, ABSY: 0xF9, INDX: 0xE1, INDY: 0xF1},
    "AND": {IMM: 0x29, ZP: 0x25, ZPX: 0x35, ABS: 0x2D, ABSX: 0x3D, ABSY: 0x39, INDX: 0x21, INDY: 0x31},
    "ORA": {IMM: 0x09, ZP: 0x05, ZPX: 0x15, ABS: 0x0D, ABSX: 0x1D, ABSY: 0x19, INDX: 0x01, INDY: 0x11},
    "EOR": {IMM: 0x49, ZP: 0x45, ZPX: 0x55, ABS: 0x4D, ABSX: 0x5D, ABSY: 0x59, INDX: 0x41, INDY: 0x51},
    "CMP": {IMM: 0xC9, ZP: 0xC5, ZPX: 0xD5, ABS: 0xCD, ABSX: 0xDD, ABSY: 0xD9, INDX: 0xC1, INDY: 0xD1},
    "CPX": {IMM: 0xE0, ZP: 0xE4, ABS: 0xEC},
    "CPY": {IMM: 0xC0, ZP: 0xC4, ABS: 0xCC},
    "BIT": {ZP: 0x24, ABS: 0x2C},

    # Read-modify-write
    "ASL": {IMPL: 0x0A, ZP: 0x06, ZPX: 0x16, ABS: 0x0E, ABSX: 0x1E},
    "LSR": {IMPL: 0x4A, ZP: 0x46, ZPX: 0x56, ABS: 0x4E, ABSX: 0x5E},
    "ROL": {IMPL: 0x2A, ZP: 0x26, ZPX: 0x36, ABS: 0x2E, ABSX: 0x3E},
    "ROR": {IMPL: 0x6A, ZP: 0x66, ZPX: 0x76, ABS: 0x6E, ABSX: 0x7E},
    "INC": {ZP: 0xE6, ZPX: 0xF6, ABS: 0xEE, ABSX: 0xFE},
    "DEC": {ZP: 0xC6, ZPX: 0xD6, ABS: 0xCE, ABSX: 0xDE},

    # Branches
    "BPL": {REL: 0x10},
    "BMI": {REL: 0x30},
    "BVC": {REL: 0x50},
    "BVS": {REL: 0x70},
    "BCC": {REL: 0x90},
    "BCS": {REL: 0xB0},
    "BNE": {REL: 0xD0},
    "BEQ": {REL: 0xF0},

    # Jumps and subroutines
    "JMP": {ABS: 0x4C, IND: 0x6C},
    "JSR": {ABS: 0x20},
    "RTS": {IMPL: 0x60},
    "RTI": {IMPL: 0x40},
    "BRK": {IMPL: 0x00},

    # Register transfers, stack, flags
    "TAX": {IMPL: 0xAA}, "TXA": {IMPL: 0x8A}, "TAY": {IMPL: 0xA8}, "TYA": {IMPL: 0x98},
    "TSX": {IMPL: 0xBA}, "TXS": {IMPL: 0x9A},
    "INX": {IMPL: 0xE8}, "INY": {IMPL: 0xC8}, "DEX": {IMPL: 0xCA}, "DEY": {IMPL: 0x88},
    "PHA": {IMPL: 0x48}, "PHP": {IMPL: 0x08}, "PLA": {IMPL: 0x68}, "PLP": {IMPL: 0x28},
    "CLC": {IMPL: 0x18}, "SEC": {IMPL: 0x38}, "CLI": {IMPL: 0x58}, "SEI": {IMPL: 0x78},
    "CLD": {IMPL: 0xD8}, "SED": {IMPL: 0xF8}, "CLV": {IMPL: 0xB8},
    "NOP": {IMPL: 0xEA},
}

_UNOFFICIAL: dict[str, dict[AddressingMode, tuple[int, ...]]] = {
    # Read-modify-write combined with ALU operation
    "SLO": {ZP: (0x07,), ZPX: (0x17,), ABS: (0x0F,), ABSX: (0x1F,), ABSY: (0x1B,), INDX: (0x03,), INDY: (0x13,)},
    "RLA": {ZP: (0x27,), ZPX: (0x37,), ABS: (0x2F,), ABSX: (0x3F,), ABSY: (0x3B,), INDX: (0x23,), INDY: (0x33,)},
    "SRE": {ZP: (0x47,), ZPX: (0x57,), ABS: (0x4F,), ABSX: (0x5F,), ABSY: (0x5B,), INDX: (0x43,), INDY: (0x53,)},
    "RRA": {ZP: (0x67,), ZPX: (0x77,), ABS: (0x6F,), ABSX: (0x7F,), ABSY: (0x7B,), INDX: (0x63,), INDY: (0x73,)},
    "DCP": {ZP: (0xC7,), ZPX: (0xD7,), ABS: (0xCF,), ABSX: (0xDF,), ABSY: (0xDB,), INDX: (0xC3,), INDY: (0xD3,)},
    "ISC": {ZP: (0xE7,), ZPX: (0xF7,), ABS: (0xEF,), ABSX: (0xFF,), ABSY: (0xFB,), INDX: (0xE3,), INDY: (0xF3,)},

    # Combined loads and stores
    "SAX": {ZP: (0x87,), ZPY: (0x97,), ABS: (0x8F,), INDX: (0x83,)},
    "LAX": {IMM: (0xAB,), ZP: (0xA7,), ZPY: (0xB7,), ABS: (0xAF,), ABSY: (0xBF,), INDX: (0xA3,), INDY: (0xB3,)},

    # Immediate-only ALU operations
    "ANC": {IMM: (0x0B, 0x2B)},
    "ALR": {IMM: (0x4B,)},
    "ARR": {IMM: (0x6B,)},
    "XAA": {IMM: (0x8B,)},
    "AXS": {IMM: (0xCB,)},
    "SBC": {IMM: (0xEB,)},

    # High-byte stores (unstable on some revisions)
    "AHX": {ABSY: (0x9F,), INDY: (0x93,)},
    "SHY": {ABSX: (0x9C,)},
    "SHX": {ABSY: (0x9E,)},
    "TAS": {ABSY: (0x9B,)},
    "LAS": {ABSY: (0xBB,)},

    # Multi-byte NOPs
    "NOP": {
        IMPL: (0x1A, 0x3A, 0x5A, 0x7A, 0xDA, 0xFA),
        IMM: (0x80, 0x82, 0x89, 0xC2, 0xE2),
        ZP: (0x04, 0x44, 0x64),
        ZPX: (0x14, 0x34, 0x54, 0x74, 0xD4, 0xF4),
        ABS: (0x0C,),
        ABSX: (0x1C, 0x3C, 0x5C, 0x7C, 0xDC, 0xFC),
    },

    # Processor lock-up
    "KIL": {IMPL: (0x02, 0x12, 0x22, 0x32, 0x42, 0x52, 0x62, 0x72, 0x92, 0xB2, 0xD2, 0xF2)},
}

# Alternative names used by other assemblers
MNEMONIC_ALIASES: dict[str, str] = {
    "ISB": "ISC",
    "DCM": "DCP",
    "ASR": "ALR",
    "ANE": "XAA",
    "SBX": "AXS",
    "SHA": "AHX",
    "AXA": "AHX",
    "LAR": "LAS",
    "SHS": "TAS",
    "JAM": "KIL",
}


def _build_table() -> dict[tuple[str, AddressingMode], tuple[InstructionInfo, ...]]:
    table: dict[tuple[str, AddressingMode], list[InstructionInfo]] = {}

    for mnemonic, modes in _OFFICIAL.items():
        for mode, opcode in modes.items():
            table.setdefault((mnemonic, mode), []).append(
                InstructionInfo(mnemonic, mode, opcode)
            )

    for mnemonic, modes in _UNOFFICIAL.items():
        for mode, opcodes in modes.items():
            for opcode in opcodes:
                table.setdefault((mnemonic, mode), []).append(
                    InstructionInfo(mnemonic, mode, opcode, official=False)
                )

    return {key: tuple(entries) for key, entries in table.items()}


# Key: (canonical mnemonic, mode). Value: candidate encodings, official first.
OPCODE_TABLE: dict[tuple[str, AddressingMode], tuple[InstructionInfo, ...]] = _build_table()


# =============================================================================
# Instruction Set Reference Lists
# =============================================================================

MNEMONICS: frozenset[str] = frozenset(
    {mnemonic for mnemonic, _ in OPCODE_TABLE} | set(MNEMONIC_ALIASES)
)

BRANCH_INSTRUCTIONS: frozenset[str] = frozenset({
    "BPL", "BMI", "BVC", "BVS", "BCC", "BCS", "BNE", "BEQ",
})

# Opcode byte -> encoding, for every opcode the chip implements
OPCODES_BY_BYTE: dict[int, InstructionInfo] = {
    info.opcode: info
    for candidates in OPCODE_TABLE.values()
    for info in candidates
}


# =============================================================================
# Lookup Functions
# =============================================================================

def canonical_mnemonic(mnemonic: str) -> str:
    """Uppercase a mnemonic and resolve aliases (ISB -> ISC)."""
    upper = mnemonic.upper()
    return MNEMONIC_ALIASES.get(upper, upper)


def get_candidates(mnemonic: str, mode: AddressingMode) -> tuple[InstructionInfo, ...]:
    """
    All encodings for a mnemonic in an addressing mode.

    Returns:
        Candidates with the official encoding (if any) first; an empty
        tuple if the combination does not exist
    """
    return OPCODE_TABLE.get((canonical_mnemonic(mnemonic), mode), ())


def get_instruction_info(mnemonic: str, mode: AddressingMode) -> Optional[InstructionInfo]:
    """
    Look up the preferred encoding of a mnemonic and addressing mode.

    Returns:
        The official encoding when one exists, otherwise the first
        unofficial one; None if the combination is invalid
    """
    candidates = get_candidates(mnemonic, mode)
    return candidates[0] if candidates else None


def get_valid_modes(mnemonic: str) -> list[AddressingMode]:
    """All addressing modes supported by a mnemonic, in table order."""
    mnemonic = canonical_mnemonic(mnemonic)
    return [mode for (m, mode) in OPCODE_TABLE if m == mnemonic]


def is_valid_instruction(mnemonic: str) -> bool:
    return mnemonic.upper() in MNEMONICS


def is_branch_instruction(mnemonic: str) -> bool:
    return mnemonic.upper() in BRANCH_INSTRUCTIONS


def is_official_opcode(opcode: int) -> bool:
    """True if the byte is a documented 6502 opcode."""
    info = OPCODES_BY_BYTE.get(opcode)
    return info is not None and info.official
