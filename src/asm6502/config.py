"""
Compiler Configuration
======================

Settings consumed by the code generator. A CompilerConfig is created by
the caller and passed explicitly to each Assembler, so two assemblers
never share an allow list.

Environment Variables
---------------------
CompilerConfig.from_env() reads these (all optional):

    ASM6502_NES            "0"/"false"/"no" disables NES layout directives
    ASM6502_ALLOW_ILLEGAL  "1"/"true"/"yes" enables unofficial opcodes
    ASM6502_ALLOW_LIST     comma separated opcodes, e.g. "$AB,0xDA,1A"
"""

import os
from dataclasses import dataclass, field


_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


def parse_opcode(text: str) -> int:
    """
    Parse an opcode byte written as "$DA", "0xDA" or "DA".

    Raises:
        ValueError: If the text is not a hex byte
    """
    cleaned = text.strip()
    if cleaned.startswith("$"):
        cleaned = cleaned[1:]
    elif cleaned.lower().startswith("0x"):
        cleaned = cleaned[2:]

    value = int(cleaned, 16)
    if not 0 <= value <= 0xFF:
        raise ValueError(f"opcode {text!r} is not a byte")
    return value


@dataclass
class CompilerConfig:
    """
    Code generation settings.

    Attributes:
        enable_nes: Accept the NES/ca65 layout directives
            (.segment, .proc, .endproc)
        allow_illegal: Permit unofficial opcodes at all
        allow_list: Unofficial opcode bytes that may be emitted when
            allow_illegal is set
    """
    enable_nes: bool = True
    allow_illegal: bool = False
    allow_list: set[int] = field(default_factory=set)

    def allow(self, *opcodes: int) -> None:
        """Add opcode bytes to the allow list."""
        for opcode in opcodes:
            self.allow_list.add(opcode & 0xFF)

    def is_allowed(self, opcode: int) -> bool:
        """True if an unofficial opcode byte may be emitted."""
        return self.allow_illegal and opcode in self.allow_list

    @classmethod
    def from_env(cls) -> "CompilerConfig":
        """
        Create a CompilerConfig from environment variables.

        Raises:
            ValueError: If ASM6502_ALLOW_LIST holds something other than
                hex opcode bytes
        """
        config = cls()

        if nes := os.environ.get("ASM6502_NES"):
            if nes.lower() in _FALSE_VALUES:
                config.enable_nes = False

        if illegal := os.environ.get("ASM6502_ALLOW_ILLEGAL"):
            config.allow_illegal = illegal.lower() in _TRUE_VALUES

        if allow_list := os.environ.get("ASM6502_ALLOW_LIST"):
            config.allow(*(
                parse_opcode(item) for item in allow_list.split(",") if item.strip()
            ))

        return config
