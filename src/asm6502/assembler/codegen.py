"""
6502 Code Generator
===================

This module turns parsed statements into a machine-code image. It runs
two passes over the statement list.

Pass 1 (address assignment)
---------------------------
Walks the statements with a running byte offset. Instructions advance
the offset by 1 + operand size of their addressing mode; .byte, .dword
and .res advance it by their payload. A label binds its name to the
current offset. Assignments, .segment, .proc and .endproc emit nothing.

Pass 2 (resolution and emission)
--------------------------------
Walks the statements again, replacing label references with addresses
(or branch displacements), choosing an opcode for each instruction and
emitting bytes. 16-bit values are emitted little-endian.

Branch Displacements
--------------------
The displacement is target - (address + length) and must lie within
-128..127. Forward displacements are emitted as-is; backward ones are
emitted as the distance from the operand byte back to the target, e.g.
a BNE at $14 to a label at $0B encodes as D0 0A.

Unofficial Opcodes
------------------
A (mnemonic, mode) pair may have official and unofficial encodings.
With illegal opcodes enabled, the first unofficial encoding whose byte
is on the allow list wins. Otherwise the official encoding is used, and
a pair with no permitted encoding is an IllegalOpcodeError.
"""

import logging
from typing import Optional

from asm6502.assembler.expressions import NumericValue, find_similar_names
from asm6502.assembler.opcodes import (
    AddressingMode,
    InstructionInfo,
    get_candidates,
    get_valid_modes,
)
from asm6502.assembler.parser import (
    Directive,
    DirectiveKind,
    Instruction,
    LabelDef,
    LabelRef,
    Statement,
)
from asm6502.config import CompilerConfig
from asm6502.errors import (
    AddressingModeError,
    BranchRangeError,
    DirectiveError,
    DuplicateSymbolError,
    ExpressionError,
    IllegalOpcodeError,
    SourceLocation,
    UndefinedSymbolError,
)

logger = logging.getLogger(__name__)


# Directives that only make sense for NES/ca65 style layouts
NES_DIRECTIVES = frozenset({DirectiveKind.SEGMENT, DirectiveKind.PROC, DirectiveKind.ENDPROC})


class CodeGenerator:
    """
    Two-pass label resolver and code emitter.

    Usage:
        codegen = CodeGenerator(CompilerConfig(allow_illegal=True))
        code = codegen.generate(statements)
        labels = codegen.get_symbols()
    """

    def __init__(self, config: Optional[CompilerConfig] = None):
        self.config = config or CompilerConfig()
        self._code = bytearray()
        self._labels: dict[str, int] = {}
        self._label_locations: dict[str, SourceLocation] = {}
        self._pc = 0

    def generate(self, statements: list[Statement]) -> bytes:
        """
        Generate the machine-code image for statements.

        Raises:
            AssemblerError: On the first resolution or legality error
        """
        self._code = bytearray()
        self._labels = {}
        self._label_locations = {}

        self._pass1(statements)
        logger.debug(f"pass 1: {len(self._labels)} labels, {self._pc} bytes")

        self._pass2(statements)
        logger.debug(f"pass 2: emitted {len(self._code)} bytes")

        return bytes(self._code)

    def get_code(self) -> bytes:
        return bytes(self._code)

    def get_symbols(self) -> dict[str, int]:
        """Label table built by the last pass 1."""
        return dict(self._labels)

    # =========================================================================
    # Pass 1: Address Assignment
    # =========================================================================

    def _pass1(self, statements: list[Statement]) -> None:
        self._pc = 0

        for stmt in statements:
            if isinstance(stmt, LabelDef):
                self._define_label(stmt)
            elif isinstance(stmt, Directive):
                self._check_directive(stmt)
            self._pc += statement_size(stmt)

    def _define_label(self, label: LabelDef) -> None:
        if label.name in self._labels:
            raise DuplicateSymbolError(
                label.name,
                label.location,
                original_location=self._label_locations[label.name],
            )
        self._labels[label.name] = self._pc
        self._label_locations[label.name] = label.location
        logger.debug(f"label {label.name} = ${self._pc:04X}")

    def _check_directive(self, directive: Directive) -> None:
        if directive.kind in NES_DIRECTIVES and not self.config.enable_nes:
            raise DirectiveError(
                f"directive '.{directive.kind.name.lower()}' requires NES support",
                directive.location,
                hint="enable NES directives in the compiler configuration",
            )

    # =========================================================================
    # Pass 2: Resolution and Emission
    # =========================================================================

    def _pass2(self, statements: list[Statement]) -> None:
        self._pc = 0

        for stmt in statements:
            if isinstance(stmt, Instruction):
                self._generate_instruction(stmt)
            elif isinstance(stmt, Directive):
                self._generate_directive(stmt)

    def _generate_instruction(self, inst: Instruction) -> None:
        info = self._select_opcode(inst)
        operand = self._resolve_operand(inst, info)

        self._emit_byte(info.opcode)
        if info.operand_size == 1:
            self._emit_byte(operand)
        elif info.operand_size == 2:
            self._emit_word(operand)

        self._pc += info.size

    def _generate_directive(self, directive: Directive) -> None:
        if directive.kind in (DirectiveKind.BYTE, DirectiveKind.DWORD):
            for value in directive.values:
                self._code.extend(value.to_bytes())
        elif directive.kind == DirectiveKind.RESERVE:
            self._code.extend(bytes(directive.count))
        self._pc += statement_size(directive)

    def _select_opcode(self, inst: Instruction) -> InstructionInfo:
        """Pick the encoding for an instruction under the current config."""
        candidates = get_candidates(inst.mnemonic, inst.mode)
        if not candidates:
            raise AddressingModeError(
                inst.mnemonic,
                str(inst.mode),
                inst.location,
                valid_modes=[str(mode) for mode in get_valid_modes(inst.mnemonic)],
            )

        for info in candidates:
            if not info.official and self.config.is_allowed(info.opcode):
                logger.debug(
                    f"{inst.location}: using unofficial opcode ${info.opcode:02X} "
                    f"for ({inst.mnemonic}, {inst.mode})"
                )
                return info

        for info in candidates:
            if info.official:
                return info

        raise IllegalOpcodeError(
            inst.mnemonic, str(inst.mode), candidates[0].opcode, inst.location
        )

    def _resolve_operand(self, inst: Instruction, info: InstructionInfo) -> Optional[int]:
        operand = inst.operand
        if operand is None:
            return None

        if isinstance(operand, LabelRef):
            address = self._lookup_label(operand, inst.location)
            if inst.mode == AddressingMode.REL:
                return self._branch_displacement(operand.name, address, info, inst.location)
            if info.operand_size == 1 and address > 0xFF:
                raise ExpressionError(
                    f"label '{operand.name}' at ${address:04X} does not fit in "
                    f"the 1-byte operand of ({inst.mnemonic}, {inst.mode})",
                    inst.location,
                )
            return address

        return self._check_width(operand, inst, info)

    def _lookup_label(self, ref: LabelRef, location: SourceLocation) -> int:
        if ref.name not in self._labels:
            raise UndefinedSymbolError(
                ref.name,
                kind="label",
                location=location,
                similar_symbols=find_similar_names(ref.name, self._labels),
            )
        return self._labels[ref.name]

    def _branch_displacement(
        self,
        target_name: str,
        target: int,
        info: InstructionInfo,
        location: SourceLocation,
    ) -> int:
        offset = target - (self._pc + info.size)
        if not -128 <= offset <= 127:
            raise BranchRangeError(target_name, offset, location)
        if offset >= 0:
            return offset
        return ~offset & 0xFF

    @staticmethod
    def _check_width(value: NumericValue, inst: Instruction, info: InstructionInfo) -> int:
        if value.byte_count > info.operand_size:
            raise ExpressionError(
                f"operand {value} is {value.byte_count} bytes, "
                f"({inst.mnemonic}, {inst.mode}) takes {info.operand_size}",
                inst.location,
            )
        if not value.fits(8 * info.operand_size):
            raise ExpressionError(
                f"operand {value} does not fit in the {info.operand_size}-byte "
                f"operand of ({inst.mnemonic}, {inst.mode})",
                inst.location,
            )
        return value.value

    # =========================================================================
    # Code Emission Helpers
    # =========================================================================

    def _emit_byte(self, value: int) -> None:
        self._code.append(value & 0xFF)

    def _emit_word(self, value: int) -> None:
        """Emit a 16-bit word (little-endian)."""
        self._code.append(value & 0xFF)
        self._code.append((value >> 8) & 0xFF)


def statement_size(stmt: Statement) -> int:
    """Number of bytes a statement occupies in the image."""
    if isinstance(stmt, Instruction):
        return 1 + stmt.mode.operand_size
    if isinstance(stmt, Directive):
        if stmt.kind == DirectiveKind.BYTE:
            return len(stmt.values)
        if stmt.kind == DirectiveKind.DWORD:
            return 2 * len(stmt.values)
        if stmt.kind == DirectiveKind.RESERVE:
            return stmt.count
    return 0
