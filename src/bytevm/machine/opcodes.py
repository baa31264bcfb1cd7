"""
ByteVM Instruction Set Definition
=================================

Opcode values, operand layouts and instruction sizes for both machine
variants.

Operand Kinds
-------------
Each operand is one byte fetched from the program right after the
opcode, advancing PC:

1. **WIDTH**: Width tag, $01 byte or $02 word (WORD variant only)
   - Example: INP word -> $01 $02
2. **IMMEDIATE**: Literal value
   - Example: ADD #10 -> $05 $0A
3. **REGISTER**: Register id (A=1 ... I=7)
4. **ADDRESS**: Memory address or jump target
   - Example: GET A,$32 -> $04 $01 $32

Instruction Summary
-------------------
    $00 NOP                 $07 INC [width]
    $01 INP [width]         $08 DEC
    $02 OUT [width]         $09 JMP addr
    $03 PUT reg,addr        $0A JMZ addr
    $04 GET reg,addr        $0B JMN addr
    $05 ADD #imm            $FF END
    $06 SUB #imm

The [width] operand exists only on the WORD variant.

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from dataclasses import dataclass
from enum import Enum, IntEnum, auto
from typing import Optional


class Opcode(IntEnum):
    """Instruction opcodes."""
    NOP = 0x00
    INP = 0x01
    OUT = 0x02
    PUT = 0x03
    GET = 0x04
    ADD = 0x05
    SUB = 0x06
    INC = 0x07
    DEC = 0x08
    JMP = 0x09
    JMZ = 0x0A
    JMN = 0x0B
    END = 0xFF


class Width(IntEnum):
    """Width tag operand for INP, OUT and INC."""
    BYTE = 0x01
    WORD = 0x02


class OperandKind(Enum):
    """How an operand byte is interpreted."""
    WIDTH = auto()
    IMMEDIATE = auto()
    REGISTER = auto()
    ADDRESS = auto()

    def __str__(self) -> str:
        return self.name.lower()


# =============================================================================
# Instruction Information
# =============================================================================

@dataclass(frozen=True)
class InstructionInfo:
    """
    Encoding of one instruction.

    Attributes:
        opcode: The opcode byte
        operands: Operand kinds in fetch order, excluding the width tag
        width_tagged: True if the WORD variant prefixes a width tag
        description: One-line summary for listings and help
    """
    opcode: Opcode
    operands: tuple[OperandKind, ...]
    width_tagged: bool
    description: str

    @property
    def mnemonic(self) -> str:
        return self.opcode.name

    def operand_kinds(self, width_tagged: bool) -> tuple[OperandKind, ...]:
        """Operand kinds for a variant with or without width tags."""
        if self.width_tagged and width_tagged:
            return (OperandKind.WIDTH,) + self.operands
        return self.operands

    def size(self, width_tagged: bool) -> int:
        """Total instruction size in bytes, including the opcode."""
        return 1 + len(self.operand_kinds(width_tagged))


_ADDR = (OperandKind.ADDRESS,)

INSTRUCTION_TABLE: dict[int, InstructionInfo] = {
    info.opcode: info for info in (
        InstructionInfo(Opcode.NOP, (), False, "no operation"),
        InstructionInfo(Opcode.INP, (), True, "read input into A (or B:C)"),
        InstructionInfo(Opcode.OUT, (), True, "write A (or B:C) to output"),
        InstructionInfo(Opcode.PUT, (OperandKind.REGISTER, OperandKind.ADDRESS), False,
                        "store register to memory"),
        InstructionInfo(Opcode.GET, (OperandKind.REGISTER, OperandKind.ADDRESS), False,
                        "load register from memory"),
        InstructionInfo(Opcode.ADD, (OperandKind.IMMEDIATE,), False, "A <- A + imm"),
        InstructionInfo(Opcode.SUB, (OperandKind.IMMEDIATE,), False, "A <- A - imm"),
        InstructionInfo(Opcode.INC, (), True, "increment A (or B:C)"),
        InstructionInfo(Opcode.DEC, (), False, "decrement A"),
        InstructionInfo(Opcode.JMP, _ADDR, False, "jump"),
        InstructionInfo(Opcode.JMZ, _ADDR, False, "jump if zero flag set"),
        InstructionInfo(Opcode.JMN, _ADDR, False, "jump if sign flag set"),
        InstructionInfo(Opcode.END, (), False, "halt"),
    )
}


def get_instruction_info(opcode: int) -> Optional[InstructionInfo]:
    """
    Look up an opcode byte.

    Returns:
        InstructionInfo, or None if the byte is not an opcode
    """
    return INSTRUCTION_TABLE.get(opcode)


def is_valid_opcode(opcode: int) -> bool:
    return opcode in INSTRUCTION_TABLE
