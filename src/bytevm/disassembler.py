"""
ByteVM Disassembler
===================

Turns a program image back into a readable listing. Operand layout
depends on the machine variant: on WORD machines INP, OUT and INC carry
a width tag, on BYTE machines they do not.

Usage:
    disasm = Disassembler(VARIANT_WORD)

    # Disassemble a whole image
    for instr in disasm.disassemble(program):
        print(instr)

    # Disassemble a single instruction
    instr = disasm.disassemble_one(program, address=0x05)
    print(f"{instr.address:02X}: {instr.mnemonic} {instr.operand_str}")

Output format:
    $00: 01 01     INP byte
    $02: 05 0A     ADD #$0A
    $04: 03 01 32  PUT A,$32
    $07: 42        DB $42          ; unknown opcode

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from dataclasses import dataclass
from typing import List, Optional

from .machine.opcodes import OperandKind, Width, get_instruction_info
from .machine.registers import Register
from .machine.variants import MachineVariant, VARIANT_DEFAULT


# =============================================================================
# Data Structures
# =============================================================================

@dataclass
class DisassembledInstruction:
    """
    A single disassembled instruction.

    Attributes:
        address: Address of the opcode byte
        opcode: The opcode byte
        mnemonic: Instruction mnemonic ("DB" for a non-opcode byte)
        operands: Raw operand bytes
        operand_str: Formatted operands for display
        raw_bytes: All bytes of the instruction
        comment: Optional note (unknown opcode, truncated, bad operand)
    """
    address: int
    opcode: int
    mnemonic: str
    operands: bytes = b""
    operand_str: str = ""
    raw_bytes: bytes = b""
    comment: str = ""

    @property
    def size(self) -> int:
        return len(self.raw_bytes)

    def __str__(self) -> str:
        """Format as listing line: ADDRESS: BYTES  MNEMONIC OPERANDS"""
        hex_bytes = " ".join(f"{b:02X}" for b in self.raw_bytes).ljust(8)

        if self.operand_str:
            asm = f"{self.mnemonic} {self.operand_str}"
        else:
            asm = self.mnemonic

        if self.comment:
            return f"${self.address:02X}: {hex_bytes}  {asm:<14} ; {self.comment}"
        return f"${self.address:02X}: {hex_bytes}  {asm}"

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "address": f"${self.address:02X}",
            "address_int": self.address,
            "opcode": f"${self.opcode:02X}",
            "mnemonic": self.mnemonic,
            "operand": self.operand_str,
            "size": self.size,
            "bytes": [f"${b:02X}" for b in self.raw_bytes],
            "comment": self.comment,
        }


# =============================================================================
# Disassembler
# =============================================================================

class Disassembler:
    """
    Variant-aware disassembler for ByteVM programs.

    Attributes:
        variant: Machine variant whose operand layout is used
    """

    def __init__(self, variant: Optional[MachineVariant] = None):
        self.variant = variant or VARIANT_DEFAULT

    def _format_operand(self, kind: OperandKind, value: int) -> tuple[str, str]:
        """Return (text, problem) for one operand byte."""
        match kind:
            case OperandKind.WIDTH:
                try:
                    return Width(value).name.lower(), ""
                except ValueError:
                    return f"${value:02X}", "invalid width tag"
            case OperandKind.REGISTER:
                try:
                    reg = Register(value)
                except ValueError:
                    return f"${value:02X}", "unknown register"
                if not self.variant.has_register(reg):
                    return reg.name, f"no register {reg.name} on {self.variant.code}"
                return reg.name, ""
            case OperandKind.IMMEDIATE:
                return f"#${value:02X}", ""
            case _:
                return f"${value:02X}", ""

    def disassemble_one(self, data: bytes, address: int = 0, offset: Optional[int] = None) -> DisassembledInstruction:
        """
        Disassemble the instruction at one position.

        Args:
            data: Program bytes
            address: Address of the instruction
            offset: Index into data; defaults to address

        Raises:
            IndexError: If offset is past the end of data
        """
        if offset is None:
            offset = address
        opcode = data[offset]
        info = get_instruction_info(opcode)

        if info is None:
            return DisassembledInstruction(
                address=address,
                opcode=opcode,
                mnemonic="DB",
                operand_str=f"${opcode:02X}",
                raw_bytes=bytes([opcode]),
                comment="unknown opcode",
            )

        kinds = info.operand_kinds(self.variant.width_tagged)
        operands = bytes(data[offset + 1:offset + 1 + len(kinds)])
        parts = []
        problems = []
        for kind, value in zip(kinds, operands):
            text, problem = self._format_operand(kind, value)
            parts.append(text)
            if problem:
                problems.append(problem)
        if len(operands) < len(kinds):
            problems.append("truncated")

        return DisassembledInstruction(
            address=address,
            opcode=opcode,
            mnemonic=info.mnemonic,
            operands=operands,
            operand_str=",".join(parts),
            raw_bytes=bytes([opcode]) + operands,
            comment="; ".join(problems),
        )

    def disassemble(
        self,
        data: bytes,
        start_address: int = 0,
        count: Optional[int] = None,
    ) -> List[DisassembledInstruction]:
        """
        Disassemble a block of bytes.

        Args:
            data: Program bytes; data[0] sits at start_address
            start_address: Address of the first byte
            count: Maximum number of instructions (None = all)

        Returns:
            List of DisassembledInstruction
        """
        result: List[DisassembledInstruction] = []
        offset = 0

        while offset < len(data):
            if count is not None and len(result) >= count:
                break
            instr = self.disassemble_one(data, start_address + offset, offset)
            result.append(instr)
            offset += instr.size

        return result
