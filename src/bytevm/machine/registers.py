"""
Register File and Flags
=======================

Every register is one byte. Register ids are the bytes that GET and PUT
carry in a program, and map to storage offsets id - 1:

    Id  Register  Offset
    1   A         0       accumulator
    2   B         1       operand (high byte of the B:C word)
    3   C         2       low byte of the B:C word
    4   D         3       general purpose
    5   PC        4       program counter
    6   FL        5       flags
    7   I         6       index

PC and FL keep the ids the byte-only machine always used, so its
programs run unchanged. The index register sits at 7 so that PC, FL
and I never share a slot.

Flag register bit layout:
    7  6  5  4  3  2  1  0
    -  -  -  -  -  OF ZF SF

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from enum import IntEnum, IntFlag
from typing import Iterable, Optional

from ..errors import RegisterError
from .memory import join_word, split_word


class Register(IntEnum):
    """Register ids as encoded in GET/PUT operands."""
    A = 1
    B = 2
    C = 3
    D = 4
    PC = 5
    FL = 6
    I = 7


class Flags(IntFlag):
    """Condition flags held in the FL register."""
    SF = 0x01  # Sign: the last result was negative
    ZF = 0x02  # Zero: the last result was zero
    OF = 0x04  # Overflow: the last result exceeded the signed maximum


# Highest register id; the backing store holds one byte per id.
REGISTER_FILE_SIZE = int(max(Register))

ALL_REGISTERS = tuple(Register)


class RegisterFile:
    """
    Byte registers plus flag helpers.

    Only the registers given at construction are accessible; the others
    raise RegisterError even though the backing store has room for them.

    Example:
        >>> regs = RegisterFile()
        >>> regs.set_word(0x1234)
        >>> regs.get(Register.B), regs.get(Register.C)
        (18, 52)
    """

    def __init__(
        self,
        registers: Iterable[Register] = ALL_REGISTERS,
        variant: Optional[str] = None,
    ):
        """
        Args:
            registers: Registers this machine has
            variant: Variant name used in error messages
        """
        self._available = frozenset(registers)
        self._variant = variant
        self._data = bytearray(REGISTER_FILE_SIZE)

    @property
    def available(self) -> frozenset[Register]:
        return self._available

    def resolve(self, register: int) -> Register:
        """
        Turn a register id into a Register this machine has.

        Raises:
            RegisterError: If the id is unknown or not in this machine
        """
        try:
            reg = Register(register)
        except ValueError:
            raise RegisterError(register) from None
        if reg not in self._available:
            raise RegisterError(reg, self._variant)
        return reg

    def get(self, register: int) -> int:
        """Read a register."""
        return self._data[self.resolve(register) - 1]

    def set(self, register: int, value: int) -> None:
        """Write a register. The value is masked to 8 bits."""
        self._data[self.resolve(register) - 1] = value & 0xFF

    # ========================================
    # B:C Word Pair
    # ========================================

    def get_word(self) -> int:
        """Read B:C as a 16-bit value, B being the high byte."""
        return join_word(self.get(Register.B), self.get(Register.C))

    def set_word(self, value: int) -> None:
        """Write a 16-bit value to B:C."""
        hi, lo = split_word(value)
        self.set(Register.B, hi)
        self.set(Register.C, lo)

    # ========================================
    # Flags
    # ========================================

    def get_flag(self, flag: Flags) -> bool:
        return (self._data[Register.FL - 1] & flag) == flag

    def set_flag(self, flag: Flags, value: bool) -> None:
        if value:
            self._data[Register.FL - 1] |= flag
        else:
            self._data[Register.FL - 1] &= ~flag & 0xFF

    def get_flag_byte(self, flag: Flags) -> int:
        """Read a flag as 0 or 1."""
        return 1 if self.get_flag(flag) else 0

    def set_flag_byte(self, flag: Flags, value: int) -> None:
        """Set a flag from a byte; any non-zero value sets it."""
        self.set_flag(flag, value != 0)

    def reset_flags(self) -> None:
        """Clear every flag."""
        self._data[Register.FL - 1] = 0

    # ========================================
    # Whole-file Operations
    # ========================================

    def reset(self) -> None:
        """Zero every register, including PC and FL."""
        self._data[:] = bytes(REGISTER_FILE_SIZE)

    def as_dict(self) -> dict[str, int]:
        """Register values keyed by lower-case name, in id order."""
        return {
            reg.name.lower(): self._data[reg - 1]
            for reg in sorted(self._available)
        }
