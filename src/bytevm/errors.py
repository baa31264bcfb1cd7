"""
ByteVM Error Hierarchy
======================

This module defines the exception hierarchy for the virtual machine.
All exceptions inherit from VMError, allowing callers to catch every
machine failure with a single except clause if desired.

Exception Hierarchy
-------------------
VMError (base)
├── MemoryAccessError - address outside the configured memory
├── RegisterError - unknown register id or register not in the variant
├── DecodeError (instruction decoding)
│   ├── UnknownOpcodeError - byte does not name an instruction
│   └── InvalidOperandError - operand byte has no meaning (bad width tag)
├── PluginError - the IO plugin raised or returned an invalid value
└── MachineHaltedError - execution requested after END

Design Philosophy
-----------------
Every error is fatal to the running program. The interpreter is
deterministic, so a failure always points at the loaded program or the
IO plugin. Nothing is retried and nothing is clamped.

Error messages carry the address involved when one is known:
    $1F: unknown opcode $42

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class VMError(Exception):
    """
    Base exception for all virtual machine errors.

        try:
            vm.run()
        except VMError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Memory and Register Exceptions
# =============================================================================

class MemoryAccessError(VMError):
    """
    Access to an address outside the configured memory.

    Raised by byte and word peek/poke and by program loading. A word
    access needs two valid addresses, so a word at the last address
    fails as well.

    Attributes:
        address: The first address of the failed access
        size: Memory size in bytes
        width: Number of bytes the access touched (2 for a word)
    """

    def __init__(self, address: int, size: int, width: int = 1, message: str = ""):
        self.address = address
        self.size = size
        self.width = width
        if not message:
            kind = {1: "byte", 2: "word"}.get(width, f"{width}-byte block")
            message = (
                f"{kind} access at ${address:04X} is outside memory "
                f"(size {size}, valid $0000-${size - 1:04X})"
            )
        super().__init__(message)


class RegisterError(VMError):
    """
    Unknown register id, or a register the machine variant does not have.

    The BYTE variant has only A, B, PC and FL, so a program that names C
    in a GET or PUT fails here.
    """

    def __init__(self, register: int, variant: Optional[str] = None):
        self.register = register
        self.variant = variant
        name = getattr(register, "name", register)
        if variant:
            message = f"register {name} is not available on the {variant} variant"
        else:
            message = f"unknown register id {name}"
        super().__init__(message)


# =============================================================================
# Decode Exceptions
# =============================================================================

class DecodeError(VMError):
    """
    Base exception for instruction decoding errors.

    Attributes:
        address: Address of the offending byte (None if unknown)
        value: The byte that could not be decoded
    """

    def __init__(self, value: int, address: Optional[int] = None, message: str = ""):
        self.value = value
        self.address = address
        if address is not None:
            message = f"${address:02X}: {message}"
        super().__init__(message)


class UnknownOpcodeError(DecodeError):
    """
    The fetched byte does not name an instruction.

    Raised only when the machine runs with strict opcodes (the default).
    With strict opcodes disabled the byte is skipped like a NOP.
    """

    def __init__(self, opcode: int, address: Optional[int] = None):
        super().__init__(opcode, address, f"unknown opcode ${opcode:02X}")

    @property
    def opcode(self) -> int:
        return self.value


class InvalidOperandError(DecodeError):
    """
    An operand byte with no meaning for its instruction.

    Width tags must be $01 (byte) or $02 (word).
    """

    def __init__(self, mnemonic: str, value: int, address: Optional[int] = None):
        self.mnemonic = mnemonic
        super().__init__(value, address, f"invalid width tag ${value:02X} for {mnemonic}")


# =============================================================================
# Execution Exceptions
# =============================================================================

class PluginError(VMError):
    """
    The IO plugin failed.

    Raised when the plugin raises an exception (chained as __cause__) or
    returns a value that does not fit the requested width. The in-flight
    INP or OUT commits nothing.

    Attributes:
        operation: Name of the plugin call that failed (e.g. "read_byte")
    """

    def __init__(self, operation: str, message: str = ""):
        self.operation = operation
        if not message:
            message = f"IO plugin {operation}() failed"
        super().__init__(message)


class MachineHaltedError(VMError):
    """Execution requested on a machine that has executed END."""

    def __init__(self, message: str = "machine is halted; call reset() first"):
        super().__init__(message)
