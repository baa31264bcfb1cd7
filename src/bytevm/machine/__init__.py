"""
ByteVM Machine
==============

A minimal register machine with flat memory and pluggable IO.

- **Memory**: Bounds-checked byte array with big-endian word access
- **Registers**: A, B, C, D, PC, FL, I as raw bytes; B:C forms a word
- **Flags**: Sign, Zero, Overflow
- **Engine**: Fetch-decode-execute loop over 13 opcodes
- **Variants**: BYTE (8-bit) and WORD (8/16-bit)
- **Debugging**: Breakpoints, write watchpoints, register conditions

Quick Start
-----------

Basic usage::

    >>> from bytevm.machine import VirtualMachine, ScriptedIO, Opcode
    >>> io = ScriptedIO([10])
    >>> vm = VirtualMachine(io)
    >>> vm.load_program(bytes([
    ...     Opcode.INP, 0x01,
    ...     Opcode.ADD, 10,
    ...     Opcode.OUT, 0x01,
    ...     Opcode.END,
    ... ]))
    >>> event = vm.run()
    >>> io.outputs
    [20]

Module Structure
----------------

- `vm.py`: VirtualMachine (execution engine, high-level API)
- `config.py`: MachineConfig with environment overrides
- `memory.py`: Memory and word layout helpers
- `registers.py`: Register ids, Flags, RegisterFile
- `opcodes.py`: Opcode table and operand layouts
- `io.py`: IO plugin protocols and ScriptedIO
- `variants.py`: BYTE and WORD machine descriptions
- `breakpoints.py`: Debugging support

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

# Main entry point
from .config import MachineConfig
from .vm import VirtualMachine, MachineState, run_program

# Memory and registers
from .memory import Memory, split_word, join_word, DEFAULT_MEMORY_SIZE
from .registers import Register, Flags, RegisterFile, REGISTER_FILE_SIZE

# Instruction set
from .opcodes import (
    Opcode,
    Width,
    OperandKind,
    InstructionInfo,
    INSTRUCTION_TABLE,
    get_instruction_info,
    is_valid_opcode,
)

# IO plugins
from .io import ByteIOPlugin, WordIOPlugin, ScriptedIO

# Debugging support
from .breakpoints import (
    BreakpointManager,
    BreakEvent,
    BreakReason,
    RegisterCondition,
)

# Variants
from .variants import (
    MachineVariant,
    get_variant,
    list_variants,
    VARIANT_BYTE,
    VARIANT_WORD,
    VARIANT_DEFAULT,
)

__all__ = [
    # Main API
    "MachineConfig",
    "VirtualMachine",
    "MachineState",
    "run_program",

    # Memory
    "Memory",
    "split_word",
    "join_word",
    "DEFAULT_MEMORY_SIZE",

    # Registers
    "Register",
    "Flags",
    "RegisterFile",
    "REGISTER_FILE_SIZE",

    # Instruction set
    "Opcode",
    "Width",
    "OperandKind",
    "InstructionInfo",
    "INSTRUCTION_TABLE",
    "get_instruction_info",
    "is_valid_opcode",

    # IO
    "ByteIOPlugin",
    "WordIOPlugin",
    "ScriptedIO",

    # Debugging
    "BreakpointManager",
    "BreakEvent",
    "BreakReason",
    "RegisterCondition",

    # Variants
    "MachineVariant",
    "get_variant",
    "list_variants",
    "VARIANT_BYTE",
    "VARIANT_WORD",
    "VARIANT_DEFAULT",
]
