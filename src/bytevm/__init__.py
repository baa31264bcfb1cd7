"""
ByteVM - A Minimal Byte-Code Virtual Machine
============================================

This package provides a small register machine: flat memory, a handful
of byte registers, a flags register, and a fetch-decode-execute loop
over thirteen opcodes. Input and output go through an IO plugin
supplied by the caller.

Two variants share one implementation:
- **BYTE**: 8-bit only, registers A, B, PC, FL
- **WORD**: 8/16-bit, registers A, B, C, D, PC, FL, I; the B:C pair
  serves as a 16-bit big-endian word

Main Components
---------------
- **machine**: VirtualMachine, MachineConfig, Memory, RegisterFile, opcodes, variants
- **disassembler**: Program listings
- **cli**: The `bytevm` command-line tool

Quick Start
-----------
Run a program:
    >>> from bytevm import VirtualMachine, MachineConfig, ScriptedIO
    >>> io = ScriptedIO([10])
    >>> vm = VirtualMachine(io, MachineConfig(variant="BYTE"))
    >>> vm.load_program(bytes([0x01, 0x07, 0x07, 0x02, 0xFF]))
    >>> event = vm.run()
    >>> io.outputs
    [12]

Or use the command-line tool:
    $ bytevm run countdown.bin --input 10
    $ bytevm disasm countdown.bin

Version History
---------------
1.0.0 - Initial release
"""

__version__ = "1.0.0"
__author__ = "Hugo José Pinto & Contributors"

# =============================================================================
# Public API Exports
# =============================================================================


from bytevm.disassembler import Disassembler, DisassembledInstruction
from bytevm.errors import (
    VMError,
    MemoryAccessError,
    RegisterError,
    DecodeError,
    UnknownOpcodeError,
    InvalidOperandError,
    PluginError,
    MachineHaltedError,
)
from bytevm.machine import (
    MachineConfig,
    VirtualMachine,
    MachineState,
    run_program,
    Memory,
    Register,
    Flags,
    RegisterFile,
    Opcode,
    Width,
    ByteIOPlugin,
    WordIOPlugin,
    ScriptedIO,
    BreakpointManager,
    BreakEvent,
    BreakReason,
    RegisterCondition,
    MachineVariant,
    get_variant,
    list_variants,
    VARIANT_BYTE,
    VARIANT_WORD,
)

__all__ = [
    # Version info
    "__version__",
    "__author__",
    # Configuration
    "MachineConfig",
    # Machine
    "VirtualMachine",
    "MachineState",
    "run_program",
    "Memory",
    "Register",
    "Flags",
    "RegisterFile",
    "Opcode",
    "Width",
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
    # Disassembler
    "Disassembler",
    "DisassembledInstruction",
    # Exception hierarchy
    "VMError",
    "MemoryAccessError",
    "RegisterError",
    "DecodeError",
    "UnknownOpcodeError",
    "InvalidOperandError",
    "PluginError",
    "MachineHaltedError",
]
